"""PNG intake for emoji records"""

import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("ImageLoader")

PNG_EXTENSION = ".png"
DATA_URI_PREFIX = "data:image/png;base64,"


class ImageRejectedError(ValueError):
    """File is not an acceptable PNG image"""


@dataclass(frozen=True)
class LoadedImage:
    """PNG bytes read from a file, ready to become an emoji"""
    name: str  # Filename without the .png extension
    data: bytes
    width: int
    height: int


def emoji_name_from_filename(filename: str) -> str:
    """Derive the emoji name by dropping the .png extension"""
    return filename[:-len(PNG_EXTENSION)] if filename.endswith(PNG_EXTENSION) else filename


def inspect_png(data: bytes) -> Tuple[int, int]:
    """Check that data is a PNG image and return its (width, height)

    Raises:
        ImageRejectedError: If data is not a readable PNG
    """
    try:
        with Image.open(BytesIO(data)) as img:
            if img.format != "PNG":
                raise ImageRejectedError(f"Expected PNG data, got {img.format}")
            size = img.size
            img.verify()
            return size
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageRejectedError(f"Invalid PNG data: {e}")


def decode_image_data(encoded: str) -> bytes:
    """Decode base64 PNG data, with or without a data URI prefix"""
    if encoded.startswith(DATA_URI_PREFIX):
        encoded = encoded[len(DATA_URI_PREFIX):]
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageRejectedError(f"Invalid base64 image data: {e}")


def load_image_file(path: Union[str, Path]) -> LoadedImage:
    """Read a .png file

    Raises:
        ImageRejectedError: If the extension is not .png or the content is not PNG
        OSError: If the file cannot be read
    """
    path = Path(path)
    if not path.name.endswith(PNG_EXTENSION):
        raise ImageRejectedError(f"Cannot load {path.name}. Invalid extension.")

    data = path.read_bytes()
    width, height = inspect_png(data)
    return LoadedImage(
        name=emoji_name_from_filename(path.name),
        data=data,
        width=width,
        height=height
    )


def load_image_files(paths: Sequence[Union[str, Path]]) -> Tuple[List[LoadedImage], List[str]]:
    """Load a batch of files, collecting one error message per rejected file

    Returns:
        Tuple of (loaded images in input order, error messages)
    """
    loaded = []
    errors = []
    for path in paths:
        try:
            loaded.append(load_image_file(path))
        except ImageRejectedError as e:
            logger.warning(str(e))
            errors.append(str(e))
        except OSError as e:
            logger.warning(f"Cannot load {path}: {e}")
            errors.append(f"Cannot load {Path(path).name}. {e.strerror or e}")
    return loaded, errors
