"""Export manager: encodes the emoji store and bundles it into an archive"""

import logging
import os
import re
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from managers.emoji_store import EmojiStore
from mcemoji_codec import EncodingOverflowError, encode_emoji
from models.emoji import FormatVariant

logger = logging.getLogger("MCP_Server")

# First sort key handed out; each exported record gets one less.
# Keys are not clamped: past 32768 records they go negative and are stored as two's complement.
START_SORT_KEY = 0x7FFF

# Archive filename validation regex: simple filename only, no paths
ARCHIVE_FILENAME_REGEX = re.compile(r'[A-Za-z0-9][A-Za-z0-9._-]{0,63}\.zip')
DEFAULT_ARCHIVE_FILENAME = "emojis.zip"

ExportEntry = Tuple[str, bytes]


class EmojiExportError(Exception):
    """Encoding failed for one record; the whole export is abandoned"""

    def __init__(self, index: int, name: str, cause: Exception):
        self.index = index
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to encode emoji '{name}' (index {index}): {cause}")


class ZipArchiver:
    """Collects named buffers into an in-memory zip archive"""

    def __init__(self):
        self._buffer = BytesIO()
        self._zip = zipfile.ZipFile(self._buffer, "w", compression=zipfile.ZIP_DEFLATED)
        self._finalized = False

    def add_entry(self, filename: str, data: bytes):
        if self._finalized:
            raise ValueError("Archive already finalized")
        self._zip.writestr(filename, data)

    def finalize(self) -> bytes:
        if not self._finalized:
            self._zip.close()
            self._finalized = True
        return self._buffer.getvalue()


def export_all(
    store: EmojiStore,
    variant: FormatVariant = FormatVariant.CURRENT
) -> List[ExportEntry]:
    """Encode every live record of the store, in store order.

    The first record gets sort key 32767 and each following one gets one less.
    Nothing is returned if any record fails to encode.

    Raises:
        EmojiExportError: If a record cannot be encoded
    """
    entries: List[ExportEntry] = []
    sort_key = START_SORT_KEY
    for index, record in store.live_items():
        try:
            data = encode_emoji(record, sort_key, variant)
        except EncodingOverflowError as e:
            logger.error(f"Export aborted at emoji '{record.name}' (index {index}): {e}")
            raise EmojiExportError(index, record.name, e) from e
        entries.append((record.filename, data))
        sort_key -= 1
    logger.info(f"Encoded {len(entries)} emojis ({variant.value} format)")
    return entries


def validate_archive_filename(filename: str) -> bool:
    return bool(ARCHIVE_FILENAME_REGEX.fullmatch(filename))


def canonicalize_path(path: Union[str, Path], must_exist: bool = True) -> Path:
    """Resolve path to absolute real path (handles symlinks).

    Raises:
        ValueError: If path cannot be resolved and must_exist=True
    """
    try:
        return Path(path).resolve(strict=must_exist)
    except (OSError, RuntimeError) as e:
        raise ValueError(f"Cannot resolve path {path}: {e}")


def is_within(child_path: Union[str, Path], parent_path: Union[str, Path], child_must_exist: bool = True) -> bool:
    """Check if child_path is within parent_path after resolving symlinks on both"""
    try:
        child_real = canonicalize_path(child_path, must_exist=child_must_exist)
        parent_real = canonicalize_path(parent_path, must_exist=True)
        return child_real.is_relative_to(parent_real)
    except (ValueError, OSError):
        return False


class ExportManager:
    """Builds emoji archives from a store and writes them to disk."""

    def __init__(self, store: EmojiStore):
        self.store = store
        logger.info("Initialized ExportManager")

    def ensure_ready(self) -> Tuple[bool, Optional[str], Optional[Dict[str, Any]]]:
        """Check that there is something to export.

        Returns:
            Tuple of (is_ready, error_code, error_info)
        """
        if self.store.is_empty():
            return False, "NO_EMOJIS", {
                "message": "No emojis to export, first add some emojis!"
            }
        return True, None, None

    def build_archive(
        self,
        variant: FormatVariant = FormatVariant.CURRENT,
        archiver: Optional[Any] = None
    ) -> Tuple[bytes, List[ExportEntry]]:
        """Encode the store and hand every entry to the archiver.

        Args:
            variant: Binary layout for the entries
            archiver: Object with add_entry(filename, data) and finalize() -> bytes
                (default: a new ZipArchiver)

        Returns:
            Tuple of (archive bytes, encoded entries)

        Raises:
            EmojiExportError: If a record cannot be encoded; the archiver is not touched
        """
        entries = export_all(self.store, variant)
        archiver = archiver or ZipArchiver()
        for filename, data in entries:
            archiver.add_entry(filename, data)
        archive = archiver.finalize()
        logger.info(f"Built archive with {len(entries)} entries ({len(archive)} bytes)")
        return archive, entries

    def resolve_target_path(self, output_dir: Union[str, Path], filename: str) -> Path:
        """Resolve the archive path inside output_dir.

        Raises:
            ValueError: If filename is invalid or the path escapes output_dir
        """
        if not validate_archive_filename(filename):
            raise ValueError(
                f"Invalid archive filename: '{filename}'. "
                f"Must match regex: ^[A-Za-z0-9][A-Za-z0-9._-]{{0,63}}\\.zip$"
            )

        output_root = Path(output_dir)
        output_root.mkdir(parents=True, exist_ok=True)
        target_real = canonicalize_path(output_root / filename, must_exist=False)
        output_real = canonicalize_path(output_root, must_exist=True)
        if not is_within(target_real, output_real, child_must_exist=False):
            raise ValueError(f"Target path {target_real} is outside output directory {output_real}")
        return target_real

    def save_archive(
        self,
        output_dir: Union[str, Path],
        filename: str = DEFAULT_ARCHIVE_FILENAME,
        overwrite: bool = True,
        variant: FormatVariant = FormatVariant.CURRENT
    ) -> Dict[str, Any]:
        """Build the archive and write it atomically to output_dir/filename.

        Returns:
            Dict with dest_path, bytes_size, entry_count and entries (filenames)

        Raises:
            ValueError: If overwrite is False and the target exists, or filename is invalid
            EmojiExportError: If a record cannot be encoded
            OSError: If writing fails
        """
        target_path = self.resolve_target_path(output_dir, filename)
        if target_path.exists() and not overwrite:
            raise ValueError(f"Target file already exists and overwrite=False: {target_path}")

        archive, entries = self.build_archive(variant)

        # Write to temp file in the same directory, then rename
        temp_path = target_path.with_suffix(target_path.suffix + ".tmp")
        try:
            with open(temp_path, "wb") as f:
                f.write(archive)
            temp_path.replace(target_path)
        except OSError:
            if temp_path.exists():
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            raise

        logger.info(f"Saved {len(entries)} emojis to {target_path} ({len(archive)} bytes)")
        return {
            "dest_path": str(target_path),
            "bytes_size": len(archive),
            "entry_count": len(entries),
            "entries": [name for name, _ in entries],
        }
