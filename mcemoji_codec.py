"""Binary encoder for the .mcemoji format consumed by the emoji runtime.

Current layout (big-endian)::

    u8   format marker (1)
    u8   name length L
    u16  name code units, L of them (each code point truncated to 16 bits)
    u8   height (low byte)
    u8   ascent (low byte)
    u16  sort key
    u8   reserved (0, permission is not serialized)
    u16  image length I
    I    raw PNG bytes

Legacy layout is a fixed 48-byte record without sort key or image.
"""

import logging
import struct

from models.emoji import EmojiRecord, FormatVariant

logger = logging.getLogger("MCEmojiCodec")

CURRENT_MARKER = 1
LEGACY_MARKER = 0
FIXED_HEADER_SIZE = 9  # header bytes that do not depend on the name
MAX_NAME_LENGTH = 0xFF
MAX_IMAGE_LENGTH = 0xFFFF

LEGACY_RECORD_SIZE = 48
LEGACY_NAME_SLOTS = 14

_TRAILER = struct.Struct(">BBHBH")  # height, ascent, sort key, reserved, image length
_LEGACY = struct.Struct(">BB28sBB16x")


class EncodingOverflowError(ValueError):
    """A record field does not fit in the binary layout"""


def header_size(name_length: int) -> int:
    """Header size of the current layout for a name of name_length characters"""
    return FIXED_HEADER_SIZE + 2 * name_length


def encoded_size(record: EmojiRecord, variant: FormatVariant = FormatVariant.CURRENT) -> int:
    if variant is FormatVariant.LEGACY:
        return LEGACY_RECORD_SIZE
    return header_size(len(record.name)) + record.image_size


def _encode_name(name: str) -> bytes:
    # One 16-bit code unit per character, not UTF-8
    return struct.pack(f">{len(name)}H", *(ord(char) & 0xFFFF for char in name))


def _check_metrics(record: EmojiRecord):
    for field_name in ("height", "ascent"):
        value = getattr(record, field_name)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EncodingOverflowError(
                f"Emoji '{record.name}' has invalid {field_name}: {value!r}. Must be a non-negative integer"
            )


def _encode_current(record: EmojiRecord, sort_key: int) -> bytes:
    name_length = len(record.name)
    if name_length > MAX_NAME_LENGTH:
        raise EncodingOverflowError(
            f"Emoji name is {name_length} characters long, the format allows at most {MAX_NAME_LENGTH}"
        )
    image_length = record.image_size
    if image_length > MAX_IMAGE_LENGTH:
        raise EncodingOverflowError(
            f"Emoji '{record.name}' image is {image_length} bytes, the format allows at most {MAX_IMAGE_LENGTH}"
        )

    buffer = bytearray(header_size(name_length) + image_length)
    buffer[0] = CURRENT_MARKER
    buffer[1] = name_length
    offset = 2
    buffer[offset:offset + 2 * name_length] = _encode_name(record.name)
    offset += 2 * name_length
    # Metrics above 255 keep only their low byte; negative sort keys are stored as two's complement
    _TRAILER.pack_into(
        buffer,
        offset,
        record.height & 0xFF,
        record.ascent & 0xFF,
        sort_key & 0xFFFF,
        0,
        image_length
    )
    offset += _TRAILER.size
    buffer[offset:] = record.image
    return bytes(buffer)


def _encode_legacy(record: EmojiRecord) -> bytes:
    name_length = len(record.name)
    if name_length > LEGACY_NAME_SLOTS:
        raise EncodingOverflowError(
            f"Emoji name is {name_length} characters long, the legacy format allows at most {LEGACY_NAME_SLOTS}"
        )
    return _LEGACY.pack(
        LEGACY_MARKER,
        name_length,
        _encode_name(record.name),
        record.height & 0xFF,
        record.ascent & 0xFF
    )


def encode_emoji(
    record: EmojiRecord,
    sort_key: int,
    variant: FormatVariant = FormatVariant.CURRENT
) -> bytes:
    """Encode one emoji record.

    Args:
        record: Record to encode
        sort_key: Render priority, higher first. Ignored by the legacy layout.
        variant: Binary layout to produce (default: current)

    Returns:
        The encoded record, sized exactly to its layout

    Raises:
        EncodingOverflowError: If the name or image does not fit the layout
    """
    if not isinstance(variant, FormatVariant):
        raise ValueError(f"Unknown format variant: {variant!r}")
    _check_metrics(record)

    if variant is FormatVariant.LEGACY:
        data = _encode_legacy(record)
    else:
        data = _encode_current(record, sort_key)

    logger.debug(f"Encoded emoji '{record.name}' ({variant.value}, sort_key={sort_key}): {len(data)} bytes")
    return data
