"""Shared fixtures for the emoji store, encoder and tool tests"""

import itertools
import struct
from io import BytesIO

import pytest
from PIL import Image


def _decode_mcemoji(data: bytes) -> dict:
    """Read a current-layout .mcemoji buffer back into its fields"""
    assert data[0] == 1, "not a current-layout record"
    name_length = data[1]
    name = "".join(
        chr((data[2 + 2 * i] << 8) | data[3 + 2 * i]) for i in range(name_length)
    )
    offset = 2 + 2 * name_length
    height, ascent, sort_key, reserved, image_length = struct.unpack_from(">BBHBH", data, offset)
    offset += 7
    return {
        "name": name,
        "height": height,
        "ascent": ascent,
        "sort_key": sort_key,
        "reserved": reserved,
        "image": data[offset:offset + image_length],
        "header_size": offset,
    }


@pytest.fixture
def decode_mcemoji():
    return _decode_mcemoji


@pytest.fixture
def png_bytes():
    """A small valid PNG image"""
    buf = BytesIO()
    Image.new("RGBA", (9, 9), (255, 200, 0, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sequential_names():
    """Deterministic fallback name generator: fallback_a, fallback_b, ..."""
    letters = itertools.cycle("abcdefghijklmnopqrstuvwxyz")
    return lambda: f"fallback_{next(letters)}"


class FakeMCP:
    """Collects tool functions registered with @mcp.tool()"""

    def __init__(self):
        self.tools = {}

    def tool(self, *args, **kwargs):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn
        return decorator


@pytest.fixture
def fake_mcp():
    return FakeMCP()
