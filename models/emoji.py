"""Emoji data models"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FormatVariant(Enum):
    """Binary layouts understood by the emoji runtime"""
    CURRENT = "current"  # variable-length header + embedded PNG
    LEGACY = "legacy"  # fixed 48-byte record, no image


@dataclass
class EmojiRecord:
    """One emoji asset with its display metrics"""
    name: str
    image: bytes  # Raw PNG bytes
    ascent: int = 8
    height: int = 9
    permission: Optional[str] = None  # e.g. "emojis.vip", None means no permission

    @property
    def image_size(self) -> int:
        return len(self.image)

    @property
    def filename(self) -> str:
        return f"{self.name}.mcemoji"
