"""Emoji store: ordered, index-stable collection of emoji records"""

import logging
import random
import re
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from models.emoji import EmojiRecord

logger = logging.getLogger("MCP_Server")

# Field validation regexes, applied to every edit
NAME_REGEX = re.compile(r'[A-Za-z_]{1,14}')
METRIC_REGEX = re.compile(r'[0-9]+')
PERMISSION_REGEX = re.compile(r'[a-z0-9_.]+')

EDITABLE_FIELDS = ("name", "ascent", "height", "permission")
MAX_FALLBACK_ATTEMPTS = 16

FallbackNameGenerator = Callable[[], str]


def _to_base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    result = []
    while value:
        value, remainder = divmod(value, 36)
        result.append(digits[remainder])
    return "".join(reversed(result))


def random_fallback_name() -> str:
    """Default fallback name: a random integer below 10^10, in base 36"""
    return _to_base36(random.randrange(10 ** 10))


def validate_name(value: Any) -> bool:
    return isinstance(value, str) and bool(NAME_REGEX.fullmatch(value))


def validate_metric(value: Any) -> bool:
    """Metrics are non-negative integers, given as int or as a string of digits"""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 0
    return isinstance(value, str) and bool(METRIC_REGEX.fullmatch(value))


def validate_permission(value: Any) -> bool:
    """Permission nodes are dotted lowercase strings; empty or None clears the permission"""
    if value is None or value == "":
        return True
    return isinstance(value, str) and bool(PERMISSION_REGEX.fullmatch(value))


FIELD_VALIDATORS: Dict[str, Callable[[Any], bool]] = {
    "name": validate_name,
    "ascent": validate_metric,
    "height": validate_metric,
    "permission": validate_permission,
}


def _parse_field(field_name: str, raw_value: Any) -> Any:
    if field_name in ("ascent", "height"):
        return int(raw_value)
    if field_name == "permission":
        return raw_value or None
    return raw_value


class LiveRecords:
    """Restartable view over the live (non-removed) records, in insertion order"""

    def __init__(self, slots: List[Optional[EmojiRecord]]):
        self._slots = slots

    def __iter__(self) -> Iterator[EmojiRecord]:
        return (record for record in self._slots if record is not None)

    def __len__(self) -> int:
        return sum(1 for record in self._slots if record is not None)


class EmojiStore:
    """Holds the emojis being edited.

    Every record keeps the index it was given by ``add``. Removing a record
    leaves a tombstone in its slot, so the indices of the others never shift
    and a removed index is never handed out again.
    """

    def __init__(self, fallback_name_generator: Optional[FallbackNameGenerator] = None):
        self._slots: List[Optional[EmojiRecord]] = []
        self._fallback_name_generator = fallback_name_generator or random_fallback_name
        logger.info("Initialized EmojiStore")

    def __len__(self) -> int:
        """Number of slots, tombstones included"""
        return len(self._slots)

    def _live_names(self, exclude_index: Optional[int] = None) -> set:
        return {
            record.name for index, record in enumerate(self._slots)
            if record is not None and index != exclude_index
        }

    def _resolve_collision(self, name: str) -> str:
        taken = self._live_names()
        if name not in taken:
            return name

        candidate = name
        for _ in range(MAX_FALLBACK_ATTEMPTS):
            candidate = self._fallback_name_generator()
            if candidate not in taken:
                logger.info(f"Emoji name '{name}' already in use, renamed to '{candidate}'")
                return candidate

        # Generator keeps colliding; make the last candidate unique with a suffix
        suffix = 2
        while f"{candidate}_{suffix}" in taken:
            suffix += 1
        deduped = f"{candidate}_{suffix}"
        logger.warning(f"Fallback names for '{name}' kept colliding, using '{deduped}'")
        return deduped

    def add(
        self,
        name: str,
        image: bytes,
        ascent: int = 8,
        height: int = 9,
        permission: Optional[str] = None
    ) -> int:
        """Append a new record and return its stable index.

        Fields are stored as given. A name already used by a live record is
        replaced by a fallback name rather than rejected.
        """
        name = self._resolve_collision(name)
        record = EmojiRecord(
            name=name,
            image=bytes(image),
            ascent=ascent,
            height=height,
            permission=permission or None
        )
        self._slots.append(record)
        index = len(self._slots) - 1
        logger.debug(f"Added emoji '{name}' at index {index} ({record.image_size} bytes)")
        return index

    def get(self, index: int) -> Optional[EmojiRecord]:
        """Return the live record at index, or None for tombstones and unknown indices"""
        if not isinstance(index, int) or index < 0 or index >= len(self._slots):
            return None
        return self._slots[index]

    def update(self, index: int, field_name: str, raw_value: Any) -> bool:
        """Validate and apply a single field edit. Returns False if the edit was rejected."""
        record = self.get(index)
        if record is None:
            logger.debug(f"Rejected edit of {field_name} on missing emoji {index}")
            return False

        validator = FIELD_VALIDATORS.get(field_name)
        if validator is None or not validator(raw_value):
            logger.debug(f"Rejected {field_name}={raw_value!r} for emoji {index}")
            return False

        if field_name == "name" and raw_value in self._live_names(exclude_index=index):
            logger.debug(f"Rejected name {raw_value!r} for emoji {index}: already in use")
            return False

        try:
            value = _parse_field(field_name, raw_value)
        except ValueError as e:
            # int() refuses digit strings past the interpreter's conversion limit
            logger.debug(f"Rejected {field_name} for emoji {index}: {e}")
            return False

        setattr(record, field_name, value)
        return True

    def remove(self, index: int):
        """Tombstone the slot at index. Unknown or already removed indices are ignored."""
        record = self.get(index)
        if record is None:
            return
        self._slots[index] = None
        logger.debug(f"Removed emoji '{record.name}' at index {index}")

    def live_records(self) -> LiveRecords:
        return LiveRecords(self._slots)

    def live_items(self) -> Iterator[Tuple[int, EmojiRecord]]:
        """Yield (index, record) for each live record, in insertion order"""
        for index, record in enumerate(self._slots):
            if record is not None:
                yield index, record

    def is_empty(self) -> bool:
        return all(record is None for record in self._slots)
