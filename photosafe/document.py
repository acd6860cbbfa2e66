"""In-memory EXIF document -- typed tag values grouped by tag directory.

An ExifDocument is an immutable value: every edit returns a new document,
so each fallback tier can build its own candidate without disturbing the
redacted original.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from photosafe.tags import TagGroup

_UINT16_MAX = 0xFFFF
_UINT32_MAX = 0xFFFFFFFF
_INT32_MIN = -0x80000000
_INT32_MAX = 0x7FFFFFFF


def _is_int_in(value, low: int, high: int) -> bool:
    """True for a real integer (not bool, not float/NaN/inf) in [low, high]."""
    return (isinstance(value, int) and not isinstance(value, bool)
            and low <= value <= high)


def _preview(text: str, limit: int = 60) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 3] + '...'


# ---------------------------------------------------------------------------
# Tag values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ascii:
    text: str
    type_id = 2
    is_binary = False

    def is_valid(self) -> bool:
        return isinstance(self.text, str)

    def preview(self) -> str:
        return _preview(str(self.text))


@dataclass(frozen=True)
class Short:
    value: int
    type_id = 3
    is_binary = False

    def is_valid(self) -> bool:
        return _is_int_in(self.value, 0, _UINT16_MAX)

    def preview(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Long:
    value: int
    type_id = 4
    is_binary = False

    def is_valid(self) -> bool:
        return _is_int_in(self.value, 0, _UINT32_MAX)

    def preview(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SignedLong:
    value: int
    type_id = 9
    is_binary = False

    def is_valid(self) -> bool:
        return _is_int_in(self.value, _INT32_MIN, _INT32_MAX)

    def preview(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Rational:
    """Unsigned fraction. A zero denominator is treated as non-finite."""
    numerator: int
    denominator: int
    type_id = 5
    is_binary = False

    def is_valid(self) -> bool:
        return (_is_int_in(self.numerator, 0, _UINT32_MAX)
                and _is_int_in(self.denominator, 1, _UINT32_MAX))

    def preview(self) -> str:
        return f'{self.numerator}/{self.denominator}'


@dataclass(frozen=True)
class SignedRational:
    numerator: int
    denominator: int
    type_id = 10
    is_binary = False

    def is_valid(self) -> bool:
        return (_is_int_in(self.numerator, _INT32_MIN, _INT32_MAX)
                and _is_int_in(self.denominator, _INT32_MIN, _INT32_MAX)
                and self.denominator != 0)

    def preview(self) -> str:
        return f'{self.numerator}/{self.denominator}'


@dataclass(frozen=True)
class Byte:
    data: Tuple[int, ...]
    type_id = 1
    is_binary = True

    def is_valid(self) -> bool:
        return (isinstance(self.data, tuple) and len(self.data) > 0
                and all(_is_int_in(b, 0, 0xFF) for b in self.data))

    def preview(self) -> str:
        return f'<{len(self.data)} bytes>'


@dataclass(frozen=True)
class Undefined:
    data: bytes
    type_id = 7
    is_binary = True

    def is_valid(self) -> bool:
        return isinstance(self.data, bytes)

    def preview(self) -> str:
        return f'<{len(self.data)} bytes>'


@dataclass(frozen=True)
class ArrayOf:
    """Fixed-size homogeneous array, e.g. three rationals for a GPS coordinate."""
    items: Tuple['TagValue', ...]
    is_binary = False

    @property
    def type_id(self) -> Optional[int]:
        return self.items[0].type_id if self.items else None

    def is_valid(self) -> bool:
        if not isinstance(self.items, tuple) or not self.items:
            return False
        first = type(self.items[0])
        if first is ArrayOf:
            return False
        return all(type(item) is first and item.is_valid() for item in self.items)

    def preview(self) -> str:
        return _preview(', '.join(item.preview() for item in self.items))


TagValue = Union[Ascii, Short, Long, SignedLong, Rational, SignedRational,
                 Byte, Undefined, ArrayOf]


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

class ExifDocument:
    """One mapping of tag id -> TagValue per TagGroup, plus the thumbnail blob.

    Instances are never mutated; ``set`` and ``remove`` return new
    documents.
    """
    __slots__ = ('_groups', 'thumbnail')

    def __init__(self, groups: Optional[Mapping[TagGroup, Mapping[int, TagValue]]] = None,
                 thumbnail: Optional[bytes] = None):
        groups = groups or {}
        self._groups = {
            group: MappingProxyType(dict(groups.get(group, {})))
            for group in TagGroup
        }
        self.thumbnail = thumbnail

    @classmethod
    def empty(cls) -> 'ExifDocument':
        return cls()

    def group(self, group: TagGroup) -> Mapping[int, TagValue]:
        """Read-only view of one tag directory."""
        return self._groups[group]

    def get(self, group: TagGroup, tag_id: int) -> Optional[TagValue]:
        return self._groups[group].get(tag_id)

    def has(self, group: TagGroup, tag_id: int) -> bool:
        return tag_id in self._groups[group]

    def entries(self) -> Iterator[Tuple[TagGroup, int, TagValue]]:
        """Iterate (group, tag id, value) over every tag, groups in enum order."""
        for group in TagGroup:
            for tag_id in sorted(self._groups[group]):
                yield group, tag_id, self._groups[group][tag_id]

    def is_empty(self) -> bool:
        return self.thumbnail is None and not any(self._groups.values())

    def __len__(self) -> int:
        return sum(len(m) for m in self._groups.values())

    # -- functional updates --------------------------------------------------

    def _copy_groups(self) -> Dict[TagGroup, Dict[int, TagValue]]:
        return {group: dict(mapping) for group, mapping in self._groups.items()}

    def set(self, group: TagGroup, tag_id: int, value: TagValue) -> 'ExifDocument':
        groups = self._copy_groups()
        groups[group][tag_id] = value
        return ExifDocument(groups, self.thumbnail)

    def remove(self, group: TagGroup, tag_id: int) -> 'ExifDocument':
        if tag_id not in self._groups[group]:
            return self
        groups = self._copy_groups()
        del groups[group][tag_id]
        return ExifDocument(groups, self.thumbnail)

    # -- validity --------------------------------------------------------------

    def invalid_entries(self) -> List[Tuple[TagGroup, int, TagValue]]:
        """Entries whose values would make the document non-encodable."""
        return [(g, t, v) for g, t, v in self.entries() if not v.is_valid()]

    def is_encodable(self) -> bool:
        return not self.invalid_entries()

    def __eq__(self, other) -> bool:
        if not isinstance(other, ExifDocument):
            return NotImplemented
        return (self.thumbnail == other.thumbnail
                and all(dict(self._groups[g]) == dict(other._groups[g])
                        for g in TagGroup))

    def __repr__(self) -> str:
        counts = ', '.join(f'{g.label}={len(self._groups[g])}' for g in TagGroup)
        return f'ExifDocument({counts})'
