"""Redaction options -- attribution strings, timezone offset, HEIC quality.

Options can be built in code, merged from keyword overrides, or loaded
from a JSON file whose keys override the built-in defaults.
"""

import json
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

DEFAULT_COPYRIGHT = '© All Rights Reserved.'
DEFAULT_ARTIST = 'Anonymous'
DEFAULT_OFFSET_TIME = '+00:00'
DEFAULT_HEIC_QUALITY = 0.92

_OFFSET_RE = re.compile(r'^[+-](?:[01]\d|2[0-3]):[0-5]\d$')

# Accepted spellings in config files -> field name
_KEY_ALIASES = {
    'copyright': 'copyright',
    'artist': 'artist',
    'offset_time': 'offset_time',
    'offsetTime': 'offset_time',
    'heic_quality': 'heic_quality',
    'heicQuality': 'heic_quality',
    'jpegQuality': 'heic_quality',
}


@dataclass(frozen=True)
class RedactionOptions:
    """Configuration for one redaction call. Every field has a default."""

    copyright: str = DEFAULT_COPYRIGHT
    artist: str = DEFAULT_ARTIST
    offset_time: str = DEFAULT_OFFSET_TIME
    heic_quality: float = DEFAULT_HEIC_QUALITY

    def __post_init__(self):
        if not isinstance(self.copyright, str):
            raise ValueError('copyright must be a string')
        if not isinstance(self.artist, str):
            raise ValueError('artist must be a string')
        if not isinstance(self.offset_time, str) or not _OFFSET_RE.match(self.offset_time):
            raise ValueError(
                f'offset_time must look like +HH:MM or -HH:MM, got {self.offset_time!r}')
        q = self.heic_quality
        if isinstance(q, bool) or not isinstance(q, (int, float)) or not 0 <= q <= 1:
            raise ValueError(f'heic_quality must be between 0 and 1, got {q!r}')

    @classmethod
    def default(cls) -> 'RedactionOptions':
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RedactionOptions':
        """Build options from a mapping; omitted keys keep their defaults."""
        kwargs = {}
        for key, value in data.items():
            name = _KEY_ALIASES.get(key)
            if name is None:
                raise ValueError(f'Unknown option: {key}')
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path) -> 'RedactionOptions':
        """Load options from a JSON file.

        JSON format::

            {
              "copyright": "...",
              "artist": "...",
              "offsetTime": "+09:00",
              "heicQuality": 0.9
            }

        All keys are optional; snake_case spellings are accepted too.
        """
        with open(str(path), 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f'{path}: expected a JSON object')
        return cls.from_dict(data)

    def merged(self, **overrides: Optional[Any]) -> 'RedactionOptions':
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            if key not in known:
                raise ValueError(f'Unknown option: {key}')
            if value is not None:
                changes[key] = value
        return replace(self, **changes) if changes else self

    @property
    def jpeg_quality(self) -> int:
        """HEIC quality mapped onto Pillow's 1..100 JPEG scale."""
        return max(1, min(100, round(self.heic_quality * 100)))
