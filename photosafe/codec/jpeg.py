"""JPEG EXIF codec backed by piexif.

Converts between piexif's raw dict form and typed ExifDocument values.
Every piexif failure is re-raised as a DecodeError, EncodeError or
StripError so the fallback chain can handle it.
"""

import io
import logging
from typing import Dict, Optional

import piexif

from photosafe.codec.base import BinaryCodec
from photosafe.document import (
    ArrayOf, Ascii, Byte, ExifDocument, Long, Rational, Short, SignedLong,
    SignedRational, TagValue, Undefined,
)
from photosafe.errors import DecodeError, EncodeError, StripError
from photosafe.tags import STRUCTURAL_TAGS, TagGroup

logger = logging.getLogger(__name__)

# TagGroup -> piexif dict key
_IFD_KEYS: Dict[TagGroup, str] = {
    TagGroup.PRIMARY: '0th',
    TagGroup.EXIF: 'Exif',
    TagGroup.GPS: 'GPS',
    TagGroup.THUMBNAIL: '1st',
    TagGroup.INTEROP: 'Interop',
}

# TagGroup -> piexif.TAGS section holding declared field types
_TAG_SECTIONS: Dict[TagGroup, str] = {
    TagGroup.PRIMARY: 'Image',
    TagGroup.EXIF: 'Exif',
    TagGroup.GPS: 'GPS',
    TagGroup.THUMBNAIL: 'Image',
    TagGroup.INTEROP: 'Interop',
}

_INTEGER_TYPES = {
    piexif.TYPES.Short: Short,
    piexif.TYPES.Long: Long,
    piexif.TYPES.SLong: SignedLong,
}
_FRACTION_TYPES = {
    piexif.TYPES.Rational: Rational,
    piexif.TYPES.SRational: SignedRational,
}


def _declared_type(group: TagGroup, tag_id: int) -> Optional[int]:
    entry = piexif.TAGS.get(_TAG_SECTIONS[group], {}).get(tag_id)
    return entry['type'] if entry else None


def _is_pair(raw) -> bool:
    return (isinstance(raw, tuple) and len(raw) == 2
            and all(isinstance(x, int) for x in raw))


def _infer_value(raw) -> Optional[TagValue]:
    """Best-effort conversion when the declared type does not fit the data."""
    if isinstance(raw, bytes):
        return Undefined(raw)
    if isinstance(raw, str):
        return Ascii(raw)
    if isinstance(raw, int):
        return Long(raw) if raw >= 0 else SignedLong(raw)
    if _is_pair(raw):
        return Rational(*raw)
    if isinstance(raw, tuple):
        items = tuple(_infer_value(x) for x in raw)
        if all(item is not None for item in items):
            return ArrayOf(items)
    return None


def to_tag_value(raw, type_id: Optional[int]) -> Optional[TagValue]:
    """Convert one piexif raw value to a TagValue. None if unsupported."""
    if type_id == piexif.TYPES.Ascii:
        if isinstance(raw, bytes):
            return Ascii(raw.decode('utf-8', errors='replace'))
        if isinstance(raw, str):
            return Ascii(raw)
    elif type_id == piexif.TYPES.Byte:
        if isinstance(raw, int):
            return Byte((raw,))
        if isinstance(raw, (tuple, bytes)):
            return Byte(tuple(raw))
    elif type_id == piexif.TYPES.Undefined:
        if isinstance(raw, bytes):
            return Undefined(raw)
        if isinstance(raw, int):
            return Undefined(bytes([raw & 0xFF]))
        if isinstance(raw, tuple) and all(isinstance(x, int) for x in raw):
            return Undefined(bytes(x & 0xFF for x in raw))
    elif type_id in _INTEGER_TYPES:
        cls = _INTEGER_TYPES[type_id]
        if isinstance(raw, int):
            return cls(raw)
        if isinstance(raw, tuple) and all(isinstance(x, int) for x in raw):
            return ArrayOf(tuple(cls(x) for x in raw))
    elif type_id in _FRACTION_TYPES:
        cls = _FRACTION_TYPES[type_id]
        if _is_pair(raw):
            return cls(*raw)
        if isinstance(raw, tuple) and all(_is_pair(x) for x in raw):
            return ArrayOf(tuple(cls(*x) for x in raw))
    return _infer_value(raw)


def to_raw(value: TagValue):
    """Convert a TagValue to the raw form piexif.dump expects."""
    if isinstance(value, Ascii):
        return value.text.encode('utf-8')
    if isinstance(value, (Short, Long, SignedLong)):
        return value.value
    if isinstance(value, (Rational, SignedRational)):
        return (value.numerator, value.denominator)
    if isinstance(value, Byte):
        return tuple(value.data)
    if isinstance(value, Undefined):
        return value.data
    if isinstance(value, ArrayOf):
        return tuple(to_raw(item) for item in value.items)
    raise TypeError(f'Unsupported tag value: {value!r}')


class PiexifCodec(BinaryCodec):
    """BinaryCodec implementation on top of piexif.load/dump/insert/remove."""

    def decode(self, data: bytes) -> ExifDocument:
        try:
            raw = piexif.load(data)
        except Exception as e:
            raise DecodeError(f'Could not parse EXIF data: {e}') from e

        groups = {}
        for group, key in _IFD_KEYS.items():
            mapping = {}
            for tag_id, raw_value in (raw.get(key) or {}).items():
                if tag_id in STRUCTURAL_TAGS:
                    continue
                value = to_tag_value(raw_value, _declared_type(group, tag_id))
                if value is None:
                    logger.debug('Skipping unsupported value for %s tag %d: %r',
                                 group.label, tag_id, raw_value)
                    continue
                mapping[tag_id] = value
            groups[group] = mapping

        document = ExifDocument(groups, raw.get('thumbnail') or None)
        if document.is_empty():
            raise DecodeError('No EXIF data found')
        return document

    def dump(self, document: ExifDocument) -> bytes:
        """Serialize a document to an ``Exif\\0\\0``-prefixed APP1 payload."""
        exif_dict = {key: {} for key in _IFD_KEYS.values()}
        try:
            for group, tag_id, value in document.entries():
                exif_dict[_IFD_KEYS[group]][tag_id] = to_raw(value)
            if exif_dict['1st'] and document.thumbnail:
                exif_dict['thumbnail'] = document.thumbnail
            return piexif.dump(exif_dict)
        except Exception as e:
            raise EncodeError(f'EXIF serialization failed: {e}') from e

    def encode(self, document: ExifDocument, container: bytes) -> bytes:
        exif_bytes = self.dump(document)
        out = io.BytesIO()
        try:
            piexif.insert(exif_bytes, container, out)
        except Exception as e:
            raise EncodeError(f'EXIF insert failed: {e}') from e
        return out.getvalue()

    def strip(self, container: bytes) -> bytes:
        if not container.startswith(b'\xff\xd8'):
            raise StripError('Not a JPEG container')
        out = io.BytesIO()
        try:
            piexif.remove(container, out)
        except Exception as e:
            raise StripError(f'EXIF removal failed: {e}') from e
        return out.getvalue()
