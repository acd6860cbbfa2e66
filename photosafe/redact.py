"""Redaction transform -- ExifDocument + options -> redacted document + report.

Pure: no I/O, no clock. Steps, in order:

1. Drop the GPS group wholesale.
2. Delete REMOVE-classified tags from the Primary and ExifSub groups.
3. Drop the Thumbnail group and the embedded thumbnail image.
4. Upsert Copyright and Artist.
5. Truncate capture timestamps to midnight, keeping the calendar date.
6. Overwrite the three offset-time tags with the configured offset.

PRESERVE and PASSTHROUGH tags, orientation included, are left as they are.
"""

import re
from datetime import date
from typing import Optional, Tuple

from photosafe import tags
from photosafe.document import Ascii, ExifDocument, Short, TagValue
from photosafe.models import RedactionReport
from photosafe.options import RedactionOptions
from photosafe.tags import TagGroup, TagPolicy

_DATE_PREFIX_RE = re.compile(r'^(\d{4}):(\d{2}):(\d{2})')

# (group, tag) pairs whose time-of-day is zeroed; the bool marks the ones
# written to the report
_TIMESTAMP_TAGS = (
    (TagGroup.EXIF, tags.DATE_TIME_ORIGINAL, True),
    (TagGroup.PRIMARY, tags.DATE_TIME, False),
    (TagGroup.EXIF, tags.DATE_TIME_DIGITIZED, False),
)


def truncate_exif_date(value: Optional[str]) -> Optional[str]:
    """``'YYYY:MM:DD HH:MM:SS'`` -> ``'YYYY:MM:DD 00:00:00'``.

    Returns None when the value does not start with a ``YYYY:MM:DD`` date.
    """
    if not value:
        return None
    m = _DATE_PREFIX_RE.match(value)
    if not m:
        return None
    return f'{m.group(1)}:{m.group(2)}:{m.group(3)} 00:00:00'


def day_timestamp(day: date) -> str:
    """EXIF timestamp for midnight of ``day``."""
    return f'{day.year:04d}:{day.month:02d}:{day.day:02d} 00:00:00'


def describe_removal(group: TagGroup, tag_id: int, value: TagValue) -> str:
    """Report line for a removed tag; binary values are not echoed."""
    name = tags.qualified_name(group, tag_id)
    if value.is_binary:
        return name
    return f'{name}: {value.preview()}'


def capture_orientation(document: ExifDocument) -> Optional[Short]:
    """Read the display orientation once, before any tier mutates anything.

    Returns None unless the document holds a valid orientation (1..8).
    """
    value = document.get(TagGroup.PRIMARY, tags.ORIENTATION)
    if isinstance(value, Short) and value.is_valid() and 1 <= value.value <= 8:
        return value
    return None


def redact_document(document: ExifDocument,
                    options: Optional[RedactionOptions] = None,
                    ) -> Tuple[ExifDocument, RedactionReport]:
    """Apply the privacy redaction to ``document``.

    Returns the redacted document and a report of removed/added fields.
    The input document is not modified.
    """
    options = options or RedactionOptions.default()
    report = RedactionReport()
    groups = {group: dict(document.group(group)) for group in TagGroup}

    # 1. GPS, entire block
    if groups[TagGroup.GPS]:
        report.removed('GPS (entire block)')
    groups[TagGroup.GPS] = {}

    # 2. Device identity, unique ids, maker blobs, free text
    for group in (TagGroup.PRIMARY, TagGroup.EXIF):
        mapping = groups[group]
        for tag_id in sorted(mapping):
            if tags.classify(group, tag_id) is TagPolicy.REMOVE:
                report.removed(describe_removal(group, tag_id, mapping.pop(tag_id)))

    # 3. Thumbnail
    if groups[TagGroup.THUMBNAIL] or document.thumbnail:
        report.removed('Thumbnail')
    groups[TagGroup.THUMBNAIL] = {}

    # 4. Attribution
    groups[TagGroup.PRIMARY][tags.COPYRIGHT] = Ascii(options.copyright)
    report.added(f'Copyright: {options.copyright}')
    groups[TagGroup.PRIMARY][tags.ARTIST] = Ascii(options.artist)
    report.added(f'Artist: {options.artist}')

    # 5. Timestamps keep the date, lose the time of day
    for group, tag_id, reported in _TIMESTAMP_TAGS:
        mapping = groups[group]
        if tag_id not in mapping:
            continue
        original = mapping.pop(tag_id)
        text = original.text if isinstance(original, Ascii) else None
        cleaned = truncate_exif_date(text)
        if cleaned is None:
            report.removed(f'{describe_removal(group, tag_id, original)} (unparseable date)')
            continue
        mapping[tag_id] = Ascii(cleaned)
        if reported:
            report.added(f'{tags.tag_name(group, tag_id)}: {cleaned}')

    # 6. Timezone
    for tag_id in tags.OFFSET_TIME_TAGS:
        groups[TagGroup.EXIF][tag_id] = Ascii(options.offset_time)
    report.added(f'OffsetTimeOriginal: {options.offset_time}')

    return ExifDocument(groups, thumbnail=None), report


def build_heic_document(options: Optional[RedactionOptions],
                        today: date) -> Tuple[ExifDocument, RedactionReport]:
    """Fresh document for a HEIC->JPEG conversion.

    The transcode discards every original tag, so only attribution, the
    conversion date (day granularity) and the offset tags are written.
    """
    options = options or RedactionOptions.default()
    report = RedactionReport(converted_from='HEIC/HEIF')
    report.removed('HEIC/HEIF converted to JPEG (all original metadata removed)')

    stamp = day_timestamp(today)
    primary = {
        tags.COPYRIGHT: Ascii(options.copyright),
        tags.ARTIST: Ascii(options.artist),
        tags.DATE_TIME: Ascii(stamp),
    }
    exif = {tags.DATE_TIME_ORIGINAL: Ascii(stamp)}
    for tag_id in tags.OFFSET_TIME_TAGS:
        exif[tag_id] = Ascii(options.offset_time)

    report.added(f'Copyright: {options.copyright}')
    report.added(f'Artist: {options.artist}')
    report.added(f'DateTimeOriginal: {stamp}')
    report.added(f'OffsetTimeOriginal: {options.offset_time}')

    return ExifDocument({TagGroup.PRIMARY: primary, TagGroup.EXIF: exif}), report
