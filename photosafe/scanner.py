"""Privacy scan -- list the metadata a redaction would remove, without writing.

Findings are reported for:

- every REMOVE-classified tag in the Primary and ExifSub groups
- every GPS tag
- the thumbnail directory and embedded thumbnail image
- capture timestamps that still carry a time of day
"""

import time
from pathlib import Path
from typing import List, Optional

from photosafe import tags
from photosafe.codec import PiexifCodec
from photosafe.codec.base import BinaryCodec
from photosafe.document import Ascii, ExifDocument
from photosafe.errors import DecodeError
from photosafe.formats import FORMAT_HEIC, FORMAT_JPEG, detect_format, guess_mime_type
from photosafe.models import PrivacyFinding, ScanResult
from photosafe.redact import truncate_exif_date
from photosafe.tags import TagGroup, TagPolicy

_TIMESTAMP_TAGS = (
    (TagGroup.PRIMARY, tags.DATE_TIME),
    (TagGroup.EXIF, tags.DATE_TIME_ORIGINAL),
    (TagGroup.EXIF, tags.DATE_TIME_DIGITIZED),
)


def _finding(group: TagGroup, tag_id: int, value, source: str) -> PrivacyFinding:
    return PrivacyFinding(
        group=group.label,
        tag_id=tag_id,
        tag_name=tags.tag_name(group, tag_id),
        value_preview=value.preview(),
        source=source,
    )


def scan_document(document: ExifDocument) -> List[PrivacyFinding]:
    """Return every privacy-bearing entry in ``document``, in group order."""
    findings = []
    for group, tag_id, value in document.entries():
        if group is TagGroup.GPS:
            findings.append(_finding(group, tag_id, value, 'gps_block'))
        elif group is TagGroup.THUMBNAIL:
            findings.append(_finding(group, tag_id, value, 'thumbnail'))
        elif tags.classify(group, tag_id) is TagPolicy.REMOVE:
            findings.append(_finding(group, tag_id, value, 'exif_tag'))

    if document.thumbnail:
        findings.append(PrivacyFinding(
            group=TagGroup.THUMBNAIL.label, tag_id=None,
            tag_name='ThumbnailImage',
            value_preview=f'{len(document.thumbnail)} bytes',
            source='thumbnail',
        ))

    for group, tag_id in _TIMESTAMP_TAGS:
        value = document.get(group, tag_id)
        if not isinstance(value, Ascii):
            continue
        # Anything but an already-truncated date still pins the capture time
        if truncate_exif_date(value.text) != value.text.strip('\x00'):
            findings.append(_finding(group, tag_id, value, 'timestamp'))

    return findings


def scan_bytes(data: bytes, filename: str = 'image.jpg', mime_type: str = '',
               codec: Optional[BinaryCodec] = None) -> ScanResult:
    """Scan image bytes for privacy metadata.

    HEIC files are not parsed; they are reported as carrying container
    metadata, which a clean always discards by transcoding.
    """
    t0 = time.monotonic()
    fmt = detect_format(data, filename, mime_type or guess_mime_type(filename))
    result = ScanResult(filename=filename, format=fmt, file_size=len(data))

    if fmt == FORMAT_HEIC:
        result.findings.append(PrivacyFinding(
            group='Container', tag_id=None, tag_name='HEIC/HEIF metadata',
            value_preview='not inspected', source='container',
        ))
    elif fmt == FORMAT_JPEG:
        codec = codec or PiexifCodec()
        try:
            document = codec.decode(data)
        except DecodeError:
            document = None
        if document is not None:
            result.has_exif = True
            result.findings = scan_document(document)

    result.is_clean = not result.findings
    result.scan_time_ms = (time.monotonic() - t0) * 1000
    return result


def scan_file(filepath: Path, codec: Optional[BinaryCodec] = None) -> ScanResult:
    """Scan one image file. Read errors are reported on the result."""
    filepath = Path(filepath)
    try:
        data = filepath.read_bytes()
    except OSError as e:
        return ScanResult(filename=filepath.name, format='unknown',
                          is_clean=False, error=str(e))
    return scan_bytes(data, filepath.name, guess_mime_type(filepath.name), codec)
