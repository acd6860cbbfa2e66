"""Format detection -- declared MIME type, filename suffix, and magic bytes.

The declared type and name are hints only: the JPEG path additionally
requires the JPEG start-of-image marker in the data.
"""

import os

FORMAT_JPEG = 'jpeg'
FORMAT_HEIC = 'heic'
FORMAT_UNSUPPORTED = 'unsupported'

JPEG_MIME_TYPES = {'image/jpeg', 'image/jpg'}
HEIC_MIME_TYPES = {'image/heic', 'image/heif'}

JPEG_EXTENSIONS = {'.jpg', '.jpeg', '.jpe'}
HEIC_EXTENSIONS = {'.heic', '.heif'}

# File extensions considered for batch processing; anything that is not
# JPEG or HEIC is passed through unchanged
IMAGE_EXTENSIONS = JPEG_EXTENSIONS | HEIC_EXTENSIONS | {
    '.png', '.gif', '.webp', '.tif', '.tiff', '.bmp', '.avif',
}

JPEG_MAGIC = b'\xff\xd8'

_MIME_BY_EXTENSION = {
    '.jpg': 'image/jpeg', '.jpeg': 'image/jpeg', '.jpe': 'image/jpeg',
    '.heic': 'image/heic', '.heif': 'image/heif',
    '.png': 'image/png', '.gif': 'image/gif', '.webp': 'image/webp',
    '.tif': 'image/tiff', '.tiff': 'image/tiff', '.bmp': 'image/bmp',
    '.avif': 'image/avif',
}


def _suffix(filename: str) -> str:
    return os.path.splitext(filename or '')[1].lower()


def guess_mime_type(filename: str) -> str:
    """MIME type implied by a filename suffix, or '' when unknown."""
    return _MIME_BY_EXTENSION.get(_suffix(filename), '')


def is_jpeg_format(filename: str, mime_type: str = '') -> bool:
    """Declared as JPEG, by MIME type or (when no type is given) by suffix."""
    mime = (mime_type or '').lower()
    if mime:
        return mime in JPEG_MIME_TYPES
    return _suffix(filename) in JPEG_EXTENSIONS


def is_heic_format(filename: str, mime_type: str = '') -> bool:
    """HEIC/HEIF by declared MIME type or by ``.heic``/``.heif`` suffix."""
    mime = (mime_type or '').lower()
    return mime in HEIC_MIME_TYPES or _suffix(filename) in HEIC_EXTENSIONS


def is_supported_format(filename: str, mime_type: str = '') -> bool:
    return is_jpeg_format(filename, mime_type) or is_heic_format(filename, mime_type)


def detect_format(data: bytes, filename: str, mime_type: str = '') -> str:
    """Classify an input as "jpeg", "heic", or "unsupported"."""
    if is_heic_format(filename, mime_type):
        return FORMAT_HEIC
    if is_jpeg_format(filename, mime_type) and data[:2] == JPEG_MAGIC:
        return FORMAT_JPEG
    return FORMAT_UNSUPPORTED


def converted_filename(filename: str, extension: str = '.jpg') -> str:
    """Filename with its extension replaced to match a new container."""
    stem, _ = os.path.splitext(filename or 'image')
    return (stem or 'image') + extension
