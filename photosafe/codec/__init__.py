"""Codec collaborators -- EXIF binary codec and HEIC pixel codec."""

from photosafe.codec.base import BinaryCodec, PixelCodec, RgbImage
from photosafe.codec.jpeg import PiexifCodec


def default_pixel_codec():
    """Return a HEIC pixel codec, or None when pillow-heif is not installed."""
    from photosafe.codec.heif import HeifPixelCodec
    try:
        return HeifPixelCodec()
    except ImportError:
        return None


__all__ = [
    'BinaryCodec',
    'PixelCodec',
    'RgbImage',
    'PiexifCodec',
    'default_pixel_codec',
]
