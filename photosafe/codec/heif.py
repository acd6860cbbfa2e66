"""HEIC/HEIF pixel decoding via pillow-heif.

Requires the optional dependency:
    pip install pillow-heif
"""

import io

from PIL import Image

from photosafe.codec.base import PixelCodec, RgbImage
from photosafe.errors import PixelDecodeError


def _require_pillow_heif():
    try:
        import pillow_heif
        return pillow_heif
    except ImportError:
        raise ImportError(
            "pillow-heif is required for HEIC/HEIF conversion. "
            "Install it with: pip install pillow-heif"
        )


class HeifPixelCodec(PixelCodec):
    """Decodes the primary image of a HEIC/HEIF file to 8-bit RGB."""

    def __init__(self):
        self._heif = _require_pillow_heif()

    def decode_to_rgb(self, data: bytes) -> RgbImage:
        try:
            heif_file = self._heif.open_heif(io.BytesIO(data), convert_hdr_to_8bit=True)
            img = Image.frombytes(
                heif_file.mode, heif_file.size, heif_file.data,
                'raw', heif_file.mode, heif_file.stride,
            ).convert('RGB')
        except Exception as e:
            raise PixelDecodeError(f'Could not decode HEIC/HEIF file: {e}') from e

        if img.width == 0 or img.height == 0:
            raise PixelDecodeError('HEIC/HEIF file contains an empty image')
        return RgbImage(width=img.width, height=img.height, pixels=img.tobytes())
