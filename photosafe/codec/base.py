"""Codec interfaces -- the binary EXIF codec and the HEIC pixel codec.

Both are collaborators injected into the pipeline at construction time.
"""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass

from PIL import Image

from photosafe.document import ExifDocument
from photosafe.errors import PixelDecodeError


class BinaryCodec(ABC):
    """Reads and writes the EXIF block of a JPEG container."""

    @abstractmethod
    def decode(self, data: bytes) -> ExifDocument:
        """Parse the tag directory of a JPEG byte stream.

        Raises DecodeError when there is no usable tag directory.
        """
        ...

    @abstractmethod
    def encode(self, document: ExifDocument, container: bytes) -> bytes:
        """Serialize ``document`` into ``container``, replacing any EXIF block.

        Raises EncodeError when any value is rejected.
        """
        ...

    @abstractmethod
    def strip(self, container: bytes) -> bytes:
        """Remove every EXIF block from ``container``.

        Raises StripError when the container cannot be rewritten.
        """
        ...


@dataclass(frozen=True)
class RgbImage:
    """Decoded pixels: ``width * height * 3`` bytes, row-major RGB."""
    width: int
    height: int
    pixels: bytes


class PixelCodec(ABC):
    """Decodes a container Pillow cannot read natively into raw RGB pixels."""

    @abstractmethod
    def decode_to_rgb(self, data: bytes) -> RgbImage:
        """Raises PixelDecodeError when the image cannot be decoded."""
        ...

    def encode_jpeg(self, image: RgbImage, quality: int = 92) -> bytes:
        """Re-encode decoded pixels as a baseline JPEG with no metadata."""
        try:
            img = Image.frombytes('RGB', (image.width, image.height), image.pixels)
            buf = io.BytesIO()
            img.save(buf, format='JPEG', quality=quality)
        except (ValueError, OSError) as e:
            raise PixelDecodeError(f'JPEG re-encode failed: {e}') from e
        return buf.getvalue()
