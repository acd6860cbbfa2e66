"""Shared test fixtures -- synthetic JPEGs with EXIF, fake codecs."""

import io

import piexif
import pytest
from PIL import Image

from photosafe.codec.base import BinaryCodec, PixelCodec, RgbImage
from photosafe.document import Ascii, ExifDocument, Rational, Short, Undefined
from photosafe.errors import DecodeError, EncodeError, PixelDecodeError, StripError
from photosafe.tags import TagGroup
from photosafe import tags


def build_plain_jpeg(width=16, height=12, color=(200, 120, 40)):
    """A small baseline JPEG with no EXIF block."""
    buf = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buf, format='JPEG')
    return buf.getvalue()


def build_jpeg(exif_dict, width=16, height=12):
    """A small JPEG carrying ``exif_dict`` (piexif dict form)."""
    full = {'0th': {}, 'Exif': {}, 'GPS': {}, '1st': {}, 'Interop': {},
            'thumbnail': None}
    full.update(exif_dict)
    out = io.BytesIO()
    piexif.insert(piexif.dump(full), build_plain_jpeg(width, height), out)
    return out.getvalue()


def privacy_exif_dict(orientation=6, with_thumbnail=True):
    """EXIF as a phone camera would write it: GPS, serials, thumbnail, times."""
    exif = {
        '0th': {
            piexif.ImageIFD.Make: b'Canon',
            piexif.ImageIFD.Model: b'Canon EOS R5',
            piexif.ImageIFD.Orientation: orientation,
            piexif.ImageIFD.XResolution: (72, 1),
            piexif.ImageIFD.YResolution: (72, 1),
            piexif.ImageIFD.ResolutionUnit: 2,
            piexif.ImageIFD.Software: b'Firmware 1.8.1',
            piexif.ImageIFD.DateTime: b'2023:07:14 18:22:05',
            piexif.ImageIFD.HostComputer: b'alice-laptop',
            piexif.ImageIFD.YCbCrPositioning: 1,
        },
        'Exif': {
            piexif.ExifIFD.DateTimeOriginal: b'2023:07:14 18:22:05',
            piexif.ExifIFD.DateTimeDigitized: b'2023:07:14 18:22:06',
            piexif.ExifIFD.ExposureTime: (1, 250),
            piexif.ExifIFD.FNumber: (28, 10),
            piexif.ExifIFD.ISOSpeedRatings: 200,
            piexif.ExifIFD.MakerNote: b'\x01\x02secret-maker-blob',
            piexif.ExifIFD.UserComment: b'ASCII\x00\x00\x00at grandma\'s house',
            piexif.ExifIFD.BodySerialNumber: b'012345678901',
            piexif.ExifIFD.LensSerialNumber: b'LS-99887',
            piexif.ExifIFD.CameraOwnerName: b'Alice Example',
            piexif.ExifIFD.ImageUniqueID: b'4f1c2a9e7b3d',
            piexif.ExifIFD.ColorSpace: 1,
            piexif.ExifIFD.PixelXDimension: 16,
            piexif.ExifIFD.PixelYDimension: 12,
        },
        'GPS': {
            piexif.GPSIFD.GPSVersionID: (2, 2, 0, 0),
            piexif.GPSIFD.GPSLatitudeRef: b'N',
            piexif.GPSIFD.GPSLatitude: ((40, 1), (26, 1), (4608, 100)),
            piexif.GPSIFD.GPSLongitudeRef: b'W',
            piexif.GPSIFD.GPSLongitude: ((79, 1), (58, 1), (5600, 100)),
        },
    }
    if with_thumbnail:
        exif['1st'] = {
            piexif.ImageIFD.XResolution: (72, 1),
            piexif.ImageIFD.YResolution: (72, 1),
            piexif.ImageIFD.ResolutionUnit: 2,
        }
        exif['thumbnail'] = build_plain_jpeg(4, 3)
    return exif


def privacy_document(orientation=6):
    """The typed equivalent of a camera EXIF block, without going through piexif."""
    return ExifDocument({
        TagGroup.PRIMARY: {
            tags.MAKE: Ascii('Canon'),
            tags.MODEL: Ascii('Canon EOS R5'),
            tags.ORIENTATION: Short(orientation),
            tags.X_RESOLUTION: Rational(72, 1),
            tags.Y_RESOLUTION: Rational(72, 1),
            tags.RESOLUTION_UNIT: Short(2),
            tags.SOFTWARE: Ascii('Firmware 1.8.1'),
            tags.DATE_TIME: Ascii('2023:07:14 18:22:05'),
        },
        TagGroup.EXIF: {
            tags.DATE_TIME_ORIGINAL: Ascii('2023:07:14 18:22:05'),
            tags.DATE_TIME_DIGITIZED: Ascii('2023:07:14 18:22:06'),
            tags.EXPOSURE_TIME: Rational(1, 250),
            tags.MAKER_NOTE: Undefined(b'\x01\x02secret'),
            tags.BODY_SERIAL_NUMBER: Ascii('012345678901'),
            tags.COLOR_SPACE: Short(1),
        },
        TagGroup.GPS: {
            1: Ascii('N'),
            3: Ascii('W'),
        },
        TagGroup.THUMBNAIL: {
            tags.X_RESOLUTION: Rational(72, 1),
        },
    }, thumbnail=b'\xff\xd8thumb')


# ---------------------------------------------------------------------------
# Fake codecs
# ---------------------------------------------------------------------------

class FakeCodec(BinaryCodec):
    """In-memory BinaryCodec with per-tier failure injection.

    ``encode`` fails while ``fail_encodes`` is positive (decremented on each
    call), or for every call when ``encode_always_fails`` is set. Encoded
    documents are recorded in ``encoded`` and the container bytes gain a
    marker so tests can tell which operation produced them.
    """

    def __init__(self, document=None, fail_encodes=0, encode_always_fails=False,
                 strip_fails=False, reject=None):
        self.document = document
        self.fail_encodes = fail_encodes
        self.encode_always_fails = encode_always_fails
        self.strip_fails = strip_fails
        self.reject = reject
        self.encoded = []
        self.stripped = 0

    def decode(self, data):
        if self.document is None:
            raise DecodeError('No EXIF data found')
        return self.document

    def encode(self, document, container):
        self.encoded.append(document)
        if self.encode_always_fails:
            raise EncodeError('encoder rejected document')
        if self.fail_encodes > 0:
            self.fail_encodes -= 1
            raise EncodeError('encoder rejected document')
        if self.reject is not None and self.reject(document):
            raise EncodeError('encoder rejected value')
        return container + b'|encoded'

    def strip(self, container):
        self.stripped += 1
        if self.strip_fails:
            raise StripError('strip failed')
        return container + b'|stripped'


class FakePixelCodec(PixelCodec):
    """Decodes any input to a small solid image, or fails on demand."""

    def __init__(self, fail=False, width=8, height=6):
        self.fail = fail
        self.width = width
        self.height = height
        self.qualities = []

    def decode_to_rgb(self, data):
        if self.fail:
            raise PixelDecodeError('Could not decode HEIC/HEIF file: corrupt')
        return RgbImage(self.width, self.height, b'\x80\x40\x20' * (self.width * self.height))

    def encode_jpeg(self, image, quality=92):
        self.qualities.append(quality)
        return super().encode_jpeg(image, quality)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def plain_jpeg():
    return build_plain_jpeg()


@pytest.fixture
def privacy_jpeg():
    return build_jpeg(privacy_exif_dict())


@pytest.fixture
def clean_jpeg():
    """A JPEG whose EXIF holds nothing privacy-bearing."""
    return build_jpeg({
        '0th': {
            piexif.ImageIFD.Orientation: 1,
            piexif.ImageIFD.Copyright: b'Someone',
            piexif.ImageIFD.DateTime: b'2023:07:14 00:00:00',
        },
    })


@pytest.fixture
def tmp_jpeg(tmp_path, privacy_jpeg):
    path = tmp_path / 'holiday.jpg'
    path.write_bytes(privacy_jpeg)
    return path


@pytest.fixture
def tmp_photo_dir(tmp_path, privacy_jpeg, plain_jpeg):
    """A directory tree with two privacy JPEGs, a plain JPEG and a PNG."""
    root = tmp_path / 'photos'
    (root / 'trip').mkdir(parents=True)
    (root / 'a.jpg').write_bytes(privacy_jpeg)
    (root / 'trip' / 'b.jpeg').write_bytes(privacy_jpeg)
    (root / 'c.jpg').write_bytes(plain_jpeg)
    buf = io.BytesIO()
    Image.new('RGB', (4, 4)).save(buf, format='PNG')
    (root / 'd.png').write_bytes(buf.getvalue())
    (root / 'notes.txt').write_text('not an image')
    return root


@pytest.fixture
def fixed_clock():
    from datetime import datetime
    return lambda: datetime(2024, 3, 9, 15, 45, 12)
