"""Tag dictionary -- EXIF tag identifiers, names, and redaction policy.

Static reference data only. Every (group, tag id) pair is classified as
REMOVE, PRESERVE or PASSTHROUGH; unknown ids default to PASSTHROUGH, except
in the GPS group, which is removed wholesale.
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple


class TagGroup(Enum):
    """The five tag directories (IFDs) of an EXIF block."""
    PRIMARY = 'Primary'
    EXIF = 'ExifSub'
    GPS = 'Gps'
    THUMBNAIL = 'Thumbnail'
    INTEROP = 'Interop'

    @property
    def label(self) -> str:
        return self.value


class TagPolicy(Enum):
    REMOVE = 'remove'
    PRESERVE = 'preserve'
    PASSTHROUGH = 'passthrough'


# ---------------------------------------------------------------------------
# Tag identifiers
# ---------------------------------------------------------------------------

# Primary (IFD0)
MAKE = 0x010F
MODEL = 0x0110
ORIENTATION = 0x0112
X_RESOLUTION = 0x011A
Y_RESOLUTION = 0x011B
RESOLUTION_UNIT = 0x0128
SOFTWARE = 0x0131
DATE_TIME = 0x0132
ARTIST = 0x013B
HOST_COMPUTER = 0x013C
YCBCR_POSITIONING = 0x0213
COPYRIGHT = 0x8298
XP_TITLE = 0x9C9B
XP_COMMENT = 0x9C9C
XP_AUTHOR = 0x9C9D
XP_KEYWORDS = 0x9C9E
XP_SUBJECT = 0x9C9F
CAMERA_SERIAL_NUMBER = 0xC62F

# ExifSub
EXPOSURE_TIME = 0x829A
F_NUMBER = 0x829D
ISO_SPEED_RATINGS = 0x8827
EXIF_VERSION = 0x9000
DATE_TIME_ORIGINAL = 0x9003
DATE_TIME_DIGITIZED = 0x9004
OFFSET_TIME = 0x9010
OFFSET_TIME_ORIGINAL = 0x9011
OFFSET_TIME_DIGITIZED = 0x9012
METERING_MODE = 0x9207
FLASH = 0x9209
FOCAL_LENGTH = 0x920A
MAKER_NOTE = 0x927C
USER_COMMENT = 0x9286
COLOR_SPACE = 0xA001
PIXEL_X_DIMENSION = 0xA002
PIXEL_Y_DIMENSION = 0xA003
WHITE_BALANCE = 0xA403
IMAGE_UNIQUE_ID = 0xA420
CAMERA_OWNER_NAME = 0xA430
BODY_SERIAL_NUMBER = 0xA431
LENS_MAKE = 0xA433
LENS_MODEL = 0xA434
LENS_SERIAL_NUMBER = 0xA435

# Directory pointers and thumbnail offsets. These describe container layout,
# not image metadata, and are regenerated by the encoder.
EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825
INTEROP_IFD_POINTER = 0xA005
JPEG_INTERCHANGE_FORMAT = 0x0201
JPEG_INTERCHANGE_FORMAT_LENGTH = 0x0202

STRUCTURAL_TAGS: FrozenSet[int] = frozenset({
    EXIF_IFD_POINTER, GPS_IFD_POINTER, INTEROP_IFD_POINTER,
    JPEG_INTERCHANGE_FORMAT, JPEG_INTERCHANGE_FORMAT_LENGTH,
})

# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

PRIMARY_TAG_NAMES: Dict[int, str] = {
    0x0100: 'ImageWidth', 0x0101: 'ImageLength', 0x0102: 'BitsPerSample',
    0x0103: 'Compression', 0x0106: 'PhotometricInterpretation',
    0x010E: 'ImageDescription', MAKE: 'Make', MODEL: 'Model',
    ORIENTATION: 'Orientation', 0x0115: 'SamplesPerPixel',
    X_RESOLUTION: 'XResolution', Y_RESOLUTION: 'YResolution',
    RESOLUTION_UNIT: 'ResolutionUnit', SOFTWARE: 'Software',
    DATE_TIME: 'DateTime', ARTIST: 'Artist', HOST_COMPUTER: 'HostComputer',
    0x013E: 'WhitePoint', 0x013F: 'PrimaryChromaticities',
    0x0211: 'YCbCrCoefficients', 0x0212: 'YCbCrSubSampling',
    YCBCR_POSITIONING: 'YCbCrPositioning', 0x0214: 'ReferenceBlackWhite',
    COPYRIGHT: 'Copyright', XP_TITLE: 'XPTitle', XP_COMMENT: 'XPComment',
    XP_AUTHOR: 'XPAuthor', XP_KEYWORDS: 'XPKeywords', XP_SUBJECT: 'XPSubject',
    CAMERA_SERIAL_NUMBER: 'CameraSerialNumber',
    EXIF_IFD_POINTER: 'ExifTag', GPS_IFD_POINTER: 'GPSTag',
}

EXIF_TAG_NAMES: Dict[int, str] = {
    EXPOSURE_TIME: 'ExposureTime', F_NUMBER: 'FNumber',
    0x8822: 'ExposureProgram', ISO_SPEED_RATINGS: 'ISOSpeedRatings',
    EXIF_VERSION: 'ExifVersion', DATE_TIME_ORIGINAL: 'DateTimeOriginal',
    DATE_TIME_DIGITIZED: 'DateTimeDigitized', OFFSET_TIME: 'OffsetTime',
    OFFSET_TIME_ORIGINAL: 'OffsetTimeOriginal',
    OFFSET_TIME_DIGITIZED: 'OffsetTimeDigitized',
    0x9101: 'ComponentsConfiguration', 0x9201: 'ShutterSpeedValue',
    0x9202: 'ApertureValue', 0x9203: 'BrightnessValue',
    0x9204: 'ExposureBiasValue', 0x9205: 'MaxApertureValue',
    METERING_MODE: 'MeteringMode', FLASH: 'Flash', FOCAL_LENGTH: 'FocalLength',
    0x9214: 'SubjectArea', MAKER_NOTE: 'MakerNote', USER_COMMENT: 'UserComment',
    0x9290: 'SubSecTime', 0x9291: 'SubSecTimeOriginal',
    0x9292: 'SubSecTimeDigitized', 0xA000: 'FlashpixVersion',
    COLOR_SPACE: 'ColorSpace', PIXEL_X_DIMENSION: 'PixelXDimension',
    PIXEL_Y_DIMENSION: 'PixelYDimension', 0xA217: 'SensingMethod',
    0xA300: 'FileSource', 0xA301: 'SceneType', 0xA401: 'CustomRendered',
    0xA402: 'ExposureMode', WHITE_BALANCE: 'WhiteBalance',
    0xA404: 'DigitalZoomRatio', 0xA405: 'FocalLengthIn35mmFilm',
    0xA406: 'SceneCaptureType', IMAGE_UNIQUE_ID: 'ImageUniqueID',
    CAMERA_OWNER_NAME: 'CameraOwnerName', BODY_SERIAL_NUMBER: 'BodySerialNumber',
    0xA432: 'LensSpecification', LENS_MAKE: 'LensMake', LENS_MODEL: 'LensModel',
    LENS_SERIAL_NUMBER: 'LensSerialNumber', INTEROP_IFD_POINTER: 'InteroperabilityTag',
}

GPS_TAG_NAMES: Dict[int, str] = {
    0: 'GPSVersionID', 1: 'GPSLatitudeRef', 2: 'GPSLatitude',
    3: 'GPSLongitudeRef', 4: 'GPSLongitude', 5: 'GPSAltitudeRef',
    6: 'GPSAltitude', 7: 'GPSTimeStamp', 8: 'GPSSatellites',
    9: 'GPSStatus', 10: 'GPSMeasureMode', 11: 'GPSDOP',
    12: 'GPSSpeedRef', 13: 'GPSSpeed', 14: 'GPSTrackRef',
    15: 'GPSTrack', 16: 'GPSImgDirectionRef', 17: 'GPSImgDirection',
    18: 'GPSMapDatum', 19: 'GPSDestLatitudeRef', 20: 'GPSDestLatitude',
    21: 'GPSDestLongitudeRef', 22: 'GPSDestLongitude', 23: 'GPSDestBearingRef',
    24: 'GPSDestBearing', 25: 'GPSDestDistanceRef', 26: 'GPSDestDistance',
    27: 'GPSProcessingMethod', 28: 'GPSAreaInformation', 29: 'GPSDateStamp',
    30: 'GPSDifferential', 31: 'GPSHPositioningError',
}

INTEROP_TAG_NAMES: Dict[int, str] = {
    0x0001: 'InteroperabilityIndex', 0x0002: 'InteroperabilityVersion',
}

_GROUP_NAMES: Dict[TagGroup, Dict[int, str]] = {
    TagGroup.PRIMARY: PRIMARY_TAG_NAMES,
    TagGroup.EXIF: EXIF_TAG_NAMES,
    TagGroup.GPS: GPS_TAG_NAMES,
    TagGroup.THUMBNAIL: PRIMARY_TAG_NAMES,  # IFD1 uses IFD0 tag ids
    TagGroup.INTEROP: INTEROP_TAG_NAMES,
}

# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

REMOVE_TAGS: Dict[TagGroup, FrozenSet[int]] = {
    TagGroup.PRIMARY: frozenset({
        MAKE, MODEL, SOFTWARE, HOST_COMPUTER, CAMERA_SERIAL_NUMBER,
        XP_TITLE, XP_COMMENT, XP_AUTHOR, XP_KEYWORDS, XP_SUBJECT,
    }),
    TagGroup.EXIF: frozenset({
        MAKER_NOTE, USER_COMMENT, IMAGE_UNIQUE_ID, CAMERA_OWNER_NAME,
        BODY_SERIAL_NUMBER, LENS_MAKE, LENS_MODEL, LENS_SERIAL_NUMBER,
    }),
}

PRESERVE_TAGS: Dict[TagGroup, FrozenSet[int]] = {
    TagGroup.PRIMARY: frozenset({
        ORIENTATION, X_RESOLUTION, Y_RESOLUTION, RESOLUTION_UNIT,
        YCBCR_POSITIONING, DATE_TIME, COPYRIGHT, ARTIST,
    }),
    TagGroup.EXIF: frozenset({
        EXIF_VERSION, DATE_TIME_ORIGINAL, DATE_TIME_DIGITIZED,
        OFFSET_TIME, OFFSET_TIME_ORIGINAL, OFFSET_TIME_DIGITIZED,
        EXPOSURE_TIME, F_NUMBER, ISO_SPEED_RATINGS, FOCAL_LENGTH, FLASH,
        WHITE_BALANCE, METERING_MODE, COLOR_SPACE,
        PIXEL_X_DIMENSION, PIXEL_Y_DIMENSION,
    }),
}

# Kept through invalid-value filtering in the full tier; losing these
# visibly breaks display.
PRESERVE_CRITICAL: Dict[TagGroup, FrozenSet[int]] = {
    TagGroup.PRIMARY: frozenset({
        ORIENTATION, X_RESOLUTION, Y_RESOLUTION, RESOLUTION_UNIT,
        YCBCR_POSITIONING,
    }),
    TagGroup.EXIF: frozenset({
        COLOR_SPACE, PIXEL_X_DIMENSION, PIXEL_Y_DIMENSION,
    }),
}

OFFSET_TIME_TAGS: Tuple[int, ...] = (
    OFFSET_TIME, OFFSET_TIME_ORIGINAL, OFFSET_TIME_DIGITIZED,
)

# Name -> id reference tables, as published by the browser tool
PRIVACY_TAGS: Dict[str, int] = {
    'Make': MAKE, 'Model': MODEL, 'Software': SOFTWARE,
    'HostComputer': HOST_COMPUTER,
    'MakerNote': MAKER_NOTE, 'UserComment': USER_COMMENT,
    'ImageUniqueID': IMAGE_UNIQUE_ID, 'CameraOwnerName': CAMERA_OWNER_NAME,
    'BodySerialNumber': BODY_SERIAL_NUMBER,
    'LensSerialNumber': LENS_SERIAL_NUMBER,
    'LensMake': LENS_MAKE, 'LensModel': LENS_MODEL,
    'XPAuthor': XP_AUTHOR, 'XPComment': XP_COMMENT,
}

USEFUL_TAGS: Dict[str, int] = {
    'Orientation': ORIENTATION, 'XResolution': X_RESOLUTION,
    'YResolution': Y_RESOLUTION, 'ResolutionUnit': RESOLUTION_UNIT,
    'ExifVersion': EXIF_VERSION, 'DateTimeOriginal': DATE_TIME_ORIGINAL,
    'DateTimeDigitized': DATE_TIME_DIGITIZED,
    'OffsetTimeOriginal': OFFSET_TIME_ORIGINAL,
    'OffsetTimeDigitized': OFFSET_TIME_DIGITIZED,
    'ExposureTime': EXPOSURE_TIME, 'FNumber': F_NUMBER,
    'ISOSpeedRatings': ISO_SPEED_RATINGS, 'FocalLength': FOCAL_LENGTH,
    'Flash': FLASH, 'WhiteBalance': WHITE_BALANCE,
    'MeteringMode': METERING_MODE, 'ExifImageWidth': PIXEL_X_DIMENSION,
    'ExifImageHeight': PIXEL_Y_DIMENSION, 'ColorSpace': COLOR_SPACE,
}


def classify(group: TagGroup, tag_id: int) -> TagPolicy:
    """Return the redaction policy for a tag. Total over all ids."""
    if group is TagGroup.GPS:
        return TagPolicy.REMOVE
    if tag_id in REMOVE_TAGS.get(group, ()):
        return TagPolicy.REMOVE
    if tag_id in PRESERVE_TAGS.get(group, ()):
        return TagPolicy.PRESERVE
    return TagPolicy.PASSTHROUGH


def tag_name(group: TagGroup, tag_id: int) -> str:
    """Semantic name of a tag, or ``Tag_0xNNNN`` when unknown."""
    names = _GROUP_NAMES.get(group, {})
    return names.get(tag_id, f'Tag_0x{tag_id:04X}')


def qualified_name(group: TagGroup, tag_id: int) -> str:
    """Group-qualified name, e.g. ``Primary.Make``."""
    return f'{group.label}.{tag_name(group, tag_id)}'
