"""Serialization fallback chain -- four tiers of decreasing metadata richness.

Tiers are tried strictly in order and the first successful encode wins:

    full          redacted document minus individually invalid values
    minimal       hand-built document of display and attribution tags
    safe_rebuild  strip all EXIF, insert copyright/artist/orientation only
    bare_strip    strip all EXIF, insert nothing

An EncodeError or StripError moves on to the next tier; no tier is retried.
If the bare strip fails too, FallbackExhaustedError is raised and the
caller must hand back the original bytes.

Orientation is captured once from the decoded original and re-injected
into every tier that builds a document from scratch.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from photosafe import tags
from photosafe.codec.base import BinaryCodec
from photosafe.document import Ascii, ExifDocument, Short
from photosafe.errors import EncodeError, FallbackExhaustedError, StripError
from photosafe.options import RedactionOptions
from photosafe.tags import TagGroup

logger = logging.getLogger(__name__)

TIER_FULL = 'full'
TIER_MINIMAL = 'minimal'
TIER_SAFE_REBUILD = 'safe_rebuild'
TIER_BARE_STRIP = 'bare_strip'

# Tags copied into the minimal tier when present and valid
_MINIMAL_PRIMARY = (
    tags.X_RESOLUTION, tags.Y_RESOLUTION, tags.RESOLUTION_UNIT,
    tags.YCBCR_POSITIONING, tags.DATE_TIME,
)
_MINIMAL_EXIF = (
    tags.COLOR_SPACE, tags.PIXEL_X_DIMENSION, tags.PIXEL_Y_DIMENSION,
    tags.DATE_TIME_ORIGINAL,
)


@dataclass(frozen=True)
class FallbackContext:
    """Inputs shared by every tier of one fallback run."""
    container: bytes
    redacted: ExifDocument
    orientation: Optional[Short]
    options: RedactionOptions


class Tier(NamedTuple):
    name: str
    run: Callable[[BinaryCodec, FallbackContext], bytes]


@dataclass
class FallbackResult:
    """Bytes produced by the first successful tier, plus the failures before it."""
    data: bytes
    tier: str
    attempts: List[Tuple[str, str]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Candidate documents
# ---------------------------------------------------------------------------

def sanitize_document(document: ExifDocument,
                      orientation: Optional[Short] = None,
                      ) -> Tuple[ExifDocument, List[str]]:
    """Drop every invalid value except the preserve-critical ones.

    Returns the filtered document and the qualified names of dropped tags.
    """
    dropped = []
    result = document
    for group, tag_id, value in document.entries():
        if value.is_valid():
            continue
        if tag_id in tags.PRESERVE_CRITICAL.get(group, ()):
            continue
        result = result.remove(group, tag_id)
        dropped.append(tags.qualified_name(group, tag_id))
    if orientation is not None and not result.has(TagGroup.PRIMARY, tags.ORIENTATION):
        result = result.set(TagGroup.PRIMARY, tags.ORIENTATION, orientation)
    return result, dropped


def build_minimal_document(redacted: ExifDocument, orientation: Optional[Short],
                           options: RedactionOptions) -> ExifDocument:
    """Display, attribution and date tags only, rebuilt from scratch."""
    primary = {}
    exif = {}
    if orientation is not None:
        primary[tags.ORIENTATION] = orientation
    for tag_id in _MINIMAL_PRIMARY:
        value = redacted.get(TagGroup.PRIMARY, tag_id)
        if value is not None and value.is_valid():
            primary[tag_id] = value
    primary[tags.COPYRIGHT] = Ascii(options.copyright)
    primary[tags.ARTIST] = Ascii(options.artist)

    for tag_id in _MINIMAL_EXIF:
        value = redacted.get(TagGroup.EXIF, tag_id)
        if value is not None and value.is_valid():
            exif[tag_id] = value
    for tag_id in tags.OFFSET_TIME_TAGS:
        exif[tag_id] = Ascii(options.offset_time)

    return ExifDocument({TagGroup.PRIMARY: primary, TagGroup.EXIF: exif})


def build_safe_document(orientation: Optional[Short],
                        options: RedactionOptions) -> ExifDocument:
    """Copyright, artist and (if known) orientation. Nothing else."""
    primary = {
        tags.COPYRIGHT: Ascii(options.copyright),
        tags.ARTIST: Ascii(options.artist),
    }
    if orientation is not None:
        primary[tags.ORIENTATION] = orientation
    return ExifDocument({TagGroup.PRIMARY: primary})


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------

def _run_full(codec: BinaryCodec, ctx: FallbackContext) -> bytes:
    document, dropped = sanitize_document(ctx.redacted, ctx.orientation)
    if dropped:
        logger.debug('Dropped invalid values: %s', ', '.join(dropped))
    return codec.encode(document, ctx.container)


def _run_minimal(codec: BinaryCodec, ctx: FallbackContext) -> bytes:
    document = build_minimal_document(ctx.redacted, ctx.orientation, ctx.options)
    return codec.encode(document, ctx.container)


def _run_safe_rebuild(codec: BinaryCodec, ctx: FallbackContext) -> bytes:
    stripped = codec.strip(ctx.container)
    return codec.encode(build_safe_document(ctx.orientation, ctx.options), stripped)


def _run_bare_strip(codec: BinaryCodec, ctx: FallbackContext) -> bytes:
    return codec.strip(ctx.container)


FULL = Tier(TIER_FULL, _run_full)
MINIMAL = Tier(TIER_MINIMAL, _run_minimal)
SAFE_REBUILD = Tier(TIER_SAFE_REBUILD, _run_safe_rebuild)
BARE_STRIP = Tier(TIER_BARE_STRIP, _run_bare_strip)

DEFAULT_TIERS: Tuple[Tier, ...] = (FULL, MINIMAL, SAFE_REBUILD, BARE_STRIP)


class SerializationFallbackChain:
    """Drives a BinaryCodec through an ordered list of tiers."""

    def __init__(self, codec: BinaryCodec, tiers: Sequence[Tier] = DEFAULT_TIERS):
        if not tiers:
            raise ValueError('At least one tier is required')
        self.codec = codec
        self.tiers = tuple(tiers)

    @property
    def tier_names(self) -> List[str]:
        return [t.name for t in self.tiers]

    def run(self, ctx: FallbackContext,
            tiers: Optional[Sequence[Tier]] = None) -> FallbackResult:
        """Encode ``ctx`` with the first tier that succeeds.

        Raises FallbackExhaustedError when every tier fails.
        """
        attempts: List[Tuple[str, str]] = []
        for tier in (self.tiers if tiers is None else tiers):
            try:
                data = tier.run(self.codec, ctx)
            except (EncodeError, StripError) as e:
                logger.debug('Tier %s failed: %s', tier.name, e)
                attempts.append((tier.name, str(e)))
                continue
            logger.debug('Tier %s succeeded (%d bytes)', tier.name, len(data))
            return FallbackResult(data=data, tier=tier.name, attempts=attempts)
        raise FallbackExhaustedError(attempts)
