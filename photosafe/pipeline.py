"""Redaction pipeline -- format detection, redaction, fallback encoding, batch.

Per file:

    Received -> FormatDetected -> {JpegPath | HeicPath | PassthroughPath}
             -> Encoded -> Done

Any unrecoverable error ends in Failed, with the original bytes returned
untouched. Nothing raised while processing one file escapes ``clean``.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from photosafe.codec import PiexifCodec, default_pixel_codec
from photosafe.codec.base import BinaryCodec, PixelCodec
from photosafe.errors import (
    DecodeError, FallbackExhaustedError, PixelDecodeError, UnsupportedFormatError,
)
from photosafe.fallback import (
    DEFAULT_TIERS, TIER_BARE_STRIP, TIER_FULL, TIER_SAFE_REBUILD,
    FallbackContext, SerializationFallbackChain, Tier,
)
from photosafe.formats import (
    FORMAT_HEIC, FORMAT_JPEG, FORMAT_UNSUPPORTED, converted_filename,
    detect_format,
)
from photosafe.models import (
    BatchCleanupResult, CleanupResult, ImageInput, PipelineState,
    RedactionReport,
)
from photosafe.options import RedactionOptions
from photosafe.redact import build_heic_document, capture_orientation, redact_document

logger = logging.getLogger(__name__)

NOTE_UNSUPPORTED = 'unsupported format, skipped'
NOTE_NO_EXIF = 'no EXIF data, returned original'

_PATH_STATES = {
    FORMAT_JPEG: PipelineState.JPEG_PATH,
    FORMAT_HEIC: PipelineState.HEIC_PATH,
    FORMAT_UNSUPPORTED: PipelineState.PASSTHROUGH_PATH,
}

ProgressCallback = Callable[[int, int, ImageInput], None]
ResultCallback = Callable[[int, int, ImageInput, CleanupResult], None]


def _enter(state: PipelineState, item: ImageInput):
    logger.debug('%s -> %s', item.filename, state.value)


def _elapsed_ms(t0: float) -> float:
    return (time.monotonic() - t0) * 1000


class RedactionPipeline:
    """Redacts privacy metadata from one image at a time.

    Codecs are resolved once here and shared by every call; each call works
    on its own decoded document.

    Args:
        codec: EXIF codec. Defaults to PiexifCodec.
        pixel_codec: HEIC pixel decoder. Defaults to pillow-heif when it is
            installed; without one, HEIC inputs fail with the original bytes.
        options: Default options for calls that do not pass their own.
        tiers: Fallback tiers, richest first.
        clock: Returns the current time; used for the HEIC conversion date.
    """

    def __init__(
        self,
        codec: Optional[BinaryCodec] = None,
        pixel_codec: Optional[PixelCodec] = None,
        options: Optional[RedactionOptions] = None,
        tiers: Sequence[Tier] = DEFAULT_TIERS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.codec = codec if codec is not None else PiexifCodec()
        self.pixel_codec = pixel_codec if pixel_codec is not None else default_pixel_codec()
        self.options = options or RedactionOptions.default()
        self.chain = SerializationFallbackChain(self.codec, tiers)
        self._clock = clock

    # -- single file -----------------------------------------------------------

    def clean(self, item: ImageInput,
              options: Optional[RedactionOptions] = None) -> CleanupResult:
        """Redact one image. Never raises for per-file problems."""
        options = options or self.options
        t0 = time.monotonic()
        _enter(PipelineState.RECEIVED, item)

        fmt = detect_format(item.data, item.filename, item.mime_type)
        _enter(PipelineState.FORMAT_DETECTED, item)
        _enter(_PATH_STATES[fmt], item)

        try:
            if fmt == FORMAT_HEIC:
                result = self._clean_heic(item, options)
            elif fmt == FORMAT_JPEG:
                result = self._clean_jpeg(item, options)
            else:
                raise UnsupportedFormatError(
                    f'{item.filename}: {item.mime_type or "unknown type"} is not redacted')
        except UnsupportedFormatError as e:
            logger.debug('%s', e)
            result = self._passthrough(item, fmt, NOTE_UNSUPPORTED)
        except Exception as e:
            logger.exception('Redaction failed for %s', item.filename)
            result = self._failure(item, fmt, str(e))

        _enter(result.state, item)
        result.redaction_time_ms = _elapsed_ms(t0)
        return result

    def clean_bytes(self, data: bytes, filename: str = 'image.jpg',
                    mime_type: str = 'image/jpeg',
                    options: Optional[RedactionOptions] = None) -> CleanupResult:
        """Redact raw image bytes; name and type default to a JPEG."""
        return self.clean(ImageInput(data, filename, mime_type or 'image/jpeg'), options)

    def _clean_jpeg(self, item: ImageInput, options: RedactionOptions) -> CleanupResult:
        try:
            document = self.codec.decode(item.data)
        except DecodeError as e:
            logger.debug('%s: %s', item.filename, e)
            return self._passthrough(item, FORMAT_JPEG, NOTE_NO_EXIF)

        orientation = capture_orientation(document)
        logger.debug('%s: cached orientation %s', item.filename,
                     orientation.value if orientation else None)
        redacted, report = redact_document(document, options)

        ctx = FallbackContext(container=item.data, redacted=redacted,
                              orientation=orientation, options=options)
        try:
            outcome = self.chain.run(ctx)
        except FallbackExhaustedError as e:
            return self._failure(item, FORMAT_JPEG, str(e))
        _enter(PipelineState.ENCODED, item)

        _record_tier(report, outcome.tier)
        return CleanupResult(
            success=True, data=outcome.data,
            filename=item.filename, mime_type=item.mime_type or 'image/jpeg',
            original_size=item.size, cleaned_size=len(outcome.data),
            report=report, tier=outcome.tier, state=PipelineState.DONE,
            format=FORMAT_JPEG,
        )

    def _clean_heic(self, item: ImageInput, options: RedactionOptions) -> CleanupResult:
        if self.pixel_codec is None:
            return self._failure(
                item, FORMAT_HEIC,
                'HEIC/HEIF support requires pillow-heif (pip install pillow-heif)')
        try:
            pixels = self.pixel_codec.decode_to_rgb(item.data)
            jpeg = self.pixel_codec.encode_jpeg(pixels, options.jpeg_quality)
        except PixelDecodeError as e:
            return self._failure(item, FORMAT_HEIC, str(e))

        document, report = build_heic_document(options, self._clock().date())
        ctx = FallbackContext(container=jpeg, redacted=document,
                              orientation=None, options=options)
        tiers = [t for t in self.chain.tiers if t.name != TIER_FULL]
        try:
            outcome = self.chain.run(ctx, tiers)
        except FallbackExhaustedError as e:
            return self._failure(item, FORMAT_HEIC, str(e))
        _enter(PipelineState.ENCODED, item)

        _record_tier(report, outcome.tier)
        return CleanupResult(
            success=True, data=outcome.data,
            filename=converted_filename(item.filename), mime_type='image/jpeg',
            original_size=item.size, cleaned_size=len(outcome.data),
            report=report, tier=outcome.tier, state=PipelineState.DONE,
            format=FORMAT_HEIC,
        )

    def _passthrough(self, item: ImageInput, fmt: str, note: str) -> CleanupResult:
        return CleanupResult(
            success=True, data=item.data,
            filename=item.filename, mime_type=item.mime_type,
            original_size=item.size, cleaned_size=item.size,
            state=PipelineState.DONE, format=fmt, note=note,
        )

    def _failure(self, item: ImageInput, fmt: str, error: str) -> CleanupResult:
        return CleanupResult(
            success=False, data=item.data,
            filename=item.filename, mime_type=item.mime_type,
            original_size=item.size, cleaned_size=item.size,
            state=PipelineState.FAILED, format=fmt, error=error,
        )

    # -- batch -----------------------------------------------------------------

    def clean_batch(
        self,
        items: Iterable[ImageInput],
        options: Optional[RedactionOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
        result_callback: Optional[ResultCallback] = None,
    ) -> BatchCleanupResult:
        """Redact images strictly one at a time, in input order.

        Args:
            items: Images to process.
            options: Options for every item; defaults to the pipeline's.
            progress_callback: Called with (index, total, item) before each
                file, index 1-based.
            result_callback: Called with (index, total, item, result) after
                each file.

        Returns:
            BatchCleanupResult with per-file results and running totals.
        """
        items = list(items)
        total = len(items)
        batch = BatchCleanupResult()
        t0 = time.monotonic()

        for i, item in enumerate(items, 1):
            if progress_callback:
                progress_callback(i, total, item)
            try:
                result = self.clean(item, options)
            except Exception as e:
                logger.exception('Unexpected error processing %s', item.filename)
                result = self._failure(item, 'unknown', str(e))

            batch.results.append(result)
            update_batch_stats(batch, result)

            if result_callback:
                result_callback(i, total, item, result)

        batch.total_time_seconds = time.monotonic() - t0
        return batch


def _record_tier(report: RedactionReport, tier: str):
    """Note on the report when a lossy fallback tier produced the output."""
    if tier == TIER_SAFE_REBUILD:
        report.removed('All original EXIF (safe rebuild fallback)')
        report.added_fields[:] = [f for f in report.added_fields
                                  if f.startswith(('Copyright:', 'Artist:'))]
    elif tier == TIER_BARE_STRIP:
        report.removed('All EXIF (bare strip fallback)')
        report.added_fields[:] = []
    if tier != TIER_FULL:
        report.note(f'metadata written by {tier} fallback tier')


def update_batch_stats(batch: BatchCleanupResult, result: CleanupResult):
    """Update batch totals from a single result."""
    batch.total_original_size += result.original_size
    batch.total_cleaned_size += result.cleaned_size
    if result.success:
        batch.succeeded += 1
    else:
        batch.failed += 1


def clean_image(item: ImageInput,
                options: Optional[RedactionOptions] = None) -> CleanupResult:
    """Redact one image with a freshly constructed default pipeline."""
    return RedactionPipeline(options=options).clean(item)


def clean_bytes(data: bytes, filename: str = 'image.jpg',
                mime_type: str = 'image/jpeg',
                options: Optional[RedactionOptions] = None) -> CleanupResult:
    """Redact raw bytes with a freshly constructed default pipeline."""
    return RedactionPipeline(options=options).clean_bytes(data, filename, mime_type)


def clean_batch(items: Iterable[ImageInput],
                options: Optional[RedactionOptions] = None,
                progress_callback: Optional[ProgressCallback] = None,
                ) -> BatchCleanupResult:
    """Redact a sequence of images with a default pipeline."""
    return RedactionPipeline(options=options).clean_batch(
        items, progress_callback=progress_callback)
