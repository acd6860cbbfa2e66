"""Error taxonomy for the redaction pipeline.

Recoverable errors are caught at tier or stage boundaries and turned into
a fallback attempt or a passthrough result; only exhaustion of every
fallback tier surfaces as a per-file failure.
"""

from typing import List, Tuple


class PhotoSafeError(Exception):
    """Base class for all photosafe errors."""


class DecodeError(PhotoSafeError):
    """No usable tag directory in the input. Treated as nothing to redact."""


class EncodeError(PhotoSafeError):
    """The codec rejected a candidate document. Recoverable per tier."""


class StripError(PhotoSafeError):
    """Removing the metadata block from the container failed."""


class PixelDecodeError(PhotoSafeError):
    """HEIC/HEIF transcode failed. Terminal for that file."""


class UnsupportedFormatError(PhotoSafeError):
    """Input format is outside the redaction scope. Signals passthrough."""


class FallbackExhaustedError(StripError):
    """Every fallback tier failed, including the bare strip.

    ``attempts`` holds (tier name, error message) pairs in the order tried.
    """

    def __init__(self, attempts: List[Tuple[str, str]]):
        self.attempts = list(attempts)
        detail = '; '.join(f'{name}: {msg}' for name, msg in self.attempts)
        super().__init__(f'All metadata encoding tiers failed ({detail})')
