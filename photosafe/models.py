"""Data models for photosafe redaction, scan and batch results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class PipelineState(Enum):
    """States a single file moves through in the redaction pipeline."""
    RECEIVED = 'received'
    FORMAT_DETECTED = 'format_detected'
    JPEG_PATH = 'jpeg_path'
    HEIC_PATH = 'heic_path'
    PASSTHROUGH_PATH = 'passthrough_path'
    ENCODED = 'encoded'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class ImageInput:
    """An image to redact: raw bytes plus declared name and MIME type.

    The name and type are used for format sniffing only.
    """
    data: bytes
    filename: str = 'image.jpg'
    mime_type: str = ''

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class RedactionReport:
    """Human-readable record of what a redaction changed. Observability only."""
    removed_fields: List[str] = field(default_factory=list)
    added_fields: List[str] = field(default_factory=list)
    converted_from: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    def removed(self, description: str):
        self.removed_fields.append(description)

    def added(self, description: str):
        self.added_fields.append(description)

    def note(self, description: str):
        self.notes.append(description)

    def is_empty(self) -> bool:
        return not (self.removed_fields or self.added_fields or self.converted_from)


@dataclass
class CleanupResult:
    """Result of redacting a single image.

    On failure ``data`` is the original input, untouched, and is safe to use.
    """
    success: bool
    data: bytes
    filename: str
    mime_type: str
    original_size: int
    cleaned_size: int = 0
    report: RedactionReport = field(default_factory=RedactionReport)
    tier: Optional[str] = None  # fallback tier that produced ``data``
    state: PipelineState = PipelineState.DONE
    format: str = 'unknown'  # "jpeg" | "heic" | "unsupported"
    note: Optional[str] = None
    error: Optional[str] = None
    redaction_time_ms: float = 0.0
    source_path: Optional[Path] = None
    output_path: Optional[Path] = None

    @property
    def removed_fields(self) -> List[str]:
        return self.report.removed_fields

    @property
    def added_fields(self) -> List[str]:
        return self.report.added_fields

    @property
    def converted_from(self) -> Optional[str]:
        return self.report.converted_from


@dataclass
class BatchCleanupResult:
    """Aggregate of a sequential batch run, in input order."""
    results: List[CleanupResult] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    total_original_size: int = 0
    total_cleaned_size: int = 0
    total_time_seconds: float = 0.0

    @property
    def total_files(self) -> int:
        return len(self.results)


@dataclass
class PrivacyFinding:
    """A single privacy-bearing tag found in an image."""
    group: str
    tag_id: Optional[int]
    tag_name: str
    value_preview: str
    source: str  # "exif_tag" | "gps_block" | "thumbnail"

    def mask_preview(self) -> str:
        """Return a masked version of the value for safe logging."""
        val = self.value_preview
        if len(val) <= 4:
            return "*" * len(val)
        return val[:2] + "*" * (len(val) - 4) + val[-2:]


@dataclass
class ScanResult:
    """Result of scanning a single image for privacy-bearing metadata."""
    filename: str
    format: str  # "jpeg" | "heic" | "unsupported"
    findings: List[PrivacyFinding] = field(default_factory=list)
    is_clean: bool = True
    has_exif: bool = False
    scan_time_ms: float = 0.0
    file_size: int = 0
    error: Optional[str] = None
