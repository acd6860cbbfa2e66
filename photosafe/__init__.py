"""PhotoSafe -- privacy redaction of photo metadata (JPEG EXIF, HEIC/HEIF)."""

__version__ = "1.0.0"

from photosafe.models import (
    BatchCleanupResult,
    CleanupResult,
    ImageInput,
    PipelineState,
    PrivacyFinding,
    RedactionReport,
    ScanResult,
)
from photosafe.options import RedactionOptions
from photosafe.formats import is_heic_format, is_jpeg_format, is_supported_format
from photosafe.tags import PRIVACY_TAGS, USEFUL_TAGS
from photosafe.pipeline import RedactionPipeline, clean_batch, clean_bytes, clean_image
from photosafe.cleaner import clean_file, clean_files
from photosafe.scanner import scan_bytes, scan_file
from photosafe.verify import verify_bytes, verify_file, verify_batch
from photosafe.report import generate_certificate, generate_pdf_certificate

__all__ = [
    "__version__",
    "ImageInput",
    "CleanupResult",
    "BatchCleanupResult",
    "RedactionReport",
    "PipelineState",
    "PrivacyFinding",
    "ScanResult",
    "RedactionOptions",
    "RedactionPipeline",
    "PRIVACY_TAGS",
    "USEFUL_TAGS",
    "is_jpeg_format",
    "is_heic_format",
    "is_supported_format",
    "clean_image",
    "clean_bytes",
    "clean_batch",
    "clean_file",
    "clean_files",
    "scan_bytes",
    "scan_file",
    "verify_bytes",
    "verify_file",
    "verify_batch",
    "generate_certificate",
    "generate_pdf_certificate",
]
