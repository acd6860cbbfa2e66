"""Verification -- re-scan cleaned images to confirm no privacy metadata remains."""

import os
from pathlib import Path
from typing import Callable, List, Optional

from photosafe.cleaner import collect_image_files
from photosafe.models import ScanResult
from photosafe.scanner import scan_bytes, scan_file


def verify_bytes(data: bytes, filename: str = 'image.jpg',
                 mime_type: str = 'image/jpeg') -> ScanResult:
    """Re-scan cleaned bytes. ``is_clean=True`` means nothing was found."""
    return scan_bytes(data, filename, mime_type)


def verify_file(filepath: Path) -> ScanResult:
    """Verify that a file has been fully redacted."""
    return scan_file(Path(filepath))


def verify_batch(
    path: Path,
    progress_callback: Optional[Callable] = None,
) -> List[ScanResult]:
    """Verify every image under a path.

    Args:
        path: File or directory to verify.
        progress_callback: Called with (index, total, filepath, result) after each file.

    Returns:
        List of ScanResult objects.
    """
    files = collect_image_files(Path(path))
    total = len(files)
    results = []

    for i, filepath in enumerate(files):
        try:
            result = verify_file(filepath)
        except Exception as e:
            result = ScanResult(
                filename=filepath.name, format='unknown',
                is_clean=False, file_size=os.path.getsize(filepath),
                error=str(e),
            )
        results.append(result)

        if progress_callback:
            progress_callback(i + 1, total, filepath, result)

    return results
