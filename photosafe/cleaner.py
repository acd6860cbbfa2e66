"""File-level redaction -- copy mode, in-place mode, and directory batches.

Copy mode writes the cleaned image under ``output_path`` and leaves the
source alone. In-place mode overwrites the source. A HEIC input becomes a
JPEG, so its output is written under the ``.jpg`` name; in place, the
original ``.heic`` is removed once the JPEG is on disk. A converted file
never takes the name of an existing file: ``IMG_1.heic`` next to an
unrelated ``IMG_1.jpg`` is written as ``IMG_1 (heic).jpg``.

A file that fails to redact is never written anywhere.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, List, Optional

from photosafe.formats import IMAGE_EXTENSIONS, guess_mime_type
from photosafe.models import BatchCleanupResult, CleanupResult, ImageInput, PipelineState
from photosafe.options import RedactionOptions
from photosafe.pipeline import RedactionPipeline, update_batch_stats

logger = logging.getLogger(__name__)


def _not_found(filepath: Path, output_path: Optional[Path]) -> CleanupResult:
    return CleanupResult(
        success=False, data=b'', filename=filepath.name,
        mime_type=guess_mime_type(filepath.name), original_size=0,
        state=PipelineState.FAILED, error=f'File not found: {filepath}',
        source_path=filepath, output_path=output_path,
    )


def _failed(filepath: Path, error: str, data: bytes = b'') -> CleanupResult:
    """Failure result for a file the pipeline never got to, or could not write."""
    try:
        size = filepath.stat().st_size
    except OSError:
        size = len(data)
    return CleanupResult(
        success=False, data=data, filename=filepath.name,
        mime_type=guess_mime_type(filepath.name),
        original_size=size, cleaned_size=size,
        state=PipelineState.FAILED, error=error, source_path=filepath,
    )


def _converted_target(filepath: Path, target: Path) -> Path:
    """Pick a name for a converted image that clobbers nothing.

    ``IMG_1.heic`` becomes ``IMG_1.jpg`` unless that name is taken in the
    output directory or by a sibling of the source, in which case it becomes
    ``IMG_1 (heic).jpg``, then ``IMG_1 (heic 2).jpg`` and so on.
    """
    def taken(candidate: Path) -> bool:
        return candidate.exists() or filepath.with_name(candidate.name).exists()

    if not taken(target):
        return target
    tag = filepath.suffix.lstrip('.').lower() or 'converted'
    n = 1
    while True:
        label = tag if n == 1 else f'{tag} {n}'
        candidate = target.with_name(f'{target.stem} ({label}){target.suffix}')
        if not taken(candidate):
            return candidate
        n += 1


def clean_file(
    filepath: Path,
    output_path: Optional[Path] = None,
    options: Optional[RedactionOptions] = None,
    pipeline: Optional[RedactionPipeline] = None,
) -> CleanupResult:
    """Redact a single image file.

    Args:
        filepath: Path to the source image.
        output_path: If provided, write the cleaned image here (copy mode).
                     If None, overwrite the source (in-place mode).
        options: Redaction options; defaults to the pipeline's.
        pipeline: Pipeline to reuse across calls.

    Returns:
        CleanupResult with ``source_path`` set, and ``output_path`` set to
        where the cleaned bytes were written (None when nothing was written).
        A converted HEIC never overwrites an existing file; see
        ``_converted_target``.
    """
    filepath = Path(filepath)
    if not filepath.is_file():
        return _not_found(filepath, output_path)

    pipeline = pipeline or RedactionPipeline()
    try:
        data = filepath.read_bytes()
    except OSError as e:
        return _failed(filepath, f'Cannot read {filepath}: {e}')

    item = ImageInput(data, filepath.name, guess_mime_type(filepath.name))
    result = pipeline.clean(item, options)
    result.source_path = filepath

    if not result.success:
        return result

    target = Path(output_path) if output_path is not None else filepath
    if result.filename != filepath.name:
        target = _converted_target(filepath, target.with_name(result.filename))
        result.filename = target.name

    if target == filepath and result.data == data:
        result.output_path = target
        return result

    # The target is replaced only once the new bytes are fully on disk
    partial = target.with_name(f'.{target.name}.partial')
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        partial.write_bytes(result.data)
        os.replace(partial, target)
    except OSError as e:
        logger.error('Cannot write %s: %s', target, e)
        if partial.exists():
            partial.unlink()
        return _failed(filepath, f'Cannot write {target}: {e}', data)
    result.output_path = target

    if output_path is None and target != filepath:
        filepath.unlink()
        logger.debug('Replaced %s with %s', filepath.name, target.name)

    return result


def collect_image_files(path: Path) -> List[Path]:
    """Collect image files from a path (file or directory), sorted."""
    path = Path(path)
    if path.is_file():
        return [path]

    files = []
    for root, _, filenames in os.walk(path):
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in IMAGE_EXTENSIONS:
                files.append(Path(root) / fname)
    files.sort()
    return files


def clean_files(
    input_path: Path,
    output_dir: Optional[Path] = None,
    options: Optional[RedactionOptions] = None,
    progress_callback: Optional[Callable] = None,
    result_callback: Optional[Callable] = None,
    pipeline: Optional[RedactionPipeline] = None,
) -> BatchCleanupResult:
    """Redact every image under ``input_path``, one file at a time.

    Args:
        input_path: File or directory of images.
        output_dir: If provided, mirror the input tree here (copy mode).
        options: Redaction options for every file.
        progress_callback: Called with (index, total, filepath) before each file.
        result_callback: Called with (index, total, filepath, result) after each file.
        pipeline: Pipeline to reuse; one default pipeline is built otherwise.

    Returns:
        BatchCleanupResult in input order.
    """
    input_path = Path(input_path)
    t0 = time.monotonic()
    pipeline = pipeline or RedactionPipeline()

    files = collect_image_files(input_path)
    total = len(files)
    batch = BatchCleanupResult()

    for i, filepath in enumerate(files, 1):
        if output_dir is not None:
            relative = filepath.relative_to(input_path) if input_path.is_dir() else filepath.name
            out = Path(output_dir) / relative
        else:
            out = None

        if progress_callback:
            progress_callback(i, total, filepath)
        try:
            result = clean_file(filepath, output_path=out, options=options,
                                pipeline=pipeline)
        except Exception as e:
            logger.exception('Unexpected error processing %s', filepath)
            result = _failed(filepath, str(e))

        batch.results.append(result)
        update_batch_stats(batch, result)

        if result_callback:
            result_callback(i, total, filepath, result)

    batch.total_time_seconds = time.monotonic() - t0
    return batch
