"""CLI interface for PhotoSafe -- scan, clean, verify, info subcommands."""

import json
import logging
import sys
import time
from pathlib import Path

import click

import photosafe
from photosafe import tags
from photosafe.cleaner import clean_files, collect_image_files
from photosafe.codec import PiexifCodec
from photosafe.errors import DecodeError
from photosafe.fallback import TIER_FULL
from photosafe.formats import FORMAT_JPEG, detect_format, guess_mime_type
from photosafe.log import (
    cli_bold, cli_dim, cli_error, cli_finding, cli_header, cli_info,
    cli_separator, cli_success, cli_warning, format_file_size,
    log_error, log_info, log_warn,
)
from photosafe.options import RedactionOptions
from photosafe.report import generate_certificate
from photosafe.scanner import scan_file
from photosafe.verify import verify_batch


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )


def _load_options(config, copyright, artist, offset_time, heic_quality) -> RedactionOptions:
    try:
        base = RedactionOptions.from_json(config) if config else RedactionOptions.default()
        return base.merged(copyright=copyright, artist=artist,
                           offset_time=offset_time, heic_quality=heic_quality)
    except (ValueError, OSError) as e:
        raise click.UsageError(str(e))


@click.group()
@click.version_option(version=photosafe.__version__, prog_name='photosafe')
def main():
    """PhotoSafe -- strip location and device identity from photos.

    Removes GPS, camera serials, maker notes and thumbnails from JPEG
    EXIF, reduces capture times to the day, and converts HEIC/HEIF to
    metadata-clean JPEG.
    """
    pass


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='Show detailed findings.')
@click.option('--json-out', type=click.Path(), help='Write results as JSON to file.')
def scan(path, verbose, json_out):
    """Scan images for privacy metadata (read-only).

    PATH can be a single file or a directory to scan recursively.
    """
    input_path = Path(path)
    files = collect_image_files(input_path)

    if not files:
        click.echo(f'No image files found in {input_path}')
        return

    click.echo(cli_header(f'Scanning {len(files)} file(s)...'))

    total_findings = 0
    clean_count = 0
    results_json = []

    for i, filepath in enumerate(files, 1):
        result = scan_file(filepath)

        if result.error:
            click.echo(cli_error(f'  [{i}/{len(files)}] {filepath.name} -- ERROR: {result.error}'))
        elif result.is_clean:
            clean_count += 1
            if verbose:
                click.echo(cli_success(f'  [{i}/{len(files)}] {filepath.name} -- CLEAN'))
        else:
            total_findings += len(result.findings)
            click.echo(cli_warning(f'  [{i}/{len(files)}] {filepath.name} -- '
                                   f'{len(result.findings)} finding(s)'))
            if verbose:
                for f in result.findings:
                    click.echo(cli_finding(f'    {f.group}.{f.tag_name}: {f.mask_preview()}'))

        if json_out:
            results_json.append({
                'file': str(filepath),
                'format': result.format,
                'is_clean': result.is_clean,
                'findings': [
                    {'group': f.group, 'tag_name': f.tag_name, 'source': f.source}
                    for f in result.findings
                ],
                'scan_time_ms': round(result.scan_time_ms, 1),
                'error': result.error,
            })

    click.echo(f'\nSummary: {len(files)} files scanned, '
               f'{clean_count} clean, '
               f'{len(files) - clean_count} with privacy metadata '
               f'({total_findings} total findings)')

    if json_out:
        with open(json_out, 'w') as f:
            json.dump(results_json, f, indent=2)
        click.echo(f'Results written to {json_out}')


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--output', '-o', type=click.Path(),
              help='Output directory (copy mode).')
@click.option('--in-place', is_flag=True,
              help='Overwrite the original files (required if no --output).')
@click.option('--config', type=click.Path(exists=True),
              help='JSON file with redaction options.')
@click.option('--copyright', help='Copyright string written to every image.')
@click.option('--artist', help='Artist string written to every image.')
@click.option('--offset-time', help='Timezone offset written to every image, e.g. +09:00.')
@click.option('--heic-quality', type=float, help='JPEG quality for HEIC conversion (0-1).')
@click.option('--certificate', '-c', type=click.Path(),
              help='Write a redaction certificate JSON (and PDF) to this path.')
@click.option('--verbose', '-v', is_flag=True, help='Show removed fields and debug tracing.')
@click.option('--log', type=click.Path(), help='Write log to file.')
def clean(path, output, in_place, config, copyright, artist, offset_time,
          heic_quality, certificate, verbose, log):
    """Remove privacy metadata from images.

    PATH can be a single file or a directory to process recursively.
    Either --output (copy mode) or --in-place is required.
    """
    input_path = Path(path)
    output_dir = Path(output) if output else None

    if output_dir is None and not in_place:
        click.echo(cli_error('Error: Must specify --output for copy mode, or --in-place '
                             'to modify originals directly.'), err=True)
        sys.exit(1)

    options = _load_options(config, copyright, artist, offset_time, heic_quality)
    _configure_logging(verbose)

    log_file = open(log, 'w') if log else None
    try:
        def log_msg(msg, styled=None, level=log_info):
            click.echo(styled if styled is not None else msg)
            if log_file:
                log_file.write(level(msg) + '\n')
                log_file.flush()

        files = collect_image_files(input_path)
        if not files:
            log_msg(f'No image files found in {input_path}')
            return

        mode_str = 'copy' if output_dir else 'in-place'
        log_msg(f'PhotoSafe v{photosafe.__version__} -- {mode_str} redaction',
                cli_header(f'PhotoSafe v{photosafe.__version__} -- {mode_str} redaction'))
        log_msg(f'Processing {len(files)} file(s)...\n')

        t0 = time.time()

        def progress(i, total, filepath, result):
            elapsed = time.time() - t0
            rate = i / elapsed if elapsed > 0 else 0
            prefix = f'  [{i}/{total}] {rate:.1f}/s | {filepath.name} | '

            if not result.success:
                msg = prefix + f'ERROR: {result.error}'
                log_msg(msg, cli_error(msg), log_error)
                return
            if result.tier is None:
                msg = prefix + (result.note or 'unchanged')
                log_msg(msg, cli_dim(msg))
                return

            status = f'{len(result.removed_fields)} removed'
            if result.converted_from:
                status += f', converted to {result.filename}'
            size = (f' ({format_file_size(result.original_size)} -> '
                    f'{format_file_size(result.cleaned_size)})')
            if result.tier != TIER_FULL:
                msg = prefix + status + f' [{result.tier} fallback]' + size
                log_msg(msg, cli_warning(msg), log_warn)
            else:
                msg = prefix + status + size
                log_msg(msg, cli_success(msg))

            if verbose:
                for field_desc in result.removed_fields:
                    log_msg(f'      - {field_desc}', cli_dim(f'      - {field_desc}'))
                for field_desc in result.added_fields:
                    log_msg(f'      + {field_desc}', cli_dim(f'      + {field_desc}'))

        batch = clean_files(input_path, output_dir=output_dir, options=options,
                            result_callback=progress)

        log_msg('-' * 60, cli_separator())
        log_msg(f'Done in {batch.total_time_seconds:.1f}s')
        log_msg(f'  Total:     {batch.total_files}')
        log_msg(f'  Cleaned:   {batch.succeeded}')
        log_msg(f'  Failed:    {batch.failed}')
        log_msg(f'  Size:      {format_file_size(batch.total_original_size)} -> '
                f'{format_file_size(batch.total_cleaned_size)}')

        if certificate:
            generate_certificate(batch, output_path=Path(certificate))
            log_msg(f'\nRedaction certificate: {certificate}')
    finally:
        if log_file:
            log_file.close()

    if batch.failed > 0:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='Show detailed findings.')
def verify(path, verbose):
    """Verify that images carry no privacy metadata.

    Re-scans all files; exits 1 if any still have findings.
    """
    input_path = Path(path)
    files = collect_image_files(input_path)

    if not files:
        click.echo(f'No image files found in {input_path}')
        return

    click.echo(cli_header(f'Verifying {len(files)} file(s)...'))

    clean_count = 0
    dirty_count = 0

    def progress(i, total, filepath, result):
        nonlocal clean_count, dirty_count
        if result.is_clean:
            clean_count += 1
            if verbose:
                click.echo(cli_success(f'  [{i}/{total}] {filepath.name} -- CLEAN'))
        else:
            dirty_count += 1
            click.echo(cli_warning(f'  [{i}/{total}] {filepath.name} -- '
                                   f'FOUND ({len(result.findings)} finding(s))'))
            if verbose:
                for f in result.findings:
                    click.echo(cli_finding(f'    {f.group}.{f.tag_name}: {f.value_preview}'))

    verify_batch(input_path, progress_callback=progress)

    click.echo(f'\nVerification: {clean_count} clean, {dirty_count} with remaining metadata')
    if dirty_count > 0:
        click.echo(cli_error('WARNING: Some files still contain privacy metadata!'))
        sys.exit(1)
    else:
        click.echo(cli_success('All files verified clean.'))


@main.command()
@click.argument('path', type=click.Path(exists=True))
def info(path):
    """Show format and every EXIF tag of a single image."""
    filepath = Path(path)

    if filepath.is_dir():
        click.echo(cli_error('Error: info command requires a single file, not a directory.'),
                   err=True)
        sys.exit(1)

    data = filepath.read_bytes()
    fmt = detect_format(data, filepath.name, guess_mime_type(filepath.name))

    click.echo(f'{cli_bold("File:")} {filepath.name}')
    click.echo(f'{cli_bold("Format:")} {fmt}')
    click.echo(f'{cli_bold("Size:")} {format_file_size(len(data))}')

    if fmt == FORMAT_JPEG:
        try:
            document = PiexifCodec().decode(data)
        except DecodeError as e:
            click.echo(cli_dim(f'\n{e}'))
        else:
            click.echo(cli_info(f'\n{len(document)} tag(s):'))
            for group, tag_id, value in document.entries():
                policy = tags.classify(group, tag_id).value
                line = f'  {tags.qualified_name(group, tag_id):<36} {policy:<12} {value.preview()}'
                click.echo(cli_warning(line) if policy == 'remove' else line)
            if document.thumbnail:
                click.echo(cli_warning(f'  Thumbnail image: '
                                       f'{format_file_size(len(document.thumbnail))}'))

    result = scan_file(filepath)
    if result.is_clean:
        click.echo(cli_success('\nPrivacy status: CLEAN'))
    else:
        click.echo(cli_warning(f'\nPrivacy status: {len(result.findings)} finding(s)'))


if __name__ == '__main__':
    main()
