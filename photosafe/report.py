"""Redaction certificate generation (JSON + PDF)."""

import hashlib
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fpdf import FPDF

import photosafe
from photosafe.fallback import TIER_FULL
from photosafe.models import BatchCleanupResult, CleanupResult


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _file_record(result: CleanupResult) -> dict:
    record = {
        'filename': result.filename,
        'source_path': str(result.source_path) if result.source_path else None,
        'output_path': str(result.output_path) if result.output_path else None,
        'format': result.format,
        'success': result.success,
        'tier': result.tier,
        'original_size': result.original_size,
        'cleaned_size': result.cleaned_size,
        'removed_fields': list(result.removed_fields),
        'added_fields': list(result.added_fields),
        'redaction_time_ms': round(result.redaction_time_ms, 1),
    }
    if result.converted_from:
        record['converted_from'] = result.converted_from
    if result.note:
        record['note'] = result.note
    if result.error:
        record['error'] = result.error
    elif result.data:
        record['sha256_after'] = _sha256(result.data)
    return record


def _measures(batch: BatchCleanupResult) -> list:
    cleaned = [r for r in batch.results if r.success and r.tier]
    removed = [f for r in cleaned for f in r.removed_fields]

    def status(applied: bool) -> str:
        return 'applied' if applied else 'not_needed'

    measures = [
        {'measure': 'GPS location removed',
         'status': status(any(f.startswith('GPS') for f in removed))},
        {'measure': 'Device identifiers removed',
         'status': status(any(f.startswith(('Primary.', 'ExifSub.'))
                               and not f.endswith('(unparseable date)')
                               for f in removed))},
        {'measure': 'Embedded thumbnail removed',
         'status': status('Thumbnail' in removed)},
        {'measure': 'HEIC/HEIF converted to JPEG',
         'status': status(any(r.converted_from for r in cleaned))},
        {'measure': 'Copyright and artist attribution',
         'status': 'applied' if cleaned else 'skipped'},
    ]
    fallbacks = [r for r in cleaned if r.tier != TIER_FULL]
    if fallbacks:
        measures.append({'measure': f'Fallback tier used ({len(fallbacks)} file(s))',
                         'status': 'applied'})
    if batch.failed:
        measures.append({'measure': f'Files left unmodified ({batch.failed})',
                         'status': 'failed'})
    return measures


def generate_certificate(
    batch: BatchCleanupResult,
    output_path: Optional[Path] = None,
    pdf: bool = True,
) -> dict:
    """Generate a JSON certificate for a batch redaction run.

    Args:
        batch: The BatchCleanupResult from clean_files() or clean_batch().
        output_path: If provided, write the certificate JSON to this file.
        pdf: If True (default), also write a companion PDF next to the JSON.

    Returns:
        The certificate as a dict.
    """
    certificate = {
        'photosafe_version': photosafe.__version__,
        'certificate_id': str(uuid.uuid4()),
        'generated_at': datetime.now(timezone.utc).isoformat(),
        'summary': {
            'total_files': batch.total_files,
            'succeeded': batch.succeeded,
            'failed': batch.failed,
            'total_original_size': batch.total_original_size,
            'total_cleaned_size': batch.total_cleaned_size,
            'total_time_seconds': round(batch.total_time_seconds, 2),
        },
        'measures': _measures(batch),
        'files': [_file_record(r) for r in batch.results],
    }

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(certificate, f, indent=2)

        if pdf:
            generate_pdf_certificate(certificate, output_path.with_suffix('.pdf'))

    return certificate


# ---------------------------------------------------------------------------
# PDF rendering
# ---------------------------------------------------------------------------

_STATUS_COLORS = {
    'applied': (34, 139, 34),
    'not_needed': (128, 128, 128),
    'skipped': (200, 150, 0),
    'failed': (192, 48, 48),
}

_REQUIRED_CERT_KEYS = {'certificate_id', 'summary', 'files'}


def _trunc(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if it exceeds max_len."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + '...'


def _sanitize_for_pdf(text: str) -> str:
    """Replace characters the built-in Helvetica font cannot render.

    Attribution strings default to a non-ASCII copyright sign, so this runs
    on every user-supplied value.
    """
    return ''.join(c if 0x20 <= ord(c) <= 0x7E else '?' for c in text)


def _pdf_label_value(pdf: FPDF, label: str, value: str):
    pdf.set_font('Helvetica', 'B', 10)
    pdf.cell(45, 6, label, new_x='RIGHT', new_y='TOP')
    pdf.set_font('Helvetica', '', 10)
    pdf.cell(0, 6, _sanitize_for_pdf(value), new_x='LMARGIN', new_y='NEXT')


def _pdf_kv_table(pdf: FPDF, rows: list):
    """2-column key-value table with alternating row shading."""
    col_w = [65, 115]
    for i, (key, value) in enumerate(rows):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.set_font('Helvetica', 'B', 9)
        pdf.cell(col_w[0], 7, key, border=0, fill=fill, new_x='RIGHT', new_y='TOP')
        pdf.set_font('Helvetica', '', 9)
        pdf.cell(col_w[1], 7, str(value), border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def _pdf_header_row(pdf: FPDF, widths: list, headers: list, size: int = 9):
    pdf.set_font('Helvetica', 'B', size)
    pdf.set_fill_color(60, 60, 80)
    pdf.set_text_color(255, 255, 255)
    for j, hdr in enumerate(headers):
        last = j == len(headers) - 1
        pdf.cell(widths[j], 7 if size > 7 else 6, hdr, border=0, fill=True,
                 new_x='LMARGIN' if last else 'RIGHT',
                 new_y='NEXT' if last else 'TOP')
    pdf.set_text_color(0, 0, 0)


def _pdf_measures_table(pdf: FPDF, measures: list):
    col_w = [110, 70]
    _pdf_header_row(pdf, col_w, ['Measure', 'Status'])
    for i, m in enumerate(measures):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.set_font('Helvetica', '', 9)
        pdf.cell(col_w[0], 7, m['measure'], border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        status = m['status']
        pdf.set_text_color(*_STATUS_COLORS.get(status, (0, 0, 0)))
        pdf.set_font('Helvetica', 'B', 9)
        pdf.cell(col_w[1], 7, status.upper(), border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
    pdf.ln(3)


def _pdf_file_results_table(pdf: FPDF, files: list):
    col_w = [8, 46, 16, 22, 18, 80]  # total = 188
    _pdf_header_row(pdf, col_w,
                    ['#', 'Filename', 'Format', 'Tier', 'Removed', 'SHA-256'], size=7)

    for i, frec in enumerate(files):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(245, 245, 248)
        pdf.set_font('Helvetica', '', 7)
        sha = frec.get('sha256_after') or frec.get('error') or '-'
        row_vals = [
            str(i + 1),
            _trunc(_sanitize_for_pdf(frec.get('filename', '')), 30),
            frec.get('format', '?'),
            frec.get('tier') or ('FAILED' if not frec.get('success') else '-'),
            str(len(frec.get('removed_fields', []))),
            _trunc(_sanitize_for_pdf(sha), 52),
        ]
        for j, val in enumerate(row_vals):
            last = j == len(row_vals) - 1
            pdf.cell(col_w[j], 5.5, val, border=0, fill=fill,
                     new_x='LMARGIN' if last else 'RIGHT',
                     new_y='NEXT' if last else 'TOP')
    pdf.ln(3)


def generate_pdf_certificate(certificate: dict, output_path: Path) -> Path:
    """Render a certificate dict as a printable PDF.

    Raises:
        ValueError: If the certificate dict is missing required keys.
    """
    missing = _REQUIRED_CERT_KEYS - set(certificate.keys())
    if missing:
        raise ValueError(
            f"Certificate dict is missing required keys: {', '.join(sorted(missing))}")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pdf = FPDF(orientation='P', unit='mm', format='A4')
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    pdf.set_font('Helvetica', 'B', 16)
    pdf.cell(0, 10, 'PhotoSafe Redaction Certificate', new_x='LMARGIN', new_y='NEXT')
    pdf.set_font('Helvetica', '', 9)
    pdf.set_text_color(120, 120, 120)
    pdf.cell(0, 5, f'PhotoSafe v{certificate.get("photosafe_version", "?")}',
             new_x='LMARGIN', new_y='NEXT')
    pdf.set_text_color(0, 0, 0)
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(5)

    _pdf_label_value(pdf, 'Certificate ID:', certificate.get('certificate_id', '-'))
    _pdf_label_value(pdf, 'Generated:', certificate.get('generated_at', '-'))
    pdf.ln(3)

    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Summary', new_x='LMARGIN', new_y='NEXT')
    summary = certificate['summary']
    _pdf_kv_table(pdf, [
        ('Total files', summary.get('total_files', 0)),
        ('Cleaned', summary.get('succeeded', 0)),
        ('Failed (left unmodified)', summary.get('failed', 0)),
        ('Total size before', f'{summary.get("total_original_size", 0)} bytes'),
        ('Total size after', f'{summary.get("total_cleaned_size", 0)} bytes'),
        ('Total time', f'{summary.get("total_time_seconds", 0)}s'),
    ])

    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Technical Measures', new_x='LMARGIN', new_y='NEXT')
    _pdf_measures_table(pdf, certificate.get('measures', []))

    files = certificate['files']
    if files:
        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'File Results', new_x='LMARGIN', new_y='NEXT')
        _pdf_file_results_table(pdf, files)

        error_files = [f for f in files if f.get('error')]
        if error_files:
            pdf.set_font('Helvetica', 'B', 9)
            pdf.set_text_color(192, 48, 48)
            pdf.cell(0, 6, 'Errors:', new_x='LMARGIN', new_y='NEXT')
            pdf.set_font('Helvetica', '', 8)
            for f in error_files:
                line = f'  {f["filename"]}: {_trunc(f["error"], 80)}'
                pdf.cell(0, 5, _sanitize_for_pdf(line), new_x='LMARGIN', new_y='NEXT')
            pdf.set_text_color(0, 0, 0)
            pdf.ln(2)

    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(4)
    pdf.set_font('Helvetica', 'I', 8)
    pdf.set_text_color(100, 100, 100)
    pdf.multi_cell(0, 4,
        'This certificate lists the images PhotoSafe processed and the '
        'metadata measures applied. Location, device identifiers and embedded '
        'thumbnails were removed and capture times reduced to the day. Files '
        'marked FAILED were not modified and still carry their original metadata.'
    )
    pdf.set_text_color(0, 0, 0)

    pdf.output(str(output_path))
    return output_path
