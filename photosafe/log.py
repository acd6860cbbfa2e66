"""Output helpers for scan, clean and verify runs.

The CLI colours each photo line by its outcome. Colour is off when stdout
is piped. The ``--log`` file gets the same messages as plain timestamped
lines, one per photo plus a run summary. Library modules use the stdlib ``logging`` module directly.
"""

import sys
from datetime import datetime

_RESET = '\033[0m'
_DIM = '\033[2m'
_GREEN = '\033[32m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'
_BOLD_RED = '\033[1;31m'
_BOLD_CYAN = '\033[1;36m'
_BOLD_WHITE = '\033[1;37m'


def _is_tty():
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Force colours on or off regardless of the terminal."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _c(code: str, text: str) -> str:
    if _USE_COLOR:
        return f'{code}{text}{_RESET}'
    return text


def cli_header(text: str) -> str:
    """Banner at the start of a scan, clean or verify run."""
    return _c(_BOLD_CYAN, text)


def cli_success(text: str) -> str:
    """Green: file cleaned, or already clean."""
    return _c(_GREEN, text)


def cli_warning(text: str) -> str:
    """Yellow: privacy tags present, or a lossy fallback tier was used."""
    return _c(_YELLOW, text)


def cli_error(text: str) -> str:
    """Red: redaction failed and the photo was left unmodified."""
    return _c(_BOLD_RED, text)


def cli_info(text: str) -> str:
    return _c(_CYAN, text)


def cli_dim(text: str) -> str:
    """Passthrough files, and the removed or added field lines under a photo."""
    return _c(_DIM, text)


def cli_bold(text: str) -> str:
    return _c(_BOLD_WHITE, text)


def cli_finding(text: str) -> str:
    """One privacy finding, indented under its file."""
    return _c(_YELLOW, text)


def cli_separator() -> str:
    """Rule between the per-photo lines and the run summary."""
    return _c(_DIM, '-' * 60)


# ---------------------------------------------------------------------------
# Log file lines (plain text, never coloured)
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def log_info(msg: str) -> str:
    """``--log`` line for a cleaned photo or a run summary.

    Lines carry a timestamp and a fixed-width level so a log of a large
    batch can be grepped by outcome.
    """
    return f'[{_timestamp()}] [INFO]  {msg}'


def log_warn(msg: str) -> str:
    return f'[{_timestamp()}] [WARN]  {msg}'


def log_error(msg: str) -> str:
    """``--log`` line for a photo that could not be redacted or written."""
    return f'[{_timestamp()}] [ERROR] {msg}'


def format_file_size(size: int) -> str:
    """Human-readable size: ``512 B``, ``1.5 KB``, ``2.25 MB``."""
    if size < 1024:
        return f'{size} B'
    if size < 1024 * 1024:
        return f'{size / 1024:.1f} KB'
    return f'{size / (1024 * 1024):.2f} MB'
