"""
Console logging for the sync jobs.

Messages go through tqdm.write so they never tear an active progress bar.
"""
import sys
from datetime import datetime

from tqdm import tqdm

_STDERR_LEVELS = ('WARN', 'ERROR')


def log(message, level="INFO"):
    """Log with timestamp and level. WARN and ERROR go to stderr."""
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    stream = sys.stderr if level in _STDERR_LEVELS else sys.stdout
    tqdm.write(f"[{timestamp}] [{level}] {message}", file=stream)


def log_banner(title):
    log("=" * 70)
    log(title)
    log("=" * 70)


def progress(iterable, description, total=None):
    """Progress bar for per-entity loops (hidden when stderr is not a terminal)."""
    return tqdm(iterable, desc=description, total=total, unit="req", leave=False, disable=None)
