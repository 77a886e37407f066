from __future__ import annotations
import os
from pathlib import Path
from typing import Optional

from .model import NormalizedReport
from .csv_parser import parse_csv_report
from .html_parser import parse_html_report
from ..debug_util import dbg

"""PowerTOP report dispatcher.

``parse_report`` is the pure entry point: content + format hint in, one
NormalizedReport out. It never raises for malformed content; extractors fall
back to defaults field by field, and a document with nothing recognizable
yields an all-default record (see ``NormalizedReport.is_empty``).

Format hint policy: ``delimited`` (or ``csv``) selects the CSV extractor,
anything else the HTML extractor. File based callers derive the hint from
the file name (``.csv`` -> delimited).

``parse_report_file`` / ``safe_parse_report`` are the error boundary used by
the tool and HTTP layers: any failure outside normal defaulting (unreadable
file, non-text content, extractor crash) surfaces as one ReportParseError
with a generic message naming the attempted format.
"""

FORMAT_MARKUP = 'markup'
FORMAT_DELIMITED = 'delimited'
_DELIMITED_ALIASES = {FORMAT_DELIMITED, 'csv'}


class ReportParseError(ValueError):
    """Whole-parse failure; message is safe to show to end users."""

    def __init__(self, fmt: str, cause: Optional[BaseException] = None):
        self.fmt = fmt
        self.cause = cause
        super().__init__(invalid_export_message(fmt))


def invalid_export_message(fmt: str) -> str:
    label = 'CSV' if is_delimited(fmt) else 'HTML'
    return f"Failed to parse PowerTOP {label} file. Please ensure it's a valid export."


def is_delimited(fmt: Optional[str]) -> bool:
    return (fmt or '').strip().lower() in _DELIMITED_ALIASES


def detect_format(filename: str) -> str:
    """Format hint from a file name: ``.csv`` -> delimited, otherwise markup."""
    return FORMAT_DELIMITED if str(filename).lower().endswith('.csv') else FORMAT_MARKUP


def parse_report(content: str, fmt: str = FORMAT_MARKUP) -> NormalizedReport:
    if not isinstance(content, str):
        raise TypeError(f'report content must be text, got {type(content).__name__}')
    if is_delimited(fmt):
        return parse_csv_report(content)
    return parse_html_report(content)


def safe_parse_report(content: str, fmt: str = FORMAT_MARKUP) -> NormalizedReport:
    try:
        return parse_report(content, fmt)
    except Exception as e:
        dbg(f'safe_parse_report failed fmt={fmt} err={e.__class__.__name__}:{e}')
        raise ReportParseError(fmt, e) from e


def read_report_text(path: str) -> str:
    # PowerTOP exports are UTF-8; stray bytes are dropped rather than failing the read.
    return Path(path).read_text(encoding='utf-8', errors='ignore')


def parse_report_file(path: str, fmt: Optional[str] = None) -> NormalizedReport:
    eff_fmt = fmt or detect_format(path)
    try:
        content = read_report_text(path)
    except (OSError, UnicodeError) as e:
        dbg(f'parse_report_file unreadable path={path} err={e.__class__.__name__}:{e}')
        raise ReportParseError(eff_fmt, e) from e
    dbg(f'parse_report_file path={os.path.basename(path)} fmt={eff_fmt} size={len(content)}')
    return safe_parse_report(content, eff_fmt)
