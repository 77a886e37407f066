import os
from typing import List, Optional, Dict, Any

from .ingestion.model import NormalizedReport
from .ingestion.parser import (
    parse_report_file, safe_parse_report, detect_format, is_delimited,
    ReportParseError, FORMAT_MARKUP, FORMAT_DELIMITED,
)
from .ingestion.report_ingest import discover_reports, load_reports, DEFAULT_MAX_FILES
from .compare import compare_reports
from .export import build_summary_document, render_summary_text
from .debug_util import dbg
from fastmcp import FastMCP

# ----------------- System Prompt Guidance -----------------
SYSTEM_PROMPT = (
    "Workflow (PowerTOP reports):\n"
    "1. parse_report(path=...) parses one export; .csv files use the delimited extractor, anything else the HTML one.\n"
    "2. parse_report_content(content=..., filename=...) does the same for text already in hand.\n"
    "3. discover_reports_tool(directory=...) lists the newest exports (oldest -> newest, max_files caps the count).\n"
    "4. compare_reports_tool(paths=[...] or directory=...) lines up cpuUsage / wakeups / top process per report.\n"
    "5. export_summary(path=...) returns the one-page summary (system info, summary, top five processes).\n"
    "Report shape: timestamp, systemInfo{version,kernel,system,cpu,os}, summary{cpuUsage %, wakeups /s, target, gpu, gfx, vfs}, "
    "processes[{usage,wakeups,category,description}], devices[{usage,name,type}], cpuStates{package{state: %}}.\n"
    "An 'empty' report parsed without error but nothing recognizable was found; tell the user the file may not be a PowerTOP export.\n"
)

mcp = FastMCP("powertop-mcp")

# ----------------- Helpers -----------------

def _error(detail: str, **extra) -> dict:
    out = {'error': 'invalid_export', 'detail': detail}
    out.update(extra)
    return out


def _report_payload(report: NormalizedReport, fmt: str, **extra) -> dict:
    out: Dict[str, Any] = {
        'format': FORMAT_DELIMITED if is_delimited(fmt) else FORMAT_MARKUP,
        'empty': report.is_empty(),
        'report': report.to_dict(),
    }
    out.update(extra)
    return out


def _resolve_paths(paths: Optional[List[str]], directory: Optional[str], max_files: int):
    if paths:
        return list(paths), []
    if directory:
        return discover_reports(directory, max_files=max_files)
    raise ValueError('paths or directory required')

# ----------------- Tools -----------------

@mcp.tool()
def parse_report(path: str, format_hint: Optional[str] = None) -> dict:
    """Parse one PowerTOP export file (HTML or CSV).

    format_hint overrides the extension rule (.csv -> delimited, else markup).
    Returns {path, format, empty, report, workflow_prompt} or {'error':'invalid_export', detail, path}."""
    fmt = format_hint or detect_format(path)
    dbg(f'parse_report: path={path} fmt={fmt}')
    if not os.path.isfile(path):
        return _error('path not found', path=path)
    try:
        report = parse_report_file(path, fmt)
    except ReportParseError as e:
        return _error(str(e), path=path)
    out = _report_payload(report, fmt, path=os.path.abspath(path))
    out['workflow_prompt'] = SYSTEM_PROMPT
    return out


@mcp.tool()
def parse_report_content(content: str, filename: Optional[str] = None, format_hint: Optional[str] = None) -> dict:
    """Parse export text already in hand.

    Format comes from format_hint, else from filename, else markup.
    Returns {format, empty, report} or {'error':'invalid_export', detail}."""
    fmt = format_hint or (detect_format(filename) if filename else FORMAT_MARKUP)
    try:
        report = safe_parse_report(content, fmt)
    except ReportParseError as e:
        return _error(str(e))
    return _report_payload(report, fmt, filename=filename)


@mcp.tool()
def discover_reports_tool(directory: str, max_files: int = DEFAULT_MAX_FILES) -> dict:
    """List PowerTOP exports in a directory, newest max_files kept, oldest first.

    Returns {directory, paths[], warnings[]}."""
    paths, warnings = discover_reports(directory, max_files=max_files)
    return {'directory': directory, 'paths': paths, 'warnings': warnings}


@mcp.tool()
def compare_reports_tool(paths: Optional[List[str]] = None, directory: Optional[str] = None, max_files: int = DEFAULT_MAX_FILES) -> dict:
    """Compare several reports (explicit paths, or discovered in directory).

    Files that fail to parse are skipped and reported in warnings.
    Returns {labels, cpu_usage, wakeups, rows[{timestamp,cpuUsage,wakeups,topProcess}], paths, warnings}."""
    try:
        sel, disc_w = _resolve_paths(paths, directory, max_files)
    except ValueError as e:
        return {'error': 'bad_request', 'detail': str(e)}
    reports, load_w = load_reports(sel)
    out = compare_reports(reports)
    out['paths'] = sel
    out['warnings'] = disc_w + load_w
    dbg(f'compare_reports_tool: paths={len(sel)} loaded={len(reports)} warnings={len(out["warnings"])}')
    return out


@mcp.tool()
def export_summary(path: str, format_hint: Optional[str] = None) -> dict:
    """Printable summary of one report.

    Returns {path, document[{heading, lines[]}], text} or {'error':'invalid_export', detail, path}."""
    if not os.path.isfile(path):
        return _error('path not found', path=path)
    try:
        report = parse_report_file(path, format_hint)
    except ReportParseError as e:
        return _error(str(e), path=path)
    return {'path': os.path.abspath(path), 'document': build_summary_document(report), 'text': render_summary_text(report)}


def health_status() -> dict:
    return {'status': 'ok', 'service': 'powertop-mcp', 'max_files_default': DEFAULT_MAX_FILES}


@mcp.tool()
def healthz() -> dict:
    """Liveness plus the effective discovery default."""
    return health_status()


# --------------- HTTP Runner via mcp.run ---------------

if __name__ == '__main__':
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '8000'))
    print(f'Starting FastMCP on {host}:{port}')
    run_attr = getattr(mcp, 'run', None)
    if callable(run_attr):
        run_attr(transport="http", host=host, port=port, stateless_http=True)
    else:
        import sys
        print('FastMCP run() missing. fastmcp version likely incompatible or not installed correctly.')
        print('fastmcp module version:', getattr(__import__('fastmcp'), '__version__', 'unknown'))
        sys.exit(1)
