from typing import List, Dict, Any

from .ingestion.model import NormalizedReport

REPORT_TITLE = 'PowerTOP Report'
TOP_PROCESS_LIMIT = 5


def format_number(value: float) -> str:
    """9.0 -> '9', 9.25 -> '9.25'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def build_summary_document(report: NormalizedReport) -> List[Dict[str, Any]]:
    """Lay out the printable one-page summary as ordered sections.

    Each section is {heading, lines}; the first carries the title and the
    generation stamp.
    """
    info = report.system_info
    summary = report.summary
    top = [
        f"{p.usage} - {p.description} ({format_number(p.wakeups)} wakeups/s)"
        for p in report.processes[:TOP_PROCESS_LIMIT]
    ]
    return [
        {'heading': REPORT_TITLE, 'lines': [f"Generated: {report.timestamp}"]},
        {'heading': 'System Information', 'lines': [
            f"OS: {info.os}",
            f"CPU: {info.cpu}",
            f"Kernel: {info.kernel}",
        ]},
        {'heading': 'Summary', 'lines': [
            f"CPU Usage: {format_number(summary.cpu_usage)}%",
            f"System Wakeups: {format_number(summary.wakeups)}/s",
            f"Target: {summary.target}",
            f"GPU: {summary.gpu}",
        ]},
        {'heading': 'Top Processes', 'lines': top},
    ]


def render_summary_text(report: NormalizedReport) -> str:
    out: List[str] = []
    for section in build_summary_document(report):
        if out:
            out.append('')
        out.append(section['heading'])
        out.append('=' * len(section['heading']))
        out.extend(section['lines'])
    return '\n'.join(out) + '\n'
