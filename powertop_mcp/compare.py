from typing import List, Dict, Any, Iterable

from .ingestion.model import NormalizedReport

NO_TOP_PROCESS = 'N/A'


def comparison_row(report: NormalizedReport) -> Dict[str, Any]:
    top = report.processes[0].description if report.processes else ''
    return {
        'timestamp': report.timestamp,
        'cpuUsage': report.summary.cpu_usage,
        'wakeups': report.summary.wakeups,
        'topProcess': top or NO_TOP_PROCESS,
    }


def compare_reports(reports: Iterable[NormalizedReport]) -> Dict[str, Any]:
    """Line up several reports for side-by-side charting.

    Series keep the caller's order (normally oldest -> newest); labels are the
    report timestamps. Returns {labels, cpu_usage, wakeups, rows}.
    """
    rows: List[Dict[str, Any]] = [comparison_row(r) for r in reports]
    return {
        'labels': [r['timestamp'] for r in rows],
        'cpu_usage': [r['cpuUsage'] for r in rows],
        'wakeups': [r['wakeups'] for r in rows],
        'rows': rows,
    }
