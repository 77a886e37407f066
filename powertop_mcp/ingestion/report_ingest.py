"""PowerTOP report discovery and batch loading.

Discovery picks the newest exports in a directory; loading parses them,
in parallel when there is more than one file, and never lets one bad file
abort the batch (failures become warnings).
"""

import os
import time
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Tuple, Optional

from .model import NormalizedReport
from .parser import parse_report_file, ReportParseError
from ..debug_util import dbg

REPORT_EXTENSIONS = ('.html', '.htm', '.csv')

DEFAULT_MAX_FILES = int(os.environ.get('POWERTOP_MAX_FILES', '5'))


def discover_reports(root: str, max_files: int = DEFAULT_MAX_FILES) -> Tuple[List[str], List[str]]:
    """Discover PowerTOP exports under ``root``.

    ``root`` may be a single report file or a directory (non-recursive).
    Ordering strategy:
      * Collect files with a report extension (.html/.htm/.csv).
      * Sort descending by mtime (latest first).
      * Keep up to max_files (clamped >=1), then return them oldest -> newest
        so a comparison reads left to right in time.
    Returns (selected_paths, warnings)
    """
    dbg(f'discover_reports start root={root} max_files={max_files}')
    warnings: List[str] = []
    if os.path.isfile(root):
        if root.lower().endswith(REPORT_EXTENSIONS):
            return [root], warnings
        return [], ['not_a_report_file']
    if not os.path.isdir(root):
        dbg(f'discover_reports missing dir={root}')
        return [], ['dir_missing']
    candidates: List[Tuple[float, str]] = []
    for name in os.listdir(root):
        if not name.lower().endswith(REPORT_EXTENSIONS):
            continue
        full = os.path.join(root, name)
        try:
            candidates.append((os.path.getmtime(full), full))
        except FileNotFoundError:
            continue
    if not candidates:
        dbg(f'discover_reports no candidates in {root}')
        return [], ['no_reports']
    candidates.sort(reverse=True)
    if max_files < 1:
        max_files = 1
        warnings.append('max_files_clamped_min1')
    if len(candidates) > max_files:
        warnings.append('max_files_truncated')
        candidates = candidates[:max_files]
    selected = [p for _, p in sorted(candidates)]
    dbg(f'discover_reports selected={selected} warnings={warnings}')
    return selected, warnings


def _parallel_enabled(n_paths: int) -> bool:
    return (
        n_paths > 1 and
        int(os.environ.get('POWERTOP_PARALLEL_ENABLED', '1')) != 0 and
        (os.cpu_count() or 1) > 1
    )


def load_reports(paths: List[str], max_workers: Optional[int] = None) -> Tuple[List[NormalizedReport], List[str]]:
    """Parse every path, keeping input order for the reports that succeed.

    Args:
        paths: report files; format is derived from each file name
        max_workers: thread cap (default: POWERTOP_MAX_WORKERS or 4, never above len(paths))

    Returns:
        Tuple of (reports_in_input_order, warnings)
    """
    if not paths:
        return [], []
    warnings: List[str] = []
    results: List[Optional[NormalizedReport]] = [None] * len(paths)
    results_lock = threading.Lock()
    start = time.time()

    def load_one(idx: int, path: str):
        try:
            report = parse_report_file(path)
        except ReportParseError as e:
            with results_lock:
                warnings.append(f'parse_failed:{path}:{e}')
            return
        with results_lock:
            results[idx] = report

    if _parallel_enabled(len(paths)):
        if max_workers is None:
            max_workers = int(os.environ.get('POWERTOP_MAX_WORKERS', '4'))
        max_workers = max(1, min(max_workers, len(paths)))
        dbg(f'load_reports parallel paths={len(paths)} workers={max_workers}')
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="PowerTOPWorker") as executor:
            futures = {executor.submit(load_one, i, p): p for i, p in enumerate(paths)}
            for future in as_completed(futures):
                future.result()
    else:
        for i, p in enumerate(paths):
            load_one(i, p)

    reports = [r for r in results if r is not None]
    dbg(f'load_reports done loaded={len(reports)}/{len(paths)} time={time.time() - start:.2f}s warnings={len(warnings)}')
    return reports, warnings
