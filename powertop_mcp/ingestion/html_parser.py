from __future__ import annotations
import datetime
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from .model import (
    NormalizedReport, SystemInfo, Summary, ProcessEntry, DeviceEntry, CpuStates,
    DEFAULT_PROCESS_USAGE, DEFAULT_PROCESS_CATEGORY,
)
from .normalize import (
    to_number, parse_number, classify_device, system_label_field,
    CPU_USAGE_UNITS, WAKEUP_UNITS,
)
from ..debug_util import dbg

"""PowerTOP HTML report extractor.

Five independent lookups, each defaulting to an empty result when its
container is missing, so a partial document degrades field by field:

    system info   .sys_info rows, label cell + first <td>
    summary       li.summary_list items, "Key: value" text
    processes     #software table, tr.emph1 rows, fixed column positions
    devices       #devinfo table, every row but the header
    idle states   #cpuidle table, two-cell rows {state, percentage}

Column positions below are a contract with PowerTOP's HTML layout; a
reordered report needs an edit here only.
"""

SYSTEM_INFO_SELECTOR = '.sys_info'
SUMMARY_ITEM_SELECTOR = 'li.summary_list'
PROCESS_TABLE_SELECTOR = '#software table'
PROCESS_ROW_SELECTOR = 'tr.emph1'
DEVICE_TABLE_SELECTOR = '#devinfo table'
IDLE_TABLE_SELECTOR = '#cpuidle table'

PROCESS_COLUMNS: Dict[str, int] = {
    'usage': 0,
    'wakeups': 1,
    'category': 5,
    'description': 6,
}
PROCESS_MIN_CELLS = 4
DEVICE_COLUMNS: Dict[str, int] = {
    'usage': 0,
    'name': 1,
}
IDLE_ROW_CELLS = 2

# summary key -> Summary field, read in this order
SUMMARY_KEYS: Tuple[Tuple[str, str], ...] = (
    ('CPU', 'cpu_usage'),
    ('System', 'wakeups'),
    ('Target', 'target'),
    ('GPU', 'gpu'),
    ('GFX', 'gfx'),
    ('VFS', 'vfs'),
)


def _text(el) -> str:
    return el.get_text().strip() if el is not None else ''


def _cell(cells: List, idx: int) -> str:
    return _text(cells[idx]) if idx < len(cells) else ''


def _sys_info_rows(doc: BeautifulSoup) -> List:
    block = doc.select_one(SYSTEM_INFO_SELECTOR)
    return block.find_all('tr') if block is not None else []


def _labelled_value(rows: List, field_name: str) -> Optional[str]:
    """First <td> of the first row whose label resolves to ``field_name``."""
    for row in rows:
        if system_label_field(row.get_text()) == field_name:
            return _text(row.find('td'))
    return None


def extract_system_info(doc: BeautifulSoup) -> SystemInfo:
    rows = _sys_info_rows(doc)
    values = {name: _labelled_value(rows, name) or ''
              for name in ('version', 'kernel', 'system', 'cpu', 'os')}
    return SystemInfo(**values)


def extract_timestamp(doc: BeautifulSoup) -> str:
    found = _labelled_value(_sys_info_rows(doc), 'version')
    if found:
        return found
    return datetime.datetime.now().strftime('%c')


def extract_summary(doc: BeautifulSoup) -> Summary:
    items = [_text(li) for li in doc.select(SUMMARY_ITEM_SELECTOR)]

    def value_of(key: str) -> str:
        for text in items:
            if key in text:
                parts = text.split(':')
                return parts[1].strip() if len(parts) > 1 else ''
        return ''

    raw = {field_name: value_of(key) for key, field_name in SUMMARY_KEYS}
    return Summary(
        cpu_usage=to_number(raw['cpu_usage'], CPU_USAGE_UNITS),
        wakeups=to_number(raw['wakeups'], WAKEUP_UNITS),
        target=raw['target'],
        gpu=raw['gpu'],
        gfx=raw['gfx'],
        vfs=raw['vfs'],
    )


def extract_processes(doc: BeautifulSoup) -> Tuple[ProcessEntry, ...]:
    table = doc.select_one(PROCESS_TABLE_SELECTOR)
    if table is None:
        return ()
    out: List[ProcessEntry] = []
    for row in table.select(PROCESS_ROW_SELECTOR):
        cells = row.find_all('td')
        if len(cells) < PROCESS_MIN_CELLS:
            continue
        description = _cell(cells, PROCESS_COLUMNS['description'])
        if not description:
            dbg(f'html_parser drop process row without description cells={len(cells)}')
            continue
        out.append(ProcessEntry(
            usage=_cell(cells, PROCESS_COLUMNS['usage']) or DEFAULT_PROCESS_USAGE,
            wakeups=to_number(_cell(cells, PROCESS_COLUMNS['wakeups'])),
            category=_cell(cells, PROCESS_COLUMNS['category']) or DEFAULT_PROCESS_CATEGORY,
            description=description,
        ))
    return tuple(out)


def extract_devices(doc: BeautifulSoup) -> Tuple[DeviceEntry, ...]:
    table = doc.select_one(DEVICE_TABLE_SELECTOR)
    if table is None:
        return ()
    out: List[DeviceEntry] = []
    for row in table.find_all('tr')[1:]:
        cells = row.find_all('td')
        name = _cell(cells, DEVICE_COLUMNS['name'])
        if not name:
            continue
        out.append(DeviceEntry(usage=_cell(cells, DEVICE_COLUMNS['usage']), name=name,
                               type=classify_device(name)))
    return tuple(out)


def extract_cpu_states(doc: BeautifulSoup) -> CpuStates:
    package: Dict[str, float] = {}
    table = doc.select_one(IDLE_TABLE_SELECTOR)
    if table is not None:
        for row in table.find_all('tr'):
            cells = row.find_all('td')
            if len(cells) != IDLE_ROW_CELLS:
                continue
            state = _text(cells[0])
            raw = _text(cells[1]).replace('%', '').strip()
            # blank cell reads as 0; text that is not a number drops the row
            value = parse_number(raw) if raw else 0.0
            if state and value is not None:
                package[state] = value
    return CpuStates.from_mapping(package)


def parse_html_report(content: str) -> NormalizedReport:
    doc = BeautifulSoup(content, 'html.parser')
    report = NormalizedReport(
        timestamp=extract_timestamp(doc),
        system_info=extract_system_info(doc),
        summary=extract_summary(doc).with_defaults(),
        processes=extract_processes(doc),
        devices=extract_devices(doc),
        cpu_states=extract_cpu_states(doc),
    )
    dbg(f'html_parser done processes={len(report.processes)} devices={len(report.devices)} '
        f'idle_states={len(report.cpu_states.package)} version={report.system_info.version!r}')
    return report
