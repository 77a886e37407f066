from __future__ import annotations
import csv, string
from dataclasses import dataclass, replace
from typing import Dict, List

from .model import (
    NormalizedReport, SystemInfo, Summary, ProcessEntry, DeviceEntry, CpuStates,
    DEFAULT_TARGET, DEFAULT_GPU, DEFAULT_GFX, DEFAULT_VFS,
)
from .normalize import (
    to_number, classify_device, system_label_field,
    PERCENT, CPU_USAGE_UNITS, WAKEUP_UNITS,
)
from ..debug_util import dbg

"""PowerTOP CSV report extractor.

PowerTOP writes its CSV export as a sequence of human oriented blocks
separated by banner rows, e.g.

    ____________________________________________________________________
     *  *  *   System Information   *  *  *
    PowerTOP Version;v2.14
    Kernel Version;Linux version 6.5.0
    ...
    Target: 1 units/s;System:  771.9 wakeup/s;CPU:  9.3% usage;GPU:  0.0 ops/s;...
     *  *  *   Top 10 Power Consumers   *  *  *
    Usage;Events/s;Category;Description
      9.8%;  120.3;Process;/usr/bin/gnome-shell
    ...

Extraction is one forward pass. The current block is tracked by an immutable
``ScanState`` advanced row by row; a banner row only switches the state and
is not otherwise processed. Table blocks (processes, devices) discard the
first row after their banner as the column header.

Row checks run in a fixed order and are independent of each other (system,
processes marker, processes rows, devices marker, devices rows, idle marker,
idle rows), so a row reaches a block only after an earlier banner row moved
the state there.
"""

SECTION_NONE = ''
SECTION_SYSTEM = 'system'
SECTION_PROCESSES = 'processes'
SECTION_DEVICES = 'devices'
SECTION_CPU_STATES = 'cpuStates'

MARKER_SYSTEM = 'System Information'
MARKER_PROCESSES = 'Top 10 Power Consumers'
MARKER_DEVICES = 'Device Power Report'
MARKER_CPU_STATES = 'Processor Idle State Report'

SUMMARY_TRIGGER = 'Target:'
TABLE_HEADER_FIRST_CELL = 'Usage'
PROCESS_MIN_CELLS = 4
DEVICE_MIN_CELLS = 2

_MARKER_STRIP = string.whitespace + '_'


@dataclass(frozen=True)
class ScanState:
    section: str = SECTION_NONE
    header_pending: bool = False


class _ReportBuilder:
    """Per-call accumulator; never shared between parse calls."""

    def __init__(self):
        self.timestamp = ''
        self.system: Dict[str, str] = {}
        self.summary = Summary()
        self.processes: List[ProcessEntry] = []
        self.devices: List[DeviceEntry] = []
        self.package: Dict[str, float] = {}
        self.dropped_rows = 0

    def update_summary(self, **changes):
        self.summary = replace(self.summary, **changes)

    def build(self) -> NormalizedReport:
        return NormalizedReport(
            timestamp=self.timestamp,
            system_info=SystemInfo(**self.system),
            summary=self.summary.with_defaults(),
            processes=tuple(self.processes),
            devices=tuple(self.devices),
            cpu_states=CpuStates.from_mapping(self.package),
        )


def split_row(line: str) -> List[str]:
    """Split one CSV line into trimmed cells.

    ``;`` is the PowerTOP delimiter and double quotes may wrap a cell holding
    ``;`` (the summary line). A line that stays a single cell but carries
    commas is a comma-delimited row and is split again on ``,``.
    """
    cells = _read_cells(line, ';')
    if len(cells) == 1 and ',' in line and SUMMARY_TRIGGER not in line:
        comma_cells = _read_cells(line, ',')
        if len(comma_cells) > 1:
            cells = comma_cells
    return [c.strip() for c in cells]


def _read_cells(line: str, delimiter: str) -> List[str]:
    try:
        return next(csv.reader([line], delimiter=delimiter, quotechar='"'), [])
    except csv.Error:
        return line.split(delimiter)


def iter_rows(content: str):
    clean = content[1:] if content.startswith('\ufeff') else content
    clean = clean.replace('\r\n', '\n').replace('\r', '\n')
    for line in clean.split('\n'):
        yield split_row(line)


def _marker_text(cell: str) -> str:
    return cell.strip(_MARKER_STRIP)


def _system_row(cells: List[str], acc: _ReportBuilder):
    if len(cells) >= 2:
        field_name = system_label_field(cells[0])
        if field_name:
            acc.system[field_name] = cells[1]
            if field_name == 'version':
                acc.timestamp = cells[1]
    # Second trigger on the same row, evaluated after the label check.
    if SUMMARY_TRIGGER in cells[0]:
        _summary_row(cells, acc)


def _summary_row(cells: List[str], acc: _ReportBuilder):
    for part in ';'.join(cells).split(';'):
        pieces = part.split(':')
        key = pieces[0].strip()
        value = pieces[1].strip() if len(pieces) > 1 else ''
        if key == 'Target':
            acc.update_summary(target=value or DEFAULT_TARGET)
        elif key == 'System':
            acc.update_summary(wakeups=to_number(value, WAKEUP_UNITS))
        elif key == 'CPU':
            acc.update_summary(cpu_usage=to_number(value, CPU_USAGE_UNITS))
        elif key == 'GPU':
            acc.update_summary(gpu=value or DEFAULT_GPU)
        elif key == 'GFX':
            acc.update_summary(gfx=value or DEFAULT_GFX)
        elif key == 'VFS':
            acc.update_summary(vfs=value or DEFAULT_VFS)


def _process_row(cells: List[str], acc: _ReportBuilder):
    description = cells[3].strip()
    if not description:
        acc.dropped_rows += 1
        dbg(f'csv_parser drop process row without description cells={cells[:4]}')
        return
    acc.processes.append(ProcessEntry(
        usage=cells[0].strip(),
        wakeups=to_number(cells[1]),
        category=cells[2].strip(),
        description=description,
    ))


def _device_row(cells: List[str], acc: _ReportBuilder):
    name = cells[1].strip()
    if not name:
        acc.dropped_rows += 1
        dbg(f'csv_parser drop device row without name cells={cells[:2]}')
        return
    acc.devices.append(DeviceEntry(usage=cells[0].strip(), name=name, type=classify_device(name)))


def advance(state: ScanState, cells: List[str], acc: _ReportBuilder) -> ScanState:
    """Apply one non-empty row and return the next scan state."""
    first = _marker_text(cells[0])

    if MARKER_SYSTEM in first:
        return replace(state, section=SECTION_SYSTEM)

    if state.section == SECTION_SYSTEM:
        _system_row(cells, acc)

    if MARKER_PROCESSES in first:
        return ScanState(SECTION_PROCESSES, header_pending=True)

    if state.section == SECTION_PROCESSES and len(cells) >= PROCESS_MIN_CELLS:
        if state.header_pending:
            return replace(state, header_pending=False)
        if cells[0] != TABLE_HEADER_FIRST_CELL and cells[0]:
            _process_row(cells, acc)

    if MARKER_DEVICES in first:
        return ScanState(SECTION_DEVICES, header_pending=True)

    if state.section == SECTION_DEVICES and len(cells) >= DEVICE_MIN_CELLS:
        if state.header_pending:
            return replace(state, header_pending=False)
        if cells[0] != TABLE_HEADER_FIRST_CELL and cells[0]:
            _device_row(cells, acc)

    if MARKER_CPU_STATES in first:
        return replace(state, section=SECTION_CPU_STATES)

    if state.section == SECTION_CPU_STATES:
        if len(cells) >= 2 and cells[0].startswith('C'):
            # duplicate labels: last row wins
            acc.package[cells[0].strip()] = to_number(cells[1], PERCENT)

    return state


def parse_csv_report(content: str) -> NormalizedReport:
    acc = _ReportBuilder()
    state = ScanState()
    rows = 0
    for cells in iter_rows(content):
        if not cells or not cells[0]:
            continue
        rows += 1
        nxt = advance(state, cells, acc)
        if nxt.section != state.section:
            dbg(f'csv_parser section {state.section or "-"} -> {nxt.section} at row={rows}')
        state = nxt
    report = acc.build()
    dbg(f'csv_parser done rows={rows} processes={len(report.processes)} devices={len(report.devices)} '
        f'idle_states={len(report.cpu_states.package)} dropped={acc.dropped_rows}')
    return report
