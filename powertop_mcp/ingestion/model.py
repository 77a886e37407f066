from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, Mapping, Optional, Tuple

"""Normalized PowerTOP report model.

Both extractors (CSV and HTML) build exactly this shape. Values are frozen
dataclasses with tuple sequences; a report is built once per parse call and
never mutated afterwards. ``to_dict`` renders the camelCase wire layout used
by the MCP tools and the HTTP shim:

    timestamp
    systemInfo   {version, kernel, system, cpu, os}
    summary      {powerConsumption, cpuUsage, runtime, wakeups, target, gpu, gfx, vfs}
    processes    [{usage, wakeups, category, description}]
    devices      [{usage, name, type}]
    cpuStates    {package{state: pct}, cores[], cpus[{id, states{state: {percentage, duration?}}}]}

``powerConsumption`` and ``runtime`` are carried for shape compatibility and
are always 0. String summary fields keep their unit suffix; numeric ones are
unit-stripped.
"""

DEFAULT_TARGET = '1 units/s'
DEFAULT_GPU = '0 ops/s'
DEFAULT_GFX = '0 wakeups/s'
DEFAULT_VFS = '0 ops/s'
DEFAULT_PROCESS_USAGE = '0%'
DEFAULT_PROCESS_CATEGORY = 'unknown'

# Summary string field -> fallback literal when the report carries nothing
SUMMARY_STRING_DEFAULTS: Dict[str, str] = {
    'target': DEFAULT_TARGET,
    'gpu': DEFAULT_GPU,
    'gfx': DEFAULT_GFX,
    'vfs': DEFAULT_VFS,
}


@dataclass(frozen=True)
class SystemInfo:
    version: str = ''
    kernel: str = ''
    system: str = ''
    cpu: str = ''
    os: str = ''

    def to_dict(self) -> Dict[str, str]:
        return {'version': self.version, 'kernel': self.kernel, 'system': self.system,
                'cpu': self.cpu, 'os': self.os}


@dataclass(frozen=True)
class Summary:
    power_consumption: float = 0.0
    cpu_usage: float = 0.0
    runtime: float = 0.0
    wakeups: float = 0.0
    target: str = DEFAULT_TARGET
    gpu: str = DEFAULT_GPU
    gfx: str = DEFAULT_GFX
    vfs: str = DEFAULT_VFS

    def with_defaults(self) -> 'Summary':
        """Return a copy whose empty string fields carry their fallback literal."""
        return Summary(
            power_consumption=self.power_consumption,
            cpu_usage=self.cpu_usage,
            runtime=self.runtime,
            wakeups=self.wakeups,
            target=self.target or DEFAULT_TARGET,
            gpu=self.gpu or DEFAULT_GPU,
            gfx=self.gfx or DEFAULT_GFX,
            vfs=self.vfs or DEFAULT_VFS,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'powerConsumption': self.power_consumption,
            'cpuUsage': self.cpu_usage,
            'runtime': self.runtime,
            'wakeups': self.wakeups,
            'target': self.target,
            'gpu': self.gpu,
            'gfx': self.gfx,
            'vfs': self.vfs,
        }


@dataclass(frozen=True)
class ProcessEntry:
    usage: str
    wakeups: float
    category: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {'usage': self.usage, 'wakeups': self.wakeups,
                'category': self.category, 'description': self.description}


@dataclass(frozen=True)
class DeviceEntry:
    usage: str
    name: str
    type: str

    def to_dict(self) -> Dict[str, str]:
        return {'usage': self.usage, 'name': self.name, 'type': self.type}


@dataclass(frozen=True)
class CpuStateValue:
    percentage: float
    duration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {'percentage': self.percentage}
        if self.duration is not None:
            out['duration'] = self.duration
        return out


def _frozen_pairs(mapping: Optional[Mapping[str, Any]]) -> Tuple[Tuple[str, Any], ...]:
    return tuple((mapping or {}).items())


@dataclass(frozen=True)
class CpuIdleEntry:
    id: int
    state_items: Tuple[Tuple[str, CpuStateValue], ...] = ()

    @classmethod
    def from_mapping(cls, id: int, states: Optional[Mapping[str, CpuStateValue]] = None) -> 'CpuIdleEntry':
        return cls(id=id, state_items=_frozen_pairs(states))

    @property
    def states(self) -> Mapping[str, CpuStateValue]:
        return MappingProxyType(dict(self.state_items))

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'states': {k: v.to_dict() for k, v in self.state_items}}


@dataclass(frozen=True)
class CpuStates:
    # (state, pct) pairs, unique states in report order
    package_items: Tuple[Tuple[str, float], ...] = ()
    cores: Tuple[Tuple[Tuple[str, float], ...], ...] = ()
    cpus: Tuple[CpuIdleEntry, ...] = ()

    @classmethod
    def from_mapping(cls, package: Optional[Mapping[str, float]] = None) -> 'CpuStates':
        return cls(package_items=_frozen_pairs(package))

    @property
    def package(self) -> Mapping[str, float]:
        """Read-only view of package idle residency."""
        return MappingProxyType(dict(self.package_items))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'package': dict(self.package_items),
            'cores': [dict(c) for c in self.cores],
            'cpus': [c.to_dict() for c in self.cpus],
        }


@dataclass(frozen=True)
class NormalizedReport:
    timestamp: str = ''
    system_info: SystemInfo = field(default_factory=SystemInfo)
    summary: Summary = field(default_factory=Summary)
    processes: Tuple[ProcessEntry, ...] = ()
    devices: Tuple[DeviceEntry, ...] = ()
    cpu_states: CpuStates = field(default_factory=CpuStates)

    def is_empty(self) -> bool:
        """True when nothing beyond defaults was extracted.

        The extractors never fail on unrecognized input; callers that need to
        reject such documents check this instead.
        """
        return (self.system_info == SystemInfo()
                and not self.processes and not self.devices
                and not self.cpu_states.package_items
                and self.summary.cpu_usage == 0 and self.summary.wakeups == 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'systemInfo': self.system_info.to_dict(),
            'summary': self.summary.to_dict(),
            'processes': [p.to_dict() for p in self.processes],
            'devices': [d.to_dict() for d in self.devices],
            'cpuStates': self.cpu_states.to_dict(),
        }
