from __future__ import annotations
import re
from typing import Iterable, Optional, Tuple

# Leading decimal number, same acceptance as a lenient float prefix scan:
# "  9.3 usage" -> 9.3, "12abc" -> 12, ".5%" -> 0.5, "abc" -> no match.
LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")

PERCENT = ('%',)
CPU_USAGE_UNITS = ('usage', '%')
WAKEUP_UNITS = ('wakeup/s',)

# Ordered (substrings, category) rules; first hit wins, matching is case-sensitive.
DEVICE_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (('CPU',), 'cpu'),
    (('GPU', 'Graphics'), 'gpu'),
    (('USB',), 'usb'),
    (('Network', 'nic:'), 'network'),
    (('Audio',), 'audio'),
    (('PCI',), 'pci'),
)
DEVICE_FALLBACK = 'other'

# System information row label -> SystemInfo field. Specific labels first so
# "Kernel Version" never lands on the generic tool version ("PowerTOP Version").
SYSTEM_LABELS: Tuple[Tuple[str, str], ...] = (
    ('Kernel Version', 'kernel'),
    ('System Name', 'system'),
    ('CPU Information', 'cpu'),
    ('OS Information', 'os'),
    ('Version', 'version'),
)


def parse_number(text: Optional[str], strip: Iterable[str] = ()) -> Optional[float]:
    """Remove each literal in ``strip`` then read the leading number.

    Returns None when no number is present. Non-finite results (overflowing
    exponents) are treated as unparsable.
    """
    if text is None:
        return None
    s = str(text)
    for pat in strip:
        s = s.replace(pat, '')
    m = LEADING_NUMBER_RE.match(s)
    if not m:
        return None
    try:
        value = float(m.group(1))
    except ValueError:
        return None
    if value != value or value in (float('inf'), float('-inf')):
        return None
    return value


def to_number(text: Optional[str], strip: Iterable[str] = ()) -> float:
    """Unit-strip and coerce to float, 0.0 on any failure. Never raises."""
    value = parse_number(text, strip)
    return 0.0 if value is None else value


def system_label_field(label: str) -> Optional[str]:
    for needle, field_name in SYSTEM_LABELS:
        if needle in label:
            return field_name
    return None


def classify_device(name: str) -> str:
    """Map a device name to cpu/gpu/usb/network/audio/pci/other."""
    for needles, category in DEVICE_RULES:
        if any(n in name for n in needles):
            return category
    return DEVICE_FALLBACK
