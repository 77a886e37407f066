"""Unit/number normalizer and device classifier."""

import math
import pytest
from powertop_mcp.ingestion.normalize import (
    to_number, parse_number, classify_device, system_label_field,
    CPU_USAGE_UNITS, WAKEUP_UNITS, PERCENT,
)


@pytest.mark.parametrize('text,strip,expected', [
    ('9.3% usage', CPU_USAGE_UNITS, 9.3),
    ('771.9 wakeup/s', WAKEUP_UNITS, 771.9),
    ('  2.1%', PERCENT, 2.1),
    ('12abc', (), 12.0),
    ('.5', (), 0.5),
    ('-3', (), -3.0),
    ('1e3 events', (), 1000.0),
])
def test_to_number_strips_units(text, strip, expected):
    assert to_number(text, strip) == pytest.approx(expected)


@pytest.mark.parametrize('text', ['', 'n/a', 'usage', None, '1e999', '%'])
def test_to_number_unparsable_is_zero(text):
    value = to_number(text, CPU_USAGE_UNITS)
    assert value == 0.0 and not math.isnan(value)


def test_parse_number_reports_absence():
    assert parse_number('n/a', PERCENT) is None
    assert parse_number(' 1.2 %', PERCENT) == pytest.approx(1.2)


@pytest.mark.parametrize('name,expected', [
    ('NVIDIA GPU Device', 'gpu'),
    ('eth0 nic:', 'network'),
    ('Unknown Widget', 'other'),
    ('CPU use', 'cpu'),
    ('Intel Graphics', 'gpu'),
    ('USB device: Integrated Camera', 'usb'),
    ('Network interface: wlp0s20f3', 'network'),
    ('Audio codec hwC0D0: Realtek', 'audio'),
    ('PCI Device: SATA controller', 'pci'),
    ('', 'other'),
])
def test_classify_device(name, expected):
    assert classify_device(name) == expected


def test_classify_device_rule_order_and_case():
    # GPU rule precedes PCI; matching is case-sensitive
    assert classify_device('PCI Device: Intel Corporation Iris Xe Graphics') == 'gpu'
    assert classify_device('usb hub') == 'other'
    assert classify_device('CPU core USB') == 'cpu'


def test_system_label_field_prefers_specific_labels():
    assert system_label_field('Kernel Version') == 'kernel'
    assert system_label_field('PowerTOP Version') == 'version'
    assert system_label_field('OS Information') == 'os'
    assert system_label_field('Uptime') is None
