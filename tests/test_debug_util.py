import logging

from powertop_mcp.debug_util import dbg, debug_enabled
from powertop_mcp.ingestion.csv_parser import parse_csv_report


def test_dbg_silent_by_default(monkeypatch, caplog):
    monkeypatch.delenv('DEBUG_VERBOSE', raising=False)
    caplog.set_level(logging.INFO, logger='powertop_mcp')
    dbg('hidden line')
    assert not debug_enabled()
    assert 'hidden line' not in caplog.text


def test_dbg_traces_dropped_rows_when_enabled(monkeypatch, caplog):
    monkeypatch.setenv('DEBUG_VERBOSE', '1')
    caplog.set_level(logging.INFO, logger='powertop_mcp')
    parse_csv_report('Top 10 Power Consumers\nUsage;Events/s;Category;Description\n1%;2;misc;\n')
    assert '[debug] csv_parser drop process row without description' in caplog.text
