import os, shutil, tempfile
import pytest
from powertop_mcp import mcp_app

DATA_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), 'data'))
SAMPLE_CSV = os.path.join(DATA_DIR, 'sample_powertop.csv')
SAMPLE_HTML = os.path.join(DATA_DIR, 'sample_powertop.html')


def _tool(t):
    return getattr(t, 'fn', t)


def test_parse_report_csv_by_extension():
    body = _tool(mcp_app.parse_report)(path=SAMPLE_CSV)
    assert body['format'] == 'delimited'
    assert body['empty'] is False
    assert body['path'] == SAMPLE_CSV
    assert body['report']['summary']['cpuUsage'] == pytest.approx(9.3)
    assert 'Workflow' in body['workflow_prompt']


def test_parse_report_html_and_format_hint_override():
    body = _tool(mcp_app.parse_report)(path=SAMPLE_HTML)
    assert body['format'] == 'markup'
    assert len(body['report']['processes']) == 3
    # forcing the CSV extractor onto HTML text finds nothing but does not fail
    forced = _tool(mcp_app.parse_report)(path=SAMPLE_HTML, format_hint='delimited')
    assert forced['format'] == 'delimited'
    assert forced['empty'] is True


def test_parse_report_missing_path():
    body = _tool(mcp_app.parse_report)(path='/nonexistent/powertop.html')
    assert body == {'error': 'invalid_export', 'detail': 'path not found', 'path': '/nonexistent/powertop.html'}


def test_parse_report_content_format_resolution():
    text = 'Top 10 Power Consumers\nUsage;Events/s;Category;Description\n3%;1;Process;sshd\n'
    by_name = _tool(mcp_app.parse_report_content)(content=text, filename='upload.CSV')
    assert by_name['format'] == 'delimited'
    assert by_name['filename'] == 'upload.CSV'
    assert by_name['report']['processes'][0]['description'] == 'sshd'
    by_default = _tool(mcp_app.parse_report_content)(content=text)
    assert by_default['format'] == 'markup' and by_default['empty'] is True


def test_parse_report_content_rejects_non_text():
    body = _tool(mcp_app.parse_report_content)(content=None, format_hint='csv')  # type: ignore[arg-type]
    assert body['error'] == 'invalid_export'
    assert body['detail'] == "Failed to parse PowerTOP CSV file. Please ensure it's a valid export."


def test_discover_and_compare_directory():
    td = tempfile.mkdtemp(prefix='powertop_')
    try:
        shutil.copyfile(SAMPLE_CSV, os.path.join(td, 'one.csv'))
        shutil.copyfile(SAMPLE_HTML, os.path.join(td, 'two.html'))
        disc = _tool(mcp_app.discover_reports_tool)(directory=td, max_files=5)
        assert len(disc['paths']) == 2 and disc['warnings'] == []
        cmp_body = _tool(mcp_app.compare_reports_tool)(directory=td)
        assert len(cmp_body['rows']) == 2
        assert cmp_body['paths'] == disc['paths']
        assert all(r['topProcess'] == '/usr/bin/gnome-shell' for r in cmp_body['rows'])
    finally:
        shutil.rmtree(td, ignore_errors=True)


def test_compare_explicit_paths_with_failure():
    body = _tool(mcp_app.compare_reports_tool)(paths=[SAMPLE_CSV, '/nonexistent/x.csv'])
    assert len(body['rows']) == 1
    assert body['warnings'] and body['warnings'][0].startswith('parse_failed:/nonexistent/x.csv:')


def test_compare_requires_input():
    assert _tool(mcp_app.compare_reports_tool)()['error'] == 'bad_request'


def test_export_summary_tool():
    body = _tool(mcp_app.export_summary)(path=SAMPLE_CSV)
    assert body['document'][0]['heading'] == 'PowerTOP Report'
    assert 'Top Processes' in body['text']
    assert _tool(mcp_app.export_summary)(path='/nonexistent.csv')['detail'] == 'path not found'


def test_healthz():
    h = _tool(mcp_app.healthz)()
    assert h['status'] == 'ok' and h['service'] == 'powertop-mcp'
    assert h['max_files_default'] >= 1
