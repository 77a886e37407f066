import os
from fastapi.testclient import TestClient

from powertop_mcp.server import app

DATA_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), 'data'))

client = TestClient(app)


def _read(name: str) -> str:
    with open(os.path.join(DATA_DIR, name), encoding='utf-8') as fh:
        return fh.read()


def test_root_and_healthz():
    assert client.get('/').json() == {'status': 'ok', 'service': 'powertop-mcp-shim'}
    assert client.get('/healthz').json()['status'] == 'ok'


def test_parse_upload_by_filename():
    resp = client.post('/reports/parse', json={'content': _read('sample_powertop.csv'), 'filename': 'p.csv'})
    assert resp.status_code == 200
    body = resp.json()
    assert body['format'] == 'delimited'
    assert body['report']['systemInfo']['os'] == 'Ubuntu 22.04.4 LTS'
    assert [d['type'] for d in body['report']['devices']][:3] == ['cpu', 'other', 'gpu']


def test_parse_upload_default_markup():
    resp = client.post('/reports/parse', json={'content': _read('sample_powertop.html')})
    assert resp.status_code == 200
    assert resp.json()['report']['summary']['target'] == '2 units/s'


def test_compare_uploads():
    resp = client.post('/reports/compare', json={'reports': [
        {'content': _read('sample_powertop.csv'), 'format': 'csv'},
        {'content': _read('sample_powertop.html'), 'filename': 'p.html'},
    ]})
    assert resp.status_code == 200
    body = resp.json()
    assert len(body['labels']) == 2
    assert body['cpu_usage'] == [9.3, 9.3]
    assert body['rows'][1]['topProcess'] == '/usr/bin/gnome-shell'


def test_export_upload():
    resp = client.post('/reports/export', json={'content': _read('sample_powertop.csv'), 'filename': 'p.csv'})
    assert resp.status_code == 200
    body = resp.json()
    assert [s['heading'] for s in body['document']] == ['PowerTOP Report', 'System Information', 'Summary', 'Top Processes']
    assert body['text'].startswith('PowerTOP Report')


def test_missing_content_is_validation_error():
    assert client.post('/reports/parse', json={'filename': 'p.csv'}).status_code == 422
