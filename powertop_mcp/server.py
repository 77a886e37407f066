"""Minimal FastAPI shim over the report parser for clients that do not speak MCP.

Uploads arrive as JSON {content, filename?, format?}; the format hint follows
the same rule as the MCP tools (.csv -> delimited, otherwise markup).
"""
from typing import List, Optional, Dict, Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from powertop_mcp import mcp_app
from powertop_mcp.ingestion.parser import safe_parse_report, detect_format, ReportParseError, FORMAT_MARKUP
from powertop_mcp.compare import compare_reports
from powertop_mcp.export import build_summary_document, render_summary_text
from powertop_mcp.debug_util import dbg

app = FastAPI(title="powertop-mcp-shim")


class ReportUpload(BaseModel):
    content: str
    filename: Optional[str] = None
    format: Optional[str] = None  # markup | delimited (csv accepted)


class CompareRequest(BaseModel):
    reports: List[ReportUpload]


class ParseResponse(BaseModel):
    format: str
    empty: bool
    report: Dict[str, Any]


class CompareRow(BaseModel):
    timestamp: str
    cpuUsage: float
    wakeups: float
    topProcess: str


class CompareResponse(BaseModel):
    labels: List[str]
    cpu_usage: List[float]
    wakeups: List[float]
    rows: List[CompareRow]


class DocumentSection(BaseModel):
    heading: str
    lines: List[str]


class ExportResponse(BaseModel):
    document: List[DocumentSection]
    text: str


def _format_of(upload: ReportUpload) -> str:
    if upload.format:
        return upload.format
    if upload.filename:
        return detect_format(upload.filename)
    return FORMAT_MARKUP


def _parse_upload(upload: ReportUpload):
    fmt = _format_of(upload)
    try:
        return fmt, safe_parse_report(upload.content, fmt)
    except ReportParseError as e:
        dbg(f'server parse failed filename={upload.filename} fmt={fmt}')
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/")
def root():
    return {"status": "ok", "service": "powertop-mcp-shim"}


@app.get("/healthz")
def healthz():
    return mcp_app.health_status()


@app.post("/reports/parse", response_model=ParseResponse)
def parse_report(body: ReportUpload):
    fmt, report = _parse_upload(body)
    return mcp_app._report_payload(report, fmt)


@app.post("/reports/compare", response_model=CompareResponse)
def compare(body: CompareRequest):
    # One invalid export fails the whole request; the UI shows a single message.
    reports = [_parse_upload(u)[1] for u in body.reports]
    return compare_reports(reports)


@app.post("/reports/export", response_model=ExportResponse)
def export(body: ReportUpload):
    _, report = _parse_upload(body)
    return {'document': build_summary_document(report), 'text': render_summary_text(report)}
