import base64
import logging
from typing import List, Tuple
from urllib.parse import quote

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from . import rules
from .delivery import DownloadArtifact, DownloadButton, DownloadHooks, InMemorySink
from .errors import EmptyInputError, SchemaMismatchError
from .models import (
    ExportedCsv,
    ExportReport,
    ExportRequest,
    ExportResponse,
    HealthResponse,
    ReportItem,
    ReportSummary,
    TriggerView,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="csv-download",
    description="Deterministic record-to-CSV export for client-side download",
    version="0.1.0",
)


def _check_filename(filename: str) -> None:
    if not filename.lower().endswith(rules.ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=422,
            detail=f"Filename must end with one of {', '.join(rules.ALLOWED_EXTENSIONS)}",
        )


def _content_disposition(filename: str) -> str:
    # ASCII fallback for old clients, RFC 5987 filename* for the real name
    fallback = "".join(ch for ch in filename if " " <= ch <= "~" and ch not in "\"\\")
    if not fallback or fallback.startswith("."):
        fallback = rules.DEFAULT_FILENAME
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _button_for(req: ExportRequest, errors: List[Exception]) -> DownloadButton:
    hooks = DownloadHooks(
        on_start=lambda: logger.debug("export of %s started", req.filename),
        on_complete=lambda: logger.debug("export of %s complete", req.filename),
        on_error=errors.append,
    )
    return DownloadButton(
        records=req.records,
        filename=req.filename,
        options=req.to_options(),
        hooks=hooks,
        empty_data_message=req.empty_data_message,
        include_bom=req.include_bom,
    )


def _run_export(req: ExportRequest) -> Tuple[DownloadArtifact, List[ReportItem]]:
    _check_filename(req.filename)

    errors: List[Exception] = []
    button = _button_for(req, errors)
    sink = InMemorySink()
    button.handle_download(sink)

    if errors:
        error = errors[0]
        if isinstance(error, EmptyInputError):
            raise HTTPException(status_code=422, detail=str(error))
        if isinstance(error, SchemaMismatchError):
            raise HTTPException(
                status_code=422,
                detail=[issue.model_dump() for issue in error.issues],
            )
        raise HTTPException(status_code=500, detail=rules.GENERATION_FAILED_DETAIL)

    return sink.saved[-1], button.warnings


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/export")
def export_csv(req: ExportRequest):
    artifact, _ = _run_export(req)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": _content_disposition(artifact.filename),
            "X-Content-SHA256": artifact.sha256,
        },
    )


@app.post("/export/report", response_model=ExportResponse)
def export_report(req: ExportRequest):
    artifact, warnings = _run_export(req)
    columns = len(req.records[0]) if req.records else 0
    return ExportResponse(
        csv=ExportedCsv(
            filename=artifact.filename,
            sha256=artifact.sha256,
            encoding=artifact.encoding,
            media_type=artifact.media_type,
            content_b64=base64.b64encode(artifact.content).decode("ascii"),
        ),
        report=ExportReport(
            summary=ReportSummary(
                rows=len(req.records),
                columns=columns,
                warnings=len(warnings),
                errors=0,
            ),
            warnings=warnings,
        ),
    )


@app.post("/export/trigger", response_model=TriggerView)
def export_trigger(req: ExportRequest):
    return _button_for(req, []).render()
