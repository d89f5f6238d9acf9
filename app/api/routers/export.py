"""
app/api/routers/export.py

CSV export endpoints for liens and audit history.

GET /export/liens.csv  : liens filtered on record date
GET /export/audit.csv  : audit entries filtered on entry date

Query parameters
----------------
date_from : YYYY-MM-DD  inclusive lower bound  (optional)
date_to   : YYYY-MM-DD  inclusive upper bound  (optional)

Response
--------
StreamingResponse, Content-Type: text/csv
Content-Disposition: attachment; filename=<dataset>_export.csv

Only HTTP plumbing lives here; row shaping is in the export service.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.api.dependencies import DateWindow, get_date_window
from app.services.export_service import ExportResult, ExportService, get_export_service

router = APIRouter(tags=["export"])


# ---------------------------------------------------------------------------
# Serialisation helpers (no business logic)
# ---------------------------------------------------------------------------


def _to_csv_streaming(result: ExportResult, filename: str) -> StreamingResponse:
    """Stream *result* as a UTF-8 CSV file download."""

    def _generate() -> Iterator[str]:
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=result.fields,
            extrasaction="ignore",
            restval="",
            lineterminator="\r\n",
        )
        writer.writeheader()
        yield buf.getvalue()

        for row in result.rows:
            buf.seek(0)
            buf.truncate(0)
            clean = {k: ("" if v is None else v) for k, v in row.items()}
            writer.writerow(clean)
            yield buf.getvalue()

    return StreamingResponse(
        content=_generate(),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(len(result.rows)),
        },
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/export/liens.csv", summary="Export liens as CSV")
def export_liens(
    window: DateWindow = Depends(get_date_window),
    export_service: ExportService = Depends(get_export_service),
) -> StreamingResponse:
    result = export_service.export_liens(date_from=window.date_from, date_to=window.date_to)
    return _to_csv_streaming(result, "liens_export.csv")


@router.get("/export/audit.csv", summary="Export audit entries as CSV")
def export_audit(
    window: DateWindow = Depends(get_date_window),
    export_service: ExportService = Depends(get_export_service),
) -> StreamingResponse:
    result = export_service.export_audit(date_from=window.date_from, date_to=window.date_to)
    return _to_csv_streaming(result, "audit_export.csv")
