"""FastAPI bulk upload endpoints.

POST /v1/uploads/validate  -- validate a decoded table (JSON headers + rows)
POST /v1/uploads/parse     -- decode an uploaded CSV/Excel file, then validate
POST /v1/uploads/commit    -- persist validated rows as Area/Record pairs
GET  /v1/uploads/template  -- CSV template with the required columns

Validation never drops rows; commit never aborts on a bad row.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from waterspot.api.dependencies import get_commit_service, get_validator
from waterspot.config.settings import Settings, get_settings
from waterspot.ingestion.commit import BulkCommitService
from waterspot.ingestion.decoding import TableDecoder
from waterspot.ingestion.validation import BulkValidator, FieldError, MissingColumnsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/uploads", tags=["uploads"])

_decoder = TableDecoder()

TEMPLATE_FILENAME = "water-quality-template.csv"
TEMPLATE_SAMPLE_ROW: dict[str, str] = {
    "area": "Sample Area",
    "latitude": "40.7128",
    "longitude": "-74.0060",
    "date": "2024-01-01",
    "ph": "7.2",
    "hardness": "150",
    "tds": "200",
    "turbidity": "2.5",
    "alkalinity": "100",
    "nitrate": "15",
    "fluoride": "0.8",
    "chloride": "25",
    "conductivity": "500",
    "temperature": "22",
}


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class ValidateRequest(BaseModel):
    headers: list[str]
    rows: list[dict[str, Any]] = Field(default_factory=list)


class ValidateResponse(BaseModel):
    headers: list[str]
    rows: list[dict[str, Any]]
    errors: list[FieldError]
    total_rows: int
    error_count: int
    skipped_rows: int = 0


class CommitRequest(BaseModel):
    rows: list[dict[str, Any]]


class CommitResponse(BaseModel):
    processed: int
    failed: int
    errors: list[str]
    total_rows: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_validation(
    validator: BulkValidator,
    headers: list[str],
    rows: list[dict[str, Any]],
    skipped_rows: int = 0,
) -> ValidateResponse:
    try:
        report = validator.validate(headers, rows)
    except MissingColumnsError as exc:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Missing required columns",
                "missing_columns": exc.missing_columns,
            },
        ) from exc

    return ValidateResponse(
        headers=report.headers,
        rows=report.rows,
        errors=report.errors,
        total_rows=report.total_rows,
        error_count=report.error_count,
        skipped_rows=skipped_rows,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/validate", response_model=ValidateResponse)
async def validate_table(
    body: ValidateRequest,
    validator: BulkValidator = Depends(get_validator),
) -> ValidateResponse:
    """Validate an already-decoded table."""
    return _run_validation(validator, body.headers, body.rows)


@router.post("/parse", response_model=ValidateResponse)
async def parse_upload(
    file: UploadFile = File(...),
    validator: BulkValidator = Depends(get_validator),
    settings: Settings = Depends(get_settings),
) -> ValidateResponse:
    """Decode a CSV/Excel upload and validate it."""
    content = await file.read()

    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=400,
            detail={"error": f"File exceeds {settings.MAX_UPLOAD_BYTES} bytes"},
        )

    try:
        table = _decoder.decode(filename=file.filename or "", content=content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": str(exc)}) from exc

    if table.skipped_rows:
        logger.warning(
            "Upload %s: skipped %d rows with a mismatched cell count",
            file.filename, table.skipped_rows,
        )

    return _run_validation(validator, table.headers, table.rows, table.skipped_rows)


@router.post("/commit", response_model=CommitResponse)
async def commit_rows(
    body: CommitRequest,
    service: BulkCommitService = Depends(get_commit_service),
) -> CommitResponse:
    """Persist validated rows; per-row failures are counted, not raised."""
    summary = await service.commit(body.rows)
    logger.info(
        "Bulk commit finished: %d/%d processed, %d failed",
        summary.processed, summary.total_rows, summary.failed,
    )
    return CommitResponse(
        processed=summary.processed,
        failed=summary.failed,
        errors=summary.errors,
        total_rows=summary.total_rows,
    )


@router.get("/template")
async def download_template(
    validator: BulkValidator = Depends(get_validator),
) -> Response:
    """CSV header row plus one sample row."""
    columns = validator.required_columns
    sample = [TEMPLATE_SAMPLE_ROW.get(c, "") for c in columns]
    content = ",".join(columns) + "\n" + ",".join(sample) + "\n"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )
