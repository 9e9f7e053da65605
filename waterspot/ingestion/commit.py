"""Bulk commit pipeline: validated rows -> Area + Record persistence.

Rows are processed sequentially in fixed-size batches. Each row runs in
its own SAVEPOINT, so a failing row rolls back only itself; the session
is committed at every batch boundary. A batch is a transaction-size
bound, not a consistency boundary.

Failures are folded into a CommitSummary (processed/failed counters and
a bounded error log) and never propagate out of the pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from waterspot.ingestion.validation import is_blank, parse_date, try_parse_number
from waterspot.repositories.areas import AreaRepository
from waterspot.repositories.records import RecordRepository
from waterspot.wqi.aggregator import WQICalculator
from waterspot.wqi.models import WQIResult
from waterspot.wqi.schema import DEFAULT_SCHEMA, WaterQualitySchema

logger = logging.getLogger(__name__)

BULK_UPLOAD_SOURCE = "bulk_upload"
DEFAULT_BATCH_SIZE = 100
DEFAULT_ERROR_LOG_LIMIT = 10
MAX_ERROR_MESSAGE_LENGTH = 200


@dataclass
class CommitSummary:
    """Accumulator threaded through the row fold."""

    total_rows: int = 0
    processed: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    error_log_limit: int = DEFAULT_ERROR_LOG_LIMIT

    def record_success(self) -> None:
        self.processed += 1

    def record_failure(self, row_number: int, exc: Exception) -> None:
        self.failed += 1
        if len(self.errors) < self.error_log_limit:
            message = str(exc) or type(exc).__name__
            self.errors.append(f"Row {row_number}: {message[:MAX_ERROR_MESSAGE_LENGTH]}")


@dataclass(frozen=True)
class PreparedRow:
    """A bulk row reduced to what persistence needs."""

    area_name: str
    latitude: float | None
    longitude: float | None
    sample_date: date
    measurements: dict[str, float | None]
    result: WQIResult | None


def build_measurement_set(
    row: Mapping[str, Any],
    schema: WaterQualitySchema = DEFAULT_SCHEMA,
) -> dict[str, float]:
    """Numeric measurements of a row; unparsable or blank cells are absent."""
    measurements: dict[str, float] = {}
    for name in schema.measurement_names:
        value = try_parse_number(row.get(name))
        if value is not None:
            measurements[name] = value
    return measurements


class BulkCommitService:
    """Persists validated bulk rows with per-row failure isolation."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        schema: WaterQualitySchema | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        error_log_limit: int = DEFAULT_ERROR_LOG_LIMIT,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._session = session
        self._schema = schema or DEFAULT_SCHEMA
        self._calculator = WQICalculator(self._schema)
        self._areas = AreaRepository(session)
        self._records = RecordRepository(session)
        self._batch_size = batch_size
        self._error_log_limit = error_log_limit

    def prepare_row(self, row: Mapping[str, Any]) -> PreparedRow:
        """Parse one row and score it when any scored parameter is present.

        Raises:
            ValueError: missing area name or missing/unparsable date.
        """
        area_name = row.get("area")
        if is_blank(area_name):
            raise ValueError("Area name is required")

        raw_date = row.get("date")
        if is_blank(raw_date):
            raise ValueError("Date is required")
        sample_date = parse_date(raw_date)

        present = build_measurement_set(row, self._schema)
        result = None
        if self._calculator.present_parameters(present):
            result = self._calculator.calculate(present)

        return PreparedRow(
            area_name=str(area_name).strip(),
            latitude=try_parse_number(row.get("latitude")),
            longitude=try_parse_number(row.get("longitude")),
            sample_date=sample_date,
            measurements={name: present.get(name) for name in self._schema.measurement_names},
            result=result,
        )

    async def commit(self, rows: Sequence[Mapping[str, Any]]) -> CommitSummary:
        summary = CommitSummary(total_rows=len(rows), error_log_limit=self._error_log_limit)

        for start in range(0, len(rows), self._batch_size):
            batch = rows[start:start + self._batch_size]
            for offset, row in enumerate(batch):
                row_number = start + offset + 1
                try:
                    await self._commit_row(row)
                except Exception as exc:
                    logger.warning("Bulk row %d failed: %s", row_number, exc)
                    summary.record_failure(row_number, exc)
                else:
                    summary.record_success()

            await self._session.commit()
            logger.info(
                "Bulk batch %d-%d committed (processed=%d failed=%d)",
                start + 1, start + len(batch), summary.processed, summary.failed,
            )

        return summary

    async def _commit_row(self, row: Mapping[str, Any]) -> None:
        prepared = self.prepare_row(row)
        async with self._session.begin_nested():
            area = await self._areas.get_or_create(
                name=prepared.area_name,
                latitude=prepared.latitude,
                longitude=prepared.longitude,
            )
            result = prepared.result
            await self._records.create(
                area_id=area.area_id,
                sample_date=prepared.sample_date,
                measurements=prepared.measurements,
                wqi=None if result is None else result.wqi,
                label=None if result is None else result.label.value,
                confidence=None if result is None else result.confidence,
                source=BULK_UPLOAD_SOURCE,
            )
