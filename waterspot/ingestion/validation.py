"""Bulk validation pipeline: schema check, per-cell coercion, range checks.

Validation never drops or blocks rows. Every problem becomes a
FieldError and the full coerced row set is returned alongside the
errors; the caller decides whether to commit anyway.

Deterministic -- no I/O.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from pydantic import Field

from waterspot.models.common import WaterSpotBase
from waterspot.wqi.schema import DEFAULT_SCHEMA, WaterQualitySchema

logger = logging.getLogger(__name__)

IDENTITY_COLUMNS: tuple[str, ...] = ("area", "latitude", "longitude", "date")

# Accepted in addition to ISO-8601.
_DATE_FORMATS: tuple[str, ...] = ("%Y/%m/%d", "%m/%d/%Y", "%d-%m-%Y")

DATE_MESSAGE = "Must be a valid date (YYYY-MM-DD)"
NUMBER_MESSAGE = "Must be a valid number"


class MissingColumnsError(ValueError):
    """Raised when required columns are absent from the header row."""

    def __init__(self, missing_columns: list[str]) -> None:
        self.missing_columns = missing_columns
        super().__init__(f"Missing required columns: {', '.join(missing_columns)}")


class FieldError(WaterSpotBase, frozen=True):
    """One per-cell diagnostic. ``row`` is the 0-based data row index."""

    row: int
    field: str
    message: str


class ValidationReport(WaterSpotBase):
    """Coerced rows plus every cell-level error found."""

    headers: list[str]
    rows: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[FieldError] = Field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def errors_for_row(self, row: int) -> list[FieldError]:
        return [e for e in self.errors if e.row == row]


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_number(value: Any) -> float:
    """Coerce a cell to a finite float.

    Raises:
        ValueError: non-numeric, boolean, or non-finite cell.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        number = float(str(value).strip())
    if not math.isfinite(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def parse_date(value: Any) -> date:
    """Coerce a cell to a calendar date.

    Accepts date/datetime objects (Excel cells), ISO-8601 strings with or
    without a time part, and a few common day/month layouts.

    Raises:
        ValueError: unparsable value.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Not a date: {value!r}")


def try_parse_number(value: Any) -> float | None:
    """Lenient coercion: blank or unparsable cells become None."""
    if is_blank(value):
        return None
    try:
        return parse_number(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class BulkValidator:
    """Validates a decoded table against the shared WaterQualitySchema."""

    def __init__(self, schema: WaterQualitySchema | None = None) -> None:
        self._schema = schema or DEFAULT_SCHEMA

    @property
    def required_columns(self) -> list[str]:
        """area, latitude, longitude, date, then every measurement."""
        return [*IDENTITY_COLUMNS, *self._schema.measurement_names]

    def missing_columns(self, headers: Sequence[str]) -> list[str]:
        # Exact match: rows are read by these same keys, so a padded header
        # would leave its cells unchecked.
        present = set(headers)
        return [c for c in self.required_columns if c not in present]

    def validate(
        self,
        headers: Sequence[str],
        rows: Sequence[Mapping[str, Any]],
    ) -> ValidationReport:
        """Run the schema check, then coerce and range-check every row.

        Raises:
            MissingColumnsError: a required column is absent; no row is
                inspected in that case.
        """
        missing = self.missing_columns(headers)
        if missing:
            raise MissingColumnsError(missing)

        report = ValidationReport(headers=list(headers))
        for index, row in enumerate(rows):
            coerced, errors = self.validate_row(index, row)
            report.rows.append(coerced)
            report.errors.extend(errors)

        logger.info(
            "Validated %d rows: %d field errors", report.total_rows, report.error_count,
        )
        return report

    def validate_row(
        self,
        index: int,
        row: Mapping[str, Any],
    ) -> tuple[dict[str, Any], list[FieldError]]:
        """Coerce one row.

        Numeric cells that parse are replaced by floats; blank cells become
        None; unparsable cells are kept as-is so the caller can show them.
        """
        coerced: dict[str, Any] = dict(row)
        errors: list[FieldError] = []

        for name in self._schema.numeric_fields:
            value = row.get(name)
            if is_blank(value):
                coerced[name] = None
                continue
            try:
                number = parse_number(value)
            except ValueError:
                errors.append(FieldError(row=index, field=name, message=NUMBER_MESSAGE))
                continue
            coerced[name] = number
            bounds = self._schema.bounds(name)
            if not bounds.in_range(number):
                errors.append(
                    FieldError(row=index, field=name, message=bounds.range_message)
                )

        raw_date = row.get("date")
        if not is_blank(raw_date):
            try:
                coerced["date"] = parse_date(raw_date).isoformat()
            except ValueError:
                errors.append(FieldError(row=index, field="date", message=DATE_MESSAGE))

        return coerced, errors
