"""Domain schema: recognized measurements, valid ranges, and BIS/WHO standards.

One immutable ``WaterQualitySchema`` carries every bound and weight the
engine needs. The calculator, the tip generator, the bulk validator and
the bulk commit pipeline all receive the same instance, so a threshold
is written down exactly once.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from pydantic import Field, model_validator

from waterspot.models.common import WaterSpotBase


def _fmt(value: float) -> str:
    return f"{value:g}"


class MeasurementBounds(WaterSpotBase, frozen=True):
    """Valid numeric domain for one measured field.

    ``valid_min``/``valid_max`` bound what an instrument can plausibly
    report; anything outside is rejected as invalid input, never clamped.
    ``standard_min``/``standard_max`` are the regulatory limits.
    """

    name: str
    display_name: str
    unit: str = ""
    valid_min: float
    valid_max: float
    standard_min: float | None = None
    standard_max: float | None = None

    @model_validator(mode="after")
    def _validate_range(self) -> "MeasurementBounds":
        if not self.valid_min < self.valid_max:
            raise ValueError(
                f"{self.name}: valid_min ({self.valid_min}) must be below "
                f"valid_max ({self.valid_max})"
            )
        return self

    def in_range(self, value: float) -> bool:
        return self.valid_min <= value <= self.valid_max

    @property
    def range_message(self) -> str:
        """Human-readable bound, e.g. ``Must be between 0 and 2000 mg/L``."""
        message = f"Must be between {_fmt(self.valid_min)} and {_fmt(self.valid_max)}"
        if self.unit:
            message = f"{message} {self.unit}"
        return message


class ParameterSpec(MeasurementBounds, frozen=True):
    """A scored parameter: bounds plus ideal value, weight, and warnings.

    A spec with both ``standard_min`` and ``standard_max`` (only pH) is
    scored against a band; every other spec is scored against a ceiling.
    """

    standard_max: float
    ideal_value: float
    weight: float = Field(gt=0.0)
    warning_below: str | None = None
    warning_above: str | None = None

    @property
    def is_band_limited(self) -> bool:
        return self.standard_min is not None

    def below_standard(self, value: float) -> bool:
        return self.standard_min is not None and value < self.standard_min

    def above_standard(self, value: float) -> bool:
        return value > self.standard_max

    def warnings_for(self, value: float) -> list[str]:
        """Advisory strings for a breached limit (empty when compliant)."""
        warnings: list[str] = []
        if self.warning_below and self.below_standard(value):
            warnings.append(self.warning_below)
        if self.warning_above and self.above_standard(value):
            warnings.append(self.warning_above)
        return warnings


class WaterQualitySchema(WaterSpotBase, frozen=True):
    """Immutable rule table shared by scoring and validation.

    ``parameters`` are the weighted (scored) parameters in display order.
    ``auxiliary`` are measured and validated but never weighted
    (temperature). ``coordinates`` are the location fields of a bulk row.
    """

    parameters: tuple[ParameterSpec, ...]
    auxiliary: tuple[MeasurementBounds, ...] = ()
    coordinates: tuple[MeasurementBounds, ...] = ()

    @model_validator(mode="after")
    def _validate_schema(self) -> "WaterQualitySchema":
        if not self.parameters:
            raise ValueError("At least one scored parameter is required")

        names = [b.name for b in (*self.coordinates, *self.parameters, *self.auxiliary)]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names: {duplicates}")

        if not math.isclose(self.total_weight, 1.0, abs_tol=1e-9):
            raise ValueError(
                f"Scored parameter weights must sum to 1.0, got {self.total_weight}"
            )
        return self

    @property
    def total_weight(self) -> float:
        return sum(p.weight for p in self.parameters)

    @property
    def scored_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    @property
    def measurement_names(self) -> tuple[str, ...]:
        """Scored parameters followed by auxiliary measurements."""
        return self.scored_names + tuple(a.name for a in self.auxiliary)

    @property
    def numeric_fields(self) -> tuple[str, ...]:
        """Every numeric column of a bulk row, coordinates first."""
        return tuple(c.name for c in self.coordinates) + self.measurement_names

    def parameter(self, name: str) -> ParameterSpec:
        for spec in self.parameters:
            if spec.name == name:
                return spec
        raise KeyError(f"Unknown scored parameter: {name}")

    def bounds(self, name: str) -> MeasurementBounds:
        for b in (*self.coordinates, *self.parameters, *self.auxiliary):
            if b.name == name:
                return b
        raise KeyError(f"Unknown numeric field: {name}")

    def range_violations(self, values: Mapping[str, float | None]) -> dict[str, str]:
        """Map each out-of-range measurement to its bound message.

        Absent (None) values and names outside the schema are ignored.
        """
        violations: dict[str, str] = {}
        for name in self.numeric_fields:
            value = values.get(name)
            if value is None:
                continue
            bounds = self.bounds(name)
            if not bounds.in_range(value):
                violations[name] = bounds.range_message
        return violations


def build_default_schema() -> WaterQualitySchema:
    """BIS/WHO drinking-water standards with fixed calibration weights."""
    return WaterQualitySchema(
        parameters=(
            ParameterSpec(
                name="ph", display_name="pH",
                valid_min=0, valid_max=14,
                standard_min=6.5, standard_max=8.5, ideal_value=7.0, weight=0.15,
                warning_below="pH is too acidic (below 6.5)",
                warning_above="pH is too alkaline (above 8.5)",
            ),
            ParameterSpec(
                name="hardness", display_name="Hardness", unit="mg/L",
                valid_min=0, valid_max=1000,
                standard_max=300, ideal_value=100, weight=0.10,
                warning_above="Hardness exceeds safe limit (300 mg/L)",
            ),
            ParameterSpec(
                name="tds", display_name="TDS", unit="mg/L",
                valid_min=0, valid_max=2000,
                standard_max=500, ideal_value=200, weight=0.10,
                warning_above="TDS exceeds safe limit (500 mg/L)",
            ),
            ParameterSpec(
                name="turbidity", display_name="Turbidity", unit="NTU",
                valid_min=0, valid_max=100,
                standard_max=5, ideal_value=1, weight=0.15,
                warning_above="Turbidity exceeds safe limit (5 NTU)",
            ),
            ParameterSpec(
                name="alkalinity", display_name="Alkalinity", unit="mg/L",
                valid_min=0, valid_max=500,
                standard_max=200, ideal_value=100, weight=0.08,
            ),
            ParameterSpec(
                name="nitrate", display_name="Nitrate", unit="mg/L",
                valid_min=0, valid_max=200,
                standard_max=45, ideal_value=10, weight=0.15,
                warning_above="Nitrate exceeds safe limit (45 mg/L) - unsafe for infants",
            ),
            ParameterSpec(
                name="fluoride", display_name="Fluoride", unit="mg/L",
                valid_min=0, valid_max=10,
                standard_max=1.5, ideal_value=0.7, weight=0.12,
                warning_above="Fluoride exceeds safe limit (1.5 mg/L)",
            ),
            ParameterSpec(
                name="chloride", display_name="Chloride", unit="mg/L",
                valid_min=0, valid_max=1000,
                standard_max=250, ideal_value=100, weight=0.08,
                warning_above="Chloride exceeds safe limit (250 mg/L)",
            ),
            ParameterSpec(
                name="conductivity", display_name="Conductivity", unit="µS/cm",
                valid_min=0, valid_max=5000,
                standard_max=1500, ideal_value=500, weight=0.07,
                warning_above="Conductivity indicates high ion content",
            ),
        ),
        auxiliary=(
            MeasurementBounds(
                name="temperature", display_name="Temperature", unit="°C",
                valid_min=0, valid_max=50, standard_max=35,
            ),
        ),
        coordinates=(
            MeasurementBounds(
                name="latitude", display_name="Latitude",
                valid_min=-90, valid_max=90,
            ),
            MeasurementBounds(
                name="longitude", display_name="Longitude",
                valid_min=-180, valid_max=180,
            ),
        ),
    )


DEFAULT_SCHEMA: WaterQualitySchema = build_default_schema()
