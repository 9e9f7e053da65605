"""WQI engine enums and result models.

Results are frozen: a WQIResult or Tip is built once per calculation and
never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from pydantic import Field

from waterspot.models.common import WaterSpotBase

# Parameter name -> measured value. Any subset of the recognized
# measurements may be present.
MeasurementSet = Mapping[str, float]


# ---------------------------------------------------------------------------
# Enums (all StrEnum)
# ---------------------------------------------------------------------------


class QualityLabel(StrEnum):
    """Risk tier derived from the composite WQI."""

    GOOD = "Good"
    MODERATE = "Moderate"
    POOR = "Poor"


class Impact(StrEnum):
    """Direction in which a parameter pulls the composite score."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class TipSeverity(StrEnum):
    """Urgency of a remediation tip."""

    ADVICE = "advice"
    WARNING = "warning"


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SubIndexResult(WaterSpotBase, frozen=True):
    """Normalized 0-100 quality score for one parameter."""

    parameter: str
    score: float = Field(ge=0.0, le=100.0)


class ParameterContribution(WaterSpotBase, frozen=True):
    """How much one parameter degrades the composite score."""

    parameter: str
    contribution_pct: int = Field(ge=0, le=100)
    impact: Impact


class WQIResult(WaterSpotBase, frozen=True):
    """Composite Water Quality Index for one measurement set."""

    wqi: float = Field(ge=0.0, le=100.0)
    label: QualityLabel
    confidence: int = Field(ge=0, le=100)
    warnings: list[str] = Field(default_factory=list)
    parameter_contributions: list[ParameterContribution] = Field(
        default_factory=list,
        max_length=5,
    )
    sub_indices: list[SubIndexResult] = Field(default_factory=list, exclude=True)


class Tip(WaterSpotBase, frozen=True):
    """A human-readable remediation recommendation."""

    title: str
    body: str
    severity: TipSeverity
    linked_params: list[str] = Field(default_factory=list)
