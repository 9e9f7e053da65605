"""WQI aggregator: sub-indices -> composite score, label, and explanations.

Produces a WQIResult with:
- wqi: weight-renormalized mean of the present sub-indices (2 dp)
- label: Good (>= 80) / Moderate (>= 60) / Poor
- confidence: share of the scored parameters that were supplied
- warnings: fixed checklist of breached regulatory limits
- parameter_contributions: the top 5 parameters degrading the score

Deterministic -- no I/O.
"""

from __future__ import annotations

import math

from waterspot.wqi.models import (
    Impact,
    MeasurementSet,
    ParameterContribution,
    QualityLabel,
    SubIndexResult,
    WQIResult,
)
from waterspot.wqi.schema import DEFAULT_SCHEMA, WaterQualitySchema
from waterspot.wqi.subindex import score_parameter

# Lower bound (inclusive) of each label band, best first.
LABEL_THRESHOLDS: tuple[tuple[float, QualityLabel], ...] = (
    (80.0, QualityLabel.GOOD),
    (60.0, QualityLabel.MODERATE),
)

# Sub-index at or above which a parameter counts as a positive influence.
# The 40-69 band is reported as negative along with 0-39.
POSITIVE_IMPACT_THRESHOLD = 70.0

MAX_CONTRIBUTIONS = 5


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves upward (0.5 -> 1, 2.5 -> 3) instead of to even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def label_for(wqi: float) -> QualityLabel:
    """Map a WQI to its band; bands are lower-inclusive."""
    for lower_bound, label in LABEL_THRESHOLDS:
        if wqi >= lower_bound:
            return label
    return QualityLabel.POOR


class WQICalculator:
    """Computes the composite WQI for a (possibly partial) measurement set.

    Weights renormalize over whichever scored parameters are present, so
    a partial input is not penalized for missing weight mass; the gap is
    reported through ``confidence`` instead.
    """

    def __init__(self, schema: WaterQualitySchema | None = None) -> None:
        self._schema = schema or DEFAULT_SCHEMA

    @property
    def schema(self) -> WaterQualitySchema:
        return self._schema

    def present_parameters(self, measurements: MeasurementSet) -> list[str]:
        """Scored parameter names with a value, in schema order."""
        return [
            name for name in self._schema.scored_names
            if measurements.get(name) is not None
        ]

    def sub_indices(self, measurements: MeasurementSet) -> list[SubIndexResult]:
        return [
            score_parameter(measurements[name], self._schema.parameter(name))
            for name in self.present_parameters(measurements)
        ]

    def calculate(self, measurements: MeasurementSet) -> WQIResult:
        """Score ``measurements``.

        Raises:
            ValueError: if none of the scored parameters is present.
        """
        sub_indices = self.sub_indices(measurements)
        if not sub_indices:
            raise ValueError("At least one parameter is required")

        weighted_sum = 0.0
        present_weight = 0.0
        for result in sub_indices:
            weight = self._schema.parameter(result.parameter).weight
            weighted_sum += result.score * weight
            present_weight += weight

        wqi = round_half_up(weighted_sum / present_weight, 2)
        total = len(self._schema.parameters)
        confidence = int(round_half_up(100 * len(sub_indices) / total))

        return WQIResult(
            wqi=wqi,
            label=label_for(wqi),
            confidence=confidence,
            warnings=self.warnings(measurements),
            parameter_contributions=self.contributions(sub_indices),
            sub_indices=sub_indices,
        )

    def warnings(self, measurements: MeasurementSet) -> list[str]:
        """Breached-limit advisories in schema order; absent values never warn."""
        warnings: list[str] = []
        for spec in self._schema.parameters:
            value = measurements.get(spec.name)
            if value is not None:
                warnings.extend(spec.warnings_for(value))
        return warnings

    @staticmethod
    def contributions(sub_indices: list[SubIndexResult]) -> list[ParameterContribution]:
        """Rank parameters by how far their sub-index falls short of 100.

        The sort is stable, so ties keep schema order.
        """
        ranked = [
            ParameterContribution(
                parameter=result.parameter,
                contribution_pct=int(round_half_up((1 - result.score / 100) * 100)),
                impact=(
                    Impact.POSITIVE
                    if result.score >= POSITIVE_IMPACT_THRESHOLD
                    else Impact.NEGATIVE
                ),
            )
            for result in sub_indices
        ]
        ranked.sort(key=lambda c: c.contribution_pct, reverse=True)
        return ranked[:MAX_CONTRIBUTIONS]
