"""Sub-index calculator: one raw measurement -> 0-100 quality score.

Two branches, chosen by the parameter's standard:

* Band-limited (standard min and max, i.e. pH). Inside the band the score
  loses at most 30 points for drifting from the ideal; outside it loses
  10 points per unit of excess.
* Ceiling-limited (everything else). Up to the ceiling the score loses
  50 points scaled by ``(value - ideal) / ceiling``; past it, 2 points per
  unit of excess.

The multipliers are fixed calibration constants shared with stored
records, so they are not configurable.
"""

from __future__ import annotations

from waterspot.wqi.models import SubIndexResult
from waterspot.wqi.schema import ParameterSpec

BAND_DEVIATION_PENALTY = 30.0
BAND_EXCESS_PENALTY = 10.0
CEILING_DEVIATION_PENALTY = 50.0
CEILING_EXCESS_PENALTY = 2.0


def calculate_sub_index(value: float, spec: ParameterSpec) -> float:
    """Score ``value`` against ``spec``; result is floored at 0.

    ``value`` must already lie within the spec's valid range.
    """
    if spec.standard_min is not None:
        return _band_score(value, spec.standard_min, spec.standard_max, spec.ideal_value)
    return _ceiling_score(value, spec)


def score_parameter(value: float, spec: ParameterSpec) -> SubIndexResult:
    return SubIndexResult(parameter=spec.name, score=calculate_sub_index(value, spec))


def _band_score(value: float, low: float, high: float, ideal: float) -> float:
    if low <= value <= high:
        deviation = abs(value - ideal)
        max_deviation = max(ideal - low, high - ideal)
        return max(0.0, 100.0 - (deviation / max_deviation) * BAND_DEVIATION_PENALTY)

    excess = low - value if value < low else value - high
    return max(0.0, 100.0 - excess * BAND_EXCESS_PENALTY)


def _ceiling_score(value: float, spec: ParameterSpec) -> float:
    ceiling = spec.standard_max
    if value <= ceiling:
        score = 100.0 - ((value - spec.ideal_value) / ceiling) * CEILING_DEVIATION_PENALTY
        # Below the ideal the penalty term is negative.
        return min(100.0, max(0.0, score))

    excess = value - ceiling
    return max(0.0, 100.0 - excess * CEILING_EXCESS_PENALTY)
