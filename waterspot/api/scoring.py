"""FastAPI scoring endpoint.

POST /v1/score  -- compute WQI, label, confidence, warnings, and tips

Accepts any subset of the recognized measurements. Deterministic engine
code only.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from waterspot.api.dependencies import get_calculator, get_schema, get_tip_generator
from waterspot.models.common import UTCTimestamp, utc_now
from waterspot.wqi.aggregator import WQICalculator
from waterspot.wqi.models import ParameterContribution, Tip
from waterspot.wqi.schema import WaterQualitySchema
from waterspot.wqi.tips import TipGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["scoring"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class ScoreRequest(BaseModel):
    """Partial measurement set; omitted or null fields are absent."""

    ph: float | None = None
    hardness: float | None = None
    tds: float | None = None
    turbidity: float | None = None
    alkalinity: float | None = None
    nitrate: float | None = None
    fluoride: float | None = None
    chloride: float | None = None
    conductivity: float | None = None
    temperature: float | None = None


class ScoreResponse(BaseModel):
    wqi: float
    label: str
    confidence: int
    warnings: list[str]
    parameter_contributions: list[ParameterContribution]
    tips: list[Tip]
    parameters: dict[str, float]
    timestamp: UTCTimestamp = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/score", response_model=ScoreResponse)
async def score_measurements(
    body: ScoreRequest,
    schema: WaterQualitySchema = Depends(get_schema),
    calculator: WQICalculator = Depends(get_calculator),
    tip_generator: TipGenerator = Depends(get_tip_generator),
) -> ScoreResponse:
    """Score a partial measurement set and attach remediation tips.

    400 when nothing is supplied, or when a value is outside its valid range.
    Auxiliary-only input (temperature) is accepted by validation but cannot
    be scored, so it also yields 400.
    """
    parameters = body.model_dump(exclude_none=True)
    if not parameters:
        raise HTTPException(
            status_code=400,
            detail={"error": "At least one parameter is required"},
        )

    violations = schema.range_violations(parameters)
    if violations:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Invalid parameters provided",
                "fields": [
                    {"field": name, "message": message}
                    for name, message in violations.items()
                ],
            },
        )

    try:
        result = calculator.calculate(parameters)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": str(exc)}) from exc

    tips = tip_generator.generate(parameters, result)
    logger.info(
        "Scored %d parameters: wqi=%.2f label=%s tips=%d",
        len(parameters), result.wqi, result.label, len(tips),
    )

    return ScoreResponse(
        wqi=result.wqi,
        label=result.label.value,
        confidence=result.confidence,
        warnings=result.warnings,
        parameter_contributions=result.parameter_contributions,
        tips=tips,
        parameters=parameters,
    )
