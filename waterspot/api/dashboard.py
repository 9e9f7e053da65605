"""FastAPI read-side endpoints for persisted records.

GET /v1/areas              -- list areas
GET /v1/dashboard/summary  -- record totals, label distribution, top areas
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from waterspot.api.dependencies import get_area_repo, get_record_repo
from waterspot.repositories.areas import AreaRepository
from waterspot.repositories.records import RecordRepository
from waterspot.wqi.models import QualityLabel

router = APIRouter(prefix="/v1", tags=["dashboard"])


class AreaResponse(BaseModel):
    area_id: str
    name: str
    latitude: float | None = None
    longitude: float | None = None


class AreaListResponse(BaseModel):
    items: list[AreaResponse]


class TopAreaResponse(BaseModel):
    area_id: str
    name: str
    average_wqi: float
    record_count: int


class DashboardSummaryResponse(BaseModel):
    total_records: int
    areas_covered: int
    average_wqi: float | None
    distribution: dict[str, int]
    top_areas: list[TopAreaResponse]


@router.get("/areas", response_model=AreaListResponse)
async def list_areas(
    repo: AreaRepository = Depends(get_area_repo),
) -> AreaListResponse:
    rows = await repo.list_all()
    return AreaListResponse(items=[
        AreaResponse(
            area_id=str(r.area_id),
            name=r.name,
            latitude=r.latitude,
            longitude=r.longitude,
        )
        for r in rows
    ])


@router.get("/dashboard/summary", response_model=DashboardSummaryResponse)
async def dashboard_summary(
    top_n: int = Query(default=5, ge=1, le=50),
    repo: RecordRepository = Depends(get_record_repo),
) -> DashboardSummaryResponse:
    """Aggregate KPIs. Every label appears in the distribution, zero or not."""
    summary = await repo.summary(top_n=top_n)
    return DashboardSummaryResponse(
        total_records=summary.total_records,
        areas_covered=summary.areas_covered,
        average_wqi=summary.average_wqi,
        distribution={
            label.value: summary.label_counts.get(label.value, 0)
            for label in QualityLabel
        },
        top_areas=[
            TopAreaResponse(
                area_id=str(a.area_id),
                name=a.name,
                average_wqi=a.average_wqi,
                record_count=a.record_count,
            )
            for a in summary.top_areas
        ],
    )
