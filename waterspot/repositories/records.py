"""Record repository.

Repos take AsyncSession, call add()/flush() only -- never commit().
Records are append-only: there is no update or merge path.
"""

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from waterspot.db.tables import AreaRow, RecordRow
from waterspot.models.common import new_uuid7, utc_now


@dataclass(frozen=True)
class AreaAverage:
    area_id: UUID
    name: str
    average_wqi: float
    record_count: int


@dataclass(frozen=True)
class RecordSummary:
    """Aggregates behind the dashboard."""

    total_records: int
    areas_covered: int
    average_wqi: float | None
    label_counts: dict[str, int] = field(default_factory=dict)
    top_areas: list[AreaAverage] = field(default_factory=list)


class RecordRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        area_id: UUID,
        sample_date: date,
        measurements: dict[str, float | None],
        wqi: float | None = None,
        label: str | None = None,
        confidence: int | None = None,
        source: str,
    ) -> RecordRow:
        """Insert one record. Unknown measurement names raise TypeError."""
        row = RecordRow(
            record_id=new_uuid7(),
            area_id=area_id,
            sample_date=sample_date,
            wqi=wqi,
            label=label,
            confidence=confidence,
            source=source,
            created_at=utc_now(),
            **measurements,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, record_id: UUID) -> RecordRow | None:
        return await self._session.get(RecordRow, record_id)

    async def list_by_area(self, area_id: UUID) -> list[RecordRow]:
        result = await self._session.execute(
            select(RecordRow)
            .where(RecordRow.area_id == area_id)
            .order_by(RecordRow.sample_date.desc())
        )
        return list(result.scalars().all())

    async def list_recent(self, limit: int = 50) -> list[RecordRow]:
        result = await self._session.execute(
            select(RecordRow).order_by(RecordRow.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(RecordRow.record_id)))
        return int(result.scalar_one())

    async def summary(self, top_n: int = 5) -> RecordSummary:
        """Totals, label distribution, and the best-scoring areas."""
        totals = await self._session.execute(
            select(
                func.count(RecordRow.record_id),
                func.count(func.distinct(RecordRow.area_id)),
                func.avg(RecordRow.wqi),
            )
        )
        total_records, areas_covered, average_wqi = totals.one()

        label_rows = await self._session.execute(
            select(RecordRow.label, func.count(RecordRow.record_id))
            .where(RecordRow.label.is_not(None))
            .group_by(RecordRow.label)
        )
        label_counts = {label: int(count) for label, count in label_rows.all()}

        avg_wqi = func.avg(RecordRow.wqi)
        area_rows = await self._session.execute(
            select(
                AreaRow.area_id,
                AreaRow.name,
                avg_wqi,
                func.count(RecordRow.record_id),
            )
            .join(RecordRow, RecordRow.area_id == AreaRow.area_id)
            .where(RecordRow.wqi.is_not(None))
            .group_by(AreaRow.area_id, AreaRow.name)
            .order_by(avg_wqi.desc())
            .limit(top_n)
        )
        top_areas = [
            AreaAverage(
                area_id=area_id,
                name=name,
                average_wqi=round(float(avg), 2),
                record_count=int(count),
            )
            for area_id, name, avg, count in area_rows.all()
        ]

        return RecordSummary(
            total_records=int(total_records),
            areas_covered=int(areas_covered),
            average_wqi=None if average_wqi is None else round(float(average_wqi), 2),
            label_counts=label_counts,
            top_areas=top_areas,
        )
