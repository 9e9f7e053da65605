"""Area repository.

Repos take AsyncSession, call add()/flush() only -- never commit().

get_or_create is the idempotent lookup the ingestion path relies on:
names are unique, the insert runs inside a SAVEPOINT, and a unique
violation from a concurrent writer falls back to reading the winner.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from waterspot.db.tables import AreaRow
from waterspot.models.common import new_uuid7, utc_now


class AreaRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, area_id: UUID) -> AreaRow | None:
        return await self._session.get(AreaRow, area_id)

    async def get_by_name(self, name: str) -> AreaRow | None:
        result = await self._session.execute(
            select(AreaRow).where(AreaRow.name == name).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        *,
        name: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> AreaRow:
        """Return the area called ``name``, creating it on first sight.

        Coordinates are only used on creation; an existing area keeps
        whatever it was created with.
        """
        existing = await self.get_by_name(name)
        if existing is not None:
            return existing

        row = AreaRow(
            area_id=new_uuid7(),
            name=name,
            latitude=latitude,
            longitude=longitude,
            created_at=utc_now(),
        )
        try:
            async with self._session.begin_nested():
                self._session.add(row)
                await self._session.flush()
        except IntegrityError:
            winner = await self.get_by_name(name)
            if winner is None:
                raise
            return winner
        return row

    async def list_all(self) -> list[AreaRow]:
        result = await self._session.execute(select(AreaRow).order_by(AreaRow.name))
        return list(result.scalars().all())
