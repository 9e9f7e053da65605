"""SQLAlchemy ORM table models for WaterSpot.

Two tables:
- AreaRow: named geographic grouping, unique by name
- RecordRow: one measurement event, optionally carrying a computed WQI.
  Records are append-only in the ingestion path.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from waterspot.db.session import Base


class AreaRow(Base):
    __tablename__ = "areas"

    area_id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class RecordRow(Base):
    """Immutable measurement record. Linked N:1 to AreaRow."""

    __tablename__ = "records"

    record_id: Mapped[UUID] = mapped_column(primary_key=True)
    area_id: Mapped[UUID] = mapped_column(
        ForeignKey("areas.area_id"), nullable=False, index=True,
    )
    sample_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    ph: Mapped[float | None] = mapped_column(Float, nullable=True)
    hardness: Mapped[float | None] = mapped_column(Float, nullable=True)
    tds: Mapped[float | None] = mapped_column(Float, nullable=True)
    turbidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    alkalinity: Mapped[float | None] = mapped_column(Float, nullable=True)
    nitrate: Mapped[float | None] = mapped_column(Float, nullable=True)
    fluoride: Mapped[float | None] = mapped_column(Float, nullable=True)
    chloride: Mapped[float | None] = mapped_column(Float, nullable=True)
    conductivity: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)

    wqi: Mapped[float | None] = mapped_column(Float, nullable=True)
    label: Mapped[str | None] = mapped_column(String(20), nullable=True)
    confidence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
