"""FastAPI dependency injection factories.

Repository factories take AsyncSession via Depends(get_async_session).
Stateless engine objects share the process-wide DEFAULT_SCHEMA.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from waterspot.config.settings import Settings, get_settings
from waterspot.db.session import get_async_session
from waterspot.ingestion.commit import BulkCommitService
from waterspot.ingestion.validation import BulkValidator
from waterspot.repositories.areas import AreaRepository
from waterspot.repositories.records import RecordRepository
from waterspot.wqi.aggregator import WQICalculator
from waterspot.wqi.schema import DEFAULT_SCHEMA, WaterQualitySchema
from waterspot.wqi.tips import TipGenerator

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_schema() -> WaterQualitySchema:
    return DEFAULT_SCHEMA


def get_calculator(
    schema: WaterQualitySchema = Depends(get_schema),
) -> WQICalculator:
    return WQICalculator(schema)


def get_tip_generator(
    schema: WaterQualitySchema = Depends(get_schema),
) -> TipGenerator:
    return TipGenerator(schema)


def get_validator(
    schema: WaterQualitySchema = Depends(get_schema),
) -> BulkValidator:
    return BulkValidator(schema)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


async def get_area_repo(
    session: AsyncSession = Depends(get_async_session),
) -> AreaRepository:
    return AreaRepository(session)


async def get_record_repo(
    session: AsyncSession = Depends(get_async_session),
) -> RecordRepository:
    return RecordRepository(session)


async def get_commit_service(
    session: AsyncSession = Depends(get_async_session),
    schema: WaterQualitySchema = Depends(get_schema),
    settings: Settings = Depends(get_settings),
) -> BulkCommitService:
    return BulkCommitService(
        session,
        schema=schema,
        batch_size=settings.BULK_BATCH_SIZE,
        error_log_limit=settings.BULK_ERROR_LOG_LIMIT,
    )
