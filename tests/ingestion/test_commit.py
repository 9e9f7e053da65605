"""Tests for BulkCommitService: batching, per-row isolation, summaries."""

from datetime import date

import pytest
from sqlalchemy import select

from waterspot.db.tables import AreaRow, RecordRow
from waterspot.ingestion.commit import (
    BULK_UPLOAD_SOURCE,
    BulkCommitService,
    CommitSummary,
    build_measurement_set,
)
from waterspot.ingestion.validation import BulkValidator
from waterspot.repositories.areas import AreaRepository
from waterspot.repositories.records import RecordRepository
from waterspot.wqi.aggregator import WQICalculator


def _row(area: str = "North", **overrides) -> dict:
    row = {
        "area": area,
        "latitude": 40.7,
        "longitude": -74.0,
        "date": "2024-01-15",
        "ph": 7.0,
        "tds": 200.0,
        "nitrate": 10.0,
    }
    row.update(overrides)
    return row


@pytest.fixture
def commit_spy(db_session, monkeypatch):
    """Count session.commit() calls while still committing."""
    calls: list[int] = []
    original = db_session.commit

    async def _commit() -> None:
        calls.append(1)
        await original()

    monkeypatch.setattr(db_session, "commit", _commit)
    return calls


# ===================================================================
# CommitSummary
# ===================================================================


class TestCommitSummary:
    def test_error_log_is_bounded(self) -> None:
        summary = CommitSummary(total_rows=20, error_log_limit=3)
        for n in range(1, 6):
            summary.record_failure(n, ValueError("bad"))
        assert summary.failed == 5
        assert summary.errors == ["Row 1: bad", "Row 2: bad", "Row 3: bad"]

    def test_message_truncated(self) -> None:
        summary = CommitSummary()
        summary.record_failure(7, ValueError("x" * 500))
        assert summary.errors[0] == "Row 7: " + "x" * 200

    def test_empty_message_falls_back_to_type(self) -> None:
        summary = CommitSummary()
        summary.record_failure(1, RuntimeError())
        assert summary.errors == ["Row 1: RuntimeError"]


# ===================================================================
# Row preparation
# ===================================================================


class TestPrepareRow:
    @pytest.mark.anyio
    async def test_blank_area_rejected(self, db_session) -> None:
        service = BulkCommitService(db_session)
        with pytest.raises(ValueError, match="Area name is required"):
            service.prepare_row(_row(area="  "))

    @pytest.mark.anyio
    async def test_missing_date_rejected(self, db_session) -> None:
        service = BulkCommitService(db_session)
        with pytest.raises(ValueError, match="Date is required"):
            service.prepare_row(_row(date=None))

    @pytest.mark.anyio
    async def test_zero_is_kept(self, db_session) -> None:
        prepared = BulkCommitService(db_session).prepare_row(_row(turbidity=0, nitrate="0"))
        assert prepared.measurements["turbidity"] == 0.0
        assert prepared.measurements["nitrate"] == 0.0

    @pytest.mark.anyio
    async def test_unparsable_cells_become_none(self, db_session) -> None:
        prepared = BulkCommitService(db_session).prepare_row(_row(ph="abc", latitude="n/a"))
        assert prepared.measurements["ph"] is None
        assert prepared.latitude is None

    @pytest.mark.anyio
    async def test_auxiliary_only_is_unscored(self, db_session) -> None:
        prepared = BulkCommitService(db_session).prepare_row(
            {"area": "North", "date": "2024-01-15", "temperature": 22.0}
        )
        assert prepared.result is None
        assert prepared.measurements["temperature"] == 22.0

    def test_measurement_set_skips_blanks(self) -> None:
        assert build_measurement_set({"ph": "7", "tds": "", "area": "x"}) == {"ph": 7.0}


# ===================================================================
# Commit pipeline
# ===================================================================


class TestCommit:
    @pytest.mark.anyio
    async def test_batches_commit_at_boundaries(self, db_session, commit_spy) -> None:
        service = BulkCommitService(db_session, batch_size=100)
        summary = await service.commit([_row() for _ in range(150)])

        assert summary.total_rows == 150
        assert summary.processed == 150
        assert summary.failed == 0
        assert len(commit_spy) == 2
        assert await RecordRepository(db_session).count() == 150

    @pytest.mark.anyio
    async def test_bad_row_does_not_abort_batch(self, db_session) -> None:
        rows = [_row() for _ in range(150)]
        rows[41] = _row(date="not-a-date")

        summary = await BulkCommitService(db_session).commit(rows)

        assert summary.processed == 149
        assert summary.failed == 1
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith("Row 42: ")
        assert await RecordRepository(db_session).count() == 149

    @pytest.mark.anyio
    async def test_error_log_capped(self, db_session) -> None:
        rows = [_row(area="") for _ in range(12)]
        summary = await BulkCommitService(db_session, error_log_limit=10).commit(rows)
        assert summary.failed == 12
        assert len(summary.errors) == 10
        assert summary.errors[-1] == "Row 10: Area name is required"

    @pytest.mark.anyio
    async def test_empty_input(self, db_session, commit_spy) -> None:
        summary = await BulkCommitService(db_session).commit([])
        assert (summary.total_rows, summary.processed, summary.failed) == (0, 0, 0)
        assert commit_spy == []

    @pytest.mark.anyio
    async def test_record_carries_wqi(self, db_session) -> None:
        row = _row(ph=8.5, tds=600.0)
        await BulkCommitService(db_session).commit([row])

        record = (await db_session.execute(select(RecordRow))).scalar_one()
        expected = WQICalculator().calculate({"ph": 8.5, "tds": 600.0, "nitrate": 10.0})
        assert record.wqi == expected.wqi
        assert record.label == expected.label.value
        assert record.confidence == expected.confidence
        assert record.source == BULK_UPLOAD_SOURCE
        assert record.sample_date == date(2024, 1, 15)

    @pytest.mark.anyio
    async def test_validated_row_scores_like_direct_call(self, db_session) -> None:
        validator = BulkValidator()
        raw = {column: "" for column in validator.required_columns}
        raw.update({
            "area": "North", "latitude": "40.7", "longitude": "-74.0",
            "date": "01/15/2024", "ph": "8.1", "tds": "640", "turbidity": "3.5",
            "nitrate": "52", "fluoride": "1.2", "temperature": "36",
        })
        report = validator.validate(validator.required_columns, [raw])
        assert report.errors == []
        validated = report.rows[0]

        expected = WQICalculator().calculate({
            "ph": 8.1, "tds": 640.0, "turbidity": 3.5,
            "nitrate": 52.0, "fluoride": 1.2, "temperature": 36.0,
        })
        assert WQICalculator().calculate(build_measurement_set(validated)) == expected

        await BulkCommitService(db_session).commit([validated])
        record = (await db_session.execute(select(RecordRow))).scalar_one()
        assert (record.wqi, record.label, record.confidence) == (
            expected.wqi, expected.label.value, expected.confidence,
        )

    @pytest.mark.anyio
    async def test_unscored_record_persisted(self, db_session) -> None:
        row = {"area": "North", "date": "2024-01-15", "temperature": 22.0}
        summary = await BulkCommitService(db_session).commit([row])

        assert summary.processed == 1
        record = (await db_session.execute(select(RecordRow))).scalar_one()
        assert record.wqi is None
        assert record.label is None
        assert record.confidence is None
        assert record.temperature == 22.0

    @pytest.mark.anyio
    async def test_zero_measurement_persisted(self, db_session) -> None:
        await BulkCommitService(db_session).commit([_row(turbidity=0.0)])
        record = (await db_session.execute(select(RecordRow))).scalar_one()
        assert record.turbidity == 0.0
        assert record.hardness is None

    @pytest.mark.anyio
    async def test_area_reused_by_name(self, db_session) -> None:
        rows = [
            _row(area="North", latitude=1.0, longitude=2.0),
            _row(area="North", latitude=9.0, longitude=9.0),
            _row(area="South"),
        ]
        summary = await BulkCommitService(db_session).commit(rows)
        assert summary.processed == 3

        areas = await AreaRepository(db_session).list_all()
        assert [a.name for a in areas] == ["North", "South"]
        north = areas[0]
        assert (north.latitude, north.longitude) == (1.0, 2.0)
        assert len(await RecordRepository(db_session).list_by_area(north.area_id)) == 2

    @pytest.mark.anyio
    async def test_persistence_failure_rolls_back_only_its_row(
        self, db_session, monkeypatch,
    ) -> None:
        service = BulkCommitService(db_session)
        records = service._records
        original_create = records.create
        south_id: list = []

        async def _create(**kwargs):
            if kwargs["area_id"] in south_id:
                raise RuntimeError("disk full")
            return await original_create(**kwargs)

        original_get_or_create = service._areas.get_or_create

        async def _get_or_create(**kwargs):
            area = await original_get_or_create(**kwargs)
            if kwargs["name"] == "South":
                south_id.append(area.area_id)
            return area

        monkeypatch.setattr(records, "create", _create)
        monkeypatch.setattr(service._areas, "get_or_create", _get_or_create)

        summary = await service.commit([_row("North"), _row("South"), _row("East")])

        assert summary.processed == 2
        assert summary.failed == 1
        assert summary.errors == ["Row 2: disk full"]
        result = await db_session.execute(select(AreaRow.name).order_by(AreaRow.name))
        names = result.scalars().all()
        assert names == ["East", "North"]
        assert await RecordRepository(db_session).count() == 2

    @pytest.mark.anyio
    async def test_batch_size_must_be_positive(self, db_session) -> None:
        with pytest.raises(ValueError, match="batch_size"):
            BulkCommitService(db_session, batch_size=0)
