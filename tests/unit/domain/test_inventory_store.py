import pytest
import time_machine
from datetime import datetime, timezone
from redis.exceptions import NoPermissionError
from courtside.domain.exceptions import PermissionDenied
from courtside.domain.inventory import store
from courtside.domain.inventory.schemas import EventInventoryDTO, SectionInventoryDTO
from courtside.domain.venue.layout import SECTION_LAYOUT


class _FakePipeline:
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self.error = error

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def __getattr__(self, name):
        def _record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
        return _record

    async def execute(self):
        if self.error:
            raise self.error
        return [True] * len(self.calls)


def _redis_with(mocker, pipe):
    r = mocker.Mock()
    r.pipeline.return_value = pipe
    return r


@time_machine.travel("2025-01-01 12:00:00+00:00", tick=False)
@pytest.mark.asyncio
async def test_apply_deltas_increments_counters_and_sets_totals(mocker):
    pipe = _FakePipeline()
    r = _redis_with(mocker, pipe)

    await store.apply_deltas(r, "evt1", {"110": store.SectionDelta(taken=2), "201": store.SectionDelta(unavailable=-1)}, 2)

    assert pipe.calls == [
        ("hincrby", ("inventory:evt1", "section:110:taken", 2), {}),
        ("hset", ("inventory:evt1", "section:110:total", 288), {}),
        ("hincrby", ("inventory:evt1", "section:201:unavailable", -1), {}),
        ("hset", ("inventory:evt1", "section:201:total", 200), {}),
        ("hincrby", ("inventory:evt1", "totalSeatsSold", 2), {}),
        ("hset", ("inventory:evt1", "updatedAt", "2025-01-01T12:00:00.000+00:00"), {}),
    ]
    r.pipeline.assert_called_once_with(transaction=True)


@pytest.mark.asyncio
async def test_apply_deltas_maps_no_permission_to_permission_denied(mocker):
    r = _redis_with(mocker, _FakePipeline(error=NoPermissionError("NOPERM")))

    with pytest.raises(PermissionDenied) as e:
        await store.apply_deltas(r, "evt1", {"110": store.SectionDelta(taken=1)}, 1)

    assert e.value.ctx == {"key": "inventory:evt1"}


@pytest.mark.asyncio
async def test_overwrite_replaces_hash(mocker):
    pipe = _FakePipeline()
    r = _redis_with(mocker, pipe)
    snapshot = EventInventoryDTO(
        event_id="evt1",
        sections={"110": SectionInventoryDTO(taken=3, unavailable=1, total=288)},
        total_seats_sold=3,
        source="ledger",
    )

    await store.overwrite(r, snapshot)

    assert pipe.calls[0] == ("delete", ("inventory:evt1",), {})
    name, args, kwargs = pipe.calls[1]
    assert name == "hset"
    assert kwargs["mapping"]["section:110:taken"] == 3
    assert kwargs["mapping"]["section:110:unavailable"] == 1
    assert kwargs["mapping"]["totalSeatsSold"] == 3


@pytest.mark.asyncio
async def test_read_missing_hash_returns_none(mocker):
    r = mocker.Mock()
    r.hgetall = mocker.AsyncMock(return_value={})

    assert await store.read(r, "evt1") is None


def test_parse_snapshot_ignores_unknown_fields():
    raw = {
        "section:110:taken": "4",
        "section:110:unavailable": "2",
        "section:110:total": "288",
        "section:110:bogus": "9",
        "stray": "1",
        "totalSeatsSold": "4",
        "updatedAt": "2025-01-01T12:00:00.000+00:00",
    }

    snapshot = store.parse_snapshot("evt1", raw)

    assert snapshot.source == "projection"
    assert snapshot.sections["110"] == SectionInventoryDTO(taken=4, unavailable=2, total=288)
    assert set(snapshot.sections) == set(SECTION_LAYOUT)
    assert snapshot.sections["216"] == SectionInventoryDTO(total=200)
    assert snapshot.sold_out is False
    assert snapshot.total_seats_sold == 4
    assert snapshot.updated_at == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
