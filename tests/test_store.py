from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

from pybustrack._constants import EPOCH_ZERO
from pybustrack.exceptions import BusTrackPersistenceError
from pybustrack.models.notification import NotificationRecord
from pybustrack.store import MemoryNotificationStore, NotificationStore, RetentionPolicy, SqliteNotificationStore


BASE_MS = 1_770_000_000_000


def _record(notification_id: str, offset_ms: int, **extra: object) -> NotificationRecord:
    return NotificationRecord.model_validate(
        {"_id": notification_id, "time": BASE_MS + offset_ms, "title": notification_id, **extra}
    )


@pytest.fixture(params=["memory", "sqlite"])
def make_store(request: pytest.FixtureRequest, tmp_path: Path):
    def _make(max_items: int = 30) -> NotificationStore:
        retention = RetentionPolicy(max_items)
        if request.param == "memory":
            return MemoryNotificationStore(retention=retention)
        return SqliteNotificationStore(tmp_path / "notifications.db", retention=retention)

    return _make


@pytest.mark.asyncio
async def test_empty_store(make_store) -> None:
    store = make_store()

    assert await store.get_all() == []
    assert await store.latest_timestamp() == EPOCH_ZERO
    assert await store.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_upsert_same_id_keeps_one_record(make_store) -> None:
    store = make_store()

    await store.upsert_all([_record("a", 1_000, title="first")])
    await store.upsert_all([_record("a", 1_000, title="second")])

    records = await store.get_all()
    assert [r.id for r in records] == ["a"]
    assert records[0].title == "second"


@pytest.mark.asyncio
async def test_get_all_is_newest_first(make_store) -> None:
    store = make_store()

    await store.upsert_all([_record("old", 1_000), _record("new", 3_000), _record("mid", 2_000)])

    assert [r.id for r in await store.get_all()] == ["new", "mid", "old"]


@pytest.mark.asyncio
async def test_retention_keeps_newest(make_store) -> None:
    store = make_store(max_items=30)

    await store.upsert_all([_record(f"n{i}", 1_000 + i) for i in range(35)])

    records = await store.get_all()
    assert len(records) == 30
    assert records[0].id == "n34"
    assert records[-1].id == "n5"
    assert await store.get_by_id("n4") is None


@pytest.mark.asyncio
async def test_retention_applies_across_writes(make_store) -> None:
    store = make_store(max_items=3)

    await store.upsert_all([_record("a", 1), _record("b", 2), _record("c", 3)])
    await store.upsert_all([_record("d", 4)])

    assert [r.id for r in await store.get_all()] == ["d", "c", "b"]


@pytest.mark.asyncio
async def test_retention_tie_keeps_first_inserted(make_store) -> None:
    store = make_store(max_items=2)

    await store.upsert_all([_record("x", 5), _record("y", 5), _record("z", 5)])

    assert sorted(r.id for r in await store.get_all()) == ["x", "y"]


@pytest.mark.asyncio
async def test_latest_timestamp_is_monotonic(make_store) -> None:
    store = make_store()

    await store.upsert_all([_record("a", 5_000)])
    first = await store.latest_timestamp()
    await store.upsert_all([_record("b", 9_000)])
    second = await store.latest_timestamp()
    # Late arrival with an older timestamp does not move the watermark back.
    await store.upsert_all([_record("c", 2_000)])
    third = await store.latest_timestamp()

    assert first == BASE_MS + 5_000
    assert second == BASE_MS + 9_000
    assert third == BASE_MS + 9_000


@pytest.mark.asyncio
async def test_delete_by_id(make_store) -> None:
    store = make_store()
    await store.upsert_all([_record("a", 1), _record("b", 2)])

    assert await store.delete_by_id("a") is True
    assert await store.delete_by_id("a") is False
    assert [r.id for r in await store.get_all()] == ["b"]


@pytest.mark.asyncio
async def test_put_updates_only_existing(make_store) -> None:
    store = make_store()
    await store.upsert_all([_record("a", 1)])

    assert await store.put(_record("a", 1).as_read()) is True
    assert await store.put(_record("ghost", 1)) is False

    stored = await store.get_by_id("a")
    assert stored is not None and stored.read is True
    assert await store.get_by_id("ghost") is None


@pytest.mark.asyncio
async def test_upsert_does_not_clear_read_flag(make_store) -> None:
    store = make_store()
    await store.upsert_all([_record("a", 1)])
    await store.put(_record("a", 1).as_read())

    await store.upsert_all([_record("a", 1, title="edited")])

    stored = await store.get_by_id("a")
    assert stored is not None
    assert stored.read is True
    assert stored.title == "edited"


@pytest.mark.asyncio
async def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "cache.db"
    first = SqliteNotificationStore(path)
    await first.upsert_all([_record("a", 1_000, type="alert", imageUrl="img/1.png")])
    await first.put(_record("a", 1_000).as_read())

    second = SqliteNotificationStore(path)
    records = await second.get_all()

    assert len(records) == 1
    assert records[0].id == "a"
    assert records[0].type == "alert"
    assert records[0].image_ref == "img/1.png"
    assert records[0].read is True
    assert records[0].time_ms == BASE_MS + 1_000


@pytest.mark.asyncio
async def test_sqlite_store_skips_corrupt_rows(tmp_path: Path) -> None:
    path = tmp_path / "cache.db"
    store = SqliteNotificationStore(path)
    await store.upsert_all([_record("good", 2_000)])

    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(text("INSERT INTO notifications (_id, time_ms, read, body) VALUES ('bad', 1, 0, 'not json')"))
    engine.dispose()

    assert [r.id for r in await store.get_all()] == ["good"]


@pytest.mark.asyncio
async def test_sqlite_store_unavailable_raises_persistence_error(tmp_path: Path) -> None:
    store = SqliteNotificationStore(tmp_path / "missing-dir" / "cache.db")

    with pytest.raises(BusTrackPersistenceError):
        await store.get_all()
    with pytest.raises(BusTrackPersistenceError):
        await store.upsert_all([_record("a", 1)])


@pytest.mark.asyncio
async def test_sqlite_reader_never_sees_untrimmed_write(tmp_path: Path) -> None:
    path = tmp_path / "cache.db"
    writer = SqliteNotificationStore(path, retention=RetentionPolicy(30))
    reader = SqliteNotificationStore(path, retention=RetentionPolicy(30))
    await writer.upsert_all([_record(f"old{i}", i) for i in range(10)])

    async def _read_repeatedly() -> list[int]:
        sizes = []
        for _ in range(20):
            sizes.append(len(await reader.get_all()))
            await asyncio.sleep(0)
        return sizes

    batch = [_record(f"new{i}", 1_000 + i) for i in range(40)]
    _, sizes = await asyncio.gather(writer.upsert_all(batch), _read_repeatedly())

    assert set(sizes) <= {10, 30}
    assert len(await reader.get_all()) == 30
    await writer.close()
    await reader.close()


@pytest.mark.asyncio
async def test_sqlite_stores_share_file_state(tmp_path: Path) -> None:
    path = tmp_path / "cache.db"
    first = SqliteNotificationStore(path)
    second = SqliteNotificationStore(path)

    await first.upsert_all([_record("a", 1)])
    await second.put(_record("a", 1).as_read())

    stored = await first.get_by_id("a")
    assert stored is not None and stored.read is True
