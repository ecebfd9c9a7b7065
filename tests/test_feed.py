import asyncio

from src.config.settings import settings
from src.runtime import feed
from src.utils import db


def _run(coro):
    return asyncio.run(coro)


def test_publish_reaches_subscriber_until_unsubscribed() -> None:
    async def scenario():
        queue = await feed.subscribe("dr-pub")
        await feed.publish("dr-pub", "analysis_deleted", {"id": "a1"})
        first = await feed.next_event(queue, timeout=0.1)

        await feed.unsubscribe("dr-pub", queue)
        await feed.publish("dr-pub", "analysis_deleted", {"id": "a2"})
        second = await feed.next_event(queue, timeout=0.01)
        return first, second

    first, second = _run(scenario())
    assert first == {"event": "analysis_deleted", "data": {"id": "a1"}}
    assert second is None
    assert "dr-pub" not in feed._SUBSCRIBERS


def test_events_are_scoped_to_owner() -> None:
    async def scenario():
        queue = await feed.subscribe("dr-a")
        try:
            await feed.publish("dr-b", "analysis_deleted", {"id": "x"})
            return await feed.next_event(queue, timeout=0.01)
        finally:
            await feed.unsubscribe("dr-a", queue)

    assert _run(scenario()) is None


def test_to_sse_format() -> None:
    assert feed.to_sse("analysis_deleted", {"id": "صورة"}) == (
        'event: analysis_deleted\ndata: {"id": "صورة"}\n\n'
    )


def test_watch_analyses_snapshot_then_changes(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "feed.db"))

    async def scenario():
        await db.init_db()
        existing = await db.save_analysis("dr-1", "older", "xray")
        stream = feed.watch_analyses("dr-1", timeout=0.05)
        snapshot = await stream.__anext__()

        created = await db.save_analysis("dr-1", "newer", "other")
        await feed.analysis_created(created)
        change = await stream.__anext__()
        quiet = await stream.__anext__()
        await stream.aclose()
        return existing, created, snapshot, change, quiet

    existing, created, snapshot, change, quiet = _run(scenario())
    assert snapshot["event"] == "snapshot"
    assert [item["id"] for item in snapshot["data"]["items"]] == [existing.id]
    assert change["event"] == "analysis_created"
    assert change["data"]["id"] == created.id
    assert change["data"]["raw_text"] == "newer"
    assert quiet is None
    assert "dr-1" not in feed._SUBSCRIBERS


def test_overflowing_subscriber_is_told_to_resync(monkeypatch) -> None:
    monkeypatch.setattr(settings, "FEED_QUEUE_MAX", 2)

    async def scenario():
        queue = await feed.subscribe("dr-slow")
        try:
            for n in range(5):
                await feed.publish("dr-slow", "analysis_deleted", {"id": f"a{n}"})
            size = queue.qsize()
            return size, await feed.next_event(queue, timeout=0.01)
        finally:
            await feed.unsubscribe("dr-slow", queue)

    size, packet = _run(scenario())
    assert size <= 2
    assert packet == {"event": feed.RESYNC, "data": {}}


def test_watch_analyses_replaces_lost_backlog_with_snapshot(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "feed.db"))
    monkeypatch.setattr(settings, "FEED_QUEUE_MAX", 1)

    async def scenario():
        await db.init_db()
        stream = feed.watch_analyses("dr-2", timeout=0.05)
        first = await stream.__anext__()

        saved = [await db.save_analysis("dr-2", f"text {n}", "other") for n in range(3)]
        for record in saved:
            await feed.analysis_created(record)
        second = await stream.__anext__()
        await stream.aclose()
        return saved, first, second

    saved, first, second = _run(scenario())
    assert first == {"event": "snapshot", "data": {"items": []}}
    assert second["event"] == "snapshot"
    assert {item["id"] for item in second["data"]["items"]} == {r.id for r in saved}
