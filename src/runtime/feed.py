"""In-process change feed over stored analyses, keyed by clinician."""

import asyncio
import json
from typing import Any, AsyncIterator

from src.analysis.models import AnalysisRecord
from src.config.logger import get_logger
from src.config.settings import settings
from src.utils import db

logger = get_logger(__name__)

_SUBSCRIBERS: dict[str, set[asyncio.Queue]] = {}
_LOCK = asyncio.Lock()

# Sent in place of the backlog when a subscriber falls too far behind.
RESYNC = "resync"


def record_payload(record: AnalysisRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


async def publish(owner_id: str, event: str, data: dict[str, Any]) -> None:
    async with _LOCK:
        queues = list(_SUBSCRIBERS.get(owner_id, set()))
    if not queues:
        return
    packet = {"event": event, "data": data}
    for q in queues:
        try:
            q.put_nowait(packet)
        except asyncio.QueueFull:
            logger.warning("[feed] subscriber of owner=%s fell behind; asking it to resync", owner_id)
            _drain(q)
            q.put_nowait({"event": RESYNC, "data": {}})


def _drain(queue: asyncio.Queue) -> None:
    while True:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            return


async def analysis_created(record: AnalysisRecord) -> None:
    await publish(record.owner_id, "analysis_created", record_payload(record))


async def analysis_renamed(record: AnalysisRecord) -> None:
    await publish(record.owner_id, "analysis_renamed", record_payload(record))


async def analysis_deleted(owner_id: str, analysis_id: str) -> None:
    await publish(owner_id, "analysis_deleted", {"id": analysis_id})


async def subscribe(owner_id: str) -> asyncio.Queue:
    queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, settings.FEED_QUEUE_MAX))
    async with _LOCK:
        _SUBSCRIBERS.setdefault(owner_id, set()).add(queue)
    return queue


async def unsubscribe(owner_id: str, queue: asyncio.Queue) -> None:
    async with _LOCK:
        queues = _SUBSCRIBERS.get(owner_id)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            _SUBSCRIBERS.pop(owner_id, None)


async def next_event(queue: asyncio.Queue, timeout: float = 15.0) -> dict[str, Any] | None:
    try:
        return await asyncio.wait_for(queue.get(), timeout=timeout)
    except asyncio.TimeoutError:
        return None


def to_sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


async def _snapshot(owner_id: str) -> dict[str, Any]:
    records = await db.list_analyses(owner_id)
    logger.info("[feed] snapshot owner=%s count=%d", owner_id, len(records))
    return {"event": "snapshot", "data": {"items": [record_payload(r) for r in records]}}


async def watch_analyses(
    owner_id: str,
    timeout: float = 15.0,
) -> AsyncIterator[dict[str, Any]]:
    """Yield a snapshot of the owner's analyses, then each later change.

    The subscription is registered before the snapshot is read so no change
    falls between the two. ``None`` is yielded whenever ``timeout`` passes
    quietly so callers can emit keep-alives. A subscriber whose backlog
    overflows gets a fresh snapshot instead of the events it missed.
    """
    queue = await subscribe(owner_id)
    try:
        yield await _snapshot(owner_id)
        while True:
            packet = await next_event(queue, timeout=timeout)
            if packet is not None and packet["event"] == RESYNC:
                packet = await _snapshot(owner_id)
            yield packet
    finally:
        await unsubscribe(owner_id, queue)
