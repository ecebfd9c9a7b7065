import os
import uuid
from datetime import datetime, timezone

import aiosqlite

from src.analysis.models import AnalysisRecord
from src.config.settings import settings


def _db_path() -> str:
    return settings.DB_PATH


def _row_to_record(row: aiosqlite.Row) -> AnalysisRecord:
    return AnalysisRecord(
        id=row["id"],
        image_ref=row["image_ref"] or "",
        raw_text=row["raw_text"],
        image_category=row["image_category"],
        owner_id=row["owner_id"],
        custom_label=row["custom_label"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


async def init_db():
    db_path = _db_path()
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS medical_image_analyses (
                id TEXT PRIMARY KEY,
                image_ref TEXT NOT NULL DEFAULT '',
                raw_text TEXT NOT NULL,
                image_category TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                custom_label TEXT,
                created_at TEXT NOT NULL
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_analyses_owner_created
            ON medical_image_analyses (owner_id, created_at DESC)
        """)
        await db.commit()


async def save_analysis(
    owner_id: str,
    raw_text: str,
    image_category: str,
    image_ref: str = "",
) -> AnalysisRecord:
    record = AnalysisRecord(
        id=uuid.uuid4().hex,
        image_ref=image_ref,
        raw_text=raw_text,
        image_category=image_category,
        owner_id=owner_id,
        custom_label=None,
        created_at=datetime.now(timezone.utc),
    )
    async with aiosqlite.connect(_db_path()) as db:
        await db.execute(
            "INSERT INTO medical_image_analyses "
            "(id, image_ref, raw_text, image_category, owner_id, custom_label, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                record.id,
                record.image_ref,
                record.raw_text,
                record.image_category,
                record.owner_id,
                record.custom_label,
                record.created_at.isoformat(),
            ),
        )
        await db.commit()
    return record


async def get_analysis(analysis_id: str) -> AnalysisRecord | None:
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM medical_image_analyses WHERE id = ?",
            (analysis_id,),
        )
        row = await cursor.fetchone()
        return _row_to_record(row) if row else None


async def list_analyses(owner_id: str) -> list[AnalysisRecord]:
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM medical_image_analyses WHERE owner_id = ? ORDER BY created_at DESC",
            (owner_id,),
        )
        return [_row_to_record(r) for r in await cursor.fetchall()]


async def _owned(db: aiosqlite.Connection, analysis_id: str, owner_id: str) -> bool:
    cursor = await db.execute(
        "SELECT owner_id FROM medical_image_analyses WHERE id = ?",
        (analysis_id,),
    )
    row = await cursor.fetchone()
    if row is None:
        return False
    if row[0] != owner_id:
        raise PermissionError(f"analysis {analysis_id} belongs to another clinician")
    return True


async def rename_analysis(analysis_id: str, owner_id: str, custom_label: str) -> AnalysisRecord | None:
    """Set the only mutable field. Returns None for an unknown id."""
    label = (custom_label or "").strip()
    if not label:
        raise ValueError("custom_label must not be empty")

    async with aiosqlite.connect(_db_path()) as db:
        if not await _owned(db, analysis_id, owner_id):
            return None
        await db.execute(
            "UPDATE medical_image_analyses SET custom_label = ? WHERE id = ?",
            (label, analysis_id),
        )
        await db.commit()
    return await get_analysis(analysis_id)


async def delete_analysis(analysis_id: str, owner_id: str) -> bool:
    async with aiosqlite.connect(_db_path()) as db:
        if not await _owned(db, analysis_id, owner_id):
            return False
        await db.execute(
            "DELETE FROM medical_image_analyses WHERE id = ?",
            (analysis_id,),
        )
        await db.commit()
    return True
