import asyncio

import pytest

from src.config.settings import settings
from src.utils import db


def _run(coro):
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def _tmp_db(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "nested" / "analyses.db"))
    _run(db.init_db())


def test_save_and_get_roundtrip() -> None:
    saved = _run(db.save_analysis("dr-1", "Final Result: normal.", "xray", "medical-images/a.png"))
    loaded = _run(db.get_analysis(saved.id))
    assert loaded == saved
    assert loaded.custom_label is None
    assert loaded.created_at.tzinfo is not None


def test_get_unknown_id_returns_none() -> None:
    assert _run(db.get_analysis("missing")) is None


def test_list_is_per_owner_newest_first() -> None:
    first = _run(db.save_analysis("dr-1", "first", "mammogram"))
    second = _run(db.save_analysis("dr-1", "second", "other"))
    _run(db.save_analysis("dr-2", "someone else", "other"))

    items = _run(db.list_analyses("dr-1"))
    assert [item.id for item in items] == [second.id, first.id]


def test_rename_trims_label() -> None:
    saved = _run(db.save_analysis("dr-1", "text", "other"))
    renamed = _run(db.rename_analysis(saved.id, "dr-1", "  Left breast follow-up  "))
    assert renamed.custom_label == "Left breast follow-up"
    assert renamed.raw_text == "text"
    assert renamed.created_at == saved.created_at


def test_rename_rules() -> None:
    saved = _run(db.save_analysis("dr-1", "text", "other"))
    with pytest.raises(ValueError):
        _run(db.rename_analysis(saved.id, "dr-1", "   "))
    with pytest.raises(PermissionError):
        _run(db.rename_analysis(saved.id, "dr-2", "Mine now"))
    assert _run(db.rename_analysis("missing", "dr-1", "Label")) is None
    assert _run(db.get_analysis(saved.id)).custom_label is None


def test_delete_rules() -> None:
    saved = _run(db.save_analysis("dr-1", "text", "other"))
    with pytest.raises(PermissionError):
        _run(db.delete_analysis(saved.id, "dr-2"))
    assert _run(db.delete_analysis(saved.id, "dr-1")) is True
    assert _run(db.get_analysis(saved.id)) is None
    assert _run(db.delete_analysis(saved.id, "dr-1")) is False
