import asyncio
import io
import json
import time

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

import api.main as main
from api.schemas import RenameRequest
from src.config.settings import settings
from src.tool.envelope import error_payload, ok_payload
from src.utils import db

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
FREEFORM = "Findings: mild density.\nFindings: mild density.\nFinal Result: likely normal."


def _run(coro):
    return asyncio.run(coro)


def _upload(content: bytes = PNG_BYTES, content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename="scan 01.png",
        headers=Headers({"content-type": content_type}),
    )


def _status(exc_info) -> int:
    return getattr(exc_info.value, "status_code", None)


@pytest.fixture(autouse=True)
def _storage(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DB_PATH", str(tmp_path / "analyses.db"))
    monkeypatch.setattr(settings, "IMAGE_DIR", str(tmp_path / "images"))
    _run(db.init_db())


def _answer_with(monkeypatch, raw_text: str) -> None:
    async def _fake_analyze(image_bytes, image_category="mammogram", mime_type="image/jpeg"):
        return ok_payload("analyze_medical_image", {"raw_text": raw_text, "model": "vl-test"}, time.perf_counter())

    monkeypatch.setattr(main, "analyze_medical_image", _fake_analyze)


def test_health() -> None:
    assert _run(main.health()) == {"ok": True}


def test_analyze_saves_and_returns_view(monkeypatch, tmp_path) -> None:
    _answer_with(monkeypatch, FREEFORM)
    response = _run(main.analyze_image(image=_upload(), image_type="other", clinician_id="dr-1"))

    assert response.saved is True
    assert response.save_error is None
    assert response.analysis == FREEFORM
    assert response.model == "vl-test"
    assert response.image_type == "other"
    assert response.image_ref.startswith("medical-images/")
    assert (tmp_path / "images" / response.image_ref.split("/", 1)[1]).read_bytes() == PNG_BYTES
    assert response.view["structured"] is False
    assert response.view["blocks"][0]["heading"] == "Findings"

    stored = _run(db.get_analysis(response.id))
    assert stored.raw_text == FREEFORM
    assert stored.owner_id == "dr-1"


def test_unknown_image_type_stored_as_other(monkeypatch) -> None:
    _answer_with(monkeypatch, FREEFORM)
    response = _run(main.analyze_image(image=_upload(), image_type="ultrasound", clinician_id="dr-1"))
    assert response.image_type == "other"


def test_analysis_survives_failed_save(monkeypatch) -> None:
    _answer_with(monkeypatch, FREEFORM)

    async def _broken_save(*_args, **_kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(main.db, "save_analysis", _broken_save)
    response = _run(main.analyze_image(image=_upload(), image_type="other", clinician_id="dr-1"))
    assert response.saved is False
    assert response.save_error == "disk full"
    assert response.id is None
    assert response.analysis == FREEFORM
    assert response.view["conclusion"]["summary"] == "Final Result: likely normal."


def test_analysis_survives_failed_image_storage(monkeypatch) -> None:
    _answer_with(monkeypatch, FREEFORM)

    def _broken_store(_content, _filename):
        raise OSError("read-only file system")

    monkeypatch.setattr(main, "save_image", _broken_store)
    response = _run(main.analyze_image(image=_upload(), image_type="xray", clinician_id="dr-1"))
    assert response.image_ref == ""
    assert response.saved is True


def test_analyze_rejects_bad_uploads(monkeypatch) -> None:
    _answer_with(monkeypatch, FREEFORM)
    with pytest.raises(Exception) as exc_info:
        _run(main.analyze_image(image=_upload(content_type="application/pdf"), image_type="other", clinician_id="dr-1"))
    assert _status(exc_info) == 400

    with pytest.raises(Exception) as exc_info:
        _run(main.analyze_image(image=_upload(), image_type="other", clinician_id=None))
    assert _status(exc_info) == 401


def test_analyze_maps_tool_errors(monkeypatch) -> None:
    async def _unavailable(*_args, **_kwargs):
        return error_payload("analyze_medical_image", "MODEL_UNAVAILABLE", "no model", time.perf_counter())

    monkeypatch.setattr(main, "analyze_medical_image", _unavailable)
    with pytest.raises(Exception) as exc_info:
        _run(main.analyze_image(image=_upload(), image_type="other", clinician_id="dr-1"))
    assert _status(exc_info) == 503
    assert _run(db.list_analyses("dr-1")) == []


def test_history_detail_rename_delete() -> None:
    structured = json.dumps(
        {
            "finalResult": "Probably benign",
            "biRadsOrNA": "2",
            "findings": {"breastDensity": "fatty", "masses": "none", "calcifications": "none", "asymmetry": "none"},
            "detailedAnalysis": "No suspicious findings.",
            "recommendations": ["Routine follow-up"],
        }
    )
    record = _run(db.save_analysis("dr-1", structured, "mammogram"))

    listing = _run(main.list_analyses(clinician_id="dr-1"))
    assert [item.id for item in listing.items] == [record.id]

    detail = _run(main.get_analysis(record.id, clinician_id="dr-1"))
    assert detail.view["structured"] is True
    assert detail.view["analysis"]["biRadsOrNA"] == "2"

    renamed = _run(main.rename_analysis(record.id, body=RenameRequest(custom_label=" Screening 2026 "), clinician_id="dr-1"))
    assert renamed.custom_label == "Screening 2026"

    assert _run(main.delete_analysis(record.id, clinician_id="dr-1")) == {"ok": True, "id": record.id}
    assert _run(main.list_analyses(clinician_id="dr-1")).items == []


def test_access_control_and_missing_records() -> None:
    record = _run(db.save_analysis("dr-1", FREEFORM, "other"))

    with pytest.raises(Exception) as exc_info:
        _run(main.get_analysis(record.id, clinician_id="dr-2"))
    assert _status(exc_info) == 403

    with pytest.raises(Exception) as exc_info:
        _run(main.rename_analysis(record.id, body=RenameRequest(custom_label="x"), clinician_id="dr-2"))
    assert _status(exc_info) == 403

    with pytest.raises(Exception) as exc_info:
        _run(main.delete_analysis(record.id, clinician_id="dr-2"))
    assert _status(exc_info) == 403

    with pytest.raises(Exception) as exc_info:
        _run(main.get_analysis("missing", clinician_id="dr-1"))
    assert _status(exc_info) == 404

    with pytest.raises(Exception) as exc_info:
        _run(main.rename_analysis(record.id, body=RenameRequest(custom_label="   "), clinician_id="dr-1"))
    assert _status(exc_info) == 400
