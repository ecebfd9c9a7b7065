import time

from dotenv import load_dotenv

load_dotenv()

from fastapi import Body, FastAPI, File, Form, Header, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from api.schemas import (
    AnalysisDetailResponse,
    AnalysisItem,
    AnalysisListResponse,
    AnalyzeImageResponse,
    RenameRequest,
)
from src.analysis import AnalysisView, NormalizerConfig
from src.config.logger import configure_logging, get_logger
from src.config.settings import settings
from src.runtime import feed
from src.tool.image_analyzer import analyze_medical_image
from src.utils import db
from src.utils.image_store import save_image
from src.utils.image_utils import validate_image_upload
from src.utils.tool_calling import parse_tool_payload

app = FastAPI(title="Medical Image Analysis")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

configure_logging()
logger = get_logger(__name__)

_CATEGORIES = {"mammogram", "xray", "other"}
_ERROR_STATUS = {
    "INVALID_INPUT": 400,
    "MODEL_UNAVAILABLE": 503,
    "UPSTREAM_ERROR": 502,
}


def _normalizer_config() -> NormalizerConfig:
    return NormalizerConfig(**settings.normalizer_overrides())


def _view(raw_text: str) -> dict:
    return AnalysisView(raw_text, _normalizer_config()).render()


def _clinician(clinician_id: str | None) -> str:
    owner = (clinician_id or "").strip()
    if not owner:
        raise HTTPException(status_code=401, detail="X-Clinician-Id header is required")
    return owner


def _image_category(image_type: str) -> str:
    category = (image_type or "").strip().lower()
    return category if category in _CATEGORIES else "other"


@app.middleware("http")
async def log_requests(request, call_next):
    start = time.perf_counter()
    logger.info("[request.start] %s %s", request.method, request.url.path)
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "[request.end] %s %s status=%s elapsed=%.1fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.on_event("startup")
async def startup():
    await db.init_db()


@app.get("/api/health")
async def health():
    return {"ok": True}


@app.post("/api/analyze-medical-image", response_model=AnalyzeImageResponse)
async def analyze_image(
    image: UploadFile = File(...),
    image_type: str = Form("mammogram"),
    clinician_id: str | None = Header(None, alias="X-Clinician-Id"),
):
    owner = _clinician(clinician_id)
    category = _image_category(image_type)
    content = await image.read()
    mime_type = (image.content_type or "").lower()
    try:
        validate_image_upload(content, mime_type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info(
        "[analyze] file=%s type=%s size=%d",
        image.filename,
        category,
        len(content),
    )

    image_ref = ""
    try:
        image_ref = save_image(content, image.filename or "image")
    except OSError:
        logger.exception("[analyze] image storage failed, continuing without image_ref")

    payload = parse_tool_payload(
        "analyze_medical_image",
        await analyze_medical_image(content, category, mime_type),
    )
    if not payload["ok"]:
        error = payload["error"]
        logger.warning("[analyze] failed code=%s message=%s", error["code"], error["message"])
        raise HTTPException(
            status_code=_ERROR_STATUS.get(error["code"], 500),
            detail=error["message"],
        )

    raw_text = payload["data"]["raw_text"]
    response = AnalyzeImageResponse(
        analysis=raw_text,
        image_ref=image_ref,
        image_type=category,
        model=str(payload["data"].get("model") or ""),
        view=_view(raw_text),
    )

    try:
        record = await db.save_analysis(owner, raw_text, category, image_ref)
    except Exception as exc:
        logger.exception("[analyze] saving analysis failed")
        response.save_error = str(exc) or exc.__class__.__name__
        return response

    response.id = record.id
    response.saved = True
    await feed.analysis_created(record)
    return response


@app.get("/api/analyses", response_model=AnalysisListResponse)
async def list_analyses(clinician_id: str | None = Header(None, alias="X-Clinician-Id")):
    owner = _clinician(clinician_id)
    records = await db.list_analyses(owner)
    return AnalysisListResponse(items=[AnalysisItem.from_record(r) for r in records])


@app.get("/api/analyses/events")
async def stream_analysis_events(clinician_id: str | None = Header(None, alias="X-Clinician-Id")):
    owner = _clinician(clinician_id)

    async def event_generator():
        async for event in feed.watch_analyses(owner):
            if event is None:
                yield "event: ping\ndata: {}\n\n"
                continue
            yield feed.to_sse(event["event"], event["data"])

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


async def _owned_record(analysis_id: str, owner: str):
    record = await db.get_analysis(analysis_id)
    if record is None:
        raise HTTPException(status_code=404, detail="analysis not found")
    if record.owner_id != owner:
        raise HTTPException(status_code=403, detail="analysis belongs to another clinician")
    return record


@app.get("/api/analyses/{analysis_id}", response_model=AnalysisDetailResponse)
async def get_analysis(
    analysis_id: str,
    clinician_id: str | None = Header(None, alias="X-Clinician-Id"),
):
    record = await _owned_record(analysis_id, _clinician(clinician_id))
    return AnalysisDetailResponse(
        analysis=AnalysisItem.from_record(record),
        view=_view(record.raw_text),
    )


@app.patch("/api/analyses/{analysis_id}", response_model=AnalysisItem)
async def rename_analysis(
    analysis_id: str,
    body: RenameRequest = Body(...),
    clinician_id: str | None = Header(None, alias="X-Clinician-Id"),
):
    owner = _clinician(clinician_id)
    try:
        record = await db.rename_analysis(analysis_id, owner, body.custom_label)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    if record is None:
        raise HTTPException(status_code=404, detail="analysis not found")
    await feed.analysis_renamed(record)
    return AnalysisItem.from_record(record)


@app.delete("/api/analyses/{analysis_id}")
async def delete_analysis(
    analysis_id: str,
    clinician_id: str | None = Header(None, alias="X-Clinician-Id"),
):
    owner = _clinician(clinician_id)
    try:
        deleted = await db.delete_analysis(analysis_id, owner)
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="analysis not found")
    await feed.analysis_deleted(owner, analysis_id)
    return {"ok": True, "id": analysis_id}
