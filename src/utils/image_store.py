import re
import time
import uuid
from pathlib import Path

from src.config.logger import get_logger
from src.config.settings import settings

logger = get_logger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(filename: str) -> str:
    name = _UNSAFE_NAME_RE.sub("_", Path(filename or "").name).strip("._")
    return name or "image"


def save_image(content: bytes, filename: str) -> str:
    """Write an uploaded image under IMAGE_DIR and return its relative reference."""
    image_dir = Path(settings.IMAGE_DIR)
    image_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{_safe_name(filename)}"
    (image_dir / stored_name).write_bytes(content)
    logger.info("[image_store] saved %s (%d bytes)", stored_name, len(content))
    return f"medical-images/{stored_name}"
