import base64
import binascii

from src.config.settings import settings


def image_bytes_to_base64(image_bytes: bytes) -> str:
    return base64.b64encode(image_bytes).decode("utf-8")


def image_data_url(image_bytes: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{image_bytes_to_base64(image_bytes)}"


def normalize_image_base64(image_base64: str) -> str:
    raw = (image_base64 or "").strip()
    if raw.startswith("data:"):
        _, _, tail = raw.partition(",")
        raw = tail.strip()
    return "".join(raw.split())


def decode_image_base64(image_base64: str) -> bytes:
    normalized = normalize_image_base64(image_base64)
    if not normalized:
        raise ValueError("image content is empty")
    try:
        return base64.b64decode(normalized, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ValueError("image content is not valid base64") from exc


def validate_image_upload(content: bytes, mime_type: str) -> None:
    """Raise ValueError when an upload is empty, too large or of an unsupported type."""
    if not content:
        raise ValueError("no image was uploaded")
    if (mime_type or "").strip().lower() not in settings.allowed_image_types():
        raise ValueError("unsupported image type; upload JPG, PNG or WEBP")
    if len(content) > settings.IMAGE_MAX_BYTES:
        limit_mb = settings.IMAGE_MAX_BYTES // (1024 * 1024)
        raise ValueError(f"image is too large; the limit is {limit_mb} MB")
