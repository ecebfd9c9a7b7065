"""
Application-wide settings using pydantic-settings.
All runtime env access in src/ should go through this module.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PATH = PROJECT_ROOT / ".env"

_DASHSCOPE_COMPAT_DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    LOG_DIR: str = "./logs"
    LOG_FILE_NAME: str = "analysis.debug.log"
    LOG_FILE_WHEN: str = "midnight"
    LOG_FILE_INTERVAL: int = 1
    LOG_FILE_BACKUP_COUNT: int = 7
    LOG_FILE_ENCODING: str = "utf-8"
    LOG_FILE_LEVEL: str = "DEBUG"
    LOG_TRUNCATE: int = 600

    # Model providers
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = ""
    DASHSCOPE_API_KEY: str = ""
    DASHSCOPE_BASE_URL: str = _DASHSCOPE_COMPAT_DEFAULT_BASE_URL
    OLLAMA_BASE_URL: str = "http://localhost:11434"

    # Vision analyzer
    ANALYZER_PROVIDER: str = ""
    ANALYZER_MODEL: str = ""
    ANALYZER_FALLBACK_MODELS: str = "qwen-vl-max,qwen-vl-plus,qwen2.5-vl-72b-instruct"
    ANALYZER_TEMPERATURE: float = 0.2

    # Storage
    DB_PATH: str = "./data/analyses.db"
    IMAGE_DIR: str = "./data/medical-images"
    IMAGE_MAX_BYTES: int = 10 * 1024 * 1024
    ALLOWED_IMAGE_TYPES: str = "image/jpeg,image/jpg,image/png,image/webp"

    # Change feed
    FEED_QUEUE_MAX: int = 100

    # Freeform normalizer thresholds
    NORMALIZER_HEADING_COLON_MAX: int = 60
    NORMALIZER_LABEL_MAX_CHARS: int = 40
    NORMALIZER_MULTI_LABEL_MIN_LINE: int = 80
    NORMALIZER_SINGLE_LABEL_MIN_LINE: int = 50
    NORMALIZER_SUMMARY_MIN_POSITION: float = 0.3
    NORMALIZER_SENTENCE_DROP_CEILING: float = 0.2

    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def _agent_value(self, agent_key: str, suffix: str) -> str:
        key = (agent_key or "").strip().upper()
        if not key:
            return ""
        return str(getattr(self, f"{key}_{suffix}", "") or "").strip()

    def get_agent_model(self, agent_key: str, default_model: str) -> str:
        return self._agent_value(agent_key, "MODEL") or default_model

    def get_agent_provider(self, agent_key: str) -> str:
        return self._agent_value(agent_key, "PROVIDER")

    def get_agent_api_key(self, agent_key: str) -> str:
        _ = agent_key
        return (
            self.OPENAI_API_KEY
            or self.DASHSCOPE_API_KEY
        )

    def get_agent_base_url(self, agent_key: str, provider_hint: str = "") -> str:
        _ = agent_key
        hint = (provider_hint or "").strip().lower()
        if hint == "ollama":
            return self.OLLAMA_BASE_URL
        return (
            self.OPENAI_BASE_URL
            or self.DASHSCOPE_BASE_URL
            or _DASHSCOPE_COMPAT_DEFAULT_BASE_URL
        )

    def has_openai_like_creds(self, agent_key: str) -> bool:
        return bool(self.get_agent_api_key(agent_key))

    def analyzer_model_chain(self) -> list[str]:
        """Ordered vision model names, explicit ANALYZER_MODEL first."""
        chain: list[str] = []
        for name in [self.ANALYZER_MODEL, *self.ANALYZER_FALLBACK_MODELS.split(",")]:
            name = name.strip()
            if name and name not in chain:
                chain.append(name)
        return chain

    def allowed_image_types(self) -> set[str]:
        return {
            item.strip().lower()
            for item in self.ALLOWED_IMAGE_TYPES.split(",")
            if item.strip()
        }

    def normalizer_overrides(self) -> dict[str, float | int]:
        return {
            "heading_colon_max": self.NORMALIZER_HEADING_COLON_MAX,
            "label_max_chars": self.NORMALIZER_LABEL_MAX_CHARS,
            "multi_label_min_line": self.NORMALIZER_MULTI_LABEL_MIN_LINE,
            "single_label_min_line": self.NORMALIZER_SINGLE_LABEL_MIN_LINE,
            "summary_min_position": self.NORMALIZER_SUMMARY_MIN_POSITION,
            "sentence_drop_ceiling": self.NORMALIZER_SENTENCE_DROP_CEILING,
        }


settings = Settings()
