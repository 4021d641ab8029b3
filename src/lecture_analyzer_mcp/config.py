"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}
VALID_TRANSPORTS = {"stdio", "http"}


def _is_env_placeholder(value: str) -> bool:
    """Return True when *value* looks like an unresolved shell placeholder."""
    if value.startswith("${") and value.endswith("}"):
        inner = value[2:-1].strip()
        if ":-" in inner:
            inner = inner.split(":-", 1)[0].strip()
        return bool(inner) and all(ch.isalnum() or ch == "_" for ch in inner)
    if value.startswith("$"):
        inner = value[1:].strip()
        return bool(inner) and all(ch.isalnum() or ch == "_" for ch in inner)
    return False


def _env(name: str, default: str = "") -> str:
    """Read an env var, treating blanks and unresolved placeholders as unset."""
    value = os.getenv(name, "").strip()
    if not value or _is_env_placeholder(value):
        return default
    return value


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    if not value:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    - ``LECTURE_TRACING_ENABLED=false`` → always disabled (explicit opt-out).
    - Otherwise enabled when ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    default_model: str = Field(default="gemini-2.5-flash")
    tts_model: str = Field(default="gemini-2.5-flash-preview-tts")
    tts_voice: str = Field(default="Kore")
    default_thinking_level: str = Field(default="")
    default_temperature: float | None = Field(default=None)
    request_timeout_seconds: float = Field(default=120.0)
    dashboard_db_path: str = Field(default="")
    max_dashboards: int = Field(default=20)
    cache_dir: str = Field(default="")
    cache_ttl_days: int = Field(default=30)
    transcript_languages: list[str] = Field(default_factory=lambda: ["en"])
    enforce_latex: bool = Field(default=True)
    transport: str = Field(default="stdio")
    port: int = Field(default=8080)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="lecture-analyzer-mcp")

    @field_validator("default_thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level and level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("max_dashboards", "cache_ttl_days")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_seconds must be > 0")
        return value

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"Invalid port {value}")
        return value

    @field_validator("transport")
    @classmethod
    def validate_transport(cls, value: str) -> str:
        transport = value.strip().lower()
        if transport not in VALID_TRANSPORTS:
            allowed = ", ".join(sorted(VALID_TRANSPORTS))
            raise ValueError(f"Invalid transport '{value}'. Allowed: {allowed}")
        return transport

    @field_validator("transcript_languages")
    @classmethod
    def validate_languages(cls, value: list[str]) -> list[str]:
        langs = [lang.strip() for lang in value if lang.strip()]
        return langs or ["en"]

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        db_default = str(Path.home() / ".local" / "share" / "lecture-analyzer-mcp" / "dashboards.db")
        cache_default = str(Path.home() / ".cache" / "lecture-analyzer-mcp")
        temperature = _env("GEMINI_TEMPERATURE")
        # LECTURE_DB_PATH="" is meaningful (in-memory store), so only fall
        # back to the default when the variable is absent.
        db_path = os.getenv("LECTURE_DB_PATH")
        return cls(
            gemini_api_key=_env("GEMINI_API_KEY") or _env("API_KEY"),
            default_model=_env("GEMINI_MODEL", "gemini-2.5-flash"),
            tts_model=_env("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts"),
            tts_voice=_env("GEMINI_TTS_VOICE", "Kore"),
            default_thinking_level=_env("GEMINI_THINKING_LEVEL"),
            default_temperature=float(temperature) if temperature else None,
            request_timeout_seconds=float(_env("GEMINI_TIMEOUT_SECONDS", "120")),
            dashboard_db_path=db_default if db_path is None else db_path.strip(),
            max_dashboards=int(_env("LECTURE_MAX_DASHBOARDS", "20")),
            cache_dir=_env("LECTURE_CACHE_DIR", cache_default),
            cache_ttl_days=int(_env("LECTURE_CACHE_TTL_DAYS", "30")),
            transcript_languages=_env("LECTURE_TRANSCRIPT_LANGUAGES", "en").split(","),
            enforce_latex=_env_flag("LECTURE_ENFORCE_LATEX", True),
            transport=_env("LECTURE_TRANSPORT", "stdio"),
            port=int(_env("PORT", "8080")),
            tracing_enabled=_resolve_tracing_enabled(
                _env("LECTURE_TRACING_ENABLED"),
                _env("MLFLOW_TRACKING_URI"),
            ),
            mlflow_tracking_uri=_env("MLFLOW_TRACKING_URI"),
            mlflow_experiment_name=_env("MLFLOW_EXPERIMENT_NAME", "lecture-analyzer-mcp"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads the .env files listed by :func:`dotenv.env_paths` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config (tests and the CLI use this)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
