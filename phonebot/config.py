"""
Centralized configuration with environment variable overrides.

External service endpoints, timeouts, session limits and store wording are
configurable here. Nothing is hardcoded in dialogue or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from phonebot.logging_context import session_log_handler

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server binding."""

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = _safe_int("PORT", "3000")


@dataclass(frozen=True)
class ClassifierConfig:
    """Wit.ai intent classifier settings."""

    access_token: str = os.getenv("WIT_AI_ACCESS_TOKEN", "")
    url: str = os.getenv("WIT_AI_URL", "https://api.wit.ai/message")
    version: str = os.getenv("WIT_AI_VERSION", "20220201")
    timeout_sec: float = _safe_float("CLASSIFIER_TIMEOUT", "5.0")


@dataclass(frozen=True)
class ModelConfig:
    """Generative text model settings."""

    api_key: str = os.getenv("GEMINI_API_KEY", "")
    llm_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.7")
    timeout_sec: float = _safe_float("LLM_TIMEOUT", "15.0")


@dataclass(frozen=True)
class CatalogConfig:
    """Product catalog source and image references."""

    database_url: str = os.getenv("DATABASE_URL", "")
    image_base_url: str = os.getenv("IMAGE_BASE_URL", "/images")
    default_image: str = os.getenv("DEFAULT_IMAGE", "default.jpg")


@dataclass(frozen=True)
class SessionConfig:
    """Limits for the in-process conversation context store."""

    max_sessions: int = _safe_int("MAX_SESSIONS", "1000")
    idle_ttl_sec: float = _safe_float("SESSION_IDLE_TTL", "3600")
    history_limit: int = _safe_int("HISTORY_LIMIT", "10")


@dataclass(frozen=True)
class BusinessConfig:
    """Store-facing wording injected into prompts."""

    store_name: str = os.getenv("STORE_NAME", "cửa hàng điện thoại")
    installment_offer: str = os.getenv(
        "INSTALLMENT_OFFER", "Hỗ trợ trả góp 0% lãi suất trong 6 tháng"
    )


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    server: ServerConfig = field(default_factory=ServerConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    sessions: SessionConfig = field(default_factory=SessionConfig)
    business: BusinessConfig = field(default_factory=BusinessConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.timeout_sec <= 0:
        raise ValueError(f"LLM_TIMEOUT must be > 0, got {config.model.timeout_sec}")
    if config.classifier.timeout_sec <= 0:
        raise ValueError(
            f"CLASSIFIER_TIMEOUT must be > 0, got {config.classifier.timeout_sec}"
        )
    if not 1 <= config.server.port <= 65535:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.server.port}")
    if config.sessions.max_sessions < 1:
        raise ValueError(
            f"MAX_SESSIONS must be >= 1, got {config.sessions.max_sessions}"
        )
    if config.sessions.idle_ttl_sec <= 0:
        raise ValueError(
            f"SESSION_IDLE_TTL must be > 0, got {config.sessions.idle_ttl_sec}"
        )
    if config.sessions.history_limit < 1:
        raise ValueError(
            f"HISTORY_LIMIT must be >= 1, got {config.sessions.history_limit}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[session_log_handler(LOG_FORMAT, LOG_DATE_FORMAT)],
    )
    if not config.classifier.access_token:
        logger.warning("WIT_AI_ACCESS_TOKEN is not set; intent classification will fail")
    if not config.model.api_key:
        logger.warning("GEMINI_API_KEY is not set; replies will use the fallback text")
    logger.info("Configuration loaded for '%s'", config.business.store_name)
    return config


# Singleton instance
settings = load_config()
