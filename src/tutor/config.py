from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

def _positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number") from None
    if value <= 0:
        raise RuntimeError(f"{name} must be positive")
    return value

def _positive_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer") from None
    if value < 1:
        raise RuntimeError(f"{name} must be at least 1")
    return value

@dataclass(frozen=True)
class ModelSettings:
    gemini_api_key: str | None
    llm_model: str = "gemini-2.5-flash"
    llm_timeout_s: float = 60.0

@dataclass(frozen=True)
class Settings:
    bot_token: str
    model: ModelSettings
    ui_default_lang: str = "en"  # en/uk
    exam_attempts: int = 2
    log_level: str = "INFO"

def load_model_settings() -> ModelSettings:
    load_dotenv()
    gemini_api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY") or None
    llm_model = os.getenv("LLM_MODEL", "gemini-2.5-flash").strip()
    if not llm_model:
        raise RuntimeError("LLM_MODEL must not be empty")
    return ModelSettings(
        gemini_api_key=gemini_api_key,
        llm_model=llm_model,
        llm_timeout_s=_positive_float("LLM_TIMEOUT_S", "60"),
    )

def load_settings() -> Settings:
    load_dotenv()
    bot_token = os.getenv("BOT_TOKEN")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN is required")

    ui_default_lang = os.getenv("UI_DEFAULT_LANG", "en").strip().lower()
    if ui_default_lang not in {"en", "uk"}:
        raise RuntimeError("UI_DEFAULT_LANG must be en or uk")

    return Settings(
        bot_token=bot_token,
        model=load_model_settings(),
        ui_default_lang=ui_default_lang,
        exam_attempts=_positive_int("EXAM_ATTEMPTS", "2"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
