# scoring_api/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


# -------------------------
# Logging
# -------------------------
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()
# Empty -> console only
LOG_FILE: str = _get_env("LOG_FILE")


# -------------------------
# Match defaults (used when a create request omits them)
# -------------------------
DEFAULT_BALLS_PER_OVER: int = _get_env_int("DEFAULT_BALLS_PER_OVER", 6)
DEFAULT_OVERS: int = _get_env_int("DEFAULT_OVERS", 20)


# -------------------------
# Win-probability service (OPTIONAL)
# -------------------------
# If 0, /prediction answers 503 and scoring is unaffected
PREDICTION_ENABLED: bool = _get_env("PREDICTION_ENABLED", "0") == "1"
PREDICTION_SERVICE_URL: str = _get_env("PREDICTION_SERVICE_URL", "http://localhost:8100/predict")
PREDICTION_API_KEY: str = _get_env("PREDICTION_API_KEY")
PREDICTION_TIMEOUT_SECONDS: float = _get_env_float("PREDICTION_TIMEOUT_SECONDS", 8.0)

# Cache TTLs
PREDICTION_CACHE_TTL_SECONDS: int = _get_env_int("PREDICTION_CACHE_TTL_SECONDS", 30)
PREDICTION_STALE_TTL_SECONDS: int = _get_env_int("PREDICTION_STALE_TTL_SECONDS", 6 * 3600)


def validate_config() -> None:
    if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise RuntimeError(f"LOG_LEVEL must be a logging level name, got {LOG_LEVEL!r}")

    if DEFAULT_BALLS_PER_OVER <= 0:
        raise RuntimeError("DEFAULT_BALLS_PER_OVER must be positive")

    if DEFAULT_OVERS <= 0:
        raise RuntimeError("DEFAULT_OVERS must be positive")

    # Predictor URL sanity only matters when it is switched on
    if PREDICTION_ENABLED and not PREDICTION_SERVICE_URL.startswith("http"):
        raise RuntimeError("PREDICTION_SERVICE_URL must start with http/https")

    if PREDICTION_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("PREDICTION_TIMEOUT_SECONDS must be positive")

    if PREDICTION_CACHE_TTL_SECONDS <= 0 or PREDICTION_STALE_TTL_SECONDS <= 0:
        raise RuntimeError("Prediction cache TTLs must be positive")
