# scoring_api/cache.py
from __future__ import annotations

import threading
import time
from typing import Any, Dict, Optional, Tuple

# In-memory TTL cache for predictor answers (single-instance deploys)
# key -> (expires_at_epoch, stored_at_epoch, value)
_cache: Dict[str, Tuple[float, float, Any]] = {}
_lock = threading.Lock()


def make_key(*parts: Any) -> str:
    """make_key("prediction", "abc", 17) -> "prediction:abc:17" """
    cleaned = [str(p).strip() for p in parts if str(p).strip()]
    if not cleaned:
        raise ValueError("Cache key must have at least one non-empty part")
    return ":".join(cleaned)


def get(key: str) -> Optional[Any]:
    hit = get_with_age(key)
    return hit[0] if hit else None


def get_with_age(key: str) -> Optional[Tuple[Any, float]]:
    """Value plus its age in seconds, or None when missing/expired."""
    now = time.time()
    with _lock:
        item = _cache.get(key)
        if not item:
            return None
        expires_at, stored_at, value = item
        if now > expires_at:
            _cache.pop(key, None)
            return None
    return value, now - stored_at


def set(key: str, value: Any, ttl_seconds: int = 60) -> None:
    if ttl_seconds <= 0:
        return
    now = time.time()
    with _lock:
        _cache[key] = (now + ttl_seconds, now, value)


def clear() -> None:
    with _lock:
        _cache.clear()
