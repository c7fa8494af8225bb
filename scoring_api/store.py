# scoring_api/store.py
from __future__ import annotations

import threading
import uuid
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from scoring_api.errors import MatchNotFoundError, StaleStateError
from scoring_api.logger import get_logger
from scoring_api.models import MatchState
from scoring_api.serialization import Record, from_record, to_record

log = get_logger("store")

Listener = Callable[[MatchState], None]
Unsubscribe = Callable[[], None]


class MatchStore(Protocol):
    """Shape of the persistence gateway the scoring core relies on."""

    def load(self, match_id: str) -> MatchState: ...

    def load_with_version(self, match_id: str) -> Tuple[MatchState, int]: ...

    def version(self, match_id: str) -> int: ...

    def save(self, match_id: str, state: MatchState, expected_prior_version: int) -> int: ...

    def subscribe(self, match_id: str, on_change: Listener) -> Unsubscribe: ...


class InMemoryMatchStore:
    """
    Single-process store (sufficient for single-instance deploys and tests).

    Keeps the serialized record, not the object, so every load exercises the
    same round-trip a real database would. Writes are compare-and-set on the
    version number; listeners are called synchronously after a commit.
    """

    def __init__(self) -> None:
        # match_id -> (version, record)
        self._rows: Dict[str, Tuple[int, Record]] = {}
        self._listeners: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()

    def create(self, state: MatchState, match_id: Optional[str] = None) -> str:
        match_id = match_id or uuid.uuid4().hex[:12]
        with self._lock:
            if match_id in self._rows:
                raise ValueError(f"Match {match_id} already exists")
            self._rows[match_id] = (0, to_record(state))
        log.info("Created match %s", match_id)
        return match_id

    def load(self, match_id: str) -> MatchState:
        return from_record(self._row(match_id)[1])

    def load_with_version(self, match_id: str) -> Tuple[MatchState, int]:
        """State and the version it was stored at, read together."""
        version, record = self._row(match_id)
        return from_record(record), version

    def version(self, match_id: str) -> int:
        return self._row(match_id)[0]

    def save(self, match_id: str, state: MatchState, expected_prior_version: int) -> int:
        with self._lock:
            if match_id not in self._rows:
                raise MatchNotFoundError(match_id)
            current, _ = self._rows[match_id]
            if current != expected_prior_version:
                log.warning(
                    "Stale write on %s (expected v%s, stored v%s)",
                    match_id, expected_prior_version, current,
                )
                raise StaleStateError(match_id, expected_prior_version, current)
            new_version = current + 1
            self._rows[match_id] = (new_version, to_record(state))
            listeners = list(self._listeners.get(match_id, []))

        for listener in listeners:
            listener(state)
        return new_version

    def subscribe(self, match_id: str, on_change: Listener) -> Unsubscribe:
        with self._lock:
            self._listeners.setdefault(match_id, []).append(on_change)

        def unsubscribe() -> None:
            with self._lock:
                subs = self._listeners.get(match_id, [])
                if on_change in subs:
                    subs.remove(on_change)

        return unsubscribe

    def match_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._rows)

    def _row(self, match_id: str) -> Tuple[int, Record]:
        with self._lock:
            row = self._rows.get(match_id)
        if row is None:
            raise MatchNotFoundError(match_id)
        return row
