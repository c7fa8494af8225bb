# scoring_api/errors.py
from __future__ import annotations


class ScoringError(Exception):
    """Base class for every error raised by the scoring core."""
    pass


class InvalidEventError(ScoringError):
    """Malformed or out-of-turn event. State is left unchanged."""
    pass


class RuleViolationError(ScoringError):
    """Event is well-formed but forbidden by the active rule configuration."""
    pass


class StaleStateError(ScoringError):
    """Write was based on a version that is no longer the stored one."""

    def __init__(self, match_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Stale write for match {match_id}: expected version {expected}, stored version is {actual}"
        )
        self.match_id = match_id
        self.expected = expected
        self.actual = actual


class MatchNotFoundError(ScoringError, KeyError):
    """Raised by the store when a match id is unknown."""

    def __str__(self) -> str:
        return f"Unknown match: {self.args[0] if self.args else ''}"


class PredictionUnavailableError(ScoringError):
    """Raised when the win-probability service fails, times out or answers nonsense."""
    pass
