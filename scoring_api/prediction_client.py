# scoring_api/prediction_client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from scoring_api.config import (
    PREDICTION_API_KEY,
    PREDICTION_ENABLED,
    PREDICTION_SERVICE_URL,
    PREDICTION_TIMEOUT_SECONDS,
)
from scoring_api.errors import PredictionUnavailableError
from scoring_api.logger import get_logger
from scoring_api.models import Innings, MatchState, TeamKey
from scoring_api.overs_math import balls_to_overs_float

log = get_logger("prediction")


@dataclass(frozen=True)
class Prediction:
    team1_win_probability: float
    team2_win_probability: float
    match_summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team1WinProbability": self.team1_win_probability,
            "team2WinProbability": self.team2_win_probability,
            "matchSummary": self.match_summary,
        }


def _innings_for(state: MatchState, key: TeamKey) -> Optional[Innings]:
    for inn in state.innings:
        if inn.batting_key == key:
            return inn
    return None


def _overs_remaining(state: MatchState, inn: Optional[Innings]) -> float:
    bpo = state.config.rules.balls_per_over
    if inn is None:
        return float(state.config.total_overs)
    balls_left = max(0, inn.max_overs * bpo - inn.legal_balls)
    return round(balls_to_overs_float(balls_left, bpo), 2)


def build_prediction_snapshot(state: MatchState) -> Dict[str, Any]:
    """
    Statistics snapshot for the predictor, keyed by config team (not batting order).
    targetScore is 0 until the second innings exists.
    """
    inn1 = _innings_for(state, "team1")
    inn2 = _innings_for(state, "team2")
    target = state.innings[1].target if len(state.innings) > 1 else None

    return {
        "team1Name": state.config.team1.name,
        "team2Name": state.config.team2.name,
        "team1Runs": inn1.runs if inn1 else 0,
        "team2Runs": inn2.runs if inn2 else 0,
        "wicketsLostTeam1": inn1.wickets if inn1 else 0,
        "wicketsLostTeam2": inn2.wickets if inn2 else 0,
        "oversRemainingTeam1": _overs_remaining(state, inn1),
        "oversRemainingTeam2": _overs_remaining(state, inn2),
        "targetScore": target or 0,
    }


def _probability(data: Dict[str, Any], field: str) -> float:
    raw = data.get(field)
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise PredictionUnavailableError(f"{field} is not a number: {raw!r}") from e
    if not 0.0 <= value <= 1.0:
        raise PredictionUnavailableError(f"{field} out of range [0, 1]: {value}")
    return value


def predict(
    snapshot: Dict[str, Any],
    *,
    url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Prediction:
    """
    POST the snapshot to the win-probability service.

    Any failure (disabled, network, HTTP status, bad JSON, out-of-range
    probabilities) surfaces as PredictionUnavailableError; scoring never depends on it.
    """
    if not PREDICTION_ENABLED and url is None:
        raise PredictionUnavailableError("Prediction service is disabled (set PREDICTION_ENABLED=1 to enable).")

    target_url = url or PREDICTION_SERVICE_URL
    if not target_url.startswith("http"):
        raise PredictionUnavailableError("PREDICTION_SERVICE_URL must start with http/https")

    headers = {"Accept": "application/json"}
    if PREDICTION_API_KEY:
        headers["Authorization"] = f"Bearer {PREDICTION_API_KEY}"

    try:
        resp = requests.post(
            target_url,
            json=snapshot,
            headers=headers,
            timeout=timeout or PREDICTION_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        log.warning("Prediction request failed: %s", e)
        raise PredictionUnavailableError(f"Network error: {e}") from e

    if resp.status_code != 200:
        log.warning("Prediction service answered HTTP %s", resp.status_code)
        raise PredictionUnavailableError(f"HTTP {resp.status_code}: {resp.text}")

    try:
        data = resp.json()
    except ValueError as e:
        raise PredictionUnavailableError(f"Invalid JSON response: {e}") from e

    if not isinstance(data, dict):
        raise PredictionUnavailableError("Prediction response must be a JSON object")

    return Prediction(
        team1_win_probability=_probability(data, "team1WinProbability"),
        team2_win_probability=_probability(data, "team2WinProbability"),
        match_summary=str(data.get("matchSummary") or ""),
    )
