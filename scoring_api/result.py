# scoring_api/result.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from scoring_api.models import Innings, TeamKey
from scoring_api.overs_math import required_run_rate

# -----------------------------
# Match result semantics
# -----------------------------
ResultType = Literal["WIN", "TIE", "NR"]
MarginUnit = Literal["runs", "wickets"]


@dataclass(frozen=True)
class MatchResult:
    result_type: ResultType
    text: str
    winner: Optional[TeamKey] = None
    winner_name: Optional[str] = None
    margin: Optional[int] = None
    margin_unit: Optional[MarginUnit] = None


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def target_for(innings1: Innings, innings2: Optional[Innings] = None) -> int:
    """First-innings total + 1, unless the second innings carries a revised target."""
    if innings2 is not None and innings2.target is not None:
        return innings2.target
    return innings1.runs + 1


def evaluate_result(innings1: Innings, innings2: Innings) -> MatchResult:
    """
    Decide the match from both innings.

    Rules:
    - chase reached: chasing side wins by wickets in hand (roster - 1 - wickets lost)
    - an abandoned innings that did not reach the target: no result
    - otherwise the second innings must be closed:
        score == target - 1 -> tie, else defending side wins by (target - 1 - score) runs
    """
    target = target_for(innings1, innings2)
    chasing = innings2.batting_team
    defending = innings1.batting_team

    if innings2.runs >= target:
        wickets_left = innings2.max_wickets - innings2.wickets
        return MatchResult(
            result_type="WIN",
            text=f"{chasing.name} won by {_plural(wickets_left, 'wicket')}.",
            winner=innings2.batting_key,
            winner_name=chasing.name,
            margin=wickets_left,
            margin_unit="wickets",
        )

    if innings1.abandoned or innings2.abandoned:
        return MatchResult(result_type="NR", text="No result.")

    if not innings2.closed:
        raise ValueError("Second innings is still in progress; no result can be evaluated")

    runs_short = target - 1 - innings2.runs
    if runs_short == 0:
        return MatchResult(result_type="TIE", text="Match tied.")

    return MatchResult(
        result_type="WIN",
        text=f"{defending.name} won by {_plural(runs_short, 'run')}.",
        winner=innings1.batting_key,
        winner_name=defending.name,
        margin=runs_short,
        margin_unit="runs",
    )


def chase_equation(innings2: Innings, balls_per_over: int = 6) -> dict:
    """Live chase arithmetic for the second innings."""
    if innings2.target is None:
        raise ValueError("Innings has no target")

    runs_needed = max(0, innings2.target - innings2.runs)
    balls_remaining = max(0, innings2.max_overs * balls_per_over - innings2.legal_balls)
    rrr = required_run_rate(runs_needed, balls_remaining, balls_per_over)

    return {
        "target": innings2.target,
        "runs_needed": runs_needed,
        "balls_remaining": balls_remaining,
        "wickets_in_hand": innings2.max_wickets - innings2.wickets,
        "required_run_rate": round(rrr, 2) if rrr is not None else None,
        "summary": (
            f"{innings2.batting_team.name} need {_plural(runs_needed, 'run')} "
            f"from {_plural(balls_remaining, 'ball')}"
        ),
    }
