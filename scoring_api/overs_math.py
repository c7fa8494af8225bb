# scoring_api/overs_math.py
from __future__ import annotations

from typing import Optional


def balls_to_overs(balls: int, balls_per_over: int = 6) -> str:
    """120 -> "20.0", 112 -> "18.4"."""
    if balls < 0:
        raise ValueError("Balls cannot be negative")
    return f"{balls // balls_per_over}.{balls % balls_per_over}"


def balls_to_overs_float(balls: int, balls_per_over: int = 6) -> float:
    if balls <= 0:
        return 0.0
    return balls / float(balls_per_over)


def run_rate(runs: int, balls: int, balls_per_over: int = 6) -> Optional[float]:
    """Runs per over; None when nothing has been bowled."""
    if balls <= 0:
        return None
    return runs * balls_per_over / float(balls)


def required_run_rate(runs_needed: int, balls_remaining: int, balls_per_over: int = 6) -> Optional[float]:
    if runs_needed <= 0:
        return 0.0
    if balls_remaining <= 0:
        return None
    return runs_needed * balls_per_over / float(balls_remaining)
