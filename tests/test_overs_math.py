from __future__ import annotations

import pytest

from scoring_api.overs_math import (
    balls_to_overs,
    balls_to_overs_float,
    required_run_rate,
    run_rate,
)


def test_balls_to_overs():
    assert balls_to_overs(0) == "0.0"
    assert balls_to_overs(112) == "18.4"
    assert balls_to_overs(19, balls_per_over=5) == "3.4"
    assert balls_to_overs_float(9) == 1.5
    with pytest.raises(ValueError):
        balls_to_overs(-1)


def test_rates():
    assert run_rate(60, 0) is None
    assert run_rate(60, 60) == 6.0
    assert required_run_rate(0, 0) == 0.0
    assert required_run_rate(10, 0) is None
    assert required_run_rate(51, 30) == pytest.approx(10.2)
