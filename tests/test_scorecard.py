from __future__ import annotations

from helpers import (
    auto_play,
    bye,
    make_config,
    new_batter,
    no_ball,
    play,
    runs,
    set_bowler,
    start,
    wicket,
    wide,
)
from scoring_api.models import BallEvent, DismissalKind, EventKind, RuleConfiguration
from scoring_api.scorecard import economy, project_scorecard, scorecard_csv, scorecard_frames, strike_rate


def _sample_innings():
    state = play(
        start(make_config(total_overs=5)),
        runs(4), runs(1), wide(), runs(6), bye(2), runs(0), runs(0),  # 14 off the over, 12 to the bowler
        set_bowler("b2"),
        runs(0), runs(0), runs(0), runs(0), runs(0), runs(0),  # maiden
        set_bowler("b1"),
        wicket(DismissalKind.CAUGHT, fielder_id="b5"),
        new_batter("a3"),
        no_ball(1), runs(2),
    )
    return state.current


def test_projection_is_idempotent():
    innings = _sample_innings()
    assert project_scorecard(innings) == project_scorecard(innings)
    assert project_scorecard(innings).to_dict() == project_scorecard(innings).to_dict()


def test_totals_are_consistent_with_the_log():
    innings = _sample_innings()
    card = project_scorecard(innings)

    assert card.runs == innings.runs == 18
    assert sum(b.runs for b in card.batting) + card.extras["total"] == card.runs
    assert sum(p.runs for p in card.partnerships) == card.runs
    assert card.wickets == len(card.fall_of_wickets) == 1
    assert card.overs == "2.2"
    assert card.run_rate == 7.71


def test_batting_figures():
    card = project_scorecard(_sample_innings())
    by_id = {b.player_id: b for b in card.batting}

    assert [b.player_id for b in card.batting] == ["a1", "a2", "a3"]

    a1 = by_id["a1"]
    assert (a1.runs, a1.balls, a1.fours, a1.sixes) == (7, 9, 1, 0)
    assert a1.how_out == "not out"

    a2 = by_id["a2"]
    assert (a2.runs, a2.balls, a2.sixes) == (6, 5, 1)
    assert a2.out
    assert a2.how_out == "c Team 2 Player 5 b Team 2 Player 1"

    a3 = by_id["a3"]
    assert (a3.runs, a3.balls) == (1, 1)
    assert a3.strike_rate == 100.0
    assert "Team 1 Player 4" in card.did_not_bat


def test_bowling_figures():
    card = project_scorecard(_sample_innings())
    by_id = {b.player_id: b for b in card.bowling}

    b1 = by_id["b1"]
    assert b1.overs == "1.2"
    assert b1.legal_balls == 8
    assert b1.runs == 16  # byes excluded, wide and no-ball included
    assert b1.wickets == 1
    assert (b1.wides, b1.no_balls) == (1, 1)
    assert b1.maidens == 0
    assert b1.economy == 12.0

    b2 = by_id["b2"]
    assert (b2.overs, b2.runs, b2.maidens, b2.economy) == ("1.0", 0, 1, 0.0)


def test_partnerships_and_fall_of_wickets():
    card = project_scorecard(_sample_innings())

    first, second = card.partnerships
    assert first.batters == ("a1", "a2")
    assert (first.runs, first.balls, first.unbroken) == (14, 13, False)
    assert second.batters == ("a1", "a3")
    assert (second.runs, second.balls, second.unbroken) == (4, 1, True)

    fow = card.fall_of_wickets[0]
    assert (fow.wicket, fow.batter_id, fow.score, fow.overs) == (1, "a2", 14, "2.1")


def test_run_out_without_facing_has_no_strike_rate():
    state = play(start(), wicket(DismissalKind.RUN_OUT, dismissed_id="a2", fielder_id="b3"))
    card = project_scorecard(state.current)
    a2 = next(b for b in card.batting if b.player_id == "a2")

    assert a2.balls == 0
    assert a2.strike_rate is None
    assert a2.how_out == "run out (Team 2 Player 3)"
    assert card.bowling[0].wickets == 0


def test_retired_batter_shown_as_retired_not_out():
    state = play(start(), runs(0), BallEvent(EventKind.RETIRE, batter_id="a1"), new_batter("a3"), runs(0))
    card = project_scorecard(state.current)
    a1 = next(b for b in card.batting if b.player_id == "a1")
    assert a1.how_out == "retired not out"


def test_guards_against_division_by_zero():
    assert strike_rate(10, 0) is None
    assert economy(10, 0) is None
    assert economy(10, 5) == 12.0


def test_empty_innings_projects_cleanly():
    card = project_scorecard(start().current)
    assert card.batting == ()
    assert card.partnerships == ()
    assert card.overs == "0.0"
    assert card.run_rate is None
    assert len(card.did_not_bat) == 11


def test_longer_innings_fold_consistency():
    events = []
    for i in range(60):
        if i % 9 == 4:
            events.append(wicket(DismissalKind.BOWLED))
        elif i % 7 == 0:
            events.append(wide(1))
        else:
            events.append(runs(i % 5))
    state = auto_play(start(make_config(total_overs=20)), events, ["b1", "b2", "b3"])
    innings = state.current
    card = project_scorecard(innings)

    assert sum(b.runs for b in card.batting) + card.extras["total"] == innings.runs
    assert sum(b.runs for b in card.bowling) + innings.extras.byes + innings.extras.leg_byes == innings.runs
    assert sum(b.wickets for b in card.bowling) == innings.wickets
    assert sum(p.runs for p in card.partnerships) == innings.runs


def test_frames_and_csv_export():
    card = project_scorecard(_sample_innings())
    batting, bowling = scorecard_frames(card)

    assert list(batting["player_id"]) == ["a1", "a2", "a3"]
    assert int(bowling.loc[bowling["player_id"] == "b2", "maidens"].iloc[0]) == 1

    csv = scorecard_csv(card)
    assert csv.startswith("Team 1 18/1 (2.2 ov)")
    assert "Extras,4" in csv


def test_economy_is_per_six_balls_with_longer_overs():
    config = make_config(rules=RuleConfiguration(balls_per_over=8))
    state = play(start(config), *[runs(2)] * 8)
    b1 = project_scorecard(state.current, balls_per_over=8).bowling[0]

    assert (b1.overs, b1.runs, b1.legal_balls) == ("1.0", 16, 8)
    assert b1.economy == 12.0


def test_runs_completed_before_a_run_out_are_not_a_boundary():
    state = play(start(), runs(4), wicket(DismissalKind.RUN_OUT, runs=4, fielder_id="b3"))
    a1 = project_scorecard(state.current).batting[0]

    assert (a1.player_id, a1.runs, a1.balls) == ("a1", 8, 2)
    assert (a1.fours, a1.sixes) == (1, 0)
