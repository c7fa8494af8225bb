# scoring_api/controller.py
"""
Innings/Over controller.

Runs after every applied event and moves the match through
InProgress -> InningsBreak -> InProgress -> MatchComplete:

- seals an over once its legal deliveries reach balls_per_over
  (strike swaps, bowler becomes unset)
- closes an innings on overs exhausted, all out, target reached or a manual end
- opens the second innings with teams swapped and target = first total + 1
- asks the result evaluator for result_text when the match is complete
"""
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from scoring_api.logger import get_logger
from scoring_api.models import (
    Innings,
    MatchConfig,
    MatchPhase,
    MatchState,
    RuleConfiguration,
    TeamKey,
    other_side,
)
from scoring_api.result import evaluate_result

log = get_logger("controller")


def open_innings(
    config: MatchConfig,
    index: int,
    batting_key: TeamKey,
    *,
    target: Optional[int] = None,
) -> Innings:
    bowling_key = other_side(batting_key)
    return Innings(
        index=index,
        batting_key=batting_key,
        bowling_key=bowling_key,
        batting_team=config.team(batting_key),
        bowling_team=config.team(bowling_key),
        max_overs=config.total_overs,
        target=target,
    )


def innings_finished(innings: Innings, balls_per_over: int) -> bool:
    if innings.legal_balls >= innings.max_overs * balls_per_over:
        return True
    if innings.wickets >= innings.max_wickets:
        return True
    return innings.target is not None and innings.runs >= innings.target


def _with_current(state: MatchState, innings: Innings) -> MatchState:
    all_innings = list(state.innings)
    all_innings[state.current_innings] = innings
    return replace(state, innings=tuple(all_innings))


def close_innings(state: MatchState, *, abandoned: bool = False) -> MatchState:
    """Close the current innings and move to the break or to match completion."""
    closed = replace(state.current, closed=True, abandoned=abandoned)
    state = replace(
        _with_current(state, closed),
        striker_id=None,
        non_striker_id=None,
        bowler_id=None,
    )

    if closed.index == 0:
        second = open_innings(
            state.config,
            1,
            closed.bowling_key,
            target=closed.runs + 1,
        )
        log.info(
            "Innings 1 closed at %s/%s; %s need %s",
            closed.runs, closed.wickets, second.batting_team.name, second.target,
        )
        return replace(
            state,
            innings=(closed, second),
            current_innings=1,
            phase=MatchPhase.INNINGS_BREAK,
        )

    result = evaluate_result(state.innings[0], closed)
    log.info("Match complete: %s", result.text)
    return replace(
        state,
        phase=MatchPhase.MATCH_COMPLETE,
        match_over=True,
        result_text=result.text,
    )


def after_delivery(state: MatchState, rules: RuleConfiguration) -> MatchState:
    """Over/innings/match progression after one delivery has been recorded."""
    innings = state.current
    over = innings.overs[-1]
    over_done = over.legal_count >= rules.balls_per_over

    if over_done:
        overs = innings.overs[:-1] + (replace(over, sealed=True),)
        innings = replace(innings, overs=overs)
        state = _with_current(state, innings)

    if innings_finished(innings, rules.balls_per_over):
        return close_innings(state)

    if over_done:
        log.debug("Over %s sealed (innings %s)", over.number + 1, innings.index + 1)
        state = replace(
            state,
            striker_id=state.non_striker_id,
            non_striker_id=state.striker_id,
            bowler_id=None,
        )
    return state


def refresh_phase(state: MatchState) -> MatchState:
    """Leave the innings break once both openers and a bowler are selected."""
    if state.phase != MatchPhase.INNINGS_BREAK:
        return state
    if state.striker_id and state.non_striker_id and state.bowler_id:
        log.info("Innings %s under way", state.current_innings + 1)
        return replace(state, phase=MatchPhase.IN_PROGRESS)
    return state
