# scoring_api/processor.py
"""
Ball event processor.

`apply(state, event, rules)` is a pure transition: it validates one BallEvent
against the current MatchState and returns a new MatchState with the event
appended to the audit log. The prior state is never touched, so a rejected
event (InvalidEventError / RuleViolationError) leaves nothing to roll back.

Corrections are UNDO events: the log keeps everything, and the state is
re-folded from the events that are still in effect.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Set, Tuple

from scoring_api.controller import after_delivery, close_innings, open_innings, refresh_phase
from scoring_api.errors import InvalidEventError, RuleViolationError, ScoringError
from scoring_api.logger import get_logger
from scoring_api.models import (
    BOWLER_CREDITED,
    BYE_DISMISSALS,
    NO_BALL_DISMISSALS,
    NON_STRIKER_DISMISSALS,
    WICKET_BASE_KINDS,
    WIDE_DISALLOWED,
    BallEvent,
    Delivery,
    Dismissal,
    EventKind,
    Innings,
    MatchConfig,
    MatchPhase,
    MatchState,
    Over,
    RuleConfiguration,
)

log = get_logger("processor")


# -----------------------------
# Setup
# -----------------------------
def validate_match_config(config: MatchConfig) -> None:
    if config.total_overs <= 0:
        raise ValueError("total_overs must be positive")
    if config.rules.balls_per_over <= 0:
        raise ValueError("balls_per_over must be positive")
    for rule in (config.rules.no_ball, config.rules.wide_ball):
        if rule.runs_conceded < 0:
            raise ValueError("runs_conceded must be non-negative")
    for team in (config.team1, config.team2):
        if team.roster_size < 2:
            raise ValueError(f"Team {team.name} needs at least two players")
        ids = [p.id for p in team.players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Team {team.name} has duplicate player ids")
    if config.team1.id == config.team2.id:
        raise ValueError("team1 and team2 must be different")


def new_match(config: MatchConfig) -> MatchState:
    """Empty state right after the toss: innings 1 open, nobody selected yet."""
    validate_match_config(config)
    first = open_innings(config, 0, config.batting_first())
    return MatchState(config=config, innings=(first,))


# -----------------------------
# Public contract
# -----------------------------
def apply(state: MatchState, event: BallEvent, rules: Optional[RuleConfiguration] = None) -> MatchState:
    rules = rules or state.config.rules
    if rules.balls_per_over <= 0:
        raise InvalidEventError("balls_per_over must be positive")
    if state.match_over:
        raise InvalidEventError("Match is already over")
    if event.innings is not None and event.innings != state.current_innings:
        raise InvalidEventError(
            f"Event is for innings {event.innings} but innings {state.current_innings} is in play"
        )

    stamped = replace(event, seq=state.next_seq)
    try:
        if stamped.kind == EventKind.UNDO:
            stamped, new_state = _undo(state, stamped, rules)
        else:
            new_state = _step(state, stamped, rules)
    except ScoringError as e:
        log.warning("Rejected %s (seq %s): %s", event.kind.value, stamped.seq, e)
        raise

    log.debug("Applied %s (seq %s)", stamped.kind.value, stamped.seq)
    return replace(new_state, events=state.events + (stamped,))


def try_apply(
    state: MatchState,
    event: BallEvent,
    rules: Optional[RuleConfiguration] = None,
) -> Tuple[MatchState, Optional[ScoringError]]:
    """apply() that returns (state, error) instead of raising; state is the prior one on error."""
    try:
        return apply(state, event, rules), None
    except ScoringError as e:
        return state, e


def replay(config: MatchConfig, events: Iterable[BallEvent]) -> MatchState:
    """Fold a full event log (undo markers included) from an empty match."""
    state = new_match(config)
    for e in events:
        state = apply(state, e)
    return state


# -----------------------------
# Dispatch
# -----------------------------
def _step(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    if event.is_delivery:
        return _deliver(state, event, rules)

    handlers = {
        EventKind.SET_BOWLER: _set_bowler,
        EventKind.SET_STRIKE: _set_strike,
        EventKind.NEW_BATTER: _new_batter,
        EventKind.SWAP_STRIKE: _swap_strike,
        EventKind.RETIRE: _retire,
    }
    if event.kind == EventKind.END_INNINGS:
        log.info("Innings %s ended manually (abandoned=%s)", state.current_innings + 1, event.abandoned)
        return close_innings(state, abandoned=event.abandoned)

    handler = handlers.get(event.kind)
    if handler is None:
        raise InvalidEventError(f"Unsupported event kind: {event.kind}")
    return refresh_phase(handler(state, event, rules))


def _undone_seqs(events: Iterable[BallEvent]) -> Set[int]:
    return {e.target_seq for e in events if e.kind == EventKind.UNDO and e.target_seq is not None}


def _undo(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> Tuple[BallEvent, MatchState]:
    undone = _undone_seqs(state.events)
    effective: List[BallEvent] = [
        e for e in state.events if e.kind != EventKind.UNDO and e.seq not in undone
    ]
    if not effective:
        raise InvalidEventError("Nothing to undo")

    target = event.target_seq if event.target_seq is not None else effective[-1].seq
    if target not in {e.seq for e in effective}:
        raise InvalidEventError(f"Event {target} is not in effect and cannot be undone")

    rebuilt = new_match(state.config)
    try:
        for e in effective:
            if e.seq != target:
                rebuilt = _step(rebuilt, e, rules)
    except ScoringError as e:
        raise InvalidEventError(f"Cannot undo event {target}: later events depend on it ({e})") from e

    log.info("Undid event %s", target)
    return replace(event, target_seq=target), rebuilt


# -----------------------------
# Control events
# -----------------------------
def _check_batter_available(innings: Innings, batter_id: Optional[str]) -> str:
    if not batter_id:
        raise InvalidEventError("Batter id is required")
    if not innings.batting_team.has_player(batter_id):
        raise InvalidEventError(f"{batter_id} is not in the batting side {innings.batting_team.name}")
    if batter_id in innings.dismissed_ids:
        raise InvalidEventError(f"{batter_id} is already dismissed")
    return batter_id


def _revise_second_innings(state: MatchState, event: BallEvent) -> MatchState:
    if event.revised_overs is None and event.revised_target is None:
        return state

    innings = state.current
    if innings.index != 1 or innings.deliveries:
        raise InvalidEventError("Revised overs/target can only be set before the second innings starts")

    if event.revised_overs is not None:
        if not 0 < event.revised_overs <= state.config.total_overs:
            raise InvalidEventError("revised_overs must be between 1 and the match overs")
        innings = replace(innings, max_overs=event.revised_overs)
    if event.revised_target is not None:
        if event.revised_target < 1:
            raise InvalidEventError("revised_target must be positive")
        innings = replace(innings, target=event.revised_target)

    return replace(state, innings=state.innings[:1] + (innings,))


def _set_bowler(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    innings = state.current
    bowler = event.bowler_id
    if not bowler or not innings.bowling_team.has_player(bowler):
        raise InvalidEventError(f"{bowler} is not in the bowling side {innings.bowling_team.name}")

    starting_over = not innings.overs or innings.overs[-1].sealed
    # whoever bowled the last ball of the previous over, even after a mid-over change
    previous = innings.last_delivery
    if starting_over and previous is not None and previous.bowler_id == bowler:
        raise RuleViolationError(f"{bowler} bowled the previous over and cannot bowl consecutive overs")

    return replace(_revise_second_innings(state, event), bowler_id=bowler)


def _set_strike(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    innings = state.current
    striker = _check_batter_available(innings, event.striker_id)
    non_striker = _check_batter_available(innings, event.non_striker_id)
    if striker == non_striker:
        raise InvalidEventError("Striker and non-striker must be different players")

    state = _revise_second_innings(state, event)
    return replace(
        state,
        striker_id=striker,
        non_striker_id=non_striker,
        innings=_with_current(state, _unretire(state.current, striker, non_striker)),
    )


def _new_batter(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    innings = state.current
    batter = _check_batter_available(innings, event.batter_id)
    if batter in (state.striker_id, state.non_striker_id):
        raise InvalidEventError(f"{batter} is already at the crease")

    innings = _unretire(innings, batter)
    if state.striker_id is None:
        state = replace(state, striker_id=batter)
    elif state.non_striker_id is None:
        state = replace(state, non_striker_id=batter)
    else:
        raise InvalidEventError("No vacancy at the crease")
    return replace(state, innings=_with_current(state, innings))


def _swap_strike(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    return replace(state, striker_id=state.non_striker_id, non_striker_id=state.striker_id)


def _retire(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    batter = event.batter_id
    if not batter or batter not in (state.striker_id, state.non_striker_id):
        raise InvalidEventError(f"{batter} is not at the crease")

    innings = state.current
    innings = replace(innings, retired=innings.retired + (batter,))
    state = replace(state, innings=_with_current(state, innings))
    if batter == state.striker_id:
        return replace(state, striker_id=None)
    return replace(state, non_striker_id=None)


def _unretire(innings: Innings, *batter_ids: str) -> Innings:
    if not any(b in innings.retired for b in batter_ids):
        return innings
    return replace(innings, retired=tuple(r for r in innings.retired if r not in batter_ids))


def _with_current(state: MatchState, innings: Innings) -> Tuple[Innings, ...]:
    all_innings = list(state.innings)
    all_innings[state.current_innings] = innings
    return tuple(all_innings)


# -----------------------------
# Deliveries
# -----------------------------
def _is_free_hit(innings: Innings, rules: RuleConfiguration) -> bool:
    if not rules.no_ball.free_hit:
        return False
    last = innings.last_delivery
    if last is None:
        return False
    if last.kind == EventKind.NO_BALL:
        return True
    # a wide on a free hit carries it to the next ball
    return last.kind == EventKind.WIDE and last.free_hit


def _check_crease(state: MatchState, event: BallEvent) -> Tuple[str, str, str]:
    if state.phase != MatchPhase.IN_PROGRESS:
        raise InvalidEventError("Select the opening batters and bowler before scoring")
    if state.striker_id is None or state.non_striker_id is None:
        raise InvalidEventError("A batter is missing at the crease; record the new batter first")
    if state.bowler_id is None:
        raise InvalidEventError("Over is complete; set the next bowler first")

    if event.striker_id is not None and event.striker_id != state.striker_id:
        raise InvalidEventError(f"{event.striker_id} is not on strike")
    if event.non_striker_id is not None and event.non_striker_id != state.non_striker_id:
        raise InvalidEventError(f"{event.non_striker_id} is not the non-striker")
    if event.bowler_id is not None and event.bowler_id != state.bowler_id:
        raise InvalidEventError(f"{event.bowler_id} is not the current bowler")

    return state.striker_id, state.non_striker_id, state.bowler_id


def _check_dismissal(
    event: BallEvent,
    base: EventKind,
    free_hit: bool,
    striker: str,
    non_striker: str,
) -> str:
    if event.dismissal is None:
        raise InvalidEventError("Wicket event needs a dismissal kind")

    dismissed = event.dismissed_id or striker
    if dismissed not in (striker, non_striker):
        raise InvalidEventError(f"{dismissed} is not at the crease")
    if dismissed == non_striker and event.dismissal not in NON_STRIKER_DISMISSALS:
        raise InvalidEventError(f"Non-striker cannot be out {event.dismissal.value}")

    if base == EventKind.NO_BALL and event.dismissal not in NO_BALL_DISMISSALS:
        raise RuleViolationError(f"Cannot be out {event.dismissal.value} off a no-ball")
    if free_hit and event.dismissal not in NO_BALL_DISMISSALS:
        raise RuleViolationError(f"Cannot be out {event.dismissal.value} on a free hit")
    if base == EventKind.WIDE and event.dismissal in WIDE_DISALLOWED:
        raise RuleViolationError(f"Cannot be out {event.dismissal.value} off a wide")
    if base in (EventKind.BYE, EventKind.LEG_BYE) and event.dismissal not in BYE_DISMISSALS:
        raise RuleViolationError(f"Cannot be out {event.dismissal.value} off a {base.value.replace('_', '-')}")

    return dismissed


def _deliver(state: MatchState, event: BallEvent, rules: RuleConfiguration) -> MatchState:
    striker, non_striker, bowler = _check_crease(state, event)
    if event.runs < 0:
        raise InvalidEventError("Runs cannot be negative")

    base = event.kind
    if event.kind == EventKind.WICKET:
        base = event.extra or EventKind.RUNS
        if base not in WICKET_BASE_KINDS:
            raise InvalidEventError(f"A wicket cannot fall on a {base.value} event")
    elif event.extra is not None:
        raise InvalidEventError("'extra' is only meaningful on a wicket event")

    if base == EventKind.NO_BALL and not rules.no_ball.enabled:
        raise RuleViolationError("No-balls are disabled for this match")
    if base == EventKind.WIDE and not rules.wide_ball.enabled:
        raise RuleViolationError("Wides are disabled for this match")

    innings = state.current
    free_hit = _is_free_hit(innings, rules)

    dismissed = None
    if event.kind == EventKind.WICKET:
        dismissed = _check_dismissal(event, base, free_hit, striker, non_striker)

    # runs and legality by delivery kind
    runs = event.runs
    extras = innings.extras
    if base == EventKind.RUNS:
        bat_runs, extra_runs, legal = runs, 0, True
    elif base == EventKind.WIDE:
        bat_runs, extra_runs = 0, rules.wide_ball.runs_conceded + runs
        legal = not rules.wide_ball.reball
        extras = replace(extras, wides=extras.wides + extra_runs)
    elif base == EventKind.NO_BALL:
        bat_runs, extra_runs = runs, rules.no_ball.runs_conceded
        legal = not rules.no_ball.reball
        extras = replace(extras, no_balls=extras.no_balls + extra_runs)
    elif base == EventKind.BYE:
        bat_runs, extra_runs, legal = 0, runs, True
        extras = replace(extras, byes=extras.byes + runs)
    else:
        bat_runs, extra_runs, legal = 0, runs, True
        extras = replace(extras, leg_byes=extras.leg_byes + runs)

    overs = innings.overs
    if not overs or overs[-1].sealed:
        overs = overs + (Over(innings=innings.index, number=len(overs), bowler_id=bowler),)
    over = overs[-1]

    total = innings.runs + bat_runs + extra_runs
    dismissal = None
    if dismissed is not None:
        dismissal = Dismissal(
            batter_id=dismissed,
            kind=event.dismissal,
            bowler_id=bowler if event.dismissal in BOWLER_CREDITED else None,
            fielder_id=event.fielder_id,
            over=over.number,
            ball=over.legal_count + (1 if legal else 0),
            score=total,
        )

    delivery = Delivery(
        seq=event.seq,
        kind=base,
        striker_id=striker,
        non_striker_id=non_striker,
        bowler_id=bowler,
        bat_runs=bat_runs,
        extra_runs=extra_runs,
        legal=legal,
        free_hit=free_hit,
        dismissal=dismissal,
    )
    over = replace(over, deliveries=over.deliveries + (delivery,))

    innings = replace(
        innings,
        runs=total,
        wickets=innings.wickets + (1 if dismissal else 0),
        legal_balls=innings.legal_balls + (1 if legal else 0),
        overs=overs[:-1] + (over,),
        dismissals=innings.dismissals + ((dismissal,) if dismissal else ()),
        extras=extras,
    )

    # odd runs actually run cross the batters; penalty runs never do
    if runs % 2 == 1:
        striker, non_striker = non_striker, striker
    if dismissed == striker:
        striker = None
    elif dismissed == non_striker:
        non_striker = None

    state = replace(
        state,
        innings=_with_current(state, innings),
        striker_id=striker,
        non_striker_id=non_striker,
    )
    return after_delivery(state, rules)
