from __future__ import annotations

from typing import Iterable, Optional, Sequence

from scoring_api.models import (
    BallEvent,
    DismissalKind,
    EventKind,
    MatchConfig,
    MatchState,
    Player,
    RuleConfiguration,
    Team,
    Toss,
)
from scoring_api.processor import apply, new_match


def make_team(team_id: str, name: str, prefix: str, size: int = 11) -> Team:
    return Team(
        id=team_id,
        name=name,
        players=tuple(Player(id=f"{prefix}{i}", name=f"{name} Player {i}") for i in range(1, size + 1)),
    )


def make_config(
    total_overs: int = 20,
    rules: Optional[RuleConfiguration] = None,
    size: int = 11,
    toss: Toss = Toss(winner="team1", decision="bat"),
) -> MatchConfig:
    return MatchConfig(
        team1=make_team("t1", "Team 1", "a", size),
        team2=make_team("t2", "Team 2", "b", size),
        toss=toss,
        total_overs=total_overs,
        rules=rules or RuleConfiguration(),
    )


# -----------------------
# Event shorthands
# -----------------------
def runs(n: int = 0, **kw) -> BallEvent:
    return BallEvent(EventKind.RUNS, runs=n, **kw)


def wide(n: int = 0) -> BallEvent:
    return BallEvent(EventKind.WIDE, runs=n)


def no_ball(n: int = 0) -> BallEvent:
    return BallEvent(EventKind.NO_BALL, runs=n)


def bye(n: int) -> BallEvent:
    return BallEvent(EventKind.BYE, runs=n)


def leg_bye(n: int) -> BallEvent:
    return BallEvent(EventKind.LEG_BYE, runs=n)


def wicket(kind: DismissalKind = DismissalKind.BOWLED, **kw) -> BallEvent:
    return BallEvent(EventKind.WICKET, dismissal=kind, **kw)


def set_bowler(bowler_id: str, **kw) -> BallEvent:
    return BallEvent(EventKind.SET_BOWLER, bowler_id=bowler_id, **kw)


def set_strike(striker_id: str, non_striker_id: str, **kw) -> BallEvent:
    return BallEvent(EventKind.SET_STRIKE, striker_id=striker_id, non_striker_id=non_striker_id, **kw)


def new_batter(batter_id: str) -> BallEvent:
    return BallEvent(EventKind.NEW_BATTER, batter_id=batter_id)


def undo(target_seq: Optional[int] = None) -> BallEvent:
    return BallEvent(EventKind.UNDO, target_seq=target_seq)


# -----------------------
# Drivers
# -----------------------
def play(state: MatchState, *events: BallEvent) -> MatchState:
    for e in events:
        state = apply(state, e)
    return state


def start(
    config: Optional[MatchConfig] = None,
    striker: str = "a1",
    non_striker: str = "a2",
    bowler: str = "b1",
) -> MatchState:
    state = new_match(config or make_config())
    return play(state, set_strike(striker, non_striker), set_bowler(bowler))


def next_batter(state: MatchState) -> str:
    innings = state.current
    used = {d.striker_id for d in innings.deliveries} | {d.non_striker_id for d in innings.deliveries}
    used |= {state.striker_id, state.non_striker_id}
    for p in innings.batting_team.players:
        if p.id not in used and p.id not in innings.dismissed_ids:
            return p.id
    raise AssertionError("no batter left")


def auto_play(state: MatchState, deliveries: Iterable[BallEvent], bowlers: Sequence[str]) -> MatchState:
    """Bowl deliveries, rotating bowlers each over and sending in the next batter after a wicket."""
    for event in deliveries:
        if state.bowler_id is None:
            state = apply(state, set_bowler(bowlers[len(state.current.overs) % len(bowlers)]))
        if state.striker_id is None or state.non_striker_id is None:
            state = apply(state, new_batter(next_batter(state)))
        state = apply(state, event)
    return state
