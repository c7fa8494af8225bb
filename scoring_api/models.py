# scoring_api/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Tuple

TeamKey = Literal["team1", "team2"]
TossDecision = Literal["bat", "bowl"]


# -----------------------------
# Event / dismissal vocabulary
# -----------------------------
class EventKind(str, Enum):
    # deliveries
    RUNS = "runs"
    WIDE = "wide"
    NO_BALL = "no_ball"
    BYE = "bye"
    LEG_BYE = "leg_bye"
    WICKET = "wicket"

    # control events (logged, but nothing is bowled)
    SET_BOWLER = "set_bowler"
    SET_STRIKE = "set_strike"
    NEW_BATTER = "new_batter"
    SWAP_STRIKE = "swap_strike"
    RETIRE = "retire"
    END_INNINGS = "end_innings"
    UNDO = "undo"


DELIVERY_KINDS = frozenset({
    EventKind.RUNS,
    EventKind.WIDE,
    EventKind.NO_BALL,
    EventKind.BYE,
    EventKind.LEG_BYE,
    EventKind.WICKET,
})

# What a wicket can be "on top of"
WICKET_BASE_KINDS = frozenset({
    EventKind.RUNS,
    EventKind.WIDE,
    EventKind.NO_BALL,
    EventKind.BYE,
    EventKind.LEG_BYE,
})


class DismissalKind(str, Enum):
    BOWLED = "bowled"
    CAUGHT = "caught"
    LBW = "lbw"
    RUN_OUT = "run out"
    STUMPED = "stumped"
    HIT_WICKET = "hit wicket"
    OBSTRUCTING = "obstructing the field"
    HANDLED_BALL = "handled the ball"


BOWLER_CREDITED = frozenset({
    DismissalKind.BOWLED,
    DismissalKind.CAUGHT,
    DismissalKind.LBW,
    DismissalKind.STUMPED,
    DismissalKind.HIT_WICKET,
})

# Dismissals that stand on a bye or leg-bye
BYE_DISMISSALS = frozenset({
    DismissalKind.RUN_OUT,
    DismissalKind.OBSTRUCTING,
    DismissalKind.HANDLED_BALL,
    DismissalKind.STUMPED,
    DismissalKind.HIT_WICKET,
})

# Only these stand on a no-ball or a free hit
NO_BALL_DISMISSALS = frozenset({
    DismissalKind.RUN_OUT,
    DismissalKind.OBSTRUCTING,
    DismissalKind.HANDLED_BALL,
})

WIDE_DISALLOWED = frozenset({
    DismissalKind.BOWLED,
    DismissalKind.CAUGHT,
    DismissalKind.LBW,
})

# Dismissals that may fall on the non-striker
NON_STRIKER_DISMISSALS = frozenset({
    DismissalKind.RUN_OUT,
    DismissalKind.OBSTRUCTING,
    DismissalKind.HANDLED_BALL,
})


class MatchPhase(str, Enum):
    IN_PROGRESS = "InProgress"
    INNINGS_BREAK = "InningsBreak"
    MATCH_COMPLETE = "MatchComplete"


# -----------------------------
# Rule configuration
# -----------------------------
@dataclass(frozen=True)
class ExtraRule:
    enabled: bool = True
    reball: bool = True
    runs_conceded: int = 1


@dataclass(frozen=True)
class NoBallRule(ExtraRule):
    # delivery after a no-ball only allows NO_BALL_DISMISSALS
    free_hit: bool = True


@dataclass(frozen=True)
class RuleConfiguration:
    balls_per_over: int = 6
    no_ball: NoBallRule = field(default_factory=NoBallRule)
    wide_ball: ExtraRule = field(default_factory=ExtraRule)


# -----------------------------
# Registry (supplied at setup)
# -----------------------------
@dataclass(frozen=True)
class Player:
    id: str
    name: str


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    players: Tuple[Player, ...] = ()

    @property
    def roster_size(self) -> int:
        return len(self.players)

    def has_player(self, player_id: Optional[str]) -> bool:
        return any(p.id == player_id for p in self.players)

    def player_name(self, player_id: Optional[str]) -> str:
        for p in self.players:
            if p.id == player_id:
                return p.name
        return player_id or ""


@dataclass(frozen=True)
class Toss:
    winner: TeamKey
    decision: TossDecision


@dataclass(frozen=True)
class MatchConfig:
    team1: Team
    team2: Team
    toss: Toss
    total_overs: int
    rules: RuleConfiguration = field(default_factory=RuleConfiguration)

    def team(self, key: TeamKey) -> Team:
        return self.team1 if key == "team1" else self.team2

    def batting_first(self) -> TeamKey:
        other: TeamKey = "team2" if self.toss.winner == "team1" else "team1"
        return self.toss.winner if self.toss.decision == "bat" else other


def other_side(key: TeamKey) -> TeamKey:
    return "team2" if key == "team1" else "team1"


# -----------------------------
# Events (the unit of mutation)
# -----------------------------
@dataclass(frozen=True)
class BallEvent:
    """
    One scorer action. Deliveries use `runs` (+ `extra`/`dismissal` for a wicket);
    control events use the id fields they need. `seq` is stamped by the processor.

    For a WICKET, `extra` names the delivery it fell on (None = fair delivery)
    and `runs` are the runs completed before the dismissal.
    """

    kind: EventKind
    innings: Optional[int] = None
    striker_id: Optional[str] = None
    non_striker_id: Optional[str] = None
    bowler_id: Optional[str] = None
    runs: int = 0
    extra: Optional[EventKind] = None
    dismissal: Optional[DismissalKind] = None
    dismissed_id: Optional[str] = None
    fielder_id: Optional[str] = None
    batter_id: Optional[str] = None
    abandoned: bool = False
    target_seq: Optional[int] = None
    revised_overs: Optional[int] = None
    revised_target: Optional[int] = None
    actor: Optional[str] = None
    seq: Optional[int] = None

    @property
    def is_delivery(self) -> bool:
        return self.kind in DELIVERY_KINDS


# -----------------------------
# Ball log
# -----------------------------
@dataclass(frozen=True)
class Dismissal:
    batter_id: str
    kind: DismissalKind
    bowler_id: Optional[str] = None
    fielder_id: Optional[str] = None
    over: int = 0   # 0-based over number
    ball: int = 0   # legal balls in that over when it fell
    score: int = 0  # innings total after the delivery


@dataclass(frozen=True)
class Delivery:
    seq: int
    kind: EventKind  # RUNS / WIDE / NO_BALL / BYE / LEG_BYE
    striker_id: str
    non_striker_id: str
    bowler_id: str
    bat_runs: int = 0
    extra_runs: int = 0
    legal: bool = True
    free_hit: bool = False
    dismissal: Optional[Dismissal] = None

    @property
    def total_runs(self) -> int:
        return self.bat_runs + self.extra_runs

    @property
    def bowler_runs(self) -> int:
        """Runs charged to the bowler: everything except byes and leg-byes."""
        if self.kind in (EventKind.BYE, EventKind.LEG_BYE):
            return self.bat_runs
        return self.total_runs

    @property
    def faced(self) -> bool:
        return self.kind != EventKind.WIDE


@dataclass(frozen=True)
class Over:
    innings: int
    number: int
    bowler_id: str
    deliveries: Tuple[Delivery, ...] = ()
    sealed: bool = False

    @property
    def legal_count(self) -> int:
        return sum(1 for d in self.deliveries if d.legal)


@dataclass(frozen=True)
class Extras:
    wides: int = 0
    no_balls: int = 0
    byes: int = 0
    leg_byes: int = 0

    @property
    def total(self) -> int:
        return self.wides + self.no_balls + self.byes + self.leg_byes


@dataclass(frozen=True)
class Innings:
    index: int
    batting_key: TeamKey
    bowling_key: TeamKey
    batting_team: Team
    bowling_team: Team
    max_overs: int
    runs: int = 0
    wickets: int = 0
    legal_balls: int = 0
    overs: Tuple[Over, ...] = ()
    dismissals: Tuple[Dismissal, ...] = ()
    retired: Tuple[str, ...] = ()
    extras: Extras = field(default_factory=Extras)
    target: Optional[int] = None
    closed: bool = False
    abandoned: bool = False

    @property
    def dismissed_ids(self) -> Tuple[str, ...]:
        return tuple(d.batter_id for d in self.dismissals)

    @property
    def deliveries(self) -> Tuple[Delivery, ...]:
        return tuple(d for o in self.overs for d in o.deliveries)

    @property
    def last_delivery(self) -> Optional[Delivery]:
        for over in reversed(self.overs):
            if over.deliveries:
                return over.deliveries[-1]
        return None

    @property
    def max_wickets(self) -> int:
        return self.batting_team.roster_size - 1


# -----------------------------
# Aggregate root
# -----------------------------
@dataclass(frozen=True)
class MatchState:
    config: MatchConfig
    innings: Tuple[Innings, ...]
    current_innings: int = 0
    striker_id: Optional[str] = None
    non_striker_id: Optional[str] = None
    bowler_id: Optional[str] = None
    phase: MatchPhase = MatchPhase.INNINGS_BREAK
    match_over: bool = False
    result_text: str = ""
    events: Tuple[BallEvent, ...] = ()

    @property
    def current(self) -> Innings:
        return self.innings[self.current_innings]

    @property
    def next_seq(self) -> int:
        return len(self.events)
