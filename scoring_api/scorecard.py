# scoring_api/scorecard.py
"""
Scorecard projector.

Everything here is derived from an innings' ball log on demand; nothing is
cached, so projecting the same innings twice gives equal output.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Tuple

import pandas as pd

from scoring_api.models import Delivery, Dismissal, DismissalKind, EventKind, Innings, Team
from scoring_api.overs_math import balls_to_overs, run_rate


@dataclass(frozen=True)
class BattingFigures:
    player_id: str
    name: str
    runs: int
    balls: int
    fours: int
    sixes: int
    strike_rate: Optional[float]
    how_out: str
    out: bool


@dataclass(frozen=True)
class BowlingFigures:
    player_id: str
    name: str
    overs: str
    legal_balls: int
    maidens: int
    runs: int
    wickets: int
    wides: int
    no_balls: int
    economy: Optional[float]


@dataclass(frozen=True)
class Partnership:
    wicket: int  # partnership for the Nth wicket
    batters: Tuple[str, ...]
    runs: int
    balls: int
    unbroken: bool


@dataclass(frozen=True)
class FallOfWicket:
    wicket: int
    batter_id: str
    name: str
    score: int
    overs: str


@dataclass(frozen=True)
class InningsScorecard:
    batting_team: str
    bowling_team: str
    runs: int
    wickets: int
    overs: str
    run_rate: Optional[float]
    extras: Dict[str, int]
    target: Optional[int]
    batting: Tuple[BattingFigures, ...]
    bowling: Tuple[BowlingFigures, ...]
    partnerships: Tuple[Partnership, ...]
    fall_of_wickets: Tuple[FallOfWicket, ...]
    did_not_bat: Tuple[str, ...]

    def to_dict(self) -> dict:
        return asdict(self)


def _rounded(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


def strike_rate(runs: int, balls: int) -> Optional[float]:
    if balls <= 0:
        return None
    return round(runs * 100.0 / balls, 2)


def economy(runs: int, legal_balls: int) -> Optional[float]:
    """Runs per six legal balls, whatever the over length."""
    if legal_balls <= 0:
        return None
    return round(runs * 6 / float(legal_balls), 2)


def how_out(dismissal: Optional[Dismissal], bowling: Team, retired: bool = False) -> str:
    if dismissal is None:
        return "retired not out" if retired else "not out"

    bowler = bowling.player_name(dismissal.bowler_id)
    fielder = bowling.player_name(dismissal.fielder_id)
    kind = dismissal.kind

    if kind == DismissalKind.BOWLED:
        return f"b {bowler}"
    if kind == DismissalKind.CAUGHT:
        if dismissal.fielder_id is None or dismissal.fielder_id == dismissal.bowler_id:
            return f"c & b {bowler}"
        return f"c {fielder} b {bowler}"
    if kind == DismissalKind.LBW:
        return f"lbw b {bowler}"
    if kind == DismissalKind.STUMPED:
        return f"st {fielder} b {bowler}"
    if kind == DismissalKind.HIT_WICKET:
        return f"hit wicket b {bowler}"
    if kind == DismissalKind.RUN_OUT:
        return f"run out ({fielder})" if dismissal.fielder_id else "run out"
    return kind.value


def _batting_order(deliveries: Tuple[Delivery, ...]) -> List[str]:
    order: List[str] = []
    for d in deliveries:
        for pid in (d.striker_id, d.non_striker_id):
            if pid not in order:
                order.append(pid)
    return order


def _batting(innings: Innings) -> Tuple[BattingFigures, ...]:
    deliveries = innings.deliveries
    dismissals = {d.batter_id: d for d in innings.dismissals}
    out: List[BattingFigures] = []

    for pid in _batting_order(deliveries):
        faced = [d for d in deliveries if d.striker_id == pid]
        runs = sum(d.bat_runs for d in faced if d.kind in (EventKind.RUNS, EventKind.NO_BALL))
        balls = sum(1 for d in faced if d.faced)
        scoring_shots = [d for d in faced if d.kind in (EventKind.RUNS, EventKind.NO_BALL) and d.dismissal is None]
        fours = sum(1 for d in scoring_shots if d.bat_runs == 4)
        sixes = sum(1 for d in scoring_shots if d.bat_runs == 6)
        dismissal = dismissals.get(pid)
        out.append(BattingFigures(
            player_id=pid,
            name=innings.batting_team.player_name(pid),
            runs=runs,
            balls=balls,
            fours=fours,
            sixes=sixes,
            strike_rate=strike_rate(runs, balls),
            how_out=how_out(dismissal, innings.bowling_team, retired=pid in innings.retired),
            out=dismissal is not None,
        ))
    return tuple(out)


def _bowling(innings: Innings, balls_per_over: int) -> Tuple[BowlingFigures, ...]:
    order: List[str] = []
    for d in innings.deliveries:
        if d.bowler_id not in order:
            order.append(d.bowler_id)

    out: List[BowlingFigures] = []
    for pid in order:
        bowled = [d for d in innings.deliveries if d.bowler_id == pid]
        legal = sum(1 for d in bowled if d.legal)
        runs = sum(d.bowler_runs for d in bowled)
        maidens = sum(
            1 for o in innings.overs
            if o.sealed
            and all(d.bowler_id == pid for d in o.deliveries)
            and sum(d.bowler_runs for d in o.deliveries) == 0
        )
        out.append(BowlingFigures(
            player_id=pid,
            name=innings.bowling_team.player_name(pid),
            overs=balls_to_overs(legal, balls_per_over),
            legal_balls=legal,
            maidens=maidens,
            runs=runs,
            wickets=sum(1 for d in bowled if d.dismissal and d.dismissal.bowler_id == pid),
            wides=sum(1 for d in bowled if d.kind == EventKind.WIDE),
            no_balls=sum(1 for d in bowled if d.kind == EventKind.NO_BALL),
            economy=economy(runs, legal),
        ))
    return tuple(out)


def _partnerships_and_fow(
    innings: Innings,
    balls_per_over: int,
) -> Tuple[Tuple[Partnership, ...], Tuple[FallOfWicket, ...]]:
    partnerships: List[Partnership] = []
    fow: List[FallOfWicket] = []

    batters: List[str] = []
    runs = balls = 0
    score = legal_total = 0

    for d in innings.deliveries:
        for pid in (d.striker_id, d.non_striker_id):
            if pid not in batters:
                batters.append(pid)
        runs += d.total_runs
        balls += 1 if d.legal else 0
        score += d.total_runs
        legal_total += 1 if d.legal else 0

        if d.dismissal is None:
            continue

        wicket_no = len(fow) + 1
        partnerships.append(Partnership(wicket_no, tuple(batters), runs, balls, unbroken=False))
        fow.append(FallOfWicket(
            wicket=wicket_no,
            batter_id=d.dismissal.batter_id,
            name=innings.batting_team.player_name(d.dismissal.batter_id),
            score=score,
            overs=balls_to_overs(legal_total, balls_per_over),
        ))
        batters = [pid for pid in (d.striker_id, d.non_striker_id) if pid != d.dismissal.batter_id]
        runs = balls = 0

    if runs or balls:
        partnerships.append(Partnership(len(fow) + 1, tuple(batters), runs, balls, unbroken=True))

    return tuple(partnerships), tuple(fow)


def project_scorecard(innings: Innings, balls_per_over: int = 6) -> InningsScorecard:
    batting = _batting(innings)
    partnerships, fow = _partnerships_and_fow(innings, balls_per_over)
    appeared = {b.player_id for b in batting}

    return InningsScorecard(
        batting_team=innings.batting_team.name,
        bowling_team=innings.bowling_team.name,
        runs=innings.runs,
        wickets=innings.wickets,
        overs=balls_to_overs(innings.legal_balls, balls_per_over),
        run_rate=_rounded(run_rate(innings.runs, innings.legal_balls, balls_per_over)),
        extras={
            "wides": innings.extras.wides,
            "no_balls": innings.extras.no_balls,
            "byes": innings.extras.byes,
            "leg_byes": innings.extras.leg_byes,
            "total": innings.extras.total,
        },
        target=innings.target,
        batting=batting,
        bowling=_bowling(innings, balls_per_over),
        partnerships=partnerships,
        fall_of_wickets=fow,
        did_not_bat=tuple(p.name for p in innings.batting_team.players if p.id not in appeared),
    )


def scorecard_frames(card: InningsScorecard) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Batting and bowling tables as DataFrames (for CSV export)."""
    batting = pd.DataFrame(
        [asdict(b) for b in card.batting],
        columns=["player_id", "name", "how_out", "runs", "balls", "fours", "sixes", "strike_rate"],
    )
    bowling = pd.DataFrame(
        [asdict(b) for b in card.bowling],
        columns=["player_id", "name", "overs", "maidens", "runs", "wickets", "wides", "no_balls", "economy"],
    )
    return batting, bowling


def scorecard_csv(card: InningsScorecard) -> str:
    batting, bowling = scorecard_frames(card)
    header = f"{card.batting_team} {card.runs}/{card.wickets} ({card.overs} ov)\n"
    return (
        header
        + batting.to_csv(index=False)
        + f"Extras,{card.extras['total']}\n\n"
        + bowling.to_csv(index=False)
    )
