# scoring_api/serialization.py
"""
Structural records for MatchState / MatchConfig.

The persisted shape is a plain JSON-compatible dict using the camelCase field
names of the data model (ballsPerOver, noBall.runsConceded, matchOver, ...).
`from_record(to_record(state)) == state` for every state the processor builds.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from scoring_api.models import (
    BallEvent,
    Delivery,
    Dismissal,
    DismissalKind,
    EventKind,
    ExtraRule,
    Extras,
    Innings,
    MatchConfig,
    MatchPhase,
    MatchState,
    NoBallRule,
    Over,
    Player,
    RuleConfiguration,
    Team,
    Toss,
)

Record = Dict[str, Any]


def _enum_or_none(enum_cls, raw: Optional[str]):
    return enum_cls(raw) if raw is not None else None


# -----------------------------
# Config
# -----------------------------
def rules_to_record(rules: RuleConfiguration) -> Record:
    return {
        "ballsPerOver": rules.balls_per_over,
        "noBall": {
            "enabled": rules.no_ball.enabled,
            "reball": rules.no_ball.reball,
            "runsConceded": rules.no_ball.runs_conceded,
            "freeHit": rules.no_ball.free_hit,
        },
        "wideBall": {
            "enabled": rules.wide_ball.enabled,
            "reball": rules.wide_ball.reball,
            "runsConceded": rules.wide_ball.runs_conceded,
        },
    }


def rules_from_record(rec: Record) -> RuleConfiguration:
    nb = rec.get("noBall") or {}
    wd = rec.get("wideBall") or {}
    return RuleConfiguration(
        balls_per_over=int(rec.get("ballsPerOver", 6)),
        no_ball=NoBallRule(
            enabled=bool(nb.get("enabled", True)),
            reball=bool(nb.get("reball", True)),
            runs_conceded=int(nb.get("runsConceded", 1)),
            free_hit=bool(nb.get("freeHit", True)),
        ),
        wide_ball=ExtraRule(
            enabled=bool(wd.get("enabled", True)),
            reball=bool(wd.get("reball", True)),
            runs_conceded=int(wd.get("runsConceded", 1)),
        ),
    )


def team_to_record(team: Team) -> Record:
    return {
        "id": team.id,
        "name": team.name,
        "players": [{"id": p.id, "name": p.name} for p in team.players],
    }


def team_from_record(rec: Record) -> Team:
    return Team(
        id=str(rec["id"]),
        name=str(rec["name"]),
        players=tuple(Player(id=str(p["id"]), name=str(p["name"])) for p in rec.get("players", [])),
    )


def config_to_record(config: MatchConfig) -> Record:
    return {
        "team1": team_to_record(config.team1),
        "team2": team_to_record(config.team2),
        "toss": {"winner": config.toss.winner, "decision": config.toss.decision},
        "totalOvers": config.total_overs,
        "rules": rules_to_record(config.rules),
    }


def config_from_record(rec: Record) -> MatchConfig:
    return MatchConfig(
        team1=team_from_record(rec["team1"]),
        team2=team_from_record(rec["team2"]),
        toss=Toss(winner=rec["toss"]["winner"], decision=rec["toss"]["decision"]),
        total_overs=int(rec["totalOvers"]),
        rules=rules_from_record(rec.get("rules") or {}),
    )


# -----------------------------
# Events
# -----------------------------
def event_to_record(event: BallEvent) -> Record:
    return {
        "kind": event.kind.value,
        "innings": event.innings,
        "strikerId": event.striker_id,
        "nonStrikerId": event.non_striker_id,
        "bowlerId": event.bowler_id,
        "runs": event.runs,
        "extra": event.extra.value if event.extra else None,
        "dismissal": event.dismissal.value if event.dismissal else None,
        "dismissedId": event.dismissed_id,
        "fielderId": event.fielder_id,
        "batterId": event.batter_id,
        "abandoned": event.abandoned,
        "targetSeq": event.target_seq,
        "revisedOvers": event.revised_overs,
        "revisedTarget": event.revised_target,
        "actor": event.actor,
        "seq": event.seq,
    }


def event_from_record(rec: Record) -> BallEvent:
    return BallEvent(
        kind=EventKind(rec["kind"]),
        innings=rec.get("innings"),
        striker_id=rec.get("strikerId"),
        non_striker_id=rec.get("nonStrikerId"),
        bowler_id=rec.get("bowlerId"),
        runs=int(rec.get("runs") or 0),
        extra=_enum_or_none(EventKind, rec.get("extra")),
        dismissal=_enum_or_none(DismissalKind, rec.get("dismissal")),
        dismissed_id=rec.get("dismissedId"),
        fielder_id=rec.get("fielderId"),
        batter_id=rec.get("batterId"),
        abandoned=bool(rec.get("abandoned", False)),
        target_seq=rec.get("targetSeq"),
        revised_overs=rec.get("revisedOvers"),
        revised_target=rec.get("revisedTarget"),
        actor=rec.get("actor"),
        seq=rec.get("seq"),
    )


# -----------------------------
# Ball log
# -----------------------------
def _dismissal_to_record(d: Optional[Dismissal]) -> Optional[Record]:
    if d is None:
        return None
    return {
        "batterId": d.batter_id,
        "kind": d.kind.value,
        "bowlerId": d.bowler_id,
        "fielderId": d.fielder_id,
        "over": d.over,
        "ball": d.ball,
        "score": d.score,
    }


def _dismissal_from_record(rec: Optional[Record]) -> Optional[Dismissal]:
    if rec is None:
        return None
    return Dismissal(
        batter_id=rec["batterId"],
        kind=DismissalKind(rec["kind"]),
        bowler_id=rec.get("bowlerId"),
        fielder_id=rec.get("fielderId"),
        over=int(rec["over"]),
        ball=int(rec["ball"]),
        score=int(rec["score"]),
    )


def _delivery_to_record(d: Delivery) -> Record:
    return {
        "seq": d.seq,
        "kind": d.kind.value,
        "strikerId": d.striker_id,
        "nonStrikerId": d.non_striker_id,
        "bowlerId": d.bowler_id,
        "batRuns": d.bat_runs,
        "extraRuns": d.extra_runs,
        "legal": d.legal,
        "freeHit": d.free_hit,
        "dismissal": _dismissal_to_record(d.dismissal),
    }


def _delivery_from_record(rec: Record) -> Delivery:
    return Delivery(
        seq=int(rec["seq"]),
        kind=EventKind(rec["kind"]),
        striker_id=rec["strikerId"],
        non_striker_id=rec["nonStrikerId"],
        bowler_id=rec["bowlerId"],
        bat_runs=int(rec["batRuns"]),
        extra_runs=int(rec["extraRuns"]),
        legal=bool(rec["legal"]),
        free_hit=bool(rec.get("freeHit", False)),
        dismissal=_dismissal_from_record(rec.get("dismissal")),
    )


def _innings_to_record(inn: Innings) -> Record:
    return {
        "index": inn.index,
        "battingTeam": inn.batting_key,
        "bowlingTeam": inn.bowling_key,
        "maxOvers": inn.max_overs,
        "runs": inn.runs,
        "wickets": inn.wickets,
        "legalBalls": inn.legal_balls,
        "overs": [
            {
                "inningsIndex": o.innings,
                "number": o.number,
                "bowlerId": o.bowler_id,
                "balls": [_delivery_to_record(d) for d in o.deliveries],
                "sealed": o.sealed,
            }
            for o in inn.overs
        ],
        "dismissals": [_dismissal_to_record(d) for d in inn.dismissals],
        "retired": list(inn.retired),
        "extras": {
            "wides": inn.extras.wides,
            "noBalls": inn.extras.no_balls,
            "byes": inn.extras.byes,
            "legByes": inn.extras.leg_byes,
        },
        "target": inn.target,
        "closed": inn.closed,
        "abandoned": inn.abandoned,
    }


def _innings_from_record(rec: Record, config: MatchConfig) -> Innings:
    extras = rec.get("extras") or {}
    return Innings(
        index=int(rec["index"]),
        batting_key=rec["battingTeam"],
        bowling_key=rec["bowlingTeam"],
        batting_team=config.team(rec["battingTeam"]),
        bowling_team=config.team(rec["bowlingTeam"]),
        max_overs=int(rec["maxOvers"]),
        runs=int(rec["runs"]),
        wickets=int(rec["wickets"]),
        legal_balls=int(rec["legalBalls"]),
        overs=tuple(
            Over(
                innings=int(o["inningsIndex"]),
                number=int(o["number"]),
                bowler_id=o["bowlerId"],
                deliveries=tuple(_delivery_from_record(b) for b in o.get("balls", [])),
                sealed=bool(o.get("sealed", False)),
            )
            for o in rec.get("overs", [])
        ),
        dismissals=tuple(_dismissal_from_record(d) for d in rec.get("dismissals", [])),
        retired=tuple(rec.get("retired", [])),
        extras=Extras(
            wides=int(extras.get("wides", 0)),
            no_balls=int(extras.get("noBalls", 0)),
            byes=int(extras.get("byes", 0)),
            leg_byes=int(extras.get("legByes", 0)),
        ),
        target=rec.get("target"),
        closed=bool(rec.get("closed", False)),
        abandoned=bool(rec.get("abandoned", False)),
    )


# -----------------------------
# MatchState
# -----------------------------
def to_record(state: MatchState) -> Record:
    return {
        "config": config_to_record(state.config),
        "innings": [_innings_to_record(i) for i in state.innings],
        "currentInnings": state.current_innings,
        "strikerId": state.striker_id,
        "nonStrikerId": state.non_striker_id,
        "bowlerId": state.bowler_id,
        "phase": state.phase.value,
        "matchOver": state.match_over,
        "resultText": state.result_text,
        "events": [event_to_record(e) for e in state.events],
    }


def from_record(rec: Record) -> MatchState:
    config = config_from_record(rec["config"])
    innings: List[Innings] = [_innings_from_record(i, config) for i in rec["innings"]]
    return MatchState(
        config=config,
        innings=tuple(innings),
        current_innings=int(rec["currentInnings"]),
        striker_id=rec.get("strikerId"),
        non_striker_id=rec.get("nonStrikerId"),
        bowler_id=rec.get("bowlerId"),
        phase=MatchPhase(rec["phase"]),
        match_over=bool(rec["matchOver"]),
        result_text=rec.get("resultText", ""),
        events=tuple(event_from_record(e) for e in rec.get("events", [])),
    )
