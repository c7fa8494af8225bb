# main.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from scoring_api import cache
from scoring_api.config import (
    DEFAULT_BALLS_PER_OVER,
    DEFAULT_OVERS,
    PREDICTION_CACHE_TTL_SECONDS,
    PREDICTION_STALE_TTL_SECONDS,
    validate_config,
)
from scoring_api.errors import (
    InvalidEventError,
    MatchNotFoundError,
    PredictionUnavailableError,
    RuleViolationError,
    StaleStateError,
)
from scoring_api.logger import get_logger
from scoring_api.models import (
    BallEvent,
    DismissalKind,
    EventKind,
    ExtraRule,
    MatchConfig,
    MatchState,
    NoBallRule,
    Player,
    RuleConfiguration,
    Team,
    Toss,
)
from scoring_api.prediction_client import build_prediction_snapshot, predict
from scoring_api.processor import apply, new_match
from scoring_api.result import chase_equation, evaluate_result
from scoring_api.scorecard import project_scorecard, scorecard_csv
from scoring_api.serialization import to_record
from scoring_api.store import InMemoryMatchStore

log = get_logger("api")

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Cricket Match Scoring API",
    version="0.1.0",
    description="Ball-by-ball scoring, scorecards, results and win-probability for limited-overs matches",
)

store = InMemoryMatchStore()


@app.on_event("startup")
def on_startup():
    validate_config()


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Request models
# -----------------------
class PlayerIn(BaseModel):
    id: str
    name: str


class TeamIn(BaseModel):
    id: str
    name: str
    players: List[PlayerIn] = Field(..., min_length=2)


class TossIn(BaseModel):
    winner: Literal["team1", "team2"]
    decision: Literal["bat", "bowl"]


class ExtraRuleIn(BaseModel):
    enabled: bool = True
    reball: bool = True
    runsConceded: int = Field(1, ge=0)


class NoBallRuleIn(ExtraRuleIn):
    freeHit: bool = True


class RulesIn(BaseModel):
    ballsPerOver: int = Field(DEFAULT_BALLS_PER_OVER, ge=1)
    noBall: NoBallRuleIn = Field(default_factory=NoBallRuleIn)
    wideBall: ExtraRuleIn = Field(default_factory=ExtraRuleIn)


class MatchCreateRequest(BaseModel):
    team1: TeamIn
    team2: TeamIn
    toss: TossIn
    totalOvers: int = Field(DEFAULT_OVERS, ge=1)
    rules: RulesIn = Field(default_factory=RulesIn)


class EventIn(BaseModel):
    kind: EventKind
    innings: Optional[int] = None
    strikerId: Optional[str] = None
    nonStrikerId: Optional[str] = None
    bowlerId: Optional[str] = None
    runs: int = Field(0, ge=0)
    extra: Optional[EventKind] = None
    dismissal: Optional[DismissalKind] = None
    dismissedId: Optional[str] = None
    fielderId: Optional[str] = None
    batterId: Optional[str] = None
    abandoned: bool = False
    targetSeq: Optional[int] = None
    revisedOvers: Optional[int] = None
    revisedTarget: Optional[int] = None
    actor: Optional[str] = Field(None, description="Acting user, recorded for audit only")


class EventRequest(BaseModel):
    event: EventIn
    expectedVersion: int = Field(..., ge=0, description="Version of the state this event was scored against")


# -----------------------
# Helpers
# -----------------------
def _team(t: TeamIn) -> Team:
    return Team(id=t.id, name=t.name, players=tuple(Player(id=p.id, name=p.name) for p in t.players))


def _config(req: MatchCreateRequest) -> MatchConfig:
    r = req.rules
    rules = RuleConfiguration(
        balls_per_over=r.ballsPerOver,
        no_ball=NoBallRule(
            enabled=r.noBall.enabled,
            reball=r.noBall.reball,
            runs_conceded=r.noBall.runsConceded,
            free_hit=r.noBall.freeHit,
        ),
        wide_ball=ExtraRule(
            enabled=r.wideBall.enabled,
            reball=r.wideBall.reball,
            runs_conceded=r.wideBall.runsConceded,
        ),
    )
    return MatchConfig(
        team1=_team(req.team1),
        team2=_team(req.team2),
        toss=Toss(winner=req.toss.winner, decision=req.toss.decision),
        total_overs=req.totalOvers,
        rules=rules,
    )


def _event(e: EventIn) -> BallEvent:
    return BallEvent(
        kind=e.kind,
        innings=e.innings,
        striker_id=e.strikerId,
        non_striker_id=e.nonStrikerId,
        bowler_id=e.bowlerId,
        runs=e.runs,
        extra=e.extra,
        dismissal=e.dismissal,
        dismissed_id=e.dismissedId,
        fielder_id=e.fielderId,
        batter_id=e.batterId,
        abandoned=e.abandoned,
        target_seq=e.targetSeq,
        revised_overs=e.revisedOvers,
        revised_target=e.revisedTarget,
        actor=e.actor,
    )


def _load(match_id: str) -> MatchState:
    try:
        return store.load(match_id)
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown match: {match_id}")


def _load_with_version(match_id: str) -> Tuple[MatchState, int]:
    try:
        return store.load_with_version(match_id)
    except MatchNotFoundError:
        raise HTTPException(status_code=404, detail=f"Unknown match: {match_id}")


def _state_response(match_id: str, state: MatchState, version: int) -> Dict[str, Any]:
    resp: Dict[str, Any] = {
        "matchId": match_id,
        "version": version,
        "phase": state.phase.value,
        "state": to_record(state),
    }
    current = state.current
    if current.target is not None and not state.match_over:
        resp["chase"] = chase_equation(current, state.config.rules.balls_per_over)
    return resp


# -----------------------
# Match lifecycle
# -----------------------
@app.post("/api/matches", status_code=201)
def create_match(req: MatchCreateRequest):
    try:
        state = new_match(_config(req))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    match_id = store.create(state)
    return _state_response(match_id, state, store.version(match_id))


@app.get("/api/matches")
def list_matches():
    return {"matches": store.match_ids()}


@app.get("/api/matches/{match_id}")
def get_match(match_id: str):
    state, version = _load_with_version(match_id)
    return _state_response(match_id, state, version)


@app.post("/api/matches/{match_id}/events")
def post_event(match_id: str, req: EventRequest):
    state, current_version = _load_with_version(match_id)
    if req.expectedVersion != current_version:
        raise HTTPException(
            status_code=409,
            detail=f"Stale state: scored against v{req.expectedVersion}, stored is v{current_version}. Re-fetch and retry.",
        )

    try:
        new_state = apply(state, _event(req.event))
    except InvalidEventError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuleViolationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        version = store.save(match_id, new_state, current_version)
    except StaleStateError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _state_response(match_id, new_state, version)


# -----------------------
# Read models
# -----------------------
@app.get("/api/matches/{match_id}/scorecard")
def get_scorecard(match_id: str):
    state = _load(match_id)
    bpo = state.config.rules.balls_per_over
    return {
        "matchId": match_id,
        "innings": [project_scorecard(inn, bpo).to_dict() for inn in state.innings],
        "matchOver": state.match_over,
        "resultText": state.result_text,
    }


@app.get("/api/matches/{match_id}/scorecard.csv", response_class=PlainTextResponse)
def get_scorecard_csv(match_id: str, innings: int = 0):
    state = _load(match_id)
    if innings < 0 or innings >= len(state.innings):
        raise HTTPException(status_code=404, detail=f"Innings {innings} has not started")
    card = project_scorecard(state.innings[innings], state.config.rules.balls_per_over)
    return PlainTextResponse(scorecard_csv(card), media_type="text/csv")


@app.get("/api/matches/{match_id}/result")
def get_result(match_id: str):
    state = _load(match_id)
    if not state.match_over:
        raise HTTPException(status_code=409, detail="Match is still in progress")

    result = evaluate_result(state.innings[0], state.innings[1])
    return {
        "matchId": match_id,
        "resultType": result.result_type,
        "winner": result.winner,
        "winnerName": result.winner_name,
        "margin": result.margin,
        "marginUnit": result.margin_unit,
        "resultText": state.result_text,
    }


# -----------------------
# Win probability (external predictor + cache fallback)
# -----------------------
@app.get("/api/matches/{match_id}/prediction")
def get_prediction(match_id: str):
    state = _load(match_id)
    fresh_key = cache.make_key("prediction", match_id, state.next_seq)
    stale_key = cache.make_key("prediction", match_id, "last")

    cached = cache.get(fresh_key)
    if cached is not None:
        return {"source": "cache", "stale": False, "prediction": cached}

    snapshot = build_prediction_snapshot(state)
    try:
        prediction = predict(snapshot).to_dict()
    except PredictionUnavailableError as e:
        last = cache.get_with_age(stale_key)
        if last is not None:
            value, age = last
            return {
                "source": "cache",
                "stale": True,
                "ageSeconds": round(age, 1),
                "warning": "Predictor unavailable, serving last known prediction",
                "error": str(e),
                "prediction": value,
            }
        raise HTTPException(status_code=503, detail=f"Prediction unavailable: {str(e)}")

    cache.set(fresh_key, prediction, ttl_seconds=PREDICTION_CACHE_TTL_SECONDS)
    cache.set(stale_key, prediction, ttl_seconds=PREDICTION_STALE_TTL_SECONDS)
    return {"source": "predictor", "stale": False, "snapshot": snapshot, "prediction": prediction}
