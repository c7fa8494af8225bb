from __future__ import annotations

import pytest
import requests

from helpers import auto_play, make_config, play, runs, set_bowler, set_strike, start, wicket
from scoring_api import prediction_client
from scoring_api.errors import PredictionUnavailableError
from scoring_api.prediction_client import build_prediction_snapshot, predict


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture
def enabled(monkeypatch):
    monkeypatch.setattr(prediction_client, "PREDICTION_ENABLED", True)
    monkeypatch.setattr(prediction_client, "PREDICTION_SERVICE_URL", "http://predictor.test/predict")
    monkeypatch.setattr(prediction_client, "PREDICTION_API_KEY", "")


def _fake_post(monkeypatch, response=None, exc=None):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if exc is not None:
            raise exc
        return response

    monkeypatch.setattr(prediction_client.requests, "post", fake_post)
    return calls


def test_snapshot_during_first_innings():
    state = play(start(), runs(1))
    snap = build_prediction_snapshot(state)

    assert snap == {
        "team1Name": "Team 1",
        "team2Name": "Team 2",
        "team1Runs": 1,
        "team2Runs": 0,
        "wicketsLostTeam1": 0,
        "wicketsLostTeam2": 0,
        "oversRemainingTeam1": 19.83,
        "oversRemainingTeam2": 20.0,
        "targetScore": 0,
    }


def test_snapshot_during_chase_is_keyed_by_team():
    state = auto_play(start(make_config(total_overs=2)), [runs(1)] * 12, ["b1", "b2"])
    state = play(state, set_strike("b1", "b2"), set_bowler("a1"), runs(4), wicket())
    snap = build_prediction_snapshot(state)

    assert (snap["team1Runs"], snap["wicketsLostTeam1"], snap["oversRemainingTeam1"]) == (12, 0, 0.0)
    assert (snap["team2Runs"], snap["wicketsLostTeam2"], snap["oversRemainingTeam2"]) == (4, 1, 1.67)
    assert snap["targetScore"] == 13


def test_predict_posts_snapshot(enabled, monkeypatch):
    calls = _fake_post(monkeypatch, FakeResponse(payload={
        "team1WinProbability": 0.35,
        "team2WinProbability": 0.65,
        "matchSummary": "Team 2 are ahead of the rate.",
    }))
    snap = build_prediction_snapshot(start())
    prediction = predict(snap)

    assert prediction.team1_win_probability == 0.35
    assert prediction.to_dict()["team2WinProbability"] == 0.65
    assert prediction.match_summary == "Team 2 are ahead of the rate."
    assert calls[0]["url"] == "http://predictor.test/predict"
    assert calls[0]["json"] == snap
    assert "Authorization" not in calls[0]["headers"]


def test_api_key_sent_as_bearer(enabled, monkeypatch):
    monkeypatch.setattr(prediction_client, "PREDICTION_API_KEY", "secret")
    calls = _fake_post(monkeypatch, FakeResponse(payload={"team1WinProbability": 1, "team2WinProbability": 0}))

    prediction = predict({}, timeout=2.5)
    assert prediction.match_summary == ""
    assert calls[0]["headers"]["Authorization"] == "Bearer secret"
    assert calls[0]["timeout"] == 2.5


def test_disabled_service_never_calls_out(monkeypatch):
    monkeypatch.setattr(prediction_client, "PREDICTION_ENABLED", False)
    calls = _fake_post(monkeypatch, FakeResponse(payload={}))

    with pytest.raises(PredictionUnavailableError):
        predict({})
    assert calls == []


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=500, text="boom"),
        FakeResponse(payload=ValueError("not json")),
        FakeResponse(payload=[0.5, 0.5]),
        FakeResponse(payload={"team1WinProbability": 1.2, "team2WinProbability": -0.2}),
        FakeResponse(payload={"team1WinProbability": "high", "team2WinProbability": 0.1}),
    ],
)
def test_bad_answers_are_unavailable(enabled, monkeypatch, response):
    _fake_post(monkeypatch, response)
    with pytest.raises(PredictionUnavailableError):
        predict({})


def test_network_failure_is_unavailable(enabled, monkeypatch):
    _fake_post(monkeypatch, exc=requests.Timeout("timed out"))
    with pytest.raises(PredictionUnavailableError):
        predict({})
