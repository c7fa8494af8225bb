from __future__ import annotations

import pytest

from helpers import play, runs, start
from scoring_api.errors import MatchNotFoundError, StaleStateError
from scoring_api.store import InMemoryMatchStore


@pytest.fixture
def store():
    return InMemoryMatchStore()


def test_create_and_load(store):
    state = start()
    match_id = store.create(state)

    assert store.version(match_id) == 0
    assert store.load(match_id) == state
    assert store.match_ids() == [match_id]


def test_explicit_ids_must_be_unique(store):
    store.create(start(), match_id="final")
    with pytest.raises(ValueError):
        store.create(start(), match_id="final")


def test_save_bumps_version(store):
    state = start()
    match_id = store.create(state)

    state = play(state, runs(4))
    assert store.save(match_id, state, 0) == 1
    state = play(state, runs(1))
    assert store.save(match_id, state, 1) == 2

    assert store.version(match_id) == 2
    assert store.load(match_id).current.runs == 5


def test_stale_write_is_rejected_and_nothing_changes(store):
    state = start()
    match_id = store.create(state)
    store.save(match_id, play(state, runs(4)), 0)

    # second scorer still holding v0
    with pytest.raises(StaleStateError) as exc:
        store.save(match_id, play(state, runs(6)), 0)

    assert (exc.value.expected, exc.value.actual) == (0, 1)
    assert store.version(match_id) == 1
    assert store.load(match_id).current.runs == 4


def test_unknown_match(store):
    with pytest.raises(MatchNotFoundError):
        store.load("nope")
    with pytest.raises(MatchNotFoundError):
        store.save("nope", start(), 0)
    with pytest.raises(KeyError):
        store.version("nope")


def test_subscribers_see_committed_states(store):
    state = start()
    match_id = store.create(state)
    seen = []
    unsubscribe = store.subscribe(match_id, seen.append)

    first = play(state, runs(2))
    store.save(match_id, first, 0)
    unsubscribe()
    store.save(match_id, play(first, runs(1)), 1)

    assert seen == [first]


def test_failed_save_does_not_notify(store):
    state = start()
    match_id = store.create(state)
    seen = []
    store.subscribe(match_id, seen.append)

    with pytest.raises(StaleStateError):
        store.save(match_id, play(state, runs(1)), 5)
    assert seen == []


def test_load_with_version_reads_state_and_version_together(store):
    state = start()
    match_id = store.create(state)
    later = play(state, runs(4))
    store.save(match_id, later, 0)

    loaded, version = store.load_with_version(match_id)
    assert (loaded, version) == (later, 1)
    with pytest.raises(MatchNotFoundError):
        store.load_with_version("nope")
