"""Unit tests for src/db/sql_repository.py"""

from dataclasses import replace
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from src.core.exceptions import ConcurrencyConflictError
from src.core.models import MatchModel
from src.db.sql_repository import SQLMatchRepository

FISCHER = {
    "mode": "fischer",
    "main_time": 60.0,
    "increment": 5.0,
    "byo_yomi_time": 0.0,
    "byo_yomi_periods": 0,
}


def _playing_model(**overrides) -> MatchModel:
    """Mock match data: 9x9 game in the play phase with a single black stone."""
    board: list[list[str | None]] = [[None] * 9 for _ in range(9)]
    board[4][4] = "black"
    data = dict(
        host_id="player_black",
        guest_id="player_white",
        phase="play",
        board=board,
        current_turn="white",
        position_history=["empty", "one stone"],
    )
    data.update(overrides)
    return MatchModel(**data)


def test_create_match(db_session_repo: Session) -> None:
    """Conversion from a MatchModel to DBMatch for a new entry to the database."""
    model = MatchModel(host_id="player_black")

    repo = SQLMatchRepository(db_session_repo)
    record_in_db, _ = repo.create_match(model)
    assert isinstance(record_in_db, MatchModel)
    assert record_in_db == model
    assert record_in_db.version == 0


def test_get_match_by_id(db_session_repo: Session) -> None:
    """Create a match, then fetch it from db."""
    repo = SQLMatchRepository(db_session_repo)
    expected_match, match_id = repo.create_match(_playing_model())
    match_found = repo.get_match(match_id)
    assert isinstance(match_found, MatchModel)
    assert match_found == expected_match
    assert match_found.board is not None
    assert match_found.board[4][4] == "black"
    assert repo.exists(match_id)


def test_get_unknown_match(db_session_repo: Session) -> None:
    """Should return None if ID does not match anything in database."""
    repo = SQLMatchRepository(db_session_repo)
    assert repo.get_match(uuid4()) is None

    # Now do it with creating a match, but retrieving from the wrong ID
    repo.create_match(_playing_model())
    assert repo.get_match(uuid4()) is None
    assert not repo.exists(uuid4())


def test_update_match_bumps_version(db_session_repo: Session) -> None:
    repo = SQLMatchRepository(db_session_repo)
    created, match_id = repo.create_match(MatchModel(host_id="player_black"))

    after = replace(created, guest_id="player_white")
    updated = repo.update_match(match_id, after)
    assert updated is not None
    assert updated == replace(after, version=1)
    assert repo.get_match(match_id) == updated


def test_consecutive_match_updates(db_session_repo: Session) -> None:
    """Tests that we can successfully make multiple updates to the same match."""
    repo = SQLMatchRepository(db_session_repo)
    created, match_id = repo.create_match(MatchModel(host_id="player_black"))

    current = created
    for turn in range(3):
        saved = repo.update_match(match_id, replace(current, consecutive_passes=turn))
        assert saved is not None
        current = saved

    after_all_updates = repo.get_match(match_id)
    assert after_all_updates is not None
    assert after_all_updates.consecutive_passes == 2
    assert after_all_updates.version == 3


def test_stale_update_is_rejected(db_session_repo: Session) -> None:
    """Two writers loaded the same version: the second save loses."""
    repo = SQLMatchRepository(db_session_repo)
    created, match_id = repo.create_match(_playing_model())

    first_writer = replace(created, current_turn="black", consecutive_passes=1)
    second_writer = replace(created, phase="complete")

    assert repo.update_match(match_id, first_writer) is not None
    with pytest.raises(ConcurrencyConflictError) as error:
        repo.update_match(match_id, second_writer)
    assert error.value.retryable

    # the first write survives
    stored = repo.get_match(match_id)
    assert stored is not None
    assert stored.phase == "play"
    assert stored.consecutive_passes == 1


def test_attempt_updating_unknown_match(db_session_repo: Session) -> None:
    """the update_match() method should break early and return None"""
    repo = SQLMatchRepository(db_session_repo)
    assert repo.update_match(uuid4(), _playing_model()) is None


def test_delete_match(db_session_repo: Session) -> None:
    """Record of the match should no longer exist after deletion"""
    repo = SQLMatchRepository(db_session_repo)
    created_match, match_id = repo.create_match(_playing_model())
    deleted_match = repo.delete_match(match_id)

    # the correct match should be deleted
    assert deleted_match == created_match

    # The match should no longer be available in db
    assert repo.get_match(match_id) is None


def test_attempt_deleting_unknown_match(db_session_repo: Session) -> None:
    repo = SQLMatchRepository(db_session_repo)
    assert repo.delete_match(uuid4()) is None


def test_list_active_timed_matches(db_session_repo: Session) -> None:
    """Only matches in play with a running clock need periodic updates."""
    repo = SQLMatchRepository(db_session_repo)
    _, running_id = repo.create_match(_playing_model(time_control=FISCHER))
    repo.create_match(_playing_model())
    repo.create_match(_playing_model(time_control=FISCHER, phase="complete"))
    repo.create_match(_playing_model(time_control=FISCHER, time_expired="white"))
    repo.create_match(MatchModel(host_id="waiting", time_control=FISCHER))

    active = repo.list_active_timed_matches()
    assert [match_id for match_id, _ in active] == [running_id]
    assert active[0][1].time_control == FISCHER
