# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0", "pydantic>=2.0"]
# ///
"""Tests for the entity store.

Validates:
  1. Inserts reject nil IDs, unknown players and duplicate roster entries
  2. A failed insert leaves the store unchanged
  3. start_day validates every game before swapping anything in
  4. check_consistency reports every problem, not just the first
  5. load_* on a dangling ID is an invariant violation, not a DatabaseError
  6. checkout_game always returns the game to its position
  7. Deserializing an inconsistent store raises ConsistencyError
  8. Runners below first base are rejected before commit
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from pydantic import ValidationError

from database import (
    BadReferenceError,
    ConsistencyError,
    Database,
    DatabaseDocument,
    DatabaseError,
    DuplicateBaseError,
    DuplicatePlayerError,
    InvalidBaseError,
    InvariantViolation,
    KeyMismatchError,
    NilIdError,
)
from models import NIL_ID, Date, Game, Player, Team, new_id


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def make_players(n, prefix="Player"):
    return [Player(name=f"{prefix} {i}") for i in range(n)]


@pytest.fixture
def db():
    return Database()


@pytest.fixture
def league(db):
    """A store with two five-player teams."""
    teams = []
    for location, nickname in (("Away", "Visitors"), ("Home", "Hosts")):
        players = make_players(5, nickname)
        for player in players:
            db.insert_player(player)
        team = Team(
            location=location,
            nickname=nickname,
            lineup=[p.id for p in players[:4]],
            rotation=[players[4].id],
        )
        db.insert_team(team)
        teams.append(team)
    return db, teams[0], teams[1]


# ---------------------------------------------------------------------------
# Inserts
# ---------------------------------------------------------------------------

class TestInsertPlayer:
    def test_insert(self, db):
        player = Player(name="Valid")
        db.insert_player(player)
        assert db.load_player(player.id) is player

    def test_nil_id_rejected(self, db):
        with pytest.raises(NilIdError, match="player has a nil ID"):
            db.insert_player(Player(id=NIL_ID, name="Nil"))
        assert db.players == {}

    def test_replace_existing(self, db):
        player = Player(name="Before")
        db.insert_player(player)
        db.insert_player(player.model_copy(update={"name": "After"}))
        assert db.load_player(player.id).name == "After"


class TestInsertTeam:
    def test_insert(self, league):
        db, away, home = league
        assert db.load_team(away.id) is away
        assert db.check_consistency() == []

    def test_nil_id_rejected(self, db):
        with pytest.raises(NilIdError):
            db.insert_team(Team(id=NIL_ID))
        assert db.teams == {}

    def test_unknown_player_rejected(self, db):
        missing = new_id()
        with pytest.raises(BadReferenceError) as excinfo:
            db.insert_team(Team(lineup=[missing]))
        assert excinfo.value.kind == "player"
        assert excinfo.value.id == missing
        assert db.teams == {}

    def test_duplicate_across_lineup_and_rotation(self, db):
        player = Player(name="Two Way")
        db.insert_player(player)
        with pytest.raises(DuplicatePlayerError) as excinfo:
            db.insert_team(Team(lineup=[player.id], rotation=[player.id]))
        assert excinfo.value.player == player.id

    def test_duplicate_in_shadows(self, db):
        player = Player(name="Shadow")
        db.insert_player(player)
        with pytest.raises(DuplicatePlayerError):
            db.insert_team(Team(shadows=[player.id, player.id]))

    def test_errors_are_database_errors(self, db):
        with pytest.raises(DatabaseError):
            db.insert_team(Team(lineup=[new_id()]))

    def test_empty_roster_allowed(self, db):
        db.insert_team(Team(location="Empty", nickname="Nobodies"))
        assert len(db.teams) == 1


# ---------------------------------------------------------------------------
# start_day
# ---------------------------------------------------------------------------

class TestStartDay:
    def test_swaps_and_returns_previous(self, league):
        db, away, home = league
        first = [Game.new(away.id, home.id)]
        old_date, old_games = db.start_day(Date(season=0, day=1), first)
        assert old_date == Date()
        assert old_games == []

        second = [Game.new(home.id, away.id)]
        old_date, old_games = db.start_day(Date(season=0, day=2), second)
        assert old_date == Date(season=0, day=1)
        assert old_games == first
        assert db.games_today == second

    def test_unknown_team_rejected_atomically(self, league):
        db, away, home = league
        good = Game.new(away.id, home.id)
        bad = Game.new(away.id, new_id())
        with pytest.raises(BadReferenceError, match="team"):
            db.start_day(Date(season=0, day=1), [good, bad])
        assert db.date == Date()
        assert db.games_today == []

    def test_unknown_runner_rejected(self, league):
        db, away, home = league
        game = Game.new(away.id, home.id)
        game.baserunners = [(new_id(), 1)]
        with pytest.raises(BadReferenceError, match="player"):
            db.start_day(Date(), [game])

    def test_two_runners_on_one_base_rejected(self, league):
        db, away, home = league
        game = Game.new(away.id, home.id)
        game.baserunners = [(away.lineup[0], 2), (away.lineup[1], 2)]
        with pytest.raises(DuplicateBaseError):
            db.start_day(Date(), [game])

    def test_runner_below_first_base_rejected(self, league):
        db, away, home = league
        game = Game.new(away.id, home.id)
        game.baserunners = [(away.lineup[0], 0), (away.lineup[1], -3)]
        with pytest.raises(InvalidBaseError) as excinfo:
            db.start_day(Date(season=0, day=1), [game])
        assert excinfo.value.base == 0
        assert db.date == Date()
        assert db.games_today == []

    def test_invalid_base_reported_by_consistency_check(self, league):
        db, away, home = league
        game = Game.new(away.id, home.id)
        db.start_day(Date(), [game])
        game.baserunners = [(away.lineup[0], -3)]
        problems = db.check_consistency()
        assert [p.base for p in problems if isinstance(p, InvalidBaseError)] == [-3]

    def test_nil_game_rejected(self, league):
        db, away, home = league
        game = Game.new(away.id, home.id)
        game.id = NIL_ID
        with pytest.raises(NilIdError, match="game"):
            db.start_day(Date(), [game])

    def test_logs_day_start(self, league, caplog):
        db, away, home = league
        with caplog.at_level(logging.INFO, logger="database"):
            db.start_day(Date(season=1, day=4), [Game.new(away.id, home.id)])
        assert "Season 2, Day 5" in caplog.text


# ---------------------------------------------------------------------------
# Loads and checkout
# ---------------------------------------------------------------------------

class TestLoads:
    def test_missing_player_is_invariant_violation(self, db):
        missing = new_id()
        with pytest.raises(InvariantViolation, match=f"Player {missing} not found"):
            db.load_player(missing)

    def test_missing_team_is_invariant_violation(self, db):
        with pytest.raises(InvariantViolation, match="not found"):
            db.load_team(new_id())

    def test_invariant_violation_is_not_a_database_error(self):
        assert issubclass(InvariantViolation, AssertionError)
        assert not issubclass(InvariantViolation, DatabaseError)


class TestCheckoutGame:
    def test_game_is_removed_then_restored(self, league):
        db, away, home = league
        games = [Game.new(away.id, home.id), Game.new(home.id, away.id)]
        db.start_day(Date(), games)
        with db.checkout_game(0) as game:
            assert game is games[0]
            assert db.games_today == [games[1]]
            game.balls = 2
        assert db.games_today == games
        assert db.games_today[0].balls == 2

    def test_restored_after_error(self, league):
        db, away, home = league
        games = [Game.new(away.id, home.id), Game.new(home.id, away.id)]
        db.start_day(Date(), games)
        with pytest.raises(RuntimeError):
            with db.checkout_game(1):
                raise RuntimeError("boom")
        assert db.games_today == games


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------

class TestConsistency:
    def test_reports_every_problem(self, league):
        db, away, home = league
        ghost = new_id()
        away.lineup.append(ghost)
        home.rotation.append(home.lineup[0])
        problems = db.check_consistency()
        assert any(isinstance(p, BadReferenceError) and p.id == ghost for p in problems)
        assert any(isinstance(p, DuplicatePlayerError) for p in problems)
        assert len(problems) >= 2

    def test_key_mismatch(self, league):
        db, away, home = league
        player = db.load_player(away.lineup[0])
        db.players[new_id()] = player
        problems = db.check_consistency()
        assert any(isinstance(p, KeyMismatchError) and p.kind == "player" for p in problems)

    def test_debug_check_raises_invariant_violation(self, league, caplog):
        db, away, home = league
        away.lineup.append(new_id())
        with caplog.at_level(logging.ERROR, logger="database"):
            with pytest.raises(InvariantViolation, match="not found"):
                db.debug_check()
        assert "consistency check failed" in caplog.text

    def test_debug_check_passes_when_consistent(self, league):
        db, away, home = league
        db.debug_check()


class TestDocument:
    def test_round_trip(self, league):
        db, away, home = league
        db.start_day(Date(season=2, day=9), [Game.new(away.id, home.id)])
        db.rituals = ["Meditation"]
        data = db.to_document().model_dump(mode="json")
        assert data["season"] == 2
        assert data["day"] == 9
        restored = Database.from_document(DatabaseDocument.model_validate(data))
        assert restored.date == db.date
        assert restored.players == db.players
        assert restored.teams == db.teams
        assert restored.games_today == db.games_today
        assert restored.rituals == ["Meditation"]

    def test_keys_serialize_as_strings(self, league):
        db, away, home = league
        data = db.to_document().model_dump(mode="json")
        assert str(away.id) in data["teams"]

    def test_out_of_range_attribute_rejected_on_load(self, league):
        db, away, home = league
        data = db.to_document().model_dump(mode="json")
        data["players"][str(away.lineup[0])]["buoyancy"] = -0.6
        with pytest.raises(ValidationError):
            DatabaseDocument.model_validate(data)

    def test_inconsistent_document_rejected(self, league):
        db, away, home = league
        data = db.to_document().model_dump(mode="json")
        ghost = str(new_id())
        data["teams"][str(away.id)]["lineup"].append(ghost)
        data["players"][str(new_id())] = {"id": str(away.lineup[0]), "name": "Impostor"}
        with pytest.raises(ConsistencyError) as excinfo:
            Database.from_document(DatabaseDocument.model_validate(data))
        message = str(excinfo.value)
        assert ghost in message
        assert "; " in message
        assert len(excinfo.value.problems) >= 2
