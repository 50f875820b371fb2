# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""In-memory entity store with referential integrity checks.

Holds every team, player and today's games, keyed by UUID.  Mutations are
validated before they are committed: a failed insert raises a
``DatabaseError`` subclass and leaves the store untouched.

Once the store is consistent, the ``load_*`` accessors are infallible by
contract.  A missing identifier at that point means some code path broke an
invariant, so it raises ``InvariantViolation`` (an ``AssertionError``) instead
of an ordinary error.

Usage::

    db = Database()
    db.insert_player(player)
    db.insert_team(team)
    old_date, old_games = db.start_day(Date(season=0, day=1), [game])
    assert db.check_consistency() == []
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from models import Date, Game, Player, Team, is_nil

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class DatabaseError(Exception):
    """A caller-supplied entity failed validation.  The store is unchanged."""


class NilIdError(DatabaseError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"{kind} has a nil ID")


class BadReferenceError(DatabaseError):
    def __init__(self, kind: str, id: uuid.UUID):
        self.kind = kind
        self.id = id
        super().__init__(f"{kind} {id} not found")


class DuplicatePlayerError(DatabaseError):
    def __init__(self, player: uuid.UUID):
        self.player = player
        super().__init__(f"player {player} appears on a roster more than once")


class DuplicateBaseError(DatabaseError):
    def __init__(self, game: uuid.UUID, base: int):
        self.game = game
        self.base = base
        super().__init__(f"game {game} has more than one runner on base {base}")


class InvalidBaseError(DatabaseError):
    def __init__(self, game: uuid.UUID, base: int):
        self.game = game
        self.base = base
        super().__init__(f"game {game} has a runner on invalid base {base}")


class KeyMismatchError(DatabaseError):
    def __init__(self, kind: str, key: uuid.UUID, id: uuid.UUID):
        self.kind = kind
        self.key = key
        self.id = id
        super().__init__(f"{kind} stored under {key} has ID {id}")


class ConsistencyError(DatabaseError):
    """A deserialized store broke one or more global invariants."""

    def __init__(self, problems: list[DatabaseError]):
        self.problems = list(problems)
        super().__init__("; ".join(str(p) for p in self.problems))


class InvariantViolation(AssertionError):
    """An impossible state was reached.  This is a bug, not bad input."""


# ---------------------------------------------------------------------------
# Per-entity checks
# ---------------------------------------------------------------------------

def player_problems(player: Player, database: Database) -> list[DatabaseError]:
    problems: list[DatabaseError] = []
    if is_nil(player.id):
        problems.append(NilIdError("player"))
    return problems


def team_problems(team: Team, database: Database) -> list[DatabaseError]:
    problems: list[DatabaseError] = []
    if is_nil(team.id):
        problems.append(NilIdError("team"))
    for player, count in Counter(team.roster()).items():
        if player not in database.players:
            problems.append(BadReferenceError("player", player))
        if count > 1:
            problems.append(DuplicatePlayerError(player))
    return problems


def game_problems(game: Game, database: Database) -> list[DatabaseError]:
    problems: list[DatabaseError] = []
    if is_nil(game.id):
        problems.append(NilIdError("game"))

    team_refs = [game.winner] if game.winner is not None else []
    team_refs += [side.id for side in game.teams.both()]
    for team in team_refs:
        if team not in database.teams:
            problems.append(BadReferenceError("team", team))

    player_refs = [game.at_bat] if game.at_bat is not None else []
    player_refs += [runner for runner, _ in game.baserunners]
    player_refs += [side.pitcher for side in game.teams.both() if side.pitcher is not None]
    for player in player_refs:
        if player not in database.players:
            problems.append(BadReferenceError("player", player))

    for _, base in game.baserunners:
        if base < 1:
            problems.append(InvalidBaseError(game.id, base))
    for base, count in Counter(base for _, base in game.baserunners).items():
        if count > 1:
            problems.append(DuplicateBaseError(game.id, base))
    return problems


# ---------------------------------------------------------------------------
# Serialized form
# ---------------------------------------------------------------------------

class DatabaseDocument(BaseModel):
    """The store as one structured document.  ``season``/``day`` sit at top level."""
    season: int = Field(default=0, ge=0)
    day: int = Field(default=0, ge=0)
    first_names: list[str] = Field(default_factory=list)
    last_names: list[str] = Field(default_factory=list)
    rituals: list[str] = Field(default_factory=list)
    teams: dict[uuid.UUID, Team] = Field(default_factory=dict)
    players: dict[uuid.UUID, Player] = Field(default_factory=dict)
    games_today: list[Game] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# The store
# ---------------------------------------------------------------------------

@dataclass
class Database:
    """All simulation entities, plus the name/ritual pools used by the generator."""
    date: Date = field(default_factory=Date)
    first_names: list[str] = field(default_factory=list)
    last_names: list[str] = field(default_factory=list)
    rituals: list[str] = field(default_factory=list)
    teams: dict[uuid.UUID, Team] = field(default_factory=dict)
    players: dict[uuid.UUID, Player] = field(default_factory=dict)
    games_today: list[Game] = field(default_factory=list)

    # -- validated mutations -----------------------------------------------

    def insert_player(self, player: Player) -> None:
        """Add or replace a player.

        Raises:
            NilIdError: the player's ID is nil.
        """
        _raise_first(player_problems(player, self))
        self.players[player.id] = player

    def insert_team(self, team: Team) -> None:
        """Add or replace a team.

        Raises:
            NilIdError: the team's ID is nil.
            BadReferenceError: a roster references an unknown player.
            DuplicatePlayerError: a player appears more than once across
                lineup, rotation and shadows.
        """
        _raise_first(team_problems(team, self))
        self.teams[team.id] = team

    def start_day(self, date: Date, games: list[Game]) -> tuple[Date, list[Game]]:
        """Swap in a new date and game list, returning the previous ones.

        Every game is validated first; on failure nothing is replaced.
        """
        for game in games:
            _raise_first(game_problems(game, self))
        old_date, old_games = self.date, self.games_today
        self.date, self.games_today = date, list(games)
        logger.info("Starting %s with %d games", date, len(self.games_today))
        return old_date, old_games

    # -- loads -------------------------------------------------------------

    def load_player(self, player_id: uuid.UUID) -> Player:
        """Return a player whose ID has already passed a reference check."""
        try:
            return self.players[player_id]
        except KeyError:
            raise InvariantViolation(f"Player {player_id} not found") from None

    def load_team(self, team_id: uuid.UUID) -> Team:
        """Return a team whose ID has already passed a reference check."""
        try:
            return self.teams[team_id]
        except KeyError:
            raise InvariantViolation(f"Team {team_id} not found") from None

    @contextmanager
    def checkout_game(self, index: int) -> Iterator[Game]:
        """Take a game out of today's list for exclusive mutation, then put it back."""
        game = self.games_today.pop(index)
        try:
            yield game
        finally:
            self.games_today.insert(index, game)

    # -- consistency -------------------------------------------------------

    def check_consistency(self) -> list[DatabaseError]:
        """Run every global invariant and return all problems found."""
        problems: list[DatabaseError] = []
        for key, team in self.teams.items():
            if key != team.id:
                problems.append(KeyMismatchError("team", key, team.id))
            problems.extend(team_problems(team, self))
        for key, player in self.players.items():
            if key != player.id:
                problems.append(KeyMismatchError("player", key, player.id))
            problems.extend(player_problems(player, self))
        for game in self.games_today:
            problems.extend(game_problems(game, self))
        return problems

    def debug_check(self) -> None:
        """Fail loudly if a simulation step has broken the store."""
        problems = self.check_consistency()
        if problems:
            message = "; ".join(str(p) for p in problems)
            logger.error("Database consistency check failed: %s", message)
            raise InvariantViolation(message)

    # -- serialization -----------------------------------------------------

    def to_document(self) -> DatabaseDocument:
        return DatabaseDocument(
            season=self.date.season,
            day=self.date.day,
            first_names=list(self.first_names),
            last_names=list(self.last_names),
            rituals=list(self.rituals),
            teams=dict(self.teams),
            players=dict(self.players),
            games_today=list(self.games_today),
        )

    @classmethod
    def from_document(cls, doc: DatabaseDocument) -> Database:
        """Build a store from a parsed document.

        Raises:
            ConsistencyError: any global invariant is violated.
        """
        database = cls(
            date=Date(season=doc.season, day=doc.day),
            first_names=doc.first_names,
            last_names=doc.last_names,
            rituals=doc.rituals,
            teams=doc.teams,
            players=doc.players,
            games_today=doc.games_today,
        )
        problems = database.check_consistency()
        if problems:
            logger.error("Rejecting database with %d consistency problems", len(problems))
            raise ConsistencyError(problems)
        return database


def _raise_first(problems: list[DatabaseError]) -> None:
    if problems:
        raise problems[0]
