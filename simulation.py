# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Baseball game simulation engine.

Advances each of today's games by one discrete event per tick.  An event is
a pitch, a steal attempt, a new batter stepping in, or a half-inning
transition, and each one produces a single human-readable update line.

All randomness comes from the shared, seedable ``Rng`` so a serialized
simulation replays identically.  Games are resolved one at a time: a game is
checked out of the store, mutated with exclusive use of the RNG and the
store, then put back.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional

from config import SimConfig, load_config
from database import Database, DatabaseDocument, InvariantViolation
from generator import generate_player, generate_with_name
from models import Ballpark, Date, Frame, Game, Inning, Player, PRE_GAME, Team, TeamSelect
from outcomes import (
    DEFAULT_BALLPARK,
    roll_base_hit,
    roll_contact,
    roll_flyout,
    roll_foul,
    roll_home_run,
    roll_out,
    roll_strike,
    roll_swing,
)
from rng import Rng, RngState

logger = logging.getLogger(__name__)

FINAL_INNING = 9

_HIT_NAMES = {1: "Single", 2: "Double", 3: "Triple", 4: "Quadruple"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ordinal(n: int) -> str:
    """Return ordinal string for an integer (1st, 2nd, 3rd, etc.)."""
    if 11 <= n % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def base_name(base: int, home: int = 4) -> str:
    """Describe a base for play-by-play: 'second base', 'home', '5th base'."""
    if base == home:
        return "home"
    words = {1: "first", 2: "second", 3: "third", 4: "fourth"}
    if base in words:
        return f"{words[base]} base"
    return f"{_ordinal(base)} base"


# ---------------------------------------------------------------------------
# Lineup / rotation selection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Selection:
    """Result of resolving the next player in a batting or pitching order.

    ``is_new`` is False when the player was already resolved for this
    at-bat (or, for pitchers, this game).
    """
    player_id: uuid.UUID
    slot: int
    is_new: bool


def next_in_order(rng: Rng, database: Database, current: Optional[uuid.UUID],
                  order: list[uuid.UUID], slot: int, placeholder_name: str) -> Selection:
    """Resolve who occupies a lineup or rotation position.

    Keeps *current* if set.  Otherwise takes ``order[slot]``, wrapping to
    the first entry when the cursor has run past the end.  An empty *order*
    gets a generated placeholder player, added to the store and appended to
    *order*.  The returned slot is the chosen player's index in *order*.
    """
    if current is not None:
        return Selection(current, slot, is_new=False)

    if order:
        player_id = order[slot] if slot < len(order) else order[0]
    else:
        player = generate_with_name(rng, placeholder_name, database.rituals)
        database.insert_player(player)
        order.append(player.id)
        player_id = player.id
        logger.warning("Empty order; generated placeholder %s (%s)", player.name, player.id)

    return Selection(player_id, order.index(player_id), is_new=True)


# ---------------------------------------------------------------------------
# Per-game state machine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """Resolves exactly one event of a game per call to :meth:`tick`.

    Event order within an at-bat tick:
    - pitcher, then batter (a newly announced batter ends the tick)
    - one steal attempt at most
    - strike/ball, swing, contact, foul, out (fly or ground), home run,
      then single/double/triple
    """

    def __init__(self, rng: Rng, database: Database, config: SimConfig | None = None,
                 ballpark: Ballpark = DEFAULT_BALLPARK):
        self.rng = rng
        self.database = database
        self.config = config or SimConfig()
        self.ballpark = ballpark

    @property
    def date(self) -> Date:
        return self.database.date

    def tick(self, game: Game) -> str:
        """Resolve one event, store it as ``game.last_update`` and return it."""
        if game.is_finished:
            raise InvariantViolation(f"Game {game.id} is already finished")
        update = self._resolve(game)
        game.last_update = update
        logger.debug("[%s] %s: %s", game.id, game.inning, update)
        return update

    def _resolve(self, game: Game) -> str:
        update = self._handle_game_over(game)
        if update is not None:
            return update

        if game.inning == PRE_GAME:
            game.inning = Inning.top(1)
            return "Play ball!"

        if game.inning.is_transition:
            game.inning = game.inning.advance()
            team = self.database.load_team(game.batting.id)
            return f"{game.inning}, {team.name} batting."

        pitcher = self.database.load_player(self._select_pitcher(game))
        selection = self._select_batter(game)
        batter = self.database.load_player(selection.player_id)
        if selection.is_new:
            team = self.database.load_team(game.batting.id)
            return f"{batter.name} batting for the {team.nickname}."

        update = self._handle_steal(game)
        if update is not None:
            return update

        return self._handle_pitch(game, pitcher, batter)

    # -- selection ---------------------------------------------------------

    def _select_pitcher(self, game: Game) -> uuid.UUID:
        side = game.fielding
        team = self.database.load_team(side.id)
        selection = next_in_order(
            self.rng, self.database, side.pitcher, team.rotation, team.rotation_slot,
            "Pitching Machine",
        )
        if selection.is_new:
            team.rotation_slot = selection.slot
            side.pitcher = selection.player_id
        return selection.player_id

    def _select_batter(self, game: Game) -> Selection:
        side = game.batting
        team = self.database.load_team(side.id)
        selection = next_in_order(
            self.rng, self.database, game.at_bat, team.lineup, side.lineup_slot,
            "Batting Machine",
        )
        if selection.is_new:
            side.lineup_slot = selection.slot
            game.at_bat = selection.player_id
        return selection

    def _roll_fielder(self, game: Game) -> Player:
        team = self.database.load_team(game.fielding.id)
        fielder = self.rng.choose(team.lineup)
        if fielder is None:
            raise InvariantViolation("lineup was empty")
        return self.database.load_player(fielder)

    # -- game flow ---------------------------------------------------------

    def _handle_game_over(self, game: Game) -> str | None:
        inning = game.inning
        away, home = game.teams.away.runs, game.teams.home.runs
        if inning.number < FINAL_INNING:
            return None
        if inning.is_transition and away < home:
            winner = TeamSelect.HOME
        elif inning.frame is Frame.END and away > home:
            winner = TeamSelect.AWAY
        else:
            return None

        game.winner = game.team(winner).id
        for side in game.teams.both():
            self.database.load_team(side.id).rotation_slot += 1

        away_team = self.database.load_team(game.teams.away.id)
        home_team = self.database.load_team(game.teams.home.id)
        logger.info("Game %s final: %s %d, %s %d", game.id,
                    away_team.name, away, home_team.name, home)
        return f"Game over. {away_team.nickname} {away}, {home_team.nickname} {home}"

    def _score(self, game: Game, runs: int = 1) -> None:
        game.batting.add_runs(game.inning.number, runs)

    def _end_plate_appearance(self, game: Game) -> None:
        game.balls = 0
        game.strikes = 0
        game.at_bat = None
        game.batting.lineup_slot += 1

    def _register_out(self, game: Game) -> None:
        """Record an out; the third one ends the half-inning."""
        game.outs += 1
        if game.outs < self.config.outs_needed:
            return
        game.balls = 0
        game.strikes = 0
        game.outs = 0
        if game.at_bat is not None:
            game.at_bat = None
            game.batting.lineup_slot += 1
        game.baserunners = []
        game.inning = game.inning.advance()

    # -- baserunning -------------------------------------------------------

    def _handle_steal(self, game: Game) -> str | None:
        # Fielder is rolled but not yet used by the steal formulas.
        self._roll_fielder(game)
        home = self.config.home_base
        occupied = game.bases_occupied()
        for idx, (runner_id, base) in enumerate(game.baserunners):
            target = base + 1
            if target in occupied:
                continue
            if not self.rng.random() < self.config.steal_attempt_threshold:
                continue
            runner = self.database.load_player(runner_id)
            if self.rng.random() < self.config.steal_success_threshold:
                if target >= home:
                    del game.baserunners[idx]
                    self._score(game)
                else:
                    game.baserunners[idx] = (runner_id, target)
                return f"{runner.name} steals {base_name(target, home)}!"
            del game.baserunners[idx]
            self._register_out(game)
            return f"{runner.name} gets caught stealing {base_name(target, home)}."
        return None

    # -- pitches -----------------------------------------------------------

    def _handle_pitch(self, game: Game, pitcher: Player, batter: Player) -> str:
        rng, date, park = self.rng, self.date, self.ballpark

        strike = roll_strike(rng, pitcher, batter, date, park)
        if not roll_swing(rng, pitcher, batter, strike, date, park):
            if strike:
                return self._handle_strike(game, batter, "looking")
            return self._handle_ball(game, batter)

        if not roll_contact(rng, pitcher, batter, strike, date, park):
            return self._handle_strike(game, batter, "swinging")

        if roll_foul(rng, batter, date, park):
            game.strikes = min(game.strikes + 1, self.config.strikes_needed - 1)
            return f"Foul Ball. {game.balls}-{game.strikes}"

        fielder = self._roll_fielder(game)
        if roll_out(rng, pitcher, fielder, batter, date, park):
            kind = "flyout" if roll_flyout(rng, batter, park) else "ground out"
            self._end_plate_appearance(game)
            self._register_out(game)
            return f"{batter.name} hit a {kind} to {fielder.name}."

        if roll_home_run(rng, pitcher, batter, date, park):
            return self._handle_home_run(game, batter)

        defender = self._roll_fielder(game)
        bases = roll_base_hit(rng, pitcher, defender, batter, date, park)
        return self._handle_base_hit(game, batter, bases)

    def _handle_strike(self, game: Game, batter: Player, kind: str) -> str:
        game.strikes += 1
        if game.strikes < self.config.strikes_needed:
            return f"Strike, {kind}. {game.balls}-{game.strikes}"
        self._end_plate_appearance(game)
        self._register_out(game)
        return f"{batter.name} strikes out {kind}."

    def _handle_ball(self, game: Game, batter: Player) -> str:
        game.balls += 1
        if game.balls < self.config.balls_needed:
            return f"Ball. {game.balls}-{game.strikes}"

        # Walk: only runners forced by an unbroken chain from first advance.
        parts = [f"{batter.name} draws a walk."]
        occupied = game.bases_occupied()
        runners, game.baserunners = game.baserunners, []
        for runner_id, base in runners:
            if all(b in occupied for b in range(1, base)):
                base += 1
            if base >= self.config.home_base:
                self._score(game)
                parts.append(f"{self.database.load_player(runner_id).name} scores!")
            else:
                game.baserunners.append((runner_id, base))
        game.baserunners.append((batter.id, 1))
        self._end_plate_appearance(game)
        return " ".join(parts)

    def _handle_home_run(self, game: Game, batter: Player) -> str:
        runs = len(game.baserunners) + 1
        game.baserunners = []
        self._score(game, runs)
        self._end_plate_appearance(game)
        if runs == 1:
            return f"{batter.name} hits a solo home run!"
        return f"{batter.name} hits a {runs}-run home run!"

    def _handle_base_hit(self, game: Game, batter: Player, bases: int) -> str:
        hit = _HIT_NAMES.get(bases)
        parts = [f"{batter.name} hits a {hit}!" if hit else f"{batter.name} hits a {bases}-base Hit!"]
        home = self.config.home_base
        runners, game.baserunners = game.baserunners, []
        for runner_id, base in runners:
            base += bases
            if base >= home:
                self._score(game)
                parts.append(f"{self.database.load_player(runner_id).name} scores!")
            else:
                game.baserunners.append((runner_id, base))
        if bases >= home:
            self._score(game)
        else:
            game.baserunners.append((batter.id, bases))
        self._end_plate_appearance(game)
        return " ".join(parts)


# ---------------------------------------------------------------------------
# Whole simulation
# ---------------------------------------------------------------------------

class SimDocument(DatabaseDocument):
    """Everything needed to resume a simulation exactly where it stopped."""
    rng: RngState


class Sim:
    """The simulation: one RNG, one entity store, today's games.

    Usage::

        sim = Sim.seeded(1, 2)
        for player in players:
            sim.add_player(player)
        sim.add_team(away)
        sim.add_team(home)
        sim.start_day(Date(season=0, day=0), [Game.new(away.id, home.id)])
        while not sim.games_today[0].is_finished:
            sim.tick()
    """

    def __init__(self, rng: Rng | None = None, database: Database | None = None,
                 config: SimConfig | None = None):
        self.rng = rng if rng is not None else Rng()
        self.database = database if database is not None else Database()
        self.config = config if config is not None else load_config()
        self.engine = SimulationEngine(self.rng, self.database, self.config)

    @classmethod
    def seeded(cls, s0: int, s1: int, **kwargs) -> Sim:
        return cls(rng=Rng.seeded(s0, s1), **kwargs)

    # -- read-only views ---------------------------------------------------

    @property
    def date(self) -> Date:
        return self.database.date

    @property
    def players(self) -> Mapping[uuid.UUID, Player]:
        return MappingProxyType(self.database.players)

    @property
    def teams(self) -> Mapping[uuid.UUID, Team]:
        return MappingProxyType(self.database.teams)

    @property
    def games_today(self) -> tuple[Game, ...]:
        return tuple(self.database.games_today)

    # -- mutations ---------------------------------------------------------

    def add_player(self, player: Player) -> None:
        """Add a player.  Raises ``DatabaseError`` if its ID is nil."""
        self.database.insert_player(player)
        self._debug_check()

    def add_team(self, team: Team) -> None:
        """Add a team.  Raises ``DatabaseError`` on a nil ID, unknown or duplicate players."""
        self.database.insert_team(team)
        self._debug_check()

    def start_day(self, date: Date, games: list[Game]) -> tuple[Date, list[Game]]:
        """Begin a new day of games, returning the previous date and games."""
        previous = self.database.start_day(date, games)
        self._debug_check()
        return previous

    def tick(self) -> None:
        """Advance every unfinished game by exactly one event."""
        for index, game in enumerate(self.database.games_today):
            if game.is_finished:
                continue
            with self.database.checkout_game(index) as checked_out:
                self.engine.tick(checked_out)
        self._debug_check()

    def run(self, max_ticks: int = 10_000) -> int:
        """Tick until every game today is finished.  Returns the ticks used."""
        ticks = 0
        while ticks < max_ticks and not all(g.is_finished for g in self.database.games_today):
            self.tick()
            ticks += 1
        return ticks

    def _debug_check(self) -> None:
        if self.config.debug_checks:
            self.database.debug_check()

    # -- serialization -----------------------------------------------------

    def to_document(self) -> SimDocument:
        return SimDocument(
            **dict(self.database.to_document()),
            rng=RngState.model_validate(self.rng.to_dict()),
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_document().model_dump(mode="json")

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_document(cls, doc: SimDocument, config: SimConfig | None = None) -> Sim:
        """Restore a simulation.  Raises ``ConsistencyError`` on a broken store."""
        database = Database.from_document(doc)
        return cls(rng=Rng.from_dict(doc.rng), database=database, config=config)

    @classmethod
    def from_dict(cls, data: dict[str, Any], config: SimConfig | None = None) -> Sim:
        return cls.from_document(SimDocument.model_validate(data), config=config)

    @classmethod
    def from_json(cls, text: str, config: SimConfig | None = None) -> Sim:
        return cls.from_document(SimDocument.model_validate_json(text), config=config)


# ---------------------------------------------------------------------------
# Exhibition game
# ---------------------------------------------------------------------------

EXHIBITION_FIRST_NAMES = ["Jessica", "Nagomi", "York", "Parker", "Goodwin", "Sutton", "Paula", "Wyatt"]
EXHIBITION_LAST_NAMES = ["Telephone", "Mcdaniel", "Silk", "Macmillan", "Morin", "Dreamy", "Turnip", "Mason"]


def exhibition(s0: int, s1: int, config: SimConfig | None = None) -> Sim:
    """Seed a simulation with two generated teams and one game scheduled."""
    sim = Sim.seeded(s0, s1, config=config)
    sim.database.first_names = list(EXHIBITION_FIRST_NAMES)
    sim.database.last_names = list(EXHIBITION_LAST_NAMES)
    teams = []
    for location, nickname in (("Baltimore", "Crabs"), ("Seattle", "Garages")):
        players = [
            generate_player(sim.rng, EXHIBITION_FIRST_NAMES, EXHIBITION_LAST_NAMES)
            for _ in range(14)
        ]
        for player in players:
            sim.add_player(player)
        team = Team(
            location=location,
            nickname=nickname,
            lineup=[p.id for p in players[:9]],
            rotation=[p.id for p in players[9:]],
        )
        sim.add_team(team)
        teams.append(team)
    sim.start_day(Date(season=0, day=0), [Game.new(teams[0].id, teams[1].id)])
    return sim


# ---------------------------------------------------------------------------
# CLI entry point for testing
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import sys

    s0 = int(sys.argv[1]) if len(sys.argv) > 1 else 1
    s1 = int(sys.argv[2]) if len(sys.argv) > 2 else 2

    sim = exhibition(s0, s1)
    game = sim.games_today[0]
    away, home = (sim.teams[side.id] for side in game.teams.both())

    print(f"Simulating game with seed ({s0}, {s1})...")
    print(f"{away.name} at {home.name}")
    print("=" * 72)

    while not sim.games_today[0].is_finished:
        sim.tick()
        print(sim.games_today[0].last_update)

    game = sim.games_today[0]
    print("=" * 72)
    print(f"{away.name} {game.teams.away.runs}, {home.name} {game.teams.home.runs}")
