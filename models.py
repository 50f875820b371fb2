# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the simulation's entities.

Every entity is keyed by a UUID.  The all-zero UUID is reserved and never
valid; the entity store rejects it.
"""

from __future__ import annotations

import math
import uuid
from enum import Enum
from typing import Annotated, Generic, Iterator, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

NIL_ID = uuid.UUID(int=0)

T = TypeVar("T")

# Continuous player and park attributes.
Unit = Annotated[float, Field(ge=0.0, le=1.0)]


def new_id() -> uuid.UUID:
    """Return a fresh random identifier."""
    return uuid.uuid4()


def is_nil(ident: uuid.UUID) -> bool:
    return ident.int == 0


def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------

class Date(BaseModel):
    model_config = ConfigDict(frozen=True)

    season: int = Field(default=0, ge=0)
    day: int = Field(default=0, ge=0)

    def __lt__(self, other: Date) -> bool:
        return (self.season, self.day) < (other.season, other.day)

    def __str__(self) -> str:
        return f"Season {self.season + 1}, Day {self.day + 1}"


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------

# Rolled in this order by the player generator.
ATTRIBUTES = (
    "thwackability",
    "moxie",
    "divinity",
    "musclitude",
    "patheticism",
    "buoyancy",
    "base_thirst",
    "laserlikeness",
    "ground_friction",
    "continuation",
    "indulgence",
    "martyrdom",
    "tragicness",
    "shakespearianism",
    "suppression",
    "unthwackability",
    "coldness",
    "overpowerment",
    "ruthlessness",
    "omniscience",
    "tenaciousness",
    "watchfulness",
    "anticapitalism",
    "chasiness",
    "pressurization",
    "cinnamon",
)


class Player(BaseModel):
    """A player and the attributes that drive the outcome model."""
    id: uuid.UUID = Field(default_factory=new_id)
    name: str = ""

    # Batting
    thwackability: Unit = 0.0
    moxie: Unit = 0.0
    divinity: Unit = 0.0
    musclitude: Unit = 0.0
    patheticism: Unit = 0.0
    buoyancy: Unit = 0.0
    # Baserunning
    base_thirst: Unit = Field(default=0.0, validation_alias=AliasChoices("base_thirst", "baseThirst"))
    laserlikeness: Unit = 0.0
    ground_friction: Unit = Field(default=0.0, validation_alias=AliasChoices("ground_friction", "groundFriction"))
    continuation: Unit = 0.0
    indulgence: Unit = 0.0
    martyrdom: Unit = 0.0
    tragicness: Unit = 0.0
    shakespearianism: Unit = 0.0
    # Pitching
    suppression: Unit = 0.0
    unthwackability: Unit = 0.0
    coldness: Unit = 0.0
    overpowerment: Unit = 0.0
    ruthlessness: Unit = 0.0
    # Defense
    omniscience: Unit = 0.0
    tenaciousness: Unit = 0.0
    watchfulness: Unit = 0.0
    anticapitalism: Unit = 0.0
    chasiness: Unit = 0.0
    # Vibes
    pressurization: Unit = 0.0
    cinnamon: Unit = 0.0

    # Inert to the simulation
    soul: int = 0
    peanut_allergy: bool = Field(default=False, validation_alias=AliasChoices("peanut_allergy", "peanutAllergy"))
    fate: int = 0
    blood: int = 0
    coffee: int = 0
    ritual: str = ""

    def vibes(self, date: Date) -> float:
        """Daily vibe in [-1, 1], a sine wave whose period depends on buoyancy."""
        frequency = 6.0 + _round_half_away(10.0 * self.buoyancy)
        return math.sin(math.pi * ((2.0 / frequency) * date.day + 0.5))


# ---------------------------------------------------------------------------
# Teams and ballparks
# ---------------------------------------------------------------------------

class Team(BaseModel):
    id: uuid.UUID = Field(default_factory=new_id)
    location: str = ""
    nickname: str = ""
    lineup: list[uuid.UUID] = Field(default_factory=list)
    rotation: list[uuid.UUID] = Field(default_factory=list)
    shadows: list[uuid.UUID] = Field(default_factory=list)
    rotation_slot: int = Field(default=0, ge=0, validation_alias=AliasChoices("rotation_slot", "rotationSlot"))

    @property
    def name(self) -> str:
        return f"{self.location} {self.nickname}"

    def roster(self) -> Iterator[uuid.UUID]:
        """All referenced players: lineup, then rotation, then shadows."""
        yield from self.lineup
        yield from self.rotation
        yield from self.shadows


class Ballpark(BaseModel):
    """Park attributes.  Defaults describe a perfectly neutral park."""
    id: uuid.UUID = NIL_ID
    team_id: uuid.UUID = NIL_ID
    name: str = ""
    nickname: str = ""
    ominousness: Unit = 0.5
    forwardness: Unit = 0.5
    obtuseness: Unit = 0.5
    grandiosity: Unit = 0.5
    fortification: Unit = 0.5
    elongation: Unit = 0.5
    inconvenience: Unit = 0.5
    viscosity: Unit = 0.5
    hype: Unit = 0.0
    mysticism: Unit = 0.5
    luxuriousness: Unit = 0.0
    filthiness: Unit = 0.0
    birds: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Innings
# ---------------------------------------------------------------------------

class Frame(str, Enum):
    TOP = "top"
    MID = "mid"
    BOTTOM = "bottom"
    END = "end"


class TeamSelect(str, Enum):
    AWAY = "away"
    HOME = "home"


_NEXT_FRAME = {
    Frame.TOP: Frame.MID,
    Frame.MID: Frame.BOTTOM,
    Frame.BOTTOM: Frame.END,
    Frame.END: Frame.TOP,
}


class Inning(BaseModel):
    """A half-inning phase.  ``Inning()`` is the pre-game sentinel, Top of 0.

    Top and Bottom are played; Mid and End only announce the next batting
    team.
    """
    model_config = ConfigDict(frozen=True)

    frame: Frame = Frame.TOP
    number: int = Field(default=0, ge=0)

    @classmethod
    def top(cls, n: int) -> Inning:
        return cls(frame=Frame.TOP, number=n)

    @classmethod
    def mid(cls, n: int) -> Inning:
        return cls(frame=Frame.MID, number=n)

    @classmethod
    def bottom(cls, n: int) -> Inning:
        return cls(frame=Frame.BOTTOM, number=n)

    @classmethod
    def end(cls, n: int) -> Inning:
        return cls(frame=Frame.END, number=n)

    def advance(self) -> Inning:
        """Return the following phase: Top -> Mid -> Bottom -> End -> Top(n+1)."""
        number = self.number + 1 if self.frame is Frame.END else self.number
        return Inning(frame=_NEXT_FRAME[self.frame], number=number)

    @property
    def word(self) -> str:
        return self.frame.value.capitalize()

    @property
    def is_transition(self) -> bool:
        return self.frame in (Frame.MID, Frame.END)

    @property
    def batting(self) -> TeamSelect:
        if self.frame in (Frame.TOP, Frame.MID):
            return TeamSelect.AWAY
        return TeamSelect.HOME

    @property
    def fielding(self) -> TeamSelect:
        if self.frame in (Frame.TOP, Frame.MID):
            return TeamSelect.HOME
        return TeamSelect.AWAY

    def __str__(self) -> str:
        return f"{self.word} of {self.number}"


PRE_GAME = Inning()


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

class AwayHome(BaseModel, Generic[T]):
    away: T
    home: T

    def select(self, side: TeamSelect) -> T:
        return self.away if side is TeamSelect.AWAY else self.home

    def both(self) -> tuple[T, T]:
        return (self.away, self.home)


class GameTeam(BaseModel):
    """One side's in-game record."""
    id: uuid.UUID = NIL_ID
    runs: int = Field(default=0, ge=0)
    runs_by_inning: list[int] = Field(default_factory=list)
    pitcher: Optional[uuid.UUID] = None
    lineup_slot: int = Field(default=0, ge=0)

    def add_runs(self, inning_number: int, runs: int = 1) -> None:
        """Credit *runs* to the total and to the inning's tally."""
        self.runs += runs
        idx = max(inning_number, 1) - 1
        while len(self.runs_by_inning) <= idx:
            self.runs_by_inning.append(0)
        self.runs_by_inning[idx] += runs


class Game(BaseModel):
    """Authoritative state of one game."""
    id: uuid.UUID = Field(default_factory=new_id)
    winner: Optional[uuid.UUID] = None
    last_update: str = ""
    teams: AwayHome[GameTeam]
    inning: Inning = Field(default_factory=Inning)
    at_bat: Optional[uuid.UUID] = None
    balls: int = Field(default=0, ge=0)
    strikes: int = Field(default=0, ge=0)
    outs: int = Field(default=0, ge=0)
    baserunners: list[tuple[uuid.UUID, int]] = Field(default_factory=list)

    @classmethod
    def new(cls, away: uuid.UUID, home: uuid.UUID) -> Game:
        return cls(teams=AwayHome[GameTeam](away=GameTeam(id=away), home=GameTeam(id=home)))

    @property
    def is_finished(self) -> bool:
        return self.winner is not None

    def team(self, side: TeamSelect) -> GameTeam:
        return self.teams.select(side)

    @property
    def batting(self) -> GameTeam:
        return self.teams.select(self.inning.batting)

    @property
    def fielding(self) -> GameTeam:
        return self.teams.select(self.inning.fielding)

    def bases_occupied(self) -> set[int]:
        return {base for _, base in self.baserunners}
