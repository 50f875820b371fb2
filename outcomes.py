# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Outcome model: player and park attributes to play probabilities.

Each decision point has a pure ``*_threshold`` function and a ``roll_*``
function that draws exactly one uniform from the RNG and returns
``draw < threshold``.  The base-hit class roll is the exception: it draws
two uniforms (triple, then double) before comparing either.

Most player attributes are scaled by a vibe modifier ``1 + 0.2 * vibes``
for the day.  Park attributes enter relative to a neutral 0.5.

A threshold may be NaN (a negative base that would be raised to a
fractional power).  NaN never compares less than a draw, so the outcome is
suppressed.  That is intentional and covered by tests.

The coefficients are regressions fitted to observed season-14 play.
"""

from __future__ import annotations

import math

from models import Ballpark, Date, Player
from rng import Rng

DEFAULT_BALLPARK = Ballpark()

STRIKE_CAP = 0.86


def vibe_mod(player: Player, date: Date) -> float:
    return 1.0 + 0.2 * player.vibes(date)


# ---------------------------------------------------------------------------
# Pitch
# ---------------------------------------------------------------------------

def strike_threshold(pitcher: Player, batter: Player, date: Date,
                     park: Ballpark = DEFAULT_BALLPARK) -> float:
    """Probability the pitch is in the zone."""
    ruth = pitcher.ruthlessness * vibe_mod(pitcher, date)
    return min(
        0.2 + 0.285 * ruth + 0.2 * park.forwardness + 0.1 * batter.musclitude,
        STRIKE_CAP,
    )


def swing_threshold(pitcher: Player, batter: Player, strike: bool, date: Date,
                    park: Ballpark = DEFAULT_BALLPARK) -> float:
    """Probability the batter swings, with separate in-zone and chase formulas."""
    batter_mod = vibe_mod(batter, date)
    ruth = pitcher.ruthlessness * vibe_mod(pitcher, date)
    if strike:
        div = batter.divinity * batter_mod
        musc = batter.musclitude * batter_mod
        thwack = batter.thwackability * batter_mod
        invpath = (1.0 - batter.patheticism) * batter_mod
        combined = (div + musc + invpath + thwack) / 4.0
        return 0.6 + 0.35 * combined - 0.2 * ruth + 0.2 * (park.viscosity - 0.5)

    moxie = batter.moxie * batter_mod
    path = batter.patheticism
    combined = (12.0 * ruth - 5.0 * moxie + 5.0 * path + 4.0 * park.viscosity) / 20.0
    if combined < 0.0:
        return math.nan
    return min(max(combined ** 1.5, 0.1), 0.95)


def _contact_park_sum(park: Ballpark) -> float:
    fort = park.fortification - 0.5
    visc = park.viscosity - 0.5
    fwd = park.forwardness - 0.5
    return (fort + 3.0 * visc - 6.0 * fwd) / 10.0


def contact_threshold(pitcher: Player, batter: Player, strike: bool, date: Date,
                      park: Ballpark = DEFAULT_BALLPARK) -> float:
    """Probability a swing makes contact."""
    batter_mod = vibe_mod(batter, date)
    ruth = pitcher.ruthlessness * vibe_mod(pitcher, date)
    park_sum = _contact_park_sum(park)
    if strike:
        combined = (
            batter.divinity + batter.musclitude + batter.thwackability - batter.patheticism
        ) / 2.0 * batter_mod
        if combined < 0.0:
            return math.nan
        return min(0.78 - 0.08 * ruth + 0.16 * park_sum + 0.17 * combined ** 1.2, 0.9)

    path = max((1.0 - batter.patheticism) * batter_mod, 0.0)
    return min(0.4 - 0.1 * ruth + 0.35 * path ** 1.5 + 0.14 * park_sum, 1.0)


def foul_threshold(batter: Player, date: Date, park: Ballpark = DEFAULT_BALLPARK) -> float:
    batter_sum = (
        batter.musclitude + batter.thwackability + batter.divinity
    ) * vibe_mod(batter, date) / 3.0
    return 0.25 + 0.1 * park.forwardness - 0.1 * park.obtuseness + 0.1 * batter_sum


# ---------------------------------------------------------------------------
# Ball in play
# ---------------------------------------------------------------------------

def out_threshold(pitcher: Player, fielder: Player, batter: Player, date: Date,
                  park: Ballpark = DEFAULT_BALLPARK) -> float:
    """Probability a ball in play is fielded for an out."""
    thwack = batter.thwackability * vibe_mod(batter, date)
    unthwack = pitcher.unthwackability * vibe_mod(pitcher, date)
    omni = fielder.omniscience * vibe_mod(fielder, date)
    return (
        0.3115
        + 0.1 * thwack
        - 0.08 * unthwack
        - 0.065 * omni
        + 0.01 * (park.grandiosity - 0.5)
        + 0.0085 * (park.obtuseness - 0.5)
        - 0.0033 * (park.ominousness - 0.5)
        - 0.0015 * (park.inconvenience - 0.5)
        - 0.0033 * (park.viscosity - 0.5)
        + 0.01 * (park.forwardness - 0.5)
    )


def fly_threshold(batter: Player, park: Ballpark = DEFAULT_BALLPARK) -> float:
    """Probability an out is a fly ball rather than a grounder.  No vibes."""
    return (
        0.18
        + 0.3 * batter.buoyancy
        - 0.16 * batter.suppression
        - 0.1 * (park.ominousness - 0.5)
    )


def home_run_threshold(pitcher: Player, batter: Player, date: Date,
                       park: Ballpark = DEFAULT_BALLPARK) -> float:
    pitcher_mod = vibe_mod(pitcher, date)
    div = batter.divinity * vibe_mod(batter, date)
    opw = pitcher.overpowerment * pitcher_mod
    supp = pitcher.suppression * pitcher_mod
    opw_supp = (10.0 * opw + supp) / 11.0
    park_sum = (
        0.4 * (park.grandiosity - 0.5)
        + 0.2 * (park.fortification - 0.5)
        + 0.08 * (park.viscosity - 0.5)
        + 0.08 * (park.ominousness - 0.5)
        - 0.24 * (park.forwardness - 0.5)
    )
    return 0.12 + 0.16 * div - 0.08 * opw_supp - 0.18 * park_sum


def triple_threshold(pitcher: Player, fielder: Player, batter: Player, date: Date,
                     park: Ballpark = DEFAULT_BALLPARK) -> float:
    gf = batter.ground_friction * vibe_mod(batter, date)
    opw = pitcher.overpowerment * vibe_mod(pitcher, date)
    chase = fielder.chasiness * vibe_mod(fielder, date)
    return (
        0.05
        + 0.2 * gf
        - 0.04 * opw
        - 0.06 * chase
        + 0.02 * (park.forwardness - 0.5)
        + 0.035 * (park.grandiosity - 0.5)
        + 0.035 * (park.obtuseness - 0.5)
        - 0.005 * (park.ominousness - 0.5)
        - 0.005 * (park.viscosity - 0.5)
    )


def double_threshold(pitcher: Player, fielder: Player, batter: Player, date: Date,
                     park: Ballpark = DEFAULT_BALLPARK) -> float:
    musc = batter.musclitude * vibe_mod(batter, date)
    opw = pitcher.overpowerment * vibe_mod(pitcher, date)
    chase = fielder.chasiness * vibe_mod(fielder, date)
    return (
        0.165
        + 0.2 * musc
        - 0.04 * opw
        - 0.009 * chase
        + 0.027 * (park.forwardness - 0.5)
        - 0.015 * (park.elongation - 0.5)
        - 0.01 * (park.ominousness - 0.5)
        - 0.008 * (park.viscosity - 0.5)
    )


# ---------------------------------------------------------------------------
# Rolls
# ---------------------------------------------------------------------------

def roll_strike(rng: Rng, pitcher: Player, batter: Player, date: Date,
                park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < strike_threshold(pitcher, batter, date, park)


def roll_swing(rng: Rng, pitcher: Player, batter: Player, strike: bool, date: Date,
               park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < swing_threshold(pitcher, batter, strike, date, park)


def roll_contact(rng: Rng, pitcher: Player, batter: Player, strike: bool, date: Date,
                 park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < contact_threshold(pitcher, batter, strike, date, park)


def roll_foul(rng: Rng, batter: Player, date: Date, park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < foul_threshold(batter, date, park)


def roll_out(rng: Rng, pitcher: Player, fielder: Player, batter: Player, date: Date,
             park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < out_threshold(pitcher, fielder, batter, date, park)


def roll_flyout(rng: Rng, batter: Player, park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < fly_threshold(batter, park)


def roll_home_run(rng: Rng, pitcher: Player, batter: Player, date: Date,
                  park: Ballpark = DEFAULT_BALLPARK) -> bool:
    return rng.random() < home_run_threshold(pitcher, batter, date, park)


def roll_base_hit(rng: Rng, pitcher: Player, fielder: Player, batter: Player, date: Date,
                  park: Ballpark = DEFAULT_BALLPARK) -> int:
    """Return 3, 2 or 1 bases.  Triple is checked before double."""
    triple = triple_threshold(pitcher, fielder, batter, date, park)
    double = double_threshold(pitcher, fielder, batter, date, park)
    triple_roll = rng.random()
    double_roll = rng.random()
    # TODO: confirm against observed play whether doubles are checked first.
    if triple_roll < triple:
        return 3
    if double_roll < double:
        return 2
    return 1
