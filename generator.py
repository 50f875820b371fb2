# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Random player generation.

Attributes are rolled from the simulation RNG in a fixed order, so a seeded
generator always produces the same players.  Identifiers come from
``uuid4`` and are not part of the reproducible sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from models import ATTRIBUTES, Player, new_id
from rng import Rng

logger = logging.getLogger(__name__)

# Draws consumed by one generated player: attributes, soul, allergy, fate,
# ritual, blood, coffee.
DRAWS_PER_PLAYER = len(ATTRIBUTES) + 6


def generate_with_name(rng: Rng, name: str, rituals: Sequence[str] = ()) -> Player:
    """Roll a new player with the given name.

    The ritual roll happens even when *rituals* is empty, so the number of
    draws per player never changes.
    """
    attributes = {attr: rng.random() for attr in ATTRIBUTES}
    soul = rng.choose(range(2, 10))
    peanut_allergy = rng.choose((True, False))
    fate = rng.choose(range(100))
    ritual = rng.choose(rituals)
    blood = rng.choose(range(13))
    coffee = rng.choose(range(13))
    player = Player(
        id=new_id(),
        name=name,
        **attributes,
        soul=soul,
        peanut_allergy=peanut_allergy,
        fate=fate,
        ritual=ritual or "",
        blood=blood,
        coffee=coffee,
    )
    logger.debug("Generated player %s (%s)", player.name, player.id)
    return player


def generate_player(rng: Rng, first_names: Sequence[str], last_names: Sequence[str],
                    rituals: Sequence[str] = ()) -> Player:
    """Roll a player whose name is drawn from the first/last name pools."""
    if not first_names or not last_names:
        raise ValueError("name pools must not be empty")
    name = f"{rng.choose(first_names)} {rng.choose(last_names)}"
    return generate_with_name(rng, name, rituals)
