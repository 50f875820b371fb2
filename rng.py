# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Deterministic random number generator for the simulation.

XorShift128+ exactly as shipped in V8 (Node.js 12): raw 64-bit outputs are
generated 64 at a time into a cache which is then consumed from the back.
Each output is turned into a double in [0, 1) by splicing its top 52 bits
into the mantissa of 1.0 and subtracting 1.0, so a seeded generator
reproduces a browser's ``Math.random()`` sequence bit for bit.

The whole consumption position (both state words plus the undrawn part of
the current cache) round-trips through ``to_dict``/``from_dict``.
"""

from __future__ import annotations

import math
import os
import struct
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

_MASK64 = 0xFFFF_FFFF_FFFF_FFFF
_ONE_BITS = 0x3FF0_0000_0000_0000  # exponent bits for doubles in [1.0, 2.0)
BATCH_SIZE = 64

Word = int


class RngState(BaseModel):
    """Serialized form of an :class:`Rng`."""
    state: tuple[int, int]
    iter: list[int] = Field(default_factory=list)


def _next_batch(state: list[Word]) -> list[Word]:
    """Advance *state* 64 times, returning the shifted outputs in order."""
    out: list[Word] = []
    s_a, s_b = state
    for _ in range(BATCH_SIZE):
        s1, s0 = s_a, s_b
        s1 ^= (s1 << 23) & _MASK64
        s1 ^= s1 >> 17
        s1 ^= s0
        s1 ^= s0 >> 26
        s_a, s_b = s0, s1
        out.append(s0 >> 12)
    state[0], state[1] = s_a, s_b
    return out


def _to_double(bits: Word) -> float:
    return struct.unpack("<d", struct.pack("<Q", bits | _ONE_BITS))[0] - 1.0


class Rng:
    """Seedable, serializable XorShift128+ generator.

    Usage::

        rng = Rng.seeded(2935246629125674131, 766864515362452477)
        rng.random()                # -> float in [0, 1)
        rng.choose(["a", "b"])      # -> uniform pick, one draw

    ``Rng()`` without arguments seeds itself from ``os.urandom`` and is not
    reproducible.
    """

    def __init__(self, s0: Word | None = None, s1: Word | None = None) -> None:
        if s0 is None or s1 is None:
            raw = os.urandom(16)
            s0 = int.from_bytes(raw[:8], "little")
            s1 = int.from_bytes(raw[8:], "little")
        self._state: list[Word] = [s0 & _MASK64, s1 & _MASK64]
        self._buf: list[Word] = _next_batch(self._state)

    @classmethod
    def seeded(cls, s0: Word, s1: Word) -> Rng:
        return cls(s0, s1)

    # -- drawing -----------------------------------------------------------

    def random(self) -> float:
        """Return the next uniform double in [0, 1)."""
        if not self._buf:
            self._buf = _next_batch(self._state)
        return _to_double(self._buf.pop())

    def choose(self, items: Sequence[T]) -> T | None:
        """Pick one element uniformly.

        Always consumes exactly one draw, even for sequences of length 0 or 1.
        Returns ``None`` only when *items* is empty.
        """
        n = math.floor(self.random() * len(items))
        if n < len(items):
            return items[n]
        return None

    def __iter__(self) -> Rng:
        return self

    def __next__(self) -> float:
        return self.random()

    @property
    def remaining(self) -> int:
        """Number of draws left in the current cache."""
        return len(self._buf)

    # -- serialization -----------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {"state": list(self._state), "iter": list(self._buf)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | RngState) -> Rng:
        """Rebuild a generator at exactly the serialized draw position."""
        parsed = data if isinstance(data, RngState) else RngState.model_validate(data)
        rng = cls.__new__(cls)
        rng._state = [parsed.state[0] & _MASK64, parsed.state[1] & _MASK64]
        rng._buf = [w & _MASK64 for w in parsed.iter[:BATCH_SIZE]]
        return rng

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rng):
            return NotImplemented
        return self._state == other._state and self._buf == other._buf

    def __repr__(self) -> str:
        return f"Rng(state={self._state!r}, remaining={len(self._buf)})"
