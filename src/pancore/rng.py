"""Deterministic random utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(slots=True)
class RandomState:
    """Owned generator with the seed it was built from."""

    seed: int
    generator: np.random.Generator

    @classmethod
    def create(cls, seed: Optional[int] = None) -> "RandomState":
        """Build a generator; without a seed one is drawn from OS entropy."""

        if seed is None:
            seed = fresh_seed()
        return cls(seed=seed, generator=np.random.default_rng(seed))

    def spawn(self, offset: int) -> "RandomState":
        """Derive a child generator with deterministic offset."""

        bit_generator = self.generator.bit_generator.jumped(offset)
        return RandomState(seed=self.seed + offset, generator=np.random.Generator(bit_generator))


def fresh_seed() -> int:
    """Draw a 32-bit seed from OS entropy so an unseeded run can be replayed."""

    return int(np.random.SeedSequence().generate_state(1)[0])
