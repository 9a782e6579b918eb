"""Seeded random state shared by prime generation and key generation.

Wraps a Mersenne Twister generator. It is reproducible from its seed, but it is NOT cryptographically secure:
anything generated with it is academic-grade only.

Typical usage example:

    rng = RandState(2025)
    rng.uniform_bits(64)
    rng.uniform_below(97)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import random
import time

logger = logging.getLogger(__name__)


class RandState:
    """A seeded source of uniformly distributed integers.

    One instance is created by the top-level owner (the CLI, a test) and handed to every function needing
    randomness.

    Attributes:
        seed_value: The seed last used to initialize the generator.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random()
        self.seed_value: int = 0
        self.seed(int(time.time()) if seed is None else seed)

    def seed(self, value: int) -> None:
        """Reinitialize the generator from `value`."""
        self.seed_value = value
        self._rng.seed(value)
        logger.debug("Random state seeded with %d", value)

    def uniform_bits(self, bits: int) -> int:
        """Draw an integer uniformly from `[0, 2**bits)`.

        Args:
            bits: Width of the draw in bits. Must be >= 0.

        Returns:
            The random integer.

        Raises:
            ValueError: If `bits` is negative.
        """
        if bits < 0:
            raise ValueError("Bit width must be >= 0")
        return self._rng.getrandbits(bits)

    def uniform_below(self, bound: int) -> int:
        """Draw an integer uniformly from `[0, bound)`.

        Args:
            bound: Exclusive upper bound. Must be > 0.

        Returns:
            The random integer.

        Raises:
            ValueError: If `bound` is not positive.
        """
        if bound <= 0:
            raise ValueError("Bound must be > 0")
        return self._rng.randrange(bound)
