"""RSA key pair generation on top of the number theory primitives.

Splits the requested modulus size between two random primes with a random imbalance, picks a random public exponent
coprime to the totient and derives the private exponent from it. Also converts usernames into the integers that
get signed into public keys.

Typical usage example:

    rng = RandState(1234)
    p, q, n, e = generate_key_pair(1024, 50, rng)
    d = make_priv(e, p, q)
    username_to_int("alice")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import string

from rsastream import numtheory
from rsastream.randstate import RandState

logger = logging.getLogger(__name__)

# Digit order for bases above 36: 0-9, then upper case, then lower case.
BASE62_DIGITS = string.digits + string.ascii_uppercase + string.ascii_lowercase
_BASE62_VALUES = {ch: no for no, ch in enumerate(BASE62_DIGITS)}
_MINIMUM_KEY_BITS = 8


def generate_key_pair(nbits: int, iters: int, rng: RandState) -> tuple[int, int, int, int]:
    """Generates the public part of an RSA key pair, along with its primes.

    The bits of `p` are drawn uniformly from `[nbits/4, 3*nbits/4)`, `q` takes the rest. One bit is added to each so
    that `n` reaches at least `nbits` bits. The public exponent is a random `nbits`-bit integer coprime to the
    totient.

    Args:
        nbits: Minimum bit length of the modulus. Must be >= 8.
        iters: Miller-Rabin iterations per prime candidate.
        rng: Random state for all draws.

    Returns:
        A tuple of (p, q, modulus, public exponent).

    Raises:
        ValueError: If `nbits` is too small to split between two primes.
    """
    if nbits < _MINIMUM_KEY_BITS:
        raise ValueError(f"Key size must be at least {_MINIMUM_KEY_BITS} bits.")
    p_bits = rng.uniform_below(nbits // 2) + nbits // 4
    q_bits = nbits - p_bits
    p_bits += 1
    q_bits += 1
    p = numtheory.make_prime(p_bits, iters, rng)
    q = numtheory.make_prime(q_bits, iters, rng)
    while p == q:  # Only plausible for toy sizes.
        q = numtheory.make_prime(q_bits, iters, rng)
    n = p * q
    totient = (p - 1) * (q - 1)
    e = 0
    while e <= 1 or numtheory.gcd(e, totient) != 1:
        e = rng.uniform_bits(nbits)
    logger.debug("Generated %d-bit modulus from %d-bit and %d-bit primes", n.bit_length(), p_bits, q_bits)
    return p, q, n, e


def make_priv(e: int, p: int, q: int) -> int:
    """Derives the private exponent for the public exponent `e`.

    Args:
        e: The public exponent.
        p: The first prime.
        q: The second prime.

    Returns:
        The inverse of `e` modulo `(p-1)(q-1)`.

    Raises:
        RuntimeError: If `e` is not coprime to the totient, so no private exponent exists.
    """
    d = numtheory.mod_inverse(e, (p - 1) * (q - 1))
    if d is None:
        raise RuntimeError("Public exponent is not invertible modulo the totient.")
    return d


def username_to_int(username: str) -> int:
    """Read a username as a base-62 numeral.

    Args:
        username: The username. Only ASCII letters and digits are allowed.

    Returns:
        The integer the username spells.

    Raises:
        ValueError: If the username is empty or holds characters outside the base-62 alphabet.
    """
    if not username:
        raise ValueError("Username must not be empty.")
    value = 0
    for ch in username:
        digit = _BASE62_VALUES.get(ch)
        if digit is None:
            raise ValueError(f"Username character {ch!r} is not a base-62 digit.")
        value = value * 62 + digit
    return value
