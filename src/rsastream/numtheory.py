"""Number theory primitives backing the RSA layer.

Modular exponentiation, Miller-Rabin probable-prime testing, random prime generation, greatest common divisor and
modular inverse. Everything is computed by hand on plain `int`, no builtin `pow(..., mod)` shortcuts.

Typical usage example:

    rng = RandState(42)
    p = make_prime(512, 50, rng)
    mod_pow(65, 17, 3233)
    mod_inverse(17, 3120)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging

from rsastream.randstate import RandState

logger = logging.getLogger(__name__)


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """Compute `base**exponent % modulus` by right-to-left square-and-multiply.

    Not constant time.

    Args:
        base: The base.
        exponent: The exponent. Must be >= 0.
        modulus: The modulus. Must be > 0.

    Returns:
        The power. An `exponent` of 0 always yields 1.

    Raises:
        ValueError: If `modulus` is not positive or `exponent` is negative.
    """
    if modulus <= 0:
        raise ValueError("Modulus must be > 0")
    if exponent < 0:
        raise ValueError("Exponent must be >= 0")
    out = 1
    power = base
    while exponent > 0:
        if exponent & 1:
            out = (out * power) % modulus
        power = (power * power) % modulus
        exponent >>= 1
    return out


def is_prime(n: int, iters: int, rng: RandState) -> bool:
    """Perform the Miller-Rabin primality test.

    Args:
        n: The candidate.
        iters: Number of random witnesses to try.
        rng: Random state the witnesses are drawn from.

    Returns:
        True if `n` is probably prime, False if it is certainly composite.
    """
    if n == 2 or n == 3:
        return True
    if n <= 1 or n % 2 == 0:
        return False
    tn = n - 1
    s = (tn & -tn).bit_length() - 1
    r = tn >> s
    for _ in range(iters):
        a = rng.uniform_below(n - 3) + 2
        y = mod_pow(a, r, n)
        if y == 1 or y == tn:
            continue
        for _ in range(1, s):
            y = mod_pow(y, 2, n)
            if y == 1:
                return False
            if y == tn:
                break
        else:
            return False
    return True


def make_prime(bits: int, iters: int, rng: RandState) -> int:
    """Generate a random probable prime of exactly `bits` bits.

    Candidates are drawn until one is probably prime and its highest set bit is bit `bits - 1`. There is no cap on
    the number of draws; prime density makes termination overwhelmingly likely.

    Args:
        bits: The bit length of the prime. Must be >= 2.
        iters: Miller-Rabin iterations per candidate.
        rng: Random state for candidates and witnesses.

    Returns:
        The probable prime.

    Raises:
        ValueError: If `bits` is below 2.
    """
    if bits < 2:
        raise ValueError("A prime needs at least 2 bits")
    draws = 0
    while True:
        draws += 1
        candidate = rng.uniform_bits(bits)
        if candidate.bit_length() == bits and is_prime(candidate, iters, rng):
            logger.debug("Found %d-bit prime after %d draws", bits, draws)
            return candidate


def gcd(a: int, b: int) -> int:
    """Euclid's algorithm on non-negative integers."""
    while b != 0:
        a, b = b, a % b
    return a


def mod_inverse(a: int, n: int) -> int | None:
    """Compute the inverse of `a` modulo `n` with the Extended Euclidean Algorithm.

    Only the coefficient of `a` is tracked, such that a*t = r (mod n) at every step.

    Args:
        a: The number to invert.
        n: The modulus. Must be > 0.

    Returns:
        `t` in `[0, n)` with `a*t % n == 1 % n`, or None when `a` and `n` are not coprime.
    """
    r0, r1 = n, a
    t0, t1 = 0, 1
    while r1 != 0:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        t0, t1 = t1, t0 - q * t1
    if r0 > 1:
        return None
    if t0 < 0:
        t0 += n
    return t0
