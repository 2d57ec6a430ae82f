import random
from math import isqrt

import numpy as np
from sympy import isprime, perfect_power


def gcd(a, b):
    """Greatest common divisor by Euclid's algorithm.

    Args:
        a: First integer, any sign.
        b: Second integer, any sign.

    Returns:
        The non-negative gcd; gcd(0, b) is abs(b).
    """
    a, b = abs(a), abs(b)
    while a:
        a, b = b % a, a
    return b


def is_probable_prime(x):
    """Primality test for the divisors found during factorization.

    Deterministic below 2**64 and a BPSW test above, which has no known
    counterexample for inputs of the sizes this package works with.
    """
    return bool(isprime(x))


def prime_sieve(n):
    """Return list of primes up to n using Sieve of Eratosthenes.

    Args:
        n: The upper limit for prime generation.

    Returns:
        A list of prime numbers up to n, empty when n < 2.
    """
    if n < 2:
        return []
    sieve_array = np.ones((n + 1,), dtype=bool)
    sieve_array[0], sieve_array[1] = False, False
    for i in range(2, isqrt(n) + 1):
        if sieve_array[i]:
            sieve_array[i * i::i] = False
    return np.flatnonzero(sieve_array).tolist()


generate_primes_upto = prime_sieve


def random_integer_in_range(lo, hi, rng=None):
    """Uniform integer in [lo, hi) for arbitrarily large bounds."""
    if rng is None:
        rng = random
    return rng.randrange(lo, hi)


def smallest_divisor(n):
    """Smallest divisor of n greater than 1, by trial division."""
    if n % 2 == 0:
        return 2
    for d in range(3, isqrt(n) + 1, 2):
        if n % d == 0:
            return d
    return n


def as_perfect_power(n):
    """Return (base, exponent) when n == base**exponent with exponent > 1, else None."""
    found = perfect_power(n)
    if not found:
        return None
    base, exponent = found
    return int(base), int(exponent)
