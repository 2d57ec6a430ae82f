"""Factor base construction, the smoothness test and relation collection.

A relation is a sampled ``z`` together with the exponent vector of
``z**2 mod n`` over the factor base.  Relations are gathered into a
:class:`RelationSet` until either ``k + 1`` of them exist (so the GF(2)
solver is guaranteed a dependency) or one of them is already a square.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from math import ceil, exp, isqrt, log, sqrt

import numpy as np

from dixon.errors import RelationExhaustionError
from dixon.numbertheory import prime_sieve, random_integer_in_range

INT64_MAX = 2 ** 63 - 1


def optimal_bound(n):
    """Smoothness bound B = ceil(exp(sqrt(ln n * ln ln n))).

    Args:
        n: The integer to factorize.

    Returns:
        The bound B; 1 for n = 2, where ln ln n is negative.
    """
    weight = log(n) * log(log(n))
    return ceil(exp(sqrt(max(weight, 0.0))))


@dataclass(frozen=True)
class FactorBase:
    """The primes up to a smoothness bound, fixed for one residue.

    Attributes:
        bound: The smoothness bound B.
        primes: Every prime <= B, ascending.
        array: The same primes as an int64 numpy array.
    """

    bound: int
    primes: tuple
    array: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "array", np.array(self.primes, dtype=np.int64))

    def __len__(self):
        return len(self.primes)

    def __iter__(self):
        return iter(self.primes)

    def product(self, exponents):
        """Multiply the primes raised to the given exponents.

        Args:
            exponents: An exponent vector ordered like the primes.

        Returns:
            The product of p**e over the factor base.
        """
        value = 1
        for p, e in zip(self.primes, exponents):
            if e:
                value *= p ** e
        return value


def build_factor_base(n, bound=None):
    """Build the factor base: every prime up to the smoothness bound.

    Args:
        n: The integer to factorize.
        bound: Optional bound; the heuristic from optimal_bound is used when omitted.

    Returns:
        The FactorBase, possibly empty when the bound is below 2.
    """
    if bound is None:
        bound = optimal_bound(n)
    return FactorBase(bound, tuple(prime_sieve(bound)))


def smooth_exponents(z, n, factor_base, on_step=None):
    """Factor z**2 mod n over the factor base.

    Primes are divided out from the largest down, each one for as long as it
    divides, so the walk advances at most len(factor_base) times.  When the
    value fits into an int64 a single vectorised remainder picks out the primes
    that divide it and the others are skipped.

    Args:
        z: The sampled integer.
        n: The integer to factorize.
        factor_base: The FactorBase to test against.
        on_step: Optional debug callback, called as on_step(exponents, remaining, prime)
            after every division.

    Returns:
        The exponent vector as a tuple ordered like the factor base, or None if
        z**2 mod n is not smooth.
    """
    t = pow(z, 2, n)
    if t == 0:
        return None
    primes = factor_base.primes
    exponents = [0] * len(primes)

    if primes and t <= INT64_MAX:
        candidates = np.flatnonzero(np.int64(t) % factor_base.array == 0)[::-1].tolist()
    else:
        candidates = range(len(primes) - 1, -1, -1)

    for i in candidates:
        if t == 1:
            break
        p = primes[i]
        while t % p == 0:
            t //= p
            exponents[i] += 1
            if on_step is not None:
                on_step(tuple(exponents), t, p)

    if t != 1:
        return None
    return tuple(exponents)


@dataclass(frozen=True)
class Relation:
    """A sampled z and the exponent vector of z**2 mod n over the factor base."""

    z: int
    exponents: tuple

    @property
    def parity(self):
        """The exponent vector reduced mod 2."""
        return tuple(e & 1 for e in self.exponents)

    @property
    def is_square(self):
        return not any(e & 1 for e in self.exponents)

    def value(self, factor_base):
        return factor_base.product(self.exponents)


class RelationSet:
    """Relations keyed by z, safe to fill from several threads.

    The set closes itself once it holds ``target`` relations or as soon as a
    square relation arrives; in the latter case that relation becomes the only
    member.  Nothing can be added to a closed set.
    """

    def __init__(self, target):
        self.target = target
        self._relations = {}
        self._square = False
        self._closed = False
        self._misses = 0
        self._lock = threading.Lock()

    def offer(self, relation):
        """Insert a relation; returns False for a duplicate z or a closed set."""
        with self._lock:
            if self._closed or relation.z in self._relations:
                return False
            if relation.is_square:
                self._relations = {relation.z: relation}
                self._square = True
                self._closed = True
            else:
                self._relations[relation.z] = relation
                self._closed = len(self._relations) >= self.target
            self._misses = 0
            return True

    def record_miss(self):
        """Count one unproductive sample; returns the misses since the last insertion."""
        with self._lock:
            self._misses += 1
            return self._misses

    def close(self):
        with self._lock:
            self._closed = True

    @property
    def closed(self):
        return self._closed

    @property
    def complete(self):
        return self._square or len(self._relations) >= self.target

    @property
    def is_square(self):
        """True when the set holds a single square relation (no linear algebra needed)."""
        return self._square

    @property
    def relations(self):
        with self._lock:
            return list(self._relations.values())

    def parity_rows(self):
        return [r.parity for r in self.relations]

    def __len__(self):
        return len(self._relations)


class RelationCollector:
    """Samples random z until a RelationSet is complete, on one or more threads."""

    def __init__(self, max_attempts: int = 100000, workers: int = 1, rng=None, on_step=None):
        """
        Args:
            max_attempts (int): Consecutive samples without a new relation before giving up.
            workers (int): Number of threads sampling concurrently.
            rng: random.Random used for sampling (module-level random when None).
            on_step: Optional debug callback forwarded to smooth_exponents.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.max_attempts = max_attempts
        self.workers = workers
        self.rng = rng
        self.on_step = on_step

    def collect(self, n, factor_base):
        """Sample z in [ceil(sqrt(n)), n) until the relation set is complete.

        Args:
            n: The integer to factorize.
            factor_base: A non-empty FactorBase.

        Returns:
            A closed RelationSet holding either one square relation or
            len(factor_base) + 1 relations.

        Raises:
            RelationExhaustionError: max_attempts consecutive samples added nothing.
        """
        relations = RelationSet(len(factor_base) + 1)
        lo = isqrt(n - 1) + 1

        if self.workers == 1:
            self._sample(n, factor_base, lo, relations)
            return relations

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = [
                pool.submit(self._sample, n, factor_base, lo, relations)
                for _ in range(self.workers)
            ]
        for future in futures:
            future.result()
        return relations

    def _sample(self, n, factor_base, lo, relations):
        while not relations.closed:
            z = random_integer_in_range(lo, n, self.rng)
            exponents = smooth_exponents(z, n, factor_base, self.on_step)
            if exponents is not None and relations.offer(Relation(z, exponents)):
                continue
            if relations.closed:
                break
            if relations.record_miss() >= self.max_attempts and not relations.complete:
                relations.close()
                raise RelationExhaustionError(n, self.max_attempts, len(relations))
