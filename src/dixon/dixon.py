import logging
import numbers
import random
import time
from collections import Counter

from dixon.congruence import extract
from dixon.errors import FactorizationError, InvalidInputError, RelationExhaustionError
from dixon.linalg import find_dependencies
from dixon.numbertheory import as_perfect_power, is_probable_prime, smallest_divisor
from dixon.relations import RelationCollector, build_factor_base, optimal_bound


class DixonFactorizer:
    def __init__(
        self,
        bound: int = None,
        max_attempts: int = 100000,
        max_trivial: int = 20,
        max_escalations: int = 3,
        bound_growth: int = 2,
        workers: int = 1,
        seed=None,
        on_event=None,
        trace_smoothness: bool = False
    ):
        """
        Initialize the factorizer with its retry budgets and hyperparameters.

        Args:
            bound (int): Smoothness bound override (default: heuristic per residue).
            max_attempts (int): Consecutive unproductive samples before relation
                collection gives up (default: 100000).
            max_trivial (int): Consecutive rounds ending in trivial congruences
                before a residue is abandoned (default: 20).
            max_escalations (int): How often the bound may be raised after
                relation collection gives up (default: 3).
            bound_growth (int): Factor the bound is multiplied by on escalation (default: 2).
            workers (int): Threads sampling relations concurrently (default: 1).
            seed: Seed for the private random number generator.
            on_event: Optional callable on_event(name, payload) receiving progress events.
            trace_smoothness (bool): Also send every smoothness-test division to on_event.
        """
        if bound is not None and bound < 0:
            raise ValueError("bound must be non-negative")
        if max_attempts < 1 or max_trivial < 1:
            raise ValueError("retry budgets must be at least 1")
        if max_escalations < 0:
            raise ValueError("max_escalations must be non-negative")
        if bound_growth < 2:
            raise ValueError("bound_growth must be at least 2")
        if workers < 1:
            raise ValueError("workers must be at least 1")

        self.logger = logging.getLogger(__name__)

        self.bound = bound
        self.max_attempts = max_attempts
        self.max_trivial = max_trivial
        self.max_escalations = max_escalations
        self.bound_growth = bound_growth
        self.workers = workers
        self.rng = random.Random(seed)
        self.on_event = on_event
        self.trace_smoothness = trace_smoothness

    def _emit(self, event, **payload):
        if self.on_event is not None:
            self.on_event(event, payload)

    def _trace_step(self, exponents, remaining, prime):
        self._emit("smooth_step", exponents=exponents, remaining=remaining, prime=prime)

    def decide_bound(self, N, B=None):
        """Decide on bound B using heuristic if none provided."""
        if B is None:
            B = self.bound
        if B is None:
            B = optimal_bound(N)
        self.logger.info("Using B = %d", B)
        return B

    def build_factor_base(self, N, B):
        fb = build_factor_base(N, B)
        self.logger.info("Factor base size: %d", len(fb))
        self._emit("factor_base", n=N, bound=B, size=len(fb))
        return fb

    def collect_relations(self, N, factor_base):
        """Collect smooth relations for N.

        Args:
            N: The integer to factorize.
            factor_base: The factor base.

        Returns:
            The completed RelationSet.
        """
        collector = RelationCollector(
            max_attempts=self.max_attempts,
            workers=self.workers,
            rng=self.rng,
            on_step=self._trace_step if self.trace_smoothness else None,
        )
        relations = collector.collect(N, factor_base)
        self.logger.info("Number of smooth relations: %d", len(relations))
        self._emit("relations", n=N, count=len(relations), square=relations.is_square)
        return relations

    def solve_dependencies(self, relations):
        """Solve for dependencies in GF(2).

        Args:
            relations: The completed RelationSet.

        Returns:
            Index tuples into relations.relations, each combining to a square.
        """
        if relations.is_square:
            return [(0,)]
        self.logger.info("Solving linear system in GF(2).")
        dependencies = find_dependencies(relations.parity_rows())
        self._emit("dependency", count=len(dependencies))
        return dependencies

    def extract_factors(self, N, relations, factor_base, selection):
        """Build the congruence for one dependency and return the proper divisors it reveals."""
        congruence = extract(relations, selection, factor_base, N)
        self._emit("congruence", n=N, x=congruence.x, y=congruence.y)
        divisors = congruence.divisors()
        if divisors:
            self.logger.info("Found divisor %d of %d", divisors[0], N)
            self._emit("divisor", n=N, divisor=divisors[0])
        return divisors

    def split(self, N, found=None):
        """Find a proper divisor of the composite N.

        Args:
            N: A composite that is not a perfect power.
            found: Primes already accumulated, reported if the split fails.

        Returns:
            A divisor d with 1 < d < N.

        Raises:
            FactorizationError: Escalation and trivial-congruence budgets are exhausted.
        """
        if found is None:
            found = Counter()
        B = self.decide_bound(N)
        escalations = 0
        trivial = 0

        while True:
            factor_base = self.build_factor_base(N, B)
            if not factor_base.primes:
                d = smallest_divisor(N)
                self.logger.info("Empty factor base, trial division gives %d", d)
                self._emit("divisor", n=N, divisor=d)
                return d

            step_start = time.time()
            try:
                relations = self.collect_relations(N, factor_base)
            except RelationExhaustionError as err:
                escalations += 1
                self._emit("exhausted", n=N, bound=B, found=err.found)
                if escalations > self.max_escalations:
                    self.logger.warning("Not enough smooth relations found for %d.", N)
                    raise FactorizationError(
                        "relation collection exhausted for %d" % N,
                        N, sorted(found.elements())
                    ) from err
                B *= self.bound_growth
                trivial = 0
                self.logger.info("Raising B to %d", B)
                continue
            step_end = time.time()
            self.logger.info("Relation collection took %.3f seconds", step_end - step_start)

            members = relations.relations
            for selection in self.solve_dependencies(relations):
                divisors = self.extract_factors(N, members, factor_base, selection)
                if divisors:
                    return divisors[0]

            trivial += 1
            self.logger.info("Only trivial congruences for %d (%d in a row)", N, trivial)
            self._emit("trivial_congruence", n=N, count=trivial)
            if trivial >= self.max_trivial:
                self.logger.warning("No non-trivial factors found with the current settings.")
                raise FactorizationError(
                    "only trivial congruences for %d" % N,
                    N, sorted(found.elements())
                )

    def _accumulate(self, residue, found):
        if residue == 1:
            return found
        if is_probable_prime(residue):
            return found + Counter({residue: 1})

        power = as_perfect_power(residue)
        if power is not None:
            base, exponent = power
            try:
                base_primes = self._accumulate(base, Counter())
            except FactorizationError as err:
                err.partial = sorted((found + Counter(err.partial)).elements())
                raise
            return found + Counter({p: c * exponent for p, c in base_primes.items()})

        d = self.split(residue, found)
        found = self._accumulate(d, found)
        return self._accumulate(residue // d, found)

    def factor(self, N):
        """Main factorization method using Dixon's random squares algorithm.

        Args:
            N: The integer to factorize, at least 2.

        Returns:
            The prime factors of N in ascending order, repeated by multiplicity.

        Raises:
            InvalidInputError: N is not an integer or is smaller than 2.
            FactorizationError: A residue could not be split within the retry budgets.
        """
        if isinstance(N, bool) or not isinstance(N, numbers.Integral):
            raise InvalidInputError("expected an integer, got %r" % (N,))
        N = int(N)
        if N < 2:
            raise InvalidInputError("expected an integer of at least 2, got %d" % N)

        overall_start = time.time()
        self.logger.info("========== Dixon Factorization Start ==========")
        self.logger.info("Factoring N = %d", N)

        primes = self._accumulate(N, Counter())

        overall_end = time.time()
        self.logger.info("Total time for Dixon factorization: %.3f seconds", overall_end - overall_start)
        self.logger.info("========== Dixon Factorization End ==========")
        return sorted(primes.elements())


def factor(n, **options):
    """Prime factors of n, ascending and with multiplicity.

    Keyword arguments are passed on to DixonFactorizer.
    """
    return DixonFactorizer(**options).factor(n)


def largest_prime_factor(n, **options):
    """Largest prime factor of n.

    Args:
        n: The integer to factorize, at least 2.
        **options: Passed on to DixonFactorizer.

    Returns:
        The largest prime dividing n.
    """
    return factor(n, **options)[-1]
