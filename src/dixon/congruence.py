from dataclasses import dataclass

from dixon.numbertheory import gcd


@dataclass(frozen=True)
class Congruence:
    """A pair with x**2 == y**2 (mod n)."""

    x: int
    y: int
    n: int

    def holds(self):
        return pow(self.x, 2, self.n) == pow(self.y, 2, self.n)

    def divisors(self):
        """Proper divisors of n among gcd(x + y, n) and gcd(x - y, n).

        An empty tuple means the congruence is trivial.
        """
        candidates = {gcd(self.x + self.y, self.n), gcd(self.x - self.y, self.n)}
        return tuple(sorted(d for d in candidates if 1 < d < self.n))


def extract(relations, selection, factor_base, n):
    """Combine the selected relations into a congruence of squares.

    Args:
        relations: Sequence of Relation, ordered as the rows given to the solver.
        selection: Indices into relations (a dependency, or (0,) for a square relation).
        factor_base: The FactorBase the exponent vectors refer to.
        n: The integer to factorize.

    Returns:
        The Congruence (x, y) for n.

    Raises:
        ValueError: The summed exponents are not all even.
    """
    x = 1
    summed = [0] * len(factor_base)
    for idx in selection:
        relation = relations[idx]
        x = (x * relation.z) % n
        for i, e in enumerate(relation.exponents):
            summed[i] += e

    if any(e & 1 for e in summed):
        raise ValueError("selected relations do not combine to a square")

    y = 1
    for p, e in zip(factor_base, summed):
        if e:
            y = (y * pow(p, e // 2, n)) % n
    return Congruence(x, y, n)
