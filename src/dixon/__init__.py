"""Integer factorization with Dixon's random squares method."""
from dixon.congruence import Congruence, extract
from dixon.dixon import DixonFactorizer, factor, largest_prime_factor
from dixon.errors import (
    DixonError,
    FactorizationError,
    InvalidInputError,
    RelationExhaustionError,
)
from dixon.linalg import find_dependencies, find_dependency
from dixon.relations import (
    FactorBase,
    Relation,
    RelationCollector,
    RelationSet,
    build_factor_base,
    optimal_bound,
    smooth_exponents,
)

__all__ = [
    "Congruence",
    "DixonError",
    "DixonFactorizer",
    "FactorBase",
    "FactorizationError",
    "InvalidInputError",
    "Relation",
    "RelationCollector",
    "RelationExhaustionError",
    "RelationSet",
    "build_factor_base",
    "extract",
    "factor",
    "find_dependencies",
    "find_dependency",
    "largest_prime_factor",
    "optimal_bound",
    "smooth_exponents",
]
