class DixonError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(DixonError, ValueError):
    """The value to factor is not an integer of at least 2."""


class RelationExhaustionError(DixonError):
    """No new smooth relation turned up within the sampling budget."""

    def __init__(self, n, attempts, found):
        super().__init__(
            "no new smooth relation for n = %d after %d attempts (%d relations collected)"
            % (n, attempts, found)
        )
        self.n = n
        self.attempts = attempts
        self.found = found


class FactorizationError(DixonError):
    """Every retry budget ran out before the residue could be split.

    Attributes:
        residue: The composite that could not be resolved.
        partial: The primes (with multiplicity, ascending) found before giving up.
    """

    def __init__(self, message, residue, partial):
        super().__init__(message)
        self.residue = residue
        self.partial = partial
