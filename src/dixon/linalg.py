import numpy as np


def gauss_elim(rows):
    """Perform Gaussian elimination on a binary matrix over GF(2).

    The matrix is augmented with an identity block so that every reduced row
    remembers which original rows were XOR-ed together to produce it.

    Args:
        rows: m parity vectors of length k (any nested sequence of 0/1).

    Returns:
        A tuple (reduced, history, rank): the reduced m x k matrix in row echelon
        form, the m x m history matrix and the number of pivot rows.
    """
    matrix = np.asarray(rows, dtype=bool)
    if matrix.ndim != 2:
        matrix = matrix.reshape(len(rows), -1)
    m, k = matrix.shape
    x = np.concatenate([matrix, np.eye(m, dtype=bool)], axis=1)

    rank = 0
    for col in range(k):
        if rank == m:
            break
        ones = np.flatnonzero(x[rank:, col])
        if ones.size == 0:
            continue

        pivot = rank + ones[0]
        if pivot != rank:
            x[[rank, pivot]] = x[[pivot, rank]]
        row = x[rank].copy()

        mask = x[:, col].copy()
        mask[:rank + 1] = False
        x[mask] ^= row
        rank += 1

    return x[:, :k], x[:, k:], rank


def find_dependencies(rows):
    """All dependencies among the rows, in row-elimination order.

    Args:
        rows: m parity vectors of length k.

    Returns:
        A list of tuples of row indices; the vectors at each tuple's indices sum
        to zero over GF(2).  Non-empty whenever m > k.
    """
    if len(rows) == 0:
        return []
    reduced, history, rank = gauss_elim(rows)
    dependencies = []
    for r in range(rank, reduced.shape[0]):
        if not reduced[r].any():
            dependencies.append(tuple(np.flatnonzero(history[r]).tolist()))
    return dependencies


def find_dependency(rows):
    """First dependency found by elimination, or None if the rows are independent."""
    dependencies = find_dependencies(rows)
    return dependencies[0] if dependencies else None
