# src/corpus_easy/scoring.py

import numba
import numpy as np


@numba.njit(fastmath=True, cache=True)
def sparse_row_dot(
    a_indices: np.ndarray,
    a_values: np.ndarray,
    b_indices: np.ndarray,
    b_values: np.ndarray,
) -> float:
    """
    Dot product of two sparse rows using a two-pointer merge over feature indices.

    IMPORTANT: Assumes both index arrays are sorted and unique, which holds for
    a CSR matrix after `sort_indices()`.

    Args:
        a_indices: Feature indices of the first row (SORTED, UNIQUE)
        a_values: Values of the first row
        b_indices: Feature indices of the second row (SORTED, UNIQUE)
        b_values: Values of the second row

    Returns:
        Sum of products over the shared feature indices
    """
    total = 0.0
    i, j = 0, 0
    n_a = len(a_indices)
    n_b = len(b_indices)

    while i < n_a and j < n_b:
        a_idx = a_indices[i]
        b_idx = b_indices[j]

        if a_idx == b_idx:
            total += a_values[i] * b_values[j]
            i += 1
            j += 1
        elif a_idx < b_idx:
            i += 1
        else:
            j += 1

    return total


@numba.njit(fastmath=True, cache=True)
def csr_row_norms(indptr: np.ndarray, data: np.ndarray) -> np.ndarray:
    """L2 norm of every CSR row."""
    n_rows = len(indptr) - 1
    norms = np.zeros(n_rows, dtype=np.float64)
    for r in range(n_rows):
        acc = 0.0
        for k in range(indptr[r], indptr[r + 1]):
            acc += data[k] * data[k]
        norms[r] = np.sqrt(acc)
    return norms


@numba.njit(cache=True)
def pairwise_row_similarity(
    indptr: np.ndarray,
    indices: np.ndarray,
    data: np.ndarray,
    use_cosine: bool = True,
) -> np.ndarray:
    """
    Symmetric row-by-row similarity matrix for CSR arrays with sorted indices.

    Cosine divides each dot product by the row norms, computed once up front.
    A pair involving an all-zero row scores 0.0 under cosine.
    """
    n_rows = len(indptr) - 1
    out = np.zeros((n_rows, n_rows), dtype=np.float64)
    norms = csr_row_norms(indptr, data)
    for r in range(n_rows):
        r_lo, r_hi = indptr[r], indptr[r + 1]
        for s in range(r, n_rows):
            s_lo, s_hi = indptr[s], indptr[s + 1]
            score = sparse_row_dot(indices[r_lo:r_hi], data[r_lo:r_hi], indices[s_lo:s_hi], data[s_lo:s_hi])
            if use_cosine:
                denom = norms[r] * norms[s]
                score = 0.0 if denom == 0.0 else score / denom
            out[r, s] = score
            out[s, r] = score
    return out
