"""Shared GF(2) helpers for stabilizer modules."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import numpy as np
import ldpc.mod2 as mod2


def to_uint8_array(data: Any) -> np.ndarray:
    """Convert dense/sparse input to a uint8 numpy array modulo 2."""

    if hasattr(data, "toarray"):
        dense = data.toarray()
    else:
        dense = np.asarray(data)
    return (dense.astype(np.int64) % 2).astype(np.uint8)


def to_uint8_matrix(data: Any) -> np.ndarray:
    """Convert dense/sparse input to a 2D uint8 matrix modulo 2."""

    dense = to_uint8_array(data)
    if dense.ndim == 1:
        if dense.size == 0:
            return np.zeros((0, 0), dtype=np.uint8)
        dense = dense.reshape(1, -1)
    return dense


def gf2_rank(matrix: Any) -> int:
    """Return the rank of a binary matrix over GF(2)."""

    mat = to_uint8_matrix(matrix)
    if mat.size == 0:
        return 0
    return int(mod2.rank(mat))


def gf2_rref(
    matrix: Any,
    *,
    pivot_cols: Optional[int] = None,
) -> Tuple[np.ndarray, List[int]]:
    """Return (reduced row echelon form, pivot columns) over GF(2).

    Pivots are only searched in the first ``pivot_cols`` columns (all columns
    by default). The row transform ldpc finds for that block is applied to the
    whole matrix, so the remaining columns are carried along.
    """

    mat = to_uint8_matrix(matrix)
    limit = mat.shape[1] if pivot_cols is None else int(pivot_cols)
    if mat.size == 0 or limit == 0:
        return mat.copy(), []
    _, rank, transform, pivots = mod2.reduced_row_echelon(np.ascontiguousarray(mat[:, :limit]))
    transform = to_uint8_matrix(transform).astype(np.int64)
    reduced = ((transform @ mat.astype(np.int64)) % 2).astype(np.uint8)
    pivot_list: List[int] = sorted(int(p) for p in np.asarray(pivots).ravel()[: int(rank)])
    # pivot rows in pivot-column order, then the rows that are zero on the block
    order = [int(np.flatnonzero(reduced[:, p])[0]) for p in pivot_list]
    placed = set(order)
    rest = [r for r in range(reduced.shape[0]) if r not in placed]
    return reduced[order + rest], pivot_list


def symplectic_product(a: Any, b: Any) -> np.ndarray:
    """Return M_ij = <a_i, b_j> mod 2 for rows given as [X | Z]."""

    a_u = to_uint8_matrix(a).astype(np.int64)
    b_u = to_uint8_matrix(b).astype(np.int64)
    if a_u.shape[1] != b_u.shape[1] or a_u.shape[1] % 2:
        raise ValueError("symplectic rows must share an even number of columns")
    n = a_u.shape[1] // 2
    xa, za = a_u[:, :n], a_u[:, n:]
    xb, zb = b_u[:, :n], b_u[:, n:]
    return ((xa @ zb.T + za @ xb.T) % 2).astype(np.uint8)


def stabilizer_matrix_commutes(stabilizer_matrix: Any) -> bool:
    """Return True if all generators commute under the symplectic product."""
    mat = to_uint8_matrix(stabilizer_matrix)
    if mat.size == 0:
        return True
    return bool(np.all(symplectic_product(mat, mat) == 0))


__all__ = [
    "to_uint8_array",
    "to_uint8_matrix",
    "gf2_rank",
    "gf2_rref",
    "symplectic_product",
    "stabilizer_matrix_commutes",
]
