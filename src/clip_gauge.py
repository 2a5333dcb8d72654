"""Clipped-gauge canonicalization, partial-trace reduction and the bigram.

The clipped gauge (Nahum et al. 2017, Appendix A of Li, Chen, Fisher 2019)
is a choice of generators in which every qubit x carries exactly two
generator endpoints, rho_l(x) + rho_r(x) = 2. In that gauge the entropy of a
contiguous region only depends on where the generators start and stop.

State arguments are either a `Stabilizer` or a `MixedDestabilizer`; the
routines rewrite ``state.stabilizer_view()`` in place. On a
`MixedDestabilizer` every row operation is mirrored on the destabilizers so
the pairing between the two halves survives.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from errors import PreconditionViolation
from stabilizer_tableau import Stabilizer
from utils_algebra import gf2_rank, stabilizer_matrix_commutes

logger = logging.getLogger(__name__)


# === Helpers ===

def _validate_clip_input(tab: Stabilizer) -> None:
    """Reject inputs the clip sweep would silently mangle."""
    if len(tab) == 0:
        return
    identity_rows = np.flatnonzero(~tab.xzs.any(axis=1))
    if identity_rows.size:
        raise PreconditionViolation(
            f"rows {identity_rows.tolist()} act trivially on every qubit; "
            "the tableau is not full rank"
        )
    if np.any(tab.phases % 2):
        raise PreconditionViolation("generators must carry real (+1/-1) phases")
    if not stabilizer_matrix_commutes(tab.xzs):
        raise PreconditionViolation("generators do not commute")
    if gf2_rank(tab.xzs) != len(tab):
        raise PreconditionViolation("generators are linearly dependent")


def _pregauge(state, phases: bool) -> int:
    """Left-to-right sweep; returns the number of rows placed."""
    tab = state.stabilizer_view()
    rows, columns = len(tab), tab.nqubits
    i = 0
    for j in range(columns):
        if i >= rows:
            break
        codes = tab.column_codes(j, slice(i, rows))
        nonzero = np.flatnonzero(codes)
        if nonzero.size == 0:
            continue
        k1 = int(nonzero[0])
        a = codes[k1]
        later = nonzero[1:]
        differing = later[codes[later] != a]

        if differing.size:
            b = codes[int(differing[0])]
            state.rowswap(i + k1, i)
            state.rowswap(i + int(differing[0]), i + 1)
            m = np.arange(i + 2, rows)
            rest = tab.column_codes(j, slice(i + 2, rows))
            both = rest == (a ^ b)
            state.mul_left_rows(m[(rest == a) | both], i, phases=phases)
            state.mul_left_rows(m[(rest == b) | both], i + 1, phases=phases)
            i += 2
        else:
            state.rowswap(i + k1, i)
            m = np.arange(i + 1, rows)
            rest = tab.column_codes(j, slice(i + 1, rows))
            state.mul_left_rows(m[rest == a], i, phases=phases)
            i += 1
    return i


def _gauge(state, phases: bool) -> None:
    """Right-to-left sweep freezing at most two rows per column."""
    tab = state.stabilizer_view()
    rows, columns = len(tab), tab.nqubits
    # insertion ordered, O(1) removal; starts from the last row
    unfrozen = dict.fromkeys(range(rows - 1, -1, -1))
    for j in range(columns - 1, -1, -1):
        if not unfrozen:
            break
        order = np.fromiter(unfrozen, dtype=np.intp, count=len(unfrozen))
        codes = tab.column_codes(j, order)
        nonzero = np.flatnonzero(codes)
        if nonzero.size == 0:
            continue
        p1 = int(nonzero[0])
        k1 = int(order[p1])
        a = codes[p1]
        later = nonzero[1:]
        differing = later[codes[later] != a]

        if differing.size:
            p2 = int(differing[0])
            k2 = int(order[p2])
            b = codes[p2]
            between, between_codes = order[p1 + 1 : p2], codes[p1 + 1 : p2]
            state.mul_left_rows(between[between_codes == a], k1, phases=phases)
            after, after_codes = order[p2 + 1 :], codes[p2 + 1 :]
            both = after_codes == (a ^ b)
            state.mul_left_rows(after[(after_codes == a) | both], k1, phases=phases)
            state.mul_left_rows(after[(after_codes == b) | both], k2, phases=phases)
            del unfrozen[k1]
            del unfrozen[k2]
        else:
            after, after_codes = order[p1 + 1 :], codes[p1 + 1 :]
            state.mul_left_rows(after[after_codes == a], k1, phases=phases)
            del unfrozen[k1]


# === Public API ===

def canonicalize_clip(state, *, phases: bool = True, validate: bool = True):
    """Bring the stabilizer rows of ``state`` into the clipped gauge, in place.

    The generated group and the number of rows are unchanged; only the
    endpoint balance is guaranteed, the gauge itself is not unique.

    With ``phases=False`` the row merges skip all sign bookkeeping, which is
    valid whenever the caller does not need the phases.

    With ``validate=True`` identity rows, non-commuting rows, imaginary phases
    and dependent rows raise `PreconditionViolation` before anything is
    touched. With ``validate=False`` such inputs are processed as they are
    and a rank deficiency only surfaces later, in `bigram`.

    Returns ``state``.
    """
    tab = state.stabilizer_view()
    if validate:
        _validate_clip_input(tab)
    logger.debug(
        "canonicalize_clip: %d rows x %d qubits, phases=%s", len(tab), tab.nqubits, phases
    )
    placed = _pregauge(state, phases)
    logger.debug("canonicalize_clip: pregauge placed %d rows", placed)
    _gauge(state, phases)
    return state


def canonicalize_rref(
    state,
    qubits: Sequence[int],
    *,
    phases: bool = True,
):
    """Gaussian elimination that isolates the support on ``qubits``, in place.

    For every qubit, its X column and then its Z column are cleared from all
    rows but one pivot, which is moved to the bottom of the live window.
    Returns ``(state, rank)``: rows ``[0, rank)`` act trivially on ``qubits``
    and generate the stabilizer group of the state with ``qubits`` traced out.
    """
    tab = state.stabilizer_view()
    n = tab.nqubits
    cursor = len(tab)
    for q in qubits:
        for col in (int(q), n + int(q)):
            hits = np.flatnonzero(tab.xzs[:cursor, col])
            if hits.size == 0:
                continue
            cursor -= 1
            state.rowswap(int(hits[0]), cursor)
            others = np.flatnonzero(tab.xzs[:, col])
            state.mul_left_rows(others[others != cursor], cursor, phases=phases)
    logger.debug("canonicalize_rref: traced %d qubits, rank %d", len(qubits), cursor)
    return state, cursor


def bigram(state, *, clip: bool = True) -> np.ndarray:
    """Return the (left, right) endpoints of every stabilizer row as an (r, 2) array.

    The left endpoint is the first qubit a row acts on non-trivially, the right
    endpoint the last. If ``clip`` is True (default) the state is first brought
    into the clipped gauge in place; pass False when it already is.
    """
    if clip:
        canonicalize_clip(state)
    tab = state.stabilizer_view()
    support = (tab.x | tab.z).astype(bool)
    empty = np.flatnonzero(~support.any(axis=1))
    if empty.size:
        raise PreconditionViolation(
            "the tableau is inconsistent (check if it is clip-canonicalized and "
            f"Hermitian): rows {empty.tolist()} act trivially on every qubit"
        )
    left = np.argmax(support, axis=1)
    right = tab.nqubits - 1 - np.argmax(support[:, ::-1], axis=1)
    return np.stack([left, right], axis=1).astype(np.int64)


def endpoint_counts(bigram_matrix: np.ndarray, num_qubits: int) -> np.ndarray:
    """Return rho_l(x) + rho_r(x) for every qubit x."""
    bg = np.asarray(bigram_matrix, dtype=np.int64).reshape(-1, 2)
    left = np.bincount(bg[:, 0], minlength=num_qubits)
    right = np.bincount(bg[:, 1], minlength=num_qubits)
    return left + right


def is_clipped(state) -> bool:
    """Return True if every qubit carries exactly two endpoints."""
    tab = state.stabilizer_view()
    if not (tab.x | tab.z).any(axis=1).all():
        return False
    counts = endpoint_counts(bigram(state, clip=False), tab.nqubits)
    return bool(np.all(counts == 2))


__all__ = [
    "canonicalize_clip",
    "canonicalize_rref",
    "bigram",
    "endpoint_counts",
    "is_clipped",
]
