"""Stabilizer tableaux stored as binary [X | Z] matrices with Z_4 phases.

Row convention: a row with bits (x, z) and phase p is the operator
i**p * P_1 ⊗ ... ⊗ P_n where (1, 0) = X, (0, 1) = Z and (1, 1) = Y.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from errors import ConfigurationError
from utils_algebra import gf2_rank, to_uint8_matrix


_PAULI_BITS = {"_": (0, 0), "I": (0, 0), "X": (1, 0), "Z": (0, 1), "Y": (1, 1)}
# indexed by the entry code x + 2z
_CODE_CHARS = "_XZY"
_PHASE_PREFIXES = {"": 0, "+": 0, "i": 1, "+i": 1, "-": 2, "-i": 3}
_PHASE_LABELS = ("+ ", "+i", "- ", "-i")


def pauli_product_phase(x1, z1, x2, z2):
    """Return the power of i picked up by P1 * P2, summed over qubits mod 4.

    Inputs broadcast against each other; the last axis runs over qubits.
    """
    x1 = np.asarray(x1, dtype=np.int64)
    z1 = np.asarray(z1, dtype=np.int64)
    x2 = np.asarray(x2, dtype=np.int64)
    z2 = np.asarray(z2, dtype=np.int64)

    g = np.zeros(np.broadcast(x1, z1, x2, z2).shape, dtype=np.int64)
    g = np.where((x1 == 1) & (z1 == 1), z2 - x2, g)
    g = np.where((x1 == 1) & (z1 == 0), z2 * (2 * x2 - 1), g)
    g = np.where((x1 == 0) & (z1 == 1), x2 * (1 - 2 * z2), g)
    return np.sum(g, axis=-1) % 4


class Stabilizer:
    """Ordered list of Pauli rows over n qubits."""

    def __init__(
        self,
        xz: object,
        phases: Optional[Sequence[int]] = None,
        *,
        num_qubits: Optional[int] = None,
    ) -> None:
        mat = to_uint8_matrix(xz)
        if mat.ndim != 2:
            raise ConfigurationError("xz must be a 2D [X | Z] matrix")
        if mat.shape[1] == 0:
            if num_qubits is None:
                raise ConfigurationError("num_qubits must be provided when xz has no columns")
            mat = np.zeros((mat.shape[0], 2 * int(num_qubits)), dtype=np.uint8)
        elif mat.shape[1] % 2 != 0:
            raise ConfigurationError(f"xz must have 2n columns, got {mat.shape[1]}")
        elif num_qubits is not None and int(num_qubits) != mat.shape[1] // 2:
            raise ConfigurationError(
                f"num_qubits={num_qubits} does not match xz with {mat.shape[1]} columns"
            )

        if phases is None:
            phase_arr = np.zeros(mat.shape[0], dtype=np.uint8)
        else:
            phase_arr = (np.asarray(phases, dtype=np.int64) % 4).astype(np.uint8)
            if phase_arr.shape != (mat.shape[0],):
                raise ConfigurationError(
                    f"phases has shape {phase_arr.shape}, expected {(mat.shape[0],)}"
                )

        self.xzs = mat
        self.phases = phase_arr
        self._n = mat.shape[1] // 2

    @classmethod
    def _from_views(cls, xzs: np.ndarray, phases: np.ndarray, n: int) -> "Stabilizer":
        # shares memory with the caller's arrays
        obj = cls.__new__(cls)
        obj.xzs = xzs
        obj.phases = phases
        obj._n = n
        return obj

    @classmethod
    def from_strings(
        cls,
        rows: Iterable[str],
        *,
        num_qubits: Optional[int] = None,
    ) -> "Stabilizer":
        """Build a tableau from rows such as ``"+XX_"``, ``"-IZ"`` or ``"iXY"``."""
        bits: List[List[int]] = []
        phases: List[int] = []
        width: Optional[int] = None
        for raw in rows:
            text = "".join(raw.split())
            body = text.lstrip("+-i")
            prefix = text[: len(text) - len(body)]
            if prefix not in _PHASE_PREFIXES:
                raise ConfigurationError(f"Unrecognized phase prefix {prefix!r} in {raw!r}")
            try:
                pairs = [_PAULI_BITS[ch] for ch in body]
            except KeyError as exc:
                raise ConfigurationError(f"Unrecognized Pauli {exc.args[0]!r} in {raw!r}") from None
            if width is None:
                width = len(pairs)
            elif len(pairs) != width:
                raise ConfigurationError("All rows must act on the same number of qubits")
            bits.append([p[0] for p in pairs] + [p[1] for p in pairs])
            phases.append(_PHASE_PREFIXES[prefix])

        if not bits:
            mat = np.zeros((0, 2 * int(num_qubits or 0)), dtype=np.uint8)
            return cls(mat, num_qubits=num_qubits)
        return cls(np.array(bits, dtype=np.uint8), phases, num_qubits=num_qubits)

    @classmethod
    def parse(cls, text: str) -> "Stabilizer":
        """Parse whitespace separated rows; a bare sign token binds to the next row."""
        rows: List[str] = []
        pending = ""
        for token in text.split():
            if token in _PHASE_PREFIXES:
                pending += token
                continue
            rows.append(pending + token)
            pending = ""
        if pending:
            raise ConfigurationError(f"Dangling phase {pending!r} at end of input")
        return cls.from_strings(rows)

    # --- read access ---
    @property
    def nqubits(self) -> int:
        return self._n

    def __len__(self) -> int:
        return self.xzs.shape[0]

    @property
    def x(self) -> np.ndarray:
        return self.xzs[:, : self._n]

    @property
    def z(self) -> np.ndarray:
        return self.xzs[:, self._n :]

    def stabilizer_view(self) -> "Stabilizer":
        return self

    def copy(self) -> "Stabilizer":
        return Stabilizer(self.xzs.copy(), self.phases.copy(), num_qubits=self._n)

    def rank(self) -> int:
        return gf2_rank(self.xzs)

    def column_codes(self, col: int, rows: Union[None, slice, np.ndarray] = None) -> np.ndarray:
        """Return per-row entry codes x + 2z (0=I, 1=X, 2=Z, 3=Y) for one qubit."""
        idx = slice(None) if rows is None else rows
        return self.xzs[idx, col] + 2 * self.xzs[idx, self._n + col]

    # --- row operations ---
    def rowswap(self, i: int, j: int) -> None:
        if i == j:
            return
        self.xzs[[i, j]] = self.xzs[[j, i]]
        self.phases[[i, j]] = self.phases[[j, i]]

    def mul_left_rows(self, targets: Sequence[int], source: int, *, phases: bool = True) -> None:
        """Replace every target row by row[source] * row[target]."""
        targets = np.asarray(targets, dtype=np.intp)
        if targets.size == 0:
            return
        src = self.xzs[source].copy()
        if phases:
            n = self._n
            tgt = self.xzs[targets]
            shift = pauli_product_phase(src[:n], src[n:], tgt[:, :n], tgt[:, n:])
            total = self.phases[targets].astype(np.int64) + int(self.phases[source]) + shift
            self.phases[targets] = (total % 4).astype(np.uint8)
        self.xzs[targets] ^= src

    def mul_left(self, target: int, source: int, *, phases: bool = True) -> None:
        self.mul_left_rows([target], source, phases=phases)

    # --- presentation ---
    def row_string(self, row: int) -> str:
        codes = self.column_codes(np.arange(self._n), row)
        return _PHASE_LABELS[int(self.phases[row])] + "".join(_CODE_CHARS[c] for c in codes)

    def __str__(self) -> str:
        return "\n".join(self.row_string(r) for r in range(len(self)))

    def __repr__(self) -> str:
        return f"Stabilizer(n={self._n}, rows={len(self)})\n{self}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Stabilizer):
            return NotImplemented
        return (
            self._n == other._n
            and np.array_equal(self.xzs, other.xzs)
            and np.array_equal(self.phases, other.phases)
        )

    __hash__ = None


class MixedDestabilizer:
    """A 2n-row tableau holding destabilizers, logicals and `rank` stabilizers.

    Row layout: destabilizers [0, rank), logical X [rank, n),
    stabilizers [n, n + rank), logical Z [n + rank, 2n).
    """

    def __init__(self, tableau: Stabilizer, rank: int) -> None:
        n = tableau.nqubits
        if len(tableau) != 2 * n:
            raise ConfigurationError(
                f"MixedDestabilizer needs 2n={2 * n} rows, got {len(tableau)}"
            )
        if not 0 <= int(rank) <= n:
            raise ConfigurationError(f"rank must lie in [0, {n}], got {rank}")
        self.tab = tableau.copy()
        self.rank = int(rank)

    @property
    def nqubits(self) -> int:
        return self.tab.nqubits

    def stabilizer_view(self) -> Stabilizer:
        n, r = self.nqubits, self.rank
        return Stabilizer._from_views(self.tab.xzs[n : n + r], self.tab.phases[n : n + r], n)

    def destabilizer_view(self) -> Stabilizer:
        n, r = self.nqubits, self.rank
        return Stabilizer._from_views(self.tab.xzs[:r], self.tab.phases[:r], n)

    # --- row operations, indexed by stabilizer row ---
    def rowswap(self, i: int, j: int) -> None:
        """Swap stabilizers i and j along with their destabilizers."""
        self.stabilizer_view().rowswap(i, j)
        self.destabilizer_view().rowswap(i, j)

    def mul_left_rows(self, targets: Sequence[int], source: int, *, phases: bool = True) -> None:
        """Stabilizer t becomes s[source] * s[t] for every target t.

        The destabilizer of ``source`` absorbs each d[t] in turn, which keeps
        d[i] anticommuting with s[i] only.
        """
        targets = np.asarray(targets, dtype=np.intp)
        if targets.size == 0:
            return
        self.stabilizer_view().mul_left_rows(targets, source, phases=phases)
        destabilizers = self.destabilizer_view()
        for t in targets.tolist():
            destabilizers.mul_left(source, t, phases=phases)

    def mul_left(self, target: int, source: int, *, phases: bool = True) -> None:
        self.mul_left_rows([target], source, phases=phases)

    def __str__(self) -> str:
        return f"Destabilizers\n{self.destabilizer_view()}\nStabilizers\n{self.stabilizer_view()}"

    def __repr__(self) -> str:
        return f"MixedDestabilizer(n={self.nqubits}, rank={self.rank})\n{self}"


def ghz(n: int) -> Stabilizer:
    """Return the n-qubit GHZ state: X...X, ZZ_..., _ZZ_..., ..."""
    if int(n) < 1:
        raise ConfigurationError("n must be positive")
    n = int(n)
    x = np.zeros((n, n), dtype=np.uint8)
    z = np.zeros((n, n), dtype=np.uint8)
    x[0, :] = 1
    for k in range(1, n):
        z[k, k - 1] = 1
        z[k, k] = 1
    return Stabilizer(np.hstack([x, z]))


def random_stabilizer(n: int, *, seed: Optional[int] = None) -> Stabilizer:
    """Return a random full-rank pure stabilizer state on n qubits.

    Starts from a random graph state, applies random local Hadamard and phase
    twists to the columns, then scrambles the generating set.
    """
    if int(n) < 1:
        raise ConfigurationError("n must be positive")
    n = int(n)
    rng = np.random.default_rng(seed)

    upper = np.triu(rng.integers(0, 2, size=(n, n), dtype=np.uint8), 1)
    x = np.eye(n, dtype=np.uint8)
    z = upper | upper.T

    flip = rng.integers(0, 2, size=n).astype(bool)
    x[:, flip], z[:, flip] = z[:, flip], x[:, flip]
    twist = rng.integers(0, 2, size=n).astype(bool)
    z[:, twist] ^= x[:, twist]

    state = Stabilizer(np.hstack([x, z]), 2 * rng.integers(0, 2, size=n))
    if n > 1:
        for _ in range(2 * n):
            target, source = rng.choice(n, size=2, replace=False)
            state.mul_left(int(target), int(source))
    perm = rng.permutation(n)
    state.xzs = state.xzs[perm]
    state.phases = state.phases[perm]
    return state


__all__ = [
    "pauli_product_phase",
    "Stabilizer",
    "MixedDestabilizer",
    "ghz",
    "random_stabilizer",
]
