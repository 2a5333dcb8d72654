"""Conversion between pure stabilizer states and graph states.

Every pure stabilizer state is local-Clifford equivalent to a graph state
(Van den Nest, Dehaene, De Moor 2004). Entanglement across any bipartition
is invariant under local Cliffords, so the graph carries all of it.
"""

from __future__ import annotations

import logging

import networkx as nx
import numpy as np

from errors import PreconditionViolation
from stabilizer_tableau import Stabilizer
from utils_algebra import gf2_rref, to_uint8_matrix

logger = logging.getLogger(__name__)


def graph_adjacency(graph: nx.Graph) -> np.ndarray:
    """Return the symmetric uint8 adjacency matrix with nodes in sorted order."""
    nodelist = sorted(graph.nodes)
    if not nodelist:
        return np.zeros((0, 0), dtype=np.uint8)
    adj = to_uint8_matrix(nx.to_scipy_sparse_array(graph, nodelist=nodelist))
    np.fill_diagonal(adj, 0)
    return adj


def from_graph(graph: nx.Graph) -> Stabilizer:
    """Return the graph state stabilizers X_v Z_{N(v)}, one row per node."""
    n = graph.number_of_nodes()
    adj = graph_adjacency(graph)
    return Stabilizer(np.hstack([np.eye(n, dtype=np.uint8), adj]), num_qubits=n)


def to_graph(state) -> nx.Graph:
    """Return a graph whose graph state is local-Clifford equivalent to ``state``.

    The X block is row reduced, every non-pivot qubit gets a Hadamard (its X
    and Z columns swap), which makes the X block invertible. Reducing again
    leaves [I | A] with A the adjacency matrix; diagonal entries correspond to
    local phase gates and are dropped.
    """
    stab = state.stabilizer_view()
    n = stab.nqubits
    if len(stab) != n:
        raise PreconditionViolation(
            f"graph form needs a pure state with {n} generators, got {len(stab)}"
        )

    reduced, x_pivots = gf2_rref(stab.xzs, pivot_cols=n)
    hadamard = np.setdiff1d(np.arange(n), np.asarray(x_pivots, dtype=np.int64))
    logger.debug("to_graph: %d X pivots, Hadamard on qubits %s", len(x_pivots), hadamard.tolist())

    swapped = reduced.copy()
    swapped[:, hadamard] = reduced[:, n + hadamard]
    swapped[:, n + hadamard] = reduced[:, hadamard]

    final, pivots = gf2_rref(swapped, pivot_cols=n)
    if len(pivots) != n:
        raise PreconditionViolation("tableau is rank deficient, cannot convert to a graph state")

    adjacency = final[:, n:].copy()
    np.fill_diagonal(adjacency, 0)
    if not np.array_equal(adjacency, adjacency.T):
        raise PreconditionViolation("generators do not commute, adjacency is not symmetric")

    graph = nx.Graph()
    graph.add_nodes_from(range(n))
    rows, cols = np.nonzero(np.triu(adjacency, 1))
    graph.add_edges_from(zip(rows.tolist(), cols.tolist()))
    return graph


__all__ = ["graph_adjacency", "from_graph", "to_graph"]
