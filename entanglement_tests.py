from __future__ import annotations

import numpy as np
import pytest

from entanglement import (
    EntropyAlgorithm,
    conditional_mutual_information,
    entanglement_entropy,
    entropy_profile,
    main,
    mutual_information,
    print_entropy_table,
)
from errors import ConfigurationError, InvalidSubsystem
from graph_state import from_graph, to_graph
from stabilizer_tableau import MixedDestabilizer, Stabilizer, ghz, random_stabilizer
from utils_algebra import symplectic_product

ALGORITHMS = ["clip", "graph", "rref"]


def _random_subsets(n: int, count: int, seed: int):
    rng = np.random.default_rng(seed)
    for _ in range(count):
        mask = rng.integers(0, 2, size=n).astype(bool)
        yield np.flatnonzero(mask).tolist()


# === Scenarios ===

def test_ghz3_clip_entropy_of_whole_chain() -> None:
    s = Stabilizer.parse("+ XXX\n+ ZZ_\n+ _ZZ")
    assert entanglement_entropy(s, range(0, 3), "clip") == 0
    assert entanglement_entropy(s, range(0, 1), EntropyAlgorithm.CLIP) == 1


def test_ghz4_graph_entropy() -> None:
    s = from_graph(to_graph(ghz(4)))
    assert entanglement_entropy(s, [0, 3], "graph") == 1
    assert mutual_information(s, [0, 1], [2, 3], "graph") == 2


def test_mixed_destabilizer_rref_entropy() -> None:
    md = MixedDestabilizer(Stabilizer.parse("-IX -YX -ZZ -ZI"), 2)
    assert entanglement_entropy(md, [0, 1], "rref") == 0
    assert entanglement_entropy(md, [0], "rref") == 0


def test_ghz3_mutual_information_of_adjacent_ranges() -> None:
    s = ghz(3)
    a, b = range(0, 1), range(1, 3)
    s_a = entanglement_entropy(s.copy(), a)
    s_b = entanglement_entropy(s.copy(), b)
    s_ab = entanglement_entropy(s.copy(), range(0, 3))
    assert (s_a, s_b, s_ab) == (1, 1, 0)
    for algorithm in ALGORITHMS:
        assert mutual_information(s.copy(), a, b, algorithm) == 2
    assert mutual_information(s, a, b) == mutual_information(s, a, b)


# === Cross-algorithm agreement ===

@pytest.mark.parametrize("seed", range(8))
def test_algorithms_agree_on_contiguous_ranges(seed: int) -> None:
    n = 3 + seed % 5
    state = random_stabilizer(n, seed=seed)
    for start in range(n):
        for stop in range(start + 1, n + 1):
            region = range(start, stop)
            s_clip = entanglement_entropy(state.copy(), region, "clip")
            s_graph = entanglement_entropy(state, region, "graph")
            s_rref = entanglement_entropy(state, region, "rref")
            s_rref_pure = entanglement_entropy(state, region, "rref", pure=True)
            assert s_clip == s_graph == s_rref == s_rref_pure


@pytest.mark.parametrize("seed", range(4))
def test_clip_and_rref_agree_on_mixed_states(seed: int) -> None:
    pure = random_stabilizer(6, seed=40 + seed)
    rows = [r for r in range(6) if r != seed]
    mixed = Stabilizer(pure.xzs[rows], pure.phases[rows])
    for start in range(6):
        for stop in range(start + 1, 7):
            region = range(start, stop)
            assert entanglement_entropy(mixed.copy(), region, "clip") == entanglement_entropy(
                mixed, region, "rref"
            )


def test_graph_and_rref_agree_on_arbitrary_subsets() -> None:
    state = random_stabilizer(7, seed=77)
    for subset in _random_subsets(7, 20, seed=1):
        assert entanglement_entropy(state, subset, "graph") == entanglement_entropy(
            state, subset, "rref", pure=True
        )


def test_rref_leaves_the_input_alone() -> None:
    state = random_stabilizer(5, seed=2)
    before = state.copy()
    entanglement_entropy(state, [0, 3], "rref")
    entanglement_entropy(state, [0, 3], "graph")
    assert state == before


# === Bounds and non-negativity ===

@pytest.mark.parametrize("algorithm", ["graph", "rref"])
def test_entropy_bounds(algorithm: str) -> None:
    for seed in range(5):
        state = random_stabilizer(6, seed=seed)
        for subset in _random_subsets(6, 10, seed=seed):
            s = entanglement_entropy(state, subset, algorithm)
            assert 0 <= s <= min(len(subset), 6 - len(subset))


@pytest.mark.parametrize("algorithm", ["graph", "rref"])
def test_mutual_information_is_non_negative(algorithm: str) -> None:
    for seed in range(5):
        state = random_stabilizer(6, seed=seed)
        subsets = list(_random_subsets(6, 8, seed=seed + 10))
        for a, b in zip(subsets, subsets[1:]):
            assert mutual_information(state, a, b, algorithm) >= 0


def test_clip_mutual_information_is_non_negative() -> None:
    state = random_stabilizer(6, seed=12)
    for cut in range(1, 6):
        assert mutual_information(state, range(0, cut), range(cut, 6)) >= 0


def test_conditional_mutual_information() -> None:
    state = ghz(5)
    assert conditional_mutual_information(state, [0], [1, 2], [3, 4]) == 1
    assert conditional_mutual_information(state, [0], [1, 2], [3, 4], "rref") == 1
    assert conditional_mutual_information(
        state, range(0, 1), range(1, 3), range(3, 5), "clip"
    ) == 1


def test_entropy_profile() -> None:
    assert entropy_profile(ghz(4)).tolist() == [0, 1, 1, 1, 0]
    state = random_stabilizer(6, seed=4)
    profiles = [entropy_profile(state.copy(), algorithm) for algorithm in ALGORITHMS]
    assert profiles[0].tolist() == profiles[1].tolist() == profiles[2].tolist()


# === Errors ===

def test_clip_rejects_union_with_gap_before_computing() -> None:
    state = ghz(4)
    with pytest.raises(InvalidSubsystem):
        mutual_information(state, range(0, 1), range(2, 4))
    assert state == ghz(4)


def test_clip_rejects_non_contiguous_subsystem() -> None:
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(4), [0, 2], "clip")
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(4), range(0, 4, 2), "clip")
    assert entanglement_entropy(ghz(4), [1, 2], "clip") == 1


def test_out_of_range_subsystems() -> None:
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(3), range(2, 4), "clip")
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(3), [3], "graph")
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(3), [-1], "rref")


def test_unknown_algorithm() -> None:
    with pytest.raises(ConfigurationError):
        entanglement_entropy(ghz(3), [0], "svd")
    with pytest.raises(ConfigurationError):
        mutual_information(ghz(3), [0], [1], "svd")


def test_boolean_mask_subsystem() -> None:
    mask = np.array([True, False, False, True])
    assert entanglement_entropy(ghz(4), mask, "graph") == 1
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(4), mask[:3], "graph")


# === Reporting ===

def test_main_prints_consistent_profiles(capsys) -> None:
    entries = main(n=4, seed=1)
    out = capsys.readouterr().out
    assert "ghz clip" in out
    assert "I(A:B)" in out
    by_state = {}
    for label, profile in entries:
        by_state.setdefault(label.rsplit(" ", 1)[0], []).append(profile.tolist())
    for profiles in by_state.values():
        assert len(profiles) == 3
        assert profiles[0] == profiles[1] == profiles[2]
    assert by_state["ghz"][0] == [0, 1, 1, 1, 0]


def test_clip_and_graph_agree_on_contiguous_masks() -> None:
    assert entanglement_entropy(ghz(2), np.array([False, True]), "clip") == 1
    assert entanglement_entropy(ghz(2), np.array([False, True]), "graph") == 1
    state = random_stabilizer(6, seed=31)
    for start in range(6):
        for stop in range(start + 1, 7):
            mask = np.zeros(6, dtype=bool)
            mask[start:stop] = True
            assert entanglement_entropy(state.copy(), mask, "clip") == entanglement_entropy(
                state, mask, "graph"
            )


def test_clip_mask_errors() -> None:
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(4), np.array([True, False, True, False]), "clip")
    with pytest.raises(InvalidSubsystem):
        entanglement_entropy(ghz(4), np.array([True, True]), "clip")
    assert entanglement_entropy(ghz(4), np.zeros(4, dtype=bool), "clip") == 0
    mask_a = np.array([True, False, False, False])
    mask_b = np.array([False, True, True, True])
    assert mutual_information(ghz(4), mask_a, mask_b) == 2


def test_clip_entropy_keeps_destabilizer_pairing() -> None:
    md = MixedDestabilizer(Stabilizer.parse("-IX -YX -ZZ -ZI"), 2)
    assert entanglement_entropy(md, [0], "clip") == 0
    n = md.nqubits
    pairing = symplectic_product(md.tab.xzs, md.tab.xzs)
    assert np.array_equal(pairing[:n, n:], np.eye(n, dtype=np.uint8))
    assert not pairing[:n, :n].any()
    assert not pairing[n:, n:].any()


def test_print_entropy_table_without_entries(capsys) -> None:
    print_entropy_table([])
    assert capsys.readouterr().out.strip() == "state"
