"""
Request/Release Tests

Validates the request and release protocol: precondition checks, trial
evaluation, commit-or-discard, and the conservation and claim invariants.
"""

import sys
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.system_state import SystemState
from models.verdict import DenialReason
from algorithms.avoidance import handle_request, handle_release, is_safe_state, evaluate_state


def _state_with(resources, processes):
    state = SystemState()
    for name, total in resources:
        state.define_resource(name, total)
    for pid, claim in processes:
        state.register_process(pid, claim)
    evaluate_state(state)
    return state


def _frozen(state):
    """Capture everything a denial must leave untouched."""
    return (
        state.available_vector.copy(),
        state.allocation_matrix.copy(),
        state.max_claim_matrix.copy(),
        state.last_verdict,
    )


def _assert_unchanged(state, before):
    available, allocation, max_claim, verdict = before
    assert np.array_equal(state.available_vector, available), "Available vector changed"
    assert np.array_equal(state.allocation_matrix, allocation), "Allocation matrix changed"
    assert np.array_equal(state.max_claim_matrix, max_claim), "Max claim matrix changed"
    assert state.last_verdict == verdict, "Verdict changed"


def _classic_unsafe_state():
    """R total 10; P1 holds 5 of 10, P2 holds 2 of 4; available 3."""
    state = _state_with([("R", 10)], [("P1", [10]), ("P2", [4])])
    assert handle_request(state, "P1", [5]).granted
    assert handle_request(state, "P2", [2]).granted
    assert state.available_vector.tolist() == [3]
    return state


def test_two_resource_requests_granted():
    """Both requests are safe and the sequence covers both processes."""
    state = _state_with([("R1", 10), ("R2", 5)], [("P1", [7, 5]), ("P2", [3, 2])])

    first = handle_request(state, "P1", [0, 2])
    assert first.granted, first.message
    second = handle_request(state, "P2", [2, 0])
    assert second.granted, second.message

    print(second.message)
    assert sorted(second.sequence) == ["P1", "P2"]
    assert state.last_verdict.safe
    assert state.last_verdict.sequence == second.sequence
    assert state.available_vector.tolist() == [8, 3]
    assert state.allocation_matrix.tolist() == [[0, 2], [2, 0]]


def test_classic_unsafe_request_denied():
    """Granting P1 two more units would leave no process able to finish."""
    state = _classic_unsafe_state()
    before = _frozen(state)

    outcome = handle_request(state, "P1", [2])

    assert not outcome.granted
    assert outcome.reason == DenialReason.WOULD_DEADLOCK
    assert outcome.sequence == []
    _assert_unchanged(state, before)
    assert state.processes[0].allocation == [5]


def test_release_more_than_held_is_rejected():
    """Releasing more than allocated fails without mutation."""
    state = _state_with([("R1", 4), ("R2", 4)], [("P", [3, 3])])
    assert handle_request(state, "P", [2, 1]).granted
    before = _frozen(state)

    outcome = handle_release(state, "P", [1, 2])

    assert not outcome.granted
    assert outcome.reason == DenialReason.EXCEEDS_ALLOCATION
    assert "R2" in outcome.message
    _assert_unchanged(state, before)


def test_late_resource_definition_keeps_verdict():
    """A resource defined after processes exist extends their rows with zeros."""
    state = _state_with([("R1", 10), ("R2", 5)], [("P1", [7, 5]), ("P2", [3, 2])])
    assert handle_request(state, "P1", [0, 2]).granted
    assert handle_request(state, "P2", [2, 0]).granted
    verdict_before = state.last_verdict

    state.define_resource("R3", 4)

    assert state.max_claim_matrix[:, 2].tolist() == [0, 0]
    assert state.allocation_matrix[:, 2].tolist() == [0, 0]
    assert evaluate_state(state) == verdict_before

    # The old processes can neither request nor release the new type
    outcome = handle_request(state, "P1", [0, 0, 1])
    assert outcome.reason == DenialReason.EXCEEDS_CLAIM

    state.register_process("P3", [0, 0, 4])
    assert handle_request(state, "P3", [0, 0, 4]).granted


def test_unknown_process():
    """Requests and releases for unregistered ids are rejected."""
    state = SystemState()
    assert handle_request(state, "ghost", []).reason == DenialReason.UNKNOWN_PROCESS
    assert handle_release(state, "ghost", []).reason == DenialReason.UNKNOWN_PROCESS

    state = _state_with([("R", 3)], [("P1", [2])])
    assert handle_request(state, "P2", [1]).reason == DenialReason.UNKNOWN_PROCESS


def test_malformed_vectors():
    """Wrong arity, negative or non-integer entries are malformed."""
    state = _state_with([("R1", 3), ("R2", 3)], [("P1", [2, 2])])
    before = _frozen(state)

    for amounts in ([1], [1, 1, 1], [-1, 0], [0, 1.5], [0, "1"], [True, 0], None):
        for handler in (handle_request, handle_release):
            outcome = handler(state, "P1", amounts)
            assert outcome.reason == DenialReason.MALFORMED_VECTOR, f"{handler.__name__} {amounts}"

    _assert_unchanged(state, before)


def test_amounts_beyond_matrix_range():
    """Huge amounts are well formed and fail the bound checks, not the conversion."""
    state = _state_with([("R1", 10), ("R2", 3)], [("P1", [10, 3])])
    assert handle_request(state, "P1", [2, 0]).granted
    before = _frozen(state)

    outcome = handle_request(state, "P1", [10**30, 0])
    assert outcome.reason == DenialReason.EXCEEDS_AVAILABLE
    assert "R1" in outcome.message

    outcome = handle_release(state, "P1", [0, 2**64])
    assert outcome.reason == DenialReason.EXCEEDS_ALLOCATION
    assert "R2" in outcome.message

    _assert_unchanged(state, before)


def test_whitespace_ids_resolve_as_registered():
    """An id registered with surrounding spaces is looked up with them."""
    state = _state_with([("R", 4)], [(" P1 ", [2])])

    outcome = handle_request(state, " P1 ", [1])
    assert outcome.granted, outcome.message
    assert outcome.sequence == [" P1 "]
    assert handle_request(state, "P1", [1]).reason == DenialReason.UNKNOWN_PROCESS
    assert handle_release(state, " P1 ", [1]).granted


def test_request_checks_available_before_claim():
    """A request over both limits reports EXCEEDS_AVAILABLE first."""
    state = _state_with([("R", 5)], [("P1", [3]), ("P2", [5])])
    assert handle_request(state, "P2", [4]).granted

    outcome = handle_request(state, "P1", [4])
    assert outcome.reason == DenialReason.EXCEEDS_AVAILABLE
    assert "R" in outcome.message


def test_request_exceeds_claim():
    """Allocation plus request may not exceed the declared maximum."""
    state = _state_with([("R", 10)], [("P1", [3])])
    assert handle_request(state, "P1", [2]).granted
    before = _frozen(state)

    outcome = handle_request(state, "P1", [2])
    assert outcome.reason == DenialReason.EXCEEDS_CLAIM
    _assert_unchanged(state, before)


def test_zero_request_is_granted():
    """An all-zero request changes nothing and reports the sequence."""
    state = _state_with([("R", 2)], [("P1", [2])])
    outcome = handle_request(state, "P1", [0])
    assert outcome.granted
    assert outcome.sequence == ["P1"]


def test_numpy_vectors_accepted():
    """Vectors may be numpy arrays as well as lists or tuples."""
    state = _state_with([("R1", 4), ("R2", 4)], [("P1", [2, 2])])
    assert handle_request(state, "P1", np.array([1, 1])).granted
    assert handle_release(state, "P1", (1, 0)).granted
    assert state.allocation_matrix.tolist() == [[0, 1]]


def test_release_refreshes_sequence():
    """A release is applied directly and reports a fresh safe sequence."""
    state = _classic_unsafe_state()
    outcome = handle_release(state, "P1", [5])

    assert outcome.granted
    assert outcome.reason is None
    assert state.available_vector.tolist() == [8]
    assert state.allocation_matrix.tolist() == [[0], [2]]
    # P1 still needs 10 > 8, so P2 finishes first
    assert outcome.sequence == ["P2", "P1"]
    assert state.last_verdict.sequence == ["P2", "P1"]

    # The request that was unsafe before now fits
    assert handle_request(state, "P1", [2]).granted


def test_every_release_keeps_state_safe():
    """Releasing any valid amount from a safe state leaves it safe."""
    state = _state_with(
        [("A", 6), ("B", 4)],
        [("P1", [4, 2]), ("P2", [3, 3]), ("P3", [2, 2])],
    )
    for pid, amounts in [("P1", [2, 1]), ("P2", [1, 2]), ("P3", [1, 0])]:
        assert handle_request(state, pid, amounts).granted

    for index, process in enumerate(state.processes):
        for a in range(process.allocation[0] + 1):
            for b in range(process.allocation[1] + 1):
                trial = state.snapshot()
                trial.allocation_matrix[index] -= np.array([a, b])
                trial.available_vector += np.array([a, b])
                safe, _ = is_safe_state(trial)
                assert safe, f"Releasing {[a, b]} from {process.pid} made the state unsafe"


def test_random_operations_preserve_invariants():
    """Conservation and claim bounds hold across a long random run."""
    rng = np.random.default_rng(323)
    totals = [7, 5, 3]
    state = _state_with(
        [("A", totals[0]), ("B", totals[1]), ("C", totals[2])],
        [("P1", [5, 2, 2]), ("P2", [3, 3, 1]), ("P3", [4, 1, 3]), ("P4", [2, 5, 0])],
    )

    granted = denied = 0
    for _ in range(500):
        pid = f"P{rng.integers(1, 5)}"
        amounts = [int(x) for x in rng.integers(0, 3, size=3)]
        before = _frozen(state)

        if rng.random() < 0.6:
            outcome = handle_request(state, pid, amounts)
        else:
            outcome = handle_release(state, pid, amounts)

        if outcome.granted:
            granted += 1
            assert state.last_verdict.safe
        else:
            denied += 1
            _assert_unchanged(state, before)

        allocation = state.allocation_matrix
        assert (state.available_vector + allocation.sum(axis=0)).tolist() == totals
        assert np.all(allocation <= state.max_claim_matrix)
        assert np.all(allocation >= 0)
        assert np.all(state.available_vector >= 0)

    print(f"granted={granted} denied={denied}")
    assert granted > 0 and denied > 0
