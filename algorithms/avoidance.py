"""
Deadlock Avoidance Algorithm (Banker's Algorithm) for the Simulator.

Implements the Banker's safety check and the request/release protocol
that keeps committed state safe. Requests are evaluated on a detached
snapshot and committed only when the resulting state is safe.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple

from models.system_state import SystemState, StateSnapshot
from models.verdict import DenialReason, RequestOutcome, SafetyVerdict


def is_safe_state(snapshot: StateSnapshot) -> Tuple[bool, List[str]]:
    """
    Check if a state is safe using Banker's Algorithm.

    Algorithm:
    1. Initialize Work = Available, Finish = [False] * num_processes
    2. Pass over unfinished processes in registration order; for each
       process i with Need[i] <= Work: Finish[i] = True,
       Work += Allocation[i], append PID to sequence
    3. Repeat full passes until a pass finishes no new process
    4. SAFE iff every process finished

    A process is not revisited from the start after a hit: the pass
    continues, so later processes see the units returned earlier in the
    same pass.

    Time Complexity: O(P²×R)

    Args:
        snapshot: State to evaluate (not modified)

    Returns:
        Tuple of (is_safe, safe_sequence); the sequence is empty when unsafe

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7.5: Deadlock Avoidance.
    """
    # Work = copy of Available (prevents modification of the snapshot)
    work = snapshot.available_vector.copy()
    need_matrix = snapshot.need_matrix
    allocation_matrix = snapshot.allocation_matrix
    finish = np.zeros(snapshot.num_processes, dtype=bool)
    safe_sequence = []

    made_progress = True
    while made_progress:
        made_progress = False

        for i, pid in enumerate(snapshot.process_ids):
            if finish[i]:
                continue

            # Need[i] <= Work for all resource types (vacuous with no resources)
            if np.all(need_matrix[i] <= work):
                work += allocation_matrix[i]
                finish[i] = True
                safe_sequence.append(pid)
                made_progress = True

    if np.all(finish):
        return True, safe_sequence
    return False, []


def evaluate_state(system_state: SystemState) -> SafetyVerdict:
    """
    Run the safety check on committed state and record the verdict.

    Args:
        system_state: Current system state

    Returns:
        The new SafetyVerdict (also stored as system_state.last_verdict)
    """
    safe, sequence = is_safe_state(system_state.snapshot())
    system_state.last_verdict = SafetyVerdict(safe=safe, sequence=sequence)
    return system_state.last_verdict


def _check_vector(
    system_state: SystemState,
    pid: str,
    amounts: Sequence[int]
) -> Tuple[Optional[List[int]], Optional[RequestOutcome]]:
    """
    Shared preconditions for request and release.

    The vector is returned as plain ints; callers bound it against the
    committed counts before it is turned into an array.

    Returns:
        (vector, None) when the process exists and the vector is well formed,
        otherwise (None, denial outcome)
    """
    if not system_state.has_process(pid):
        return None, RequestOutcome.deny(
            DenialReason.UNKNOWN_PROCESS,
            f"Process {pid!r} is not registered"
        )

    try:
        entries = list(amounts)
    except TypeError:
        return None, RequestOutcome.deny(
            DenialReason.MALFORMED_VECTOR,
            f"Amounts for {pid} must be a sequence of integers"
        )

    if len(entries) != system_state.num_resources:
        return None, RequestOutcome.deny(
            DenialReason.MALFORMED_VECTOR,
            f"Expected {system_state.num_resources} amounts, got {len(entries)}"
        )

    for resource, amount in zip(system_state.resources, entries):
        if isinstance(amount, bool) or not isinstance(amount, (int, np.integer)):
            return None, RequestOutcome.deny(
                DenialReason.MALFORMED_VECTOR,
                f"Amount for {resource.name} must be an integer (got {amount!r})"
            )
        if amount < 0:
            return None, RequestOutcome.deny(
                DenialReason.MALFORMED_VECTOR,
                f"Amount for {resource.name} cannot be negative (got {amount})"
            )

    return [int(amount) for amount in entries], None


def handle_request(
    system_state: SystemState,
    pid: str,
    amounts: Sequence[int]
) -> RequestOutcome:
    """
    Handle a resource request using Banker's Algorithm.

    Steps:
    1. Validate process and vector shape
    2. Check: request <= available (EXCEEDS_AVAILABLE otherwise)
    3. Check: allocation + request <= max claim (EXCEEDS_CLAIM otherwise)
    4. Apply the request to a snapshot of committed state
    5. Run safety algorithm on the snapshot
    6. If safe: commit the snapshot
       If unsafe: discard the snapshot, committed state is untouched

    Args:
        system_state: Current system state
        pid: Requesting process
        amounts: Units requested per resource type

    Returns:
        RequestOutcome with the safe sequence when granted
    """
    request, denial = _check_vector(system_state, pid, amounts)
    if denial is not None:
        return denial

    index = system_state.process_index(pid)
    available = system_state.available_vector.tolist()
    allocation = system_state.allocation_matrix[index].tolist()
    max_claim = system_state.max_claim_matrix[index].tolist()

    for j, resource in enumerate(system_state.resources):
        if request[j] > available[j]:
            return RequestOutcome.deny(
                DenialReason.EXCEEDS_AVAILABLE,
                f"Not enough {resource.name} available "
                f"(requested: {request[j]}, available: {available[j]})"
            )

    for j, resource in enumerate(system_state.resources):
        if allocation[j] + request[j] > max_claim[j]:
            return RequestOutcome.deny(
                DenialReason.EXCEEDS_CLAIM,
                f"Request exceeds maximum claim for {resource.name} "
                f"(holding: {allocation[j]}, requested: {request[j]}, max: {max_claim[j]})"
            )

    # Tentative allocation on a detached copy
    request = np.array(request, dtype=int)
    trial = system_state.snapshot()
    trial.allocation_matrix[index] += request
    trial.available_vector -= request

    safe, safe_seq = is_safe_state(trial)

    if not safe:
        return RequestOutcome.deny(
            DenialReason.WOULD_DEADLOCK,
            f"Request by {pid} denied - would leave the system in an unsafe state"
        )

    system_state.commit(trial, f"after granting {request.tolist()} to {pid}")
    system_state.last_verdict = SafetyVerdict(safe=True, sequence=safe_seq)

    seq_str = " -> ".join(safe_seq)
    return RequestOutcome(
        granted=True,
        sequence=safe_seq,
        message=f"GRANTED (Safe state maintained, sequence: {seq_str})"
    )


def handle_release(
    system_state: SystemState,
    pid: str,
    amounts: Sequence[int]
) -> RequestOutcome:
    """
    Handle a voluntary release of held units.

    Releasing cannot turn a safe state unsafe, so the release is applied
    directly. The safety check afterwards only refreshes the reported
    sequence and never vetoes the release.

    Args:
        system_state: Current system state
        pid: Releasing process
        amounts: Units released per resource type

    Returns:
        RequestOutcome with the refreshed safe sequence
    """
    release, denial = _check_vector(system_state, pid, amounts)
    if denial is not None:
        return denial

    index = system_state.process_index(pid)
    allocation = system_state.allocation_matrix[index].tolist()

    for j, resource in enumerate(system_state.resources):
        if release[j] > allocation[j]:
            return RequestOutcome.deny(
                DenialReason.EXCEEDS_ALLOCATION,
                f"Cannot release more than allocated for {resource.name} "
                f"(releasing: {release[j]}, holding: {allocation[j]})"
            )

    release = np.array(release, dtype=int)
    updated = system_state.snapshot()
    updated.allocation_matrix[index] -= release
    updated.available_vector += release
    system_state.commit(updated, f"after {pid} released {release.tolist()}")

    verdict = evaluate_state(system_state)
    if verdict.safe:
        message = "RELEASED (sequence: " + " -> ".join(verdict.sequence) + ")"
    else:
        message = "RELEASED (state still unsafe)"
    return RequestOutcome(granted=True, sequence=verdict.sequence, message=message)
