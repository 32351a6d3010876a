"""
System State model for the Banker's Resource Allocation Simulator.

Owns the resource and process registries and exposes the matrices and
vectors required by the Banker's safety check. All mutation of committed
state goes through this class.
"""

import numpy as np
from typing import List, Dict, Optional, Sequence
from dataclasses import dataclass, field

from models.process import Process
from models.resource import ResourceType
from models.verdict import SafetyVerdict, ResourceStatus, ProcessStatus


# Largest pool size the integer matrices can hold
MAX_UNITS = int(np.iinfo(int).max)


class InvalidInput(ValueError):
    """Raised when a resource or process definition is rejected."""
    pass


@dataclass
class StateSnapshot:
    """
    Detached copy of the allocation state used for trial evaluation.

    Arrays are owned by the snapshot; mutating them never touches the
    committed state they were taken from.

    Attributes:
        process_ids: Process identifiers in registration order [P]
        available_vector: [R] Free units by resource type
        allocation_matrix: [P][R] Units held by each process
        max_claim_matrix: [P][R] Declared maximum claim of each process
    """
    process_ids: List[str]
    available_vector: np.ndarray
    allocation_matrix: np.ndarray
    max_claim_matrix: np.ndarray

    @property
    def need_matrix(self) -> np.ndarray:
        """Need = Max - Allocation, computed on demand."""
        return self.max_claim_matrix - self.allocation_matrix

    @property
    def num_processes(self) -> int:
        return len(self.process_ids)

    @property
    def num_resources(self) -> int:
        return len(self.available_vector)

    def copy(self) -> "StateSnapshot":
        """Return an independent copy of this snapshot."""
        return StateSnapshot(
            process_ids=list(self.process_ids),
            available_vector=self.available_vector.copy(),
            allocation_matrix=self.allocation_matrix.copy(),
            max_claim_matrix=self.max_claim_matrix.copy(),
        )


@dataclass
class SystemState:
    """
    Authoritative resource allocation state.

    Maintains the registries and derives the matrices used by the
    Banker's Algorithm.

    Attributes:
        processes: Registered processes in registration order
        resources: Defined resource types in definition order
        last_verdict: Result of the most recent safety check
        allocation_matrix: [P][R] Current units held by each process
        max_claim_matrix: [P][R] Maximum units declared by each process
        need_matrix: [P][R] Computed as Max - Allocation
        available_vector: [R] Free units by resource type
    """
    processes: List[Process] = field(default_factory=list)
    resources: List[ResourceType] = field(default_factory=list)
    last_verdict: SafetyVerdict = field(default_factory=SafetyVerdict)

    # Derived matrices (None until first access after a mutation)
    _allocation_matrix: Optional[np.ndarray] = None
    _max_claim_matrix: Optional[np.ndarray] = None
    _available_vector: Optional[np.ndarray] = None
    _need_matrix: Optional[np.ndarray] = None

    @property
    def num_processes(self) -> int:
        """Number of registered processes."""
        return len(self.processes)

    @property
    def num_resources(self) -> int:
        """Number of defined resource types."""
        return len(self.resources)

    @property
    def process_ids(self) -> List[str]:
        """Process identifiers in registration order."""
        return [p.pid for p in self.processes]

    @property
    def allocation_matrix(self) -> np.ndarray:
        """Get allocation matrix [P][R]."""
        if self._allocation_matrix is None:
            self._allocation_matrix = self._build_matrix(lambda p: p.allocation)
        return self._allocation_matrix

    @property
    def max_claim_matrix(self) -> np.ndarray:
        """Get max claim matrix [P][R]."""
        if self._max_claim_matrix is None:
            self._max_claim_matrix = self._build_matrix(lambda p: p.max_claim)
        return self._max_claim_matrix

    @property
    def available_vector(self) -> np.ndarray:
        """Get available units vector [R]."""
        if self._available_vector is None:
            self._available_vector = np.array(
                [r.available_units for r in self.resources], dtype=int
            )
        return self._available_vector

    @property
    def total_vector(self) -> np.ndarray:
        """Get total units vector [R]."""
        return np.array([r.total_units for r in self.resources], dtype=int)

    @property
    def need_matrix(self) -> np.ndarray:
        """
        Get need matrix [P][R].
        Computed as: Need = Max - Allocation
        """
        if self._need_matrix is None:
            self._need_matrix = self.max_claim_matrix - self.allocation_matrix
        return self._need_matrix

    def _build_matrix(self, row_of) -> np.ndarray:
        matrix = np.zeros((self.num_processes, self.num_resources), dtype=int)
        for i, process in enumerate(self.processes):
            for j in range(self.num_resources):
                matrix[i][j] = row_of(process)[j]
        return matrix

    def refresh_matrices(self) -> None:
        """Drop cached matrices so they are rebuilt from the registries."""
        self._allocation_matrix = None
        self._max_claim_matrix = None
        self._available_vector = None
        self._need_matrix = None

    # ------------------------------------------------------------------
    # Registry lookups
    # ------------------------------------------------------------------

    def has_process(self, pid: str) -> bool:
        return any(p.pid == pid for p in self.processes)

    def process_index(self, pid: str) -> int:
        """
        Registration index of a process.

        Raises:
            KeyError: If no process with this id is registered
        """
        for i, process in enumerate(self.processes):
            if process.pid == pid:
                return i
        raise KeyError(pid)

    def get_resource(self, name: str) -> Optional[ResourceType]:
        return next((r for r in self.resources if r.name == name), None)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def define_resource(self, name: str, total_units: int) -> ResourceType:
        """
        Define a new resource type with all units available.

        Every existing process gets a zero claim and zero allocation for
        the new type.

        Args:
            name: Resource name, non-empty and unique
            total_units: Size of the pool, must be positive

        Returns:
            The created ResourceType

        Raises:
            InvalidInput: If the name is empty or taken, or total_units is
                not in [1, MAX_UNITS]
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput("Resource name must be a non-empty string")
        if self.get_resource(name) is not None:
            raise InvalidInput(f"Resource {name!r} is already defined")
        if isinstance(total_units, bool) or not isinstance(total_units, (int, np.integer)):
            raise InvalidInput(f"Resource {name!r}: total units must be an integer")
        if total_units <= 0:
            raise InvalidInput(
                f"Resource {name!r}: total units must be positive (got {total_units})"
            )
        if total_units > MAX_UNITS:
            raise InvalidInput(
                f"Resource {name!r}: total units cannot exceed {MAX_UNITS} (got {total_units})"
            )

        resource = ResourceType(name=name, total_units=int(total_units))
        self.resources.append(resource)
        for process in self.processes:
            process.extend_resources(1)

        self.refresh_matrices()
        return resource

    def register_process(self, pid: str, max_claim: Sequence[int]) -> Process:
        """
        Register a process with its maximum claim and an all-zero allocation.

        Args:
            pid: Process identifier, non-empty and unique
            max_claim: One entry per defined resource type

        Returns:
            The created Process

        Raises:
            InvalidInput: If the id is empty or taken, the claim has the wrong
                length, or any entry is negative or exceeds the resource total
        """
        if not isinstance(pid, str) or not pid.strip():
            raise InvalidInput("Process id must be a non-empty string")
        if self.has_process(pid):
            raise InvalidInput(f"Process {pid!r} is already registered")

        claim = list(max_claim)
        if len(claim) != self.num_resources:
            raise InvalidInput(
                f"Process {pid!r}: max claim length ({len(claim)}) does not match "
                f"resource count ({self.num_resources})"
            )
        for resource, amount in zip(self.resources, claim):
            if isinstance(amount, bool) or not isinstance(amount, (int, np.integer)):
                raise InvalidInput(
                    f"Process {pid!r}: max claim for {resource.name} must be an integer"
                )
            if amount < 0:
                raise InvalidInput(
                    f"Process {pid!r}: max claim for {resource.name} cannot be negative"
                )
            if amount > resource.total_units:
                raise InvalidInput(
                    f"Process {pid!r}: max claim for {resource.name} ({amount}) "
                    f"exceeds total units ({resource.total_units})"
                )

        process = Process(pid=pid, max_claim=[int(a) for a in claim])
        self.processes.append(process)
        self.refresh_matrices()
        return process

    def reset(self) -> None:
        """Clear all resources, processes and matrices."""
        self.processes = []
        self.resources = []
        self.last_verdict = SafetyVerdict()
        self.refresh_matrices()

    def snapshot(self) -> StateSnapshot:
        """
        Create a detached copy of the current allocation state.

        Returns:
            StateSnapshot whose arrays share no memory with this state
        """
        return StateSnapshot(
            process_ids=self.process_ids,
            available_vector=self.available_vector.copy(),
            allocation_matrix=self.allocation_matrix.copy(),
            max_claim_matrix=self.max_claim_matrix.copy(),
        )

    def commit(self, snapshot: StateSnapshot, context: str = "") -> None:
        """
        Make a trial snapshot the committed state.

        Only allocation and available counts are taken from the snapshot;
        registries and claims are unchanged.

        Args:
            snapshot: Trial state produced from snapshot() of this state
            context: Description used in conservation failure messages

        Raises:
            ValueError: If the snapshot does not match the current registries
        """
        if snapshot.process_ids != self.process_ids:
            raise ValueError("Snapshot process list does not match committed state")
        if snapshot.allocation_matrix.shape != (self.num_processes, self.num_resources):
            raise ValueError("Snapshot shape does not match committed state")

        for i, process in enumerate(self.processes):
            process.allocation = [int(x) for x in snapshot.allocation_matrix[i]]
        for j, resource in enumerate(self.resources):
            resource.available_units = int(snapshot.available_vector[j])

        self.refresh_matrices()
        self.assert_resource_conservation(context)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def utilization(self) -> Dict[str, float]:
        """
        Per-resource utilization percentage.

        Returns:
            Mapping resource name -> allocated / total * 100 (0.0 if total is 0)
        """
        return {r.name: r.utilization() for r in self.resources}

    def resource_table(self) -> List[ResourceStatus]:
        """Current resources with totals, availability and utilization."""
        return [
            ResourceStatus(
                name=r.name,
                total=r.total_units,
                available=r.available_units,
                allocated=r.allocated_units,
                utilization=r.utilization(),
            )
            for r in self.resources
        ]

    def process_table(self) -> List[ProcessStatus]:
        """Current processes with claim, allocation and need rows."""
        return [
            ProcessStatus(
                pid=p.pid,
                max_claim=list(p.max_claim),
                allocation=list(p.allocation),
                need=p.need,
            )
            for p in self.processes
        ]

    def display(self) -> str:
        """
        Generate readable string representation of system state.

        Returns:
            Formatted string showing all matrices and vectors
        """
        names = [r.name for r in self.resources]
        width = max([len(n) for n in names] + [3])
        pid_width = max([len(p.pid) for p in self.processes] + [3])

        def header() -> str:
            return " " * (pid_width + 4) + " ".join(f"{n:>{width}}" for n in names)

        def rows(matrix: np.ndarray) -> List[str]:
            return [
                f"  {p.pid:<{pid_width}}: " + " ".join(f"{int(v):>{width}}" for v in matrix[i])
                for i, p in enumerate(self.processes)
            ]

        output = []
        output.append("\n" + "="*60)
        output.append("SYSTEM STATE")
        output.append("="*60)

        output.append("\nResources:")
        if not self.resources:
            output.append("  (none defined)")
        for r in self.resources:
            output.append(
                f"  {r.name:<{width}}  total={r.total_units:3}  "
                f"available={r.available_units:3}  utilization={r.utilization():6.2f}%"
            )

        if self.processes:
            output.append("\nAllocation Matrix:")
            output.append(header())
            output.extend(rows(self.allocation_matrix))

            output.append("\nMax Claim Matrix:")
            output.append(header())
            output.extend(rows(self.max_claim_matrix))

            output.append("\nNeed Matrix (Max - Allocation):")
            output.append(header())
            output.extend(rows(self.need_matrix))
        else:
            output.append("\nProcesses:\n  (none registered)")

        output.append(f"\nSafety: {self.last_verdict}")
        output.append("\n" + "="*60)
        return "\n".join(output)

    def assert_resource_conservation(self, context=""):
        """Verify resource conservation: allocated + available = total for all resources.

        Also checks that no process holds more than its declared claim.

        Args:
            context: Description of when this check is being run (for error messages)

        Raises:
            AssertionError: If resource conservation is violated
        """
        allocation_matrix = self.allocation_matrix
        total_instances = self.total_vector

        for r_idx, resource in enumerate(self.resources):
            allocated = allocation_matrix[:, r_idx].sum()
            available = self.available_vector[r_idx]
            total = total_instances[r_idx]

            assert allocated + available == total, (
                f"Resource conservation violated for {resource.name} {context}\n"
                f"  Allocated: {allocated}, Available: {available}, Total: {total}\n"
                f"  Allocated + Available = {allocated + available} != {total}"
            )

            assert available >= 0, (
                f"Negative available units for {resource.name} {context}\n"
                f"  Available: {available}"
            )

        assert np.all(allocation_matrix <= self.max_claim_matrix), (
            f"Allocation exceeds max claim {context}"
        )
