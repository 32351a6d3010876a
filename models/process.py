"""
Process model for the Banker's Resource Allocation Simulator.

Represents a process with its declared maximum claim and current holdings.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Process:
    """
    Represents a process registered with the resource allocator.

    Attributes:
        pid: Process identifier (unique among registered processes)
        max_claim: Maximum units of each resource type the process may hold [R]
        allocation: Units of each resource type currently held [R]

    Invariant:
        0 <= allocation[r] <= max_claim[r] for every resource type r
    """
    pid: str
    max_claim: List[int]
    allocation: List[int] = field(default_factory=list)

    def __post_init__(self):
        """Start with an all-zero allocation row if none was given."""
        self.max_claim = list(self.max_claim)
        if not self.allocation:
            self.allocation = [0] * len(self.max_claim)
        if len(self.allocation) != len(self.max_claim):
            raise ValueError(
                f"{self.pid}: allocation length ({len(self.allocation)}) does not "
                f"match max_claim length ({len(self.max_claim)})"
            )

    @property
    def need(self) -> List[int]:
        """Remaining claim: max_claim - allocation."""
        return [m - a for m, a in zip(self.max_claim, self.allocation)]

    def extend_resources(self, count: int = 1) -> None:
        """
        Append zero entries for newly defined resource types.

        A process created before a resource type existed has no claim on it.

        Args:
            count: Number of resource types added
        """
        self.max_claim.extend([0] * count)
        self.allocation.extend([0] * count)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Process(pid={self.pid!r}, alloc={self.allocation}, "
            f"max={self.max_claim})"
        )
