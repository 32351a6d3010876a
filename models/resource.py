"""
Resource model for the Banker's Resource Allocation Simulator.

Represents a named resource type with a fixed pool of interchangeable units.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ResourceType:
    """
    Represents a resource type shared by all registered processes.

    Attributes:
        name: Resource name (unique within a system state)
        total_units: Total number of units in the pool, fixed at creation
        available_units: Units currently not held by any process

    Invariant:
        0 <= available_units <= total_units
    """
    name: str
    total_units: int
    available_units: Optional[int] = None

    def __post_init__(self):
        """Default available to total and validate resource state."""
        if self.available_units is None:
            self.available_units = self.total_units
        if self.total_units < 0:
            raise ValueError(f"Resource {self.name}: total_units cannot be negative")
        if self.available_units < 0:
            raise ValueError(f"Resource {self.name}: available_units cannot be negative")
        if self.available_units > self.total_units:
            raise ValueError(
                f"Resource {self.name}: available ({self.available_units}) "
                f"exceeds total ({self.total_units})"
            )

    @property
    def allocated_units(self) -> int:
        """Units currently held by processes."""
        return self.total_units - self.available_units

    def utilization(self) -> float:
        """
        Percentage of the pool currently held by processes.

        Returns:
            allocated / total * 100, or 0.0 for an empty pool
        """
        if self.total_units == 0:
            return 0.0
        return (self.allocated_units / self.total_units) * 100

    def __repr__(self) -> str:
        return (
            f"ResourceType(name={self.name!r}, total={self.total_units}, "
            f"available={self.available_units})"
        )
