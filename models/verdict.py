"""
Verdict types returned by the allocator to its callers.

Request and release never raise on a rejected operation: they return a
RequestOutcome whose reason tells the caller which check failed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DenialReason(Enum):
    """Why a request or release was refused."""
    UNKNOWN_PROCESS = "UNKNOWN_PROCESS"
    MALFORMED_VECTOR = "MALFORMED_VECTOR"
    EXCEEDS_AVAILABLE = "EXCEEDS_AVAILABLE"
    EXCEEDS_CLAIM = "EXCEEDS_CLAIM"
    EXCEEDS_ALLOCATION = "EXCEEDS_ALLOCATION"
    WOULD_DEADLOCK = "WOULD_DEADLOCK"


@dataclass(frozen=True)
class SafetyVerdict:
    """Result of the most recent safety check on committed state."""
    safe: bool = True
    sequence: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.safe:
            return "UNSAFE"
        if not self.sequence:
            return "SAFE"
        return "SAFE (sequence: " + " -> ".join(self.sequence) + ")"


@dataclass
class RequestOutcome:
    """
    Verdict for a request or release.

    Attributes:
        granted: True if the operation was committed
        sequence: Safe completion order after the operation (empty on denial)
        reason: Denial reason, None when granted
        message: Human-readable explanation
    """
    granted: bool
    sequence: List[str] = field(default_factory=list)
    reason: Optional[DenialReason] = None
    message: str = ""

    @classmethod
    def deny(cls, reason: DenialReason, message: str) -> "RequestOutcome":
        """Build a denial outcome."""
        return cls(granted=False, sequence=[], reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.granted


@dataclass(frozen=True)
class ResourceStatus:
    """Read-only view of one resource type."""
    name: str
    total: int
    available: int
    allocated: int
    utilization: float


@dataclass(frozen=True)
class ProcessStatus:
    """Read-only view of one process row."""
    pid: str
    max_claim: List[int]
    allocation: List[int]
    need: List[int]
