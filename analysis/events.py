"""
Event Model for the Banker's Resource Allocation Simulator.

Defines event types for tracking allocator operations. The log is a
record for display only; the allocator never reads it back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from models.verdict import DenialReason


class EventType(Enum):
    """Types of events recorded by the simulator."""
    RESOURCE_DEFINED = "resource_defined"
    PROCESS_REGISTERED = "process_registered"
    ALLOCATION = "allocation"
    DENIAL = "denial"
    RELEASE = "release"
    RESET = "reset"
    INVALID = "invalid"


@dataclass
class SimulationEvent:
    """
    Represents a single operation in the simulation.

    Attributes:
        seq: Position in the log (assigned by EventLog.add)
        event_type: Type of event
        process_id: Process involved, empty for system-wide events
        amounts: Resource vector involved (if applicable)
        reason: Denial reason (if applicable)
        message: Human-readable description
        timestamp: Wall-clock time the event was recorded
    """
    event_type: EventType
    process_id: str = ""
    amounts: Optional[List[int]] = None
    reason: Optional[DenialReason] = None
    message: str = ""
    seq: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"[{self.timestamp.strftime('%H:%M:%S')}] #{self.seq}"

        if self.event_type == EventType.ALLOCATION:
            return f"{base} {self.process_id} requests {self.amounts} - GRANTED ({self.message})"
        elif self.event_type == EventType.DENIAL:
            reason = self.reason.value if self.reason else "?"
            return f"{base} {self.process_id} {self.amounts} - DENIED {reason} ({self.message})"
        elif self.event_type == EventType.RELEASE:
            return f"{base} {self.process_id} releases {self.amounts}"
        elif self.event_type == EventType.RESET:
            return f"{base} System reset to initial state"
        else:
            return f"{base} {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of simulation events."""
    events: List[SimulationEvent] = field(default_factory=list)

    def add(self, event: SimulationEvent) -> SimulationEvent:
        """Add an event to the log, numbering it."""
        event.seq = len(self.events) + 1
        self.events.append(event)
        return event

    def get_events_by_type(self, event_type: EventType) -> List[SimulationEvent]:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_process(self, process_id: str) -> List[SimulationEvent]:
        """Get all events involving a specific process."""
        return [e for e in self.events if e.process_id == process_id]

    def __len__(self) -> int:
        return len(self.events)

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
