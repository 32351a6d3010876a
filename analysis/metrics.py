"""
Metrics Tracking for the Banker's Resource Allocation Simulator.

Tracks allocation outcomes and resource utilization across a run.
"""

from dataclasses import dataclass, field
from typing import List, Dict
import statistics

from models.verdict import DenialReason, RequestOutcome


@dataclass
class SimulationMetrics:
    """
    Accumulated metrics for a single simulation run.

    Tracks:
    1. Grants and denials, per process and per denial reason
    2. Releases
    3. Resource Utilization %: (allocated/total) × 100 per resource, sampled
       after every committed operation
    """
    operations: int = 0
    grants: int = 0
    denials: int = 0
    request_denials: int = 0
    releases: int = 0

    denial_reasons: Dict[DenialReason, int] = field(default_factory=dict)
    process_granted_counts: Dict[str, int] = field(default_factory=dict)
    process_denied_counts: Dict[str, int] = field(default_factory=dict)
    resource_utilization_samples: Dict[str, List[float]] = field(default_factory=dict)

    def record_request(self, process_id: str, outcome: RequestOutcome) -> None:
        """
        Record the outcome of a request.

        Args:
            process_id: Requesting process
            outcome: Verdict returned by the arbiter
        """
        self.operations += 1
        if outcome.granted:
            self.grants += 1
            self.process_granted_counts[process_id] = self.process_granted_counts.get(process_id, 0) + 1
        else:
            self.request_denials += 1
            self._record_denial(process_id, outcome.reason)

    def record_release(self, process_id: str, outcome: RequestOutcome) -> None:
        """Record the outcome of a release."""
        self.operations += 1
        if outcome.granted:
            self.releases += 1
        else:
            self._record_denial(process_id, outcome.reason)

    def _record_denial(self, process_id: str, reason: DenialReason) -> None:
        self.denials += 1
        self.process_denied_counts[process_id] = self.process_denied_counts.get(process_id, 0) + 1
        self.denial_reasons[reason] = self.denial_reasons.get(reason, 0) + 1

    def record_utilization(self, utilization: Dict[str, float]) -> None:
        """
        Record one utilization sample per resource.

        Args:
            utilization: Mapping resource name -> utilization percentage
        """
        for name, value in utilization.items():
            self.resource_utilization_samples.setdefault(name, []).append(value)

    def get_resource_utilization(self, name: str) -> float:
        """
        Calculate average utilization for a specific resource.

        Returns:
            Average utilization percentage, 0.0 with no samples
        """
        samples = self.resource_utilization_samples.get(name)
        if not samples:
            return 0.0
        return statistics.mean(samples)

    def get_peak_utilization(self, name: str) -> float:
        samples = self.resource_utilization_samples.get(name)
        return max(samples) if samples else 0.0

    def get_grant_rate(self) -> float:
        """Fraction of requests that were granted."""
        requests = self.grants + self.request_denials
        if requests == 0:
            return 0.0
        return self.grants / requests


def format_metrics_report(metrics: SimulationMetrics, scenario: str = None) -> str:
    """
    Format metrics for display at end of simulation.

    Args:
        metrics: SimulationMetrics instance with collected data
        scenario: Scenario file path

    Returns:
        Formatted metrics report string
    """
    lines = []
    lines.append("\n" + "="*60)
    lines.append("SIMULATION METRICS")
    lines.append("="*60)

    if scenario:
        lines.append(f"Scenario: {scenario}")
        lines.append("")

    lines.append(f"Operations: {metrics.operations}")
    lines.append(f"Granted Requests: {metrics.grants}")
    lines.append(f"Releases: {metrics.releases}")
    lines.append(f"Denials: {metrics.denials}")
    lines.append(f"Grant Rate: {metrics.get_grant_rate():.2%}")

    if metrics.denial_reasons:
        lines.append("")
        lines.append("DENIALS BY REASON:")
        lines.append("-" * 60)
        for reason in DenialReason:
            count = metrics.denial_reasons.get(reason, 0)
            if count:
                lines.append(f"  {reason.value:20} {count}")

    if metrics.resource_utilization_samples:
        lines.append("")
        lines.append("PER-RESOURCE UTILIZATION:")
        lines.append("-" * 60)
        for name in metrics.resource_utilization_samples:
            lines.append(
                f"  {name}: {metrics.get_resource_utilization(name):.2f}% average, "
                f"{metrics.get_peak_utilization(name):.2f}% peak"
            )

    pids = sorted(set(metrics.process_granted_counts) | set(metrics.process_denied_counts))
    if pids:
        lines.append("")
        lines.append("PER-PROCESS SUMMARY:")
        lines.append("-" * 60)
        for pid in pids:
            granted = metrics.process_granted_counts.get(pid, 0)
            denied = metrics.process_denied_counts.get(pid, 0)
            lines.append(f"  {pid}: grant={granted:2} deny={denied:2}")

    lines.append("="*60)
    return "\n".join(lines)
