#!/usr/bin/env python3
"""
Banker's Resource Allocation Simulator
Main entry point for the simulation system.

BankerSimulator wraps one SystemState behind a single lock so callers on
different threads see each operation as atomic. The command line replays
a JSON scenario file against it.
"""

import argparse
import sys
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from models.system_state import SystemState, InvalidInput
from models.verdict import RequestOutcome, SafetyVerdict, ResourceStatus, ProcessStatus
from algorithms.avoidance import handle_request, handle_release, evaluate_state
from analysis.events import EventLog, SimulationEvent, EventType
from analysis.metrics import SimulationMetrics, format_metrics_report
from utils.logger import SimulatorLogger
from utils.scenario_loader import load_scenario, Scenario, ScenarioLoadError


class BankerSimulator:
    """
    Single authority over one resource allocation state.

    Every mutating call and every read accessor holds the same lock.
    """

    def __init__(
        self,
        verbose: bool = False,
        log_file: Optional[str] = None,
        timestamps: bool = False,
        logger: Optional[SimulatorLogger] = None
    ):
        self._lock = threading.Lock()
        self.state = SystemState()
        self.logger = logger or SimulatorLogger(
            verbose=verbose, log_file=log_file, timestamps=timestamps
        )
        self.event_log = EventLog()
        self.metrics = SimulationMetrics()

    def define_resource(self, name: str, total_units: int) -> None:
        """
        Define a resource type.

        Raises:
            InvalidInput: If the definition is rejected (state unchanged)
        """
        with self._lock:
            try:
                resource = self.state.define_resource(name, total_units)
            except InvalidInput as e:
                self._record_invalid(str(e))
                raise
            verdict = evaluate_state(self.state)
            self.logger.log_definition(resource.name, resource.total_units)
            self.logger.log_verdict(verdict)
            self.event_log.add(SimulationEvent(
                event_type=EventType.RESOURCE_DEFINED,
                amounts=[resource.total_units],
                message=f"Added resource {resource.name} with {resource.total_units} units"
            ))

    def register_process(self, pid: str, max_claim: Sequence[int]) -> None:
        """
        Register a process with its maximum claim.

        Raises:
            InvalidInput: If the registration is rejected (state unchanged)
        """
        with self._lock:
            try:
                process = self.state.register_process(pid, max_claim)
            except InvalidInput as e:
                self._record_invalid(str(e))
                raise
            verdict = evaluate_state(self.state)
            self.logger.log_registration(process.pid, process.max_claim)
            self.logger.log_verdict(verdict)
            self.event_log.add(SimulationEvent(
                event_type=EventType.PROCESS_REGISTERED,
                process_id=process.pid,
                amounts=list(process.max_claim),
                message=f"Added process {process.pid}"
            ))

    def request(self, pid: str, amounts: Sequence[int]) -> RequestOutcome:
        """Request units for a process; see algorithms.avoidance.handle_request."""
        with self._lock:
            outcome = handle_request(self.state, pid, amounts)
            self.metrics.record_request(pid, outcome)
            self._after_operation(pid, amounts, outcome, EventType.ALLOCATION)
            self.logger.log_request(pid, _as_list(amounts), outcome.granted, outcome.message)
            return outcome

    def release(self, pid: str, amounts: Sequence[int]) -> RequestOutcome:
        """Release units held by a process; see algorithms.avoidance.handle_release."""
        with self._lock:
            outcome = handle_release(self.state, pid, amounts)
            self.metrics.record_release(pid, outcome)
            self._after_operation(pid, amounts, outcome, EventType.RELEASE)
            self.logger.log_release(pid, _as_list(amounts), outcome.granted, outcome.message)
            return outcome

    def reset(self) -> None:
        """Destroy all resources, processes and matrices and start fresh metrics."""
        with self._lock:
            self.state.reset()
            self.metrics = SimulationMetrics()
            self.event_log.add(SimulationEvent(event_type=EventType.RESET))
            self.logger.log("System reset to initial state")

    def _after_operation(
        self,
        pid: str,
        amounts: Sequence[int],
        outcome: RequestOutcome,
        success_type: EventType
    ) -> None:
        if outcome.granted:
            self.metrics.record_utilization(self.state.utilization())
            event_type = success_type
        else:
            event_type = EventType.DENIAL
        self.event_log.add(SimulationEvent(
            event_type=event_type,
            process_id=str(pid),
            amounts=_as_list(amounts),
            reason=outcome.reason,
            message=outcome.message
        ))

    def _record_invalid(self, message: str) -> None:
        self.logger.log(message, "warning")
        self.event_log.add(SimulationEvent(event_type=EventType.INVALID, message=message))

    # Read accessors

    def resources(self) -> List[ResourceStatus]:
        with self._lock:
            return self.state.resource_table()

    def processes(self) -> List[ProcessStatus]:
        with self._lock:
            return self.state.process_table()

    def safety_verdict(self) -> SafetyVerdict:
        with self._lock:
            return self.state.last_verdict

    def utilization(self) -> Dict[str, float]:
        with self._lock:
            return self.state.utilization()

    def display(self) -> str:
        with self._lock:
            return self.state.display()

    def close(self) -> None:
        self.logger.close()


def _as_list(amounts) -> List:
    try:
        return list(amounts)
    except TypeError:
        return [amounts]


def run_scenario(
    scenario: Scenario,
    simulator: BankerSimulator,
    show_state: bool = False
) -> List[Tuple[int, str]]:
    """
    Replay a scenario against a simulator.

    Initial resources are defined first, then initial processes, then the
    actions in order. Rejected definitions are logged and replay continues.

    Args:
        scenario: Parsed scenario
        simulator: Simulator to drive
        show_state: Log the full state after every action

    Returns:
        List of (action index, description) for every failed expectation
    """
    logger = simulator.logger
    failures = []

    for res in scenario.resources:
        _define(simulator, res['name'], res['total_units'])
    for proc in scenario.processes:
        _register(simulator, proc['pid'], proc['max_claim'])

    for index, action in enumerate(scenario.actions):
        action_type = action['type']

        if action_type in ('request', 'release'):
            operation = simulator.request if action_type == 'request' else simulator.release
            outcome = operation(action['pid'], action['amounts'])
            expected = action.get('expect')
            if expected is not None:
                actual = 'granted' if outcome.granted else outcome.reason.name
                if actual != expected:
                    message = (
                        f"{action_type} {action['pid']} {action['amounts']}: "
                        f"expected {expected}, got {actual}"
                    )
                    logger.log(f"Expectation failed at action {index}: {message}", "error")
                    failures.append((index, message))
        elif action_type == 'define_resource':
            _define(simulator, action['name'], action['total_units'])
        elif action_type == 'register_process':
            _register(simulator, action['pid'], action['max_claim'])
        elif action_type == 'reset':
            simulator.reset()

        if show_state:
            logger.log_system_state(simulator.display())

    return failures


def _define(simulator: BankerSimulator, name: str, total_units: int) -> None:
    try:
        simulator.define_resource(name, total_units)
    except InvalidInput:
        pass  # already logged by the simulator


def _register(simulator: BankerSimulator, pid: str, max_claim: List[int]) -> None:
    try:
        simulator.register_process(pid, max_claim)
    except InvalidInput:
        pass  # already logged by the simulator


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm Resource Allocation Simulator"
    )
    parser.add_argument(
        '--scenario',
        type=str,
        required=True,
        help='Path to scenario JSON file'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write the log to this file'
    )
    parser.add_argument(
        '--timestamps',
        action='store_true',
        help='Prefix log lines with the wall-clock time'
    )
    parser.add_argument(
        '--show-state',
        action='store_true',
        help='Print the full system state after every action'
    )
    parser.add_argument(
        '--metrics',
        action='store_true',
        help='Print the metrics report at the end of the run'
    )

    args = parser.parse_args(argv)

    simulator = BankerSimulator(
        verbose=args.verbose,
        log_file=args.log_file,
        timestamps=args.timestamps
    )
    logger = simulator.logger

    try:
        scenario = load_scenario(args.scenario)
    except ScenarioLoadError as e:
        logger.log(f"Failed to load scenario: {e}", "error")
        simulator.close()
        return 1

    logger.log(f"\n{'='*60}")
    logger.log("SIMULATION START")
    logger.log(f"Scenario: {args.scenario}")
    if scenario.description:
        logger.log(scenario.description)
    logger.log(f"{'='*60}\n")

    failures = run_scenario(scenario, simulator, show_state=args.show_state)

    logger.log(simulator.display())
    if args.metrics:
        logger.log(format_metrics_report(simulator.metrics, args.scenario))

    if failures:
        logger.log(f"{len(failures)} expectation(s) failed", "error")
    simulator.close()
    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
