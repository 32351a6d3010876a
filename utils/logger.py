"""
Logger utility for the Banker's Resource Allocation Simulator.

Provides operation-by-operation logging with verbosity levels.
"""

from typing import List, Optional
from datetime import datetime


class SimulatorLogger:
    """
    Logger for allocator operations and decisions.

    Format: "P1 requests [0, 2] - GRANTED/DENIED (reason)"
    """

    def __init__(
        self,
        verbose: bool = False,
        log_file: Optional[str] = None,
        timestamps: bool = False,
        echo: bool = True
    ):
        """
        Initialize logger.

        Args:
            verbose: Enable verbose output
            log_file: Optional file path for logging
            timestamps: Prefix each line with the wall-clock time
            echo: Print messages to the console
        """
        self.verbose = verbose
        self.log_file = log_file
        self.timestamps = timestamps
        self.echo = echo
        self.file_handle = None

        if self.log_file:
            self.file_handle = open(self.log_file, 'w', encoding='utf-8')
            self._write_header()

    def _write_header(self) -> None:
        """Write log file header."""
        if self.file_handle:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            self.file_handle.write(f"Simulation Log - {timestamp}\n")
            self.file_handle.write("="*60 + "\n\n")

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        if level == "debug" and not self.verbose:
            return

        formatted = self._format_message(message, level)

        if self.echo:
            print(formatted)

        if self.file_handle:
            self.file_handle.write(formatted + "\n")
            self.file_handle.flush()

    def _format_message(self, message: str, level: str) -> str:
        """Format message with level prefix."""
        if level == "error":
            message = f"[ERROR] {message}"
        elif level == "warning":
            message = f"[WARNING] {message}"
        elif level == "debug":
            message = f"[DEBUG] {message}"

        if self.timestamps:
            return f"[{datetime.now().strftime('%H:%M:%S')}] {message}"
        return message

    def log_definition(self, name: str, total_units: int) -> None:
        """Log a newly defined resource type."""
        self.log(f"Added resource \"{name}\" with {total_units} units")

    def log_registration(self, pid: str, max_claim: List[int]) -> None:
        """Log a newly registered process."""
        claim = ", ".join(str(x) for x in max_claim)
        self.log(f"Added process {pid} with maximum claim: [{claim}]")

    def log_request(
        self,
        pid: str,
        amounts: List[int],
        granted: bool,
        reason: str
    ) -> None:
        """
        Log a resource request.

        Args:
            pid: Process ID
            amounts: Units requested per resource type
            granted: Whether request was granted
            reason: Reason for decision
        """
        status = "GRANTED" if granted else "DENIED"
        message = f"{pid} requests {list(amounts)} - {status} ({reason})"
        self.log(message, "info" if granted else "warning")

    def log_release(
        self,
        pid: str,
        amounts: List[int],
        released: bool,
        reason: str
    ) -> None:
        """
        Log a resource release.

        Args:
            pid: Process ID
            amounts: Units released per resource type
            released: Whether the release was applied
            reason: Reason for decision
        """
        if released:
            self.log(f"{pid} releases {list(amounts)} - {reason}")
        else:
            self.log(f"{pid} cannot release {list(amounts)} - {reason}", "warning")

    def log_verdict(self, verdict) -> None:
        """Log the current safety verdict."""
        self.log(f"  Safety: {verdict}", "debug")

    def log_system_state(self, state_str: str) -> None:
        """
        Log system state snapshot.

        Args:
            state_str: Formatted system state
        """
        self.log(f"System State:\n{state_str}")

    def close(self) -> None:
        """Close log file if open."""
        if self.file_handle:
            self.file_handle.close()
            self.file_handle = None

    def __del__(self):
        """Cleanup on destruction."""
        self.close()
