"""TUI Logger for headless runs.

Prints one line per recording session and a final summary per group.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TextIO


@dataclass
class TUILogger:
    """Terminal logger for session output.

    Attributes:
        stream: Output stream (defaults to sys.stdout)
        verbose: Whether to output session lines
    """

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    verbose: bool = True

    def log_session(
        self,
        time_ms: int,
        group_name: str,
        n_records: int,
        total_duration: int,
    ) -> None:
        """Log the end of a recording session.

        Format: [t=XXXXX] group: N records | total: T ms

        Args:
            time_ms: Simulation time at which the session ended
            group_name: Name of the recorded group
            n_records: Number of records held by the recorder
            total_duration: Recorder's total duration after the session
        """
        if not self.verbose:
            return

        # At least 5 digits, no truncation for larger times
        self.stream.write(
            f"[t={time_ms:05d}] {group_name}: {n_records} records | "
            f"total: {total_duration} ms\n"
        )

    def log_summary(self, group_name: str, mean_value: float, total_duration: int) -> None:
        """Log the final per-group summary; printed regardless of verbosity."""
        self.stream.write(
            f"{group_name}: recorded {total_duration} ms, mean activity {mean_value:.4f}\n"
        )
