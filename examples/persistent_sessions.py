#!/usr/bin/env python3
"""Persistent sessions example - record one group in three separate windows."""

import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from groupmon.core.engine import SimulationEngine, noise_activity_source
from groupmon.output.reader import read_group_file


def main():
    """Record three sessions, then read the group file back."""
    output_dir = Path(tempfile.mkdtemp(prefix="groupmon-"))
    group_file_path = output_dir / "excitatory.grp"

    with SimulationEngine(logger_mode="user") as engine:
        group_id = engine.create_group("excitatory", (10, 10, 1))
        engine.set_activity_source(group_id, noise_activity_source(0.5, 0.1, seed=42))
        recorder = engine.set_group_monitor(group_id, path=group_file_path, persistent=True)

        for pause_ms, length_ms in [(100, 50), (400, 100), (1200, 25)]:
            engine.run(n_msec=pause_ms)
            recorder.begin_session()
            engine.run(n_msec=length_ms)
            recorder.end_session()
            print(
                f"t={engine.get_sim_time_ms()} ms: "
                f"{len(recorder)} records, total={recorder.total_duration} ms"
            )

        print(recorder.summary())

    group_file = read_group_file(group_file_path)
    print(
        f"\n{group_file_path}: grid={tuple(group_file.grid)}, "
        f"{len(group_file)} records, "
        f"mean activity={group_file.values.mean():.4f}"
    )


if __name__ == "__main__":
    main()
