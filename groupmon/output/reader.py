"""Reader for group files written by GroupRecorder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from numpy import ndarray

from groupmon.core.group import Grid3D
from groupmon.output.header import (
    GROUP_FILE_SIGNATURE,
    HEADER_DTYPE,
    HEADER_LEN,
    RECORD_DTYPE,
    RECORD_LEN,
)


class GroupFileFormatError(ValueError):
    """Raised when a file does not follow the group file layout."""

    pass


@dataclass(frozen=True)
class GroupFile:
    """Decoded contents of a group file.

    Attributes:
        signature: File signature read from the header
        version: Format version read from the header
        grid: Group geometry
        timestamps: Shape (T,) - record times in ms (uint32)
        values: Shape (T,) - recorded values (float32)
    """

    signature: int
    version: float
    grid: Grid3D
    timestamps: ndarray
    values: ndarray

    def __len__(self) -> int:
        return int(self.timestamps.shape[0])


def read_group_file(path: Path) -> GroupFile:
    """Load and decode a group file.

    Args:
        path: Path to the group file

    Returns:
        Decoded GroupFile

    Raises:
        FileNotFoundError: If the file doesn't exist
        GroupFileFormatError: If the header or the record section is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Group file not found: {path}")

    data = path.read_bytes()
    if len(data) < HEADER_LEN:
        raise GroupFileFormatError(
            f"{path}: file is {len(data)} bytes, header needs {HEADER_LEN}"
        )

    header = np.frombuffer(data, dtype=HEADER_DTYPE, count=1)[0]
    if int(header["signature"]) != GROUP_FILE_SIGNATURE:
        raise GroupFileFormatError(
            f"{path}: unknown signature {int(header['signature'])}"
        )

    payload = data[HEADER_LEN:]
    if len(payload) % RECORD_LEN != 0:
        raise GroupFileFormatError(
            f"{path}: trailing partial record ({len(payload) % RECORD_LEN} bytes)"
        )
    records = np.frombuffer(payload, dtype=RECORD_DTYPE)

    return GroupFile(
        signature=int(header["signature"]),
        version=float(header["version"]),
        grid=Grid3D(int(header["grid_x"]), int(header["grid_y"]), int(header["grid_z"])),
        timestamps=records["time"].copy(),
        values=records["value"].copy(),
    )
