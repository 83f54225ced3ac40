"""Group file protocol.

Single source of truth for the on-disk layout of group files. The recorder
and read_group_file must stay synchronized with this module.

Layout (little-endian):
    header: signature int32 | version float32 | grid x, y, z int32 = 20 bytes
    records: (time uint32 ms, value float32) = 8 bytes each, in recorded order
"""

from __future__ import annotations

import numpy as np

GROUP_FILE_SIGNATURE = 206661989
GROUP_FILE_VERSION = np.float32(0.2)

HEADER_DTYPE = np.dtype(
    [
        ("signature", "<i4"),
        ("version", "<f4"),
        ("grid_x", "<i4"),
        ("grid_y", "<i4"),
        ("grid_z", "<i4"),
    ]
)
HEADER_LEN = HEADER_DTYPE.itemsize  # 20

RECORD_DTYPE = np.dtype([("time", "<u4"), ("value", "<f4")])
RECORD_LEN = RECORD_DTYPE.itemsize  # 8

# Largest time a record can hold
MAX_RECORD_TIME = int(np.iinfo(np.uint32).max)


def encode_header(grid_x: int, grid_y: int, grid_z: int) -> bytes:
    """Pack the fixed file header for a group with the given geometry."""
    header = np.array(
        [(GROUP_FILE_SIGNATURE, GROUP_FILE_VERSION, grid_x, grid_y, grid_z)],
        dtype=HEADER_DTYPE,
    )
    return header.tobytes()


def encode_records(timestamps, values) -> bytes:
    """Pack (time, value) pairs into consecutive 8-byte records.

    Args:
        timestamps: Sequence of integer times in ms, 0 to MAX_RECORD_TIME
        values: Sequence of floats, same length as timestamps

    Returns:
        Packed records in input order

    Raises:
        ValueError: If a timestamp does not fit in a uint32
    """
    times = np.asarray(timestamps, dtype=np.int64)
    if times.size and (times.min() < 0 or times.max() > MAX_RECORD_TIME):
        raise ValueError(f"record timestamps must be in [0, {MAX_RECORD_TIME}]")
    records = np.empty(times.shape[0], dtype=RECORD_DTYPE)
    records["time"] = times
    records["value"] = np.asarray(values, dtype=np.float32)
    return records.tobytes()
