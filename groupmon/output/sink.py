"""Owned binary output sink for group files."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from groupmon.errors.fatal import SinkWriteError


class GroupFileSink:
    """Binary sink that a recorder owns once it is attached.

    The sink writes into an already-open binary handle. Closing is idempotent;
    every failed or short write raises SinkWriteError since a partially
    written group file cannot be resynchronized by readers.
    """

    def __init__(self, handle: BinaryIO, name: str | None = None) -> None:
        self._handle = handle
        self.name = name if name is not None else str(getattr(handle, "name", "<stream>"))
        self.bytes_written = 0

    @classmethod
    def open(cls, path: Path) -> "GroupFileSink":
        """Create (or truncate) the file at path and wrap it.

        Raises:
            OSError: If the file cannot be opened for writing
        """
        path = Path(path)
        return cls(open(path, "wb"), name=str(path))

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def write(self, data: bytes, origin: str = "GroupFileSink.write") -> None:
        """Write all of data or fail.

        Args:
            data: Bytes to append
            origin: Operation name used in the error message

        Raises:
            SinkWriteError: On a closed handle, an OSError or a short write
        """
        if self._handle.closed:
            raise SinkWriteError(f"[{origin}] write to closed sink {self.name}")
        try:
            written = self._handle.write(data)
        except OSError as e:
            raise SinkWriteError(f"[{origin}] write error on {self.name}: {e}") from e
        if written is not None and written != len(data):
            raise SinkWriteError(
                f"[{origin}] short write on {self.name}: "
                f"{written} of {len(data)} bytes"
            )
        self.bytes_written += len(data)

    def flush(self) -> None:
        if not self._handle.closed:
            self._handle.flush()

    def close(self) -> None:
        """Flush and close the underlying handle."""
        if not self._handle.closed:
            self._handle.flush()
            self._handle.close()

    def __enter__(self) -> "GroupFileSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
