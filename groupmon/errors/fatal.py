"""Fatal error classes for the group activity monitor.

All fatal errors derive from SystemExit: when nothing handles them they end the
process with a non-zero status, and ``except Exception`` blocks do not swallow
them.
"""

from __future__ import annotations

from enum import Enum, auto


class ErrorClass(Enum):
    """Tag distinguishing the origin of a fatal error."""

    PROTOCOL = auto()
    USER = auto()
    IO = auto()


class FatalError(SystemExit):
    """Base class for errors that terminate the simulation.

    Attributes:
        message: Formatted, human-readable description
        error_class: Which kind of contract was broken
    """

    error_class: ErrorClass = ErrorClass.PROTOCOL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ProtocolViolation(FatalError):
    """An operation was called in the wrong state or an invariant broke."""

    error_class = ErrorClass.PROTOCOL


class SinkWriteError(FatalError):
    """Writing to an output sink failed."""

    error_class = ErrorClass.IO


def require(statement: bool, origin: str, message: str) -> None:
    """Raise ProtocolViolation unless statement holds.

    Args:
        statement: Condition that must be true
        origin: Name of the operation performing the check
        message: Description of the violated condition
    """
    if not statement:
        raise ProtocolViolation(f"[{origin}] {message}")
