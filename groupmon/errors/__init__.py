"""Fatal error classes and the user error taxonomy."""

from groupmon.errors.fatal import (
    ErrorClass,
    FatalError,
    ProtocolViolation,
    SinkWriteError,
    require,
)
from groupmon.errors.user_errors import (
    ErrorReporter,
    UserError,
    UserErrorType,
    format_user_error,
)

__all__ = [
    "ErrorClass",
    "ErrorReporter",
    "FatalError",
    "ProtocolViolation",
    "SinkWriteError",
    "UserError",
    "UserErrorType",
    "format_user_error",
    "require",
]
