"""User error taxonomy and reporting.

Every user-facing error kind has a fixed message template. Reporting an error
formats the message, emits it on the reporter's logger and raises UserError,
which terminates the process unless a caller deliberately handles it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import NoReturn

from groupmon.errors.fatal import ErrorClass, FatalError


class UserErrorType(Enum):
    """All possible user error kinds, with their message templates."""

    ALL_NOT_ALLOWED = "cannot be ALL"
    CANNOT_BE_NEGATIVE = "cannot be negative"
    CANNOT_BE_NULL = "cannot be None"
    CANNOT_BE_POSITIVE = "cannot be positive"
    FILE_CANNOT_CREATE = "could not be created"
    FILE_CANNOT_OPEN = "could not be opened"
    MUST_BE_LOGGER_CUSTOM = "requires the logger to be in custom mode"
    MUST_BE_NEGATIVE = "must be negative"
    MUST_BE_POSITIVE = "must be positive"
    MUST_HAVE_SAME_SIGN = "must have the same sign"
    NETWORK_ALREADY_RUN = "cannot be called after the network has been run"
    UNKNOWN_GROUP_ID = "is an unknown group id"
    UNKNOWN = "caused an unknown error"
    WRONG_NEURON_TYPE = "cannot be applied to this neuron type"

    @property
    def template(self) -> str:
        return self.value


class UserError(FatalError):
    """Raised when a user-facing contract is violated.

    Attributes:
        error_type: The kind of violation
        origin: Name of the operation that detected it
    """

    error_class = ErrorClass.USER

    def __init__(self, error_type: UserErrorType, origin: str, message: str) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.origin = origin


def format_user_error(error_type: UserErrorType, origin: str, prefix: str = "") -> str:
    """Build the deterministic message for a user error.

    Format: [USER ERROR origin] - prefix template.

    Args:
        error_type: Kind of error
        origin: Name of the operation where the error occurred
        prefix: Optional subject placed before the template

    Returns:
        The formatted message
    """
    prefix = prefix.strip()
    if prefix:
        body = f"{prefix} {error_type.template}"
    else:
        body = error_type.template[:1].upper() + error_type.template[1:]
    return f"[USER ERROR {origin}] - {body}."


@dataclass
class ErrorReporter:
    """Reporting capability handed to components that validate user input.

    Attributes:
        logger: Logger receiving the formatted message before termination
    """

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("groupmon.errors")
    )

    def report(
        self, error_type: UserErrorType, origin: str, prefix: str = ""
    ) -> NoReturn:
        """Emit the formatted message and raise UserError.

        Args:
            error_type: Kind of error
            origin: Name of the operation where the error occurred
            prefix: Optional subject placed before the template

        Raises:
            UserError: Always
        """
        message = format_user_error(error_type, origin, prefix)
        self.logger.error(message)
        raise UserError(error_type, origin, message)

    def check(
        self,
        statement: bool,
        error_type: UserErrorType,
        origin: str,
        prefix: str = "",
    ) -> None:
        """Report error_type unless statement holds."""
        if not statement:
            self.report(error_type, origin, prefix)
