"""Custom exceptions for vbox_connection package."""

from enum import Enum
from typing import Dict, Optional


class VBoxConnectionError(Exception):
    """Base exception for VirtualBox web service connection errors."""
    pass


class InvalidArgumentError(VBoxConnectionError, ValueError):
    """Raised when a connection is requested without a usable endpoint descriptor."""
    pass


class TransportError(VBoxConnectionError):
    """Raised by a transport gateway when a single remote call fails.

    The web service reports bad credentials, a dead host and a closed port
    the same way, so this error carries no cause.
    """
    pass


class FailureCause(str, Enum):
    BAD_USERNAME = "bad_username"
    BAD_PASSWORD = "bad_password"
    UNREACHABLE = "unreachable"


_CAUSE_HINTS = {
    FailureCause.BAD_USERNAME: "the username is not accepted by the web service",
    FailureCause.BAD_PASSWORD: "the password is not accepted by the web service",
    FailureCause.UNREACHABLE: (
        "the address or web service port is unreachable "
        "(network down or vboxwebsrv not running)"
    ),
}


class ConnectionFailureError(VBoxConnectionError):
    """Raised when every connection attempt failed, annotated with a cause."""

    def __init__(
        self,
        descriptor,
        cause: FailureCause,
        attempts: int,
        reasons: Optional[Dict[str, str]] = None,
    ) -> None:
        self.descriptor = descriptor
        self.cause = cause
        self.attempts = attempts
        self.reasons = dict(reasons or {})
        message = (
            f"Connection operation failure: unable to connect to {descriptor} "
            f"after {attempts} attempts, {_CAUSE_HINTS[cause]}"
        )
        if self.reasons:
            details = ", ".join(f"{k}={v}" for k, v in self.reasons.items())
            message += f" [{details}]"
        super().__init__(message)


class IncompatibleVersionError(VBoxConnectionError):
    """Raised when the remote VirtualBox API version is not the supported one."""

    def __init__(self, required: str, actual: str) -> None:
        self.required = required
        self.actual = actual
        super().__init__(
            f"Incompatible version of VirtualBox API: required {required}, "
            f"but the remote host reports {actual}"
        )
