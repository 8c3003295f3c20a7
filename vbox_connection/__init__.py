"""VirtualBox web service connection package."""

from .descriptor import EndpointDescriptor
from .supervisor import ConnectionSupervisor, VBoxSession, MAX_CONNECT_ATTEMPTS
from .classifier import FailureClassifier
from .version import REQUIRED_API_VERSION, check_api_version, require_api_version
from .gateway import TransportGateway, SessionHandle, VBoxWebServiceGateway
from .manager import ConnectionManager
from .output import OutputSinks
from .exceptions import (
    VBoxConnectionError,
    InvalidArgumentError,
    TransportError,
    FailureCause,
    ConnectionFailureError,
    IncompatibleVersionError
)

__all__ = [
    "EndpointDescriptor",
    "ConnectionSupervisor",
    "VBoxSession",
    "MAX_CONNECT_ATTEMPTS",
    "FailureClassifier",
    "REQUIRED_API_VERSION",
    "check_api_version",
    "require_api_version",
    "TransportGateway",
    "SessionHandle",
    "VBoxWebServiceGateway",
    "ConnectionManager",
    "OutputSinks",
    "VBoxConnectionError",
    "InvalidArgumentError",
    "TransportError",
    "FailureCause",
    "ConnectionFailureError",
    "IncompatibleVersionError"
]
__version__ = "0.1.0"
