"""Post-connect API version gate."""

import logging

from .exceptions import IncompatibleVersionError
from .gateway import SessionHandle

logger = logging.getLogger(__name__)

REQUIRED_API_VERSION = "4_3"


def require_api_version(actual: str, required: str = REQUIRED_API_VERSION) -> str:
    """Return `actual` if it equals `required`.

    Strict string equality: "4_2" or "4_3_1" are rejected just like "5_0".

    Raises:
        IncompatibleVersionError: If the reported version differs
    """
    if actual != required:
        logger.error(f"Remote VirtualBox API version {actual} does not match required {required}")
        raise IncompatibleVersionError(required=required, actual=actual)
    return actual


def check_api_version(handle: SessionHandle, required: str = REQUIRED_API_VERSION) -> SessionHandle:
    """Return `handle` unchanged if the remote API version equals `required`."""
    require_api_version(handle.get_api_version(), required)
    return handle
