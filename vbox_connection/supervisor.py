"""Connection establishment with bounded retries, failure classification and version gating."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .classifier import FailureClassifier
from .descriptor import EndpointDescriptor
from .exceptions import InvalidArgumentError, TransportError
from .gateway import SessionHandle, TransportGateway, VBoxWebServiceGateway
from .version import require_api_version

logger = logging.getLogger(__name__)

MAX_CONNECT_ATTEMPTS = 3


@dataclass
class VBoxSession:
    """A connected, version-checked session with a VirtualBox web service."""

    descriptor: EndpointDescriptor
    handle: SessionHandle
    api_version: str
    attempts: int
    _gateway: TransportGateway = field(repr=False)
    closed: bool = False

    def close(self) -> None:
        if self.closed:
            return
        self._gateway.disconnect()
        self.closed = True

    def __enter__(self) -> "VBoxSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ConnectionSupervisor:
    """Turns the remote connect call into a bounded, classified operation.

    Every call to connect_to() is independent: it uses a fresh gateway,
    makes up to MAX_CONNECT_ATTEMPTS immediate attempts and either returns a
    VBoxSession or raises one classified error.
    """

    def __init__(
        self,
        gateway_factory: Callable[[], TransportGateway] = VBoxWebServiceGateway,
        reference: Optional[EndpointDescriptor] = None,
        classifier: Optional[FailureClassifier] = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            gateway_factory: Creates the transport gateway used for one call
            reference: Known-good descriptor used to tell credential errors
                from unreachable endpoints
            classifier: Custom classifier (overrides `reference`)
        """
        self.gateway_factory = gateway_factory
        if classifier is None:
            classifier = FailureClassifier(reference=reference, verifier=self.verify)
        self.classifier = classifier

    def connect_to(self, descriptor: Optional[EndpointDescriptor]) -> VBoxSession:
        """Connect to the web service described by `descriptor`.

        Returns:
            VBoxSession ready for use

        Raises:
            InvalidArgumentError: If no descriptor is given (nothing is attempted)
            ConnectionFailureError: If all attempts failed, or the API version
                could not be read, with a classified cause
            IncompatibleVersionError: If the remote API version is not supported
        """
        if descriptor is None:
            raise InvalidArgumentError("Cannot connect to a missing endpoint descriptor")

        gateway = self.gateway_factory()
        url = descriptor.url
        last_error = None

        for attempt in range(1, MAX_CONNECT_ATTEMPTS + 1):
            try:
                logger.info(f"Connection attempt {attempt}/{MAX_CONNECT_ATTEMPTS} to {url}")
                gateway.connect(url, descriptor.username, descriptor.password)
                break
            except TransportError as e:
                last_error = e
                logger.warning(f"Connection attempt {attempt} to {url} failed: {e}")
        else:
            gateway.disconnect()
            raise self.classifier.classify(descriptor, last_error, MAX_CONNECT_ATTEMPTS) from last_error

        logger.info(f"Connected to {url} on attempt {attempt}")
        try:
            handle = gateway.get_handle()
            api_version = require_api_version(handle.get_api_version())
        except TransportError as e:
            logger.warning(f"Reading the API version from {url} failed: {e}")
            gateway.disconnect()
            raise self.classifier.classify(descriptor, e, attempt) from e
        except Exception:
            gateway.disconnect()
            raise

        return VBoxSession(
            descriptor=descriptor,
            handle=handle,
            api_version=api_version,
            attempts=attempt,
            _gateway=gateway,
        )

    def verify(self, descriptor: EndpointDescriptor) -> bool:
        """Single connect/disconnect probe, used to check a reference descriptor."""
        gateway = self.gateway_factory()
        try:
            gateway.connect(descriptor.url, descriptor.username, descriptor.password)
        except TransportError as e:
            logger.debug(f"Verification of {descriptor.url} failed: {e}")
            return False
        finally:
            gateway.disconnect()
        return True
