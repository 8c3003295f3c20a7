"""Classification of exhausted connection attempts into failure causes."""

import logging
from typing import Callable, Optional

from .descriptor import EndpointDescriptor
from .exceptions import ConnectionFailureError, FailureCause
from .health import EndpointProbe

logger = logging.getLogger(__name__)


class FailureClassifier:
    """Maps an undifferentiated transport failure to a FailureCause.

    The web service raises the same fault for a wrong username, a wrong
    password and a dead endpoint, so the cause is derived by comparing the
    failed descriptor with a known-good `reference` descriptor:

    - no reference, or one for another address/port -> UNREACHABLE
    - reference does not connect either -> UNREACHABLE
    - username differs from the reference -> BAD_USERNAME
    - password differs from the reference -> BAD_PASSWORD
    - same credentials as a working reference -> UNREACHABLE

    Args:
        reference: Descriptor known to connect successfully
        verifier: Callable returning True if a descriptor can connect right now;
            without one the reference is trusted as given
        probe: Optional reachability probe; its reasons are attached to
            UNREACHABLE failures
    """

    def __init__(
        self,
        reference: Optional[EndpointDescriptor] = None,
        verifier: Optional[Callable[[EndpointDescriptor], bool]] = None,
        probe: Optional[Callable[[EndpointDescriptor], EndpointProbe]] = None,
    ) -> None:
        self.reference = reference
        self.verifier = verifier
        self.probe = probe

    def classify(
        self,
        descriptor: EndpointDescriptor,
        failure: Optional[Exception],
        attempts: int,
    ) -> ConnectionFailureError:
        cause = self._cause(descriptor)
        reasons = {}
        if failure is not None:
            reasons["last_error"] = str(failure)
        if cause is FailureCause.UNREACHABLE and self.probe is not None:
            reasons.update(self.probe(descriptor).reasons)

        logger.error(f"Connection to {descriptor} failed after {attempts} attempts: {cause.value}")
        return ConnectionFailureError(descriptor, cause, attempts, reasons)

    def _cause(self, descriptor: EndpointDescriptor) -> FailureCause:
        reference = self.reference
        if reference is None or not reference.same_endpoint(descriptor):
            return FailureCause.UNREACHABLE

        if self.verifier is not None and not self.verifier(reference):
            logger.info(f"Reference credentials for {reference.url} do not connect either")
            return FailureCause.UNREACHABLE

        if descriptor.username != reference.username:
            return FailureCause.BAD_USERNAME
        if descriptor.password != reference.password:
            return FailureCause.BAD_PASSWORD
        return FailureCause.UNREACHABLE
