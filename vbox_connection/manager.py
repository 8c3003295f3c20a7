"""Status-reporting connection manager on top of ConnectionSupervisor."""

from typing import Dict, List, Optional

from .descriptor import EndpointDescriptor
from .exceptions import ConnectionFailureError, IncompatibleVersionError
from .output import OutputSinks
from .supervisor import ConnectionSupervisor, VBoxSession


class ConnectionManager:
    """Keeps track of connected physical machines and echoes status lines.

    Failures are reported to the error sink and turned into a None result,
    so a controlling loop can carry on with other hosts. Not thread-safe:
    meant to be owned by a single controlling thread.
    """

    def __init__(
        self,
        output: Optional[OutputSinks] = None,
        supervisor: Optional[ConnectionSupervisor] = None,
    ) -> None:
        self.output = output if output is not None else OutputSinks.standard()
        self.supervisor = supervisor if supervisor is not None else ConnectionSupervisor()
        self._sessions: Dict[EndpointDescriptor, VBoxSession] = {}

    def connect_to(self, descriptor: Optional[EndpointDescriptor]) -> Optional[VBoxSession]:
        if descriptor is None:
            self.output.print_error_message(
                "Connection operation failure: there was an attempt to connect "
                "to a missing physical machine."
            )
            return None

        existing = self._sessions.get(descriptor)
        if existing is not None:
            self.output.print_message(f"Physical machine {descriptor} is already connected.")
            return existing

        self.output.print_message(f"Connecting to the physical machine {descriptor}")
        try:
            session = self.supervisor.connect_to(descriptor)
        except (ConnectionFailureError, IncompatibleVersionError) as e:
            self.output.print_error_message(str(e))
            return None

        self._sessions[descriptor] = session
        self.output.print_message(f"Physical machine {descriptor} has been connected successfully")
        return session

    def disconnect_from(self, descriptor: Optional[EndpointDescriptor]) -> None:
        if descriptor is None:
            self.output.print_error_message(
                "Disconnection operation failure: there was an attempt to "
                "disconnect from a missing physical machine."
            )
            return

        session = self._sessions.pop(descriptor, None)
        if session is None:
            self.output.print_error_message(
                f"Disconnection operation failure: physical machine {descriptor} "
                "cannot be disconnected, because it is not connected."
            )
            return

        self.output.print_message(f"Disconnecting from the physical machine {descriptor}")
        session.close()
        self.output.print_message(f"Physical machine {descriptor} was disconnected")

    def is_connected(self, descriptor: Optional[EndpointDescriptor]) -> bool:
        return descriptor is not None and descriptor in self._sessions

    def connected_machines(self) -> List[EndpointDescriptor]:
        return sorted(self._sessions)

    def close(self) -> None:
        """Disconnect from every connected physical machine."""
        for descriptor in self.connected_machines():
            self.disconnect_from(descriptor)

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
