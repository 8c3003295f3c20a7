"""Example usage of vbox_connection package."""

import logging

from vbox_connection import ConnectionManager, ConnectionSupervisor, EndpointDescriptor


def main():
    """Demonstrate connecting to a VirtualBox web service."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    print("VBox Connection Example")

    host = EndpointDescriptor(
        address="192.168.1.10",
        port="18083",
        username="vboxuser",
        password="secret"
    )

    # Direct use: exceptions tell what went wrong
    supervisor = ConnectionSupervisor(reference=host)
    with supervisor.connect_to(host) as session:
        print(f"API version: {session.api_version} (attempts: {session.attempts})")

    # Managed use: status lines on stdout/stderr, None on failure
    with ConnectionManager(supervisor=supervisor) as manager:
        manager.connect_to(host)
        print(f"Connected machines: {[str(pm) for pm in manager.connected_machines()]}")

    print("Sessions closed automatically")


if __name__ == "__main__":
    main()
