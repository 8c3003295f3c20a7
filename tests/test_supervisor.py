"""Pytest tests for ConnectionSupervisor without requiring a live web service."""

import pytest
from unittest.mock import Mock, call

from vbox_connection.supervisor import ConnectionSupervisor, VBoxSession, MAX_CONNECT_ATTEMPTS
from vbox_connection.classifier import FailureClassifier
from vbox_connection.exceptions import (
    InvalidArgumentError,
    TransportError,
    FailureCause,
    ConnectionFailureError,
    IncompatibleVersionError
)

from conftest import make_descriptor


class TestConnectTo:
    """Test the retry / classification / version gate state machine."""

    def test_missing_descriptor(self, gateway_factory, mock_gateway):
        """A missing descriptor fails fast without any transport call."""
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        with pytest.raises(InvalidArgumentError, match="missing endpoint descriptor"):
            supervisor.connect_to(None)

        gateway_factory.assert_not_called()
        mock_gateway.connect.assert_not_called()

    def test_invalid_argument_is_value_error(self, gateway_factory):
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)
        with pytest.raises(ValueError):
            supervisor.connect_to(None)

    def test_connect_success_first_attempt(self, descriptor, gateway_factory, mock_gateway):
        """Successful connection uses exactly one attempt."""
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        session = supervisor.connect_to(descriptor)

        assert isinstance(session, VBoxSession)
        assert session.descriptor == descriptor
        assert session.api_version == "4_3"
        assert session.attempts == 1
        assert session.handle is mock_gateway.get_handle.return_value
        mock_gateway.connect.assert_called_once_with(
            "http://180.148.14.10:18083", "Jack", "tr1h15jk7"
        )
        mock_gateway.disconnect.assert_not_called()

    @pytest.mark.parametrize("failures", [1, 2])
    def test_connect_success_after_failures(self, descriptor, gateway_factory, mock_gateway, failures):
        """Transient failures are absorbed and the loop stops at the first success."""
        mock_gateway.connect.side_effect = [TransportError("refused")] * failures + [None]
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        session = supervisor.connect_to(descriptor)

        assert session.attempts == failures + 1
        assert mock_gateway.connect.call_count == failures + 1
        mock_gateway.get_handle.return_value.get_api_version.assert_called_once_with()

    def test_all_attempts_fail(self, descriptor, gateway_factory, mock_gateway):
        """Three failures raise a classified ConnectionFailureError, never a 4th attempt."""
        mock_gateway.connect.side_effect = TransportError("Connection refused")
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        with pytest.raises(ConnectionFailureError) as exc_info:
            supervisor.connect_to(descriptor)

        assert mock_gateway.connect.call_count == MAX_CONNECT_ATTEMPTS == 3
        assert exc_info.value.cause is FailureCause.UNREACHABLE
        assert exc_info.value.attempts == 3
        assert exc_info.value.reasons["last_error"] == "Connection refused"
        assert isinstance(exc_info.value.__cause__, TransportError)
        mock_gateway.get_handle.assert_not_called()
        mock_gateway.disconnect.assert_called_once_with()

    def test_last_failure_is_classified(self, descriptor, gateway_factory, mock_gateway):
        errors = [TransportError("first"), TransportError("second"), TransportError("third")]
        mock_gateway.connect.side_effect = errors
        classifier = Mock(spec=FailureClassifier)
        classifier.classify.return_value = ConnectionFailureError(descriptor, FailureCause.UNREACHABLE, 3)
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory, classifier=classifier)

        with pytest.raises(ConnectionFailureError):
            supervisor.connect_to(descriptor)

        classifier.classify.assert_called_once_with(descriptor, errors[2], 3)

    def test_incompatible_version(self, descriptor, gateway_factory, mock_gateway):
        """Version mismatch is not retried and releases the session."""
        mock_gateway.get_handle.return_value.get_api_version.return_value = "4_2"
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        with pytest.raises(IncompatibleVersionError) as exc_info:
            supervisor.connect_to(descriptor)

        assert exc_info.value.required == "4_3"
        assert exc_info.value.actual == "4_2"
        mock_gateway.connect.assert_called_once()
        mock_gateway.disconnect.assert_called_once_with()

    def test_version_checked_after_late_success(self, descriptor, gateway_factory, mock_gateway):
        mock_gateway.connect.side_effect = [TransportError("x"), TransportError("y"), None]
        mock_gateway.get_handle.return_value.get_api_version.return_value = "5_0"
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        with pytest.raises(IncompatibleVersionError):
            supervisor.connect_to(descriptor)

        assert mock_gateway.connect.call_count == 3

    def test_session_reports_remote_version(self, descriptor, gateway_factory, mock_gateway):
        handle = mock_gateway.get_handle.return_value
        handle.get_api_version.return_value = "4_3"

        session = ConnectionSupervisor(gateway_factory=gateway_factory).connect_to(descriptor)

        assert session.api_version is handle.get_api_version.return_value

    @pytest.mark.parametrize("failing_call", ["get_handle", "get_api_version"])
    def test_version_read_failure_is_classified(self, descriptor, gateway_factory, mock_gateway, failing_call):
        """A transport error after logon surfaces as a ConnectionFailureError, not raw."""
        error = TransportError("read timed out")
        if failing_call == "get_handle":
            mock_gateway.get_handle.side_effect = error
        else:
            mock_gateway.get_handle.return_value.get_api_version.side_effect = error
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        with pytest.raises(ConnectionFailureError) as exc_info:
            supervisor.connect_to(descriptor)

        assert exc_info.value.cause is FailureCause.UNREACHABLE
        assert exc_info.value.attempts == 1
        assert exc_info.value.reasons["last_error"] == "read timed out"
        assert exc_info.value.__cause__ is error
        mock_gateway.connect.assert_called_once()
        mock_gateway.disconnect.assert_called_once_with()

    def test_calls_are_independent(self, descriptor, gateway_factory, mock_gateway):
        """Two calls give two sessions, each with its own gateway and connect."""
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        first = supervisor.connect_to(descriptor)
        second = supervisor.connect_to(descriptor)

        assert first is not second
        assert gateway_factory.call_count == 2
        assert mock_gateway.connect.call_count == 2

    def test_non_transport_error_propagates(self, descriptor, gateway_factory, mock_gateway):
        mock_gateway.connect.side_effect = RuntimeError("bug")
        supervisor = ConnectionSupervisor(gateway_factory=gateway_factory)

        with pytest.raises(RuntimeError, match="bug"):
            supervisor.connect_to(descriptor)

        mock_gateway.connect.assert_called_once()


class TestClassificationThroughSupervisor:
    """Failure causes derived from a known-good reference descriptor."""

    @staticmethod
    def _gateway_accepting(reference):
        gateway = Mock()
        gateway.get_handle.return_value.get_api_version.return_value = "4_3"

        def mock_connect(url, username, password):
            if (url, username, password) != (reference.url, reference.username, reference.password):
                raise TransportError("Invalid username or password")

        gateway.connect.side_effect = mock_connect
        return gateway

    @pytest.mark.parametrize("overrides,expected_cause", [
        ({"username": "Jack"}, FailureCause.BAD_USERNAME),
        ({"password": "tr1h15jk7"}, FailureCause.BAD_PASSWORD),
    ])
    def test_credential_mismatch(self, overrides, expected_cause):
        reference = make_descriptor(username="Mark", password="1100215asd")
        gateway = self._gateway_accepting(reference)
        supervisor = ConnectionSupervisor(gateway_factory=lambda: gateway, reference=reference)

        with pytest.raises(ConnectionFailureError) as exc_info:
            supervisor.connect_to(make_descriptor(**{"username": "Mark", "password": "1100215asd", **overrides}))

        assert exc_info.value.cause is expected_cause
        # 3 attempts plus one verification of the reference
        assert gateway.connect.call_count == 4
        assert gateway.connect.call_args == call(reference.url, "Mark", "1100215asd")

    def test_reference_connects(self):
        reference = make_descriptor(username="Mark")
        gateway = self._gateway_accepting(reference)
        supervisor = ConnectionSupervisor(gateway_factory=lambda: gateway, reference=reference)

        session = supervisor.connect_to(reference)

        assert session.attempts == 1

    def test_unreachable_without_working_reference(self):
        reference = make_descriptor(address="10.0.0.1")
        gateway = Mock()
        gateway.connect.side_effect = TransportError("No route to host")
        supervisor = ConnectionSupervisor(gateway_factory=lambda: gateway, reference=reference)

        with pytest.raises(ConnectionFailureError) as exc_info:
            supervisor.connect_to(make_descriptor(address="10.0.0.2"))

        assert exc_info.value.cause is FailureCause.UNREACHABLE
        # different endpoint: the reference is not even tried
        assert gateway.connect.call_count == 3


class TestVBoxSession:

    def test_close_is_idempotent(self, descriptor, gateway_factory, mock_gateway):
        session = ConnectionSupervisor(gateway_factory=gateway_factory).connect_to(descriptor)

        session.close()
        session.close()

        assert session.closed
        mock_gateway.disconnect.assert_called_once_with()

    def test_context_manager(self, descriptor, gateway_factory, mock_gateway):
        with ConnectionSupervisor(gateway_factory=gateway_factory).connect_to(descriptor) as session:
            assert not session.closed
        assert session.closed
        mock_gateway.disconnect.assert_called_once_with()
