"""Shared pytest fixtures for vbox_connection tests."""

import pytest
from unittest.mock import Mock

from vbox_connection.descriptor import EndpointDescriptor
from vbox_connection.gateway import SessionHandle, TransportGateway


def make_descriptor(**overrides):
    """Build an EndpointDescriptor from defaults plus overrides."""
    fields = {
        "address": "180.148.14.10",
        "port": "18083",
        "username": "Jack",
        "password": "tr1h15jk7",
    }
    fields.update(overrides)
    return EndpointDescriptor(**fields)


@pytest.fixture
def descriptor():
    return make_descriptor()


@pytest.fixture
def mock_gateway():
    """Gateway mock that connects and reports API version 4_3 by default."""
    gateway = Mock(spec=TransportGateway)
    handle = Mock(spec=SessionHandle)
    handle.get_api_version.return_value = "4_3"
    gateway.get_handle.return_value = handle
    return gateway


@pytest.fixture
def gateway_factory(mock_gateway):
    """Factory that hands out the same mock gateway on every call."""
    return Mock(return_value=mock_gateway)
