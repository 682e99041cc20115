"""Pytest configuration and shared fixtures."""

import pytest

from ipfs_core_api import CoreApiClient, MockCommandTransport, create_mock_transport


@pytest.fixture
def transport() -> MockCommandTransport:
    """Fresh mock transport with no canned responses."""
    return create_mock_transport()


@pytest.fixture
def client(transport: MockCommandTransport) -> CoreApiClient:
    """Client wired to the mock transport."""
    return CoreApiClient(transport)
