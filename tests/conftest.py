from __future__ import annotations

from unittest.mock import Mock

import pytest

from apibuddy import ApiRequest, HttpClient
from tests.helpers import TEST_BASE_URL, ApiError, Item, StubTransport, make_response


@pytest.fixture
def item_request() -> ApiRequest[Item, ApiError]:
    """Create a request for one item, expecting ``Item`` or
    ``ApiError``."""
    return ApiRequest(path_components=("items", "1"), response_type=Item, error_type=ApiError)


@pytest.fixture
def stub_transport() -> StubTransport:
    """Create a transport double answering 200 with ``{"id": 1}``."""
    return StubTransport(response=make_response(status_code=200, content=b'{"id": 1}'))


@pytest.fixture
def client(stub_transport: StubTransport) -> HttpClient:
    """Create a client sending through ``stub_transport``."""
    return HttpClient(TEST_BASE_URL, transport=stub_transport)


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock completion callback for testing the callback
    surface."""
    return Mock()
