r"""Unit tests for the callback surface of HttpClient."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from unittest.mock import Mock

import httpx
import pytest

from apibuddy import (
    ApiRequest,
    CallHandle,
    ClientConfig,
    EmptyBody,
    Failure,
    HttpClient,
    HttpMethod,
    HttpxTransport,
    InternalError,
    NetworkError,
    RequestCancelledError,
    ResponseError,
    Success,
)
from tests.helpers import TEST_BASE_URL, ApiError, Item, StubTransport, make_response

if TYPE_CHECKING:
    from apibuddy.result import Result


def completion() -> tuple[asyncio.Future[Result], Mock]:
    """Create a completion callback and a future resolved with the
    result it receives."""
    future: asyncio.Future[Result] = asyncio.get_running_loop().create_future()
    return future, Mock(side_effect=future.set_result)


async def settle() -> None:
    """Let pending callbacks on the event loop run."""
    for _ in range(5):
        await asyncio.sleep(0)


################################
#     Tests for HttpClient     #
################################


def test_http_client_repr() -> None:
    assert repr(HttpClient(TEST_BASE_URL, transport=StubTransport())) == (
        "HttpClient(base_url='https://api.example.com/v1')"
    )


def test_http_client_base_url() -> None:
    assert HttpClient(TEST_BASE_URL, transport=StubTransport()).base_url == TEST_BASE_URL


def test_http_client_default_config() -> None:
    client = HttpClient(TEST_BASE_URL, transport=StubTransport())
    assert client.config == ClientConfig(request_timeout=15.0, resource_timeout=30.0)


def test_http_client_custom_config() -> None:
    config = ClientConfig(request_timeout=5.0, resource_timeout=10.0)
    assert HttpClient(TEST_BASE_URL, config=config, transport=StubTransport()).config is config


def test_http_client_default_transport_uses_config() -> None:
    """Test that the default transport is created with the client's
    config."""
    config = ClientConfig(request_timeout=5.0, resource_timeout=10.0)
    client = HttpClient(TEST_BASE_URL, config=config)
    assert isinstance(client._transport, HttpxTransport)
    assert client._transport.config is config


@pytest.mark.asyncio
async def test_http_client_aclose_owned_transport() -> None:
    client = HttpClient(TEST_BASE_URL)
    await client.aclose()
    assert client._transport._client.is_closed


@pytest.mark.asyncio
async def test_http_client_aclose_leaves_given_transport_open(
    client: HttpClient, stub_transport: StubTransport
) -> None:
    """Test that a caller-supplied transport is not closed."""
    await client.aclose()
    assert not stub_transport.closed


@pytest.mark.asyncio
async def test_http_client_async_context_manager() -> None:
    async with HttpClient(TEST_BASE_URL) as client:
        assert isinstance(client, HttpClient)
    assert client._transport._client.is_closed


################################################
#     Tests for HttpClient.perform: result     #
################################################


@pytest.mark.asyncio
async def test_perform_success(
    client: HttpClient, stub_transport: StubTransport, item_request: ApiRequest
) -> None:
    """Test that a 2xx response is delivered as the decoded payload."""
    future, on_complete = completion()
    handle = client.perform(item_request, on_complete)
    assert isinstance(handle, CallHandle)
    assert await future == Success(Item(id=1))
    await settle()
    on_complete.assert_called_once()
    assert str(stub_transport.requests[0].url) == "https://api.example.com/v1/items/1"


@pytest.mark.asyncio
async def test_perform_completes_asynchronously(
    client: HttpClient, item_request: ApiRequest, mock_callback: Mock
) -> None:
    """Test that the completion callback is not invoked before perform
    returns."""
    client.perform(item_request, mock_callback)
    mock_callback.assert_not_called()
    await settle()
    mock_callback.assert_called_once_with(Success(Item(id=1)))


@pytest.mark.asyncio
async def test_perform_response_error(item_request: ApiRequest) -> None:
    transport = StubTransport(make_response(status_code=404, content=b'{"message": "not found"}'))
    client = HttpClient(TEST_BASE_URL, transport=transport)
    future, on_complete = completion()
    client.perform(item_request, on_complete)
    result = await future
    assert isinstance(result, Failure)
    assert isinstance(result.error, ResponseError)
    assert result.error.status_code == 404
    assert result.error.response_body == ApiError(message="not found")


@pytest.mark.asyncio
async def test_perform_network_error(item_request: ApiRequest) -> None:
    cause = httpx.ConnectError("Connection refused")
    client = HttpClient(TEST_BASE_URL, transport=StubTransport(error=cause))
    future, on_complete = completion()
    client.perform(item_request, on_complete)
    result = await future
    assert isinstance(result, Failure)
    assert isinstance(result.error, NetworkError)
    assert result.error.cause is cause


@pytest.mark.asyncio
async def test_perform_missing_response(item_request: ApiRequest) -> None:
    client = HttpClient(TEST_BASE_URL, transport=StubTransport())
    future, on_complete = completion()
    client.perform(item_request, on_complete)
    result = await future
    assert isinstance(result, Failure)
    assert isinstance(result.error, InternalError)


@pytest.mark.asyncio
async def test_perform_sends_built_request() -> None:
    transport = StubTransport(make_response(status_code=201, content=b'{"id": 7}'))
    client = HttpClient(TEST_BASE_URL, transport=transport)
    future, on_complete = completion()
    client.perform(
        ApiRequest(
            http_method=HttpMethod.POST,
            header_fields={"Content-Type": "application/json"},
            path_components=("items",),
            http_body={"name": "spoon"},
            response_type=Item,
        ),
        on_complete,
    )
    assert await future == Success(Item(id=7))
    (wire,) = transport.requests
    assert wire.method == "POST"
    assert str(wire.url) == "https://api.example.com/v1/items"
    assert wire.headers == {"Content-Type": "application/json"}
    assert wire.content == b'{"name":"spoon"}'


#######################################################
#     Tests for HttpClient.perform: build failure     #
#######################################################


@pytest.mark.asyncio
async def test_perform_build_failure_completes_synchronously(
    stub_transport: StubTransport, mock_callback: Mock
) -> None:
    """Test that a request that cannot be built is reported before
    perform returns, and nothing is sent."""
    client = HttpClient("not a url", transport=stub_transport)
    handle = client.perform(ApiRequest(path_components=("items",)), mock_callback)
    assert handle is None
    mock_callback.assert_called_once()
    (result,) = mock_callback.call_args.args
    assert isinstance(result, Failure)
    assert isinstance(result.error, InternalError)
    assert result.error.message.startswith("Failed to resolve url from components")
    await settle()
    mock_callback.assert_called_once()
    assert stub_transport.requests == []


def test_perform_encode_failure_outside_event_loop(
    client: HttpClient, stub_transport: StubTransport, mock_callback: Mock
) -> None:
    handle = client.perform(
        ApiRequest(http_method=HttpMethod.POST, http_body={"value": float("nan")}), mock_callback
    )
    assert handle is None
    (result,) = mock_callback.call_args.args
    assert isinstance(result.error, InternalError)
    assert result.error.message.startswith("Failed to json encode http body")
    assert stub_transport.requests == []


def test_perform_outside_event_loop_raises(
    client: HttpClient,
    stub_transport: StubTransport,
    item_request: ApiRequest,
    mock_callback: Mock,
) -> None:
    with pytest.raises(RuntimeError):
        client.perform(item_request, mock_callback)
    mock_callback.assert_not_called()
    assert stub_transport.requests == []


######################################################
#     Tests for HttpClient.perform: cancellation     #
######################################################


@pytest.mark.asyncio
async def test_perform_cancel_in_flight(item_request: ApiRequest) -> None:
    """Test that cancelling an in-flight call delivers the cancelled
    result exactly once."""
    transport = StubTransport(make_response(content=b'{"id": 1}'), gate=asyncio.Event())
    client = HttpClient(TEST_BASE_URL, transport=transport)
    future, on_complete = completion()
    handle = client.perform(item_request, on_complete)
    await transport.started.wait()

    assert handle.cancel()
    result = await future
    assert isinstance(result, Failure)
    assert isinstance(result.error, RequestCancelledError)
    assert transport.cancelled
    assert not handle.cancel()
    await settle()
    on_complete.assert_called_once()


@pytest.mark.asyncio
async def test_perform_cancel_before_transport_starts(
    client: HttpClient, stub_transport: StubTransport, item_request: ApiRequest
) -> None:
    """Test that a call cancelled right after dispatch never reaches the
    transport."""
    future, on_complete = completion()
    handle = client.perform(item_request, on_complete)
    handle.cancel()
    result = await future
    assert isinstance(result.error, RequestCancelledError)
    assert stub_transport.requests == []


@pytest.mark.asyncio
async def test_perform_cancel_after_completion(
    client: HttpClient, item_request: ApiRequest
) -> None:
    """Test that cancelling a resolved call has no effect."""
    future, on_complete = completion()
    handle = client.perform(item_request, on_complete)
    assert await future == Success(Item(id=1))
    await settle()
    assert not handle.cancel()
    await settle()
    on_complete.assert_called_once_with(Success(Item(id=1)))


@pytest.mark.asyncio
async def test_perform_cancel_twice(item_request: ApiRequest) -> None:
    transport = StubTransport(make_response(content=b'{"id": 1}'), gate=asyncio.Event())
    client = HttpClient(TEST_BASE_URL, transport=transport)
    future, on_complete = completion()
    handle = client.perform(item_request, on_complete)
    await transport.started.wait()
    assert handle.cancel()
    assert not handle.cancel()
    await future
    await settle()
    on_complete.assert_called_once()


#################################################
#     Tests for HttpClient.perform: logging     #
#################################################


@pytest.mark.asyncio
async def test_perform_logs_resolution(
    client: HttpClient, item_request: ApiRequest, caplog: pytest.LogCaptureFixture
) -> None:
    future, on_complete = completion()
    with caplog.at_level(logging.DEBUG, logger="apibuddy.client"):
        client.perform(item_request, on_complete)
        await future
    (record,) = [r for r in caplog.records if r.getMessage().startswith("Request resolved")]
    assert record.getMessage() == "Request resolved: success"
    assert record.http_method == "GET"
    assert record.url == "https://api.example.com/v1/items/1"
    assert record.status_code == 200
    assert record.outcome == "success"


@pytest.mark.asyncio
async def test_perform_logs_failure_outcome(
    item_request: ApiRequest, caplog: pytest.LogCaptureFixture
) -> None:
    client = HttpClient(TEST_BASE_URL, transport=StubTransport(error=httpx.ReadError("reset")))
    future, on_complete = completion()
    with caplog.at_level(logging.DEBUG, logger="apibuddy.client"):
        client.perform(item_request, on_complete)
        await future
    assert "Request resolved: NetworkError" in caplog.text


@pytest.mark.asyncio
async def test_perform_callback_exception_is_logged(
    client: HttpClient, item_request: ApiRequest, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that an exception raised by the completion callback is
    logged and does not escape."""
    on_complete = Mock(side_effect=RuntimeError("callback bug"))
    with caplog.at_level(logging.ERROR, logger="apibuddy.client"):
        client.perform(item_request, on_complete)
        await settle()
    on_complete.assert_called_once()
    assert (
        "Completion callback for GET request to https://api.example.com/v1/items/1 raised"
        in caplog.text
    )
    assert "callback bug" in caplog.text


@pytest.mark.asyncio
async def test_perform_empty_body_request() -> None:
    transport = StubTransport(make_response(status_code=204, content=b""))
    client = HttpClient(TEST_BASE_URL, transport=transport)
    future, on_complete = completion()
    client.perform(
        ApiRequest(http_method=HttpMethod.DELETE, path_components=("items", "1")), on_complete
    )
    assert await future == Success(EmptyBody())
