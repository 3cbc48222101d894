r"""Unit tests for the request executor."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from endpointkit.auth import InMemoryTokenStorage, TokenRefreshCoordinator
from endpointkit.backoff import ExponentialBackoff
from endpointkit.callbacks import FailureInfo, RefreshInfo, RequestInfo, ResponseInfo, RetryInfo
from endpointkit.connectivity import ConnectivityState
from endpointkit.core import ClientConfig
from endpointkit.credentials import BasicCredential, BearerCredential
from endpointkit.endpoint import EndpointDescriptor
from endpointkit.envelope import EnvelopeKeys
from endpointkit.exceptions import EndpointConfigurationError, ErrorKind, NetworkError
from endpointkit.executor import AttemptContext, RequestExecutor
from endpointkit.result import Failure, Success
from endpointkit.transport import TransportErrorKind, TransportResult
from tests.helpers import ScriptedTransport, make_result


@pytest.fixture
def auth_endpoint() -> EndpointDescriptor:
    return EndpointDescriptor(
        host="api.example.com", path="/me", credential=BearerCredential(), retry_budget=1
    )


def make_coordinator(
    access_token: str | None = "a1", refresh_token: str | None = "r1"
) -> TokenRefreshCoordinator:
    refresh_client = AsyncMock()
    refresh_client.refresh_tokens.return_value = ("a2", "r2")
    return TokenRefreshCoordinator(
        InMemoryTokenStorage(access_token, refresh_token), refresh_client
    )


####################################
#     Tests for AttemptContext     #
####################################


def test_attempt_context_defaults(endpoint: EndpointDescriptor) -> None:
    context = AttemptContext(endpoint=endpoint)
    assert context.attempt_number == 0
    assert context.retries_used == 0
    assert not context.has_used_auth_retry
    assert context.has_retry_budget


def test_attempt_context_budget_exhausted(endpoint: EndpointDescriptor) -> None:
    assert not AttemptContext(endpoint=endpoint, retries_used=1).has_retry_budget


#####################################
#     Tests for RequestExecutor     #
#####################################


def test_request_executor_defaults() -> None:
    executor = RequestExecutor(ScriptedTransport([]))
    assert executor.token_coordinator is None
    assert executor.connectivity.is_reachable()
    assert isinstance(executor.config, ClientConfig)
    assert executor.classifier.envelope_keys == EnvelopeKeys()


def test_request_executor_classifier_uses_config_envelope_keys() -> None:
    executor = RequestExecutor(
        ScriptedTransport([]), config=ClientConfig(envelope_keys=EnvelopeKeys.capitalized())
    )
    assert executor.classifier.envelope_keys == EnvelopeKeys.capitalized()


@pytest.mark.asyncio
async def test_execute_success(endpoint: EndpointDescriptor, mock_asleep: Mock) -> None:
    transport = ScriptedTransport([make_result(200, {"id": 7})])
    result = await RequestExecutor(transport).execute(endpoint)
    assert result == Success({"id": 7})
    assert len(transport.requests) == 1
    assert transport.requests[0].url == "https://api.example.com/users"
    mock_asleep.assert_not_called()


@pytest.mark.asyncio
async def test_execute_with_decoder(endpoint: EndpointDescriptor) -> None:
    transport = ScriptedTransport([make_result(200, {"id": 7})])
    result = await RequestExecutor(transport).execute(endpoint, decoder=lambda v: v["id"])
    assert result == Success(7)


@pytest.mark.asyncio
async def test_execute_retry_then_success(
    endpoint: EndpointDescriptor, mock_asleep: Mock
) -> None:
    transport = ScriptedTransport([make_result(500), make_result(200, {"id": 7})])
    result = await RequestExecutor(transport).execute(endpoint)
    assert result == Success({"id": 7})
    assert len(transport.requests) == 2
    mock_asleep.assert_awaited_once_with(1.0)


@pytest.mark.parametrize("retry_budget", [0, 1, 2, 5])
@pytest.mark.asyncio
async def test_execute_max_retries_exceeded(retry_budget: int, mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(host="api.example.com", path="/users", retry_budget=retry_budget)
    transport = ScriptedTransport([make_result(500)] * (retry_budget + 2))

    result = await RequestExecutor(transport).execute(endpoint)

    assert isinstance(result, Failure)
    assert result.error.kind == ErrorKind.MAX_RETRIES_EXCEEDED
    assert result.error.message == "Request failed after multiple attempts"
    assert result.error.__cause__ == NetworkError.server_error(500)
    assert len(transport.requests) == retry_budget + 1
    assert mock_asleep.await_count == retry_budget


@pytest.mark.asyncio
async def test_execute_timeout_consumes_retry_slot(
    endpoint: EndpointDescriptor, mock_asleep: Mock
) -> None:
    transport = ScriptedTransport(
        [
            TransportResult.failed(TransportErrorKind.TIMEOUT),
            TransportResult.failed(TransportErrorKind.TIMEOUT),
        ]
    )
    result = await RequestExecutor(transport).execute(endpoint)
    assert result.error.kind == ErrorKind.MAX_RETRIES_EXCEEDED
    assert result.error.__cause__.kind == ErrorKind.TIMEOUT
    assert len(transport.requests) == 2


@pytest.mark.parametrize(
    ("transport_result", "kind"),
    [
        (make_result(404), ErrorKind.NOT_FOUND),
        (make_result(400), ErrorKind.BAD_REQUEST),
        (make_result(403), ErrorKind.FORBIDDEN),
        (make_result(422), ErrorKind.VALIDATION),
        (make_result(426), ErrorKind.APP_UPDATE_REQUIRED),
        (make_result(418), ErrorKind.SERVER_MESSAGE),
        (make_result(200, {"success": False, "message": "Nope"}), ErrorKind.SERVER_MESSAGE),
        (TransportResult(status_code=200, body=b"not json"), ErrorKind.DECODING_ERROR),
        (TransportResult.failed(TransportErrorKind.CANCELED), ErrorKind.CANCELED),
        (TransportResult.failed(TransportErrorKind.OTHER), ErrorKind.UNKNOWN),
        (TransportResult.failed(TransportErrorKind.CONNECTIVITY), ErrorKind.NO_CONNECTIVITY),
    ],
)
@pytest.mark.asyncio
async def test_execute_terminal_errors_are_not_retried(
    endpoint: EndpointDescriptor,
    mock_asleep: Mock,
    transport_result: TransportResult,
    kind: ErrorKind,
) -> None:
    transport = ScriptedTransport([transport_result, make_result(200, {"id": 7})])
    result = await RequestExecutor(transport).execute(endpoint)
    assert isinstance(result, Failure)
    assert result.error.kind == kind
    assert len(transport.requests) == 1
    mock_asleep.assert_not_called()


@pytest.mark.asyncio
async def test_execute_uses_backoff_strategy(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(host="api.example.com", retry_budget=3)
    transport = ScriptedTransport([make_result(503)] * 3 + [make_result(200, {})])
    config = ClientConfig(backoff_strategy=ExponentialBackoff(base_delay=0.5))

    result = await RequestExecutor(transport, config=config).execute(endpoint)

    assert result == Success({})
    assert [call.args[0] for call in mock_asleep.await_args_list] == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_execute_max_wait_time(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(host="api.example.com", retry_budget=2)
    transport = ScriptedTransport([make_result(500)] * 3)
    config = ClientConfig(backoff_strategy=ExponentialBackoff(base_delay=4.0), max_wait_time=5.0)

    await RequestExecutor(transport, config=config).execute(endpoint)

    assert [call.args[0] for call in mock_asleep.await_args_list] == [4.0, 5.0]


@pytest.mark.asyncio
async def test_execute_build_error_propagates(endpoint: EndpointDescriptor) -> None:
    endpoint = endpoint.replace(method="POST", body_params={"value": object()})
    transport = ScriptedTransport([])
    with pytest.raises(EndpointConfigurationError):
        await RequestExecutor(transport).execute(endpoint)
    assert transport.requests == []


###################################
#     Tests for connectivity      #
###################################


@pytest.mark.asyncio
async def test_execute_no_connectivity(endpoint: EndpointDescriptor) -> None:
    transport = ScriptedTransport([make_result(200, {})])
    executor = RequestExecutor(transport, connectivity=ConnectivityState(reachable=False))

    result = await executor.execute(endpoint)

    assert result == Failure(NetworkError(ErrorKind.NO_CONNECTIVITY))
    assert transport.requests == []


@pytest.mark.asyncio
async def test_execute_connectivity_lost_mid_sequence(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(host="api.example.com", retry_budget=5)
    connectivity = ConnectivityState()
    mock_asleep.side_effect = lambda delay: connectivity.set_reachable(False)
    transport = ScriptedTransport([make_result(500)] * 6)

    result = await RequestExecutor(transport, connectivity=connectivity).execute(endpoint)

    assert result.error.kind == ErrorKind.NO_CONNECTIVITY
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_execute_connectivity_checked_before_every_attempt(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(host="api.example.com", retry_budget=2)
    connectivity = Mock()
    connectivity.is_reachable.return_value = True
    transport = ScriptedTransport([make_result(500), make_result(500), make_result(200, {})])

    await RequestExecutor(transport, connectivity=connectivity).execute(endpoint)

    assert connectivity.is_reachable.call_count == 3


#################################
#     Tests for auth retry      #
#################################


@pytest.mark.asyncio
async def test_execute_auth_refresh_then_success(
    auth_endpoint: EndpointDescriptor, mock_asleep: Mock
) -> None:
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(200, {"id": 1})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(auth_endpoint)

    assert result == Success({"id": 1})
    coordinator.refresh_client.refresh_tokens.assert_awaited_once_with("r1")
    assert [request.header("Authorization") for request in transport.requests] == [
        "Bearer a1",
        "Bearer a2",
    ]
    mock_asleep.assert_not_called()


@pytest.mark.asyncio
async def test_execute_auth_refresh_on_token_expired(auth_endpoint: EndpointDescriptor) -> None:
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(440), make_result(200, {})])
    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(auth_endpoint)
    assert result == Success({})
    assert coordinator.refresh_count == 1


@pytest.mark.asyncio
async def test_execute_auth_retry_does_not_consume_budget(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(
        host="api.example.com", path="/me", credential=BearerCredential(), retry_budget=1
    )
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(500), make_result(200, {})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(endpoint)

    assert result == Success({})
    assert len(transport.requests) == 3
    mock_asleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_execute_auth_retry_with_zero_budget(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(
        host="api.example.com", path="/me", credential=BearerCredential(), retry_budget=0
    )
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(200, {"id": 1})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(endpoint)

    assert result == Success({"id": 1})
    assert [request.header("Authorization") for request in transport.requests] == [
        "Bearer a1",
        "Bearer a2",
    ]
    mock_asleep.assert_not_called()


@pytest.mark.asyncio
async def test_execute_auth_retry_with_zero_budget_then_server_error(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(
        host="api.example.com", path="/me", credential=BearerCredential(), retry_budget=0
    )
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(500), make_result(200, {})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(endpoint)

    assert result.error.kind == ErrorKind.MAX_RETRIES_EXCEEDED
    assert result.error.__cause__.kind == ErrorKind.SERVER_ERROR
    assert len(transport.requests) == 2
    mock_asleep.assert_not_called()


@pytest.mark.asyncio
async def test_execute_explicit_bearer_token_is_not_refreshed() -> None:
    endpoint = EndpointDescriptor(
        host="api.example.com", path="/me", credential=BearerCredential("static")
    )
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(200, {})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(endpoint)

    assert result == Failure(NetworkError(ErrorKind.UNAUTHENTICATED))
    assert [request.header("Authorization") for request in transport.requests] == [
        "Bearer static"
    ]
    assert coordinator.refresh_count == 0
    assert coordinator.storage.get_refresh_token() == "r1"
    coordinator.refresh_client.refresh_tokens.assert_not_called()


@pytest.mark.asyncio
async def test_execute_non_bearer_credential_is_not_refreshed() -> None:
    endpoint = EndpointDescriptor(
        host="api.example.com", path="/me", credential=BasicCredential("user", "pass")
    )
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401)])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(endpoint)

    assert result.error.kind == ErrorKind.UNAUTHENTICATED
    coordinator.refresh_client.refresh_tokens.assert_not_called()


@pytest.mark.asyncio
async def test_execute_auth_refresh_failure(auth_endpoint: EndpointDescriptor) -> None:
    coordinator = make_coordinator()
    refresh_error = NetworkError.server_error(502)
    coordinator.refresh_client.refresh_tokens.side_effect = refresh_error
    transport = ScriptedTransport([make_result(401), make_result(200, {})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(auth_endpoint)

    assert result == Failure(NetworkError(ErrorKind.UNAUTHENTICATED))
    assert result.error.__cause__ is refresh_error
    assert len(transport.requests) == 1
    assert coordinator.current_credential() == "a1"


@pytest.mark.asyncio
async def test_execute_auth_refresh_without_refresh_token(
    auth_endpoint: EndpointDescriptor,
) -> None:
    coordinator = make_coordinator(refresh_token=None)
    transport = ScriptedTransport([make_result(401)])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(auth_endpoint)

    assert result.error.kind == ErrorKind.UNAUTHENTICATED
    coordinator.refresh_client.refresh_tokens.assert_not_called()


@pytest.mark.asyncio
async def test_execute_no_second_refresh(auth_endpoint: EndpointDescriptor) -> None:
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(401), make_result(200, {})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(auth_endpoint)

    assert result == Failure(NetworkError(ErrorKind.UNAUTHENTICATED))
    assert len(transport.requests) == 2
    coordinator.refresh_client.refresh_tokens.assert_awaited_once()


@pytest.mark.asyncio
async def test_execute_auth_expired_after_retry_is_terminal(mock_asleep: Mock) -> None:
    endpoint = EndpointDescriptor(
        host="api.example.com", credential=BearerCredential(), retry_budget=2
    )
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(500), make_result(401), make_result(200, {})])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(endpoint)

    assert result.error.kind == ErrorKind.UNAUTHENTICATED
    assert len(transport.requests) == 2
    coordinator.refresh_client.refresh_tokens.assert_not_called()


@pytest.mark.asyncio
async def test_execute_auth_expired_without_credential(auth_endpoint: EndpointDescriptor) -> None:
    coordinator = make_coordinator(access_token=None)
    transport = ScriptedTransport([make_result(401)])

    result = await RequestExecutor(transport, token_coordinator=coordinator).execute(auth_endpoint)

    assert result.error.kind == ErrorKind.UNAUTHENTICATED
    coordinator.refresh_client.refresh_tokens.assert_not_called()


@pytest.mark.asyncio
async def test_execute_auth_expired_without_coordinator() -> None:
    endpoint = EndpointDescriptor(host="api.example.com", credential=BearerCredential("static"))
    transport = ScriptedTransport([make_result(440)])

    result = await RequestExecutor(transport).execute(endpoint)

    assert result == Failure(NetworkError(ErrorKind.TOKEN_EXPIRED))
    assert transport.requests[0].header("Authorization") == "Bearer static"


################################
#     Tests for callbacks      #
################################


@pytest.mark.asyncio
async def test_execute_callbacks_on_success(
    endpoint: EndpointDescriptor, mock_asleep: Mock
) -> None:
    on_request, on_retry, on_success, on_failure = Mock(), Mock(), Mock(), Mock()
    config = ClientConfig(
        on_request=on_request, on_retry=on_retry, on_success=on_success, on_failure=on_failure
    )
    transport = ScriptedTransport([make_result(500), make_result(200, {"id": 7})])

    await RequestExecutor(transport, config=config).execute(endpoint)

    assert on_request.call_args_list[0].args[0] == RequestInfo(
        endpoint="GET /users", url="https://api.example.com/users", attempt=1, retry_budget=1
    )
    assert on_request.call_args_list[1].args[0].attempt == 2
    retry_info = on_retry.call_args.args[0]
    assert isinstance(retry_info, RetryInfo)
    assert retry_info.attempt == 2
    assert retry_info.wait_time == 1.0
    assert retry_info.error == NetworkError.server_error(500)
    success_info = on_success.call_args.args[0]
    assert isinstance(success_info, ResponseInfo)
    assert success_info.attempt == 2
    assert success_info.payload == {"id": 7}
    assert success_info.total_time >= 0
    on_failure.assert_not_called()


@pytest.mark.asyncio
async def test_execute_callbacks_on_failure(endpoint: EndpointDescriptor) -> None:
    on_success, on_failure = Mock(), Mock()
    config = ClientConfig(on_success=on_success, on_failure=on_failure)
    transport = ScriptedTransport([make_result(404)])

    await RequestExecutor(transport, config=config).execute(endpoint)

    failure_info = on_failure.call_args.args[0]
    assert isinstance(failure_info, FailureInfo)
    assert failure_info.endpoint == "GET /users"
    assert failure_info.attempt == 1
    assert failure_info.error == NetworkError(ErrorKind.NOT_FOUND)
    on_success.assert_not_called()


@pytest.mark.asyncio
async def test_execute_callbacks_on_refresh(auth_endpoint: EndpointDescriptor) -> None:
    on_refresh = Mock()
    coordinator = make_coordinator()
    transport = ScriptedTransport([make_result(401), make_result(200, {})])

    await RequestExecutor(
        transport, token_coordinator=coordinator, config=ClientConfig(on_refresh=on_refresh)
    ).execute(auth_endpoint)

    on_refresh.assert_called_once_with(RefreshInfo(endpoint="GET /me", succeeded=True))


@pytest.mark.asyncio
async def test_execute_callbacks_on_refresh_failure(auth_endpoint: EndpointDescriptor) -> None:
    on_refresh = Mock()
    coordinator = make_coordinator()
    coordinator.refresh_client.refresh_tokens.side_effect = NetworkError(ErrorKind.TIMEOUT)
    transport = ScriptedTransport([make_result(401)])

    await RequestExecutor(
        transport, token_coordinator=coordinator, config=ClientConfig(on_refresh=on_refresh)
    ).execute(auth_endpoint)

    info = on_refresh.call_args.args[0]
    assert not info.succeeded
    assert info.error == NetworkError(ErrorKind.TIMEOUT)


#########################################
#     Tests for logging and fetch       #
#########################################


@pytest.mark.asyncio
async def test_execute_logs_terminal_failure(
    endpoint: EndpointDescriptor, caplog: pytest.LogCaptureFixture
) -> None:
    transport = ScriptedTransport([make_result(404)])
    with caplog.at_level(logging.DEBUG, logger="endpointkit.executor"):
        await RequestExecutor(transport).execute(endpoint)
    record = caplog.records[-1]
    assert record.error_kind == "not_found"
    assert record.endpoint == "/users"
    assert record.method == "GET"
    assert record.attempt == 1


@pytest.mark.asyncio
async def test_fetch_returns_payload(endpoint: EndpointDescriptor) -> None:
    transport = ScriptedTransport([make_result(200, {"id": 7})])
    assert await RequestExecutor(transport).fetch(endpoint) == {"id": 7}


@pytest.mark.asyncio
async def test_fetch_raises(endpoint: EndpointDescriptor) -> None:
    transport = ScriptedTransport([make_result(404)])
    with pytest.raises(NetworkError, match=r"Resource not found"):
        await RequestExecutor(transport).fetch(endpoint)
