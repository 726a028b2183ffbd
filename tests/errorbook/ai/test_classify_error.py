import httpx
import openai
import pytest

from errorbook.ai._retry import ErrorClass, classify_error
from errorbook.ai.errors import (
    AIAuthError,
    AIConfigError,
    AIParseError,
    AIValidationError,
)


class StatusError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


@pytest.mark.parametrize(
    "message",
    [
        "fetch failed",
        "network timeout",
        "503 Service Unavailable",
        "ECONNRESET",
        "getaddrinfo ENOTFOUND api.openai.com",
        "Request timed out.",
        "The model is overloaded. Please try again later.",
        "502 Bad Gateway",
    ],
)
def test_transient_messages_are_retryable(message):
    assert classify_error(Exception(message)) is ErrorClass.RETRYABLE


@pytest.mark.parametrize(
    "message",
    [
        "AI_AUTH_ERROR: Invalid API Key",
        "Incorrect API key provided: sk-xxx",
        "401 Unauthorized",
        "Error code: 403 - forbidden",
    ],
)
def test_auth_messages_are_non_retryable(message):
    assert classify_error(Exception(message)) is ErrorClass.NON_RETRYABLE


def test_auth_takes_priority_over_network_patterns():
    err = Exception("fetch failed: invalid api key (network 503)")
    assert classify_error(err) is ErrorClass.NON_RETRYABLE

    err = StatusError("connection reset while authenticating", status_code=401)
    assert classify_error(err) is ErrorClass.NON_RETRYABLE


def test_status_codes():
    assert classify_error(StatusError("nope", 403)) is ErrorClass.NON_RETRYABLE
    for status in (408, 429, 502, 503, 504):
        assert classify_error(StatusError("boom", status)) is ErrorClass.RETRYABLE
    assert classify_error(StatusError("bad request", 400)) is ErrorClass.UNKNOWN


def test_builtin_transport_errors_are_retryable():
    assert classify_error(TimeoutError()) is ErrorClass.RETRYABLE
    assert classify_error(ConnectionResetError()) is ErrorClass.RETRYABLE


def test_own_configuration_and_response_errors_are_non_retryable():
    assert classify_error(AIConfigError("no instances")) is ErrorClass.NON_RETRYABLE
    assert classify_error(AIAuthError("missing key")) is ErrorClass.NON_RETRYABLE
    assert classify_error(AIParseError("no tags")) is ErrorClass.NON_RETRYABLE
    assert (
        classify_error(AIValidationError("questionText", "must not be empty"))
        is ErrorClass.NON_RETRYABLE
    )


def test_openai_sdk_errors():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

    conn = openai.APIConnectionError(request=request)
    assert classify_error(conn) is ErrorClass.RETRYABLE

    auth = openai.AuthenticationError(
        "Incorrect API key provided",
        response=httpx.Response(401, request=request),
        body=None,
    )
    assert classify_error(auth) is ErrorClass.NON_RETRYABLE


def test_unrecognized_errors_are_unknown():
    assert classify_error(ValueError("something odd")) is ErrorClass.UNKNOWN


def test_classification_is_pure():
    err = Exception("ECONNRESET")
    assert {classify_error(err) for _ in range(5)} == {ErrorClass.RETRYABLE}
