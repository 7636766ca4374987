"""Exceptions raised by the Pocket client, and the response classifier.

Pocket signals failures with a combination of the HTTP status and two
vendor headers:
    X-Error-Code  numeric error code (e.g. 158 "User rejected code")
    X-Error       human-readable message

Rate limits are reported through the X-Limit-User-* / X-Limit-Key-*
headers, usually together with a 403.

Every response the client receives goes through classify_response().
"""

import json
import logging

import httpx

logger = logging.getLogger(__name__)

ERROR_CODE_HEADER = "x-error-code"
ERROR_MESSAGE_HEADER = "x-error"

RATE_LIMIT_HEADERS = (
    ("x-limit-user-remaining", "x-limit-user-reset"),
    ("x-limit-key-remaining", "x-limit-key-reset"),
)


class PocketError(Exception):
    """Base exception for all Pocket client errors."""


class ValidationError(PocketError, ValueError):
    """A request was rejected locally, before anything was sent."""


class AuthFlowStateError(PocketError):
    """An auth flow step was called out of order."""


class NotAuthenticatedError(PocketError):
    """An authenticated call was made without an access token."""

    def __init__(
        self,
        message: str = "Not authenticated. Complete the authorization flow first.",
    ) -> None:
        super().__init__(message)


class TransportError(PocketError):
    """The request never produced an HTTP response (DNS, connect, reset...)."""

    def __init__(self, message: str, *, request: httpx.Request | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.request = request

    def __str__(self) -> str:
        return f"Pocket transport error: {self.message}"


class PocketTimeoutError(TransportError):
    """The request timed out."""

    def __str__(self) -> str:
        return f"Pocket request timed out: {self.message}"


class ResponseFormatError(PocketError):
    """A success response whose body does not match the protocol."""


class ApiError(PocketError):
    """The service rejected a request.

    Attributes:
        code: Pocket's X-Error-Code value, if the response carried one.
        message: Pocket's X-Error value, or a description of the HTTP status.
        status_code: HTTP status of the response.
        headers: Response headers, for callers that need the rate-limit ones.
    """

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        status_code: int | None = None,
        headers: httpx.Headers | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.headers = headers if headers is not None else httpx.Headers()

    def __str__(self) -> str:
        parts = [self.message]
        if self.code is not None:
            parts.append(f"code {self.code}")
        if self.status_code is not None:
            parts.append(f"HTTP {self.status_code}")
        return f"{parts[0]} ({', '.join(parts[1:])})" if len(parts) > 1 else parts[0]


ServiceError = ApiError


class BadRequestError(ApiError):
    """Missing or invalid parameters (HTTP 400)."""


class AuthenticationError(ApiError):
    """Invalid, expired, rejected or not-yet-authorized token.

    The caller has to run the authorization flow again.
    """


class PermissionDeniedError(ApiError):
    """Consumer key lacks permission for the call (HTTP 403)."""


class RateLimitError(ApiError):
    """The user or consumer key hit its rate limit.

    reset_after holds the number of seconds until the limit resets, when
    the service said so. No retry is attempted by the client.
    """

    @property
    def reset_after(self) -> int | None:
        for _, reset_header in RATE_LIMIT_HEADERS:
            value = _parse_int(self.headers.get(reset_header))
            if value is not None:
                return value
        return None


class ServerError(ApiError):
    """Pocket is down or failed internally (HTTP 5xx, code 199)."""


# Error codes documented at https://getpocket.com/developer/docs/authentication
# and https://getpocket.com/developer/docs/errors
_ERROR_CODE_EXCEPTIONS: dict[int, type[ApiError]] = {
    107: AuthenticationError,  # invalid access token
    138: BadRequestError,  # missing consumer key
    140: BadRequestError,  # missing redirect url
    152: PermissionDeniedError,  # invalid consumer key
    158: AuthenticationError,  # user rejected code
    159: AuthenticationError,  # already used code
    181: BadRequestError,  # invalid redirect uri
    182: BadRequestError,  # missing code
    185: AuthenticationError,  # code not found
    199: ServerError,
}

_HTTP_STATUS_EXCEPTIONS: dict[int, type[ApiError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    429: RateLimitError,
}


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    for remaining_header, _ in RATE_LIMIT_HEADERS:
        if _parse_int(response.headers.get(remaining_header)) == 0:
            return True
    return False


def _body_error(response: httpx.Response) -> str | None:
    """Return the "error" member of a JSON body, if it is set."""
    if "json" not in response.headers.get("content-type", ""):
        return None
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


def _select_exception(response: httpx.Response, code: int | None) -> type[ApiError]:
    if _is_rate_limited(response):
        return RateLimitError
    if code in _ERROR_CODE_EXCEPTIONS:
        return _ERROR_CODE_EXCEPTIONS[code]
    status = response.status_code
    if status in _HTTP_STATUS_EXCEPTIONS:
        return _HTTP_STATUS_EXCEPTIONS[status]
    if 500 <= status < 600:
        return ServerError
    return ApiError


def classify_response(response: httpx.Response) -> ApiError | None:
    """Return the ApiError a response signals, or None for success.

    A response is successful only when the status is 2xx, X-Error-Code is
    absent or 0, and a JSON body carries no "error". A non-2xx response is
    a failure even if it claims X-Error-Code: 0.
    """
    code = _parse_int(response.headers.get(ERROR_CODE_HEADER))
    header_message = response.headers.get(ERROR_MESSAGE_HEADER)
    body_message = None

    if response.is_success and not code:
        body_message = _body_error(response)
        if body_message is None:
            return None

    if code == 0:
        code = None

    message = header_message or body_message
    if not message:
        message = f"HTTP {response.status_code} {response.reason_phrase}".strip()

    exception_class = _select_exception(response, code)
    logger.debug(
        "Classified HTTP %d (X-Error-Code=%s) as %s",
        response.status_code,
        code,
        exception_class.__name__,
    )
    return exception_class(
        message,
        code=code,
        status_code=response.status_code,
        headers=response.headers,
    )


def raise_for_api_error(response: httpx.Response) -> None:
    """Raise the classified ApiError for a failed response."""
    error = classify_response(response)
    if error is not None:
        raise error
