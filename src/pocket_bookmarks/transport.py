"""HTTP transport for the Pocket v3 API.

Every endpoint is a POST with a JSON body. Pocket answers form-encoded
bodies by default; the X-Accept header asks for JSON instead.
"""

import json
import logging
from urllib.parse import parse_qsl

import httpx

from .errors import (
    PocketTimeoutError,
    ResponseFormatError,
    TransportError,
    raise_for_api_error,
)

logger = logging.getLogger(__name__)

API_BASE_URL = "https://getpocket.com/v3"
DEFAULT_TIMEOUT = 30.0

# Never written to logs
SECRET_FIELDS = frozenset({"consumer_key", "access_token", "code"})


def redact(payload: dict) -> dict:
    """Copy of a request payload with credentials masked, for logging."""
    return {k: ("***" if k in SECRET_FIELDS else v) for k, v in payload.items()}


class PocketTransport:
    """Issues POST requests and hands back decoded, classified responses."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={
                "Content-Type": "application/json; charset=UTF-8",
                "X-Accept": "application/json",
            },
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def post(self, path: str, payload: dict) -> dict:
        """POST payload to an endpoint and return the decoded body.

        Raises TransportError when no response arrives, an ApiError subclass
        when Pocket signals failure, and ResponseFormatError when a success
        body cannot be decoded.
        """
        url = f"{self._base_url}{path}"
        logger.debug("POST %s %s", url, redact(payload))

        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"X-Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise PocketTimeoutError(
                str(e) or "timed out", request=_request_of(e)
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                str(e) or type(e).__name__, request=_request_of(e)
            ) from e

        logger.debug("Response from %s: HTTP %d", path, response.status_code)
        raise_for_api_error(response)
        return decode_body(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _request_of(error: httpx.RequestError) -> httpx.Request | None:
    # .request raises when the exception was built without one
    try:
        return error.request
    except RuntimeError:
        return None


def decode_body(response: httpx.Response) -> dict:
    """Decode a JSON body, falling back to form encoding.

    The OAuth endpoints ignore X-Accept on some deployments and reply with
    "code=..." or "access_token=...&username=...".
    """
    text = response.text
    if not text.strip():
        return {}
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        pairs = parse_qsl(text.strip(), keep_blank_values=True)
        if not pairs or "=" not in text:
            raise ResponseFormatError(
                f"Could not decode response body: {text[:200]!r}"
            ) from None
        return dict(pairs)
    if not isinstance(body, dict):
        raise ResponseFormatError(
            f"Expected a JSON object, got {type(body).__name__}"
        )
    return body
