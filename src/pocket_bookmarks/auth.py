"""Pocket's three-step OAuth-like authorization flow.

    1. request_code(): POST /oauth/request -> request token
    2. the user opens authorization_url() in a browser and approves the app
    3. exchange_for_access_token(): POST /oauth/authorize -> access token

The flow is a small state machine:

    Unstarted -> RequestTokenObtained -> Authorized

Each state is its own type, so a request token only exists while the flow
is waiting for the user and an access token only once it is authorized.
Re-running request_code() from any state discards the previous request
token; that is how a caller retries after the user abandons authorization.

Reference: https://getpocket.com/developer/docs/authentication
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from .errors import AuthFlowStateError, ResponseFormatError
from .transport import PocketTransport

logger = logging.getLogger(__name__)

REQUEST_TOKEN_PATH = "/oauth/request"
ACCESS_TOKEN_PATH = "/oauth/authorize"
AUTHORIZE_URL = "https://getpocket.com/auth/authorize"
DEFAULT_REDIRECT_URI = "https://getpocket.com"


@dataclass(frozen=True)
class Unstarted:
    pass


@dataclass(frozen=True)
class RequestTokenObtained:
    request_token: str
    redirect_uri: str

    def __repr__(self) -> str:
        return f"RequestTokenObtained(redirect_uri={self.redirect_uri!r})"


@dataclass(frozen=True)
class Authorized:
    access_token: str
    username: str

    def __repr__(self) -> str:
        return f"Authorized(username={self.username!r})"


AuthState = Unstarted | RequestTokenObtained | Authorized


def authorization_url(request_token: str, redirect_uri: str = DEFAULT_REDIRECT_URI) -> str:
    """Build the browser URL where the user approves the request token."""
    query = urlencode({"request_token": request_token, "redirect_uri": redirect_uri})
    return f"{AUTHORIZE_URL}?{query}"


class AuthFlow:
    """Drives the handshake for one consumer key."""

    def __init__(self, transport: PocketTransport, consumer_key: str):
        self._transport = transport
        self._consumer_key = consumer_key
        self._state: AuthState = Unstarted()

    @property
    def state(self) -> AuthState:
        return self._state

    async def request_code(
        self,
        redirect_uri: str = DEFAULT_REDIRECT_URI,
        state: str | None = None,
    ) -> str:
        """Obtain a fresh request token.

        Args:
            redirect_uri: Where Pocket sends the user after authorization.
            state: Opaque value Pocket echoes back, for the caller's use.
        """
        payload = {"consumer_key": self._consumer_key, "redirect_uri": redirect_uri}
        if state is not None:
            payload["state"] = state

        body = await self._transport.post(REQUEST_TOKEN_PATH, payload)
        request_token = body.get("code")
        if not request_token:
            raise ResponseFormatError(
                f"No request token in response (keys: {sorted(body)})"
            )

        if isinstance(self._state, RequestTokenObtained):
            logger.debug("Discarding previous request token")
        self._state = RequestTokenObtained(
            request_token=request_token, redirect_uri=redirect_uri
        )
        logger.info("Request token obtained")
        return request_token

    def authorization_url(self, redirect_uri: str | None = None) -> str:
        """URL the user must visit to approve the pending request token."""
        if not isinstance(self._state, RequestTokenObtained):
            raise AuthFlowStateError(
                "No pending request token. Call request_code() first."
            )
        return authorization_url(
            self._state.request_token, redirect_uri or self._state.redirect_uri
        )

    async def exchange_for_access_token(self) -> tuple[str, str]:
        """Trade the approved request token for an access token.

        Returns (access_token, username). If the user has not approved the
        token yet Pocket answers with an authentication error; the flow then
        stays in RequestTokenObtained so the exchange can be retried.
        """
        current = self._state
        if not isinstance(current, RequestTokenObtained):
            raise AuthFlowStateError(
                "No pending request token to exchange. Call request_code() first."
            )

        body = await self._transport.post(
            ACCESS_TOKEN_PATH,
            {"consumer_key": self._consumer_key, "code": current.request_token},
        )
        access_token = body.get("access_token")
        if not access_token:
            raise ResponseFormatError(
                f"No access token in response (keys: {sorted(body)})"
            )
        username = body.get("username") or ""

        self._state = Authorized(access_token=access_token, username=username)
        logger.info("Authorized as %s", username or "<unknown user>")
        return access_token, username

    def reset(self) -> None:
        """Abandon the handshake."""
        self._state = Unstarted()
