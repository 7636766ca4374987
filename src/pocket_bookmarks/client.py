"""Pocket API client.

Authentication is a three-step handshake (see auth.py) that yields an
access token. The consumer key identifies the application and is fixed for
the client's lifetime; the access token identifies the user and is sent in
the body of every authenticated request, never in a URL.

Credentials can also come from the environment:
    POCKET_CONSUMER_KEY
    POCKET_ACCESS_TOKEN
"""

import logging
import os
import time
from collections.abc import Callable, Iterable

import httpx

from .actions import (
    Action,
    ActionResult,
    Add,
    Archive,
    Delete,
    Favorite,
    Readd,
    Unfavorite,
)
from .auth import DEFAULT_REDIRECT_URI, AuthFlow, AuthState
from .batch import ActionBatcher
from .errors import NotAuthenticatedError, ValidationError
from .models import Item
from .retrieve import (
    DEFAULT_PAGE_SIZE,
    GET_PATH,
    DetailType,
    ItemPager,
    Page,
    RetrievalFilter,
    Sort,
    State,
    build_query,
    decode_page,
)
from .transport import API_BASE_URL, DEFAULT_TIMEOUT, PocketTransport

logger = logging.getLogger(__name__)


class PocketClient:
    """Client for the Pocket v3 API."""

    def __init__(
        self,
        consumer_key: str,
        access_token: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = API_BASE_URL,
        clock: Callable[[], float] = time.time,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not consumer_key:
            raise ValidationError("A consumer key is required")
        self._consumer_key = consumer_key
        self._access_token = access_token
        self.username: str | None = None
        self._transport = PocketTransport(
            base_url=base_url, timeout=timeout, http_client=http_client
        )
        self._auth_flow = AuthFlow(self._transport, consumer_key)
        self._batcher = ActionBatcher(self._transport, clock=clock)

    @classmethod
    def from_env(cls, **kwargs) -> "PocketClient":
        """Build a client from POCKET_CONSUMER_KEY / POCKET_ACCESS_TOKEN."""
        consumer_key = os.environ.get("POCKET_CONSUMER_KEY", "")
        if not consumer_key:
            raise ValidationError("POCKET_CONSUMER_KEY is not set")
        return cls(consumer_key, os.environ.get("POCKET_ACCESS_TOKEN") or None, **kwargs)

    @property
    def consumer_key(self) -> str:
        return self._consumer_key

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def is_authenticated(self) -> bool:
        return self._access_token is not None

    # ── Authorization ──

    @property
    def auth_state(self) -> AuthState:
        return self._auth_flow.state

    async def request_code(
        self, redirect_uri: str = DEFAULT_REDIRECT_URI, state: str | None = None
    ) -> str:
        """Step 1: get a request token for the user to approve."""
        return await self._auth_flow.request_code(redirect_uri, state)

    def authorization_url(self, redirect_uri: str | None = None) -> str:
        """Step 2: URL the user opens to approve the request token."""
        return self._auth_flow.authorization_url(redirect_uri)

    async def authorize(self) -> str:
        """Step 3: exchange the approved request token and keep the access token.

        Returns the access token. Raises AuthenticationError if the user has
        not approved the request yet; the request token stays valid for a
        retry.
        """
        access_token, username = await self._auth_flow.exchange_for_access_token()
        self._access_token = access_token
        self.username = username or None
        return access_token

    def _credentials(self) -> dict:
        if self._access_token is None:
            raise NotAuthenticatedError()
        return {"consumer_key": self._consumer_key, "access_token": self._access_token}

    # ── Retrieval ──

    async def _fetch_page(self, filter: RetrievalFilter) -> Page:
        payload = {**self._credentials(), **build_query(filter)}
        body = await self._transport.post(GET_PATH, payload)
        page = decode_page(body, filter)
        logger.debug("Decoded %d items (%d raw)", len(page.items), page.raw_count)
        return page

    async def retrieve(
        self, filter: RetrievalFilter | None = None, **options
    ) -> list[Item]:
        """Fetch items matching a filter in a single request.

        Options may be given as a RetrievalFilter or as keyword arguments.
        """
        filter = _make_filter(filter, options)
        page = await self._fetch_page(filter)
        return page.items

    def iter_items(
        self,
        filter: RetrievalFilter | None = None,
        *,
        page_size: int | None = None,
        **options,
    ) -> ItemPager:
        """Iterate over all matching items, fetching pages on demand.

        The page size is taken from page_size, else the filter's count,
        else DEFAULT_PAGE_SIZE.
        """
        filter = _make_filter(filter, options)
        self._credentials()
        size = page_size or filter.count or DEFAULT_PAGE_SIZE
        return ItemPager(self._fetch_page, filter, size)

    async def list_all(self, page_size: int = DEFAULT_PAGE_SIZE, **options) -> list[Item]:
        """Every item in the list, unread and archived, with full detail."""
        options.setdefault("state", State.ALL)
        options.setdefault("detail_type", DetailType.COMPLETE)
        options.setdefault("sort", Sort.SITE)
        return await self.iter_items(page_size=page_size, **options).collect()

    # ── Modification ──

    async def send(self, actions: Iterable[Action]) -> list[ActionResult]:
        """Send a batch of actions; one result per action, in order."""
        credentials = self._credentials()
        return await self._batcher.send(actions, credentials)

    async def add_urls(self, urls: Iterable[str]) -> list[ActionResult]:
        return await self.send([Add(url=url) for url in _collection(urls, "urls")])

    async def archive(self, items: Iterable[str | Item]) -> list[ActionResult]:
        return await self.send([Archive(item_id=i) for i in _item_ids(items)])

    async def readd(self, items: Iterable[str | Item]) -> list[ActionResult]:
        return await self.send([Readd(item_id=i) for i in _item_ids(items)])

    async def favorite(self, items: Iterable[str | Item]) -> list[ActionResult]:
        return await self.send([Favorite(item_id=i) for i in _item_ids(items)])

    async def unfavorite(self, items: Iterable[str | Item]) -> list[ActionResult]:
        return await self.send([Unfavorite(item_id=i) for i in _item_ids(items)])

    async def delete(self, items: Iterable[str | Item]) -> list[ActionResult]:
        return await self.send([Delete(item_id=i) for i in _item_ids(items)])

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()


def _make_filter(filter: RetrievalFilter | None, options: dict) -> RetrievalFilter:
    if filter is not None and options:
        raise ValidationError("Pass either a RetrievalFilter or keyword options, not both")
    if filter is None:
        return RetrievalFilter(**options)
    return filter


def _collection(values, name: str):
    # A bare string is iterable too; it would be split into characters
    if isinstance(values, (str, bytes)):
        raise ValidationError(f"{name} must be a collection, not a single string")
    return values


def _item_ids(items: Iterable[str | Item]) -> list[str]:
    return [
        i.item_id if isinstance(i, Item) else str(i)
        for i in _collection(items, "items")
    ]
