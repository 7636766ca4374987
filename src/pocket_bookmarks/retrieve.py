"""Query building and pagination for the /v3/get endpoint.

A RetrievalFilter is checked when it is built, so a contradictory query
never reaches the network. build_query() encodes only the options that were
set; an omitted option means "no constraint".

Reference: https://getpocket.com/developer/docs/v3/retrieve
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from .errors import ResponseFormatError, ValidationError
from .models import Item
from .parser import parse_items

logger = logging.getLogger(__name__)

GET_PATH = "/get"
UNTAGGED = "_untagged_"
DEFAULT_PAGE_SIZE = 30


class State(str, Enum):
    UNREAD = "unread"
    ARCHIVE = "archive"
    ALL = "all"


class ContentType(str, Enum):
    ARTICLE = "article"
    VIDEO = "video"
    IMAGE = "image"


class Sort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"
    SITE = "site"


class DetailType(str, Enum):
    SIMPLE = "simple"
    COMPLETE = "complete"


def _coerce(enum_cls, value, option: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {option} {value!r}. Must be one of: {allowed}"
        ) from None


def _coerce_state(value):
    """A single state, or several that must all agree."""
    if value is None or isinstance(value, (State, str)):
        return _coerce(State, value, "state")
    states = {_coerce(State, v, "state") for v in value}
    if not states:
        return None
    if len(states) > 1:
        names = ", ".join(sorted(s.value for s in states))
        raise ValidationError(f"Contradictory state options: {names}")
    return states.pop()


@dataclass(frozen=True)
class RetrievalFilter:
    """Options for retrieving items. Every option is optional.

    Attributes:
        state: unread, archive or all.
        favorite: True for favorites only, False for non-favorites only.
        tag: Only items with this tag.
        untagged: Only items without tags.
        exclude_tag: Drop items with this tag. Pocket has no such filter,
            so it is applied to each page after decoding. Tags only come
            back with detail_type=complete, so an unset detail_type
            becomes complete.
        content_type: article, video or image.
        sort: newest, oldest, title or site.
        search: Only items whose title or URL contain this string.
        domain: Only items from this domain.
        since: Only items modified since this Unix timestamp or datetime.
        count: Page size.
        offset: Start position; requires count.
        detail_type: simple or complete.
    """

    state: State | None = None
    favorite: bool | None = None
    tag: str | None = None
    untagged: bool = False
    exclude_tag: str | None = None
    content_type: ContentType | None = None
    sort: Sort | None = None
    search: str | None = None
    domain: str | None = None
    since: int | datetime | None = None
    count: int | None = None
    offset: int | None = None
    detail_type: DetailType | None = None

    def __post_init__(self):
        object.__setattr__(self, "state", _coerce_state(self.state))
        object.__setattr__(
            self, "content_type", _coerce(ContentType, self.content_type, "content_type")
        )
        object.__setattr__(self, "sort", _coerce(Sort, self.sort, "sort"))
        object.__setattr__(
            self, "detail_type", _coerce(DetailType, self.detail_type, "detail_type")
        )
        if isinstance(self.since, datetime):
            object.__setattr__(self, "since", int(self.since.timestamp()))

        if self.tag is not None and not self.tag.strip():
            raise ValidationError("tag must not be empty")
        if self.tag == UNTAGGED:
            raise ValidationError(f"Use untagged=True instead of tag={UNTAGGED!r}")
        if self.tag and self.untagged:
            raise ValidationError("tag and untagged are mutually exclusive")
        if self.exclude_tag is not None:
            if self.exclude_tag == self.tag:
                raise ValidationError("tag and exclude_tag must differ")
            if self.untagged:
                raise ValidationError("exclude_tag has no effect with untagged")
            if self.detail_type is DetailType.SIMPLE:
                raise ValidationError(
                    "exclude_tag needs detail_type=complete; simple omits tags"
                )
            # Pocket defaults to simple detail, which carries no tags
            if self.detail_type is None:
                object.__setattr__(self, "detail_type", DetailType.COMPLETE)
        if self.favorite is not None and not isinstance(self.favorite, bool):
            raise ValidationError(
                f"favorite must be True, False or None, not {self.favorite!r}"
            )
        if self.since is not None and self.since < 0:
            raise ValidationError("since must not be negative")
        if self.count is not None and self.count <= 0:
            raise ValidationError("count must be positive")
        if self.offset is not None:
            if self.offset < 0:
                raise ValidationError("offset must not be negative")
            if self.count is None:
                raise ValidationError("offset requires count")

    def with_page(self, count: int, offset: int) -> "RetrievalFilter":
        return replace(self, count=count, offset=offset)


def build_query(filter: RetrievalFilter) -> dict:
    """Encode the options that are set into /get parameters."""
    query: dict = {}
    if filter.state is not None:
        query["state"] = filter.state.value
    if filter.favorite is not None:
        query["favorite"] = 1 if filter.favorite else 0
    if filter.untagged:
        query["tag"] = UNTAGGED
    elif filter.tag:
        query["tag"] = filter.tag
    if filter.content_type is not None:
        query["contentType"] = filter.content_type.value
    if filter.sort is not None:
        query["sort"] = filter.sort.value
    if filter.detail_type is not None:
        query["detailType"] = filter.detail_type.value
    if filter.search:
        query["search"] = filter.search
    if filter.domain:
        query["domain"] = filter.domain
    if filter.since is not None:
        query["since"] = filter.since
    if filter.count is not None:
        query["count"] = filter.count
    if filter.offset is not None:
        query["offset"] = filter.offset
    return query


@dataclass
class Page:
    """One decoded /get response.

    raw_count is the number of records Pocket sent, before exclude_tag
    filtering; pagination is driven by it.
    """

    items: list[Item]
    raw_count: int
    since: int | None = None


def decode_page(body: dict, filter: RetrievalFilter) -> Page:
    if "list" not in body:
        raise ResponseFormatError(
            f"Response has no item list (keys: {sorted(body)})"
        )
    try:
        items = parse_items(body["list"])
    except TypeError as e:
        raise ResponseFormatError(str(e)) from e
    raw_count = len(items)

    if filter.sort is not None:
        # Pocket returns a mapping; sort_id carries the requested order
        items.sort(key=lambda i: (i.sort_id is None, i.sort_id or 0))
    if filter.exclude_tag:
        items = [i for i in items if filter.exclude_tag not in i.tags]

    since = body.get("since")
    try:
        since = int(since) if since is not None else None
    except (TypeError, ValueError):
        since = None
    return Page(items=items, raw_count=raw_count, since=since)


FetchPage = Callable[[RetrievalFilter], Awaitable[Page]]


class ItemPager:
    """Lazy async iterator over every item matching a filter.

    Pages are fetched one at a time as iteration reaches them. Iteration
    stops after a page with fewer records than the page size, or none.
    A pager can be iterated only once.
    """

    def __init__(self, fetch_page: FetchPage, filter: RetrievalFilter, page_size: int):
        if page_size <= 0:
            raise ValidationError("page_size must be positive")
        self._fetch_page = fetch_page
        self._filter = filter
        self._page_size = page_size
        self._offset = filter.offset or 0
        self._started = False
        self.pages_fetched = 0

    def __aiter__(self):
        if self._started:
            raise RuntimeError("ItemPager can only be iterated once")
        self._started = True
        return self._iterate()

    async def _iterate(self):
        while True:
            page_filter = self._filter.with_page(self._page_size, self._offset)
            logger.info(
                "Fetching page %d (offset %d)", self.pages_fetched + 1, self._offset
            )
            page = await self._fetch_page(page_filter)
            self.pages_fetched += 1

            for item in page.items:
                yield item

            if page.raw_count < self._page_size:
                logger.info(
                    "Reached end of list (got %d < %d)", page.raw_count, self._page_size
                )
                return
            self._offset += page.raw_count

    async def collect(self) -> list[Item]:
        return [item async for item in self]
