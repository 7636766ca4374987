"""Data models for items returned by the Pocket API."""

from dataclasses import dataclass, field
from enum import Enum


class ItemStatus(str, Enum):
    UNREAD = "0"
    ARCHIVED = "1"
    DELETED = "2"  # "this item should be deleted", seen in since-syncs


class MediaPresence(str, Enum):
    """Value of has_image / has_video."""

    NO = "0"
    YES = "1"
    IS = "2"  # the item itself is an image/video


@dataclass(frozen=True)
class Author:
    author_id: str
    name: str
    url: str = ""  # often empty


@dataclass(frozen=True)
class Image:
    image_id: str
    src: str
    width: int = 0  # often 0
    height: int = 0
    credit: str = ""
    caption: str = ""


@dataclass(frozen=True)
class Video:
    video_id: str
    src: str
    width: int = 0
    height: int = 0
    vid: str = ""  # YouTube/Vimeo id, often empty
    length: int | None = None  # seconds


@dataclass(frozen=True)
class DomainMetadata:
    name: str | None
    logo: str = ""
    greyscale_logo: str = ""


@dataclass(frozen=True)
class Item:
    item_id: str
    resolved_id: str = ""  # "0" until Pocket has processed the URL
    given_url: str = ""  # URL as saved
    resolved_url: str = ""  # after redirects
    given_title: str = ""
    resolved_title: str = ""
    excerpt: str = ""
    tags: frozenset[str] = frozenset()
    favorite: bool = False
    status: ItemStatus = ItemStatus.UNREAD
    is_article: bool = False
    is_index: bool = False
    has_image: MediaPresence = MediaPresence.NO
    has_video: MediaPresence = MediaPresence.NO
    word_count: int = 0
    lang: str = ""
    # Unix timestamps, 0 when unset
    time_added: int = 0
    time_updated: int = 0
    time_read: int = 0
    time_favorited: int = 0
    sort_id: int | None = None
    top_image_url: str | None = None
    amp_url: str | None = None
    time_to_read: int | None = None  # minutes
    listen_duration_estimate: int = 0
    domain_metadata: DomainMetadata | None = None
    # Only present with detailType=complete
    authors: tuple[Author, ...] = ()
    images: tuple[Image, ...] = ()
    videos: tuple[Video, ...] = ()
    image: Image | None = None  # main image
    raw: dict = field(default_factory=dict, repr=False, compare=False)

    @property
    def archived(self) -> bool:
        return self.status is ItemStatus.ARCHIVED

    @property
    def deleted(self) -> bool:
        return self.status is ItemStatus.DELETED

    @property
    def url(self) -> str:
        return self.resolved_url or self.given_url

    @property
    def title(self) -> str:
        return self.resolved_title or self.given_title or self.url
