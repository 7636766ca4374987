"""Parse Pocket API item records into Item model objects.

Pocket is loose with its item records: every field is documented as
optional, numbers and flags arrive as strings ("0"/"1"), collections that
would be empty arrive as [] instead of {}, and which fields are present
depends on detailType and content type. Missing or malformed fields fall
back to the model defaults instead of failing the whole response.
"""

import logging

from .models import (
    Author,
    DomainMetadata,
    Image,
    Item,
    ItemStatus,
    MediaPresence,
    Video,
)

logger = logging.getLogger(__name__)


def parse_items(raw_list) -> list[Item]:
    """Parse the "list" member of a /get response.

    Accepts the mapping keyed by item id, or the empty array Pocket sends
    when there are no items. Mapping order is preserved.
    """
    if not raw_list:
        return []
    if isinstance(raw_list, dict):
        records = list(raw_list.items())
    elif isinstance(raw_list, list):
        records = [(r.get("item_id", "?") if isinstance(r, dict) else "?", r) for r in raw_list]
    else:
        raise TypeError(f"Unexpected item list type: {type(raw_list).__name__}")

    items = []
    for key, record in records:
        if not isinstance(record, dict):
            logger.warning("Skipping malformed item %s: %r", key, record)
            continue
        if "item_id" not in record:
            record = {**record, "item_id": str(key)}
        items.append(parse_item(record))
    return items


def parse_item(raw: dict) -> Item:
    """Parse a single item record."""
    return Item(
        item_id=_text(raw.get("item_id")),
        resolved_id=_text(raw.get("resolved_id")),
        given_url=_text(raw.get("given_url")),
        resolved_url=_text(raw.get("resolved_url")),
        given_title=_text(raw.get("given_title")),
        resolved_title=_text(raw.get("resolved_title")),
        excerpt=_text(raw.get("excerpt")),
        tags=_tags(raw.get("tags")),
        favorite=_flag(raw.get("favorite")),
        status=_enum(ItemStatus, raw.get("status"), ItemStatus.UNREAD),
        is_article=_flag(raw.get("is_article")),
        is_index=_flag(raw.get("is_index")),
        has_image=_enum(MediaPresence, raw.get("has_image"), MediaPresence.NO),
        has_video=_enum(MediaPresence, raw.get("has_video"), MediaPresence.NO),
        word_count=_int(raw.get("word_count")),
        lang=_text(raw.get("lang")),
        time_added=_int(raw.get("time_added")),
        time_updated=_int(raw.get("time_updated")),
        time_read=_int(raw.get("time_read")),
        time_favorited=_int(raw.get("time_favorited")),
        sort_id=_optional_int(raw.get("sort_id")),
        top_image_url=raw.get("top_image_url") or None,
        amp_url=raw.get("amp_url") or None,
        time_to_read=_optional_int(raw.get("time_to_read")),
        listen_duration_estimate=_int(raw.get("listen_duration_estimate")),
        domain_metadata=_domain_metadata(raw.get("domain_metadata")),
        authors=tuple(_author(a) for a in _values(raw.get("authors"))),
        images=tuple(_image(i) for i in _values(raw.get("images"))),
        videos=tuple(_video(v) for v in _values(raw.get("videos"))),
        image=_image(raw["image"]) if isinstance(raw.get("image"), dict) else None,
        raw=raw,
    )


def _text(value) -> str:
    if value is None:
        return ""
    return str(value)


def _int(value) -> int:
    parsed = _optional_int(value)
    return parsed if parsed is not None else 0


def _optional_int(value) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-integer value %r", value)
        return None


def _flag(value) -> bool:
    """Pocket flags are "0"/"1" strings; missing means false."""
    if isinstance(value, bool):
        return value
    return _int(value) == 1


def _enum(enum_cls, value, default):
    try:
        return enum_cls(str(value))
    except ValueError:
        return default


def _values(collection) -> list[dict]:
    """Members of a {id: record} mapping, or of a list; [] for anything else."""
    if isinstance(collection, dict):
        values = collection.values()
    elif isinstance(collection, list):
        values = collection
    else:
        return []
    return [v for v in values if isinstance(v, dict)]


def _tags(raw) -> frozenset[str]:
    if isinstance(raw, dict):
        names = []
        for key, value in raw.items():
            if isinstance(value, dict):
                names.append(value.get("tag") or key)
            else:
                names.append(key)
        return frozenset(names)
    if isinstance(raw, list):
        return frozenset(t["tag"] if isinstance(t, dict) else str(t) for t in raw)
    return frozenset()


def _author(raw: dict) -> Author:
    return Author(
        author_id=_text(raw.get("author_id")),
        name=_text(raw.get("name")),
        url=_text(raw.get("url")),
    )


def _image(raw: dict) -> Image:
    return Image(
        image_id=_text(raw.get("image_id")),
        src=_text(raw.get("src")),
        width=_int(raw.get("width")),
        height=_int(raw.get("height")),
        credit=_text(raw.get("credit")),
        caption=_text(raw.get("caption")),
    )


def _video(raw: dict) -> Video:
    return Video(
        video_id=_text(raw.get("video_id")),
        src=_text(raw.get("src")),
        width=_int(raw.get("width")),
        height=_int(raw.get("height")),
        vid=_text(raw.get("vid")),
        length=_optional_int(raw.get("length")),
    )


def _domain_metadata(raw) -> DomainMetadata | None:
    if not isinstance(raw, dict):
        return None
    return DomainMetadata(
        name=raw.get("name"),
        logo=_text(raw.get("logo")),
        greyscale_logo=_text(raw.get("greyscale_logo")),
    )
