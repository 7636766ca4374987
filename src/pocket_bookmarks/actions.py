"""Modify actions for the /v3/send endpoint.

Each kind of action is its own frozen dataclass carrying exactly the fields
that kind needs; required fields are checked when the action is built.
On the wire an action is a JSON object tagged by "action":

    {"action": "add", "url": "https://...", "time": 1700000000}
    {"action": "tags_add", "item_id": "123", "tags": "python,to-read"}
    {"action": "tag_rename", "old_tag": "py", "new_tag": "python"}

Optional fields that were not set are left out of the object entirely;
Pocket treats an absent field differently from an empty one.

Reference: https://getpocket.com/developer/docs/v3/modify
"""

from dataclasses import MISSING, dataclass, field, fields
from datetime import datetime
from typing import ClassVar

from .errors import ApiError, ValidationError
from .models import Item

Timestamp = int | datetime


def _to_seconds(value: Timestamp) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def _require(action: str, name: str, value) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{action} action requires {name}")


def _normalize_tags(action: str, tags) -> tuple[str, ...]:
    if isinstance(tags, str):
        tags = tags.split(",")
    cleaned = tuple(t.strip() for t in (tags or ()) if t and t.strip())
    if not cleaned:
        raise ValidationError(f"{action} action requires at least one tag")
    for tag in cleaned:
        if "," in tag:
            raise ValidationError(f"Tag {tag!r} must not contain a comma")
    return cleaned


@dataclass(frozen=True)
class Action:
    """Base class for modify actions. Not sent directly."""

    name: ClassVar[str] = ""

    def __post_init__(self):
        if getattr(self, "time", None) is not None and _to_seconds(self.time) < 0:
            raise ValidationError(f"{self.name} action time must not be negative")

    def to_wire(self, default_time: int | None = None) -> dict:
        """Encode as a wire object, omitting unset optional fields."""
        wire: dict = {"action": self.name}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name == "time":
                continue
            if f.name == "tags":
                value = ",".join(value)
            wire[f.name] = value
        time = getattr(self, "time", None)
        if time is not None:
            wire["time"] = _to_seconds(time)
        elif default_time is not None:
            wire["time"] = default_time
        return wire

    @classmethod
    def from_wire(cls, wire: dict) -> "Action":
        """Decode a wire object back into its action variant."""
        name = wire.get("action")
        action_cls = ACTION_TYPES.get(name)
        if action_cls is None:
            raise ValidationError(f"Unknown action {name!r}")
        kwargs = {}
        for f in fields(action_cls):
            if f.name not in wire:
                if f.default is MISSING and f.default_factory is MISSING:
                    raise ValidationError(f"{name} action requires {f.name}")
                continue
            value = wire[f.name]
            if f.name == "time":
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValidationError(
                        f"{name} action time must be an integer, not {value!r}"
                    ) from None
            kwargs[f.name] = value
        return action_cls(**kwargs)


@dataclass(frozen=True)
class _ItemAction(Action):
    """An action on one existing item."""

    item_id: str
    time: Timestamp | None = None

    def __post_init__(self):
        _require(self.name, "item_id", self.item_id)
        object.__setattr__(self, "item_id", str(self.item_id))
        super().__post_init__()


@dataclass(frozen=True)
class _ItemTagsAction(Action):
    item_id: str
    tags: tuple[str, ...]
    time: Timestamp | None = None

    def __post_init__(self):
        _require(self.name, "item_id", self.item_id)
        object.__setattr__(self, "item_id", str(self.item_id))
        object.__setattr__(self, "tags", _normalize_tags(self.name, self.tags))
        super().__post_init__()


@dataclass(frozen=True)
class Add(Action):
    """Save a new URL. Pocket assigns the item id."""

    name: ClassVar[str] = "add"

    url: str
    title: str | None = None  # ignored by Pocket if it can resolve one
    tags: tuple[str, ...] | None = None
    tweet_id: str | None = None
    item_id: str | None = None  # existing item the url belongs to
    time: Timestamp | None = None

    def __post_init__(self):
        _require(self.name, "url", self.url)
        if self.tags is not None:
            object.__setattr__(self, "tags", _normalize_tags(self.name, self.tags))
        super().__post_init__()


@dataclass(frozen=True)
class Archive(_ItemAction):
    name: ClassVar[str] = "archive"


@dataclass(frozen=True)
class Readd(_ItemAction):
    """Move an archived item back to the unread list."""

    name: ClassVar[str] = "readd"


@dataclass(frozen=True)
class Favorite(_ItemAction):
    name: ClassVar[str] = "favorite"


@dataclass(frozen=True)
class Unfavorite(_ItemAction):
    name: ClassVar[str] = "unfavorite"


@dataclass(frozen=True)
class Delete(_ItemAction):
    name: ClassVar[str] = "delete"


@dataclass(frozen=True)
class TagsAdd(_ItemTagsAction):
    name: ClassVar[str] = "tags_add"


@dataclass(frozen=True)
class TagsRemove(_ItemTagsAction):
    name: ClassVar[str] = "tags_remove"


@dataclass(frozen=True)
class TagsReplace(_ItemTagsAction):
    name: ClassVar[str] = "tags_replace"


@dataclass(frozen=True)
class TagsClear(_ItemAction):
    """Remove every tag from one item."""

    name: ClassVar[str] = "tags_clear"


@dataclass(frozen=True)
class TagRename(Action):
    """Rename a tag across the whole list."""

    name: ClassVar[str] = "tag_rename"

    old_tag: str
    new_tag: str
    time: Timestamp | None = None

    def __post_init__(self):
        _require(self.name, "old_tag", self.old_tag)
        _require(self.name, "new_tag", self.new_tag)
        super().__post_init__()


@dataclass(frozen=True)
class TagDelete(Action):
    """Delete a tag from every item that has it."""

    name: ClassVar[str] = "tag_delete"

    tag: str
    time: Timestamp | None = None

    def __post_init__(self):
        _require(self.name, "tag", self.tag)
        super().__post_init__()


ACTION_TYPES: dict[str, type[Action]] = {
    cls.name: cls
    for cls in (
        Add,
        Archive,
        Readd,
        Favorite,
        Unfavorite,
        Delete,
        TagsAdd,
        TagsRemove,
        TagsReplace,
        TagsClear,
        TagRename,
        TagDelete,
    )
}


def action_from_wire(wire: dict) -> Action:
    return Action.from_wire(wire)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one action in a batch.

    item is set when Pocket returned the affected item's record (add and
    readd do); error is set when the action failed.
    """

    action: Action
    ok: bool
    item: Item | None = None
    error: ApiError | None = field(default=None, compare=False)
