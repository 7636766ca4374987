"""Tests for modify actions and their wire form."""

from datetime import datetime, timezone

import pytest

from pocket_bookmarks.actions import (
    ACTION_TYPES,
    Add,
    Archive,
    Delete,
    Favorite,
    Readd,
    TagDelete,
    TagRename,
    TagsAdd,
    TagsClear,
    TagsRemove,
    TagsReplace,
    Unfavorite,
    action_from_wire,
)
from pocket_bookmarks.errors import ValidationError


class TestValidation:
    def test_add_requires_url(self):
        with pytest.raises(ValidationError, match="url"):
            Add(url="")

    def test_add_rejects_blank_url(self):
        with pytest.raises(ValidationError):
            Add(url="   ")

    def test_add_requires_url_even_with_item_id(self):
        with pytest.raises(ValidationError, match="url"):
            Add(url="", item_id="229279689")
        assert Add(url="https://example.com", item_id="1").to_wire()["item_id"] == "1"

    @pytest.mark.parametrize(
        "action_cls", [Archive, Readd, Favorite, Unfavorite, Delete, TagsClear]
    )
    def test_item_actions_require_item_id(self, action_cls):
        with pytest.raises(ValidationError, match="item_id"):
            action_cls(item_id="")

    def test_item_id_is_stringified(self):
        assert Archive(item_id=229279689).item_id == "229279689"

    @pytest.mark.parametrize("action_cls", [TagsAdd, TagsRemove, TagsReplace])
    def test_tag_actions_require_tags(self, action_cls):
        with pytest.raises(ValidationError, match="at least one tag"):
            action_cls(item_id="1", tags=[])

    def test_tag_actions_require_item_id(self):
        with pytest.raises(ValidationError):
            TagsAdd(item_id="", tags=["python"])

    def test_tag_with_comma_rejected(self):
        with pytest.raises(ValidationError, match="comma"):
            TagsAdd(item_id="1", tags=["a,b"])

    def test_tag_rename_requires_both_tags(self):
        with pytest.raises(ValidationError, match="new_tag"):
            TagRename(old_tag="py", new_tag="")
        with pytest.raises(ValidationError, match="old_tag"):
            TagRename(old_tag="", new_tag="python")

    def test_tag_delete_requires_tag(self):
        with pytest.raises(ValidationError):
            TagDelete(tag="")

    def test_negative_time_rejected(self):
        with pytest.raises(ValidationError, match="negative"):
            Archive(item_id="1", time=-1)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            Delete(item_id="")


class TestTags:
    def test_tags_from_comma_string(self):
        assert TagsAdd(item_id="1", tags="python, to-read").tags == ("python", "to-read")

    def test_blank_tags_dropped(self):
        assert TagsReplace(item_id="1", tags=["a", " ", "", "b"]).tags == ("a", "b")

    def test_tags_are_a_tuple(self):
        assert TagsRemove(item_id="1", tags=["a"]).tags == ("a",)

    def test_add_tags_optional(self):
        assert Add(url="https://example.com").tags is None
        assert Add(url="https://example.com", tags=["x"]).tags == ("x",)


class TestWireForm:
    def test_add_with_only_url(self):
        wire = Add(url="https://example.com").to_wire()
        assert wire == {"action": "add", "url": "https://example.com"}
        assert "tags" not in wire
        assert "item_id" not in wire
        assert "title" not in wire

    def test_add_with_all_fields(self):
        action = Add(
            url="https://example.com",
            title="Example",
            tags=["a", "b"],
            tweet_id="42",
            time=1700000000,
        )
        assert action.to_wire() == {
            "action": "add",
            "url": "https://example.com",
            "title": "Example",
            "tags": "a,b",
            "tweet_id": "42",
            "time": 1700000000,
        }

    def test_default_time_used_when_unset(self):
        assert Archive(item_id="1").to_wire(default_time=1700000000) == {
            "action": "archive",
            "item_id": "1",
            "time": 1700000000,
        }

    def test_explicit_time_wins(self):
        wire = Archive(item_id="1", time=5).to_wire(default_time=1700000000)
        assert wire["time"] == 5

    def test_datetime_time(self):
        when = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert Favorite(item_id="1", time=when).to_wire()["time"] == 1700000000

    def test_tags_clear_has_no_tags(self):
        assert TagsClear(item_id="7").to_wire() == {
            "action": "tags_clear",
            "item_id": "7",
        }

    def test_tag_rename(self):
        assert TagRename(old_tag="py", new_tag="python").to_wire() == {
            "action": "tag_rename",
            "old_tag": "py",
            "new_tag": "python",
        }

    def test_tags_joined_with_commas(self):
        wire = TagsAdd(item_id="1", tags=["python", "to-read"]).to_wire()
        assert wire["tags"] == "python,to-read"

    def test_every_action_has_a_name(self):
        assert set(ACTION_TYPES) == {
            "add",
            "archive",
            "readd",
            "favorite",
            "unfavorite",
            "delete",
            "tags_add",
            "tags_remove",
            "tags_replace",
            "tags_clear",
            "tag_rename",
            "tag_delete",
        }


class TestFromWire:
    def test_decodes_tags_add(self):
        action = action_from_wire(
            {"action": "tags_add", "item_id": "1", "tags": "a,b", "time": "1700000000"}
        )
        assert action == TagsAdd(item_id="1", tags=("a", "b"), time=1700000000)

    def test_decodes_add(self):
        action = action_from_wire({"action": "add", "url": "https://example.com"})
        assert action == Add(url="https://example.com")

    def test_unknown_action(self):
        with pytest.raises(ValidationError, match="Unknown action"):
            action_from_wire({"action": "explode", "item_id": "1"})

    def test_missing_action(self):
        with pytest.raises(ValidationError):
            action_from_wire({"item_id": "1"})

    def test_missing_required_field(self):
        with pytest.raises(ValidationError, match="archive action requires item_id"):
            action_from_wire({"action": "archive"})

    def test_missing_one_of_two_required_fields(self):
        with pytest.raises(ValidationError, match="new_tag"):
            action_from_wire({"action": "tag_rename", "old_tag": "py"})

    def test_non_numeric_time(self):
        with pytest.raises(ValidationError, match="time"):
            action_from_wire({"action": "archive", "item_id": "1", "time": "soon"})

    def test_invalid_fields_still_validated(self):
        with pytest.raises(ValidationError):
            action_from_wire({"action": "tag_delete", "tag": ""})
