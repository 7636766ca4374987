"""Tests for sending action batches."""

import json

import httpx
import pytest
import respx

from pocket_bookmarks.actions import Action, Add, Archive, Delete, Favorite, TagsAdd
from pocket_bookmarks.batch import ActionBatcher, decode_results
from pocket_bookmarks.errors import (
    ApiError,
    AuthenticationError,
    ResponseFormatError,
    ValidationError,
)
from pocket_bookmarks.transport import API_BASE_URL, PocketTransport

SEND_URL = f"{API_BASE_URL}/send"

CREDENTIALS = {"consumer_key": "consumer-key", "access_token": "access-token"}


@pytest.fixture
def batcher() -> ActionBatcher:
    return ActionBatcher(PocketTransport(), clock=lambda: 1700000000.7)


class TestEncode:
    def test_preserves_order(self, batcher):
        encoded = batcher.encode([Archive(item_id="1"), Favorite(item_id="2")])
        assert [a["action"] for a in encoded] == ["archive", "favorite"]

    def test_clock_time_truncated(self, batcher):
        encoded = batcher.encode([Archive(item_id="1")])
        assert encoded[0]["time"] == 1700000000

    def test_rejects_non_actions(self, batcher):
        with pytest.raises(ValidationError):
            batcher.encode([{"action": "archive", "item_id": "1"}])

    def test_rejects_bare_base_action(self, batcher):
        with pytest.raises(ValidationError):
            batcher.encode([Action()])


class TestSend:
    @pytest.mark.asyncio
    @respx.mock
    async def test_partial_failure(self, batcher):
        respx.post(SEND_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": 0,
                    "action_results": [True, False, True],
                    "action_errors": [
                        None,
                        {"message": "Invalid item", "type": "Not Found", "code": 404},
                        None,
                    ],
                },
            )
        )
        actions = [Archive(item_id="1"), Archive(item_id="2"), Archive(item_id="3")]

        results = await batcher.send(actions, CREDENTIALS)

        assert len(results) == 3
        assert [r.ok for r in results] == [True, False, True]
        assert [r.action for r in results] == actions
        assert isinstance(results[1].error, ApiError)
        assert results[1].error.code == 404
        assert results[1].error.message == "Invalid item"
        assert results[0].error is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_body(self, batcher):
        route = respx.post(SEND_URL).mock(
            return_value=httpx.Response(200, json={"status": 1, "action_results": [True]})
        )

        await batcher.send([TagsAdd(item_id="5", tags=["a", "b"])], CREDENTIALS)

        sent = json.loads(route.calls.last.request.content)
        assert sent == {
            "consumer_key": "consumer-key",
            "access_token": "access-token",
            "actions": [
                {"action": "tags_add", "item_id": "5", "tags": "a,b", "time": 1700000000}
            ],
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_add_returns_item(self, batcher):
        respx.post(SEND_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": 1,
                    "action_results": [
                        {
                            "item_id": "2001",
                            "normal_url": "http://example.com/new",
                            "resolved_url": "https://example.com/new",
                            "title": "New",
                        }
                    ],
                    "action_errors": [None],
                },
            )
        )

        results = await batcher.send([Add(url="https://example.com/new")], CREDENTIALS)

        assert results[0].ok
        assert results[0].item.item_id == "2001"
        assert results[0].item.url == "https://example.com/new"

    @pytest.mark.asyncio
    async def test_empty_batch(self, batcher):
        with pytest.raises(ValidationError, match="empty"):
            await batcher.send([], CREDENTIALS)

    @pytest.mark.asyncio
    @respx.mock
    async def test_result_count_mismatch(self, batcher):
        respx.post(SEND_URL).mock(
            return_value=httpx.Response(200, json={"status": 1, "action_results": [True]})
        )
        with pytest.raises(ResponseFormatError, match="2 actions"):
            await batcher.send([Delete(item_id="1"), Delete(item_id="2")], CREDENTIALS)

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_results(self, batcher):
        respx.post(SEND_URL).mock(return_value=httpx.Response(200, json={"status": 1}))
        with pytest.raises(ResponseFormatError):
            await batcher.send([Delete(item_id="1")], CREDENTIALS)

    @pytest.mark.asyncio
    @respx.mock
    async def test_whole_request_failure_raises(self, batcher):
        respx.post(SEND_URL).mock(
            return_value=httpx.Response(
                401, headers={"X-Error-Code": "107", "X-Error": "Invalid access token."}
            )
        )
        with pytest.raises(AuthenticationError):
            await batcher.send([Archive(item_id="1")], CREDENTIALS)


class TestDecodeResults:
    def test_missing_errors_array(self):
        batch = (Archive(item_id="1"), Archive(item_id="2"))
        results = decode_results(batch, {"action_results": [True, False]})
        assert results[0].ok
        assert not results[1].ok
        assert "archive action failed" in str(results[1].error)

    def test_null_result_is_failure(self):
        results = decode_results((Archive(item_id="1"),), {"action_results": [None]})
        assert not results[0].ok

    def test_non_numeric_error_code(self):
        results = decode_results(
            (Archive(item_id="1"),),
            {"action_results": [False], "action_errors": [{"code": "bad"}]},
        )
        assert results[0].error.code is None
