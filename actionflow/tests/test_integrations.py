"""Tests for the Fireflies, Slack and Monday.com HTTP clients."""

import json

import httpx
import pytest

from actionflow.integrations.errors import FirefliesError, MondayError, SlackError
from actionflow.integrations.fireflies import (
    FirefliesClient,
    FirefliesSentence,
    FirefliesTranscript,
    format_transcript_text,
)
from actionflow.integrations.monday import MondayClient, format_column_value
from actionflow.integrations.slack import SlackClient


def _transport(handler, calls=None):
    def wrapped(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)
    return httpx.MockTransport(wrapped)


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


TRANSCRIPT = {
    "id": "ff-1",
    "title": "Weekly sync",
    "date": 1760000000000,
    "sentences": [
        {"text": "I'll send the notes.", "speaker_name": "Alice", "start_time": 1.0, "end_time": 2.0},
        {"text": "Thanks.", "speaker_name": None},
    ],
    "summary": {"action_items": "**Alice**\nSend the notes"},
}


class TestFirefliesClient:
    @pytest.mark.asyncio
    async def test_fetch_recent_transcripts(self):
        calls = []
        transport = _transport(
            lambda r: httpx.Response(200, json={"data": {"transcripts": [TRANSCRIPT]}}), calls
        )
        client = FirefliesClient("ff-key", transport=transport)

        transcripts = await client.fetch_recent_transcripts(since_days=3, limit=50)

        assert [t["id"] for t in transcripts] == ["ff-1"]
        assert FirefliesTranscript.model_validate(transcripts[0]).action_items == "**Alice**\nSend the notes"
        assert calls[0].headers["Authorization"] == "Bearer ff-key"
        assert _body(calls[0])["variables"] == {"limit": 50}

    @pytest.mark.asyncio
    async def test_fetch_missing_transcript(self):
        transport = _transport(lambda r: httpx.Response(200, json={"data": {"transcript": None}}))
        assert await FirefliesClient("k", transport=transport).fetch_transcript("nope") is None

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        transport = _transport(
            lambda r: httpx.Response(200, json={"errors": [{"message": "Invalid API key"}]})
        )
        with pytest.raises(FirefliesError, match="Invalid API key"):
            await FirefliesClient("k", transport=transport).fetch_recent_transcripts()

    @pytest.mark.asyncio
    async def test_http_status_raises(self):
        transport = _transport(lambda r: httpx.Response(401, text="unauthorized"))
        with pytest.raises(FirefliesError) as exc_info:
            await FirefliesClient("k", transport=transport).fetch_recent_transcripts()
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def fail(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(FirefliesError, match="request failed"):
            await FirefliesClient("k", transport=_transport(fail)).fetch_recent_transcripts()

    def test_format_transcript_text(self):
        sentences = [FirefliesSentence(**s) for s in TRANSCRIPT["sentences"]]
        assert format_transcript_text(sentences) == "Alice: I'll send the notes.\nThanks."

    def test_transcript_still_processing_validates(self):
        transcript = FirefliesTranscript.model_validate(
            {"id": "ff-2", "title": None, "sentences": None, "summary": None}
        )
        assert transcript.sentences == []
        assert transcript.action_items is None
        assert format_transcript_text(transcript.sentences) == ""

    def test_null_sentence_text(self):
        sentence = FirefliesSentence.model_validate({"text": None, "speaker_name": "Alice"})
        assert format_transcript_text([sentence]) == "Alice: "


class TestSlackClient:
    @pytest.mark.asyncio
    async def test_post_message(self):
        calls = []
        transport = _transport(lambda r: httpx.Response(200, json={"ok": True, "ts": "123.456"}), calls)
        client = SlackClient("xoxb-token", transport=transport)

        ts = await client.post_message("#general", "Title", blocks=[{"type": "section"}])

        assert ts == "123.456"
        assert str(calls[0].url) == "https://slack.com/api/chat.postMessage"
        assert calls[0].headers["Authorization"] == "Bearer xoxb-token"
        assert _body(calls[0]) == {"channel": "#general", "text": "Title", "blocks": [{"type": "section"}]}

    @pytest.mark.asyncio
    async def test_list_channels(self):
        calls = []
        channels = [{"id": "C1", "name": "apollo"}, {"id": "C2", "name": "general"}]
        transport = _transport(lambda r: httpx.Response(200, json={"ok": True, "channels": channels}), calls)

        result = await SlackClient("xoxb-token", transport=transport).list_channels(limit=50)

        assert [c["name"] for c in result] == ["apollo", "general"]
        assert str(calls[0].url) == "https://slack.com/api/conversations.list"
        assert calls[0].headers["Content-Type"] == "application/x-www-form-urlencoded"
        form = dict(httpx.QueryParams(calls[0].content.decode()))
        assert form == {
            "limit": "50",
            "exclude_archived": "true",
            "types": "public_channel,private_channel",
        }

    @pytest.mark.asyncio
    async def test_list_channels_without_channels_key(self):
        transport = _transport(lambda r: httpx.Response(200, json={"ok": True}))
        assert await SlackClient("t", transport=transport).list_channels() == []

    @pytest.mark.asyncio
    async def test_ok_false_raises(self):
        transport = _transport(lambda r: httpx.Response(200, json={"ok": False, "error": "channel_not_found"}))
        with pytest.raises(SlackError, match="channel_not_found"):
            await SlackClient("t", transport=transport).post_message("#nope", "x")

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = _transport(lambda r: httpx.Response(500))
        with pytest.raises(SlackError) as exc_info:
            await SlackClient("t", transport=transport).auth_test()
        assert exc_info.value.status_code == 500


class TestMondayClient:
    @pytest.mark.asyncio
    async def test_test_connection(self):
        calls = []
        transport = _transport(
            lambda r: httpx.Response(200, json={"data": {"me": {"id": 42, "name": "Ana"}}}), calls
        )
        user = await MondayClient("m-key", transport=transport).test_connection()

        assert user.id == "42"
        assert calls[0].headers["Authorization"] == "m-key"

    @pytest.mark.asyncio
    async def test_test_connection_without_user_raises(self):
        transport = _transport(lambda r: httpx.Response(200, json={"data": {"me": None}}))
        with pytest.raises(MondayError, match="Invalid API key"):
            await MondayClient("k", transport=transport).test_connection()

    @pytest.mark.asyncio
    async def test_create_item_sends_json_column_values(self):
        calls = []
        transport = _transport(
            lambda r: httpx.Response(200, json={"data": {"create_item": {"id": "777", "name": "Ship"}}}),
            calls,
        )
        item = await MondayClient("k", transport=transport).create_item(
            "100", "Ship", {"status": {"label": "High"}}
        )

        assert item.id == "777"
        variables = _body(calls[0])["variables"]
        assert variables["boardId"] == "100"
        assert json.loads(variables["columnValues"]) == {"status": {"label": "High"}}

    @pytest.mark.asyncio
    async def test_board_columns(self):
        columns = [{"id": "status", "title": "Priority", "type": "status"}]
        transport = _transport(lambda r: httpx.Response(200, json={"data": {"boards": [{"columns": columns}]}}))
        result = await MondayClient("k", transport=transport).get_board_columns("100")
        assert [(c.id, c.type) for c in result] == [("status", "status")]

    def test_format_column_value(self):
        from datetime import datetime
        assert format_column_value("text", "hi") == {"text": "hi"}
        assert format_column_value("date", datetime(2026, 11, 2)) == {"date": "2026-11-02"}
        assert format_column_value("status", "High") == {"label": "High"}
        assert format_column_value("people", ["12"]) == {"personsAndTeams": [{"id": 12, "kind": "person"}]}
        assert format_column_value("numbers", "oops") == {"number": 0}
