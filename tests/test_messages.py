"""Tests for socket message parsing."""

import json

import pytest

from campaign_hub.realtime import (
    ChatMessageIn,
    InvalidMessage,
    JoinMessage,
    PlanningMessage,
    parse_client_message,
)
from campaign_hub.realtime.messages import error_event


class TestParseClientMessage:
    def test_join(self):
        message = parse_client_message({"type": "join", "campaignId": 42})
        assert isinstance(message, JoinMessage)
        assert message.campaign_id == 42

    def test_json_string_payload(self):
        raw = json.dumps({"type": "join", "campaignId": 7})
        assert parse_client_message(raw).campaign_id == 7

    def test_bytes_payload(self):
        raw = json.dumps({"type": "join", "campaignId": 7}).encode()
        assert parse_client_message(raw).campaign_id == 7

    def test_chat(self):
        message = parse_client_message(
            {"type": "chat", "message": "hello", "userId": 3, "username": "mira"}
        )
        assert isinstance(message, ChatMessageIn)
        assert (message.message, message.user_id, message.username) == ("hello", 3, "mira")

    def test_planning_extra_fields_become_payload(self):
        message = parse_client_message(
            {
                "type": "planning",
                "action": "create_item",
                "userId": 3,
                "username": "mira",
                "planId": 9,
                "content": "Buy rope",
            }
        )
        assert isinstance(message, PlanningMessage)
        assert message.action == "create_item"
        assert message.payload == {"planId": 9, "content": "Buy rope"}

    def test_malformed_json(self):
        with pytest.raises(InvalidMessage, match="Malformed JSON"):
            parse_client_message("{not json")

    def test_invalid_utf8_bytes(self):
        with pytest.raises(InvalidMessage, match="UTF-8"):
            parse_client_message(b'{"type": "join", "campaignId": 7, "x": "\xff"}')

    def test_non_object(self):
        with pytest.raises(InvalidMessage, match="JSON object"):
            parse_client_message("[1, 2, 3]")
        with pytest.raises(InvalidMessage, match="JSON object"):
            parse_client_message(None)

    def test_unknown_type(self):
        with pytest.raises(InvalidMessage, match="Unknown message type"):
            parse_client_message({"type": "dance"})

    def test_missing_type(self):
        with pytest.raises(InvalidMessage, match="missing a type"):
            parse_client_message({"campaignId": 42})

    def test_missing_field(self):
        with pytest.raises(InvalidMessage, match="campaignId"):
            parse_client_message({"type": "join"})

    def test_empty_chat_rejected(self):
        with pytest.raises(InvalidMessage):
            parse_client_message({"type": "chat", "message": "", "userId": 1, "username": "a"})

    def test_unknown_planning_action(self):
        with pytest.raises(InvalidMessage):
            parse_client_message(
                {"type": "planning", "action": "burn_plan", "userId": 1, "username": "a"}
            )


def test_error_event_shape():
    event = error_event("nope")
    assert event["type"] == "error"
    assert event["error"] == "nope"
    assert "timestamp" in event
