"""Schemas for messages sent by socket clients.

Clients send one JSON object per ``message`` event, discriminated by its
``type`` field. Anything that does not decode into one of the known shapes is
rejected with an ``error`` event.
"""

import json
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ..planning import PlanningAction


class InvalidMessage(ValueError):
    """The client sent something that is not a valid message."""

    pass


class _ClientMessage(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JoinMessage(_ClientMessage):
    type: Literal["join"]
    campaign_id: int


class ChatMessageIn(_ClientMessage):
    type: Literal["chat"]
    message: str = Field(min_length=1)
    user_id: int
    username: str


class PlanningMessage(_ClientMessage):
    """A planning action. Fields beyond the envelope form the action payload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    type: Literal["planning"]
    action: PlanningAction
    user_id: int
    username: str

    @property
    def payload(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


ClientMessage = Annotated[
    Union[JoinMessage, ChatMessageIn, PlanningMessage], Field(discriminator="type")
]

_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: Any) -> JoinMessage | ChatMessageIn | PlanningMessage:
    """Decode a socket payload (a dict or a JSON string).

    Raises:
        InvalidMessage: If the payload is not JSON, has an unknown type, or is
            missing required fields.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidMessage(f"Malformed JSON: {e.msg}") from e
        except UnicodeDecodeError as e:
            raise InvalidMessage("Malformed JSON: payload is not valid UTF-8") from e
    if not isinstance(raw, dict):
        raise InvalidMessage("Message must be a JSON object")
    try:
        return _adapter.validate_python(raw)
    except ValidationError as e:
        raise InvalidMessage(_summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if first["type"] == "union_tag_invalid":
        return "Unknown message type"
    if first["type"] == "union_tag_not_found":
        return "Message is missing a type"
    return f"Invalid message: {location}: {first['msg']}" if location else f"Invalid message: {first['msg']}"


def timestamp() -> str:
    return datetime.now().isoformat()


def error_event(message: str) -> dict[str, Any]:
    return {"type": "error", "error": message, "timestamp": timestamp()}
