from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictStr
from pydantic import ValidationError as PydanticValidationError

from chat_relay.application.exceptions import ValidationError
from chat_relay.domain.entities.message import Message
from chat_relay.domain.value_objects.enums import DeliveryStatus
from chat_relay.domain.value_objects.timestamps import format_timestamp


@dataclass(frozen=True, slots=True)
class SendMessageCommand:
    receiver_id: str
    content: str
    client_msg_id: str | None = None
    type: str | None = None


class SendMessageBody(BaseModel):
    """Inbound send payload after alias normalisation."""

    model_config = ConfigDict(extra="ignore")

    receiver_id: StrictStr
    content: StrictStr
    id: StrictStr | None = None
    type: StrictStr | None = None


def normalize_aliases(raw: dict[str, Any]) -> dict[str, Any]:
    """Fold ``receiverId`` / legacy ``to`` into ``receiver_id``; ``receiverId`` wins when truthy."""
    data = {k: v for k, v in raw.items() if k not in ("receiverId", "to", "receiver_id")}
    data["receiver_id"] = raw.get("receiverId") or raw.get("to")
    return data


def parse_send_request(body: str | bytes | None) -> SendMessageCommand:
    """Decode and validate a raw send request body.

    Raises ValidationError for malformed JSON, a non-object body, or a
    missing / empty / non-string ``receiverId`` (``to``) or ``content``.
    """
    try:
        raw = json.loads(body or "{}")
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValidationError("Request body is not valid JSON") from exc
    if not isinstance(raw, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        parsed = SendMessageBody.model_validate(normalize_aliases(raw))
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid fields: receiverId/to and content are required strings"
        ) from exc

    if not parsed.receiver_id or not parsed.content:
        raise ValidationError("Invalid fields: receiverId/to and content are required strings")

    return SendMessageCommand(
        receiver_id=parsed.receiver_id,
        content=parsed.content,
        client_msg_id=parsed.id or None,
        type=parsed.type or None,
    )


def to_push_payload(message: Message, recipient_id: str) -> dict[str, str]:
    # Key order is part of the wire format consumed by clients.
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "from": message.sender_id,
        "to": recipient_id,
        "type": message.type,
        "content": message.content,
        "timestamp": format_timestamp(message.created_at),
    }


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    message: Message
    status: DeliveryStatus
