from __future__ import annotations

from chat_relay.domain.entities.message import Message
from chat_relay.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        recipient_id=model.recipient_id,
        content=model.content,
        type=model.type,
        created_at=model.created_at,
        delivered=model.delivered,
        read=model.read,
    )


def entity_to_values(entity: Message) -> dict[str, object]:
    return {
        "id": entity.id,
        "conversation_id": entity.conversation_id,
        "sender_id": entity.sender_id,
        "recipient_id": entity.recipient_id,
        "content": entity.content,
        "type": entity.type,
        "created_at": entity.created_at,
        "delivered": False,
        "read": False,
    }
