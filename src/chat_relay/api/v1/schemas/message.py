from __future__ import annotations

from pydantic import BaseModel

from chat_relay.application.dto.message import DeliveryOutcome
from chat_relay.domain.value_objects.enums import DeliveryStatus

_DETAILS = {
    DeliveryStatus.DELIVERED: "Message delivered",
    DeliveryStatus.OFFLINE: "Recipient offline. Message stored",
    DeliveryStatus.DEFERRED: "Delivery failed. Message stored for later delivery",
}


class SendMessageResponse(BaseModel):
    detail: str
    delivery_status: DeliveryStatus
    message_id: str
    conversation_id: str

    @classmethod
    def from_outcome(cls, outcome: DeliveryOutcome) -> SendMessageResponse:
        return cls(
            detail=_DETAILS[outcome.status],
            delivery_status=outcome.status,
            message_id=outcome.message.id,
            conversation_id=outcome.message.conversation_id,
        )


class ErrorResponse(BaseModel):
    detail: str
