from __future__ import annotations

import asyncio
import logging
import uuid

from chat_relay.application.dto.message import (
    DeliveryOutcome,
    SendMessageCommand,
    parse_send_request,
    to_push_payload,
)
from chat_relay.application.exceptions import (
    ConflictError,
    ForbiddenError,
    UnauthenticatedError,
)
from chat_relay.application.ports.clock import Clock, SystemClock
from chat_relay.application.ports.push import PushChannel
from chat_relay.application.uow import UnitOfWork
from chat_relay.domain.entities.message import Message
from chat_relay.domain.value_objects.enums import DeliveryStatus, MessageType, PushResult
from chat_relay.domain.value_objects.ids import conversation_id_for

logger = logging.getLogger(__name__)


class DeliveryDispatcher:
    """Relays one send request: authenticate, authorize, persist, then push.

    The message is committed before any delivery attempt. Failures after the
    commit are reported as a successful, deferred delivery.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        push: PushChannel,
        clock: Clock | None = None,
        timeout: float | None = None,
    ) -> None:
        self._uow = uow
        self._push = push
        self._clock = clock or SystemClock()
        self._timeout = timeout

    async def dispatch(
        self,
        connection_id: str | None,
        body: str | bytes | None,
    ) -> DeliveryOutcome:
        async with asyncio.timeout(self._timeout):
            command, message = await self._accept(connection_id, body)

        # Delivery gets its own deadline; the message is already committed.
        try:
            async with asyncio.timeout(self._timeout):
                status = await self._deliver(message, command.receiver_id)
        except Exception:
            logger.exception("Delivery of message %s failed after persistence", message.id)
            await self._uow.rollback()
            status = DeliveryStatus.DEFERRED
        return DeliveryOutcome(message=message, status=status)

    async def _accept(
        self,
        connection_id: str | None,
        body: str | bytes | None,
    ) -> tuple[SendMessageCommand, Message]:
        command = parse_send_request(body)

        sender_id = None
        if connection_id:
            sender_id = await self._uow.connections.lookup_user_by_connection(connection_id)
        if sender_id is None:
            logger.warning("Unknown sender connection %s", connection_id)
            raise UnauthenticatedError("Sender is not authenticated")

        if not await self._uow.friends.are_friends(sender_id, command.receiver_id):
            logger.warning("Users %s and %s are not friends", sender_id, command.receiver_id)
            raise ForbiddenError("You cannot send messages to this user")

        return command, await self._persist(sender_id, command)

    async def _persist(self, sender_id: str, command: SendMessageCommand) -> Message:
        conversation_id = conversation_id_for(sender_id, command.receiver_id)
        message = Message(
            id=command.client_msg_id or str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender_id=sender_id,
            recipient_id=command.receiver_id,
            content=command.content.strip(),
            type=command.type or MessageType.TEXT.value,
            created_at=self._clock.now(),
        )

        stored, created = await self._uow.messages_w.insert_message(message)
        if not created:
            if stored.sender_id != sender_id or stored.conversation_id != conversation_id:
                raise ConflictError("Message id already in use")
            logger.info("Message %s already stored, reusing existing row", stored.id)
        await self._uow.commit()
        return stored

    async def _deliver(self, message: Message, recipient_id: str) -> DeliveryStatus:
        target = await self._uow.connections.lookup_latest_connection_by_user(recipient_id)
        if target is None:
            logger.info("Recipient %s offline, message %s stored", recipient_id, message.id)
            return DeliveryStatus.OFFLINE

        result = await self._push.post(target, to_push_payload(message, recipient_id))
        if result is PushResult.DELIVERED:
            logger.info("Message %s delivered to connection %s", message.id, target)
            return DeliveryStatus.DELIVERED

        if result is PushResult.GONE:
            logger.warning("Connection %s is gone, removing", target)
            await self._uow.connections_w.remove_connection(target)
            await self._uow.commit()
        else:
            logger.warning("Push of message %s to %s failed", message.id, target)
        return DeliveryStatus.DEFERRED
