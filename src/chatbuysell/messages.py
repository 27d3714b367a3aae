"""
Message stream — the ordered history of the active room.

Sends are optimistic: the sender's message is appended before the network
call starts, then reconciled with the server id once confirmed. What happens
to an entry whose send failed is governed by FailurePolicy.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from chatbuysell.chat import ChatAPI
from chatbuysell.config import FailurePolicy
from chatbuysell.errors import ChatBuySellError, ValidationError
from chatbuysell.events import Notifier, Observable
from chatbuysell.models.chat import Message, MessageStatus
from chatbuysell.validation import require_fields, require_text

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX = "local-"


class MessageStream(Observable):
    def __init__(
        self,
        chat: ChatAPI,
        notifier: Notifier,
        failure_policy: FailurePolicy = FailurePolicy.MARK_FAILED,
    ):
        super().__init__()
        self._chat = chat
        self._notifier = notifier
        self._failure_policy = FailurePolicy(failure_policy)
        self._room_id: Optional[str] = None
        self._requested_room_id: Optional[str] = None
        self._messages: list[Message] = []

    @property
    def room_id(self) -> Optional[str]:
        return self._room_id

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._failure_policy

    def request(self, room_id: str) -> None:
        """Mark room_id as the history that should end up displayed."""
        self._requested_room_id = room_id

    def is_requested(self, room_id: str) -> bool:
        return self._requested_room_id == room_id

    def replace(self, room_id: str, messages: Iterable[Message]) -> None:
        self._room_id = room_id
        self._requested_room_id = room_id
        self._messages = list(messages)
        self._emit(self.messages)

    def clear(self) -> None:
        self._room_id = None
        self._requested_room_id = None
        self._messages = []
        self._emit(self.messages)

    async def load_history(self, room_id: str) -> list[Message]:
        """Replace the sequence with the server's history for room_id."""
        require_fields("load history", roomId=room_id)
        self.request(room_id)
        try:
            detail = await self._chat.get_room(room_id)
        except ChatBuySellError as e:
            self._notifier.error("Failed to load messages", e)
            raise
        if not self.is_requested(room_id):
            logger.debug("Discarding stale history for room %s", room_id)
            return self.messages
        self.replace(room_id, detail.messages)
        return self.messages

    async def send_optimistic(self, content: str, sender_id: str) -> Message:
        """Append the message locally, then send it.

        The entry is visible before the first suspension point. Backend
        failures do not raise; they are reported through the notifier and
        reflected in the entry's status.
        """
        text = require_text("content", content)
        require_fields("send message", senderId=sender_id)
        if self._room_id is None:
            raise ValidationError("No active room to send to", ["roomId"])

        local_id = f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"
        message = Message(
            id=local_id,
            local_id=local_id,
            room_id=self._room_id,
            sender_id=sender_id,
            content=text,
            created_at=datetime.now(timezone.utc),
            status=MessageStatus.PENDING,
        )
        self._messages.append(message)
        self._emit(self.messages)

        return await self._deliver(message)

    async def retry(self, local_id: str) -> Message:
        """Resend a message left in the failed state."""
        message = self._find(local_id)
        if message is None or message.status is not MessageStatus.FAILED:
            raise ValidationError(f"No failed message {local_id} to retry", ["localId"])
        message = self._update(local_id, status=MessageStatus.PENDING) or message
        return await self._deliver(message)

    async def _deliver(self, message: Message) -> Message:
        local_id = message.local_id or message.id
        try:
            server_id = await self._chat.send_message(
                message.room_id or "", message.sender_id, message.content,
            )
        except ChatBuySellError as e:
            self._notifier.error("Failed to send message", e)
            if self._failure_policy is FailurePolicy.RETAIN:
                status = MessageStatus.SENT
            else:
                status = MessageStatus.FAILED
            return self._update(local_id, status=status) or message
        return self._update(local_id, id=server_id, status=MessageStatus.SENT) or message

    def _find(self, local_id: str) -> Optional[Message]:
        for m in self._messages:
            if m.local_id == local_id:
                return m
        return None

    def _update(self, local_id: str, **changes: Any) -> Optional[Message]:
        for i, m in enumerate(self._messages):
            if m.local_id == local_id:
                self._messages[i] = m.model_copy(update=changes)
                self._emit(self.messages)
                return self._messages[i]
        # The user switched rooms while the send was in flight
        logger.debug("Message %s is no longer displayed, skipping reconcile", local_id)
        return None
