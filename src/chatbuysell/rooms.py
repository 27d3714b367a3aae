"""
Room registry — the rooms visible to the current user and the active room.

Loads are last-request-wins by target: a response is applied only if its
room (or user, for the room list) is still the one most recently requested,
whatever order the responses arrive in.
"""

from __future__ import annotations

import logging
from typing import Optional

from chatbuysell.chat import ChatAPI
from chatbuysell.errors import ChatBuySellError
from chatbuysell.events import Notifier, Observable
from chatbuysell.messages import MessageStream
from chatbuysell.models.chat import ChatRoom
from chatbuysell.models.identity import Identity
from chatbuysell.validation import require_fields

logger = logging.getLogger(__name__)


def _merge(listed: Optional[ChatRoom], fetched: ChatRoom) -> ChatRoom:
    """Overlay the fetched room's populated fields on the listed entry."""
    if listed is None:
        return fetched
    update = {
        name: getattr(fetched, name)
        for name in fetched.model_fields_set
        if getattr(fetched, name) is not None
    }
    return listed.model_copy(update=update)


class RoomRegistry(Observable):
    def __init__(self, chat: ChatAPI, stream: MessageStream, notifier: Notifier):
        super().__init__()
        self._chat = chat
        self._stream = stream
        self._notifier = notifier
        self._rooms: list[ChatRoom] = []
        self._active: Optional[ChatRoom] = None
        self._requested_room_id: Optional[str] = None
        self._rooms_for: Optional[str] = None
        self._pending: set[str] = set()

    @property
    def rooms(self) -> list[ChatRoom]:
        return list(self._rooms)

    @property
    def active_room(self) -> Optional[ChatRoom]:
        return self._active

    @property
    def requested_room_id(self) -> Optional[str]:
        return self._requested_room_id

    @property
    def loading(self) -> bool:
        return bool(self._pending)

    def get(self, room_id: str) -> Optional[ChatRoom]:
        for room in self._rooms:
            if room.id == room_id:
                return room
        return None

    async def load_rooms(self, identity: Identity) -> list[ChatRoom]:
        """Replace the room list with the server's. On failure the old list stays."""
        require_fields("load rooms", userId=identity.id)
        self._rooms_for = identity.id
        key = f"rooms:{identity.id}"
        self._pending.add(key)
        try:
            rooms = await self._chat.list_rooms(identity.id)
        except ChatBuySellError as e:
            if self._rooms_for == identity.id:
                self._notifier.error("Failed to load chat rooms", e)
            raise
        finally:
            self._pending.discard(key)

        if self._rooms_for != identity.id:
            logger.debug("Discarding room list for %s, session changed", identity.id)
            return self.rooms

        fresh: list[ChatRoom] = []
        seen: set[str] = set()
        for room in rooms:
            if room.id not in seen:
                seen.add(room.id)
                fresh.append(room)
        # The active room stays listed even if the server has not caught up yet
        if self._active is not None and self._active.id not in seen:
            fresh.append(self._active)
        self._rooms = fresh
        self._emit(self)
        return self.rooms

    async def activate(self, room_id: str) -> Optional[ChatRoom]:
        """Load room_id with its history and make it the active room.

        Returns None when a later activate() superseded this one.
        """
        require_fields("activate room", roomId=room_id)
        self._requested_room_id = room_id
        self._stream.request(room_id)
        key = f"room:{room_id}"
        self._pending.add(key)
        self._emit(self)
        try:
            detail = await self._chat.get_room(room_id)
        except ChatBuySellError as e:
            if self._requested_room_id == room_id:
                # Fall back to the room that is still on screen
                fallback = self._active.id if self._active else None
                self._requested_room_id = fallback
                if fallback is not None:
                    self._stream.request(fallback)
                self._notifier.error("Failed to load chat room", e)
            raise
        finally:
            self._pending.discard(key)

        if self._requested_room_id != room_id:
            logger.debug("Discarding stale load of room %s, %s requested since", room_id, self._requested_room_id)
            self._emit(self)
            return None

        room = _merge(self.get(room_id), detail.chat_room)
        if not self.upsert(room):
            self._rooms = [room if r.id == room_id else r for r in self._rooms]
        self._active = room
        self._stream.replace(room_id, detail.messages)
        self._emit(self)
        return room

    def upsert(self, room: ChatRoom) -> bool:
        """Add room unless its id is already listed. Returns True if added."""
        if self.get(room.id) is not None:
            return False
        self._rooms.append(room)
        self._emit(self)
        return True

    def reset(self) -> None:
        """Forget everything, e.g. after logout."""
        self._rooms = []
        self._active = None
        self._requested_room_id = None
        self._rooms_for = None
        self._stream.clear()
        self._emit(self)
