"""
Chat rooms and messages REST API.

History is loaded on demand; there is no push channel.
"""

from __future__ import annotations

from typing import Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from chatbuysell.errors import ProtocolError, ValidationError
from chatbuysell.models.chat import ChatRoom, MessagePage, MessageType, RoomDetail
from chatbuysell.transport.http import HttpClient
from chatbuysell.validation import parse_response, require_fields

_ROOM_LIST = TypeAdapter(list[ChatRoom])


class ChatAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def list_rooms(self, user_id: str) -> list[ChatRoom]:
        """Rooms the user participates in, in server order."""
        require_fields("list rooms", userId=user_id)
        result = await self._http.get("/chat/rooms", params={"userId": user_id})
        if not isinstance(result, dict):
            raise ProtocolError("Response is not an object", {"response": result})
        try:
            return _ROOM_LIST.validate_python(result.get("rooms") or [])
        except PydanticValidationError as e:
            raise ProtocolError(f"Malformed rooms in response: {e}", {"response": result}) from e

    async def get_room(self, room_id: str) -> RoomDetail:
        """Room details and full message history as one unit."""
        require_fields("get room", roomId=room_id)
        result = await self._http.get(f"/chat/room/{room_id}")
        return parse_response(RoomDetail, result)

    async def create_room(self, buyer_id: str, seller_id: str, post_id: str) -> ChatRoom:
        require_fields("create room", buyerId=buyer_id, sellerId=seller_id, postId=post_id)
        result = await self._http.post("/chat/room/create", {
            "buyerId": buyer_id,
            "sellerId": seller_id,
            "postId": post_id,
        })
        return parse_response(ChatRoom, result, "chatRoom")

    async def send_message(self, room_id: str, sender_id: str, content: str) -> str:
        """Send a message. Returns the server-assigned message id."""
        require_fields("send message", roomId=room_id, senderId=sender_id, content=content)
        result = await self._http.post("/chat/message", {
            "roomId": room_id,
            "senderId": sender_id,
            "content": content,
        })
        if not isinstance(result, dict) or not result.get("messageId"):
            raise ProtocolError("Response is missing 'messageId'", {"response": result})
        return str(result["messageId"])

    async def classify_message(self, message_id: str, message_type: Union[MessageType, str]) -> None:
        """Label a sent message for search."""
        require_fields("classify message", messageId=message_id, messageType=message_type)
        try:
            label = MessageType(message_type)
        except ValueError:
            raise ValidationError(f"Unknown message type {message_type!r}", ["messageType"]) from None
        result = await self._http.post("/chat/classify", {
            "messageId": message_id,
            "messageType": label.value,
        })
        if not isinstance(result, dict) or not result.get("success"):
            raise ProtocolError("Classification was not acknowledged", {"response": result})

    async def search_messages(self, query: str, page: int = 1, page_size: int = 10) -> MessagePage:
        """Full-text search over chat messages."""
        require_fields("search messages", q=query)
        result = await self._http.get("/search/chat", params={"q": query, "page": page, "pageSize": page_size})
        return parse_response(MessagePage, result)
