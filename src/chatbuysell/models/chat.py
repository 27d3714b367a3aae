"""
Chat room and message models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from chatbuysell.models.common import NullableList
from chatbuysell.models.post import Post


class RoomRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"


class MessageStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class MessageType(str, Enum):
    """Labels a message can be classified with for search."""
    QUESTION = "question"
    NEGOTIATION = "negotiation"
    AGREEMENT = "agreement"
    INQUIRY = "inquiry"
    OTHER = "other"


class ChatRoom(BaseModel):
    id: str
    title: Optional[str] = None
    type: Optional[RoomRole] = None
    post: Optional[Post] = None
    last_message: Optional[str] = None
    updated_at: Optional[datetime] = None
    buyer_id: Optional[str] = None
    seller_id: Optional[str] = None
    post_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    def role_for(self, identity_id: str) -> Optional[RoomRole]:
        if self.type is not None:
            return self.type
        if self.buyer_id == identity_id:
            return RoomRole.BUYER
        if self.seller_id == identity_id:
            return RoomRole.SELLER
        return None


class Message(BaseModel):
    id: str
    room_id: Optional[str] = None
    sender_id: str
    content: str
    created_at: Optional[datetime] = None
    # Client-only bookkeeping for optimistic sends
    status: MessageStatus = Field(default=MessageStatus.SENT, exclude=True)
    local_id: Optional[str] = Field(default=None, exclude=True)

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    def is_from(self, identity_id: Optional[str]) -> bool:
        return identity_id is not None and self.sender_id == identity_id


class RoomDetail(BaseModel):
    """GET chat room response: the room and its history as one unit."""
    chat_room: ChatRoom
    messages: NullableList[Message] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class MessagePage(BaseModel):
    messages: NullableList[Message] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    model_config = {"populate_by_name": True, "alias_generator": to_camel}
