"""
Post and matching models.

Post types keep the backend's wire values: "mua" (buy) and "ban" (sell).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from chatbuysell.models.common import NullableList
from chatbuysell.models.identity import Participant


class PostType(str, Enum):
    WANT_TO_BUY = "mua"
    WANT_TO_SELL = "ban"

    @classmethod
    def parse(cls, value: str) -> PostType:
        """Accept wire values as well as "buy"/"sell"."""
        aliases = {"buy": cls.WANT_TO_BUY, "sell": cls.WANT_TO_SELL}
        key = value.strip().lower()
        return aliases.get(key) or cls(key)

    @property
    def label(self) -> str:
        return "Buying" if self is PostType.WANT_TO_BUY else "Selling"


class Post(BaseModel):
    id: str
    owner_id: Optional[str] = Field(default=None, alias="userId")
    content: str
    type: PostType
    category: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    condition: Optional[str] = None
    keywords: NullableList[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class PostInfo(BaseModel):
    """NLP classification of free-text post content."""
    type: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None
    condition: Optional[str] = None
    keywords: Optional[list[str]] = None


class MatchCandidate(BaseModel):
    post: Post
    user: Participant
    score: float = Field(ge=0.0, le=1.0)

    @property
    def key(self) -> str:
        return self.post.id


class MatchResults(BaseModel):
    matches: NullableList[MatchCandidate] = Field(default_factory=list)
    total: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    post_info: Optional[PostInfo] = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class PostPage(BaseModel):
    posts: NullableList[Post] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    model_config = {"populate_by_name": True, "alias_generator": to_camel}
