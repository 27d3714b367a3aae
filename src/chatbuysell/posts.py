"""
Posts and matching REST API.
"""

from __future__ import annotations

from typing import Any, Optional

from chatbuysell.errors import ProtocolError
from chatbuysell.models.post import MatchResults, Post, PostInfo, PostPage, PostType
from chatbuysell.transport.http import HttpClient
from chatbuysell.validation import parse_response, require_fields

DEFAULT_PAGE_SIZE = 10


class PostsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def create(self, user_id: str, content: str, type: PostType) -> Post:
        """Create a post. The backend classifies the content, the type is kept as given."""
        require_fields("create post", userId=user_id, content=content, type=type)
        result = await self._http.post("/post/create", {
            "userId": user_id,
            "content": content,
            "type": PostType(type).value,
        })
        return parse_response(Post, result, "post")

    async def find_matches(self, content: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> MatchResults:
        """Find posts matching free text. Candidates come back ranked by the backend."""
        require_fields("find matches", content=content)
        result = await self._http.post("/matching/find", {
            "content": content,
            "page": page,
            "pageSize": page_size,
        })
        if not isinstance(result, dict) or "matches" not in result:
            raise ProtocolError("Response is missing 'matches'", {"response": result})
        return parse_response(MatchResults, result)

    async def list_by_type(
        self,
        type: PostType,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        *,
        category: Optional[str] = None,
        location: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
    ) -> PostPage:
        """Browse posts of one type, newest first."""
        params: dict[str, Any] = {"page": page, "pageSize": page_size}
        if category:
            params["category"] = category
        if location:
            params["location"] = location
        if min_price:
            params["minPrice"] = min_price
        if max_price:
            params["maxPrice"] = max_price
        result = await self._http.get(f"/post/type/{PostType(type).value}", params=params)
        return parse_response(PostPage, result)

    async def classify(self, content: str) -> PostInfo:
        require_fields("classify", content=content)
        result = await self._http.post("/nlp/classify", {"content": content})
        return parse_response(PostInfo, result)
