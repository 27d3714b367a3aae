"""Shared fakes: in-process stand-ins for the REST APIs."""

import asyncio
from typing import Any, Optional

import pytest

from chatbuysell.config import FailurePolicy
from chatbuysell.errors import BackendError
from chatbuysell.events import Notifier
from chatbuysell.matching import MatchingWorkflow
from chatbuysell.messages import MessageStream
from chatbuysell.models.chat import ChatRoom, Message, RoomDetail
from chatbuysell.models.identity import Identity
from chatbuysell.models.post import MatchCandidate, MatchResults, Post
from chatbuysell.navigation import Router
from chatbuysell.rooms import RoomRegistry
from chatbuysell.session import SessionStore
from chatbuysell.storage import MemoryStore
from chatbuysell.view import ViewCoordinator

AUTHORIZE_URL = "http://backend.test/api/auth/facebook"


def make_identity(id: str = "u1", type: str = "buyer", **kw: Any) -> Identity:
    return Identity(id=id, username=kw.pop("username", f"user-{id}"), type=type, **kw)


def make_room(id: str, **kw: Any) -> ChatRoom:
    return ChatRoom(id=id, **kw)


def make_message(id: str, room_id: str, sender_id: str, content: str = "hi") -> Message:
    return Message(id=id, room_id=room_id, sender_id=sender_id, content=content)


def make_candidate(post_id: str, user_id: str, post_type: str = "ban", score: float = 0.5,
                   content: str = "Bicycle") -> MatchCandidate:
    return MatchCandidate.model_validate({
        "post": {"id": post_id, "userId": user_id, "content": content, "type": post_type},
        "user": {"id": user_id, "username": f"user-{user_id}"},
        "score": score,
    })


def backend_error(status: int = 500) -> BackendError:
    return BackendError(status, {"error": "boom"})


class FakeAuthAPI:
    def __init__(self, user: Optional[Identity] = None):
        self.user = user
        self.calls: list[tuple[str, str]] = []

    def authorize_url(self) -> str:
        return AUTHORIZE_URL

    async def complete(self, code: str, state: str) -> Identity:
        self.calls.append((code, state))
        assert self.user is not None
        return self.user


class FakeChatAPI:
    """Scriptable chat API. `gates` hold responses until an event is set."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.rooms: list[ChatRoom] = []
        self.details: dict[str, RoomDetail] = {}
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.created: Optional[ChatRoom] = None
        self._next_id = 0

    def add_room(self, room: ChatRoom, messages: Optional[list[Message]] = None) -> None:
        self.details[room.id] = RoomDetail(chat_room=room, messages=messages or [])

    async def _gate(self, key: str) -> None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        error = self.errors.get(key)
        if error is not None:
            raise error

    async def list_rooms(self, user_id: str) -> list[ChatRoom]:
        self.calls.append(("list_rooms", user_id))
        await self._gate("list_rooms")
        return list(self.rooms)

    async def get_room(self, room_id: str) -> RoomDetail:
        self.calls.append(("get_room", room_id))
        await self._gate(f"get_room:{room_id}")
        return self.details[room_id]

    async def create_room(self, buyer_id: str, seller_id: str, post_id: str) -> ChatRoom:
        self.calls.append(("create_room", buyer_id, seller_id, post_id))
        await self._gate("create_room")
        room = self.created or ChatRoom(id=f"room-{post_id}", buyer_id=buyer_id,
                                        seller_id=seller_id, post_id=post_id)
        self.details.setdefault(room.id, RoomDetail(chat_room=room))
        return room

    async def send_message(self, room_id: str, sender_id: str, content: str) -> str:
        self.calls.append(("send_message", room_id, sender_id, content))
        await self._gate("send_message")
        self._next_id += 1
        return f"srv-{self._next_id}"

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class FakePostsAPI:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.matches: list[MatchCandidate] = []
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}

    async def _gate(self, key: str) -> None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.errors:
            raise self.errors[key]

    async def create(self, user_id: str, content: str, type: Any) -> Post:
        self.calls.append(("create", user_id, content, type))
        await self._gate("create")
        return Post(id="p-new", owner_id=user_id, content=content, type=type)

    async def find_matches(self, content: str, page: int = 1, page_size: int = 10) -> MatchResults:
        self.calls.append(("find_matches", content, page, page_size))
        await self._gate("find_matches")
        return MatchResults(matches=list(self.matches))

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class App:
    """Every store wired together over the fakes."""

    def __init__(self, store: Optional[MemoryStore] = None,
                 failure_policy: FailurePolicy = FailurePolicy.MARK_FAILED):
        self.store = store if store is not None else MemoryStore()
        self.redirects: list[str] = []
        self.auth = FakeAuthAPI()
        self.chat = FakeChatAPI()
        self.posts = FakePostsAPI()
        self.notifier = Notifier()
        self.router = Router()
        self.session = SessionStore(self.store, self.auth, redirect=self.redirects.append)
        self.stream = MessageStream(self.chat, self.notifier, failure_policy)
        self.registry = RoomRegistry(self.chat, self.stream, self.notifier)
        self.matching = MatchingWorkflow(self.posts, self.chat, self.session, self.registry,
                                         self.router, self.notifier)
        self.view = ViewCoordinator(self.session, self.registry, self.stream, self.matching,
                                    self.router, self.notifier)

    def errors(self) -> list[str]:
        return [n.message for n in self.notifier.pending if n.level == "error"]


@pytest.fixture
def app() -> App:
    return App()


@pytest.fixture
def signed_in() -> App:
    app = App()
    app.session.complete_login(make_identity("me", "buyer"))
    return app
