"""
ChatBuySell / AsyncChatBuySell — main client objects.

Constructs one instance of every store, wired together, over a single HTTP
client.
"""

import asyncio
import webbrowser
from typing import Any, Callable, Optional

import httpx

from chatbuysell.auth import AuthAPI
from chatbuysell.chat import ChatAPI
from chatbuysell.config import FailurePolicy, Settings
from chatbuysell.errors import AuthError
from chatbuysell.events import Notifier
from chatbuysell.matching import MatchingWorkflow
from chatbuysell.messages import MessageStream
from chatbuysell.models.chat import ChatRoom, Message
from chatbuysell.models.identity import Identity
from chatbuysell.models.post import MatchCandidate, Post, PostType
from chatbuysell.navigation import Router, Screen
from chatbuysell.posts import DEFAULT_PAGE_SIZE, PostsAPI
from chatbuysell.rooms import RoomRegistry
from chatbuysell.session import SessionStore
from chatbuysell.storage import JsonFileStore, LocalStore
from chatbuysell.transport.http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S, HttpClient
from chatbuysell.view import ViewCoordinator, ViewState


class AsyncChatBuySell:
    """Async Chat Buy Sell client (primary)."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        store: Optional[LocalStore] = None,
        redirect: Callable[[str], object] = webbrowser.open,
        failure_policy: FailurePolicy = FailurePolicy.MARK_FAILED,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        autoload_rooms: bool = True,
    ):
        self.http = HttpClient(base_url=base_url, timeout=timeout, transport=transport)
        self.auth = AuthAPI(self.http)
        self.posts = PostsAPI(self.http)
        self.chat = ChatAPI(self.http)

        self.notifier = Notifier()
        self.router = Router()
        self.session = SessionStore(store if store is not None else JsonFileStore(), self.auth, redirect)
        self.messages = MessageStream(self.chat, self.notifier, failure_policy)
        self.rooms = RoomRegistry(self.chat, self.messages, self.notifier)
        self.matching = MatchingWorkflow(
            self.posts, self.chat, self.session, self.rooms, self.router, self.notifier,
            page_size=page_size,
        )
        self.view = ViewCoordinator(
            self.session, self.rooms, self.messages, self.matching, self.router, self.notifier,
            autoload_rooms=autoload_rooms,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "AsyncChatBuySell":
        return cls(
            base_url=settings.base_url,
            store=kwargs.pop("store", None) or JsonFileStore(settings.store_path),
            failure_policy=settings.failure_policy,
            page_size=settings.page_size,
            timeout=settings.timeout,
            **kwargs,
        )

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.identity

    def start(self) -> Screen:
        """Restore the saved session and route to the first screen."""
        return self.view.start()

    def render(self) -> ViewState:
        return self.view.render()

    def login(self) -> None:
        self.view.login()

    async def complete_login(self, code: str, state: str) -> Identity:
        return await self.session.complete_callback(code, state)

    def logout(self) -> None:
        self.view.logout()

    async def load_rooms(self) -> list[ChatRoom]:
        return await self.rooms.load_rooms(self._ensure_identity())

    async def open_room(self, room_id: str) -> Optional[ChatRoom]:
        self._ensure_identity()
        return await self.rooms.activate(room_id)

    async def send(self, content: str) -> Message:
        """Optimistically send to the active room."""
        identity = self._ensure_identity()
        return await self.messages.send_optimistic(content, identity.id)

    async def create_post(self, type: PostType, content: str) -> Optional[Post]:
        return await self.matching.create_post(type, content)

    async def search(self, query: str) -> list[MatchCandidate]:
        return await self.matching.search(query)

    async def select(self, candidate: MatchCandidate) -> Optional[ChatRoom]:
        return await self.matching.select_candidate(candidate)

    async def settle(self) -> None:
        await self.view.settle()

    async def close(self) -> None:
        await self.view.settle()
        self.view.close()
        await self.http.close()

    async def __aenter__(self) -> "AsyncChatBuySell":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def _ensure_identity(self) -> Identity:
        identity = self.session.identity
        if identity is None:
            raise AuthError("Not logged in. Run the login flow first.", code="not_authenticated")
        return identity


class ChatBuySell:
    """Sync wrapper around AsyncChatBuySell. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._loop = asyncio.new_event_loop()
        self._async = AsyncChatBuySell(**kwargs)

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def identity(self) -> Optional[Identity]:
        return self._async.identity

    @property
    def client(self) -> AsyncChatBuySell:
        return self._async

    def start(self) -> Screen:
        async def _start() -> Screen:
            screen = self._async.start()
            await self._async.settle()
            return screen
        return self._run(_start())

    def render(self) -> ViewState:
        return self._async.render()

    def login(self) -> None:
        self._async.login()

    def complete_login(self, code: str, state: str) -> Identity:
        return self._run(self._async.complete_login(code, state))

    def logout(self) -> None:
        self._async.logout()

    def load_rooms(self) -> list[ChatRoom]:
        return self._run(self._async.load_rooms())

    def open_room(self, room_id: str) -> Optional[ChatRoom]:
        return self._run(self._async.open_room(room_id))

    def send(self, content: str) -> Message:
        return self._run(self._async.send(content))

    def create_post(self, type: PostType, content: str) -> Optional[Post]:
        return self._run(self._async.create_post(type, content))

    def search(self, query: str) -> list[MatchCandidate]:
        return self._run(self._async.search(query))

    def select(self, candidate: MatchCandidate) -> Optional[ChatRoom]:
        return self._run(self._async.select(candidate))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
