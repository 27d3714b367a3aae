"""
View coordinator — composes the stores into what is on screen.

Navigation rule: losing the session while the chat screen is mounted goes to
the entry screen; gaining one while the entry screen is mounted goes to chat.
Entering the chat screen loads the room list unless autoload_rooms is off.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from chatbuysell.errors import ChatBuySellError
from chatbuysell.events import Notification, Notifier
from chatbuysell.matching import MatchingWorkflow
from chatbuysell.messages import MessageStream
from chatbuysell.models.chat import ChatRoom, Message
from chatbuysell.models.identity import Identity
from chatbuysell.models.post import MatchCandidate
from chatbuysell.navigation import Router, Screen
from chatbuysell.rooms import RoomRegistry
from chatbuysell.session import SessionStore

logger = logging.getLogger(__name__)


class CandidateView:
    __slots__ = ("candidate", "busy")

    def __init__(self, candidate: MatchCandidate, busy: bool):
        self.candidate = candidate
        self.busy = busy

    def __repr__(self) -> str:
        return f"CandidateView(post={self.candidate.post.id!r}, busy={self.busy})"


class ViewState:
    """Snapshot of everything a renderer needs."""

    __slots__ = (
        "screen", "identity", "rooms", "active_room", "messages",
        "results_visible", "candidates", "notifications",
    )

    def __init__(
        self,
        screen: Screen,
        identity: Optional[Identity] = None,
        rooms: Optional[list[ChatRoom]] = None,
        active_room: Optional[ChatRoom] = None,
        messages: Optional[list[Message]] = None,
        results_visible: bool = False,
        candidates: Optional[list[CandidateView]] = None,
        notifications: Optional[list[Notification]] = None,
    ):
        self.screen = screen
        self.identity = identity
        self.rooms = rooms or []
        self.active_room = active_room
        self.messages = messages or []
        self.results_visible = results_visible
        self.candidates = candidates or []
        self.notifications = notifications or []

    def __repr__(self) -> str:
        return f"ViewState(screen={self.screen.value!r}, rooms={len(self.rooms)}, results={self.results_visible})"


class ViewCoordinator:
    def __init__(
        self,
        session: SessionStore,
        registry: RoomRegistry,
        stream: MessageStream,
        matching: MatchingWorkflow,
        router: Router,
        notifier: Notifier,
        autoload_rooms: bool = True,
    ):
        self._session = session
        self._registry = registry
        self._stream = stream
        self._matching = matching
        self._router = router
        self._notifier = notifier
        self._autoload_rooms = autoload_rooms
        self._identity_id: Optional[str] = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._cleanups = [
            session.subscribe(self._on_session),
            router.subscribe(self._on_route),
        ]

    @property
    def screen(self) -> Screen:
        return self._router.current

    def start(self) -> Screen:
        """Restore the session and route to the first screen."""
        identity = self._session.restore()
        # restore() is a no-op the second time; route from the current state anyway
        self._on_session(identity)
        return self._router.current

    def login(self) -> None:
        self._session.begin_login()

    def logout(self) -> None:
        self._session.logout()

    def render(self) -> ViewState:
        if self._session.loading:
            return ViewState(Screen.LOADING)
        identity = self._session.identity
        if identity is None or self._router.current is not Screen.CHAT:
            return ViewState(Screen.ENTRY, notifications=self._notifier.pending)
        results_visible = self._matching.results_visible
        candidates = [
            CandidateView(c, self._matching.is_busy(c)) for c in self._matching.candidates
        ] if results_visible else []
        return ViewState(
            Screen.CHAT,
            identity=identity,
            rooms=self._registry.rooms,
            active_room=self._registry.active_room,
            messages=self._stream.messages,
            results_visible=results_visible,
            candidates=candidates,
            notifications=self._notifier.pending,
        )

    async def settle(self) -> None:
        """Wait for background loads started by navigation."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def close(self) -> None:
        for cleanup in self._cleanups:
            cleanup()
        self._cleanups = []

    def _on_session(self, identity: Optional[Identity]) -> None:
        if identity is None:
            self._identity_id = None
            self._registry.reset()
            self._matching.reset()
            if self._router.current is not Screen.ENTRY:
                self._router.navigate(Screen.ENTRY)
            return

        if self._identity_id is not None and self._identity_id != identity.id:
            # A different user logged in over the old session
            self._registry.reset()
            self._matching.reset()
            if self._router.current is Screen.CHAT:
                self._load_rooms(identity)
        self._identity_id = identity.id
        if self._router.current is not Screen.CHAT:
            self._router.navigate(Screen.CHAT)

    def _on_route(self, screen: Screen) -> None:
        identity = self._session.identity
        if screen is Screen.CHAT and identity is not None:
            self._load_rooms(identity)

    def _load_rooms(self, identity: Identity) -> None:
        if not self._autoload_rooms:
            return

        async def _run() -> None:
            try:
                await self._registry.load_rooms(identity)
            except ChatBuySellError as e:
                # The registry already raised a notification
                logger.debug("Room list load for %s failed: %s", identity.id, e)

        try:
            task = asyncio.get_running_loop().create_task(_run())
        except RuntimeError:
            logger.debug("No running event loop, room list not loaded")
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
