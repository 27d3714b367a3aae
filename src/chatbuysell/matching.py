"""
Matching workflow — post, search for counterparties, open a room with one.

States:
    idle -> searching -> results_shown
         -> room_creating -> room_creating_success -> idle
                          -> room_creating_failure -> results_shown

Creating a post chains straight into a search on the post's content. Only one
room creation may be in flight; the in-flight candidates are tracked by post
id so a UI can mark just that entry as busy. A creation stays in flight until
its room is active. reset() (logout, or another user logging in) abandons it,
and a room that comes back afterwards is not opened.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Union

from chatbuysell.chat import ChatAPI
from chatbuysell.errors import ChatBuySellError, ValidationError
from chatbuysell.events import Notifier, Observable
from chatbuysell.models.chat import ChatRoom
from chatbuysell.models.identity import Identity, IdentityType
from chatbuysell.models.post import MatchCandidate, MatchResults, Post, PostType
from chatbuysell.navigation import Router, Screen
from chatbuysell.posts import DEFAULT_PAGE_SIZE, PostsAPI
from chatbuysell.rooms import RoomRegistry
from chatbuysell.session import SessionStore
from chatbuysell.validation import require_text

logger = logging.getLogger(__name__)


class MatchingState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    RESULTS_SHOWN = "results_shown"
    ROOM_CREATING = "room_creating"
    ROOM_CREATING_SUCCESS = "room_creating_success"
    ROOM_CREATING_FAILURE = "room_creating_failure"


# States in which the results overlay stays on screen
RESULT_STATES = {
    MatchingState.RESULTS_SHOWN,
    MatchingState.ROOM_CREATING,
    MatchingState.ROOM_CREATING_SUCCESS,
    MatchingState.ROOM_CREATING_FAILURE,
}


def resolve_roles(identity: Identity, candidate: MatchCandidate) -> tuple[str, str]:
    """Return (buyer_id, seller_id) for a room between identity and candidate.

    Business rule, kept as the product defines it: the current user is the
    buyer if they declared themselves a buyer OR the candidate's post is a
    sell post. The two signals are unrelated fields, so a self-declared
    seller answering a sell post still ends up as the buyer.
    """
    is_buyer = identity.type is IdentityType.BUYER or candidate.post.type is PostType.WANT_TO_SELL
    if is_buyer:
        return identity.id, candidate.user.id
    return candidate.user.id, identity.id


class MatchingWorkflow(Observable):
    def __init__(
        self,
        posts: PostsAPI,
        chat: ChatAPI,
        session: SessionStore,
        registry: RoomRegistry,
        router: Router,
        notifier: Notifier,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        super().__init__()
        self._posts = posts
        self._chat = chat
        self._session = session
        self._registry = registry
        self._router = router
        self._notifier = notifier
        self._page_size = page_size
        self._state = MatchingState.IDLE
        self._results: Optional[MatchResults] = None
        self._query: Optional[str] = None
        self._search_seq = 0
        self._generation = 0
        self._in_flight: set[str] = set()

    @property
    def state(self) -> MatchingState:
        return self._state

    @property
    def candidates(self) -> list[MatchCandidate]:
        return list(self._results.matches) if self._results else []

    @property
    def results(self) -> Optional[MatchResults]:
        return self._results

    @property
    def query(self) -> Optional[str]:
        return self._query

    @property
    def results_visible(self) -> bool:
        return self._state in RESULT_STATES

    @property
    def busy_ids(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def is_busy(self, candidate: MatchCandidate) -> bool:
        return candidate.key in self._in_flight

    def _set_state(self, state: MatchingState) -> None:
        logger.debug("matching: %s -> %s", self._state.value, state.value)
        self._state = state
        self._emit(state)

    def _require_identity(self) -> Optional[Identity]:
        identity = self._session.identity
        if identity is None:
            logger.warning("Signed out, redirecting to the entry screen")
            self._router.navigate(Screen.ENTRY)
        return identity

    async def create_post(self, type: Union[PostType, str], content: str) -> Optional[Post]:
        """Publish a post, then search for matches to it right away."""
        identity = self._require_identity()
        if identity is None:
            return None
        text = require_text("content", content)
        try:
            post_type = type if isinstance(type, PostType) else PostType.parse(type)
        except ValueError:
            raise ValidationError(f"Unknown post type {type!r}", ["type"]) from None

        try:
            post = await self._posts.create(identity.id, text, post_type)
        except ChatBuySellError as e:
            self._notifier.error("Failed to create post. Please try again.", e)
            raise
        self._notifier.info("Post created successfully!")

        try:
            await self.search(post.content)
        except ChatBuySellError as e:
            # Already reported by search(); the post itself exists
            logger.debug("Match search after post %s failed: %s", post.id, e)
        return post
    async def search(self, query: str, page: int = 1, page_size: Optional[int] = None) -> list[MatchCandidate]:
        """Search for matching posts and show them in received order."""
        text = require_text("query", query)
        if self._in_flight:
            logger.warning("Room creation in progress, ignoring search %r", text)
            return self.candidates

        self._search_seq += 1
        seq = self._search_seq
        self._query = text
        self._set_state(MatchingState.SEARCHING)
        try:
            results = await self._posts.find_matches(text, page, page_size or self._page_size)
        except ChatBuySellError as e:
            if seq == self._search_seq:
                # Back to whatever the last completed search left on screen
                settled = MatchingState.RESULTS_SHOWN if self._results is not None else MatchingState.IDLE
                self._set_state(settled)
                self._notifier.error("Failed to find matching posts.", e)
            raise

        if seq != self._search_seq:
            logger.debug("Discarding results for superseded search %r", text)
            return self.candidates
        self._results = results
        self._set_state(MatchingState.RESULTS_SHOWN)
        return self.candidates

    async def select_candidate(self, candidate: MatchCandidate) -> Optional[ChatRoom]:
        """Open a chat room with the candidate's owner and make it active.

        Returns None when signed out, when another creation is in flight, when
        the backend refused (reported via the notifier), or when the session
        changed before the room came back. The candidate stays busy until the
        new room is active.
        """
        identity = self._require_identity()
        if identity is None:
            return None
        if self._in_flight:
            logger.warning("Room creation already in flight for %s", ", ".join(sorted(self._in_flight)))
            return None

        buyer_id, seller_id = resolve_roles(identity, candidate)
        generation = self._generation
        key = candidate.key
        self._in_flight.add(key)
        self._set_state(MatchingState.ROOM_CREATING)
        try:
            try:
                room = await self._chat.create_room(buyer_id, seller_id, candidate.post.id)
            except ChatBuySellError as e:
                if self._session_changed(generation, identity):
                    logger.debug("Session changed, dropping room creation failure: %s", e)
                    return None
                self._in_flight.discard(key)
                self._set_state(MatchingState.ROOM_CREATING_FAILURE)
                self._notifier.error("Failed to create chat room. Please try again.", e)
                self._set_state(MatchingState.RESULTS_SHOWN)
                return None

            if self._session_changed(generation, identity):
                logger.debug("Session changed, not opening room %s for %s", room.id, identity.id)
                return None
            self._set_state(MatchingState.ROOM_CREATING_SUCCESS)
            self._registry.upsert(room)
            try:
                await self._registry.activate(room.id)
            except ChatBuySellError as e:
                # Reported by the registry; the room is listed and can be opened later
                logger.debug("Activating new room %s failed: %s", room.id, e)
            if self._session_changed(generation, identity):
                return None
            self._in_flight.discard(key)
            self.close_results()
            return room
        finally:
            self._in_flight.discard(key)

    def close_results(self) -> None:
        self._results = None
        self._set_state(MatchingState.IDLE)

    def reset(self) -> None:
        self._generation += 1
        self._in_flight.clear()
        self._query = None
        self._search_seq += 1
        self.close_results()

    def _session_changed(self, generation: int, identity: Identity) -> bool:
        current = self._session.identity
        return generation != self._generation or current is None or current.id != identity.id
