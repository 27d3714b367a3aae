"""
Session store — the current Identity and its persistence across runs.

One instance is constructed per application and handed to every component
that needs the identity. Subscribers are called with the new Identity, or
None after logout.
"""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from chatbuysell.auth import AuthAPI
from chatbuysell.events import Observable
from chatbuysell.models.identity import Identity
from chatbuysell.storage import LocalStore

SESSION_KEY = "user"

logger = logging.getLogger(__name__)


class SessionStore(Observable):
    def __init__(
        self,
        store: LocalStore,
        auth: AuthAPI,
        redirect: Callable[[str], object] = webbrowser.open,
    ):
        super().__init__()
        self._store = store
        self._auth = auth
        self._redirect = redirect
        self._identity: Optional[Identity] = None
        self._loading = True
        self._restored = False

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def authenticated(self) -> bool:
        return self._identity is not None

    def restore(self) -> Optional[Identity]:
        """Load the persisted Identity. Runs once; later calls return the same state."""
        if self._restored:
            return self._identity
        identity = None
        raw = self._store.get(SESSION_KEY)
        if raw is not None:
            try:
                identity = Identity.model_validate_json(raw)
            except PydanticValidationError as e:
                logger.warning("Discarding unreadable stored session: %s", e.errors()[0]["msg"])
                self._store.remove(SESSION_KEY)
        self._identity = identity
        self._restored = True
        self._loading = False
        self._emit(identity)
        return identity

    def begin_login(self) -> None:
        """Send the user to the identity provider. Control leaves the app."""
        url = self._auth.authorize_url()
        logger.info("Redirecting to %s", url)
        self._redirect(url)

    def complete_login(self, identity: Identity) -> None:
        # Store first: if the write fails the in-memory identity is untouched
        self._store.set(SESSION_KEY, identity.model_dump_json(by_alias=True))
        self._identity = identity
        self._loading = False
        self._restored = True
        self._emit(identity)

    async def complete_callback(self, code: str, state: str) -> Identity:
        """Finish the OAuth round-trip and log in with the returned user."""
        identity = await self._auth.complete(code, state)
        self.complete_login(identity)
        return identity

    def logout(self) -> None:
        self._store.remove(SESSION_KEY)
        self._identity = None
        self._emit(None)
