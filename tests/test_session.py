import pytest

from chatbuysell.session import SESSION_KEY, SessionStore
from chatbuysell.storage import MemoryStore

from conftest import AUTHORIZE_URL, FakeAuthAPI, make_identity

MALFORMED = [
    "{not json",
    "null",
    "[]",
    '"just a string"',
    '{"username": "no id"}',
    '{"id": "u1", "type": "admin"}',
]


def make_session(store, user=None):
    redirects = []
    session = SessionStore(store, FakeAuthAPI(user), redirect=redirects.append)
    return session, redirects


class TestRestore:
    def test_starts_loading_and_anonymous(self):
        session, _ = make_session(MemoryStore())
        assert session.loading
        assert session.restore() is None
        assert not session.loading
        assert not session.authenticated

    def test_restores_persisted_identity(self):
        identity = make_identity("u1", "seller")
        store = MemoryStore({SESSION_KEY: identity.model_dump_json(by_alias=True)})
        session, _ = make_session(store)
        assert session.restore() == identity
        assert session.authenticated

    @pytest.mark.parametrize("payload", MALFORMED)
    def test_malformed_payload_clears_entry(self, payload):
        store = MemoryStore({SESSION_KEY: payload})
        session, _ = make_session(store)
        assert session.restore() is None
        assert SESSION_KEY not in store
        # Idempotent
        assert session.restore() is None
        assert session.identity is None
        assert not session.loading

    def test_notifies_subscribers_once_resolved(self):
        session, _ = make_session(MemoryStore())
        seen = []
        session.subscribe(seen.append)
        session.restore()
        assert seen == [None]


class TestLoginLogout:
    def test_begin_login_redirects_without_mutation(self):
        store = MemoryStore()
        session, redirects = make_session(store)
        session.restore()
        session.begin_login()
        assert redirects == [AUTHORIZE_URL]
        assert session.identity is None
        assert SESSION_KEY not in store

    def test_complete_login_persists_and_overwrites(self):
        store = MemoryStore()
        session, _ = make_session(store)
        session.complete_login(make_identity("u1"))
        session.complete_login(make_identity("u2"))
        assert session.identity.id == "u2"
        assert '"u2"' in store.get(SESSION_KEY)

        # A fresh load sees the persisted identity
        reloaded, _ = make_session(store)
        assert reloaded.restore().id == "u2"

    def test_failed_write_leaves_identity_untouched(self):
        class BrokenStore(MemoryStore):
            def set(self, key, value):
                raise OSError("disk full")

        session, _ = make_session(BrokenStore())
        session.restore()
        with pytest.raises(OSError):
            session.complete_login(make_identity("u1"))
        assert session.identity is None

    def test_logout_clears_both(self):
        store = MemoryStore()
        session, _ = make_session(store)
        seen = []
        session.subscribe(seen.append)
        session.complete_login(make_identity("u1"))
        session.logout()
        assert session.identity is None
        assert SESSION_KEY not in store
        assert seen[-1] is None

    @pytest.mark.asyncio
    async def test_complete_callback(self):
        store = MemoryStore()
        user = make_identity("u7", "buyer")
        session, _ = make_session(store, user)
        assert await session.complete_callback("code", "state") == user
        assert session.identity == user
        assert store.get(SESSION_KEY) is not None
