"""
chatbuysell — Chat Buy Sell client for Python.

Connects buyers and sellers: log in, post what you want to buy or sell,
get matched, and chat.
REST client plus the session, room, message and matching stores behind it.
"""

from chatbuysell.client import ChatBuySell, AsyncChatBuySell
from chatbuysell.config import FailurePolicy, Settings, load_settings
from chatbuysell.session import SessionStore
from chatbuysell.storage import JsonFileStore, MemoryStore
from chatbuysell.rooms import RoomRegistry
from chatbuysell.messages import MessageStream
from chatbuysell.matching import MatchingState, MatchingWorkflow
from chatbuysell.navigation import Screen
from chatbuysell.view import ViewCoordinator, ViewState
from chatbuysell.errors import (
    ChatBuySellError, ValidationError, BackendError, ConnectionError, ProtocolError, AuthError,
)

__version__ = "0.1.0"
__all__ = [
    "ChatBuySell",
    "AsyncChatBuySell",
    "FailurePolicy",
    "Settings",
    "load_settings",
    "SessionStore",
    "JsonFileStore",
    "MemoryStore",
    "RoomRegistry",
    "MessageStream",
    "MatchingState",
    "MatchingWorkflow",
    "Screen",
    "ViewCoordinator",
    "ViewState",
    "ChatBuySellError",
    "ValidationError",
    "BackendError",
    "ConnectionError",
    "ProtocolError",
    "AuthError",
]
