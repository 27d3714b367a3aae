"""
Auth module — Facebook OAuth through the backend.

Step 1 is a browser redirect to the authorization entry point; step 2 trades
the callback's code/state for the user profile.
"""

from chatbuysell.errors import AuthError, ChatBuySellError
from chatbuysell.models.identity import Identity
from chatbuysell.transport.http import HttpClient
from chatbuysell.validation import parse_response, require_fields

AUTHORIZE_PATH = "/auth/facebook"
CALLBACK_PATH = "/auth/callback"


class AuthAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    def authorize_url(self) -> str:
        """Step 1: where the browser must go to start the login."""
        return self._http.url_for(AUTHORIZE_PATH)

    async def complete(self, code: str, state: str) -> Identity:
        """Step 2: exchange the callback's code and state for the Identity."""
        require_fields("auth callback", code=code, state=state)
        try:
            result = await self._http.get(CALLBACK_PATH, params={"code": code, "state": state})
        except ChatBuySellError as e:
            raise AuthError(f"Failed to authenticate: {e}", details=e.details) from e
        return parse_response(Identity, result, "user")
