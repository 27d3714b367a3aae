"""
Identity models — the authenticated user's profile.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel


class IdentityType(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    UNSPECIFIED = "unspecified"


class Identity(BaseModel):
    id: str
    username: str = ""
    email: Optional[str] = None
    avatar: Optional[str] = None
    type: IdentityType = IdentityType.UNSPECIFIED
    uid: Optional[str] = None           # Provider-side id (Facebook)
    access_token: Optional[str] = None

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    @field_validator("type", mode="before")
    @classmethod
    def _blank_type(cls, value: Any) -> Any:
        # The backend stores "" until the user declares a role.
        if value in (None, ""):
            return IdentityType.UNSPECIFIED
        return value

    @property
    def display_name(self) -> str:
        return self.username or self.email or "User"


class Participant(BaseModel):
    """The counterparty attached to a match candidate."""
    id: str
    username: str = ""
    avatar: Optional[str] = None
