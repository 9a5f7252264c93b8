"""Identity token model."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import JWTError


@dataclass(frozen=True)
class IDClaims:
    """Identity claims carried by an ID token."""

    subject: str
    issuer: str
    org_id: str = ""
    email: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IDClaims":
        """Create claims from a decoded JWT payload."""
        return cls(
            subject=data.get("sub", ""),
            issuer=data.get("iss", ""),
            org_id=data.get("org_id", ""),
            email=data.get("email", ""),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Token:
    """Session token produced by the login flow.

    The login flow verifies the ID token before handing it over, so claims are
    read here without signature verification.
    """

    id_token: str
    access_token: str = ""
    refresh_token: str = ""

    def id_claims(self) -> Optional[IDClaims]:
        """Decode the ID token claims, or None if the token is malformed."""
        if not self.id_token:
            return None
        try:
            return IDClaims.from_dict(jwt.get_unverified_claims(self.id_token))
        except JWTError:
            return None
