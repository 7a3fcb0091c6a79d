"""
Identity verification for bearer tokens issued by Firebase Authentication.

Every protected request re-verifies its token; results are never cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from firebase_admin import App, auth, exceptions

from baddie_api.errors import Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    subject_id: str
    email: str
    display_name: Optional[str] = None


class IdentityVerifier(Protocol):
    """Turns an opaque bearer token into a verified identity."""

    def verify(self, token: str) -> VerifiedIdentity:
        ...


class FirebaseIdentityVerifier:
    """Verifies Firebase ID tokens with the Admin SDK."""

    def __init__(self, app: Optional[App] = None, check_revoked: bool = False):
        self.app = app
        self.check_revoked = check_revoked

    def verify(self, token: str) -> VerifiedIdentity:
        if not token:
            raise Unauthenticated("No token provided")
        try:
            claims = auth.verify_id_token(
                token, app=self.app, check_revoked=self.check_revoked
            )
        except (ValueError, exceptions.FirebaseError) as e:
            logger.warning("Rejected ID token: %s", type(e).__name__)
            raise Unauthenticated("Invalid token") from e
        subject_id = claims.get("uid") or claims.get("sub")
        if not subject_id:
            raise Unauthenticated("Invalid token")
        return VerifiedIdentity(
            subject_id=subject_id,
            email=claims.get("email") or "",
            display_name=claims.get("name"),
        )


class RejectingIdentityVerifier:
    """Rejects every token. Used when no identity service is configured."""

    def verify(self, token: str) -> VerifiedIdentity:
        if not token:
            raise Unauthenticated("No token provided")
        raise Unauthenticated("Invalid token")


class StaticIdentityVerifier:
    """Test double mapping known tokens to identities. Rejects everything else."""

    def __init__(self, tokens: Optional[Dict[str, VerifiedIdentity]] = None):
        self.tokens: Dict[str, VerifiedIdentity] = dict(tokens or {})
        self.calls = 0

    def add_token(self, token: str, identity: VerifiedIdentity) -> None:
        self.tokens[token] = identity

    def verify(self, token: str) -> VerifiedIdentity:
        self.calls += 1
        if not token:
            raise Unauthenticated("No token provided")
        identity = self.tokens.get(token)
        if identity is None:
            raise Unauthenticated("Invalid token")
        return identity
