"""Stateless session credentials.

Sessions are RS256 JWTs signed with the server's private key and verified
with its public key. Every payload carries ``schemaVersion``; bumping
``CURRENT_SESSION_SCHEMA_VERSION`` invalidates every outstanding session.

Payload structure:
    {
        "schemaVersion": 4,
        "ip": "203.0.113.7",
        "userAgent": "Mozilla/5.0 ...",
        "orgId": "org-uuid",
        "userId": "user-uuid",
        "roleId": 2,
        "displayName": "Jane D.",
        "iat": 1234567890,
        "exp": 1234654290
    }
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import structlog
from jose import JWTError, jwt

from core.config import settings

logger = structlog.get_logger()

CURRENT_SESSION_SCHEMA_VERSION = 4
SESSION_ALGORITHM = "RS256"


class SessionKeyError(RuntimeError):
    """Signing or verification key is not configured."""


@dataclass(frozen=True)
class SessionPayload:
    """Verified contents of a session credential."""

    schema_version: int
    ip: str
    user_agent: str
    org_id: UUID
    user_id: UUID
    role_id: int
    issued_at: datetime
    expires_at: datetime
    display_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "orgId": str(self.org_id),
            "userId": str(self.user_id),
            "roleId": self.role_id,
            "displayName": self.display_name,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }


class SessionCodec:
    """Signs and verifies session credentials.

    Keys are read lazily so that an unconfigured codec can be constructed;
    ``SessionKeyError`` is raised only when signing or verification is
    attempted without the matching key.
    """

    def __init__(
        self,
        private_key: str | None = None,
        public_key: str | None = None,
        expiry_hours: int | None = None,
        schema_version: int = CURRENT_SESSION_SCHEMA_VERSION,
    ) -> None:
        self._private_key = private_key if private_key is not None else settings.jwt_private_key
        self._public_key = public_key if public_key is not None else settings.jwt_public_key
        self._expiry_hours = expiry_hours if expiry_hours is not None else settings.session_expiry_hours
        self._schema_version = schema_version

    @property
    def schema_version(self) -> int:
        return self._schema_version

    @property
    def max_age_seconds(self) -> int:
        return self._expiry_hours * 60 * 60

    def create_session_token(
        self,
        ip: str,
        user_agent: str,
        org_id: UUID,
        user_id: UUID,
        role_id: int,
        display_name: str | None = None,
    ) -> str:
        """
        Sign a new session credential.

        Raises:
            SessionKeyError: If no private key is configured
        """
        if not self._private_key:
            raise SessionKeyError("Session private key is not configured")

        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "schemaVersion": self._schema_version,
            "ip": ip,
            "userAgent": user_agent,
            "orgId": str(org_id),
            "userId": str(user_id),
            "roleId": int(role_id),
            "iat": now,
            "exp": now + timedelta(hours=self._expiry_hours),
        }
        if display_name:
            payload["displayName"] = display_name

        return str(jwt.encode(payload, self._private_key, algorithm=SESSION_ALGORITHM))

    def verify_session_token(self, token: str) -> SessionPayload | None:
        """
        Verify signature, expiry and schema version.

        Returns:
            SessionPayload if valid, None for any invalid, expired, stale or
            malformed token

        Raises:
            SessionKeyError: If no public key is configured
        """
        if not self._public_key:
            raise SessionKeyError("Session public key is not configured")

        try:
            claims = jwt.decode(token, self._public_key, algorithms=[SESSION_ALGORITHM])
        except JWTError:
            return None

        version = claims.get("schemaVersion")
        if version != self._schema_version:
            logger.info(
                "session_schema_version_mismatch",
                token_version=version,
                current_version=self._schema_version,
            )
            return None

        try:
            return SessionPayload(
                schema_version=version,
                ip=str(claims.get("ip", "")),
                user_agent=str(claims.get("userAgent", "")),
                org_id=UUID(claims["orgId"]),
                user_id=UUID(claims["userId"]),
                role_id=int(claims["roleId"]),
                display_name=claims.get("displayName"),
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError):
            return None
