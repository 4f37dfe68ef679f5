"""Signed bearer tokens for authenticated users."""

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from loyalty.core.config import Settings

logger = logging.getLogger(__name__)

AUTHENTICATION_SCOPE = "authentication"


class TokenPayload(BaseModel):
    """Decoded token claims."""

    sub: str  # user id
    exp: datetime
    iat: datetime
    scope: str
    roles: list[str] = []


class JWTService:
    """Issues and checks HS256 tokens scoped to authentication.

    The signing secret is fixed at construction; there is no process-wide
    key.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
    ):
        if not secret_key:
            raise ValueError("JWT secret key must not be empty")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=access_token_expire_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTService":
        return cls(
            secret_key=settings.secret_key,
            access_token_expire_minutes=settings.access_token_expire_minutes,
        )

    def issue(
        self,
        user_id: str,
        roles: list[str] | None = None,
        scope: str = AUTHENTICATION_SCOPE,
    ) -> tuple[str, datetime]:
        """Sign a token for ``user_id``.

        @param user_id - Token subject
        @param roles - Roles carried in the token
        @param scope - What the token may be used for
        @returns (token, expiry); expiry is the exact ``exp`` claim
        """
        # JWT timestamps have second resolution.
        issued = datetime.now(timezone.utc).replace(microsecond=0)
        expiry = issued + self.ttl
        claims = {
            "sub": user_id,
            "exp": expiry,
            "iat": issued,
            "scope": scope,
            "roles": roles or [],
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm), expiry

    def decode(self, token: str) -> TokenPayload | None:
        """Check signature and expiry; None when either fails."""
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return TokenPayload(**claims)
        except (JWTError, ValidationError) as e:
            logger.warning(f"Token rejected: {e}")
            return None

    def authenticate(self, token: str) -> TokenPayload | None:
        """Decode ``token`` and require the authentication scope."""
        payload = self.decode(token)
        if payload is None or payload.scope != AUTHENTICATION_SCOPE:
            return None
        return payload
