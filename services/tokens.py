from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from errors import Unauthenticated
from models import Role

TOKEN_LIFETIME = timedelta(days=30)


@dataclass(frozen=True)
class TokenClaims:
    id: int
    role: Role


class TokenService:
    """Issues and verifies signed session tokens carrying ``{id, role}``."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = TOKEN_LIFETIME,
    ):
        if not secret:
            raise RuntimeError("JWT_SECRET not configured on server.")
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user_id: int, role: Role, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(UTC)
        payload = {
            "id": user_id,
            "role": Role(role).value,
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise Unauthenticated("Not authorized, token failed") from e

        user_id = payload.get("id")
        role = payload.get("role")
        if "exp" not in payload or not isinstance(user_id, int) or isinstance(user_id, bool):
            raise Unauthenticated("Not authorized, token failed")
        try:
            return TokenClaims(id=user_id, role=Role(role))
        except ValueError as e:
            raise Unauthenticated("Not authorized, token failed") from e
