# slidegen/core/auth.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Dict

from fastapi import Header, HTTPException, status
import jwt

from slidegen.core.config import settings


@dataclass
class Caller:
    user_id: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.user_id)


def _parse_jwt_token(token: str) -> Dict:
    """Verify an RS256 token against JWT_PUBLIC_KEY and return its claims."""
    try:
        return jwt.decode(
            token,
            settings.JWT_PUBLIC_KEY,
            algorithms=["RS256"],
            options={"verify_aud": False},
        )
    except jwt.PyJWTError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Invalid token: {e}") from e


async def get_caller(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> Caller:
    """
    Identity resolver used by FastAPI dependencies.

    DEV behavior (no JWT_PUBLIC_KEY): trust the X-User-Id header.

    PROD behavior: require a Bearer token, verify it and read the user id
    from `sub` (or `user_id`).

    A request without identity resolves to an anonymous Caller; the pipeline
    rejects it with 403 before touching the model.
    """
    if not settings.JWT_PUBLIC_KEY:
        return Caller(user_id=x_user_id or None)

    if not authorization:
        return Caller()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid auth scheme (expected Bearer)")

    claims = _parse_jwt_token(token)
    user_id = claims.get("sub") or claims.get("user_id")
    return Caller(user_id=str(user_id) if user_id else None)
