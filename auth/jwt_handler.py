"""
Bearer token handling

Tokens are issued by the identity service. The API only verifies them and
reads the user id (``sub``) and the ``groot`` claim.
"""
import jwt
from datetime import datetime, timedelta
from typing import Optional

from config import settings


class TokenData:
    """Decoded token data structure"""
    def __init__(
        self,
        user_id: str,
        is_groot: bool,
        exp: datetime,
        iat: datetime,
    ):
        self.user_id = user_id
        self.is_groot = is_groot
        self.exp = exp
        self.iat = iat


def create_access_token(
    user_id: str,
    groot: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a bearer token, the way the identity service does.
    Used to seed accounts and in tests.

    Args:
        user_id: User's unique identifier
        groot: Whether the user is groot
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(hours=settings.JWT_EXPIRE_HOURS))

    payload = {
        "sub": user_id,
        "groot": groot,
        "exp": expire,
        "iat": now,
    }

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[TokenData]:
    """
    Decode and validate a bearer token.

    Returns:
        TokenData object if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError:
        return None

    return TokenData(
        user_id=payload["sub"],
        is_groot=bool(payload.get("groot", False)),
        exp=datetime.utcfromtimestamp(payload["exp"]),
        iat=datetime.utcfromtimestamp(payload.get("iat", 0)),
    )
