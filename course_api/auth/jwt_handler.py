from datetime import datetime, timedelta, timezone

import jwt

from course_api.core import config
from course_api.schemas import parse_int


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Sign a token whose only identity claim is the user id."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    claims = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_user_id(token: str) -> int:
    """Verify ``token`` and return the user id it carries.

    Raises ``jwt.InvalidTokenError`` for a bad signature, an expired token,
    or a subject that is not a storable user id.
    """
    claims = jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
    user_id = parse_int(claims["sub"])
    if user_id is None:
        raise jwt.InvalidTokenError("Token subject is not a user id")
    return user_id
