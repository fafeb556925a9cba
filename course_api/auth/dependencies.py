import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from course_api.auth import jwt_handler
from course_api.database import get_db
from course_api.models.user import Role, User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ALL_ROLES = (Role.STUDENT, Role.TEACHER, Role.ADMIN)


def get_token_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> int:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        return jwt_handler.decode_user_id(credentials.credentials)
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized") from exc


def require_roles(*roles: Role):
    """Build a dependency that admits only users whose stored role is in ``roles``.

    The role is read from the database on every request, so a role change
    applies to tokens that were issued before it.
    """
    allowed = {Role(role).value for role in roles}

    def get_current_user(
        user_id: int = Depends(get_token_user_id),
        db: Session = Depends(get_db),
    ) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if user is None or user.role not in allowed:
            logger.info("Forbidden: user %s not in roles %s", user_id, sorted(allowed))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return get_current_user
