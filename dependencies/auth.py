from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlmodel import Session

from core.config import settings
from core.roles import as_role
from core.utils import utcnow
from database import get_session
from models.enums import Role
from models.user import User


bearer_scheme = HTTPBearer()


# ============================================================
# Current User Model (backend identity)
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: str
    role: Role
    organization_id: Optional[str] = None

    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "CurrentUser":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            organization_id=user.organization_id,
            first_name=user.first_name,
            last_name=user.last_name,
        )


# ============================================================
# TOKEN ISSUING (used by the identity provider bridge and tests)
# ============================================================
def create_access_token(user_id: str, expires_minutes: int = 60) -> str:
    payload = {
        "sub": user_id,
        "exp": utcnow() + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# ============================================================
# AUTH DECODING (validates JWT + loads the user row)
#
# The role always comes from the database, never from the token.
# ============================================================
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> CurrentUser:

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        raise unauthorized

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise unauthorized

    user = session.get(User, user_id)
    if user is None or as_role(user.role) is None:
        raise unauthorized

    return CurrentUser.from_user(user)


# ============================================================
# ROLE CHECKER (basic role list guard)
# ============================================================
def requires_role(*roles: Role):
    def checker(current_user: CurrentUser = Depends(get_current_user)):
        if roles and current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of: {[str(r) for r in roles]}",
            )
        return current_user
    return checker


# ============================================================
# PERMISSION CHECK (DELEGATES TO permission_helpers)
# ============================================================
def requires_permission(permission: str):
    """
    Thin wrapper so routes can import from dependencies.auth.
    Real capability logic lives in core.permission_helpers.
    """
    from core.permission_helpers import requires_permission as checker
    return checker(permission)
