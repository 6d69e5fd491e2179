from typing import Optional
from fastapi import Request, Depends, HTTPException, status
from sqlmodel import Session

from .config import ADMIN_USER_IDS, USER_EMAIL_HEADER, USER_ID_HEADER, USER_NAME_HEADER
from .database import get_session
from .errors import Unauthorized
from .models.user import User
from .services.users import Identity, ensure_user


def get_identity(request: Request) -> Optional[Identity]:
    """Identity asserted by the upstream identity provider, if any."""
    user_id = request.headers.get(USER_ID_HEADER)
    email = request.headers.get(USER_EMAIL_HEADER)
    if not user_id or not email:
        return None
    return Identity(
        user_id=user_id,
        email=email,
        username=request.headers.get(USER_NAME_HEADER)
    )


async def get_current_user(
    identity: Optional[Identity] = Depends(get_identity),
    db: Session = Depends(get_session)
) -> Optional[User]:
    """Get the current user, creating the row on first authenticated request."""
    if identity is None:
        return None
    return ensure_user(db, identity)


async def require_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """Require an authenticated user."""
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return current_user


async def require_admin(
    current_user: User = Depends(require_user)
) -> User:
    """Require an admin user."""
    if current_user.id not in ADMIN_USER_IDS:
        raise Unauthorized("Admin access required")
    return current_user
