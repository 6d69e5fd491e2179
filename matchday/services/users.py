from dataclasses import dataclass
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..database import atomic
from ..errors import Conflict, InvalidInput, NotFound
from ..logger import get_logger
from ..models.user import User
from ..timeutils import utcnow

logger = get_logger(__name__)


@dataclass
class Identity:
    """Profile fields supplied by the identity provider."""
    user_id: str
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return self.username or full_name or self.email.split("@")[0]


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found", {"user_id": user_id})
    return user


def upsert_user_from_identity(db: Session, identity: Identity) -> User:
    """Create or refresh a user's profile. Never touches total_points."""
    if not identity.user_id or not identity.email:
        raise InvalidInput("Identity needs a user id and an email")

    try:
        with atomic(db):
            user = db.get(User, identity.user_id)
            if user:
                user.email = identity.email
                user.username = identity.username
                user.display_name = identity.display_name
                user.updated_at = utcnow()
            else:
                user = User(
                    id=identity.user_id,
                    email=identity.email,
                    username=identity.username,
                    display_name=identity.display_name
                )
            db.add(user)
    except IntegrityError:
        raise Conflict("Email already belongs to another user", {"email": identity.email}) from None

    db.refresh(user)
    return user


def ensure_user(db: Session, identity: Identity) -> User:
    """Lazy sync: return the stored user, creating it on first authenticated action."""
    user = db.get(User, identity.user_id)
    if user:
        return user
    logger.info("Creating user %s on first use", identity.user_id)
    return upsert_user_from_identity(db, identity)


def delete_user(db: Session, user_id: str) -> None:
    """Remove a user; the database cascades to their predictions and snapshots."""
    with atomic(db):
        user = get_user(db, user_id)
        db.delete(user)
    logger.info("Deleted user %s", user_id)
