# ------------------------------ IMPORTS ------------------------------
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from core.database import get_db
from core.database.models import User
from core.errors import AuthenticationRequired, ValidationError

logger = logging.getLogger(__name__)

# ------------------------------ PRINCIPAL ------------------------------

class Role(str, Enum):
    MEMBER = "MEMBER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"

@dataclass(frozen=True)
class Principal:
    """Identity attached to a request by the upstream auth layer."""
    user_id: int
    role: Role = Role.MEMBER

    @property
    def is_moderator(self) -> bool:
        return self.role in (Role.MODERATOR, Role.ADMIN)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

# ------------------------------ HELPERS ------------------------------

def parse_principal(user_id: Optional[str], role: Optional[str]) -> Optional[Principal]:
    """Build a principal from the forwarded identity headers."""
    if not user_id:
        return None
    try:
        parsed_id = int(user_id)
    except ValueError:
        raise ValidationError("X-User-Id must be an integer")
    try:
        parsed_role = Role((role or Role.MEMBER.value).upper())
    except ValueError:
        raise ValidationError(f"Unknown role: {role}")
    return Principal(user_id=parsed_id, role=parsed_role)

def ensure_user(db: Session, principal: Principal) -> User:
    """Make sure a users row exists for the principal so it can be credited."""
    user = db.get(User, principal.user_id)
    if user is None:
        user = User(id=principal.user_id, role=principal.role.value, app_currency_balance=0)
        db.add(user)
        db.flush()
        logger.info(f"Registered user {principal.user_id} ({principal.role.value})")
    elif user.role != principal.role.value:
        user.role = principal.role.value
    return user

# ------------------------------ DEPENDENCIES ------------------------------

def get_optional_principal(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Optional[Principal]:
    """Principal if the request carries one, otherwise None."""
    return parse_principal(x_user_id, x_user_role)

def get_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: Session = Depends(get_db),
) -> Principal:
    """Authenticated principal, registered in the users table."""
    if principal is None:
        raise AuthenticationRequired("Authentication required")
    ensure_user(db, principal)
    db.commit()
    return principal

# ------------------------------ END OF FILE ------------------------------
