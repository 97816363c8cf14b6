import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from gradebook.core import security
from gradebook.core.config import settings
from gradebook.core.db import get_db
from gradebook.models.role import Role
from gradebook.models.user import User
from gradebook.schemas.auth import TokenPayload

reusable_oauth2 = OAuth2PasswordBearer(tokenUrl="/api/v1/login/access-token")

MANAGER_ROLES = {"admin", "coordinator"}
STAFF_ROLES = MANAGER_ROLES | {"teacher"}


def get_current_user(db: Session = Depends(get_db), token: str = Depends(reusable_oauth2)) -> User:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[security.ALGORITHM])
        token_data = TokenPayload(**payload)
        user_id = uuid.UUID(token_data.sub or "")
    except (JWTError, ValidationError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return user


def get_current_role_name(db: Session, user: User) -> str:
    if not user.role_id:
        return ""
    role = db.get(Role, user.role_id)
    return (role.name if role else "").casefold()


def require_roles(db: Session, user: User, allowed: set[str]) -> str:
    role_name = get_current_role_name(db, user)
    if role_name not in {r.casefold() for r in allowed}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return role_name


def get_current_manager(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    require_roles(db, current_user, MANAGER_ROLES)
    return current_user


def get_current_staff(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    require_roles(db, current_user, STAFF_ROLES)
    return current_user
