"""
Request identity dependencies

Authentication happens upstream; the gateway forwards the verified user id
in the X-User-Id header.
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.models import User, UserRole


def get_current_user(
    x_user_id: Optional[UUID] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = db.get(User, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")

    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user


def require_student(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.STUDENT:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user


def ensure_self_or_admin(user: User, student_id: UUID) -> None:
    """Students may only read their own records"""
    if not user.is_admin and user.id != student_id:
        raise HTTPException(status_code=403, detail="Forbidden")
