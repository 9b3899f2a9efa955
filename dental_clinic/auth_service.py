from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth_models import User
from .auth_security import hash_password, verify_password
from .errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)


def create_user(s: Session, username: str, password: str) -> int:
    username = username.strip().lower()
    if not username or not password:
        raise ValidationError("username and password are required")

    exists = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if exists:
        raise ConflictError("username already registered")

    u = User(username=username, password_hash=hash_password(password), is_active=True)
    s.add(u)
    s.commit()
    logger.info("User %s registered", username)
    return u.id


def authenticate(s: Session, username: str, password: str) -> User | None:
    username = username.strip().lower()
    u = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if not u or not u.is_active:
        return None
    if not verify_password(password, u.password_hash):
        return None
    return u


def get_user_by_id(s: Session, user_id: str | int) -> User | None:
    try:
        return s.get(User, int(user_id))
    except (TypeError, ValueError):
        return None
