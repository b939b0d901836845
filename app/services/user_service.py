from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import effective_permissions
from app.dependencies import PermissionTable
from app.errors import NotFoundError, ValidationError
from app.models import User, UserRole

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError('User not found')
    return user


def list_drivers(db: Session) -> list[dict]:
    rows = db.execute(
        select(User.id, User.name).where(User.role == UserRole.DRIVER).order_by(User.name.asc())
    ).all()
    return [{'id': row.id, 'name': row.name} for row in rows]


def set_permissions(db: Session, *, user_id: int, permissions: Any) -> User:
    if not isinstance(permissions, list):
        raise ValidationError('permissions must be an array')
    user = get_user(db, user_id)
    user.permissions = [str(permission).strip() for permission in permissions if str(permission).strip()]
    db.flush()
    logger.info('Updated permissions for user %s (%s entries)', user.id, len(user.permissions))
    return user


def user_payload(user: User, table: PermissionTable) -> dict:
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role.value,
        'status': user.status,
        'permissions': effective_permissions(user, table),
    }
