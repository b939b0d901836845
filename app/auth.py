from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.db import get_db
from app.dependencies import PermissionTable, get_permission_table
from app.errors import AuthenticationRequiredError, PermissionDeniedError
from app.models import User, UserRole

logger = logging.getLogger(__name__)

USER_ID_HEADER = 'x-user-id'

DEFAULT_ROLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    UserRole.ADMINISTRATOR.value: (
        'canViewUsers',
        'canCreateUser',
        'canEditUser',
        'canDeleteUser',
        'canAssignUserRoles',
        'canAccessUserManagement',
        'canAccessProjectManagement',
        'canAccessInventoryManagement',
        'canCreateProject',
        'canEditProject',
        'canDeleteProject',
        'canManageProjectTeam',
        'canAddStockEntry',
        'canEditStockEntry',
        'canDeleteStockEntry',
        'canRequestStock',
        'canApproveStockRequests',
        'canDispatchStock',
        'canEditDispatch',
        'canConfirmDelivery',
        'canViewDispatches',
        'canViewProjects',
    ),
    UserRole.SITE_WORKER.value: ('canRequestStock', 'canViewStock', 'canConfirmDelivery'),
    UserRole.MANAGER.value: ('canViewProjects', 'canEditProject', 'canManageProjectTeam'),
    UserRole.INVENTORY_MANAGER.value: ('canViewStock', 'canAddStockEntry', 'canEditStockEntry', 'canDeleteStockEntry'),
    UserRole.DRIVER.value: ('canConfirmDelivery', 'canViewDispatches'),
}


def load_permission_table(path: str | None = None) -> PermissionTable:
    """Build the role to permissions table used for the lifetime of the process.

    Roles present in the JSON file at ``path`` replace the defaults; roles it
    omits keep their default permissions.
    """
    table = dict(DEFAULT_ROLE_PERMISSIONS)
    if path:
        raw = json.loads(Path(path).read_text(encoding='utf-8'))
        if not isinstance(raw, dict):
            raise ValueError('Role permissions file must contain a JSON object')
        for role, permissions in raw.items():
            if not isinstance(permissions, list):
                raise ValueError(f'Permissions for role {role} must be a list')
            table[role] = tuple(str(permission) for permission in permissions)
        logger.info('Loaded role permissions from %s', path)
    return MappingProxyType(table)


def effective_permissions(user: User, table: PermissionTable) -> list[str]:
    if isinstance(user.permissions, list) and user.permissions:
        return list(user.permissions)
    role = user.role.value if hasattr(user.role, 'value') else user.role
    return list(table.get(role, ()))


def _resolve_caller(request: Request, db: Session) -> User:
    raw_id = request.headers.get(USER_ID_HEADER, '').strip()
    if not raw_id.isdigit():
        raise AuthenticationRequiredError('Authentication required')
    user = db.get(User, int(raw_id))
    if not user or user.status != 'Active':
        raise AuthenticationRequiredError('Authentication required')
    return user


def require_permission(permission: str):
    def _dep(
        request: Request,
        db: Session = Depends(get_db),
        table: PermissionTable = Depends(get_permission_table),
    ) -> User | None:
        if not settings.enforce_permissions:
            return None
        user = _resolve_caller(request, db)
        if permission not in effective_permissions(user, table):
            raise PermissionDeniedError(f'Missing permission: {permission}')
        return user

    return _dep
