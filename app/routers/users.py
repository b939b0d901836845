from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.auth import require_permission
from app.db import get_db
from app.dependencies import PermissionTable, get_client_ip, get_permission_table
from app.schemas import PermissionsIn
from app.services.audit_service import log_audit
from app.services.user_service import get_user, list_drivers, set_permissions, user_payload

router = APIRouter(prefix='/api', tags=['users'])


@router.get('/drivers')
def drivers(db: Session = Depends(get_db)):
    return list_drivers(db)


@router.get('/users/{user_id}')
def user_detail(
    user_id: int,
    db: Session = Depends(get_db),
    table: PermissionTable = Depends(get_permission_table),
):
    return user_payload(get_user(db, user_id), table)


@router.put('/users/{user_id}/permissions')
def update_user_permissions(
    user_id: int,
    body: PermissionsIn,
    request: Request,
    db: Session = Depends(get_db),
    table: PermissionTable = Depends(get_permission_table),
    _: object = Depends(require_permission('canAssignUserRoles')),
):
    user = set_permissions(db, user_id=user_id, permissions=body.permissions)
    log_audit(
        db,
        actor=request.headers.get('x-user-id'),
        action='USER_PERMISSIONS_UPDATED',
        ip=get_client_ip(request),
        metadata={'user_id': user.id, 'permissions': user.permissions},
    )
    db.commit()
    return user_payload(user, table)
