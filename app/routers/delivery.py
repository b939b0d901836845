from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.auth import require_permission
from app.db import get_db
from app.dependencies import get_client_ip
from app.schemas import DeliveryConfirmIn
from app.services.audit_service import log_audit
from app.services.delivery_service import DRIVER_ROLE, confirm, confirmation_payload

router = APIRouter(prefix='/api/delivery', tags=['delivery'])


@router.post('/confirm')
def confirm_delivery(
    body: DeliveryConfirmIn,
    request: Request,
    db: Session = Depends(get_db),
    _: object = Depends(require_permission('canConfirmDelivery')),
):
    confirmation, created = confirm(
        db,
        dispatch_id=body.id,
        role=body.role,
        confirmation_time=body.confirmation_time,
    )
    role = str(body.role).strip().lower()
    log_audit(
        db,
        actor=request.headers.get('x-user-id'),
        action='DELIVERY_CONFIRMED',
        ip=get_client_ip(request),
        metadata={
            'dispatch_id': confirmation.dispatch_id,
            'role': role,
            'delivery_status': confirmation.delivery_status.value,
            'created': created,
        },
    )
    db.commit()
    status_code = status.HTTP_201_CREATED if role == DRIVER_ROLE else status.HTTP_200_OK
    return JSONResponse(status_code=status_code, content=jsonable_encoder(confirmation_payload(confirmation)))
