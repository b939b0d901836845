from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import InvalidRoleError, NotFoundError
from app.models import DeliveryConfirmation, DeliveryStatus, Dispatch
from app.services.field_utils import parse_datetime, parse_int, require_fields

logger = logging.getLogger(__name__)

DRIVER_ROLE = 'driver'
SITE_WORKER_ROLE = 'siteworker'


def _get_confirmation(db: Session, dispatch_id: int) -> DeliveryConfirmation | None:
    return db.execute(
        select(DeliveryConfirmation).where(DeliveryConfirmation.dispatch_id == dispatch_id)
    ).scalar_one_or_none()


def _apply(confirmation: DeliveryConfirmation, *, role: str, confirmed_at: datetime) -> None:
    if role == DRIVER_ROLE:
        confirmation.driver_confirmation = confirmed_at
        confirmation.delivery_status = DeliveryStatus.DRIVER_CONFIRMED
    else:
        confirmation.site_worker_confirmation = confirmed_at
        confirmation.delivery_status = DeliveryStatus.DELIVERED


def confirm(
    db: Session,
    *,
    dispatch_id: int | str | None,
    role: str | None,
    confirmation_time: datetime | str | None,
) -> tuple[DeliveryConfirmation, bool]:
    """Record a driver or site worker confirmation for a dispatch.

    A driver confirmation always sets ``Driver Confirmed``, replacing whatever
    status the row held. A site worker confirmation marks the delivery
    ``Delivered`` whether or not the driver has confirmed. Returns the
    confirmation row and whether it was created.
    """
    require_fields({'id': dispatch_id, 'role': role, 'confirmationTime': confirmation_time})
    normalized_role = str(role).strip().lower()
    if normalized_role not in {DRIVER_ROLE, SITE_WORKER_ROLE}:
        logger.warning('Rejected delivery confirmation with role %r', role)
        raise InvalidRoleError('Invalid role', details={'role': role})

    valid_dispatch_id = parse_int(dispatch_id, field='id')
    confirmed_at = parse_datetime(confirmation_time, field='confirmationTime')

    exists = db.execute(select(Dispatch.id).where(Dispatch.id == valid_dispatch_id)).scalar_one_or_none()
    if exists is None:
        raise NotFoundError('Dispatch not found')

    confirmation = _get_confirmation(db, valid_dispatch_id)
    created = False
    if confirmation is None:
        candidate = DeliveryConfirmation(dispatch_id=valid_dispatch_id)
        _apply(candidate, role=normalized_role, confirmed_at=confirmed_at)
        try:
            with db.begin_nested():
                db.add(candidate)
        except IntegrityError:
            # Another confirmation for this dispatch was inserted first; update it instead.
            confirmation = _get_confirmation(db, valid_dispatch_id)
            if confirmation is None:
                raise
            logger.info('Confirmation for dispatch %s already exists, updating it', valid_dispatch_id)
        else:
            confirmation = candidate
            created = True

    if not created:
        _apply(confirmation, role=normalized_role, confirmed_at=confirmed_at)

    db.flush()
    logger.info(
        'Dispatch %s confirmed by %s: %s',
        valid_dispatch_id,
        normalized_role,
        confirmation.delivery_status.value,
    )
    return confirmation, created


def confirmation_payload(confirmation: DeliveryConfirmation) -> dict:
    return {
        'id': confirmation.id,
        'dispatch_id': confirmation.dispatch_id,
        'driver_confirmation': confirmation.driver_confirmation,
        'site_worker_confirmation': confirmation.site_worker_confirmation,
        'delivery_status': confirmation.delivery_status.value,
    }
