from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Alert, AlertType
from app.services.field_utils import now_utc

logger = logging.getLogger(__name__)


def low_stock_message(item_code: str, remaining: int) -> str:
    return f'Low stock for item {item_code}: {remaining} remaining'


def _get_alert(db: Session, *, alert_type: AlertType, item_code: str) -> Alert | None:
    return db.execute(
        select(Alert).where(Alert.type == alert_type, Alert.item_code == item_code)
    ).scalar_one_or_none()


def _refresh(alert: Alert, *, message: str, now: datetime) -> None:
    alert.message = message
    alert.date = now
    alert.is_read = False
    alert.settled = False
    alert.settled_time = None


def upsert_low_stock(db: Session, *, item_code: str, remaining: int) -> Alert:
    now = now_utc()
    message = low_stock_message(item_code, remaining)
    alert = _get_alert(db, alert_type=AlertType.LOW_STOCK, item_code=item_code)
    if alert is None:
        candidate = Alert(type=AlertType.LOW_STOCK, item_code=item_code)
        _refresh(candidate, message=message, now=now)
        try:
            with db.begin_nested():
                db.add(candidate)
        except IntegrityError:
            # Raised concurrently for the same item; refresh that alert instead.
            alert = _get_alert(db, alert_type=AlertType.LOW_STOCK, item_code=item_code)
            if alert is None:
                raise
        else:
            logger.info('Raised low stock alert for %s (%s remaining)', item_code, remaining)
            return candidate

    _refresh(alert, message=message, now=now)
    db.flush()
    logger.info('Refreshed low stock alert for %s (%s remaining)', item_code, remaining)
    return alert


def settle(db: Session, *, item_code: str) -> int:
    """Mark the unsettled low stock alert for ``item_code`` as settled.

    Returns the number of alerts that changed state.
    """
    alert = _get_alert(db, alert_type=AlertType.LOW_STOCK, item_code=item_code)
    if alert is None or alert.settled:
        return 0
    alert.settled = True
    alert.settled_time = now_utc()
    db.flush()
    logger.info('Settled low stock alert for %s', item_code)
    return 1


def list_alerts(db: Session) -> list[Alert]:
    return db.execute(select(Alert).order_by(Alert.date.desc(), Alert.id.desc())).scalars().all()


def alert_payload(alert: Alert) -> dict:
    return {
        'id': alert.id,
        'type': alert.type.value,
        'item_code': alert.item_code,
        'message': alert.message,
        'date': alert.date,
        'is_read': alert.is_read,
        'settled': alert.settled,
        'settled_time': alert.settled_time,
    }
