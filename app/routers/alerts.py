from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.services.alert_service import alert_payload, list_alerts

router = APIRouter(prefix='/api/alerts', tags=['alerts'])


@router.get('')
def all_alerts(db: Session = Depends(get_db)):
    return [alert_payload(alert) for alert in list_alerts(db)]
