from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base
from app.services.inventory_service import add_entry

BASE_TIME = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def make_session_factory() -> sessionmaker:
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def stock(db: Session, item_code: str, quantity: int, *, hours: int = 0, item_name: str = 'Widget'):
    return add_entry(
        db,
        item_code=item_code,
        item_name=item_name,
        quantity=quantity,
        description='Test stock',
        stock_entry_time=BASE_TIME + timedelta(hours=hours),
    )
