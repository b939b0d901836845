from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.db import SessionLocal, init_db
from app.models import InventoryItem, User, UserRole
from app.services.inventory_service import add_entry

DEMO_USERS = [
    ('Admin', 'admin@example.com', UserRole.ADMINISTRATOR),
    ('Sam Site', 'site@example.com', UserRole.SITE_WORKER),
    ('Morgan Manager', 'manager@example.com', UserRole.MANAGER),
    ('Ivy Inventory', 'inventory@example.com', UserRole.INVENTORY_MANAGER),
    ('Dana Driver', 'driver@example.com', UserRole.DRIVER),
]

DEMO_STOCK = [
    ('CBL-2.5', 'Cable 2.5mm', 12, 'Twin and earth, 100m'),
    ('CBL-2.5', 'Cable 2.5mm', 4, 'Twin and earth, 100m'),
    ('SKT-DBL', 'Double socket', 2, 'White, switched'),
    ('BRK-20A', 'Breaker 20A', 6, 'Type B MCB'),
]


def seed() -> None:
    init_db()
    with SessionLocal() as db:
        for name, email, role in DEMO_USERS:
            user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if not user:
                db.add(User(name=name, email=email, role=role, status='Active', permissions=[]))
        db.flush()

        has_stock = db.execute(select(InventoryItem.id).limit(1)).scalar_one_or_none()
        if not has_stock:
            base_time = datetime.now(tz=timezone.utc) - timedelta(days=len(DEMO_STOCK))
            for offset, (item_code, item_name, quantity, description) in enumerate(DEMO_STOCK):
                add_entry(
                    db,
                    item_code=item_code,
                    item_name=item_name,
                    quantity=quantity,
                    description=description,
                    stock_entry_time=base_time + timedelta(days=offset),
                )

        db.commit()


if __name__ == '__main__':
    seed()
    print('Seed data inserted/verified.')
