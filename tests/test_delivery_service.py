from __future__ import annotations

import unittest
from unittest.mock import patch

from app.errors import InvalidRoleError, NotFoundError, ValidationError
from app.models import DeliveryConfirmation, DeliveryStatus
from app.services import delivery_service
from app.services.delivery_service import confirm
from app.services.dispatch_service import dispatch_stock
from tests.support import make_session_factory, stock


class DeliveryServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        stock(self.db, 'X1', 10)
        self.dispatch = dispatch_stock(
            self.db,
            manager_id=1,
            driver_id=7,
            dispatch_date='2024-03-05T10:00:00Z',
            item_code='X1',
            dispatched_qty=2,
        ).dispatch

    def tearDown(self) -> None:
        self.db.close()

    def test_driver_then_site_worker_is_delivered(self) -> None:
        confirmation, created = confirm(
            self.db, dispatch_id=self.dispatch.id, role='driver', confirmation_time='2024-03-05T12:00:00Z'
        )
        self.assertTrue(created)
        self.assertEqual(confirmation.delivery_status, DeliveryStatus.DRIVER_CONFIRMED)

        confirmation, created = confirm(
            self.db, dispatch_id=self.dispatch.id, role='SiteWorker', confirmation_time='2024-03-05T13:00:00Z'
        )
        self.assertFalse(created)
        self.assertEqual(confirmation.delivery_status, DeliveryStatus.DELIVERED)
        self.assertIsNotNone(confirmation.driver_confirmation)
        self.assertIsNotNone(confirmation.site_worker_confirmation)
        self.assertEqual(self.db.query(DeliveryConfirmation).count(), 1)

    def test_site_worker_can_confirm_first(self) -> None:
        confirmation, created = confirm(
            self.db, dispatch_id=str(self.dispatch.id), role='siteworker', confirmation_time='2024-03-05T13:00:00'
        )
        self.assertTrue(created)
        self.assertEqual(confirmation.delivery_status, DeliveryStatus.DELIVERED)
        self.assertIsNone(confirmation.driver_confirmation)

    def test_late_driver_confirmation_overwrites_status(self) -> None:
        confirm(self.db, dispatch_id=self.dispatch.id, role='siteworker', confirmation_time='2024-03-05T13:00:00')
        confirmation, _ = confirm(
            self.db, dispatch_id=self.dispatch.id, role='driver', confirmation_time='2024-03-05T14:00:00'
        )
        self.assertEqual(confirmation.delivery_status, DeliveryStatus.DRIVER_CONFIRMED)
        self.assertIsNotNone(confirmation.driver_confirmation)
        self.assertIsNotNone(confirmation.site_worker_confirmation)

    def test_confirmation_inserted_concurrently_is_updated(self) -> None:
        existing, _ = confirm(
            self.db, dispatch_id=self.dispatch.id, role='siteworker', confirmation_time='2024-03-05T13:00:00'
        )
        # The first lookup misses the row, as if another request inserted it meanwhile.
        with patch.object(delivery_service, '_get_confirmation', side_effect=[None, existing]):
            confirmation, created = confirm(
                self.db, dispatch_id=self.dispatch.id, role='driver', confirmation_time='2024-03-05T14:00:00'
            )

        self.assertFalse(created)
        self.assertIs(confirmation, existing)
        self.assertEqual(confirmation.delivery_status, DeliveryStatus.DRIVER_CONFIRMED)
        self.assertEqual(self.db.query(DeliveryConfirmation).count(), 1)

    def test_invalid_role_stores_nothing(self) -> None:
        with self.assertRaises(InvalidRoleError):
            confirm(self.db, dispatch_id=self.dispatch.id, role='other', confirmation_time='2024-03-05T12:00:00')
        self.assertEqual(self.db.query(DeliveryConfirmation).count(), 0)

    def test_missing_fields_and_unknown_dispatch(self) -> None:
        with self.assertRaises(ValidationError):
            confirm(self.db, dispatch_id=self.dispatch.id, role='driver', confirmation_time='')
        with self.assertRaises(NotFoundError):
            confirm(self.db, dispatch_id=999, role='driver', confirmation_time='2024-03-05T12:00:00')


if __name__ == '__main__':
    unittest.main()
