from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from app.auth import DEFAULT_ROLE_PERMISSIONS, effective_permissions, load_permission_table
from app.errors import NotFoundError, ValidationError
from app.models import User, UserRole
from app.services.user_service import get_user, list_drivers, set_permissions, user_payload
from tests.support import make_session_factory


class PermissionTableTests(unittest.TestCase):
    def test_defaults_cover_every_role(self) -> None:
        table = load_permission_table()
        self.assertEqual(set(table), {role.value for role in UserRole})
        self.assertIn('canDispatchStock', table['Administrator'])
        self.assertEqual(table['Driver'], ('canConfirmDelivery', 'canViewDispatches'))

    def test_table_is_read_only(self) -> None:
        table = load_permission_table()
        with self.assertRaises(TypeError):
            table['Driver'] = ()

    def test_file_overrides_named_roles_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'roles.json'
            path.write_text(json.dumps({'Driver': ['canViewDispatches']}), encoding='utf-8')
            table = load_permission_table(str(path))
        self.assertEqual(table['Driver'], ('canViewDispatches',))
        self.assertEqual(table['Manager'], DEFAULT_ROLE_PERMISSIONS['Manager'])

    def test_explicit_permissions_win_over_role_defaults(self) -> None:
        table = load_permission_table()
        user = User(name='D', email='d@example.com', role=UserRole.DRIVER, permissions=[])
        self.assertEqual(effective_permissions(user, table), list(table['Driver']))
        user.permissions = ['canViewStock']
        self.assertEqual(effective_permissions(user, table), ['canViewStock'])


class UserServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.table = load_permission_table()
        self.db.add_all(
            [
                User(name='Zed Driver', email='z@example.com', role=UserRole.DRIVER, permissions=[]),
                User(name='Amy Driver', email='a@example.com', role=UserRole.DRIVER, permissions=[]),
                User(name='Site', email='s@example.com', role=UserRole.SITE_WORKER, permissions=[]),
            ]
        )
        self.db.flush()

    def tearDown(self) -> None:
        self.db.close()

    def test_list_drivers_sorted_by_name(self) -> None:
        self.assertEqual([row['name'] for row in list_drivers(self.db)], ['Amy Driver', 'Zed Driver'])

    def test_set_permissions(self) -> None:
        user = list_drivers(self.db)[0]
        updated = set_permissions(self.db, user_id=user['id'], permissions=['canViewStock', ' '])
        payload = user_payload(updated, self.table)
        self.assertEqual(payload['permissions'], ['canViewStock'])
        self.assertEqual(payload['role'], 'Driver')

    def test_set_permissions_validation(self) -> None:
        with self.assertRaises(ValidationError):
            set_permissions(self.db, user_id=1, permissions='canViewStock')
        with self.assertRaises(NotFoundError):
            set_permissions(self.db, user_id=999, permissions=[])
        with self.assertRaises(NotFoundError):
            get_user(self.db, 999)


if __name__ == '__main__':
    unittest.main()
