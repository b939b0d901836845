from __future__ import annotations

import inspect
import typing
import unittest
from datetime import date, timezone

from app.errors import ValidationError
from app.services import delivery_service, dispatch_service, inventory_service, stock_request_service
from app.services.field_utils import (
    parse_date,
    parse_datetime,
    parse_int,
    parse_optional_int,
    parse_positive_int,
    require_fields,
    trim_and_limit,
)


class FieldUtilsTests(unittest.TestCase):
    def test_trim_and_limit_caps_at_fifty_characters(self) -> None:
        self.assertEqual(trim_and_limit('  abc  '), 'abc')
        self.assertEqual(len(trim_and_limit('x' * 80)), 50)

    def test_require_fields_lists_every_blank_field(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            require_fields({'a': 'ok', 'b': '   ', 'c': None})
        self.assertEqual(ctx.exception.details, {'missing': ['b', 'c']})
        self.assertIn('b, c', ctx.exception.message)

    def test_parse_int_rejects_non_numeric(self) -> None:
        self.assertEqual(parse_int(' 12 ', field='Quantity'), 12)
        with self.assertRaises(ValidationError):
            parse_int('twelve', field='Quantity')
        with self.assertRaises(ValidationError):
            parse_int(True, field='Quantity')

    def test_parse_positive_int_rejects_zero(self) -> None:
        with self.assertRaises(ValidationError):
            parse_positive_int(0, field='Quantity')

    def test_blank_optional_int_is_none(self) -> None:
        self.assertIsNone(parse_optional_int('', field='requestId'))
        self.assertEqual(parse_optional_int('7', field='requestId'), 7)

    def test_parse_datetime_assumes_utc_for_naive_values(self) -> None:
        parsed = parse_datetime('2024-03-01T10:15:00', field='dispatchDate')
        self.assertEqual(parsed.tzinfo, timezone.utc)
        with self.assertRaises(ValidationError):
            parse_datetime('not a date', field='dispatchDate')

    def test_parse_date_accepts_datetime_strings(self) -> None:
        self.assertEqual(parse_date('2024-03-01T10:15:00Z', field='request_date'), date(2024, 3, 1))
        self.assertEqual(parse_date(date(2024, 3, 2), field='request_date'), date(2024, 3, 2))


class ServiceSignatureTests(unittest.TestCase):
    def test_service_entry_points_have_resolvable_hints(self) -> None:
        for func in (
            inventory_service.add_entry,
            stock_request_service.submit,
            stock_request_service.decide,
            dispatch_service.dispatch_stock,
            delivery_service.confirm,
            parse_datetime,
        ):
            with self.subTest(func=func.__qualname__):
                hints = typing.get_type_hints(func)
                missing = [name for name in inspect.signature(func).parameters if name not in hints]
                self.assertEqual(missing, [])


if __name__ == '__main__':
    unittest.main()
