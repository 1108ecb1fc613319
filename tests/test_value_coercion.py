import unittest
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, Numeric, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from querykit.core.errors import InvalidQueryParameter
from querykit.services.value_coercion import coerce_column_value, parse_date_bound


class _Base(DeclarativeBase):
    pass


class _CoercionModel(_Base):
    __tablename__ = "_coercion_model"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bool_col: Mapped[bool] = mapped_column(Boolean)
    int_col: Mapped[int] = mapped_column(Integer)
    float_col: Mapped[float] = mapped_column(Float)
    numeric_col: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    date_col: Mapped[date] = mapped_column(Date)
    dt_col: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    uuid_col: Mapped[uuid.UUID] = mapped_column(Uuid)
    text_col: Mapped[str] = mapped_column(String(50))


class ColumnCoercionTests(unittest.TestCase):
    def test_boolean_accepts_string_values(self):
        self.assertTrue(coerce_column_value(_CoercionModel.bool_col, "true"))
        self.assertTrue(coerce_column_value(_CoercionModel.bool_col, "Evet"))
        self.assertFalse(coerce_column_value(_CoercionModel.bool_col, "0"))
        self.assertFalse(coerce_column_value(_CoercionModel.bool_col, "hayır"))

    def test_boolean_invalid_value_raises(self):
        with self.assertRaises(InvalidQueryParameter) as ctx:
            coerce_column_value(_CoercionModel.bool_col, "maybe")
        self.assertEqual(ctx.exception.param, "bool_col")

    def test_numbers_accept_string_values(self):
        self.assertEqual(coerce_column_value(_CoercionModel.int_col, "42"), 42)
        self.assertAlmostEqual(coerce_column_value(_CoercionModel.float_col, "3,14"), 3.14)
        self.assertEqual(coerce_column_value(_CoercionModel.numeric_col, "99.50"), Decimal("99.50"))

    def test_number_invalid_value_raises(self):
        with self.assertRaises(InvalidQueryParameter):
            coerce_column_value(_CoercionModel.int_col, "twelve")

    def test_dates_accept_iso_date_and_datetime(self):
        self.assertEqual(coerce_column_value(_CoercionModel.date_col, "2024-02-26"), date(2024, 2, 26))
        self.assertEqual(coerce_column_value(_CoercionModel.date_col, "2024-02-26T13:45:00+03:00"), date(2024, 2, 26))

    def test_datetime_is_timezone_aware(self):
        value = coerce_column_value(_CoercionModel.dt_col, "2024-02-26")
        self.assertEqual(value, datetime(2024, 2, 26, tzinfo=timezone.utc))

    def test_uuid_accepts_string(self):
        uid = uuid.uuid4()
        self.assertEqual(coerce_column_value(_CoercionModel.uuid_col, str(uid)), uid)
        with self.assertRaises(InvalidQueryParameter):
            coerce_column_value(_CoercionModel.uuid_col, "not-a-uuid")

    def test_text_and_none_are_left_as_is(self):
        self.assertEqual(coerce_column_value(_CoercionModel.text_col, "abc"), "abc")
        self.assertIsNone(coerce_column_value(_CoercionModel.int_col, None))


class DateBoundTests(unittest.TestCase):
    def test_date_only_lower_bound_is_start_of_day(self):
        self.assertEqual(parse_date_bound("date_from", "2024-01-01"), datetime(2024, 1, 1, tzinfo=timezone.utc))

    def test_date_only_upper_bound_covers_the_whole_day(self):
        bound = parse_date_bound("date_to", "2024-01-31", end_of_day=True)
        self.assertEqual(bound, datetime(2024, 1, 31, 23, 59, 59, 999999, tzinfo=timezone.utc))

    def test_compact_date_is_still_a_whole_day(self):
        compact = parse_date_bound("date_to", "20240131", end_of_day=True)
        self.assertEqual(compact, parse_date_bound("date_to", "2024-01-31", end_of_day=True))
        self.assertEqual(compact.time(), time.max)

    def test_full_timestamp_keeps_its_offset(self):
        bound = parse_date_bound("date_to", "2024-01-31T10:00:00+03:00", end_of_day=True)
        self.assertEqual(bound.utcoffset(), timedelta(hours=3))
        self.assertEqual(bound.hour, 10)

    def test_zulu_suffix(self):
        bound = parse_date_bound("date_from", "2024-01-01T08:30:00Z")
        self.assertEqual(bound, datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc))

    def test_malformed_values_raise(self):
        for value in ("", "yesterday", "2024-13-01", "31/01/2024"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidQueryParameter) as ctx:
                    parse_date_bound("date_from", value)
                self.assertIn('"date_from"', str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
