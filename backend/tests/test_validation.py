"""
Input coercion and filter criteria tests.
"""

from datetime import datetime

import pytest

from studiopos.errors import ValidationError
from studiopos.services.criteria import ListCriteria, criteria_from_args
from studiopos.validation import MAX_AMOUNT_CENTS, coerce_int, require_amount, require_choice


class TestCoerceInt:
    @pytest.mark.parametrize("value,expected", [(5, 5), ("42", 42), (" -3 ", -3), (0, 0)])
    def test_accepts_integers(self, value, expected):
        assert coerce_int(value, "qty") == expected

    @pytest.mark.parametrize("value", [True, False, 1.0, "1.5", "1e3", "", "abc", None, [1]])
    def test_rejects_everything_else(self, value):
        with pytest.raises(ValidationError):
            coerce_int(value, "qty")


def test_require_amount_bounds():
    assert require_amount(0, "amount_cents") == 0
    with pytest.raises(ValidationError):
        require_amount(0, "amount_cents", allow_zero=False)
    with pytest.raises(ValidationError):
        require_amount(MAX_AMOUNT_CENTS + 1, "amount_cents")


def test_require_choice_normalizes_case():
    assert require_choice(" cash ", "method", ("CASH", "QRIS")) == "CASH"
    with pytest.raises(ValidationError):
        require_choice(3, "method", ("CASH",))


class TestCriteria:
    def test_from_args(self):
        criteria = criteria_from_args({"from": "2026-10-01", "to": "2026-10-19T00:00:00Z", "product_id": "7"})

        assert criteria.date_from == datetime(2026, 10, 1)
        assert criteria.date_to == datetime(2026, 10, 19)
        assert criteria.product_id == 7

    def test_empty_args(self):
        assert criteria_from_args({}) == ListCriteria()

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError):
            ListCriteria(date_from=datetime(2026, 10, 19), date_to=datetime(2026, 10, 19))

    @pytest.mark.parametrize("args", [{"from": "not-a-date"}, {"product_id": "seven"}])
    def test_bad_args_are_rejected(self, args):
        with pytest.raises(ValidationError):
            criteria_from_args(args)
