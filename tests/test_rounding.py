from decimal import Decimal

import pytest

from wagebook.rounding import ROUNDING_UNIT, round_up, to_amount


@pytest.mark.parametrize(
    "amount, expected",
    [
        (1, 1000),
        (999, 1000),
        (1000, 1000),
        (1000.01, 2000),
        (5500, 6000),
        (420000, 420000),
        (Decimal("0.3") * 10000, 3000),
        ("2500", 3000),
    ],
)
def test_round_up_to_next_thousand(amount, expected):
    assert round_up(amount) == expected


@pytest.mark.parametrize("amount", [0, -1, -999.5, None, "abc", float("nan"), float("inf"), float("-inf"), [], True, "1e9999999", Decimal("1e9999999"), 10**5000],
    ids=["0", "-1", "-999.5", "None", "abc", "nan", "inf", "-inf", "empty_list", "True", "str_1e9999999", "Decimal_1e9999999", "int_10e5000"],
)
def test_round_up_unusable_or_non_positive_is_zero(amount):
    assert round_up(amount) == 0


def test_round_up_bounds_hold_for_a_spread_of_inputs():
    samples = [0.5, 1, 17.25, 999.999, 1000, 1001, 12345.678, 70000 * 6, 15000 * 2.5, 987654321.1]

    for x in samples:
        rounded = round_up(x)
        assert rounded % ROUNDING_UNIT == 0
        assert rounded - ROUNDING_UNIT < x <= rounded


def test_to_amount_keeps_decimal_precision_of_floats():
    assert to_amount(0.1) + to_amount(0.2) == Decimal("0.3")
    assert to_amount(" 15000 ") == Decimal(15000)
    assert to_amount(object()) == 0


@pytest.mark.parametrize("amount", ["1e-30", Decimal("1e-9999999"), 0.001])
def test_round_up_tiny_positive_is_one_unit(amount):
    assert round_up(amount) == ROUNDING_UNIT


def test_to_amount_accepts_large_but_sane_amounts():
    assert to_amount("1e18") == Decimal("1e18")
    assert to_amount("1e19") == 0
