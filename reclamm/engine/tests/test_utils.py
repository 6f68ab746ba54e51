import pytest
from decimal import Decimal, ROUND_DOWN, ROUND_UP

import numpy as np

from reclamm.utils import (
    FP_ONE,
    to_scaled18,
    to_wei,
    from_wei,
    mul_down,
    mul_up,
    div_down,
    div_up,
    mul_rounding,
    sqrt_down,
    pow_down,
    pow_up,
    solve_quadratic,
    serialize_state,
    deserialize_state,
)

WEI_UNIT = Decimal('0.000000000000000001')


def test_to_scaled18_rounding():
    assert to_scaled18('1.0000000000000000019') == Decimal('1.000000000000000001')
    assert to_scaled18('1.0000000000000000011', ROUND_UP) == Decimal('1.000000000000000002')
    assert to_scaled18('-1.0000000000000000011') == Decimal('-1.000000000000000002')
    assert to_scaled18(0.1) == Decimal('0.1')
    assert to_scaled18(7) == Decimal('7')


def test_to_scaled18_rejects_bool():
    with pytest.raises(TypeError):
        to_scaled18(True)


def test_wei_conversion():
    assert to_wei(Decimal('1.5')) == 1_500_000_000_000_000_000
    assert from_wei(1) == WEI_UNIT
    assert from_wei(to_wei(Decimal('123.456'))) == Decimal('123.456')


def test_mul_directional_rounding():
    assert mul_down(WEI_UNIT, Decimal('0.5')) == 0
    assert mul_up(WEI_UNIT, Decimal('0.5')) == WEI_UNIT
    # Floor and ceiling, also for negative intermediates
    assert mul_down(-WEI_UNIT, Decimal('0.5')) == -WEI_UNIT
    assert mul_up(-WEI_UNIT, Decimal('0.5')) == 0
    assert mul_rounding(Decimal('3'), Decimal('4'), ROUND_DOWN) == Decimal('12')


def test_div_directional_rounding():
    assert div_down(Decimal(1), Decimal(3)) == Decimal('0.333333333333333333')
    assert div_up(Decimal(1), Decimal(3)) == Decimal('0.333333333333333334')
    assert div_up(Decimal(1), Decimal(3)) - div_down(Decimal(1), Decimal(3)) == WEI_UNIT


def test_division_by_zero():
    with pytest.raises(ValueError, match="Division by zero"):
        div_down(FP_ONE, Decimal(0))
    with pytest.raises(ValueError, match="Division by zero"):
        div_up(FP_ONE, Decimal(0))


def test_sqrt_down():
    assert sqrt_down(Decimal(4)) == Decimal(2)
    assert sqrt_down(Decimal(2)) == Decimal('1.414213562373095048')
    with pytest.raises(ValueError):
        sqrt_down(Decimal(-1))


def test_pow_brackets_exact_value():
    for exponent in np.linspace(0.1, 3.0, 10):
        e = Decimal(str(exponent))
        low = pow_down(Decimal('1.7'), e)
        high = pow_up(Decimal('1.7'), e)
        assert low <= high
        assert high - low <= WEI_UNIT


def test_solve_quadratic_smallest_positive_root():
    assert solve_quadratic(Decimal(1), Decimal(-3), Decimal(2)) == Decimal(1)
    assert solve_quadratic(Decimal(1), Decimal(-1), Decimal(-2)) == Decimal(2)


def test_solve_quadratic_errors():
    with pytest.raises(ValueError, match="coefficient a must be >0"):
        solve_quadratic(Decimal(0), Decimal(1), Decimal(1))
    with pytest.raises(ValueError, match="Negative discriminant"):
        solve_quadratic(Decimal(1), Decimal(0), Decimal(1))
    with pytest.raises(ValueError, match="No positive roots"):
        solve_quadratic(Decimal(1), Decimal(3), Decimal(2))


def test_serialize_state_handles_decimal_and_numpy():
    payload = {'a': Decimal('1.5'), 'b': np.float32(0.25), 'c': np.int64(3), 'd': [Decimal('1E-18')], 'e': 2.5}
    json_str = serialize_state(payload)
    assert 'E' not in json_str
    restored = deserialize_state(json_str)
    assert restored == {
        'a': '1.500000000000000000',
        'b': '0.250000000000000000',
        'c': 3,
        'd': ['0.000000000000000001'],
        'e': Decimal('2.5'),
    }
    assert isinstance(restored['e'], Decimal)
    with pytest.raises(TypeError):
        serialize_state({'x': object()})
