import pytest
from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import List

import numpy as np

from reclamm.engine.amm_math import (
    TOKEN_A,
    TOKEN_B,
    compute_invariant,
    compute_out_given_in,
    compute_in_given_out,
    is_above_center,
    compute_centeredness,
    compute_spot_price,
    compute_price_range,
    compute_price_ratio,
    compute_sqrt_price_ratio,
    compute_price_ratio_from_fourth_root,
)
from reclamm.engine.errors import (
    AmountOutBiggerThanBalance,
    InvalidAmount,
    InvalidTokenIndex,
    NegativeAmountOut,
)

WEI_UNIT = Decimal('0.000000000000000001')


@pytest.fixture
def balances() -> List[Decimal]:
    return [Decimal('1000'), Decimal('1000')]


@pytest.fixture
def virtual_balances() -> List[Decimal]:
    return [Decimal('1000'), Decimal('1000')]


def test_compute_invariant():
    assert compute_invariant([Decimal(1), Decimal(2)], [Decimal(3), Decimal(4)]) == Decimal(24)
    third = Decimal('0.333333333333333333')
    zero = Decimal(0)
    low = compute_invariant([third, third], [zero, zero], ROUND_DOWN)
    high = compute_invariant([third, third], [zero, zero], ROUND_UP)
    assert high - low == WEI_UNIT


def test_compute_out_given_in(balances, virtual_balances):
    amount_out = compute_out_given_in(balances, virtual_balances, TOKEN_A, TOKEN_B, Decimal('100'))
    # 2000 - ceil(4e6 / 2100)
    assert amount_out == Decimal('95.238095238095238095')


def test_compute_in_given_out(balances, virtual_balances):
    amount_in = compute_in_given_out(balances, virtual_balances, TOKEN_A, TOKEN_B, Decimal('95.238095238095238095'))
    assert amount_in >= Decimal('100')
    assert amount_in - Decimal('100') < Decimal('1e-15')


def test_swaps_never_decrease_invariant(balances, virtual_balances):
    before = compute_invariant(balances, virtual_balances, ROUND_DOWN)
    for amount in np.linspace(0.001, 900, 20):
        amount = Decimal(str(amount))

        out = compute_out_given_in(balances, virtual_balances, TOKEN_B, TOKEN_A, amount)
        after = compute_invariant([balances[0] - out, balances[1] + amount], virtual_balances, ROUND_DOWN)
        assert after >= before
        assert 0 <= out < amount

        amount_in = compute_in_given_out(balances, virtual_balances, TOKEN_A, TOKEN_B, amount)
        after = compute_invariant([balances[0] + amount_in, balances[1] - amount], virtual_balances, ROUND_DOWN)
        assert after >= before
        assert amount_in > amount


def test_out_given_in_exceeding_balance():
    balances = [Decimal('1000'), Decimal('10')]
    virtual_balances = [Decimal('1000'), Decimal('1000')]
    with pytest.raises(AmountOutBiggerThanBalance):
        compute_out_given_in(balances, virtual_balances, TOKEN_A, TOKEN_B, Decimal('2000'))


def test_in_given_out_exceeding_balance(balances, virtual_balances):
    with pytest.raises(AmountOutBiggerThanBalance):
        compute_in_given_out(balances, virtual_balances, TOKEN_A, TOKEN_B, Decimal('1000'))


def test_out_given_in_negative_due_to_rounding():
    balances = [WEI_UNIT, WEI_UNIT]
    virtual_balances = [2 * WEI_UNIT, Decimal(0)]
    with pytest.raises(NegativeAmountOut):
        compute_out_given_in(balances, virtual_balances, TOKEN_A, TOKEN_B, Decimal(0))


def test_invalid_requests(balances, virtual_balances):
    with pytest.raises(InvalidTokenIndex):
        compute_out_given_in(balances, virtual_balances, TOKEN_A, TOKEN_A, Decimal('1'))
    with pytest.raises(InvalidTokenIndex):
        compute_in_given_out(balances, virtual_balances, 0, 2, Decimal('1'))
    with pytest.raises(InvalidAmount):
        compute_out_given_in(balances, virtual_balances, TOKEN_A, TOKEN_B, Decimal('-1'))


def test_centeredness():
    virtual_balances = [Decimal('1000'), Decimal('1000')]
    assert compute_centeredness([Decimal('1000'), Decimal('1000')], virtual_balances) == Decimal(1)
    assert compute_centeredness([Decimal('500'), Decimal('1000')], virtual_balances) == Decimal('0.5')
    assert compute_centeredness([Decimal('1000'), Decimal('500')], virtual_balances) == Decimal('0.5')
    assert compute_centeredness([Decimal('1000'), Decimal('0')], virtual_balances) == 0
    assert compute_centeredness([Decimal('0'), Decimal('1000')], virtual_balances) == 0


def test_is_above_center():
    virtual_balances = [Decimal('1000'), Decimal('1000')]
    assert is_above_center([Decimal('1000'), Decimal('500')], virtual_balances)
    assert not is_above_center([Decimal('500'), Decimal('1000')], virtual_balances)
    assert not is_above_center([Decimal('1000'), Decimal('1000')], virtual_balances)
    assert is_above_center([Decimal('1000'), Decimal('0')], virtual_balances)


def test_prices(balances, virtual_balances):
    assert compute_spot_price(balances, virtual_balances) == Decimal(1)
    min_price, max_price = compute_price_range(balances, virtual_balances)
    assert min_price == Decimal('0.25')
    assert max_price == Decimal('4')
    assert compute_price_ratio(balances, virtual_balances) == Decimal('16')


def test_fourth_root_relations(balances, virtual_balances):
    # L / (virtual_a * virtual_b) is the square root of the price ratio
    invariant = compute_invariant(balances, virtual_balances)
    assert invariant / (virtual_balances[0] * virtual_balances[1]) == compute_sqrt_price_ratio(Decimal(2))
    assert compute_price_ratio_from_fourth_root(Decimal(2)) == Decimal(16)


def test_quotes_are_monotonic_per_wei(balances, virtual_balances):
    for start in np.linspace(0.5, 800, 12):
        base = Decimal(str(start))
        outs = [
            compute_out_given_in(balances, virtual_balances, TOKEN_A, TOKEN_B, base + k * WEI_UNIT)
            for k in range(25)
        ]
        assert all(later >= earlier for earlier, later in zip(outs, outs[1:]))

        ins = [
            compute_in_given_out(balances, virtual_balances, TOKEN_A, TOKEN_B, base + k * WEI_UNIT)
            for k in range(25)
        ]
        assert all(later >= earlier for earlier, later in zip(ins, ins[1:]))
