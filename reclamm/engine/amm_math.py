from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import List, Tuple

from reclamm.utils import FP_ZERO, mul_down, mul_up, div_down, div_up, mul_rounding
from .errors import NegativeAmountOut, AmountOutBiggerThanBalance, InvalidTokenIndex, InvalidAmount

TOKEN_A = 0
TOKEN_B = 1


def validate_token_indexes(token_in: int, token_out: int) -> None:
    if {token_in, token_out} != {TOKEN_A, TOKEN_B}:
        raise InvalidTokenIndex(f"Token indexes must be 0 and 1 in some order, got ({token_in}, {token_out})")


def compute_invariant(balances: List[Decimal], virtual_balances: List[Decimal], rounding: str = ROUND_DOWN) -> Decimal:
    """Computes L = (real_a + virtual_a) * (real_b + virtual_b) with the given rounding."""
    return mul_rounding(balances[0] + virtual_balances[0], balances[1] + virtual_balances[1], rounding)


def compute_out_given_in(
    balances: List[Decimal],
    virtual_balances: List[Decimal],
    token_in: int,
    token_out: int,
    amount_in: Decimal,
) -> Decimal:
    """
    Computes the amount paid out for an exact amount in.

    The invariant is rounded up and the post-trade out balance is rounded up, so the
    amount out is rounded down in the pool's favor.

    Raises:
        NegativeAmountOut: If rounding at extreme ratios makes the result negative
        AmountOutBiggerThanBalance: If the pool would pay out all of its real balance or more
    """
    validate_token_indexes(token_in, token_out)
    if amount_in < 0:
        raise InvalidAmount(f"Invalid amount in: {amount_in}. Must be non-negative.")

    total_in = balances[token_in] + virtual_balances[token_in]
    total_out = balances[token_out] + virtual_balances[token_out]
    invariant = mul_up(total_in, total_out)

    new_total_out = div_up(invariant, total_in + amount_in)
    if new_total_out > total_out:
        raise NegativeAmountOut(f"Amount out would be negative: {total_out - new_total_out}")
    amount_out = total_out - new_total_out

    if amount_out >= balances[token_out]:
        raise AmountOutBiggerThanBalance(
            f"Amount out {amount_out} exceeds real balance {balances[token_out]} of token {token_out}"
        )
    return amount_out


def compute_in_given_out(
    balances: List[Decimal],
    virtual_balances: List[Decimal],
    token_in: int,
    token_out: int,
    amount_out: Decimal,
) -> Decimal:
    """
    Computes the amount that must be paid in for an exact amount out, rounded up.

    Raises:
        AmountOutBiggerThanBalance: If amount_out is not strictly below the real out balance
    """
    validate_token_indexes(token_in, token_out)
    if amount_out < 0:
        raise InvalidAmount(f"Invalid amount out: {amount_out}. Must be non-negative.")
    if amount_out >= balances[token_out]:
        raise AmountOutBiggerThanBalance(
            f"Amount out {amount_out} exceeds real balance {balances[token_out]} of token {token_out}"
        )

    total_in = balances[token_in] + virtual_balances[token_in]
    total_out = balances[token_out] + virtual_balances[token_out]
    invariant = mul_up(total_in, total_out)

    return div_up(invariant, total_out - amount_out) - total_in


def is_above_center(balances: List[Decimal], virtual_balances: List[Decimal]) -> bool:
    """True when real_a / real_b > virtual_a / virtual_b, i.e. token A is over-represented."""
    if balances[1] == 0:
        return True
    return div_down(balances[0], balances[1]) > div_down(virtual_balances[0], virtual_balances[1])


def compute_centeredness(balances: List[Decimal], virtual_balances: List[Decimal]) -> Decimal:
    """
    Computes how close the real balance ratio is to the virtual balance ratio, in [0, 1].

    0 means one real balance is empty (price at an edge of the range); 1 means real
    balances are proportional to virtual balances (price at the geometric center).
    """
    if balances[0] == 0 or balances[1] == 0:
        return FP_ZERO
    if is_above_center(balances, virtual_balances):
        return div_down(mul_down(balances[1], virtual_balances[0]), mul_down(balances[0], virtual_balances[1]))
    return div_down(mul_down(balances[0], virtual_balances[1]), mul_down(balances[1], virtual_balances[0]))


def compute_spot_price(balances: List[Decimal], virtual_balances: List[Decimal]) -> Decimal:
    """Price of token A in units of token B."""
    return div_down(balances[1] + virtual_balances[1], balances[0] + virtual_balances[0])


def compute_price_range(balances: List[Decimal], virtual_balances: List[Decimal]) -> Tuple[Decimal, Decimal]:
    """
    Returns (min_price, max_price) of token A in token B.

    min_price is reached when the real B balance is exhausted, max_price when the real A
    balance is exhausted.
    """
    invariant = compute_invariant(balances, virtual_balances, ROUND_DOWN)
    min_price = div_down(mul_down(virtual_balances[1], virtual_balances[1]), invariant)
    max_price = div_down(invariant, mul_down(virtual_balances[0], virtual_balances[0]))
    return min_price, max_price


def compute_price_ratio(balances: List[Decimal], virtual_balances: List[Decimal]) -> Decimal:
    min_price, max_price = compute_price_range(balances, virtual_balances)
    return div_up(max_price, min_price)


def compute_sqrt_price_ratio(fourth_root_price_ratio: Decimal) -> Decimal:
    # L / (virtual_a * virtual_b) for a pool whose range spans fourth_root_price_ratio^4
    return mul_down(fourth_root_price_ratio, fourth_root_price_ratio)


def compute_price_ratio_from_fourth_root(fourth_root_price_ratio: Decimal, rounding: str = ROUND_UP) -> Decimal:
    sqrt_ratio = mul_rounding(fourth_root_price_ratio, fourth_root_price_ratio, rounding)
    return mul_rounding(sqrt_ratio, sqrt_ratio, rounding)
