from decimal import Decimal
from typing import List, Tuple

from reclamm.config import PoolConfig
from reclamm.utils import FP_ONE, mul_down, div_down, sqrt_down, to_scaled18
from .errors import InvalidInitializationPrices, BalanceRatioExceedsTolerance


def validate_initialization_prices(min_price: Decimal, max_price: Decimal, target_price: Decimal) -> None:
    if min_price <= 0 or max_price <= 0 or target_price <= 0:
        raise InvalidInitializationPrices(
            f"Prices must be positive: min={min_price}, max={max_price}, target={target_price}"
        )
    if min_price >= max_price:
        raise InvalidInitializationPrices(f"Min price {min_price} must be below max price {max_price}")
    if not (min_price < target_price < max_price):
        raise InvalidInitializationPrices(
            f"Target price {target_price} must lie strictly inside ({min_price}, {max_price})"
        )


def compute_theoretical_price_ratio_and_balances(
    min_price: Decimal,
    max_price: Decimal,
    target_price: Decimal,
    reference_balance: Decimal = Decimal('1000'),
) -> Tuple[List[Decimal], List[Decimal], Decimal]:
    """
    Computes the balances of an ideal pool with the given price range and target price.

    The pool is normalized so that token A's real balance would be reference_balance when
    token B's real balance is exhausted (price at min_price). With s = sqrt(max/min):
        virtual_a = R / (s - 1)
        virtual_b = min * (virtual_a + R)
        real_b    = sqrt(target * virtual_b * (R + virtual_a)) - virtual_b
        real_a    = (real_b + virtual_b - virtual_a * target) / target
    so that the price is max_price at real_a = 0, min_price at real_b = 0 and
    target_price at (real_a, real_b).

    Returns (real_balances, virtual_balances, fourth_root_price_ratio).
    """
    min_price = to_scaled18(min_price)
    max_price = to_scaled18(max_price)
    target_price = to_scaled18(target_price)
    reference_balance = to_scaled18(reference_balance)
    validate_initialization_prices(min_price, max_price, target_price)

    sqrt_price_ratio = sqrt_down(div_down(max_price, min_price))
    fourth_root_price_ratio = sqrt_down(sqrt_price_ratio)
    if sqrt_price_ratio <= FP_ONE:
        raise InvalidInitializationPrices(f"Price range [{min_price}, {max_price}] is too narrow")

    virtual_a = div_down(reference_balance, sqrt_price_ratio - FP_ONE)
    virtual_b = mul_down(min_price, virtual_a + reference_balance)

    real_b = sqrt_down(mul_down(mul_down(target_price, virtual_b), reference_balance + virtual_a)) - virtual_b
    real_a = div_down(real_b + virtual_b - mul_down(virtual_a, target_price), target_price)

    return [real_a, real_b], [virtual_a, virtual_b], fourth_root_price_ratio


def validate_initial_balances(
    config: PoolConfig,
    balances: List[Decimal],
    theoretical_balances: List[Decimal],
) -> None:
    """
    Checks that the supplied balances have the theoretical B/A ratio within the tolerance.

    Raises:
        BalanceRatioExceedsTolerance: If the ratio is off by more than the configured tolerance
    """
    if balances[0] == 0 or theoretical_balances[0] == 0:
        raise BalanceRatioExceedsTolerance("Initial balance of token A must be positive")
    real_ratio = div_down(balances[1], balances[0])
    theoretical_ratio = div_down(theoretical_balances[1], theoretical_balances[0])

    tolerance = config['balance_ratio_tolerance']
    lower = mul_down(theoretical_ratio, FP_ONE - tolerance)
    upper = mul_down(theoretical_ratio, FP_ONE + tolerance)
    if not (lower <= real_ratio <= upper):
        raise BalanceRatioExceedsTolerance(
            f"Balance ratio {real_ratio} outside [{lower}, {upper}] around theoretical ratio {theoretical_ratio}"
        )


def compute_initial_virtual_balances(
    balances: List[Decimal],
    theoretical_balances: List[Decimal],
    theoretical_virtual_balances: List[Decimal],
) -> List[Decimal]:
    """Scales the theoretical virtual balances by actual / theoretical balance of token A."""
    scale = div_down(balances[0], theoretical_balances[0])
    return [mul_down(theoretical_virtual_balances[0], scale), mul_down(theoretical_virtual_balances[1], scale)]
