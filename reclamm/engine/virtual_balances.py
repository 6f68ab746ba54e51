from decimal import Decimal
from typing import List, Tuple
import logging

from reclamm.utils import FP_ONE, mul_down, div_down, div_up, pow_down, solve_quadratic
from .amm_math import compute_centeredness, is_above_center, compute_sqrt_price_ratio
from .errors import InvalidVirtualBalances
from .price_ratio import compute_current_fourth_root_price_ratio, is_price_ratio_updating
from .state import PriceRatioState

logger = logging.getLogger(__name__)


def is_pool_within_target_range(
    balances: List[Decimal],
    virtual_balances: List[Decimal],
    centeredness_margin: Decimal,
) -> bool:
    return compute_centeredness(balances, virtual_balances) >= centeredness_margin


def compute_current_virtual_balances(
    balances: List[Decimal],
    last_virtual_balances: List[Decimal],
    daily_price_shift_base: Decimal,
    last_timestamp: int,
    current_timestamp: int,
    centeredness_margin: Decimal,
    price_ratio_state: PriceRatioState,
) -> Tuple[List[Decimal], bool]:
    """
    Recomputes the virtual balances at current_timestamp.

    Two independent adjustments may apply, in this order:
    - while a price ratio update is in progress, virtual balances are reshaped so the
      range spans the interpolated ratio at unchanged centeredness;
    - when centeredness is below the margin, the virtual balances drift exponentially
      toward re-centering the range around the current price.

    Returns (virtual_balances, changed). Repeated calls at the same timestamp return the
    last virtual balances unchanged.
    """
    virtual_balances = list(last_virtual_balances)
    if current_timestamp == last_timestamp:
        return virtual_balances, False

    changed = False
    current_fourth_root_price_ratio = compute_current_fourth_root_price_ratio(price_ratio_state, current_timestamp)

    if is_price_ratio_updating(price_ratio_state, last_timestamp, current_timestamp):
        virtual_balances = compute_virtual_balances_updating_price_ratio(
            current_fourth_root_price_ratio, balances, virtual_balances
        )
        changed = True
        logger.debug(f"Virtual balances reshaped for fourth root price ratio {current_fourth_root_price_ratio}: {virtual_balances}")

    if not is_pool_within_target_range(balances, virtual_balances, centeredness_margin):
        virtual_balances = compute_virtual_balances_updating_price_range(
            balances,
            virtual_balances,
            current_fourth_root_price_ratio,
            daily_price_shift_base,
            current_timestamp - last_timestamp,
        )
        changed = True
        logger.debug(f"Pool outside target range, virtual balances shifted to {virtual_balances}")

    return virtual_balances, changed


def compute_virtual_balances_updating_price_ratio(
    current_fourth_root_price_ratio: Decimal,
    balances: List[Decimal],
    last_virtual_balances: List[Decimal],
) -> List[Decimal]:
    """
    Solves for virtual balances that keep the current centeredness while making
    L / (virtual_a * virtual_b) equal the square root price ratio q^2.

    With x the real balance of the dominant token (the over-represented one) and c the
    centeredness, its virtual balance v is the positive root of
        (q^2 - 1) v^2 - x (1 + c) v - x^2 c = 0
    and the other virtual balance follows from the centeredness definition.
    """
    centeredness = compute_centeredness(balances, last_virtual_balances)
    if centeredness == 0:
        raise InvalidVirtualBalances("Cannot reshape virtual balances of a pool with an empty real balance")

    dominant, other = (0, 1) if is_above_center(balances, last_virtual_balances) else (1, 0)

    a = compute_sqrt_price_ratio(current_fourth_root_price_ratio) - FP_ONE
    if a <= 0:
        raise InvalidVirtualBalances(f"Fourth root price ratio {current_fourth_root_price_ratio} must be >1")
    b = mul_down(balances[dominant], FP_ONE + centeredness)
    c = mul_down(mul_down(balances[dominant], balances[dominant]), centeredness)

    virtual_balances = [Decimal(0), Decimal(0)]
    virtual_balances[dominant] = solve_quadratic(a, -b, -c)
    virtual_balances[other] = div_down(
        div_down(mul_down(balances[other], virtual_balances[dominant]), balances[dominant]),
        centeredness,
    )
    return virtual_balances


def compute_virtual_balances_updating_price_range(
    balances: List[Decimal],
    virtual_balances: List[Decimal],
    current_fourth_root_price_ratio: Decimal,
    daily_price_shift_base: Decimal,
    elapsed_seconds: int,
) -> List[Decimal]:
    """
    Moves the range toward the current price while keeping its width.

    The virtual balance of the under-represented token decays by base^elapsed; the other
    virtual balance is recomputed so that L / (virtual_a * virtual_b) stays equal to the
    square root price ratio:
        v_other = x_other (v_decaying + x_decaying) / ((q^2 - 1) v_decaying - x_decaying)

    The decay stops at v_decaying = x_decaying / (q - 1), where the pool is centered, so
    a long idle period re-centers the range instead of overshooting it.
    """
    # Above center token A is over-represented, so B's virtual balance decays
    decaying, other = (1, 0) if is_above_center(balances, virtual_balances) else (0, 1)

    sqrt_price_ratio = compute_sqrt_price_ratio(current_fourth_root_price_ratio)
    decay = pow_down(daily_price_shift_base, Decimal(elapsed_seconds))

    new_virtual_balances = list(virtual_balances)
    centered_virtual_balance = div_up(balances[decaying], current_fourth_root_price_ratio - FP_ONE)
    new_virtual_balances[decaying] = max(mul_down(virtual_balances[decaying], decay), centered_virtual_balance)

    denominator = mul_down(sqrt_price_ratio - FP_ONE, new_virtual_balances[decaying]) - balances[decaying]
    if denominator <= 0:
        raise InvalidVirtualBalances(
            f"Cannot shift price range: real balance {balances[decaying]} of token {decaying} is too large "
            f"for virtual balance {new_virtual_balances[decaying]}"
        )
    new_virtual_balances[other] = div_down(
        mul_down(balances[other], new_virtual_balances[decaying] + balances[decaying]),
        denominator,
    )
    return new_virtual_balances
