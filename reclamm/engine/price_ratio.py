from decimal import Decimal, ROUND_DOWN
import logging

from reclamm.config import PoolConfig, SECONDS_PER_DAY
from reclamm.utils import FP_ONE, mul_down, div_down, div_up, pow_down, pow_up, to_scaled18
from .amm_math import compute_price_ratio_from_fourth_root
from .errors import (
    InvalidStartTime,
    InvalidFourthRootPriceRatio,
    PriceRatioUpdateDurationTooShort,
    PriceRatioUpdateTooFast,
)
from .state import PriceRatioState

logger = logging.getLogger(__name__)


def create_price_ratio_state(fourth_root_price_ratio: Decimal, current_time: int) -> PriceRatioState:
    """A schedule that is not moving: start and end values and times coincide."""
    return {
        'start_fourth_root_price_ratio': fourth_root_price_ratio,
        'end_fourth_root_price_ratio': fourth_root_price_ratio,
        'price_ratio_update_start_time': current_time,
        'price_ratio_update_end_time': current_time,
    }


def compute_fourth_root_price_ratio(
    current_time: int,
    start_fourth_root_price_ratio: Decimal,
    end_fourth_root_price_ratio: Decimal,
    start_time: int,
    end_time: int,
) -> Decimal:
    """
    Interpolates the fourth root price ratio geometrically between start and end.

    q(t) = q_start * (q_end / q_start)^t with t the elapsed fraction of the window,
    evaluated as q_start * q_end^t / q_start^t. Outside the window the value is clamped
    to the nearest endpoint.
    """
    if current_time <= start_time:
        return start_fourth_root_price_ratio
    if current_time >= end_time or start_fourth_root_price_ratio == end_fourth_root_price_ratio:
        return end_fourth_root_price_ratio

    exponent = div_down(Decimal(current_time - start_time), Decimal(end_time - start_time))
    current = div_down(
        mul_down(start_fourth_root_price_ratio, pow_down(end_fourth_root_price_ratio, exponent)),
        pow_down(start_fourth_root_price_ratio, exponent),
    )

    # Rounding must never carry the value past either endpoint
    low = min(start_fourth_root_price_ratio, end_fourth_root_price_ratio)
    high = max(start_fourth_root_price_ratio, end_fourth_root_price_ratio)
    return min(max(current, low), high)


def compute_current_fourth_root_price_ratio(price_ratio_state: PriceRatioState, current_time: int) -> Decimal:
    return compute_fourth_root_price_ratio(
        current_time,
        price_ratio_state['start_fourth_root_price_ratio'],
        price_ratio_state['end_fourth_root_price_ratio'],
        price_ratio_state['price_ratio_update_start_time'],
        price_ratio_state['price_ratio_update_end_time'],
    )


def is_price_ratio_updating(price_ratio_state: PriceRatioState, last_timestamp: int, current_time: int) -> bool:
    """
    True while the schedule still has to be applied: the window has started and either
    is still open or was still open at the previous interaction. A start time of 0 marks
    a schedule that was never set.
    """
    start_time = price_ratio_state['price_ratio_update_start_time']
    end_time = price_ratio_state['price_ratio_update_end_time']
    return start_time != 0 and current_time > start_time and (current_time < end_time or last_timestamp < end_time)


def compute_daily_price_ratio_update_rate(
    start_fourth_root_price_ratio: Decimal,
    end_fourth_root_price_ratio: Decimal,
    start_time: int,
    end_time: int,
) -> Decimal:
    """
    Normalizes the change of the (non-root) price ratio over the window to one day.

    Returns the factor by which the price ratio would move per day; shrinking and widening
    are treated alike.
    """
    if end_time <= start_time:
        raise InvalidStartTime(f"Update window [{start_time}, {end_time}] is empty")
    start_ratio = compute_price_ratio_from_fourth_root(start_fourth_root_price_ratio)
    end_ratio = compute_price_ratio_from_fourth_root(end_fourth_root_price_ratio)
    if end_ratio >= start_ratio:
        total_change = div_up(end_ratio, start_ratio)
    else:
        total_change = div_up(start_ratio, end_ratio)
    days = div_up(Decimal(SECONDS_PER_DAY), Decimal(end_time - start_time))
    return pow_up(total_change, days)


def validate_fourth_root_price_ratio(config: PoolConfig, fourth_root_price_ratio: Decimal) -> None:
    if not (FP_ONE < fourth_root_price_ratio <= config['max_fourth_root_price_ratio']):
        raise InvalidFourthRootPriceRatio(
            f"Fourth root price ratio {fourth_root_price_ratio} outside (1, {config['max_fourth_root_price_ratio']}]"
        )


def begin_price_ratio_update(
    config: PoolConfig,
    price_ratio_state: PriceRatioState,
    end_fourth_root_price_ratio: Decimal,
    start_time: int,
    end_time: int,
    current_time: int,
) -> PriceRatioState:
    """
    Starts a gradual price ratio change from the value current at current_time.

    Raises:
        InvalidStartTime: If start_time > end_time or start_time is in the past
        InvalidFourthRootPriceRatio: If the target is not in (1, max]
        PriceRatioUpdateDurationTooShort: If the window is shorter than the configured minimum
        PriceRatioUpdateTooFast: If the price ratio would move faster than the daily ceiling
    """
    end_fourth_root_price_ratio = to_scaled18(end_fourth_root_price_ratio, ROUND_DOWN)
    if start_time > end_time:
        raise InvalidStartTime(f"Start time {start_time} is after end time {end_time}")
    if start_time < current_time:
        raise InvalidStartTime(f"Start time {start_time} is before the current time {current_time}")
    validate_fourth_root_price_ratio(config, end_fourth_root_price_ratio)

    duration = end_time - start_time
    if duration < config['min_price_ratio_update_duration']:
        raise PriceRatioUpdateDurationTooShort(
            f"Update duration {duration}s is below {config['min_price_ratio_update_duration']}s"
        )

    start_fourth_root_price_ratio = compute_current_fourth_root_price_ratio(price_ratio_state, current_time)
    daily_rate = compute_daily_price_ratio_update_rate(
        start_fourth_root_price_ratio, end_fourth_root_price_ratio, start_time, end_time
    )
    if daily_rate > config['max_daily_price_ratio_update_rate']:
        raise PriceRatioUpdateTooFast(
            f"Price ratio would change by {daily_rate}x per day, above {config['max_daily_price_ratio_update_rate']}x"
        )

    logger.info(
        f"Price ratio update scheduled: fourth root {start_fourth_root_price_ratio} -> {end_fourth_root_price_ratio} "
        f"over [{start_time}, {end_time}]"
    )
    return {
        'start_fourth_root_price_ratio': start_fourth_root_price_ratio,
        'end_fourth_root_price_ratio': end_fourth_root_price_ratio,
        'price_ratio_update_start_time': start_time,
        'price_ratio_update_end_time': end_time,
    }
