from decimal import Decimal

import mpmath as mp

from reclamm.config import PoolConfig, SECONDS_PER_DAY
from reclamm.utils import FP_ONE, FP_ZERO, to_scaled18, pow_down
from .errors import (
    InvalidCenterednessMargin,
    InvalidDailyPriceShiftExponent,
    DailyPriceShiftExponentTooHigh,
    InvalidSwapFeePercentage,
)


def validate_pool_config(config: PoolConfig) -> None:
    if config['min_token_balance'] <= 0:
        raise ValueError("min_token_balance must be >0")
    if not (0 < config['min_pool_centeredness'] < 1):
        raise ValueError("min_pool_centeredness must be in (0,1)")
    if not (0 <= config['max_centeredness_margin'] <= Decimal('0.5')):
        raise ValueError("max_centeredness_margin must be in [0,0.5]")
    if config['max_daily_price_shift_exponent'] <= 0:
        raise ValueError("max_daily_price_shift_exponent must be >0")
    if config['max_daily_price_ratio_update_rate'] <= 1:
        raise ValueError("max_daily_price_ratio_update_rate must be >1")
    if config['min_price_ratio_update_duration'] <= 0:
        raise ValueError("min_price_ratio_update_duration must be >0")
    if not (0 <= config['balance_ratio_tolerance'] < 1):
        raise ValueError("balance_ratio_tolerance must be in [0,1)")
    if config['initialization_reference_balance'] <= 0:
        raise ValueError("initialization_reference_balance must be >0")
    if not (0 <= config['min_swap_fee_percentage'] <= config['max_swap_fee_percentage'] < 1):
        raise ValueError("swap fee bounds must satisfy 0 <= min <= max < 1")
    if config['max_fourth_root_price_ratio'] <= 1:
        raise ValueError("max_fourth_root_price_ratio must be >1")
    if config['max_timestamp'] <= 0:
        raise ValueError("max_timestamp must be >0")
    validate_centeredness_margin(config, config['default_centeredness_margin'])
    validate_daily_price_shift_exponent(config, config['default_daily_price_shift_exponent'])


def validate_centeredness_margin(config: PoolConfig, margin: Decimal) -> None:
    if not (Decimal(0) <= margin <= config['max_centeredness_margin']):
        raise InvalidCenterednessMargin(
            f"Centeredness margin {margin} outside [0, {config['max_centeredness_margin']}]"
        )


def validate_daily_price_shift_exponent(config: PoolConfig, exponent: Decimal) -> None:
    if exponent > config['max_daily_price_shift_exponent']:
        raise DailyPriceShiftExponentTooHigh(
            f"Daily price shift exponent {exponent} exceeds {config['max_daily_price_shift_exponent']}"
        )
    if exponent < Decimal(0):
        raise InvalidDailyPriceShiftExponent(f"Daily price shift exponent {exponent} must be non-negative")


def validate_swap_fee_percentage(config: PoolConfig, fee: Decimal) -> None:
    """Checks a static swap fee chosen by the host against the pool's fee bounds."""
    if not (config['min_swap_fee_percentage'] <= fee <= config['max_swap_fee_percentage']):
        raise InvalidSwapFeePercentage(
            f"Swap fee {fee} outside [{config['min_swap_fee_percentage']}, {config['max_swap_fee_percentage']}]"
        )


def to_daily_price_shift_base(exponent: Decimal) -> Decimal:
    """
    Converts a daily price shift exponent (1 = 100%/day) into the per-second decay multiplier.

    The base satisfies base^86400 = 2^-exponent, so an exponent of 1 halves the decaying
    virtual balance over one day and 2 quarters it.
    """
    if exponent == 0:
        return FP_ONE
    return pow_down(Decimal('0.5'), Decimal(exponent) / SECONDS_PER_DAY)


def to_daily_price_shift_exponent(base: Decimal) -> Decimal:
    """Inverse of to_daily_price_shift_base."""
    if base >= FP_ONE:
        return FP_ZERO
    exponent = -SECONDS_PER_DAY * mp.log(mp.mpf(str(base)), 2)
    return to_scaled18(Decimal(str(exponent)))
