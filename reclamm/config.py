import os
from decimal import Decimal
from typing import Any, Dict

from dotenv import load_dotenv
from typing_extensions import TypedDict

ENV_PREFIX = 'RECLAMM_'
SECONDS_PER_DAY = 86400
MAX_UINT32 = 2 ** 32 - 1
MAX_UINT96 = 2 ** 96 - 1


class PoolConfig(TypedDict):
    min_token_balance: Decimal
    min_pool_centeredness: Decimal
    max_centeredness_margin: Decimal
    max_daily_price_shift_exponent: Decimal
    max_daily_price_ratio_update_rate: Decimal
    min_price_ratio_update_duration: int
    balance_ratio_tolerance: Decimal
    initialization_reference_balance: Decimal
    min_swap_fee_percentage: Decimal
    max_swap_fee_percentage: Decimal
    max_fourth_root_price_ratio: Decimal
    max_timestamp: int
    default_centeredness_margin: Decimal
    default_daily_price_shift_exponent: Decimal


def get_default_pool_config() -> PoolConfig:
    return PoolConfig(
        min_token_balance=Decimal('0.0001'),
        min_pool_centeredness=Decimal('0.000000000000001'),
        max_centeredness_margin=Decimal('0.5'),
        max_daily_price_shift_exponent=Decimal('1'),  # 100% per day
        max_daily_price_ratio_update_rate=Decimal('2'),
        min_price_ratio_update_duration=SECONDS_PER_DAY,
        balance_ratio_tolerance=Decimal('0.0001'),
        initialization_reference_balance=Decimal('1000'),
        min_swap_fee_percentage=Decimal('0.00001'),
        max_swap_fee_percentage=Decimal('0.1'),
        max_fourth_root_price_ratio=Decimal(f'{MAX_UINT96}e-18'),
        max_timestamp=MAX_UINT32,
        default_centeredness_margin=Decimal('0.2'),
        default_daily_price_shift_exponent=Decimal('1'),
    )


def _coerce(key: str, raw: Any, default: Any) -> Any:
    try:
        if isinstance(default, int):
            return int(raw)
        return Decimal(str(raw))
    except (ArithmeticError, ValueError) as e:
        raise ValueError(f"Invalid value for {key}: {raw!r}") from e


def load_env() -> Dict[str, str]:
    """
    Reads RECLAMM_* overrides from the environment, loading a .env file first if present.
    """
    load_dotenv()

    env_vars = {}
    for key in get_default_pool_config():
        value = os.getenv(ENV_PREFIX + key.upper())
        if value is not None:
            env_vars[key] = value
    return env_vars


def load_pool_config(overrides: Dict[str, Any] | None = None) -> PoolConfig:
    """
    Builds a PoolConfig from defaults, environment overrides and explicit overrides, in that order.

    Raises:
        ValueError: If an override names an unknown field or the resulting config is invalid
    """
    # Imported here, params imports PoolConfig from this module
    from reclamm.engine.params import validate_pool_config

    config = get_default_pool_config()
    layered: Dict[str, Any] = dict(load_env())
    if overrides:
        for key in overrides:
            if key not in config:
                raise ValueError(f"Override key '{key}' not in PoolConfig.")
        layered.update(overrides)

    for key, raw in layered.items():
        config[key] = _coerce(key, raw, config[key])

    validate_pool_config(config)
    return config
