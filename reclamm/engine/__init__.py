from .state import PoolState, PriceRatioState, init_pool_state, serialize_pool_state, deserialize_pool_state
from .pool import (
    EXACT_IN,
    EXACT_OUT,
    SwapResult,
    initialize_pool,
    swap,
    compute_liquidity_proportion,
    add_liquidity_proportional,
    remove_liquidity_proportional,
    set_price_ratio_target,
    set_centeredness_margin,
    set_daily_price_shift_exponent,
    get_current_virtual_balances,
    compute_current_invariant,
    get_current_price_range,
    get_current_centeredness,
    get_current_fourth_root_price_ratio,
    get_daily_price_shift_exponent,
    is_pool_within_target_range_now,
    validate_swap_fee_percentage,
)
