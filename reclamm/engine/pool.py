from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import Any, List, Tuple
import logging

from typing_extensions import TypedDict

from reclamm.config import PoolConfig
from reclamm.utils import FP_ONE, mul_down, mul_up, div_down, div_up, to_scaled18
from .amm_math import (
    compute_invariant,
    compute_out_given_in,
    compute_in_given_out,
    compute_centeredness,
    compute_price_range,
    validate_token_indexes,
)
from .errors import (
    InvalidAmount,
    InvalidSwapKind,
    InvalidTimestamp,
    PoolAlreadyInitialized,
    PoolCenterednessTooLow,
    TokenBalanceTooLow,
)
from .initialization import (
    compute_theoretical_price_ratio_and_balances,
    validate_initial_balances,
    compute_initial_virtual_balances,
)
from .params import (
    validate_centeredness_margin,
    validate_daily_price_shift_exponent,
    to_daily_price_shift_base,
    to_daily_price_shift_exponent,
    validate_swap_fee_percentage,
)
from .price_ratio import (
    begin_price_ratio_update,
    create_price_ratio_state,
    compute_current_fourth_root_price_ratio,
    validate_fourth_root_price_ratio,
)
from .state import PoolState, copy_state, require_initialized, validate_balances
from .virtual_balances import compute_current_virtual_balances

logger = logging.getLogger(__name__)

EXACT_IN = 'EXACT_IN'
EXACT_OUT = 'EXACT_OUT'


class SwapResult(TypedDict):
    kind: str
    token_in: int
    token_out: int
    amount_in: Decimal
    amount_out: Decimal
    amount_calculated: Decimal  # amount_out for EXACT_IN, amount_in for EXACT_OUT
    balances_after: List[Decimal]
    virtual_balances: List[Decimal]


def _validate_elapsed(state: PoolState, current_time: int) -> None:
    if not isinstance(current_time, int) or isinstance(current_time, bool):
        raise InvalidTimestamp(f"Timestamp must be an int, got {type(current_time).__name__}")
    if state['initialized'] and current_time < state['last_timestamp']:
        raise InvalidTimestamp(
            f"Timestamp {current_time} is before the last interaction at {state['last_timestamp']}"
        )


def _validate_timestamp(state: PoolState, config: PoolConfig, current_time: int) -> None:
    _validate_elapsed(state, current_time)
    if not (0 <= current_time <= config['max_timestamp']):
        raise InvalidTimestamp(f"Timestamp {current_time} outside [0, {config['max_timestamp']}]")


def _refresh_virtual_balances(state: PoolState, balances: List[Decimal], current_time: int) -> Tuple[List[Decimal], bool]:
    return compute_current_virtual_balances(
        balances,
        state['last_virtual_balances'],
        state['daily_price_shift_base'],
        state['last_timestamp'],
        current_time,
        state['centeredness_margin'],
        state['price_ratio_state'],
    )


def _prepare(state: PoolState, config: PoolConfig, balances: List[Any], current_time: int) -> Tuple[PoolState, List[Decimal]]:
    """
    Validates inputs and returns a working copy whose virtual balances and timestamp
    are brought up to current_time.
    """
    require_initialized(state)
    _validate_timestamp(state, config, current_time)
    balances = validate_balances(balances)

    new_state = copy_state(state)
    virtual_balances, changed = _refresh_virtual_balances(new_state, balances, current_time)
    if changed:
        new_state['last_virtual_balances'] = virtual_balances
    new_state['last_timestamp'] = current_time
    return new_state, balances


def initialize_pool(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    min_price: Decimal,
    max_price: Decimal,
    target_price: Decimal,
    current_time: int,
    centeredness_margin: Decimal | None = None,
    daily_price_shift_exponent: Decimal | None = None,
) -> PoolState:
    """
    Initializes a pool from its first deposit.

    The deposit must match the balance ratio of an ideal pool with the given price range
    and target price; its virtual balances are the ideal ones scaled to the deposit size.
    Margin and daily price shift exponent default to the config's creation defaults.

    Raises:
        PoolAlreadyInitialized: If the pool was already initialized
        InvalidInitializationPrices: If prices are not positive with min < target < max
        BalanceRatioExceedsTolerance: If the deposit ratio is off by more than the tolerance
        PoolCenterednessTooLow: If the resulting centeredness is below the margin
    """
    if state['initialized']:
        raise PoolAlreadyInitialized("Pool is already initialized")
    _validate_timestamp(state, config, current_time)
    balances = validate_balances(balances)

    if centeredness_margin is None:
        centeredness_margin = config['default_centeredness_margin']
    if daily_price_shift_exponent is None:
        daily_price_shift_exponent = config['default_daily_price_shift_exponent']
    centeredness_margin = to_scaled18(centeredness_margin)
    daily_price_shift_exponent = to_scaled18(daily_price_shift_exponent)
    validate_centeredness_margin(config, centeredness_margin)
    validate_daily_price_shift_exponent(config, daily_price_shift_exponent)

    theoretical_balances, theoretical_virtual_balances, fourth_root_price_ratio = (
        compute_theoretical_price_ratio_and_balances(
            min_price, max_price, target_price, config['initialization_reference_balance']
        )
    )
    validate_fourth_root_price_ratio(config, fourth_root_price_ratio)
    validate_initial_balances(config, balances, theoretical_balances)
    virtual_balances = compute_initial_virtual_balances(balances, theoretical_balances, theoretical_virtual_balances)

    centeredness = compute_centeredness(balances, virtual_balances)
    if centeredness < centeredness_margin:
        raise PoolCenterednessTooLow(f"Initial centeredness {centeredness} is below the margin {centeredness_margin}")

    new_state = copy_state(state)
    new_state['initialized'] = True
    new_state['last_virtual_balances'] = virtual_balances
    new_state['last_timestamp'] = current_time
    new_state['centeredness_margin'] = centeredness_margin
    new_state['daily_price_shift_base'] = to_daily_price_shift_base(daily_price_shift_exponent)
    new_state['price_ratio_state'] = create_price_ratio_state(fourth_root_price_ratio, current_time)

    logger.info(
        f"Pool initialized at {current_time}: balances={balances}, virtual_balances={virtual_balances}, "
        f"fourth_root_price_ratio={fourth_root_price_ratio}, centeredness={centeredness}"
    )
    return new_state


def swap(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    kind: str,
    token_in: int,
    token_out: int,
    amount_given: Decimal,
    current_time: int,
) -> Tuple[SwapResult, PoolState]:
    """
    Quotes a swap against refreshed virtual balances and checks the post-swap pool.

    For EXACT_IN, amount_given is paid in and the result carries the amount out (rounded
    down); for EXACT_OUT, amount_given is paid out and the result carries the amount in
    (rounded up).

    Raises:
        InvalidSwapKind, InvalidTokenIndex, InvalidAmount: On malformed requests
        NegativeAmountOut, AmountOutBiggerThanBalance: If the quote is not payable
        TokenBalanceTooLow: If the out balance would drop below the minimum
        PoolCenterednessTooLow: If the post-swap centeredness would drop below the floor
    """
    if kind not in (EXACT_IN, EXACT_OUT):
        raise InvalidSwapKind(f"Unknown swap kind: {kind}")
    validate_token_indexes(token_in, token_out)
    amount_given = to_scaled18(amount_given, ROUND_DOWN)
    if amount_given <= 0:
        raise InvalidAmount(f"Invalid amount: {amount_given}. Must be positive.")

    new_state, balances = _prepare(state, config, balances, current_time)
    virtual_balances = new_state['last_virtual_balances']

    if kind == EXACT_IN:
        amount_in = amount_given
        amount_out = compute_out_given_in(balances, virtual_balances, token_in, token_out, amount_in)
        amount_calculated = amount_out
    else:
        amount_out = amount_given
        amount_in = compute_in_given_out(balances, virtual_balances, token_in, token_out, amount_out)
        amount_calculated = amount_in

    balances_after = list(balances)
    balances_after[token_in] = balances[token_in] + amount_in
    balances_after[token_out] = balances[token_out] - amount_out

    if balances_after[token_out] < config['min_token_balance']:
        raise TokenBalanceTooLow(
            f"Balance of token {token_out} after swap {balances_after[token_out]} is below {config['min_token_balance']}"
        )
    centeredness = compute_centeredness(balances_after, virtual_balances)
    if centeredness < config['min_pool_centeredness']:
        raise PoolCenterednessTooLow(
            f"Centeredness after swap {centeredness} is below the floor {config['min_pool_centeredness']}"
        )

    logger.debug(f"Swap {kind} {token_in}->{token_out}: in={amount_in}, out={amount_out}, centeredness={centeredness}")
    result: SwapResult = {
        'kind': kind,
        'token_in': token_in,
        'token_out': token_out,
        'amount_in': amount_in,
        'amount_out': amount_out,
        'amount_calculated': amount_calculated,
        'balances_after': balances_after,
        'virtual_balances': list(virtual_balances),
    }
    return result, new_state


def compute_liquidity_proportion(bpt_amount: Decimal, total_supply: Decimal, rounding: str) -> Decimal:
    """Share of total supply minted or burned; round down for adds and up for removes."""
    if rounding == ROUND_UP:
        return div_up(to_scaled18(bpt_amount), to_scaled18(total_supply))
    return div_down(to_scaled18(bpt_amount), to_scaled18(total_supply))


def add_liquidity_proportional(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    proportion: Decimal,
    current_time: int,
) -> PoolState:
    """
    Grows both virtual balances by (1 + proportion) so a proportional deposit leaves price
    and centeredness unchanged. balances are the real balances before the deposit.
    """
    proportion = to_scaled18(proportion, ROUND_DOWN)
    if proportion < 0:
        raise InvalidAmount(f"Invalid proportion: {proportion}. Must be non-negative.")

    new_state, _ = _prepare(state, config, balances, current_time)
    scale = FP_ONE + proportion
    new_state['last_virtual_balances'] = [mul_down(v, scale) for v in new_state['last_virtual_balances']]

    logger.debug(f"Proportional add of {proportion}: virtual_balances={new_state['last_virtual_balances']}")
    return new_state


def remove_liquidity_proportional(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    proportion: Decimal,
    current_time: int,
) -> PoolState:
    """
    Shrinks both virtual balances by (1 - proportion). balances are the real balances
    before the withdrawal.

    Raises:
        TokenBalanceTooLow: If a real balance would end up below the minimum
    """
    proportion = to_scaled18(proportion, ROUND_UP)
    if not (0 <= proportion <= FP_ONE):
        raise InvalidAmount(f"Invalid proportion: {proportion}. Must be in [0, 1].")

    new_state, balances = _prepare(state, config, balances, current_time)
    for i, balance in enumerate(balances):
        remaining = balance - mul_up(balance, proportion)
        if remaining < config['min_token_balance']:
            raise TokenBalanceTooLow(
                f"Balance of token {i} after removal {remaining} is below {config['min_token_balance']}"
            )

    scale = FP_ONE - proportion
    new_state['last_virtual_balances'] = [mul_down(v, scale) for v in new_state['last_virtual_balances']]

    logger.debug(f"Proportional remove of {proportion}: virtual_balances={new_state['last_virtual_balances']}")
    return new_state


def set_price_ratio_target(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    end_fourth_root_price_ratio: Decimal,
    start_time: int,
    end_time: int,
    current_time: int,
) -> PoolState:
    """
    Schedules a gradual move of the fourth root price ratio to end_fourth_root_price_ratio
    over [start_time, end_time], starting from the value current at current_time.
    """
    new_state, _ = _prepare(state, config, balances, current_time)
    new_state['price_ratio_state'] = begin_price_ratio_update(
        config, new_state['price_ratio_state'], end_fourth_root_price_ratio, start_time, end_time, current_time
    )
    return new_state


def set_centeredness_margin(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    centeredness_margin: Decimal,
    current_time: int,
) -> PoolState:
    centeredness_margin = to_scaled18(centeredness_margin)
    validate_centeredness_margin(config, centeredness_margin)

    new_state, _ = _prepare(state, config, balances, current_time)
    new_state['centeredness_margin'] = centeredness_margin

    logger.info(f"Centeredness margin set to {centeredness_margin} at {current_time}")
    return new_state


def set_daily_price_shift_exponent(
    state: PoolState,
    config: PoolConfig,
    balances: List[Any],
    daily_price_shift_exponent: Decimal,
    current_time: int,
) -> PoolState:
    daily_price_shift_exponent = to_scaled18(daily_price_shift_exponent)
    validate_daily_price_shift_exponent(config, daily_price_shift_exponent)

    new_state, _ = _prepare(state, config, balances, current_time)
    new_state['daily_price_shift_base'] = to_daily_price_shift_base(daily_price_shift_exponent)

    logger.info(f"Daily price shift exponent set to {daily_price_shift_exponent} at {current_time}")
    return new_state


# Read-only views. They evaluate the pool at current_time without persisting anything;
# current_time must not precede the last interaction.

def get_current_virtual_balances(state: PoolState, balances: List[Any], current_time: int) -> Tuple[List[Decimal], bool]:
    require_initialized(state)
    _validate_elapsed(state, current_time)
    return _refresh_virtual_balances(state, validate_balances(balances), current_time)


def compute_current_invariant(
    state: PoolState,
    balances: List[Any],
    current_time: int,
    rounding: str = ROUND_DOWN,
) -> Decimal:
    balances = validate_balances(balances)
    virtual_balances, _ = get_current_virtual_balances(state, balances, current_time)
    return compute_invariant(balances, virtual_balances, rounding)


def get_current_price_range(state: PoolState, balances: List[Any], current_time: int) -> Tuple[Decimal, Decimal]:
    balances = validate_balances(balances)
    virtual_balances, _ = get_current_virtual_balances(state, balances, current_time)
    return compute_price_range(balances, virtual_balances)


def get_current_centeredness(state: PoolState, balances: List[Any], current_time: int) -> Decimal:
    balances = validate_balances(balances)
    virtual_balances, _ = get_current_virtual_balances(state, balances, current_time)
    return compute_centeredness(balances, virtual_balances)


def is_pool_within_target_range_now(state: PoolState, balances: List[Any], current_time: int) -> bool:
    require_initialized(state)
    return get_current_centeredness(state, balances, current_time) >= state['centeredness_margin']


def get_current_fourth_root_price_ratio(state: PoolState, current_time: int) -> Decimal:
    require_initialized(state)
    _validate_elapsed(state, current_time)
    return compute_current_fourth_root_price_ratio(state['price_ratio_state'], current_time)


def get_daily_price_shift_exponent(state: PoolState) -> Decimal:
    require_initialized(state)
    return to_daily_price_shift_exponent(state['daily_price_shift_base'])
