import copy
from decimal import Decimal
from typing import Any, Dict, List

from typing_extensions import TypedDict

from reclamm.utils import FP_ONE, FP_ZERO, to_scaled18
from .errors import InvalidBalances, PoolNotInitialized


class PriceRatioState(TypedDict):
    start_fourth_root_price_ratio: Decimal
    end_fourth_root_price_ratio: Decimal
    price_ratio_update_start_time: int
    price_ratio_update_end_time: int


class PoolState(TypedDict):
    initialized: bool
    last_virtual_balances: List[Decimal]  # [virtual_a, virtual_b], scaled18
    last_timestamp: int
    centeredness_margin: Decimal
    daily_price_shift_base: Decimal
    price_ratio_state: PriceRatioState


_DECIMAL_FIELDS = ('centeredness_margin', 'daily_price_shift_base')
_RATIO_DECIMAL_FIELDS = ('start_fourth_root_price_ratio', 'end_fourth_root_price_ratio')


def init_pool_state() -> PoolState:
    """
    Builds the state of a pool that has not been initialized yet.
    """
    return {
        'initialized': False,
        'last_virtual_balances': [FP_ZERO, FP_ZERO],
        'last_timestamp': 0,
        'centeredness_margin': FP_ZERO,
        'daily_price_shift_base': FP_ONE,
        'price_ratio_state': {
            'start_fourth_root_price_ratio': FP_ONE,
            'end_fourth_root_price_ratio': FP_ONE,
            'price_ratio_update_start_time': 0,
            'price_ratio_update_end_time': 0,
        },
    }


def copy_state(state: PoolState) -> PoolState:
    return copy.deepcopy(state)


def require_initialized(state: PoolState) -> None:
    if not state['initialized']:
        raise PoolNotInitialized("Pool is not initialized")


def validate_balances(balances: List[Any]) -> List[Decimal]:
    """
    Converts a balance pair to scaled18 Decimals.

    Raises:
        InvalidBalances: If there are not exactly two balances or one is negative
    """
    if len(balances) != 2:
        raise InvalidBalances(f"Expected 2 balances, got {len(balances)}")
    scaled = [to_scaled18(b) for b in balances]
    for b in scaled:
        if b < 0:
            raise InvalidBalances(f"Negative balance: {b}")
    return scaled


def serialize_pool_state(state: PoolState) -> Dict[str, Any]:
    """
    Serialize state to a JSON-compatible dict, converting Decimals to str.
    """
    serialized: Dict[str, Any] = copy.deepcopy(state)
    serialized['last_virtual_balances'] = [str(v) for v in state['last_virtual_balances']]
    for key in _DECIMAL_FIELDS:
        serialized[key] = str(state[key])
    for key in _RATIO_DECIMAL_FIELDS:
        serialized['price_ratio_state'][key] = str(state['price_ratio_state'][key])
    return serialized


def deserialize_pool_state(json_dict: Dict[str, Any]) -> PoolState:
    """
    Deserialize from a JSON dict, converting str amounts back to scaled18 Decimals.
    """
    state = copy.deepcopy(json_dict)
    state['last_virtual_balances'] = [to_scaled18(v) for v in json_dict['last_virtual_balances']]
    state['last_timestamp'] = int(json_dict['last_timestamp'])
    for key in _DECIMAL_FIELDS:
        state[key] = to_scaled18(json_dict[key])
    ratio_state = state['price_ratio_state']
    for key in _RATIO_DECIMAL_FIELDS:
        ratio_state[key] = to_scaled18(ratio_state[key])
    ratio_state['price_ratio_update_start_time'] = int(ratio_state['price_ratio_update_start_time'])
    ratio_state['price_ratio_update_end_time'] = int(ratio_state['price_ratio_update_end_time'])
    return state
