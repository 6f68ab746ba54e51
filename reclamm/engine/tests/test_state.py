import pytest
from decimal import Decimal

from reclamm.engine.errors import InvalidBalances, PoolNotInitialized
from reclamm.engine.state import (
    PoolState,
    init_pool_state,
    copy_state,
    require_initialized,
    validate_balances,
    serialize_pool_state,
    deserialize_pool_state,
)
from reclamm.utils import FP_ONE, serialize_state, deserialize_state


@pytest.fixture
def initial_state() -> PoolState:
    return init_pool_state()


@pytest.fixture
def live_state() -> PoolState:
    state = init_pool_state()
    state['initialized'] = True
    state['last_virtual_balances'] = [Decimal('2414.213562373095048801'), Decimal('2414.213562373095048801')]
    state['last_timestamp'] = 1_700_000_000
    state['centeredness_margin'] = Decimal('0.2')
    state['daily_price_shift_base'] = Decimal('0.999991977495368252')
    state['price_ratio_state'] = {
        'start_fourth_root_price_ratio': Decimal('1.414213562373095048'),
        'end_fourth_root_price_ratio': Decimal('1.5'),
        'price_ratio_update_start_time': 1_700_000_000,
        'price_ratio_update_end_time': 1_700_604_800,
    }
    return state


def test_init_pool_state_defaults(initial_state: PoolState):
    assert initial_state['initialized'] is False
    assert initial_state['last_virtual_balances'] == [0, 0]
    assert initial_state['last_timestamp'] == 0
    assert initial_state['daily_price_shift_base'] == FP_ONE
    prs = initial_state['price_ratio_state']
    assert prs['start_fourth_root_price_ratio'] == FP_ONE
    assert prs['end_fourth_root_price_ratio'] == FP_ONE


def test_require_initialized(initial_state: PoolState, live_state: PoolState):
    with pytest.raises(PoolNotInitialized):
        require_initialized(initial_state)
    require_initialized(live_state)


def test_copy_state_is_independent(live_state: PoolState):
    copied = copy_state(live_state)
    copied['last_virtual_balances'][0] = Decimal('1')
    copied['price_ratio_state']['end_fourth_root_price_ratio'] = Decimal('2')
    assert live_state['last_virtual_balances'][0] == Decimal('2414.213562373095048801')
    assert live_state['price_ratio_state']['end_fourth_root_price_ratio'] == Decimal('1.5')


def test_validate_balances():
    assert validate_balances(['1000', 2.5]) == [Decimal('1000'), Decimal('2.5')]
    with pytest.raises(InvalidBalances, match="Expected 2 balances"):
        validate_balances([Decimal(1), Decimal(2), Decimal(3)])
    with pytest.raises(InvalidBalances, match="Negative balance"):
        validate_balances([Decimal(1), Decimal(-2)])


def test_serialize_deserialize_roundtrip(live_state: PoolState):
    serialized = serialize_pool_state(live_state)
    assert isinstance(serialized['last_virtual_balances'][0], str)
    assert isinstance(serialized['price_ratio_state']['end_fourth_root_price_ratio'], str)

    json_str = serialize_state(serialized)
    restored = deserialize_pool_state(deserialize_state(json_str))
    assert restored == live_state
    assert isinstance(restored['last_virtual_balances'][0], Decimal)
    assert isinstance(restored['price_ratio_state']['price_ratio_update_end_time'], int)
