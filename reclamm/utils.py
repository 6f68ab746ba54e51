import json
from decimal import Decimal, getcontext, localcontext, Context, ROUND_DOWN, ROUND_UP, ROUND_FLOOR, ROUND_CEILING
from typing import Any, Dict

import mpmath as mp
import numpy as np

getcontext().prec = 78
mp.mp.dps = 60

SCALED18_DECIMALS = 18
WEI = 10 ** SCALED18_DECIMALS
ONE_WEI = Decimal(f'1e-{SCALED18_DECIMALS}')
FP_ZERO = Decimal('0').quantize(ONE_WEI)
FP_ONE = Decimal('1').quantize(ONE_WEI)

_FP_CONTEXT = Context(prec=78)

# ROUND_DOWN / ROUND_UP describe the direction on the number line for pool amounts,
# which are mapped to floor / ceiling so negative intermediates round the same way.
_DIRECTIONS = {
    ROUND_DOWN: ROUND_FLOOR,
    ROUND_FLOOR: ROUND_FLOOR,
    ROUND_UP: ROUND_CEILING,
    ROUND_CEILING: ROUND_CEILING,
}


def _direction(rounding: str) -> str:
    try:
        return _DIRECTIONS[rounding]
    except KeyError:
        raise ValueError(f"Unsupported rounding: {rounding}. Use ROUND_DOWN or ROUND_UP.")


def to_scaled18(value: int | float | str | Decimal, rounding: str = ROUND_DOWN) -> Decimal:
    """Converts a number to a Decimal on the 18-decimal fixed-point grid."""
    if isinstance(value, bool):
        raise TypeError("Booleans are not valid fixed-point amounts.")
    if isinstance(value, float):
        value = str(value)
    with localcontext(_FP_CONTEXT):
        return Decimal(value).quantize(ONE_WEI, rounding=_direction(rounding))


def to_wei(value: Decimal) -> int:
    return int(to_scaled18(value).scaleb(SCALED18_DECIMALS, context=_FP_CONTEXT))


def from_wei(wei: int) -> Decimal:
    return Decimal(wei).scaleb(-SCALED18_DECIMALS, context=_FP_CONTEXT).quantize(ONE_WEI, context=_FP_CONTEXT)


def mul_down(a: Decimal, b: Decimal) -> Decimal:
    return from_wei((to_wei(a) * to_wei(b)) // WEI)


def mul_up(a: Decimal, b: Decimal) -> Decimal:
    return from_wei(-((-to_wei(a) * to_wei(b)) // WEI))


def div_down(a: Decimal, b: Decimal) -> Decimal:
    den = to_wei(b)
    if den == 0:
        raise ValueError("Division by zero.")
    return from_wei((to_wei(a) * WEI) // den)


def div_up(a: Decimal, b: Decimal) -> Decimal:
    den = to_wei(b)
    if den == 0:
        raise ValueError("Division by zero.")
    return from_wei(-((-to_wei(a) * WEI) // den))


def mul_rounding(a: Decimal, b: Decimal, rounding: str) -> Decimal:
    return mul_up(a, b) if _direction(rounding) == ROUND_CEILING else mul_down(a, b)


def _to_mpf(d: Decimal) -> mp.mpf:
    return mp.mpf(str(d))


def _from_mpf(x: mp.mpf, rounding: str) -> Decimal:
    # mpmath carries 60 digits, well past the 18 kept after rounding
    return to_scaled18(Decimal(mp.nstr(x, mp.mp.dps, strip_zeros=False)), rounding)


def sqrt_down(d: Decimal) -> Decimal:
    """Square root of a scaled18 value, rounded down onto the grid."""
    if d < 0:
        raise ValueError(f"Cannot take square root of negative value {d}.")
    return _from_mpf(mp.sqrt(_to_mpf(d)), ROUND_DOWN)


def _pow(base: Decimal, exponent: Decimal, rounding: str) -> Decimal:
    if base < 0:
        raise ValueError(f"Cannot raise negative base {base} to a fractional power.")
    if base == 0:
        return FP_ZERO
    return _from_mpf(mp.power(_to_mpf(base), _to_mpf(exponent)), rounding)


def pow_down(base: Decimal, exponent: Decimal) -> Decimal:
    return _pow(base, exponent, ROUND_DOWN)


def pow_up(base: Decimal, exponent: Decimal) -> Decimal:
    return _pow(base, exponent, ROUND_UP)


def solve_quadratic(a: Decimal, b: Decimal, c: Decimal) -> Decimal:
    """
    Solves a*x^2 + b*x + c = 0 on the fixed-point grid.

    Returns the smallest positive root, rounded down.

    Raises:
        ValueError: If a <= 0, the discriminant is negative or no root is positive
    """
    if a <= Decimal(0):
        raise ValueError("Quadratic coefficient a must be >0.")
    disc = mul_down(b, b) - mul_up(mul_up(Decimal(4), a), c)
    if disc < Decimal(0):
        raise ValueError("Negative discriminant in quadratic equation.")
    sqrt_disc = sqrt_down(disc)
    two_a = mul_up(Decimal(2), a)

    root1 = div_down(-b + sqrt_disc, two_a)
    root2 = div_down(-b - sqrt_disc, two_a)

    positive_roots = [r for r in [root1, root2] if r > Decimal(0)]
    if not positive_roots:
        raise ValueError("No positive roots found in quadratic equation.")

    return min(positive_roots)


def _encode_amount(obj: Any) -> Any:
    # Amounts are written as plain 18-decimal strings, never in exponent notation
    if isinstance(obj, Decimal):
        return format(to_scaled18(obj), 'f')
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return format(to_scaled18(float(obj)), 'f')
    raise TypeError(f"Cannot encode {type(obj).__name__} as a pool amount")


def serialize_state(state: Dict[str, Any]) -> str:
    """
    Dumps pool state to JSON with deterministic key order and fixed-point amounts.
    """
    return json.dumps(state, default=_encode_amount, sort_keys=True)


def deserialize_state(json_str: str) -> Dict[str, Any]:
    """
    Loads pool state from JSON; non-integer numbers are read as Decimal so no amount
    passes through a binary float.
    """
    return json.loads(json_str, parse_float=Decimal)
