"""Exception types for the pool engine.

Every error is fatal to the operation that raised it: pool functions never
return a partially updated state, so callers can discard the attempt and keep
the state they passed in. All errors derive from ``ValueError``.
"""


class ReClammError(ValueError):
    """Base class for pool engine failures."""


# Categories

class InputDomainError(ReClammError):
    """An argument is outside the domain the operation accepts."""


class NumericalSafetyError(ReClammError):
    """Fixed-point rounding would produce a nonsensical result."""


class StabilityFloorError(ReClammError):
    """The operation would leave the pool in an imprecise or exploitable state."""


class RateLimitError(ReClammError):
    """A parameter change exceeds its configured bound."""


class PoolStateError(ReClammError):
    """The operation is not valid in the pool's current lifecycle state."""


# Input domain

class InvalidInitializationPrices(InputDomainError):
    pass


class InvalidStartTime(InputDomainError):
    pass


class InvalidTimestamp(InputDomainError):
    pass


class InvalidTokenIndex(InputDomainError):
    pass


class InvalidSwapKind(InputDomainError):
    pass


class InvalidAmount(InputDomainError):
    pass


class InvalidBalances(InputDomainError):
    pass


class InvalidFourthRootPriceRatio(InputDomainError):
    pass


# Numerical safety

class NegativeAmountOut(NumericalSafetyError):
    pass


class AmountOutBiggerThanBalance(NumericalSafetyError):
    pass


class InvalidVirtualBalances(NumericalSafetyError):
    pass


# Stability floors

class TokenBalanceTooLow(StabilityFloorError):
    pass


class PoolCenterednessTooLow(StabilityFloorError):
    pass


class BalanceRatioExceedsTolerance(StabilityFloorError):
    pass


# Rate limits and parameter bounds

class PriceRatioUpdateDurationTooShort(RateLimitError):
    pass


class PriceRatioUpdateTooFast(RateLimitError):
    pass


class InvalidDailyPriceShiftExponent(RateLimitError):
    pass


class DailyPriceShiftExponentTooHigh(InvalidDailyPriceShiftExponent):
    pass


class InvalidCenterednessMargin(RateLimitError):
    pass


class InvalidSwapFeePercentage(RateLimitError):
    pass


# Lifecycle

class PoolNotInitialized(PoolStateError):
    pass


class PoolAlreadyInitialized(PoolStateError):
    pass
