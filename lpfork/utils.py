"""
Helpers for fees, ticks, token ordering and amounts.
"""

from decimal import Decimal
from typing import Tuple

MIN_TICK = -887272
MAX_TICK = 887272

MAX_UINT128 = 2**128 - 1
MAX_UINT256 = 2**256 - 1

# Uniswap v3 fee schedule and spacing
FEE_RANGE = [100, 500, 3000, 10_000]
FEE_TICK_SPACING = [1, 10, 60, 200]


def is_valid_tick(tick: int) -> bool:
    return tick >= MIN_TICK and tick <= MAX_TICK


def get_spacing_for_fee(fee: int) -> int:
    """
    Return the tick spacing for the given fee
    """
    assert fee in FEE_RANGE, "not a valid fee"
    return FEE_TICK_SPACING[FEE_RANGE.index(fee)]


def is_aligned_tick(tick: int, fee: int) -> bool:
    """
    Check the tick sits on the spacing grid for the fee tier
    """
    return tick % get_spacing_for_fee(fee) == 0


def are_sorted_tokens(t0_address: str, t1_address: str) -> bool:
    """
    Check of addresses are sorted
    """
    return bytes.fromhex(t0_address[2:]) < bytes.fromhex(t1_address[2:])


def sort_tokens(token_a: str, token_b: str) -> Tuple[str, str]:
    """
    Order a pair so the numerically smaller address is token0
    """
    if token_a.lower() == token_b.lower():
        raise ValueError(f"a pair needs two different tokens, got {token_a} twice")
    if are_sorted_tokens(token_a, token_b):
        return token_a, token_b
    return token_b, token_a


def to_base_units(amount, decimals: int) -> int:
    """
    Convert a whole-token amount into the token's integer base units.
    Goes through Decimal so '0.1' of an 18 decimal token is exact.
    """
    return int(Decimal(str(amount)) * (10**decimals))


def from_base_units(value: int, decimals: int) -> float:
    """
    Convert base units back to a whole-token amount
    """
    return value / 10**decimals
