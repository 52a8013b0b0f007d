"""
Client for the Uniswap v3 NonfungiblePositionManager.

The contract owns all the position accounting. This only shapes the
requests, issues the calls under an Authority, and names the results.
"""

from typing import NamedTuple

from simular import PyEvm

from . import Address
from .abis import uniswap_nftpositionmanager
from .config import POSITION_MANAGER
from .errors import reverts_as


class MintParams(NamedTuple):
    token0: Address
    token1: Address
    fee: int
    tick_lower: int
    tick_upper: int
    amount0_desired: int
    amount1_desired: int
    amount0_min: int
    amount1_min: int
    recipient: Address
    deadline: int


class DecreaseLiquidityParams(NamedTuple):
    token_id: int
    liquidity: int
    amount0_min: int
    amount1_min: int
    deadline: int


class CollectParams(NamedTuple):
    token_id: int
    recipient: Address
    amount0_max: int
    amount1_max: int


class MintResult(NamedTuple):
    """
    token_id and liquidity together are the position handle.
    amount0/amount1 are what the manager actually pulled, which can be
    less than desired.
    """

    token_id: int
    liquidity: int
    amount0: int
    amount1: int


class PositionInfo(NamedTuple):
    nonce: int
    operator: Address
    token0: Address
    token1: Address
    fee: int
    tick_lower: int
    tick_upper: int
    liquidity: int
    fee_growth_inside0_last_x128: int
    fee_growth_inside1_last_x128: int
    tokens_owed0: int
    tokens_owed1: int


class PositionManager:
    """
    Attributes:
        address: where the manager is deployed
        contract: the simular contract bound to `address`
    """

    def __init__(self, evm: PyEvm, address: Address = POSITION_MANAGER):
        self.address = address
        self.contract = uniswap_nftpositionmanager(evm, address)

    def mint(self, params: MintParams, authority) -> MintResult:
        """
        Mint a new position. Tokens are pulled from the authority's account,
        so the manager must already be approved for both.
        """
        with reverts_as("mint"):
            result = self.contract.mint.transact(tuple(params), caller=authority.caller)
        return MintResult(*result.output)

    def positions(self, token_id: int) -> PositionInfo:
        with reverts_as("positions"):
            return PositionInfo(*self.contract.positions.call(token_id))

    def decrease_liquidity(self, params: DecreaseLiquidityParams, authority):
        """
        Unlock liquidity. The unlocked amounts are credited to the position's
        tokens owed. Nothing is transferred until `collect`.

        Returns:
            (amount0, amount1) unlocked
        """
        with reverts_as("decreaseLiquidity"):
            result = self.contract.decreaseLiquidity.transact(
                tuple(params), caller=authority.caller
            )
        amount0, amount1 = result.output
        return amount0, amount1

    def collect(self, params: CollectParams, authority):
        """
        Transfer owed tokens (unlocked principal and fees) to the recipient,
        capped by the max amounts.

        Returns:
            (amount0, amount1) collected
        """
        with reverts_as("collect"):
            result = self.contract.collect.transact(
                tuple(params), caller=authority.caller
            )
        amount0, amount1 = result.output
        return amount0, amount1

    def burn(self, token_id: int, authority) -> None:
        """
        Destroy the position NFT. The manager rejects this while the position
        still has liquidity or owed tokens.
        """
        with reverts_as("burn"):
            self.contract.burn.transact(token_id, caller=authority.caller)
