"""
Test-only chain access: a simular EVM forked from a live network.

Everything in here only makes sense against a local fork. Moving the block
height without transactions, endowing accounts, and issuing calls as an
account without its key have no counterpart on a real network.
"""

import logging
from typing import Dict, Optional

from eth_utils import is_address
from simular import PyEvm, create_account

from . import Address
from .abis import weth_token
from .config import WETH, POSITION_MANAGER
from .errors import reverts_as
from .position_manager import PositionManager
from .tokens import Token

logger = logging.getLogger(__name__)

# seconds per block on mainnet after the merge
BLOCK_INTERVAL = 12


class Authority:
    """
    The right to issue state changing calls as `actor`. Clients take an
    Authority rather than a bare address, and refuse it once released.

    Use as a context manager so it's released on every exit path:

        with chain.assume_authority(actor) as auth:
            token.approve(spender, amount, auth)
    """

    def __init__(self, actor: Address):
        self.actor = actor
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def caller(self) -> Address:
        if not self._active:
            raise PermissionError(f"authority for {self.actor} was released")
        return self.actor

    def release(self) -> None:
        self._active = False

    def __enter__(self) -> "Authority":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ForkedChain:
    """
    Chain state forked at a block. Owns the EVM and hands out the
    token and position manager clients that run against it.

    Attributes:
        evm: the simular EVM
        height: the current block number
        wrapped_native: WETH-like token that is endowed by wrapping
        funders: token address (lower case) -> holder used to endow other tokens
    """

    def __init__(
        self,
        evm: PyEvm,
        height: int,
        wrapped_native: Address = WETH,
        funders: Optional[Dict[str, Address]] = None,
    ):
        self.evm = evm
        self.height = height
        self.wrapped_native = wrapped_native
        self.funders = {k.lower(): v for k, v in (funders or {}).items()}
        self._tokens = {}

    @classmethod
    def fork_at(cls, source: str, height: int, **kwargs) -> "ForkedChain":
        """
        Fork state from the RPC endpoint `source` at block `height`.
        State is pulled lazily from the endpoint as it's touched.
        """
        logger.info("forking at block %d", height)
        evm = PyEvm.from_fork(url=source, blocknumber=height)
        return cls(evm, height, **kwargs)

    def advance_to(self, height: int) -> None:
        """
        Move the block number (and timestamp) forward to `height`.
        No transactions are executed.
        """
        if height < self.height:
            raise ValueError(
                f"can't move the chain backwards: at {self.height}, asked for {height}"
            )
        for _ in range(height - self.height):
            self.evm.advance_block(BLOCK_INTERVAL)
        logger.info("advanced %d blocks to %d", height - self.height, height)
        self.height = height

    def assume_authority(self, actor: Address) -> Authority:
        assert is_address(actor), f"{actor} is not a valid address"
        return Authority(actor)

    def release_authority(self, authority: Authority) -> None:
        authority.release()

    def token(self, address: Address) -> Token:
        key = address.lower()
        if key not in self._tokens:
            self._tokens[key] = Token(self.evm, address)
        return self._tokens[key]

    def position_manager(self, address: Address = POSITION_MANAGER) -> PositionManager:
        return PositionManager(self.evm, address)

    def set_balance(self, token: Address, actor: Address, amount: int) -> None:
        """
        Make `actor` hold exactly `amount` (base units) of `token`.

        The wrapped native token is endowed by giving `actor` native coin and
        wrapping it. Any other token is topped up from its funder, and any
        excess goes back to the funder.
        """
        erc20 = self.token(token)
        current = erc20.balance_of(actor)
        if current == amount:
            return

        if token.lower() == self.wrapped_native.lower():
            self._set_wrapped_balance(actor, current, amount)
        else:
            funder = self.funders.get(token.lower())
            if funder is None:
                raise KeyError(f"no funder configured for token {token}")
            if current < amount:
                with self.assume_authority(funder) as auth:
                    erc20.transfer(actor, amount - current, auth)
            else:
                with self.assume_authority(actor) as auth:
                    erc20.transfer(funder, current - amount, auth)

        logger.info("endowed %s with %d of %s", actor, amount, token)

    def _set_wrapped_balance(self, actor: Address, current: int, amount: int):
        weth = weth_token(self.evm).at(self.wrapped_native)
        with self.assume_authority(actor) as auth:
            if current < amount:
                diff = amount - current
                create_account(self.evm, address=actor, value=diff)
                with reverts_as("deposit"):
                    weth.deposit.transact(caller=auth.caller, value=diff)
            else:
                with reverts_as("withdraw"):
                    weth.withdraw.transact(current - amount, caller=auth.caller)
