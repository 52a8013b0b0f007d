"""
ERC20 token client.
"""

from simular import PyEvm

from . import Address
from .abis import erc20_token
from .errors import reverts_as


class Token:
    """
    A deployed ERC20. Reads are plain calls. Writes need an Authority
    for the account the call is issued from.
    """

    def __init__(self, evm: PyEvm, address: Address):
        self.address = address
        self.contract = erc20_token(evm).at(address)
        self._decimals = None

    @property
    def decimals(self) -> int:
        if self._decimals is None:
            with reverts_as(f"decimals({self.address})"):
                self._decimals = self.contract.decimals.call()
        return self._decimals

    def balance_of(self, owner: Address) -> int:
        """Balance of `owner` in base units"""
        with reverts_as(f"balanceOf({self.address})"):
            return self.contract.balanceOf.call(owner)

    def approve(self, spender: Address, amount: int, authority) -> None:
        with reverts_as(f"approve({self.address})"):
            self.contract.approve.transact(spender, amount, caller=authority.caller)

    def transfer(self, to: Address, amount: int, authority) -> None:
        with reverts_as(f"transfer({self.address})"):
            self.contract.transfer.transact(to, amount, caller=authority.caller)
