import pytest

from lpfork import Authority, ForkedChain, CollaboratorRejected
from lpfork.tokens import Token

from fakes import FakeERC20, bind, USDC

FUNDER = "0x28c6c06298d514db089934071355e5743bf21d60"
ACTOR = "0x00000000000000000000000000000000000a11ce"


class FakeEvm:
    def __init__(self):
        self.blocks = 0
        self.intervals = set()

    def advance_block(self, interval=None):
        self.blocks += 1
        self.intervals.add(interval)


@pytest.fixture
def forked():
    chain = ForkedChain(FakeEvm(), 100, funders={USDC: FUNDER})
    usdc = FakeERC20(USDC, decimals=6)
    usdc.balances[FUNDER.lower()] = 10**15
    chain._tokens[USDC.lower()] = bind(Token, usdc, USDC)
    return chain, usdc


def test_authority_scope():
    with Authority(ACTOR) as auth:
        assert auth.active
        assert ACTOR == auth.caller

    assert not auth.active
    with pytest.raises(PermissionError):
        auth.caller


def test_authority_released_on_error():
    with pytest.raises(ZeroDivisionError):
        with Authority(ACTOR) as auth:
            1 / 0
    assert not auth.active


def test_advance_to(forked):
    chain, _ = forked
    chain.advance_to(110)
    assert 110 == chain.height
    assert 10 == chain.evm.blocks
    assert {12} == chain.evm.intervals

    # staying put is fine
    chain.advance_to(110)
    assert 10 == chain.evm.blocks

    with pytest.raises(ValueError):
        chain.advance_to(109)
    assert 110 == chain.height


def test_set_balance_from_funder(forked):
    chain, usdc = forked
    chain.set_balance(USDC, ACTOR, 5_000_000)
    assert 5_000_000 == usdc.balances[ACTOR.lower()]
    assert 10**15 - 5_000_000 == usdc.balances[FUNDER.lower()]

    # excess goes back
    chain.set_balance(USDC, ACTOR, 1_000_000)
    assert 1_000_000 == usdc.balances[ACTOR.lower()]
    assert 10**15 - 1_000_000 == usdc.balances[FUNDER.lower()]


def test_set_balance_funder_too_small(forked):
    chain, usdc = forked
    usdc.balances[FUNDER.lower()] = 10
    with pytest.raises(CollaboratorRejected):
        chain.set_balance(USDC, ACTOR, 11)


def test_set_balance_without_funder():
    chain = ForkedChain(FakeEvm(), 100)
    dai = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
    chain._tokens[dai.lower()] = bind(Token, FakeERC20(dai), dai)
    with pytest.raises(KeyError):
        chain.set_balance(dai, ACTOR, 1)


def test_assume_authority_checks_address(forked):
    chain, _ = forked
    with pytest.raises(AssertionError):
        chain.assume_authority("not an address")

    auth = chain.assume_authority(ACTOR)
    chain.release_authority(auth)
    assert not auth.active
