"""
Scenario harness for a single liquidity position on a forked chain.

    initialize -> provision (mint) -> advance blocks -> withdraw & collect (burn) -> verify

Each phase needs the result of the one before it, so they always run in
order and any failure stops the run. Nothing is retried: a state changing
call that failed half way must not be sent twice.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Tuple

from .chain import ForkedChain
from .config import fork_url, ordered_tokens, validate_configuration
from .errors import ConfigurationError, InvariantViolation, ScenarioError
from .position_manager import (
    CollectParams,
    DecreaseLiquidityParams,
    MintParams,
    MintResult,
)
from .utils import MAX_UINT128, MAX_UINT256, from_base_units, to_base_units

logger = logging.getLogger(__name__)


class Phase(IntEnum):
    """Phases in the order they complete"""

    NONE = 0
    INITIALIZED = 1
    PROVISIONED = 2
    TIME_ADVANCED = 3
    WITHDRAWN = 4
    VERIFIED = 5


@dataclass
class ScenarioOutcome:
    """
    Everything observed during a run. Filled in as phases complete, so a
    failed run still carries what it saw up to the failure.

    Balances and amounts are (token0, token1) in base units.
    """

    token0: Optional[str] = None
    token1: Optional[str] = None
    phase: Phase = Phase.NONE
    before: Optional[Tuple[int, int]] = None
    mint: Optional[MintResult] = None
    fees_owed: Optional[Tuple[int, int]] = None
    withdrawn: Optional[Tuple[int, int]] = None
    collected: Optional[Tuple[int, int]] = None
    after: Optional[Tuple[int, int]] = None
    deltas: Optional[Tuple[int, int]] = None
    error: Optional[str] = field(default=None, repr=False)

    @property
    def passed(self) -> bool:
        return self.phase == Phase.VERIFIED and self.error is None


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise InvariantViolation(message)


class Scenario:
    """
    One run of the scenario. Use `run_scenario` unless you need to drive
    the phases one at a time.

    Args:
        config: a ScenarioConfig (or DictConfig from config.load_configuration)
        chain: a chain forked at config.start_block
    """

    def __init__(self, config, chain):
        self.config = config
        self.chain = chain
        t0, t1 = ordered_tokens(config)
        self.specs = (t0, t1)
        self.tokens = (chain.token(t0.address), chain.token(t1.address))
        self.manager = chain.position_manager(config.position_manager)
        self.outcome = ScenarioOutcome(token0=t0.address, token1=t1.address)

    def balances(self) -> Tuple[int, int]:
        actor = self.config.actor
        return (self.tokens[0].balance_of(actor), self.tokens[1].balance_of(actor))

    def _require(self, phase: Phase) -> None:
        _check(
            self.outcome.phase == phase - 1,
            f"phase {phase.name} can't follow {self.outcome.phase.name}",
        )

    def _complete(self, phase: Phase) -> None:
        self.outcome.phase = phase
        logger.info("phase %s complete", phase.name)

    def initialize(self) -> None:
        """Endow the actor and snapshot its starting balances"""
        self._require(Phase.INITIALIZED)
        for spec, token in zip(self.specs, self.tokens):
            amount = to_base_units(spec.endowment, token.decimals)
            self.chain.set_balance(spec.address, self.config.actor, amount)

        self.outcome.before = self.balances()
        logger.info("balances before: %s", self.outcome.before)
        self._complete(Phase.INITIALIZED)

    def provision(self) -> MintResult:
        """Approve the position manager and mint the position"""
        self._require(Phase.PROVISIONED)
        cfg = self.config
        t0, t1 = self.tokens
        with self.chain.assume_authority(cfg.actor) as auth:
            t0.approve(self.manager.address, MAX_UINT256, auth)
            t1.approve(self.manager.address, MAX_UINT256, auth)

            params = MintParams(
                token0=t0.address,
                token1=t1.address,
                fee=cfg.fee,
                tick_lower=cfg.tick_lower,
                tick_upper=cfg.tick_upper,
                amount0_desired=to_base_units(self.specs[0].desired, t0.decimals),
                amount1_desired=to_base_units(self.specs[1].desired, t1.decimals),
                amount0_min=0,
                amount1_min=0,
                recipient=cfg.actor,
                deadline=cfg.deadline,
            )
            minted = self.manager.mint(params, auth)

        self.outcome.mint = minted
        logger.info(
            "minted position %d: liquidity %d, used (%d, %d)",
            minted.token_id,
            minted.liquidity,
            minted.amount0,
            minted.amount1,
        )
        _check(minted.token_id != 0, "mint returned an empty position id")
        _check(minted.liquidity > 0, f"mint returned liquidity {minted.liquidity}")
        self._complete(Phase.PROVISIONED)
        return minted

    def advance(self) -> None:
        """Move to the end block. Fees owed are recorded, not checked"""
        self._require(Phase.TIME_ADVANCED)
        self.chain.advance_to(self.config.end_block)
        info = self.manager.positions(self.outcome.mint.token_id)
        self.outcome.fees_owed = (info.tokens_owed0, info.tokens_owed1)
        logger.info("fees owed at block %d: %s", self.config.end_block, self.outcome.fees_owed)
        self._complete(Phase.TIME_ADVANCED)

    def withdraw(self) -> None:
        """Remove all liquidity, collect everything owed, burn the position"""
        self._require(Phase.WITHDRAWN)
        cfg = self.config
        minted = self.outcome.mint
        with self.chain.assume_authority(cfg.actor) as auth:
            pre_withdraw = self.balances()
            self.outcome.withdrawn = self.manager.decrease_liquidity(
                DecreaseLiquidityParams(
                    token_id=minted.token_id,
                    liquidity=minted.liquidity,
                    amount0_min=0,
                    amount1_min=0,
                    deadline=cfg.deadline,
                ),
                auth,
            )
            logger.info("unlocked %s", self.outcome.withdrawn)
            # unlocking credits the position, it must not move tokens yet
            _check(
                self.balances() == pre_withdraw,
                "balances changed on decreaseLiquidity, before collect",
            )

            self.outcome.collected = self.manager.collect(
                CollectParams(
                    token_id=minted.token_id,
                    recipient=cfg.actor,
                    amount0_max=MAX_UINT128,
                    amount1_max=MAX_UINT128,
                ),
                auth,
            )
            logger.info("collected %s", self.outcome.collected)
            post_collect = self.balances()
            for i in (0, 1):
                _check(
                    post_collect[i] - pre_withdraw[i] >= self.outcome.collected[i],
                    f"token{i} balance rose by {post_collect[i] - pre_withdraw[i]}, "
                    f"less than the {self.outcome.collected[i]} collected",
                )

            self.manager.burn(minted.token_id, auth)
            logger.info("burned position %d", minted.token_id)
        self._complete(Phase.WITHDRAWN)

    def verify(self) -> ScenarioOutcome:
        """Snapshot final balances and compute signed deltas"""
        self._require(Phase.VERIFIED)
        after = self.balances()
        before = self.outcome.before
        self.outcome.after = after
        self.outcome.deltas = (after[0] - before[0], after[1] - before[1])
        logger.info("balances after: %s, deltas: %s", after, self.outcome.deltas)
        logger.info(
            "deltas in whole tokens: %s",
            tuple(from_base_units(d, t.decimals) for d, t in zip(self.outcome.deltas, self.tokens)),
        )
        _check(after[0] > 0, "final token0 balance is not positive")
        _check(after[1] > 0, "final token1 balance is not positive")
        self._complete(Phase.VERIFIED)
        return self.outcome

    def run(self) -> ScenarioOutcome:
        try:
            self.initialize()
            self.provision()
            self.advance()
            self.withdraw()
            return self.verify()
        except ScenarioError as e:
            e.phase = self.outcome.phase
            e.outcome = self.outcome
            self.outcome.error = str(e)
            logger.error(
                "scenario failed after %s: %s (%s)", self.outcome.phase.name, e, self.outcome
            )
            raise
        except Exception as e:
            # unexpected failures still leave the partial outcome behind
            e.phase = self.outcome.phase
            e.outcome = self.outcome
            self.outcome.error = f"{type(e).__name__}: {e}"
            logger.exception("scenario failed after %s (%s)", self.outcome.phase.name, self.outcome)
            raise


def run_scenario(config, chain=None) -> ScenarioOutcome:
    """
    Run the whole scenario once.

    Args:
        config: the scenario configuration
        chain: optional, chain forked at config.start_block. When not given,
            a fresh fork is made from the endpoint in the environment.

    Returns:
        the outcome of a passing run. Failures raise ScenarioError (with the
        partial outcome attached) or ConfigurationError before anything runs.
    """
    validate_configuration(config)
    if chain is not None and chain.height != config.start_block:
        raise ConfigurationError(
            f"chain is at block {chain.height}, the scenario starts at {config.start_block}"
        )
    if chain is None:
        t0, t1 = ordered_tokens(config)
        funders = {t.address: t.funder for t in (t0, t1) if t.funder is not None}
        chain = ForkedChain.fork_at(
            fork_url(),
            config.start_block,
            wrapped_native=config.wrapped_native,
            funders=funders,
        )
    return Scenario(config, chain).run()
