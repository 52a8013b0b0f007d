"""
Scenario configuration.

The constants below describe the default scenario: an ethereum mainnet fork,
the Uniswap v3 position manager, and a USDC/WETH 0.3% position. Any of them
can be overridden from a YAML file with a top level `scenario` key, e.g.

    scenario:
      start_block: 17000000
      end_block: 17001000
      fee: 3000
      tokens:
        - address: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
          desired: 2000
          endowment: 100000

The RPC endpoint is never part of the file. It's read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from eth_utils import is_address
from omegaconf import OmegaConf, DictConfig

from .errors import ConfigurationError
from .utils import FEE_RANGE, is_valid_tick, sort_tokens

# environment variables checked, in order, for the fork endpoint
RPC_URL_ENV_VARS = ("LPFORK_RPC_URL", "ALCHEMY")

# mainnet deployments
POSITION_MANAGER = "0xC36442b4a4522E871399CD717aBDD847Ab11FE88"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
# Binance 14, holds enough USDC at the fork blocks to endow the actor
USDC_FUNDER = "0x28c6c06298d514db089934071355e5743bf21d60"

START_BLOCK = 17_000_000
END_BLOCK = 17_001_000

# 0.3% fee tier, spacing 60. Roughly ETH at $1000 - $4000
FEE = 3000
TICK_LOWER = 193_380
TICK_UPPER = 207_240

USDC_ENDOWMENT = 100_000
WETH_ENDOWMENT = 100
USDC_DESIRED = 2_000
WETH_DESIRED = 1

ACTOR = "0x00000000000000000000000000000000000a11ce"

# purposely far in the future so the deadline never trips on the fork
DEADLINE = int(2e34)


@dataclass
class TokenSpec:
    """
    A token in the pair. Amounts are whole tokens, scaled by the token's decimals.
    `funder` is a holder the harness can draw on to endow the actor. When
    it's None the token must be the configured wrapped native token.
    """

    address: str = "???"
    desired: float = 0.0
    endowment: float = 0.0
    funder: Optional[str] = None


@dataclass
class ScenarioConfig:
    start_block: int = START_BLOCK
    end_block: int = END_BLOCK
    position_manager: str = POSITION_MANAGER
    wrapped_native: str = WETH
    fee: int = FEE
    tick_lower: int = TICK_LOWER
    tick_upper: int = TICK_UPPER
    actor: str = ACTOR
    deadline: int = DEADLINE
    tokens: List[TokenSpec] = field(
        default_factory=lambda: [
            TokenSpec(
                address=USDC,
                desired=USDC_DESIRED,
                endowment=USDC_ENDOWMENT,
                funder=USDC_FUNDER,
            ),
            TokenSpec(address=WETH, desired=WETH_DESIRED, endowment=WETH_ENDOWMENT),
        ]
    )


def default_configuration() -> DictConfig:
    """The mainnet USDC/WETH scenario"""
    return OmegaConf.structured(ScenarioConfig)


def load_configuration(fn: str) -> DictConfig:
    """
    Load a scenario from a YAML file on top of the defaults.

    Args:
        fn: path to a '.yaml' file with a top level 'scenario' key

    Returns:
        the validated configuration
    """
    if fn[-5:] != ".yaml":
        raise ConfigurationError("Expected a YAML file: .yaml")

    try:
        loaded = OmegaConf.load(fn)
        config = OmegaConf.merge(default_configuration(), loaded.scenario)
    except Exception as e:
        raise ConfigurationError(
            f"Could not load config file. Please check path and file type. Error message is {str(e)}"
        ) from e

    validate_configuration(config)
    return config


def validate_configuration(config) -> None:
    """
    Check what can be checked locally. Tick alignment with the fee tier's
    spacing is left to the position manager.
    """
    if config.end_block <= config.start_block:
        raise ConfigurationError(
            f"end_block ({config.end_block}) must be after start_block ({config.start_block})"
        )
    if config.fee not in FEE_RANGE:
        raise ConfigurationError(f"{config.fee} is not a valid fee tier")
    for tick in (config.tick_lower, config.tick_upper):
        if not is_valid_tick(tick):
            raise ConfigurationError(f"{tick} is not a valid tick")
    if config.tick_lower >= config.tick_upper:
        raise ConfigurationError("tick_lower must be below tick_upper")

    for addr in (config.position_manager, config.wrapped_native, config.actor):
        if not is_address(addr):
            raise ConfigurationError(f"{addr} is not a valid address")

    if len(config.tokens) != 2:
        raise ConfigurationError("a scenario needs exactly 2 tokens")
    a, b = config.tokens
    for t in config.tokens:
        if not is_address(t.address):
            raise ConfigurationError(f"{t.address} is not a valid token address")
        if t.desired <= 0:
            raise ConfigurationError(f"{t.address}: desired amount must be > 0")
        if t.endowment < t.desired:
            raise ConfigurationError(
                f"{t.address}: endowment {t.endowment} can't cover desired {t.desired}"
            )
        if t.funder is None and t.address.lower() != config.wrapped_native.lower():
            raise ConfigurationError(f"{t.address}: needs a funder to endow the actor")
        if t.funder is not None and not is_address(t.funder):
            raise ConfigurationError(f"{t.funder} is not a valid funder address")
    if a.address.lower() == b.address.lower():
        raise ConfigurationError("the pair needs two different tokens")


def ordered_tokens(config) -> Tuple[TokenSpec, TokenSpec]:
    """
    Return the pair as (token0, token1), the numerically smaller address first
    """
    a, b = config.tokens
    token0, _ = sort_tokens(a.address, b.address)
    if token0 == a.address:
        return a, b
    return b, a


def fork_url() -> str:
    """
    The RPC endpoint to fork from. Fails fast if it's missing or empty.
    """
    for name in RPC_URL_ENV_VARS:
        url = os.getenv(name, "").strip()
        if url:
            return url
    raise ConfigurationError(
        f"Missing fork RPC endpoint. Set one of: {', '.join(RPC_URL_ENV_VARS)}"
    )
