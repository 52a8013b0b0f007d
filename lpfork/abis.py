"""
Contract interfaces used by the harness. Only the functions the scenario
calls are declared.
"""

from simular import PyEvm, Contract, contract_from_inline_abi

from .config import POSITION_MANAGER


def erc20_token(evm: PyEvm) -> Contract:
    """ERC20 interface. Use `.at(address)` to bind it to a token"""
    return contract_from_inline_abi(
        evm,
        [
            "function balanceOf(address)(uint256)",
            "function approve(address,uint256)(bool)",
            "function transfer(address,uint256)(bool)",
            "function decimals()(uint8)",
        ],
    )


def weth_token(evm: PyEvm) -> Contract:
    """WETH9: an ERC20 minted by wrapping the native coin"""
    return contract_from_inline_abi(
        evm,
        [
            "function balanceOf(address)(uint256)",
            "function approve(address,uint256)(bool)",
            "function transfer(address,uint256)(bool)",
            "function decimals()(uint8)",
            "function deposit()",
            "function withdraw(uint256)",
        ],
    )


def uniswap_nftpositionmanager(evm: PyEvm, address: str = POSITION_MANAGER) -> Contract:
    """
    Uniswap v3 NonfungiblePositionManager. Struct parameters are passed
    as tuples in ABI field order.
    """
    return contract_from_inline_abi(
        evm,
        [
            "function factory()(address)",
            "function WETH9()(address)",
            "function mint((address,address,uint24,int24,int24,uint256,uint256,uint256,uint256,address,uint256))(uint256,uint128,uint256,uint256)",
            "function positions(uint256)(uint96,address,address,address,uint24,int24,int24,uint128,uint256,uint256,uint128,uint128)",
            "function decreaseLiquidity((uint256,uint128,uint256,uint256,uint256))(uint256,uint256)",
            "function collect((uint256,address,uint128,uint128))(uint256,uint256)",
            "function burn(uint256)",
        ],
    ).at(address)
