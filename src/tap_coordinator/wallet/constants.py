"""
Chain and Contract Configuration

Static configuration for the chain the tap contract lives on, the contracts
the coordinator calls, and the attribution builder code.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class EvmAssetConfig(BaseModel):
    """Token asset configuration."""
    symbol: str
    address: str = Field(..., description="Token contract address")
    name: str = Field(..., description="Token name")
    decimals: int = Field(..., description="Token decimals")


class EvmChainConfig(BaseModel):
    """EVM network the coordinator submits to."""
    caip2: str
    chain_id: int
    name: str
    explorer_url: str = Field(..., description="Block explorer URL")
    assets: Dict[str, EvmAssetConfig] = Field(default_factory=dict, description="Supported assets")

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)


_EVM_CHAINS_DATA: Dict = {
    "eip155:8453": {
        "name": "Base Mainnet",
        "explorer_url": "https://basescan.org",
        "assets": {
            "USDC": {
                "address": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
                "name": "USD Coin",
                "decimals": 6,
            },
        },
    },
}


def get_chain_config(caip2: str) -> Optional[EvmChainConfig]:
    """
    Look up the configuration of a supported chain.

    Args:
        caip2: CAIP-2 chain identifier (e.g. ``"eip155:8453"``).

    Returns:
        EvmChainConfig, or ``None`` if the chain is not configured.
    """
    data = _EVM_CHAINS_DATA.get(caip2)
    if data is None:
        return None
    assets = {
        symbol: EvmAssetConfig(symbol=symbol, **asset)
        for symbol, asset in data.get("assets", {}).items()
    }
    return EvmChainConfig(
        caip2=caip2,
        chain_id=int(caip2.split(":", 1)[1]),
        name=data["name"],
        explorer_url=data["explorer_url"],
        assets=assets,
    )


BASE_MAINNET = get_chain_config("eip155:8453")

#: Required chain for every submission, in the hex form wallets report.
BASE_MAINNET_CHAIN_ID: str = BASE_MAINNET.chain_id_hex  # "0x2105"

#: Contract hit on every tap (``logAction(bytes32,bytes)``).
TAP_CONTRACT: str = "0x40344818472F5CAF05f7AC50cb6867442b3F55ea"

#: Recipient of USDC tips and of the earn purchase.
TIP_RECIPIENT: str = "0xe8Bda2Ed9d2FC622D900C8a76dc455A3e79B041f"

USDC_CONTRACT: str = BASE_MAINNET.assets["USDC"].address
USDC_DECIMALS: int = BASE_MAINNET.assets["USDC"].decimals

#: Action tag written into ``logAction`` as bytes32.
ACTION_TAP: str = "TAP"

#: ERC-8021 builder code used for attribution.
BUILDER_CODE: str = "bc_w5t12vu3"

#: Reward units credited per confirmed tap.
TAP_REWARD_UNITS: int = 1

#: Reward units credited by the earn flow after its USDC payment confirms.
EARN_REWARD_UNITS: int = 10_000

#: Fixed USDC price of the earn flow.
EARN_PRICE_USDC: str = "1"
