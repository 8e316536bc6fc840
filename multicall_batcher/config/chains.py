"""
Chain configurations with RPC endpoints and Multicall3 deployments
Deployment list: https://www.multicall3.com/deployments
"""
from dataclasses import dataclass
from enum import Enum
import os
from dotenv import load_dotenv

from multicall_batcher.config.settings import MULTICALL3_ADDRESS

load_dotenv()

INFURA_KEY = os.getenv("INFURA_API_KEY")


class ChainId(Enum):
    """Blockchain chain IDs"""
    ETHEREUM = 1
    OPTIMISM = 10
    BSC = 56
    GNOSIS = 100
    POLYGON = 137
    ZKSYNC = 324
    BASE = 8453
    ARBITRUM = 42161
    AVALANCHE = 43114


@dataclass(frozen=True)
class ChainConfig:
    """Configuration for a blockchain"""
    chain_id: ChainId
    name: str
    rpc_endpoints: list[str | None]
    explorer_url: str
    multicall_address: str = MULTICALL3_ADDRESS

    def get_rpc(self, index: int = 0) -> str:
        """Get RPC endpoint with rotation support, filtering None"""
        valid_rpcs = [r for r in self.rpc_endpoints if r is not None]
        return valid_rpcs[index % len(valid_rpcs)]


def _infura(network: str) -> str | None:
    return f"https://{network}.infura.io/v3/{INFURA_KEY}" if INFURA_KEY else None


CHAINS: dict[ChainId, ChainConfig] = {
    ChainId.ETHEREUM: ChainConfig(
        chain_id=ChainId.ETHEREUM,
        name="Ethereum",
        rpc_endpoints=[
            _infura("mainnet"),
            "https://eth.llamarpc.com",
            "https://ethereum.publicnode.com",
            "https://1rpc.io/eth",
        ],
        explorer_url="https://etherscan.io",
    ),
    ChainId.OPTIMISM: ChainConfig(
        chain_id=ChainId.OPTIMISM,
        name="Optimism",
        rpc_endpoints=[
            _infura("optimism-mainnet"),
            "https://mainnet.optimism.io",
            "https://optimism.publicnode.com",
        ],
        explorer_url="https://optimistic.etherscan.io",
    ),
    ChainId.BSC: ChainConfig(
        chain_id=ChainId.BSC,
        name="BSC",
        rpc_endpoints=[
            "https://bsc-dataseed.binance.org",
            "https://bsc.publicnode.com",
        ],
        explorer_url="https://bscscan.com",
    ),
    ChainId.GNOSIS: ChainConfig(
        chain_id=ChainId.GNOSIS,
        name="Gnosis",
        rpc_endpoints=[
            "https://rpc.gnosischain.com",
            "https://gnosis.drpc.org",
        ],
        explorer_url="https://gnosisscan.io",
    ),
    ChainId.POLYGON: ChainConfig(
        chain_id=ChainId.POLYGON,
        name="Polygon",
        rpc_endpoints=[
            _infura("polygon-mainnet"),
            "https://polygon-rpc.com",
            "https://polygon.publicnode.com",
        ],
        explorer_url="https://polygonscan.com",
    ),
    ChainId.ZKSYNC: ChainConfig(
        chain_id=ChainId.ZKSYNC,
        name="zkSync Era",
        rpc_endpoints=[
            "https://mainnet.era.zksync.io",
            "https://zksync-era.drpc.org",
        ],
        explorer_url="https://explorer.zksync.io",
        # zkSync Era uses a different bytecode hash, so CREATE2 lands elsewhere
        multicall_address="0xF9cda624FBC7e059355ce98a31693d299FACd963",
    ),
    ChainId.BASE: ChainConfig(
        chain_id=ChainId.BASE,
        name="Base",
        rpc_endpoints=[
            _infura("base-mainnet"),
            "https://mainnet.base.org",
            "https://base.publicnode.com",
        ],
        explorer_url="https://basescan.org",
    ),
    ChainId.ARBITRUM: ChainConfig(
        chain_id=ChainId.ARBITRUM,
        name="Arbitrum",
        rpc_endpoints=[
            _infura("arbitrum-mainnet"),
            "https://arb1.arbitrum.io/rpc",
            "https://arbitrum.publicnode.com",
        ],
        explorer_url="https://arbiscan.io",
    ),
    ChainId.AVALANCHE: ChainConfig(
        chain_id=ChainId.AVALANCHE,
        name="Avalanche",
        rpc_endpoints=[
            _infura("avalanche-mainnet"),
            "https://api.avax.network/ext/bc/C/rpc",
            "https://avalanche.publicnode.com",
        ],
        explorer_url="https://snowtrace.io",
    ),
}


def get_chain(chain_id: ChainId) -> ChainConfig:
    """Get chain configuration by ID"""
    return CHAINS[chain_id]


def find_chain(name: str) -> ChainConfig:
    """Look up a chain by enum name or display name, case-insensitive"""
    wanted = name.strip().lower()
    for chain_id, config in CHAINS.items():
        if wanted in (chain_id.name.lower(), config.name.lower()):
            return config
    raise KeyError(f"Unknown chain: {name}")
