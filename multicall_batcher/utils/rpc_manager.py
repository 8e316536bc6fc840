"""
RPC connection setup: one shared AsyncWeb3 client per endpoint
"""
import inspect
from web3 import AsyncWeb3, AsyncHTTPProvider

from multicall_batcher.config.chains import ChainId, CHAINS
from multicall_batcher.config.settings import RPC_TIMEOUT
from multicall_batcher.utils.logger import get_logger

logger = get_logger(__name__)


class RPCManager:
    """
    Creates and caches AsyncWeb3 clients so every multicall against the
    same endpoint reuses one HTTP session
    """

    def __init__(self, request_timeout: float = RPC_TIMEOUT):
        self.request_timeout = request_timeout
        self._web3_instances: dict[str, AsyncWeb3] = {}

    def get_web3_for_url(self, url: str) -> AsyncWeb3:
        """Get or create a Web3 instance for a specific endpoint"""
        if url not in self._web3_instances:
            provider = AsyncHTTPProvider(
                url,
                request_kwargs={"timeout": self.request_timeout}
            )
            self._web3_instances[url] = AsyncWeb3(provider)
            logger.debug(f"Created web3 client for {url}")
        return self._web3_instances[url]

    def get_web3(self, chain_id: ChainId, index: int = 0) -> AsyncWeb3:
        """Get a Web3 instance for one of the chain's configured endpoints"""
        return self.get_web3_for_url(CHAINS[chain_id].get_rpc(index))

    async def close(self):
        """Close all Web3 providers"""
        for url, w3 in self._web3_instances.items():
            # AsyncWeb3 providers use disconnect()
            if hasattr(w3.provider, "disconnect"):
                result = w3.provider.disconnect()
                if inspect.isawaitable(result):
                    await result
            logger.debug(f"Closed web3 client for {url}")
        self._web3_instances.clear()


# Global RPC manager instance
rpc_manager = RPCManager()
