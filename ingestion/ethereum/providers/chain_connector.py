from typing import Callable, Dict

from web3 import AsyncWeb3
from web3.providers.async_base import AsyncBaseProvider

from config.networks import NetworkRegistry
from ingestion.ethereum.providers.provider_factory import DEFAULT_TIMEOUT, get_async_provider_from_uri
from utils.logger_utils import get_logger

logger = get_logger("Chain Connector")


class ChainConnector(object):
    """
    Hands out one AsyncWeb3 client per chain id, created on first use and reused.
    Unknown chain ids are served by the registry's default network.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        timeout: float = DEFAULT_TIMEOUT,
        provider_factory: Callable[[str, float], AsyncBaseProvider] = get_async_provider_from_uri,
    ):
        self._registry = registry
        self._timeout = timeout
        self._provider_factory = provider_factory
        self._clients: Dict[int, AsyncWeb3] = {}

    @property
    def registry(self) -> NetworkRegistry:
        return self._registry

    def resolve_chain_id(self, chain_id: int) -> int:
        if self._registry.is_supported_network(chain_id):
            return chain_id
        return self._registry.default_chain_id

    def get_provider(self, chain_id: int) -> AsyncWeb3:
        key = self.resolve_chain_id(chain_id)
        w3 = self._clients.get(key)
        if w3 is None:
            network = self._registry.get_network_config(key)
            logger.info(f"Connecting to {network.name} (chain id {key})")
            w3 = AsyncWeb3(self._provider_factory(network.rpc_url, self._timeout))
            self._clients[key] = w3
        return w3

    async def close(self) -> None:
        clients = list(self._clients.items())
        self._clients.clear()
        for chain_id, w3 in clients:
            disconnect = getattr(w3.provider, "disconnect", None)
            if disconnect is None:
                continue
            try:
                await disconnect()
            except Exception as e:
                logger.warning(f"Failed to close provider for chain id {chain_id}: {e}")
