from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict

from config.settings import MAINNET_CHAIN_ID, SEPOLIA_CHAIN_ID, NetworkSettings


class NetworkConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    rpc_url: str
    indexer_chain_id: str
    name: str


class NetworkRegistry(object):
    """
    Immutable chain id -> NetworkConfig table, built once at startup.
    Unknown chain ids resolve to the default entry.
    """

    def __init__(self, networks: Mapping[int, NetworkConfig], default_chain_id: int):
        if default_chain_id not in networks:
            raise ValueError(f"Default chain id {default_chain_id} has no network configuration")
        self._networks = MappingProxyType(dict(networks))
        self._default_chain_id = default_chain_id

    @property
    def default_chain_id(self) -> int:
        return self._default_chain_id

    def get_network_config(self, chain_id: int) -> NetworkConfig:
        return self._networks.get(chain_id, self._networks[self._default_chain_id])

    def get_rpc_url(self, chain_id: int) -> str:
        return self.get_network_config(chain_id).rpc_url

    def get_indexer_chain_id(self, chain_id: int) -> str:
        return self.get_network_config(chain_id).indexer_chain_id

    def get_network_name(self, chain_id: int) -> str:
        return self.get_network_config(chain_id).name

    def is_supported_network(self, chain_id: int) -> bool:
        return chain_id in self._networks

    @property
    def chain_ids(self) -> tuple[int, ...]:
        return tuple(self._networks)


def build_network_registry(network_settings: NetworkSettings) -> NetworkRegistry:
    networks = {
        SEPOLIA_CHAIN_ID: NetworkConfig(
            rpc_url=network_settings.sepolia_rpc_url,
            indexer_chain_id=str(SEPOLIA_CHAIN_ID),
            name="Sepolia",
        ),
        MAINNET_CHAIN_ID: NetworkConfig(
            rpc_url=network_settings.mainnet_rpc_url,
            indexer_chain_id=str(MAINNET_CHAIN_ID),
            name="Mainnet",
        ),
    }
    return NetworkRegistry(networks, default_chain_id=network_settings.default_chain_id)
