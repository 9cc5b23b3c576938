from typing import List

from config.networks import NetworkRegistry
from ingestion.ethereum.mappers.transaction_mapper import EthTransactionMapper
from ingestion.ethereum.models.transaction import TransactionResponse
from ingestion.web2.etherscan_client import EtherscanClient
from utils.logger_utils import get_logger

logger = get_logger("Indexer Transaction Fetcher")


class IndexerTransactionFetcher(object):
    def __init__(self, client: EtherscanClient, registry: NetworkRegistry):
        self._client = client
        self._registry = registry

    async def fetch(self, address: str, chain_id: int, limit: int) -> List[TransactionResponse]:
        indexer_chain_id = self._registry.get_indexer_chain_id(chain_id)
        items = await self._client.get_transactions(address, indexer_chain_id, limit)

        transactions = []
        for item in items:
            try:
                transactions.append(EthTransactionMapper.indexer_dict_to_transaction(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed indexer entry for {address}: {e}")
        return transactions
