from typing import Optional

from ingestion.ethereum.fetchers.transaction_fetcher import TransactionFetcher
from ingestion.ethereum.service.eth_transaction_enrichment_service import EthTransactionEnrichmentService
from storage.cache.cache_store import CacheStore
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.formatter_utils import to_normalized_address
from utils.logger_utils import get_logger

logger = get_logger("ETH Transaction Sync Service")

DEFAULT_SYNC_LIMIT = 50


class EthTransactionSyncService(object):
    """
    Pulls an address's recent transactions into the cache:
    ensure wallet -> fetch (indexer, then block scan) -> enrich -> upsert on (hash, chain_id).
    """

    def __init__(
        self,
        store: CacheStore,
        fetcher: TransactionFetcher,
        enrichment_service: EthTransactionEnrichmentService,
        error_sink: Optional[ErrorSink] = None,
    ):
        self._store = store
        self._fetcher = fetcher
        self._enrichment_service = enrichment_service
        self._error_sink = error_sink or LoggingErrorSink()

    async def sync(self, address: str, chain_id: int, limit: int = DEFAULT_SYNC_LIMIT, enrich: bool = True) -> int:
        """Returns the number of transactions written to the cache."""
        address = to_normalized_address(address)
        wallet = await self._store.upsert_wallet(address)

        transactions = await self._fetcher.fetch(address, chain_id, limit)
        logger.info(f"Syncing {len(transactions)} transactions for {address} on chain id {chain_id}")

        synced = 0
        for tx in transactions:
            if enrich:
                tx = await self._enrichment_service.enrich(tx, chain_id)
            try:
                await self._store.upsert_transaction(tx, chain_id, wallet_id=wallet.id)
                synced += 1
            except Exception as e:
                self._error_sink.report("cache_write", e, hash=tx.hash, chain_id=chain_id, address=address)

        logger.info(f"Synced {synced}/{len(transactions)} transactions for {address} on chain id {chain_id}")
        return synced
