from typing import List, Optional

from pydantic import BaseModel
from web3 import Web3

from constants.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT
from config.settings import SEPOLIA_CHAIN_ID
from ingestion.ethereum.mappers.transaction_mapper import EthTransactionMapper
from ingestion.ethereum.models.transaction import TransactionResponse
from ingestion.ethereum.providers.chain_connector import ChainConnector
from ingestion.ethereum.service.eth_transaction_enrichment_service import EthTransactionEnrichmentService
from ingestion.ethereum.service.eth_transaction_sync_service import DEFAULT_SYNC_LIMIT, EthTransactionSyncService
from ingestion.ethereum.sync.sync_task_registry import SyncTaskRegistry, SyncTaskState
from services.pagination import TransactionPage, paginate
from storage.cache.cache_store import CacheStore
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.exceptions import UpstreamError
from utils.formatter_utils import format_ether
from utils.logger_utils import get_logger
from utils.validation_utils import validate_address, validate_pagination, validate_transaction_type

logger = get_logger("Wallet Service")


class BalanceResponse(BaseModel):
    # ETH decimal string
    balance: str


class WalletService(object):
    def __init__(
        self,
        connector: ChainConnector,
        store: CacheStore,
        sync_service: EthTransactionSyncService,
        enrichment_service: EthTransactionEnrichmentService,
        sync_registry: SyncTaskRegistry,
        sync_limit: int = DEFAULT_SYNC_LIMIT,
        error_sink: Optional[ErrorSink] = None,
    ):
        self._connector = connector
        self._store = store
        self._sync_service = sync_service
        self._enrichment_service = enrichment_service
        self._sync_registry = sync_registry
        self._sync_limit = sync_limit
        self._error_sink = error_sink or LoggingErrorSink()

    async def get_balance(self, address: str, chain_id: int = SEPOLIA_CHAIN_ID) -> BalanceResponse:
        address = validate_address(address)

        w3 = self._connector.get_provider(chain_id)
        try:
            wei = await w3.eth.get_balance(Web3.to_checksum_address(address))
        except Exception as e:
            logger.error(f"Failed to fetch balance for {address} on chain id {chain_id}: {e}")
            raise UpstreamError(f"Failed to fetch balance for {address}: {e}") from e

        try:
            await self._store.upsert_wallet(address)
        except Exception as e:
            self._error_sink.report("wallet_upsert", e, address=address)

        return BalanceResponse(balance=format_ether(wei))

    async def get_transactions(
        self,
        address: str,
        type: Optional[str] = None,
        limit: int = DEFAULT_PAGE_LIMIT,
        page: int = DEFAULT_PAGE,
        chain_id: int = SEPOLIA_CHAIN_ID,
    ) -> TransactionPage:
        """
        Serves a page from the cache. An empty cache schedules a background sync
        and returns an empty page right away; later calls see the synced rows.
        """
        address = validate_address(address)
        type = validate_transaction_type(type)
        validate_pagination(page, limit)

        try:
            records = await self._store.find_transactions_by_wallet(address, chain_id)
        except Exception as e:
            self._error_sink.report("cache_read", e, address=address, chain_id=chain_id)
            records = []

        if not records:
            self.start_sync(address, chain_id)
            return paginate([], address, type, page, limit)

        transactions = [EthTransactionMapper.record_to_transaction(record) for record in records]
        result = paginate(transactions, address, type, page, limit)
        result.transactions = await self._enrich_page(result.transactions, chain_id)
        return result

    async def _enrich_page(self, transactions: List[TransactionResponse], chain_id: int) -> List[TransactionResponse]:
        to_enrich = [tx for tx in transactions if tx.token_transfer is None]
        if not to_enrich:
            return transactions

        enriched = await self._enrichment_service.enrich_many(to_enrich, chain_id)
        enriched_by_hash = {}
        for tx in enriched:
            if tx.token_transfer is None:
                continue
            enriched_by_hash[tx.hash] = tx
            try:
                await self._store.update_token_transfer(tx.hash, chain_id, tx.token_transfer)
            except Exception as e:
                self._error_sink.report("token_info_cache_write", e, hash=tx.hash, chain_id=chain_id)

        return [enriched_by_hash.get(tx.hash, tx) for tx in transactions]

    def start_sync(self, address: str, chain_id: int):
        logger.info(f"No cached transactions for {address} on chain id {chain_id}, starting background sync")
        return self._sync_registry.start(
            address, chain_id, lambda: self._sync_service.sync(address, chain_id, self._sync_limit)
        )

    def get_sync_status(self, address: str, chain_id: int = SEPOLIA_CHAIN_ID) -> Optional[SyncTaskState]:
        return self._sync_registry.get(validate_address(address), chain_id)

    async def wait_for_sync(
        self, address: str, chain_id: int = SEPOLIA_CHAIN_ID, timeout: Optional[float] = None
    ) -> Optional[SyncTaskState]:
        return await self._sync_registry.wait(validate_address(address), chain_id, timeout=timeout)
