from typing import Optional

from pydantic import BaseModel
from web3.exceptions import TransactionNotFound

from config.settings import SEPOLIA_CHAIN_ID
from ingestion.ethereum.mappers.transaction_mapper import EthTransactionMapper
from ingestion.ethereum.models.transaction import TransactionResponse
from ingestion.ethereum.providers.chain_connector import ChainConnector
from ingestion.ethereum.service.eth_transaction_enrichment_service import EthTransactionEnrichmentService
from ingestion.ethereum.service.eth_transaction_sync_service import DEFAULT_SYNC_LIMIT, EthTransactionSyncService
from storage.cache.cache_store import CacheStore
from utils.async_utils import with_timeout
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.exceptions import NotFoundError, UpstreamError
from utils.logger_utils import get_logger
from utils.validation_utils import validate_address, validate_transaction_hash

logger = get_logger("Transaction Service")


class SyncResult(BaseModel):
    synced: int


class BackfillResult(BaseModel):
    processed: int
    updated: int


class TransactionService(object):
    def __init__(
        self,
        connector: ChainConnector,
        store: CacheStore,
        sync_service: EthTransactionSyncService,
        enrichment_service: EthTransactionEnrichmentService,
        receipt_timeout_seconds: float = 3.0,
        sync_limit: int = DEFAULT_SYNC_LIMIT,
        error_sink: Optional[ErrorSink] = None,
    ):
        self._connector = connector
        self._store = store
        self._sync_service = sync_service
        self._enrichment_service = enrichment_service
        self._receipt_timeout_seconds = receipt_timeout_seconds
        self._sync_limit = sync_limit
        self._error_sink = error_sink or LoggingErrorSink()

    async def get_transaction_by_hash(self, tx_hash: str, chain_id: int = SEPOLIA_CHAIN_ID) -> TransactionResponse:
        """
        Cache first; on a miss the transaction, its receipt and its block are read
        from the chain, enriched and cached.

        Raises:
            NotFoundError: The hash is unknown to both the cache and the chain.
            UpstreamError: The chain could not be queried.
        """
        tx_hash = validate_transaction_hash(tx_hash)

        try:
            cached = await self._store.find_transaction_by_hash(tx_hash, chain_id)
        except Exception as e:
            self._error_sink.report("cache_read", e, hash=tx_hash, chain_id=chain_id)
            cached = None
        if cached is not None:
            return EthTransactionMapper.record_to_transaction(cached)

        w3 = self._connector.get_provider(chain_id)
        try:
            tx = await w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            tx = None
        except Exception as e:
            logger.error(f"Failed to fetch transaction {tx_hash} on chain id {chain_id}: {e}")
            raise UpstreamError(f"Failed to fetch transaction {tx_hash}: {e}") from e
        if not tx:
            raise NotFoundError(f"Transaction {tx_hash} not found")

        try:
            receipt = await with_timeout(w3.eth.get_transaction_receipt(tx_hash), self._receipt_timeout_seconds)
        except Exception as e:
            # Pending or slow; status falls back to failed and gas_used stays empty
            logger.warning(f"Receipt unavailable for {tx_hash}: {type(e).__name__}: {e}")
            receipt = None

        block_number = tx.get("blockNumber")
        block_timestamp = None
        if block_number is not None:
            try:
                block = await w3.eth.get_block(block_number)
                block_timestamp = block.get("timestamp") if block else None
            except Exception as e:
                logger.warning(f"Block {block_number} unavailable for {tx_hash}: {type(e).__name__}: {e}")

        transaction = EthTransactionMapper.web3_dict_to_transaction(tx, receipt, block_timestamp)
        if receipt is not None:
            transaction = await self._enrichment_service.enrich_with_receipt(transaction, receipt, chain_id)

        await self._cache_transaction(transaction, chain_id)
        return transaction

    async def _cache_transaction(self, tx: TransactionResponse, chain_id: int) -> None:
        try:
            wallet = await self._store.find_wallet_for_addresses([tx.from_address, tx.to_address])
            await self._store.upsert_transaction(tx, chain_id, wallet_id=wallet.id if wallet else None)
        except Exception as e:
            self._error_sink.report("cache_write", e, hash=tx.hash, chain_id=chain_id)

    async def sync_transactions(self, address: str, chain_id: int = SEPOLIA_CHAIN_ID) -> SyncResult:
        """Synchronous counterpart of the background sync; returns once rows are cached."""
        address = validate_address(address)
        synced = await self._sync_service.sync(address, chain_id, self._sync_limit)
        return SyncResult(synced=synced)

    async def backfill_token_info(self, chain_id: Optional[int] = None, limit: Optional[int] = None) -> BackfillResult:
        """
        Re-examines cached transactions that carry no token columns and fills them in
        where their receipt holds an ERC-20 transfer.
        """
        records = await self._store.find_transactions_without_token_info(chain_id=chain_id, limit=limit)
        logger.info(f"Found {len(records)} transactions to process")

        processed = 0
        updated = 0
        for record in records:
            processed += 1
            tx = EthTransactionMapper.record_to_transaction(record)
            try:
                w3 = self._connector.get_provider(record.chain_id)
                receipt = await with_timeout(
                    w3.eth.get_transaction_receipt(record.hash), self._receipt_timeout_seconds
                )
            except Exception as e:
                self._error_sink.report("backfill_receipt", e, hash=record.hash, chain_id=record.chain_id)
                continue

            enriched = await self._enrichment_service.enrich_with_receipt(tx, receipt, record.chain_id)
            if enriched.token_transfer is None:
                logger.debug(f"No token transfer detected for {record.hash}")
                continue
            try:
                updated += await self._store.update_token_transfer(record.hash, record.chain_id, enriched.token_transfer)
            except Exception as e:
                self._error_sink.report("backfill_write", e, hash=record.hash, chain_id=record.chain_id)
                continue
            logger.info(
                f"Updated {record.hash}: {enriched.token_transfer.amount_formatted} "
                f"{enriched.token_transfer.token_symbol or 'TOKEN'}"
            )

        logger.info(f"Backfill complete: processed={processed} updated={updated}")
        return BackfillResult(processed=processed, updated=updated)
