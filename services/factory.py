from typing import Optional

from config.networks import NetworkRegistry, build_network_registry
from config.settings import Settings, settings as default_settings
from ingestion.ethereum.fetchers.block_scan_transaction_fetcher import BlockScanTransactionFetcher
from ingestion.ethereum.fetchers.indexer_transaction_fetcher import IndexerTransactionFetcher
from ingestion.ethereum.fetchers.transaction_fetcher import FallbackTransactionFetcher
from ingestion.ethereum.providers.chain_connector import ChainConnector
from ingestion.ethereum.service.eth_token_metadata_service import EthTokenMetadataService
from ingestion.ethereum.service.eth_transaction_enrichment_service import EthTransactionEnrichmentService
from ingestion.ethereum.service.eth_transaction_sync_service import EthTransactionSyncService
from ingestion.ethereum.sync.sync_task_registry import SyncTaskRegistry
from ingestion.web2.etherscan_client import EtherscanClient
from services.transaction_service import TransactionService
from services.wallet_service import WalletService
from storage.cache.cache_store import CacheStore
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.logger_utils import get_logger

logger = get_logger("Service Factory")


class ServiceContainer(object):
    """Owns every long-lived resource (RPC clients, HTTP session, DB engine, sync tasks)."""

    def __init__(
        self,
        registry: NetworkRegistry,
        connector: ChainConnector,
        store: CacheStore,
        etherscan_client: EtherscanClient,
        sync_registry: SyncTaskRegistry,
        wallet_service: WalletService,
        transaction_service: TransactionService,
        error_sink: ErrorSink,
    ):
        self.registry = registry
        self.connector = connector
        self.store = store
        self.etherscan_client = etherscan_client
        self.sync_registry = sync_registry
        self.wallet_service = wallet_service
        self.transaction_service = transaction_service
        self.error_sink = error_sink

    async def __aenter__(self):
        await self.store.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.sync_registry.aclose()
        await self.etherscan_client.close()
        await self.connector.close()
        await self.store.close()
        logger.debug("Services closed")


def build_services(
    config: Optional[Settings] = None,
    connector: Optional[ChainConnector] = None,
    store: Optional[CacheStore] = None,
    etherscan_client: Optional[EtherscanClient] = None,
    error_sink: Optional[ErrorSink] = None,
) -> ServiceContainer:
    """Wires the ingestion pipeline from settings. Collaborators may be overridden."""
    config = config or default_settings
    error_sink = error_sink or LoggingErrorSink()

    registry = build_network_registry(config.networks)
    connector = connector or ChainConnector(registry, timeout=config.networks.rpc_timeout)
    store = store or CacheStore(config.storage.database_url, echo=config.storage.echo)
    etherscan_client = etherscan_client or EtherscanClient(
        api_key=config.indexer.api_key, base_url=config.indexer.api_url, timeout=config.indexer.timeout
    )

    fetcher = FallbackTransactionFetcher(
        [
            IndexerTransactionFetcher(etherscan_client, registry),
            BlockScanTransactionFetcher(
                connector,
                max_blocks_to_check=config.sync.max_blocks_to_check,
                block_number_timeout=config.sync.block_number_timeout,
                block_fetch_timeout=config.sync.block_fetch_timeout,
                receipt_fetch_timeout=config.sync.receipt_fetch_timeout,
                scan_budget_seconds=config.sync.scan_budget_seconds,
            ),
        ],
        error_sink=error_sink,
    )
    metadata_service = EthTokenMetadataService(connector, store=store, error_sink=error_sink)
    enrichment_service = EthTransactionEnrichmentService(
        connector,
        metadata_service,
        receipt_timeout_seconds=config.sync.enrichment_receipt_timeout,
        error_sink=error_sink,
    )
    sync_service = EthTransactionSyncService(store, fetcher, enrichment_service, error_sink=error_sink)
    sync_registry = SyncTaskRegistry()

    wallet_service = WalletService(
        connector,
        store,
        sync_service,
        enrichment_service,
        sync_registry,
        sync_limit=config.sync.fetch_limit,
        error_sink=error_sink,
    )
    transaction_service = TransactionService(
        connector,
        store,
        sync_service,
        enrichment_service,
        receipt_timeout_seconds=config.sync.enrichment_receipt_timeout,
        sync_limit=config.sync.fetch_limit,
        error_sink=error_sink,
    )
    return ServiceContainer(
        registry=registry,
        connector=connector,
        store=store,
        etherscan_client=etherscan_client,
        sync_registry=sync_registry,
        wallet_service=wallet_service,
        transaction_service=transaction_service,
        error_sink=error_sink,
    )
