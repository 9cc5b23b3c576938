import asyncio
from typing import Any, List, Mapping, Optional

from constants.constants import DEFAULT_TOKEN_DECIMALS
from ingestion.ethereum.models.token_transfer import TokenMetadata, TokenTransfer
from ingestion.ethereum.models.transaction import TransactionResponse
from ingestion.ethereum.providers.chain_connector import ChainConnector
from ingestion.ethereum.service.eth_token_metadata_service import EthTokenMetadataService
from ingestion.ethereum.service.eth_token_transfers_service import EthTokenTransfersService
from utils.async_utils import gather_settled, with_timeout
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.formatter_utils import format_units
from utils.logger_utils import get_logger

logger = get_logger("ETH Transaction Enrichment Service")


class EthTransactionEnrichmentService(object):
    """
    Attaches the first ERC-20 transfer of a transaction's receipt, with token metadata,
    to the transaction. Enrichment is best effort: failures return the input unchanged.
    """

    def __init__(
        self,
        connector: ChainConnector,
        metadata_service: EthTokenMetadataService,
        receipt_timeout_seconds: float = 3.0,
        error_sink: Optional[ErrorSink] = None,
    ):
        self._connector = connector
        self._metadata_service = metadata_service
        self._receipt_timeout_seconds = receipt_timeout_seconds
        self._error_sink = error_sink or LoggingErrorSink()

    async def enrich(self, tx: TransactionResponse, chain_id: int) -> TransactionResponse:
        try:
            w3 = self._connector.get_provider(chain_id)
            receipt = await with_timeout(w3.eth.get_transaction_receipt(tx.hash), self._receipt_timeout_seconds)
        except Exception as e:
            self._error_sink.report("enrichment_receipt", e, hash=tx.hash, chain_id=chain_id)
            return tx
        return await self.enrich_with_receipt(tx, receipt, chain_id)

    async def enrich_with_receipt(
        self, tx: TransactionResponse, receipt: Optional[Mapping[str, Any]], chain_id: int
    ) -> TransactionResponse:
        transfer = EthTokenTransfersService.detect(receipt)
        if transfer is None:
            return tx

        try:
            metadata = await self._metadata_service.resolve(chain_id, transfer.contract_address)
        except Exception as e:
            self._error_sink.report(
                "enrichment_metadata", e, hash=tx.hash, contract=transfer.contract_address, chain_id=chain_id
            )
            metadata = TokenMetadata()

        decimals = metadata.decimals if metadata.decimals is not None else DEFAULT_TOKEN_DECIMALS
        token_transfer = TokenTransfer(
            contract_address=transfer.contract_address,
            token_name=metadata.name,
            token_symbol=metadata.symbol,
            token_decimals=decimals,
            amount=str(transfer.value),
            amount_formatted=format_units(transfer.value, decimals),
        )
        logger.debug(f"Detected token transfer in {tx.hash}: {token_transfer.amount_formatted} {metadata.symbol}")
        return tx.model_copy(update={"token_transfer": token_transfer})

    async def enrich_many(self, txs: List[TransactionResponse], chain_id: int) -> List[TransactionResponse]:
        results = await gather_settled(self.enrich(tx, chain_id) for tx in txs)
        enriched = []
        for tx, result in zip(txs, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self._error_sink.report("enrichment", result, hash=tx.hash, chain_id=chain_id)
                enriched.append(tx)
            else:
                enriched.append(result)
        return enriched
