from typing import List, Protocol, Sequence

from ingestion.ethereum.models.transaction import TransactionResponse
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.logger_utils import get_logger

logger = get_logger("Transaction Fetcher")


class TransactionFetcher(Protocol):
    async def fetch(self, address: str, chain_id: int, limit: int) -> List[TransactionResponse]:
        ...


class FallbackTransactionFetcher(object):
    """
    Tries each strategy in order and returns the first non-empty result,
    newest first and truncated to `limit`.
    """

    def __init__(self, fetchers: Sequence[TransactionFetcher], error_sink: ErrorSink = None):
        self._fetchers = list(fetchers)
        self._error_sink = error_sink or LoggingErrorSink()

    async def fetch(self, address: str, chain_id: int, limit: int) -> List[TransactionResponse]:
        for fetcher in self._fetchers:
            name = type(fetcher).__name__
            try:
                transactions = await fetcher.fetch(address, chain_id, limit)
            except Exception as e:
                self._error_sink.report("fetch", e, fetcher=name, address=address, chain_id=chain_id)
                continue
            if transactions:
                logger.info(f"{name} returned {len(transactions)} transactions for {address}")
                return transactions[:limit]
            logger.debug(f"{name} returned no transactions for {address}, trying next strategy")
        return []
