import asyncio
from typing import List

from constants.constants import BLOCK_SCAN_SAMPLE_COUNT
from ingestion.ethereum.mappers.transaction_mapper import EthTransactionMapper
from ingestion.ethereum.models.transaction import TransactionResponse
from ingestion.ethereum.providers.chain_connector import ChainConnector
from utils.async_utils import with_timeout
from utils.formatter_utils import to_hex_string, to_normalized_address
from utils.logger_utils import get_logger

logger = get_logger("Block Scan Transaction Fetcher")


class BlockScanTransactionFetcher(object):
    """
    Fallback discovery by walking backwards from the chain head over JSON-RPC.

    Only a sample of the window is visited (every `step`-th block), so results are
    incomplete by nature. Slow or failing blocks and receipts are skipped, never retried.
    """

    def __init__(
        self,
        connector: ChainConnector,
        max_blocks_to_check: int = 5000,
        block_number_timeout: float = 30.0,
        block_fetch_timeout: float = 3.0,
        receipt_fetch_timeout: float = 2.0,
        scan_budget_seconds: float = 60.0,
    ):
        self._connector = connector
        self._max_blocks_to_check = max_blocks_to_check
        self._block_number_timeout = block_number_timeout
        self._block_fetch_timeout = block_fetch_timeout
        self._receipt_fetch_timeout = receipt_fetch_timeout
        self._scan_budget_seconds = scan_budget_seconds

    @property
    def block_step(self) -> int:
        return max(1, self._max_blocks_to_check // BLOCK_SCAN_SAMPLE_COUNT)

    async def fetch(self, address: str, chain_id: int, limit: int) -> List[TransactionResponse]:
        address = to_normalized_address(address)
        w3 = self._connector.get_provider(chain_id)

        try:
            current_block = await with_timeout(w3.eth.block_number, self._block_number_timeout)
        except Exception as e:
            logger.warning(f"Could not get current block number for chain id {chain_id}: {e}")
            return []

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._scan_budget_seconds
        transactions: List[TransactionResponse] = []

        for offset in range(0, self._max_blocks_to_check, self.block_step):
            if len(transactions) >= limit:
                break
            block_number = current_block - offset
            if block_number < 0:
                break
            if loop.time() >= deadline:
                logger.info(f"Block scan budget exhausted after {offset} blocks for {address}")
                break

            try:
                block = await with_timeout(
                    w3.eth.get_block(block_number, full_transactions=True), self._block_fetch_timeout
                )
            except Exception as e:
                logger.debug(f"Skipping block {block_number}: {type(e).__name__}: {e}")
                continue
            if not block:
                continue

            for tx in block.get("transactions") or []:
                if len(transactions) >= limit:
                    break
                # Hash-only entries carry nothing to match on
                if not hasattr(tx, "get"):
                    continue
                sender = to_normalized_address(tx.get("from"))
                recipient = to_normalized_address(tx.get("to"))
                if not sender or not recipient:
                    continue
                if address not in (sender, recipient):
                    continue

                tx_hash = to_hex_string(tx.get("hash"))
                try:
                    receipt = await with_timeout(w3.eth.get_transaction_receipt(tx_hash), self._receipt_fetch_timeout)
                except Exception as e:
                    logger.debug(f"Skipping transaction {tx_hash}, receipt unavailable: {type(e).__name__}: {e}")
                    continue

                transactions.append(
                    EthTransactionMapper.web3_dict_to_transaction(
                        tx, receipt, block.get("timestamp"), block_number=block_number
                    )
                )

        logger.info(f"Block scan found {len(transactions)} transactions for {address} on chain id {chain_id}")
        transactions.sort(key=lambda t: t.timestamp, reverse=True)
        return transactions
