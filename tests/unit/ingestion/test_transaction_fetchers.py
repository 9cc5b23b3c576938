import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.networks import build_network_registry
from config.settings import NetworkSettings
from conftest import OTHER, SLOW_CALL_SECONDS, WALLET, make_receipt, tx_hash
from ingestion.ethereum.fetchers.block_scan_transaction_fetcher import BlockScanTransactionFetcher
from ingestion.ethereum.fetchers.indexer_transaction_fetcher import IndexerTransactionFetcher
from ingestion.ethereum.fetchers.transaction_fetcher import FallbackTransactionFetcher
from ingestion.ethereum.models.transaction import TransactionResponse


def make_response(n, timestamp=0):
    return TransactionResponse(hash=tx_hash(n), from_address=WALLET, to_address=OTHER, timestamp=timestamp)


def make_block(number, timestamp, transactions):
    return {"number": number, "timestamp": timestamp, "transactions": transactions}


def make_chain_tx(n, sender, recipient, value=0):
    return {"hash": tx_hash(n), "from": sender, "to": recipient, "value": value, "gasPrice": 7, "blockNumber": None}


@pytest.mark.asyncio
async def test_indexer_fetcher_maps_entries_with_indexer_chain_id():
    client = MagicMock()
    client.get_transactions = AsyncMock(
        return_value=[
            {"hash": tx_hash(1), "from": WALLET, "to": OTHER, "value": "0", "blockNumber": "1", "timeStamp": "5", "isError": "0"},
            {"from": WALLET},
        ]
    )
    registry = build_network_registry(NetworkSettings())

    result = await IndexerTransactionFetcher(client, registry).fetch(WALLET, 1, 10)

    assert [tx.hash for tx in result] == [tx_hash(1)]
    client.get_transactions.assert_awaited_once_with(WALLET, "1", 10)


@pytest.mark.asyncio
async def test_block_scan_walks_sampled_blocks_and_sorts_newest_first(mock_connector, fake_eth):
    fake_eth.current_block = 100
    # step is 5000 // 1000 = 5, so blocks 100, 95, 90, ... are visited
    fake_eth.blocks[100] = make_block(100, 2000, [make_chain_tx(1, OTHER, WALLET)])
    fake_eth.blocks[95] = make_block(95, 3000, [make_chain_tx(2, WALLET, OTHER), make_chain_tx(3, OTHER, OTHER)])
    fake_eth.blocks[99] = make_block(99, 9999, [make_chain_tx(4, WALLET, OTHER)])
    fake_eth.receipts[tx_hash(1)] = make_receipt(status=1, gas_used=21000)
    fake_eth.receipts[tx_hash(2)] = make_receipt(status=0, gas_used=50000)

    result = await BlockScanTransactionFetcher(mock_connector).fetch(WALLET, 1, 10)

    assert [tx.hash for tx in result] == [tx_hash(2), tx_hash(1)]
    assert result[0].status == "failed"
    assert result[0].block_number == 95
    assert result[1].status == "success"
    assert result[1].gas_used == 21000
    assert result[1].gas_price == 7


@pytest.mark.asyncio
async def test_block_scan_skips_contract_creations_failing_blocks_and_missing_receipts(mock_connector, fake_eth):
    fake_eth.current_block = 10
    fake_eth.failing_blocks.add(10)
    fake_eth.blocks[9] = make_block(9, 100, [make_chain_tx(1, WALLET, None), make_chain_tx(2, WALLET, OTHER)])
    fake_eth.blocks[8] = make_block(8, 90, [make_chain_tx(3, WALLET, OTHER)])
    fake_eth.receipts[tx_hash(3)] = make_receipt()

    fetcher = BlockScanTransactionFetcher(mock_connector, max_blocks_to_check=100)
    result = await fetcher.fetch(WALLET, 1, 10)

    assert fetcher.block_step == 1
    assert [tx.hash for tx in result] == [tx_hash(3)]


@pytest.mark.asyncio
async def test_block_scan_stops_at_limit_and_genesis(mock_connector, fake_eth):
    fake_eth.current_block = 2
    for number in range(3):
        fake_eth.blocks[number] = make_block(number, number, [make_chain_tx(number + 1, WALLET, OTHER)])
        fake_eth.receipts[tx_hash(number + 1)] = make_receipt()

    fetcher = BlockScanTransactionFetcher(mock_connector, max_blocks_to_check=1000)
    assert len(await fetcher.fetch(WALLET, 1, 2)) == 2
    assert len(await fetcher.fetch(WALLET, 1, 10)) == 3


@pytest.mark.asyncio
async def test_block_scan_returns_empty_when_head_unavailable(mock_connector, fake_eth):
    async def failing_block_number():
        raise ConnectionError("rpc down")

    fake_eth._block_number = failing_block_number

    assert await BlockScanTransactionFetcher(mock_connector).fetch(WALLET, 1, 10) == []


@pytest.mark.asyncio
async def test_fallback_uses_first_non_empty_strategy_and_truncates():
    first = MagicMock()
    first.fetch = AsyncMock(return_value=[])
    second = MagicMock()
    second.fetch = AsyncMock(return_value=[make_response(n) for n in range(5)])
    third = MagicMock()
    third.fetch = AsyncMock()

    result = await FallbackTransactionFetcher([first, second, third], error_sink=MagicMock()).fetch(WALLET, 1, 3)

    assert len(result) == 3
    third.fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_fallback_reports_raising_strategy_and_continues():
    failing = MagicMock()
    failing.fetch = AsyncMock(side_effect=RuntimeError("boom"))
    working = MagicMock()
    working.fetch = AsyncMock(return_value=[make_response(1)])
    sink = MagicMock()

    result = await FallbackTransactionFetcher([failing, working], error_sink=sink).fetch(WALLET, 1, 10)

    assert len(result) == 1
    assert sink.report.call_args.args[0] == "fetch"


def make_fast_fetcher(connector, **overrides):
    timeouts = dict(
        max_blocks_to_check=100,
        block_number_timeout=0.05,
        block_fetch_timeout=0.05,
        receipt_fetch_timeout=0.05,
    )
    timeouts.update(overrides)
    return BlockScanTransactionFetcher(connector, **timeouts)


@pytest.mark.asyncio
async def test_block_scan_skips_block_that_exceeds_fetch_timeout(mock_connector, fake_eth):
    fake_eth.current_block = 10
    fake_eth.slow_blocks.add(10)
    fake_eth.blocks[10] = make_block(10, 200, [make_chain_tx(1, WALLET, OTHER)])
    fake_eth.blocks[9] = make_block(9, 100, [make_chain_tx(2, WALLET, OTHER)])
    fake_eth.receipts[tx_hash(1)] = make_receipt()
    fake_eth.receipts[tx_hash(2)] = make_receipt()

    result = await make_fast_fetcher(mock_connector).fetch(WALLET, 1, 10)

    assert [tx.hash for tx in result] == [tx_hash(2)]
    assert fake_eth.requested_blocks[:2] == [10, 9]


@pytest.mark.asyncio
async def test_block_scan_drops_only_transaction_with_slow_receipt(mock_connector, fake_eth):
    fake_eth.current_block = 5
    fake_eth.blocks[5] = make_block(5, 100, [make_chain_tx(1, WALLET, OTHER), make_chain_tx(2, OTHER, WALLET)])
    fake_eth.receipts[tx_hash(1)] = make_receipt()
    fake_eth.receipts[tx_hash(2)] = make_receipt()
    fake_eth.slow_receipts.add(tx_hash(1))

    result = await make_fast_fetcher(mock_connector).fetch(WALLET, 1, 10)

    assert [tx.hash for tx in result] == [tx_hash(2)]


@pytest.mark.asyncio
async def test_block_scan_with_exhausted_budget_fetches_no_blocks(mock_connector, fake_eth):
    fake_eth.current_block = 5
    fake_eth.blocks[5] = make_block(5, 100, [make_chain_tx(1, WALLET, OTHER)])
    fake_eth.receipts[tx_hash(1)] = make_receipt()

    result = await make_fast_fetcher(mock_connector, scan_budget_seconds=0).fetch(WALLET, 1, 10)

    assert result == []
    assert fake_eth.requested_blocks == []


@pytest.mark.asyncio
async def test_block_scan_returns_empty_when_head_lookup_times_out(mock_connector, fake_eth):
    async def slow_block_number():
        await asyncio.sleep(SLOW_CALL_SECONDS)
        return 10

    fake_eth._block_number = slow_block_number

    assert await make_fast_fetcher(mock_connector).fetch(WALLET, 1, 10) == []
    assert fake_eth.requested_blocks == []
