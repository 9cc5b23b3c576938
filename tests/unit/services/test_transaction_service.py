from unittest.mock import AsyncMock

import pytest
from hexbytes import HexBytes

from config.settings import SEPOLIA_CHAIN_ID
from conftest import OTHER, TOKEN, WALLET, make_receipt, make_transfer_log, tx_hash
from ingestion.ethereum.models.transaction import TransactionResponse
from utils.exceptions import NotFoundError, UpstreamError, ValidationError


def chain_transaction(n, sender=WALLET, recipient=TOKEN, block_number=50):
    return {
        "hash": HexBytes(tx_hash(n)),
        "from": sender,
        "to": recipient,
        "value": 0,
        "blockNumber": block_number,
        "gasPrice": 2 * 10**9,
    }


@pytest.mark.asyncio
async def test_unknown_hash_raises_not_found(services):
    with pytest.raises(NotFoundError):
        await services.transaction_service.get_transaction_by_hash(tx_hash(404))


@pytest.mark.asyncio
async def test_malformed_hash_is_rejected_before_io(services, mock_connector):
    with pytest.raises(ValidationError):
        await services.transaction_service.get_transaction_by_hash("0x1234")
    mock_connector.get_provider.assert_not_called()


@pytest.mark.asyncio
async def test_chain_lookup_is_enriched_and_cached(services, cache_store, fake_eth):
    fake_eth.transactions[tx_hash(1)] = chain_transaction(1)
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 42)], status=1, gas_used=60000)
    fake_eth.blocks[50] = {"number": 50, "timestamp": 1700000050, "transactions": []}
    fake_eth.tokens[TOKEN] = {"name": "Test", "symbol": "TST", "decimals": 0}

    tx = await services.transaction_service.get_transaction_by_hash(tx_hash(1))

    assert tx.status == "success"
    assert tx.gas_used == 60000
    assert tx.timestamp == 1700000050
    assert tx.token_transfer.amount_formatted == "42.0"

    record = await cache_store.find_transaction_by_hash(tx_hash(1), SEPOLIA_CHAIN_ID)
    assert record is not None
    assert record.wallet_id is None
    assert record.token_symbol == "TST"


@pytest.mark.asyncio
async def test_chain_lookup_links_known_wallet(services, cache_store, fake_eth):
    wallet = await cache_store.upsert_wallet(OTHER)
    fake_eth.transactions[tx_hash(1)] = chain_transaction(1, sender=WALLET, recipient=OTHER)
    fake_eth.receipts[tx_hash(1)] = make_receipt()
    fake_eth.blocks[50] = {"number": 50, "timestamp": 1, "transactions": []}

    await services.transaction_service.get_transaction_by_hash(tx_hash(1))

    record = await cache_store.find_transaction_by_hash(tx_hash(1), SEPOLIA_CHAIN_ID)
    assert record.wallet_id == wallet.id


@pytest.mark.asyncio
async def test_cache_hit_skips_the_chain(services, cache_store, mock_connector):
    cached = TransactionResponse(hash=tx_hash(7), from_address=WALLET, to_address=OTHER, value="3.0", timestamp=99)
    await cache_store.upsert_transaction(cached, SEPOLIA_CHAIN_ID)

    tx = await services.transaction_service.get_transaction_by_hash(tx_hash(7).upper().replace("0X", "0x"))

    assert tx == cached
    mock_connector.get_provider.assert_not_called()


@pytest.mark.asyncio
async def test_rpc_failure_raises_upstream_error(services, fake_eth):
    fake_eth.get_transaction = AsyncMock(side_effect=ConnectionError("rpc down"))

    with pytest.raises(UpstreamError):
        await services.transaction_service.get_transaction_by_hash(tx_hash(1))


@pytest.mark.asyncio
async def test_sync_transactions_returns_count(services, etherscan_client, cache_store):
    etherscan_client.get_transactions.return_value = [
        {"hash": tx_hash(n), "from": WALLET, "to": OTHER, "value": "0", "blockNumber": str(n), "timeStamp": str(n), "isError": "0"}
        for n in range(1, 4)
    ]

    result = await services.transaction_service.sync_transactions(WALLET)

    assert result.synced == 3
    assert len(await cache_store.find_transactions_by_wallet(WALLET, SEPOLIA_CHAIN_ID)) == 3
    assert (await cache_store.find_wallet_by_address(WALLET)) is not None


@pytest.mark.asyncio
async def test_sync_transactions_rejects_bad_address(services, etherscan_client):
    with pytest.raises(ValidationError):
        await services.transaction_service.sync_transactions("0xabc")
    etherscan_client.get_transactions.assert_not_awaited()


@pytest.mark.asyncio
async def test_backfill_fills_token_columns(services, cache_store, fake_eth):
    for n in (1, 2, 3):
        await cache_store.upsert_transaction(
            TransactionResponse(hash=tx_hash(n), from_address=WALLET, to_address=TOKEN, timestamp=n), SEPOLIA_CHAIN_ID
        )
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 10**6)])
    fake_eth.receipts[tx_hash(2)] = make_receipt([])
    fake_eth.tokens[TOKEN] = {"symbol": "USDC", "decimals": 6}

    result = await services.transaction_service.backfill_token_info()

    assert result.processed == 3
    assert result.updated == 1
    record = await cache_store.find_transaction_by_hash(tx_hash(1), SEPOLIA_CHAIN_ID)
    assert record.token_amount_formatted == "1.0"
    assert len(await cache_store.find_transactions_without_token_info()) == 2
