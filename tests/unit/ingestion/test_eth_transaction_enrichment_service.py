from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import OTHER, TOKEN, WALLET, make_receipt, make_transfer_log, tx_hash
from ingestion.ethereum.models.transaction import TransactionResponse
from ingestion.ethereum.service.eth_token_metadata_service import EthTokenMetadataService
from ingestion.ethereum.service.eth_transaction_enrichment_service import EthTransactionEnrichmentService


def make_tx(n=1):
    return TransactionResponse(hash=tx_hash(n), from_address=WALLET, to_address=TOKEN, block_number=10, timestamp=1700000000)


@pytest.fixture
def enrichment_service(mock_connector):
    return EthTransactionEnrichmentService(mock_connector, EthTokenMetadataService(mock_connector), error_sink=MagicMock())


@pytest.mark.asyncio
async def test_enrich_attaches_token_transfer(enrichment_service, fake_eth):
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 1500000)])
    fake_eth.tokens[TOKEN] = {"name": "USD Coin", "symbol": "USDC", "decimals": 6}

    tx = make_tx()
    enriched = await enrichment_service.enrich(tx, 11155111)

    assert tx.token_transfer is None
    transfer = enriched.token_transfer
    assert transfer.contract_address == TOKEN
    assert transfer.token_symbol == "USDC"
    assert transfer.token_decimals == 6
    assert transfer.amount == "1500000"
    assert transfer.amount_formatted == "1.5"


@pytest.mark.asyncio
async def test_missing_decimals_default_to_18(enrichment_service, fake_eth):
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 10**18)])
    fake_eth.tokens[TOKEN] = {"symbol": "ODD"}

    enriched = await enrichment_service.enrich(make_tx(), 1)

    assert enriched.token_transfer.token_decimals == 18
    assert enriched.token_transfer.amount_formatted == "1.0"


@pytest.mark.asyncio
async def test_metadata_failure_keeps_contract_and_amount(mock_connector, fake_eth):
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 2 * 10**18)])
    metadata_service = MagicMock()
    metadata_service.resolve = AsyncMock(side_effect=RuntimeError("rpc down"))
    service = EthTransactionEnrichmentService(mock_connector, metadata_service, error_sink=MagicMock())

    enriched = await service.enrich(make_tx(), 1)

    transfer = enriched.token_transfer
    assert transfer.contract_address == TOKEN
    assert transfer.token_name is None
    assert transfer.token_symbol is None
    assert transfer.token_decimals == 18
    assert transfer.amount_formatted == "2.0"


@pytest.mark.asyncio
async def test_missing_receipt_returns_transaction_unchanged(enrichment_service):
    tx = make_tx()
    assert await enrichment_service.enrich(tx, 1) is tx


@pytest.mark.asyncio
async def test_receipt_without_transfer_returns_transaction_unchanged(enrichment_service, fake_eth):
    fake_eth.receipts[tx_hash(1)] = make_receipt([])
    tx = make_tx()
    assert await enrichment_service.enrich(tx, 1) is tx


@pytest.mark.asyncio
async def test_enrich_many_substitutes_failures(mock_connector, fake_eth):
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 5)])
    fake_eth.tokens[TOKEN] = {"decimals": 0}
    service = EthTransactionEnrichmentService(mock_connector, EthTokenMetadataService(mock_connector), error_sink=MagicMock())
    original_enrich = service.enrich

    async def flaky_enrich(tx, chain_id):
        if tx.hash == tx_hash(2):
            raise RuntimeError("boom")
        return await original_enrich(tx, chain_id)

    service.enrich = flaky_enrich
    txs = [make_tx(1), make_tx(2)]

    enriched = await service.enrich_many(txs, 1)

    assert enriched[0].token_transfer.amount_formatted == "5.0"
    assert enriched[1] is txs[1]


@pytest.mark.asyncio
async def test_receipt_timeout_returns_transaction_unchanged(mock_connector, fake_eth):
    fake_eth.receipts[tx_hash(1)] = make_receipt([make_transfer_log(TOKEN, WALLET, OTHER, 5)])
    fake_eth.slow_receipts.add(tx_hash(1))
    sink = MagicMock()
    service = EthTransactionEnrichmentService(
        mock_connector, EthTokenMetadataService(mock_connector), receipt_timeout_seconds=0.05, error_sink=sink
    )
    tx = make_tx()

    assert await service.enrich(tx, 1) is tx
    assert sink.report.call_args.args[0] == "enrichment_receipt"
