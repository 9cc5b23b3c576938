from datetime import datetime

from hexbytes import HexBytes

from conftest import OTHER, WALLET, tx_hash
from ingestion.ethereum.mappers.transaction_mapper import EthTransactionMapper, datetime_to_unix, unix_to_datetime

INDEXER_ENTRY = {
    "blockNumber": "5123456",
    "timeStamp": "1700000000",
    "hash": tx_hash(1),
    "from": WALLET,
    "to": "",
    "value": "1500000000000000000",
    "gas": "21000",
    "gasPrice": "1000000000",
    "isError": "0",
    "gasUsed": "21000",
}


def test_indexer_entry_mapping():
    tx = EthTransactionMapper.indexer_dict_to_transaction(INDEXER_ENTRY)

    assert tx.hash == tx_hash(1)
    assert tx.to_address == ""
    assert tx.value == "1.5"
    assert tx.block_number == 5123456
    assert tx.gas_used == 21000
    assert tx.gas_price == 1000000000
    assert tx.timestamp == 1700000000
    assert tx.status == "success"


def test_indexer_error_flag_maps_to_failed():
    tx = EthTransactionMapper.indexer_dict_to_transaction({**INDEXER_ENTRY, "isError": "1"})
    assert tx.status == "failed"


def test_web3_transaction_mapping_uses_receipt_and_block():
    tx = {
        "hash": HexBytes(tx_hash(2)),
        "from": "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0",
        "to": OTHER,
        "value": 10**17,
        "blockNumber": 77,
        "gasPrice": 5,
    }
    receipt = {"status": 0, "gasUsed": 30000}

    mapped = EthTransactionMapper.web3_dict_to_transaction(tx, receipt, 1700000123)

    assert mapped.hash == tx_hash(2)
    assert mapped.value == "0.1"
    assert mapped.block_number == 77
    assert mapped.gas_used == 30000
    assert mapped.status == "failed"
    assert mapped.timestamp == 1700000123


def test_cache_dict_lowercases_addresses_and_omits_token_columns():
    tx = EthTransactionMapper.indexer_dict_to_transaction(
        {**INDEXER_ENTRY, "from": "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"}
    )

    values = EthTransactionMapper.transaction_to_cache_dict(tx)

    assert values["from_address"] == WALLET
    assert values["amount"] == "1.5"
    assert "token_contract_address" not in values


def test_timestamp_round_trip_is_utc():
    value = unix_to_datetime(1700000000)
    assert value == datetime(2023, 11, 14, 22, 13, 20)
    assert datetime_to_unix(value) == 1700000000


def test_camel_case_serialization():
    tx = EthTransactionMapper.indexer_dict_to_transaction(INDEXER_ENTRY)
    dumped = tx.model_dump(by_alias=True)
    assert {"from", "to", "blockNumber", "gasUsed", "gasPrice", "tokenTransfer"} <= set(dumped)
