import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from web3.exceptions import ContractLogicError, TransactionNotFound

from abi.erc20_abi import ERC20_ABI_BYTES32_METADATA
from config.settings import Settings
from constants.event_transfer_signature import TRANSFER_EVENT_SIGNATURE
from services.factory import build_services
from storage.cache.cache_store import CacheStore

WALLET = "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"
OTHER = "0x1111111111111111111111111111111111111111"
TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"

# Long enough to trip any timeout the tests configure
SLOW_CALL_SECONDS = 5


def tx_hash(n: int) -> str:
    return "0x" + format(n, "064x")


def address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


def make_transfer_log(contract: str, sender: str, recipient: str, amount: int, extra_topics=()):
    return {
        "address": contract,
        "topics": [TRANSFER_EVENT_SIGNATURE, address_topic(sender), address_topic(recipient), *extra_topics],
        "data": "0x" + format(amount, "064x"),
        "logIndex": "0x0",
        "transactionHash": tx_hash(1),
        "blockNumber": "0x10",
    }


def make_receipt(logs=(), status=1, gas_used=21000):
    return {"status": status, "gasUsed": gas_used, "logs": list(logs)}


class FakeContractFunction(object):
    def __init__(self, result):
        self._result = result

    async def call(self):
        if isinstance(self._result, BaseException):
            raise self._result
        return self._result


class FakeEth(object):
    """In-memory stand-in for AsyncWeb3.eth."""

    def __init__(self):
        self.current_block = 0
        self.blocks = {}
        self.transactions = {}
        self.receipts = {}
        self.balances = {}
        self.tokens = {}
        self.failing_blocks = set()
        self.slow_blocks = set()
        self.slow_receipts = set()
        self.requested_blocks = []

    @property
    def block_number(self):
        return self._block_number()

    async def _block_number(self):
        return self.current_block

    async def get_balance(self, address):
        return self.balances.get(address.lower(), 0)

    async def get_block(self, block_number, full_transactions=False):
        self.requested_blocks.append(block_number)
        if block_number in self.slow_blocks:
            await asyncio.sleep(SLOW_CALL_SECONDS)
        if block_number in self.failing_blocks:
            raise ConnectionError(f"block {block_number} unavailable")
        return self.blocks.get(block_number)

    async def get_transaction(self, tx_hash):
        if tx_hash not in self.transactions:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.transactions[tx_hash]

    async def get_transaction_receipt(self, tx_hash):
        if tx_hash in self.slow_receipts:
            await asyncio.sleep(SLOW_CALL_SECONDS)
        if tx_hash not in self.receipts:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.receipts[tx_hash]

    def contract(self, address, abi):
        token = self.tokens.get(address.lower(), {})
        bytes32 = abi is ERC20_ABI_BYTES32_METADATA

        def function(name):
            key = f"{name}_bytes32" if bytes32 else name
            if key in token:
                return lambda: FakeContractFunction(token[key])
            return lambda: FakeContractFunction(ContractLogicError("execution reverted"))

        functions = SimpleNamespace(name=function("name"), symbol=function("symbol"), decimals=function("decimals"))
        return SimpleNamespace(functions=functions)


@pytest.fixture
def fake_eth():
    return FakeEth()


@pytest.fixture
def mock_web3(fake_eth):
    return SimpleNamespace(eth=fake_eth)


@pytest.fixture
def mock_connector(mock_web3):
    connector = MagicMock()
    connector.get_provider.return_value = mock_web3
    return connector


@pytest_asyncio.fixture
async def cache_store(tmp_path):
    store = CacheStore(f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def etherscan_client():
    client = MagicMock()
    client.get_transactions = AsyncMock(return_value=[])
    client.close = AsyncMock()
    return client


@pytest_asyncio.fixture
async def services(mock_connector, cache_store, etherscan_client):
    container = build_services(
        Settings(),
        connector=mock_connector,
        store=cache_store,
        etherscan_client=etherscan_client,
        error_sink=MagicMock(),
    )
    yield container
    await container.sync_registry.aclose()
