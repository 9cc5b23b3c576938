# MIT License
#
# Copyright (c) 2018 Evgeny Medvedev, evge.medvedev@gmail.com
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#

import asyncio
from typing import Any, Optional

from web3 import Web3

from abi.erc20_abi import ERC20_ABI, ERC20_ABI_BYTES32_METADATA
from ingestion.ethereum.models.token_transfer import TokenMetadata
from ingestion.ethereum.providers.chain_connector import ChainConnector
from utils.error_sink import ErrorSink, LoggingErrorSink
from utils.formatter_utils import to_normalized_address
from utils.logger_utils import get_logger

logger = get_logger("ETH Token Metadata Service")


class EthTokenMetadataService(object):
    """
    Reads name(), symbol() and decimals() of an ERC-20 contract.
    Each call may fail independently; a failed call only leaves its field empty.
    """

    def __init__(self, connector: ChainConnector, store=None, error_sink: Optional[ErrorSink] = None):
        self._connector = connector
        self._store = store
        self._error_sink = error_sink or LoggingErrorSink()

    async def resolve(self, chain_id: int, contract_address: str) -> TokenMetadata:
        contract_address = to_normalized_address(contract_address)

        cached = await self._read_cache(chain_id, contract_address)
        if cached is not None:
            return cached

        metadata = await self.get_token_metadata(chain_id, contract_address)

        if metadata.decimals is not None:
            await self._write_cache(chain_id, contract_address, metadata)
        return metadata

    async def get_token_metadata(self, chain_id: int, contract_address: str) -> TokenMetadata:
        w3 = self._connector.get_provider(chain_id)
        checksum_address = Web3.to_checksum_address(contract_address)
        contract = w3.eth.contract(address=checksum_address, abi=ERC20_ABI)

        name, symbol, decimals = await asyncio.gather(
            contract.functions.name().call(),
            contract.functions.symbol().call(),
            contract.functions.decimals().call(),
            return_exceptions=True,
        )

        if isinstance(name, BaseException) or isinstance(symbol, BaseException):
            contract_alt = w3.eth.contract(address=checksum_address, abi=ERC20_ABI_BYTES32_METADATA)
            if isinstance(name, BaseException):
                name = await self._call_contract_function(contract_alt.functions.name(), contract_address, "name")
            if isinstance(symbol, BaseException):
                symbol = await self._call_contract_function(contract_alt.functions.symbol(), contract_address, "symbol")

        if isinstance(decimals, BaseException):
            logger.debug(f"decimals() failed for {contract_address}: {decimals}")
            decimals = None

        return TokenMetadata(
            name=self._bytes_to_string(name),
            symbol=self._bytes_to_string(symbol),
            decimals=int(decimals) if decimals is not None else None,
        )

    async def _call_contract_function(self, func, contract_address: str, label: str) -> Any:
        try:
            return await func.call()
        except Exception as e:
            logger.debug(f"{label}() failed for {contract_address}: {e}")
            return None

    @staticmethod
    def _bytes_to_string(b: Any) -> Optional[str]:
        if b is None:
            return None
        if isinstance(b, str):
            return b
        if isinstance(b, (bytes, bytearray)):
            try:
                return bytes(b).rstrip(b"\x00").decode("utf-8") or None
            except UnicodeDecodeError:
                logger.debug(
                    "A UnicodeDecodeError exception occurred while trying to decode bytes to string", exc_info=True
                )
                return None
        return None

    async def _read_cache(self, chain_id: int, contract_address: str) -> Optional[TokenMetadata]:
        if self._store is None:
            return None
        try:
            return await self._store.find_token_metadata(chain_id, contract_address)
        except Exception as e:
            self._error_sink.report("token_metadata_cache_read", e, chain_id=chain_id, contract=contract_address)
            return None

    async def _write_cache(self, chain_id: int, contract_address: str, metadata: TokenMetadata) -> None:
        if self._store is None:
            return
        try:
            await self._store.upsert_token_metadata(chain_id, contract_address, metadata)
        except Exception as e:
            self._error_sink.report("token_metadata_cache_write", e, chain_id=chain_id, contract=contract_address)
