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

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from constants.constants import STATUS_FAILED, STATUS_SUCCESS
from ingestion.ethereum.models.token_transfer import TokenTransfer
from ingestion.ethereum.models.transaction import TransactionResponse
from utils.formatter_utils import (
    format_ether,
    hex_to_dec,
    to_hex_string,
    to_int_or_none,
    to_normalized_address,
)


class EthTransactionMapper(object):
    @staticmethod
    def indexer_dict_to_transaction(json_dict: Mapping[str, Any]) -> TransactionResponse:
        """Maps one Etherscan `txlist` entry (all values are decimal strings)."""
        return TransactionResponse(
            hash=json_dict["hash"],
            from_address=json_dict.get("from") or "",
            to_address=json_dict.get("to") or "",
            value=format_ether(to_int_or_none(json_dict.get("value")) or 0),
            block_number=to_int_or_none(json_dict.get("blockNumber")) or 0,
            gas_used=to_int_or_none(json_dict.get("gasUsed")),
            gas_price=to_int_or_none(json_dict.get("gasPrice")),
            timestamp=to_int_or_none(json_dict.get("timeStamp")) or 0,
            status=STATUS_SUCCESS if str(json_dict.get("isError", "0")) == "0" else STATUS_FAILED,
        )

    @staticmethod
    def web3_dict_to_transaction(
        tx_dict: Mapping[str, Any],
        receipt: Optional[Mapping[str, Any]],
        block_timestamp: Optional[int],
        block_number: Optional[int] = None,
    ) -> TransactionResponse:
        """
        Maps a transaction as returned by `eth_getTransactionByHash` / full blocks,
        completed with gas and status from its receipt when one is available.
        Accepts both web3.py AttributeDicts and raw JSON-RPC dicts.
        """
        if block_number is None:
            block_number = hex_to_dec(tx_dict.get("blockNumber"))

        status = STATUS_FAILED
        gas_used = None
        if receipt is not None:
            status = STATUS_SUCCESS if hex_to_dec(receipt.get("status")) == 1 else STATUS_FAILED
            gas_used = hex_to_dec(receipt.get("gasUsed"))

        return TransactionResponse(
            hash=to_hex_string(tx_dict.get("hash")),
            from_address=tx_dict.get("from") or "",
            to_address=tx_dict.get("to") or "",
            value=format_ether(hex_to_dec(tx_dict.get("value")) or 0),
            block_number=block_number or 0,
            gas_used=gas_used,
            gas_price=hex_to_dec(tx_dict.get("gasPrice")),
            timestamp=hex_to_dec(block_timestamp) or 0,
            status=status,
        )

    @staticmethod
    def record_to_transaction(record: Any) -> TransactionResponse:
        """Maps a cached TransactionRecord row back to the response shape."""
        token_transfer = None
        if record.token_contract_address:
            token_transfer = TokenTransfer(
                contract_address=record.token_contract_address,
                token_name=record.token_name,
                token_symbol=record.token_symbol,
                token_decimals=record.token_decimals,
                amount=record.token_amount or "0",
                amount_formatted=record.token_amount_formatted or "0",
            )

        return TransactionResponse(
            hash=record.hash,
            from_address=record.from_address,
            to_address=record.to_address,
            value=record.amount,
            block_number=record.block_number,
            gas_used=record.gas_used,
            gas_price=record.gas_price,
            timestamp=datetime_to_unix(record.timestamp),
            status=record.status,
            token_transfer=token_transfer,
        )

    @staticmethod
    def transaction_to_cache_dict(transaction: TransactionResponse) -> Dict[str, Any]:
        """
        Mutable cache columns for a transaction: lowercased addresses, decimal
        amount as string, integer block/gas fields, token columns when present.
        """
        values: Dict[str, Any] = {
            "from_address": to_normalized_address(transaction.from_address) or "",
            "to_address": to_normalized_address(transaction.to_address) or "",
            "amount": transaction.value,
            "block_number": int(transaction.block_number),
            "gas_used": int(transaction.gas_used) if transaction.gas_used is not None else None,
            "gas_price": int(transaction.gas_price) if transaction.gas_price is not None else None,
            "timestamp": unix_to_datetime(transaction.timestamp),
            "status": transaction.status,
        }
        if transaction.token_transfer is not None:
            values.update(EthTransactionMapper.token_transfer_to_cache_dict(transaction.token_transfer))
        return values

    @staticmethod
    def token_transfer_to_cache_dict(token_transfer: TokenTransfer) -> Dict[str, Any]:
        return {
            "token_contract_address": to_normalized_address(token_transfer.contract_address),
            "token_name": token_transfer.token_name,
            "token_symbol": token_transfer.token_symbol,
            "token_decimals": token_transfer.token_decimals,
            "token_amount": token_transfer.amount,
            "token_amount_formatted": token_transfer.amount_formatted,
        }


def unix_to_datetime(timestamp: int) -> datetime:
    # Naive UTC, the form SQLite round-trips
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).replace(tzinfo=None)


def datetime_to_unix(value: datetime) -> int:
    # SQLite drops tzinfo; stored values are always UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())
