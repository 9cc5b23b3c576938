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

from typing import Any, Mapping

from ingestion.ethereum.models.receipt_log import EthReceiptLog
from utils.formatter_utils import hex_to_dec, to_hex_string


class EthReceiptLogMapper(object):
    @staticmethod
    def dict_to_receipt_log(log_dict: Mapping[str, Any]) -> EthReceiptLog:
        """
        Maps a receipt log in either JSON-RPC form (hex strings, camelCase) or
        web3.py AttributeDict form (HexBytes, ints) to an EthReceiptLog.
        """
        return EthReceiptLog(
            log_index=hex_to_dec(log_dict.get("logIndex")),
            transaction_hash=to_hex_string(log_dict.get("transactionHash")),
            block_number=hex_to_dec(log_dict.get("blockNumber")),
            address=log_dict.get("address"),
            data=to_hex_string(log_dict.get("data")),
            topics=[to_hex_string(topic) for topic in log_dict.get("topics") or []],
        )
