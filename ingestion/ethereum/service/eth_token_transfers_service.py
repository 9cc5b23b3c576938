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

from typing import Any, List, Mapping, Optional

from eth_utils import is_hex

from constants.event_transfer_signature import ERC20_TRANSFER_TOPIC_COUNT, TRANSFER_EVENT_SIGNATURE
from ingestion.ethereum.mappers.receipt_log_mapper import EthReceiptLogMapper
from ingestion.ethereum.models.receipt_log import EthReceiptLog
from ingestion.ethereum.models.token_transfer import EthTokenTransfer
from utils.formatter_utils import hex_to_dec, to_normalized_address
from utils.logger_utils import get_logger

logger = get_logger("ETH Token Transfer Service")


class EthTokenTransfersService(object):
    @staticmethod
    def detect(receipt: Optional[Mapping[str, Any]]) -> Optional[EthTokenTransfer]:
        """
        Returns the first ERC-20 Transfer found in the receipt's logs, or None.
        Logs that cannot be decoded are skipped.
        """
        if not receipt:
            return None

        for log_dict in receipt.get("logs") or []:
            try:
                receipt_log = EthReceiptLogMapper.dict_to_receipt_log(log_dict)
                transfer = EthTokenTransfersService.extract_transfer_from_log(receipt_log)
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Skipping malformed receipt log: {e}")
                continue
            if transfer is not None:
                return transfer
        return None

    @staticmethod
    def extract_transfer_from_log(receipt_log: EthReceiptLog) -> Optional[EthTokenTransfer]:
        """
        Decodes an ERC-20 Transfer(from, to, value) log.
        ERC-721 transfers share the signature but carry a 4th topic and are ignored.
        """
        topics: List[str] = receipt_log.topics
        if len(topics) != ERC20_TRANSFER_TOPIC_COUNT:
            return None
        if not topics[0] or topics[0].casefold() != TRANSFER_EVENT_SIGNATURE:
            return None

        if not receipt_log.address:
            return None
        if not all(is_hex(topic) for topic in topics[1:]):
            return None

        data = receipt_log.data
        if not data or data in ("0x", "0X") or not is_hex(data):
            return None
        value = hex_to_dec(data)
        if value is None:
            return None

        return EthTokenTransfer(
            contract_address=to_normalized_address(receipt_log.address),
            from_address=extract_address_from_log_topic(topics[1]),
            to_address=extract_address_from_log_topic(topics[2]),
            value=value,
            transaction_hash=receipt_log.transaction_hash,
            log_index=receipt_log.log_index,
        )


def extract_address_from_log_topic(param: str) -> Optional[str]:
    if param is None:
        return None
    elif len(param) >= 40:
        return to_normalized_address("0x" + param[-40:])
    else:
        return to_normalized_address(param)
