import re
from typing import Optional

from eth_utils import is_checksum_address

from utils.exceptions import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
TRANSACTION_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

TRANSACTION_TYPES = ("sent", "received")

MIN_PAGE_LIMIT = 1
MAX_PAGE_LIMIT = 100


def validate_address(address: str) -> str:
    """
    Validate an Ethereum address.

    Args:
        address: 0x-prefixed, 20-byte hex address. All-lowercase and all-uppercase
            hex are accepted as is; mixed case must be a valid EIP-55 checksum.

    Returns:
        The lowercased address.

    Raises:
        ValidationError: If the address is malformed.
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.match(address):
        raise ValidationError(f"Invalid Ethereum address: {address!r}")
    hex_part = address[2:]
    if hex_part not in (hex_part.lower(), hex_part.upper()) and not is_checksum_address(address):
        raise ValidationError(f"Invalid address checksum: {address!r}")
    return address.lower()


def validate_transaction_hash(tx_hash: str) -> str:
    """
    Validate a transaction hash (0x-prefixed, 32-byte hex).

    Raises:
        ValidationError: If the hash is malformed.
    """
    if not isinstance(tx_hash, str) or not TRANSACTION_HASH_PATTERN.match(tx_hash):
        raise ValidationError(f"Invalid transaction hash: {tx_hash!r}")
    return tx_hash.lower()


def validate_transaction_type(tx_type: Optional[str]) -> Optional[str]:
    if tx_type is None:
        return None
    if tx_type not in TRANSACTION_TYPES:
        raise ValidationError(f"Transaction type must be one of {TRANSACTION_TYPES}, got {tx_type!r}")
    return tx_type


def validate_pagination(page: int, limit: int) -> None:
    """
    Validate pagination parameters.

    Raises:
        ValidationError: If page < 1 or limit is outside [1, 100].
    """
    if page < 1:
        raise ValidationError(f"Page must be greater than or equal to 1, got {page}")
    if not MIN_PAGE_LIMIT <= limit <= MAX_PAGE_LIMIT:
        raise ValidationError(f"Limit must be between {MIN_PAGE_LIMIT} and {MAX_PAGE_LIMIT}, got {limit}")

