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

from typing import Any, Optional

from eth_utils import to_int

from utils.logger_utils import get_logger

logger = get_logger("Formatter Utils")

ETHER_DECIMALS = 18


def hex_to_dec(hex_string: Any) -> int | None:
    """
    Converts a hex string to decimal integer. Integers pass through unchanged.
    """
    if hex_string is None:
        return None
    if isinstance(hex_string, int):
        return hex_string
    try:
        return to_int(hexstr=hex_string)
    except (ValueError, TypeError):
        logger.warning(f"Invalid hex string for conversion: {hex_string}")
        return None


def to_int_or_none(val: Any) -> int | None:
    """Parses decimal strings as returned by indexer APIs ("21000", "")."""
    if val is None or val == "":
        return None
    if isinstance(val, int):
        return val
    try:
        return int(str(val), 10)
    except ValueError:
        logger.debug(f"Cannot convert value to int: {val}")
        return None


def to_hex_string(val: Any) -> str | None:
    """
    Renders bytes-like values (HexBytes, bytes) as 0x-prefixed hex strings.
    Strings are returned as-is.
    """
    if val is None:
        return None
    if isinstance(val, str):
        return val
    if isinstance(val, (bytes, bytearray)):
        return "0x" + bytes(val).hex()
    return str(val)


def to_normalized_address(address: Optional[str]) -> Optional[str]:
    """
    Convert address to lowercase.
    Safe-guards against None or invalid types.
    """
    if address is None or not isinstance(address, str):
        return None
    return address.lower()


def format_units(raw_amount: int, decimals: int) -> str:
    """
    Renders an integer amount in the smallest unit as a decimal string.

    Exact integer arithmetic; the fractional part keeps at least one digit
    (1500000 with 6 decimals -> "1.5", 10**18 with 18 decimals -> "1.0").
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    sign = "-" if raw_amount < 0 else ""
    whole, fraction = divmod(abs(raw_amount), 10**decimals)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{fraction_str or '0'}"


def format_ether(wei: int) -> str:
    return format_units(wei, ETHER_DECIMALS)
