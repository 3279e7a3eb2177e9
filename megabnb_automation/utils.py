"""Unit conversion, address and hex helpers shared by the engines."""

from decimal import Decimal
from typing import Any, Union

from eth_utils import to_checksum_address
from web3 import Web3

NATIVE_SYMBOL = "MegaBNB"

Number = Union[int, str, Decimal]


def ether_to_wei(amount: Number) -> int:
    """Convert an ether amount to wei; fractions below one wei are truncated"""
    return int(Web3.to_wei(Decimal(str(amount)), "ether"))


def wei_to_ether(amount_wei: Union[int, str]) -> Decimal:
    return Decimal(Web3.from_wei(int(amount_wei), "ether"))


def format_ether(amount_wei: Union[int, str], symbol: str = NATIVE_SYMBOL) -> str:
    return f"{wei_to_ether(amount_wei)} {symbol}"


def is_valid_address(address: Any) -> bool:
    if not isinstance(address, str):
        return False
    return Web3.is_address(address)


def checksum(address: str) -> str:
    return to_checksum_address(address)


def mask_private_key(private_key: str) -> str:
    # Only the first 6 and last 4 characters are ever shown
    if not private_key or len(private_key) <= 10:
        return "***"
    return f"{private_key[:6]}...{private_key[-4:]}"


def is_empty_code(code: Any) -> bool:
    if code is None:
        return True
    if isinstance(code, (bytes, bytearray)):
        return len(code) == 0
    text = str(code).lower()
    return text in ("", "0x", "0x0")


def hex_to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    text = str(value)
    if text in ("", "0x"):
        return 0
    return int(text, 16)
