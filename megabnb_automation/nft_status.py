"""
NFT mint-status check

Calls the common ERC721 view methods one by one, tolerating each failure,
and derives a minted/max view from whichever answered. Storage slots 0xb
and 0xc are read as a guess at (totalMints, maxMints); that guess depends on
the contract's compiler layout, so it is only ever reported under
"best_effort_unverified" and never feeds the main verdict.
"""

from typing import Any, Dict, Optional

from eth_abi import decode
from web3 import Web3

from .chain_client import ChainClient
from .errors import InvalidAddress
from .events import EventLog
from .utils import checksum, hex_to_int, is_empty_code

VIEW_METHODS = {
    "name": "string",
    "symbol": "string",
    "totalSupply": "uint256",
    "totalMints": "uint256",
    "TOTAL_MINTS": "uint256",
    "maxSupply": "uint256",
    "maxMints": "uint256",
    "MAX_SUPPLY": "uint256",
    "MAX_MINTS": "uint256",
    "mintingFinished": "bool",
    "isMintingFinished": "bool",
}

TOTAL_MINTS_SLOT = 0xB
MAX_MINTS_SLOT = 0xC


def selector(method: str) -> str:
    return Web3.to_hex(Web3.keccak(text=f"{method}()")[:4])


async def call_view(client: ChainClient, address: str, method: str, output_type: str) -> Optional[Any]:
    """Call a no-argument view method; None when it reverts, is missing or cannot be decoded"""
    try:
        raw = await client.call({"to": address, "data": selector(method)})
        data = Web3.to_bytes(hexstr=raw)
        if not data:
            return None
        return decode([output_type], data)[0]
    except Exception:
        return None


async def check_nft_status(
    client: ChainClient,
    address: str,
    log: Optional[EventLog] = None
) -> Dict[str, Any]:
    """
    Report what can be learned about an NFT contract's mint progress

    Raises:
        InvalidAddress: Malformed address, or no contract code at it
    """
    log = log or EventLog()
    if not client.is_address(address):
        raise InvalidAddress(address, "contract address")
    address = checksum(address)

    log.banner(f"NFT status: {address}")
    if is_empty_code(await client.get_code(address)):
        log.error("nft_status", f"{address} is not a contract")
        raise InvalidAddress(address, "contract address (no code)")

    methods: Dict[str, Any] = {}
    for method, output_type in VIEW_METHODS.items():
        value = await call_view(client, address, method, output_type)
        if value is None:
            log.info("nft_status", f"{method}: unavailable")
            continue
        methods[method] = value
        log.info("nft_status", f"{method}: {value}")

    minted = _first(methods, "totalMints", "TOTAL_MINTS", "totalSupply")
    maximum = _first(methods, "maxMints", "MAX_MINTS", "maxSupply", "MAX_SUPPLY")

    report: Dict[str, Any] = {
        "address": address,
        "methods": methods,
        "minted": minted,
        "max": maximum,
        "sold_out": None,
        "remaining": None,
    }
    if minted is not None and maximum is not None:
        report["sold_out"] = minted >= maximum
        report["remaining"] = max(maximum - minted, 0)
        if report["sold_out"]:
            log.warning("nft_status", f"Minting finished: {minted}/{maximum}")
        else:
            log.success("nft_status", f"Still mintable: {minted}/{maximum}, {report['remaining']} left")

    report["best_effort_unverified"] = await _storage_guess(client, address, log)
    return report


async def _storage_guess(client: ChainClient, address: str, log: EventLog) -> Dict[str, Any]:
    guess: Dict[str, Any] = {"total_mints_slot": hex(TOTAL_MINTS_SLOT), "max_mints_slot": hex(MAX_MINTS_SLOT)}
    try:
        guess["total_mints"] = hex_to_int(await client.get_storage_at(address, TOTAL_MINTS_SLOT))
        guess["max_mints"] = hex_to_int(await client.get_storage_at(address, MAX_MINTS_SLOT))
    except Exception as e:
        guess["error"] = str(e)
        return guess
    log.info(
        "nft_status",
        f"Unverified storage guess: slot 0xb = {guess['total_mints']}, slot 0xc = {guess['max_mints']}",
    )
    return guess


def _first(values: Dict[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        if key in values:
            return int(values[key])
    return None
