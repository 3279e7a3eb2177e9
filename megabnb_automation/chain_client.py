"""
MegaBNB Chain Client - Network Layer

Responsibilities:
1. Define the ChainClient capability used by every engine
2. Provide the AsyncWeb3-backed implementation talking JSON-RPC to the node
3. Sign, broadcast and wait for receipts with bounded polling
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from eth_account import Account as EthAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound
from web3.middleware import ExtraDataToPOAMiddleware
from web3.providers.rpc import AsyncHTTPProvider

from .config import Settings
from .errors import ConfirmationTimeout, GasEstimationFailed, MegaBNBError, TransactionRejected
from .events import EventLog
from .models import Account, TransactionReceipt
from .utils import checksum, is_valid_address

Sleep = Callable[[float], Awaitable[Any]]


class ChainClient(Protocol):
    def is_address(self, value: Any) -> bool:
        ...

    async def chain_id(self) -> int:
        ...

    async def block_number(self) -> int:
        ...

    async def gas_price(self) -> int:
        ...

    async def get_balance(self, address: str) -> int:
        ...

    async def get_transaction_count(self, address: str, block_identifier: str = "pending") -> int:
        ...

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        ...

    async def get_code(self, address: str) -> str:
        ...

    async def get_storage_at(self, address: str, slot: int) -> str:
        ...

    async def call(self, tx: Dict[str, Any]) -> str:
        ...

    def sign_transaction(self, tx: Dict[str, Any], private_key: str) -> bytes:
        ...

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        ...

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        ...

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        ...


class Web3ChainClient:
    """ChainClient over AsyncWeb3 and an HTTP JSON-RPC endpoint"""

    def __init__(self, rpc_url: str, w3: Optional[AsyncWeb3] = None):
        """
        Initialize client

        Args:
            rpc_url: MegaBNB RPC URL
            w3: Pre-built AsyncWeb3 instance (mainly for tests)
        """
        self.rpc_url = rpc_url
        if w3 is None:
            w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
            # MegaBNB is a POA chain, extraData exceeds the standard 32 bytes
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3

    def is_address(self, value: Any) -> bool:
        return is_valid_address(value)

    async def is_connected(self) -> bool:
        return await self.w3.is_connected()

    async def chain_id(self) -> int:
        return int(await self.w3.eth.chain_id)

    async def block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def gas_price(self) -> int:
        return int(await self.w3.eth.gas_price)

    async def get_balance(self, address: str) -> int:
        return int(await self.w3.eth.get_balance(checksum(address)))

    async def get_transaction_count(self, address: str, block_identifier: str = "pending") -> int:
        return int(await self.w3.eth.get_transaction_count(checksum(address), block_identifier))

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(await self.w3.eth.estimate_gas(tx))

    async def get_code(self, address: str) -> str:
        code = await self.w3.eth.get_code(checksum(address))
        return Web3.to_hex(code)

    async def get_storage_at(self, address: str, slot: int) -> str:
        value = await self.w3.eth.get_storage_at(checksum(address), slot)
        return Web3.to_hex(value)

    async def call(self, tx: Dict[str, Any]) -> str:
        return Web3.to_hex(await self.w3.eth.call(tx))

    def sign_transaction(self, tx: Dict[str, Any], private_key: str) -> bytes:
        signed = EthAccount.sign_transaction(tx, private_key)
        raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
        if raw_tx is None:
            raise AttributeError("Unable to read raw transaction from signed payload")
        return bytes(raw_tx)

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        tx_hash = await self.w3.eth.send_raw_transaction(raw_tx)
        return Web3.to_hex(tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            receipt = await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        return dict(receipt) if receipt is not None else None

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        try:
            tx = await self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None
        return dict(tx)


async def wait_for_receipt(
    client: ChainClient,
    tx_hash: str,
    attempts: int = 30,
    poll_interval: float = 2.0,
    max_interval: float = 15.0,
    sleep: Sleep = asyncio.sleep
) -> TransactionReceipt:
    """
    Poll for a receipt with exponential backoff

    Raises:
        ConfirmationTimeout: No receipt after `attempts` polls
    """
    delay = poll_interval
    for attempt in range(1, attempts + 1):
        receipt = await client.get_transaction_receipt(tx_hash)
        if receipt is not None:
            return TransactionReceipt.from_web3(receipt)
        if attempt < attempts:
            await sleep(delay)
            delay = min(delay * 2, max_interval)
    raise ConfirmationTimeout(tx_hash, attempts)


async def sign_and_send(
    client: ChainClient,
    account: Account,
    tx: Dict[str, Any],
    attempts: int = 30,
    poll_interval: float = 2.0,
    max_interval: float = 15.0,
    sleep: Sleep = asyncio.sleep
) -> TransactionReceipt:
    """
    Sign `tx` with the account key, broadcast it and wait for the receipt

    The caller owns nonce, gas and chainId; this only moves bytes.

    Raises:
        TransactionRejected: Signing or broadcast failed
        ConfirmationTimeout: Receipt never appeared
    """
    try:
        raw_tx = client.sign_transaction(tx, account.private_key)
        tx_hash = await client.send_raw_transaction(raw_tx)
    except MegaBNBError:
        raise
    except Exception as e:
        raise TransactionRejected(f"Broadcast failed: {e}") from e

    return await wait_for_receipt(
        client,
        tx_hash,
        attempts=attempts,
        poll_interval=poll_interval,
        max_interval=max_interval,
        sleep=sleep,
    )


async def submit_transaction(
    client: ChainClient,
    settings: Settings,
    account: Account,
    tx: Dict[str, Any],
    sleep: Sleep = asyncio.sleep
) -> TransactionReceipt:
    """
    Attach a fresh pending nonce and the chain id, then sign, broadcast and wait

    The nonce is read right before signing and never cached, so two
    submissions from the same account must not overlap.
    """
    nonce = await client.get_transaction_count(account.address, "pending")
    tx = dict(tx, nonce=nonce, chainId=settings.require_chain_id())
    return await sign_and_send(
        client,
        account,
        tx,
        attempts=settings.confirmation_attempts,
        poll_interval=settings.confirmation_poll_interval,
        max_interval=settings.confirmation_max_interval,
        sleep=sleep,
    )


async def estimate_gas(client: ChainClient, tx: Dict[str, Any]) -> int:
    try:
        return int(await client.estimate_gas(tx))
    except Exception as e:
        raise GasEstimationFailed(str(e)) from e


async def estimate_gas_or_default(
    client: ChainClient,
    tx: Dict[str, Any],
    default: int,
    log: EventLog,
    operation: str = "gas"
) -> int:
    """Estimate gas for `tx`; GasEstimationFailed is recovered with `default`"""
    try:
        return await estimate_gas(client, tx)
    except GasEstimationFailed as e:
        log.warning(operation, f"Could not estimate gas ({e}), using default gas limit: {default}")
        return default


def log_receipt(log: EventLog, operation: str, title: str, receipt: TransactionReceipt) -> None:
    level = "success" if receipt.succeeded else "error"
    log.emit(
        level,
        operation,
        f"{title} {'confirmed' if receipt.succeeded else 'failed'}: {receipt.tx_hash}",
        tx_hash=receipt.tx_hash,
        block_number=receipt.block_number,
        gas_used=receipt.gas_used,
        contract_address=receipt.contract_address,
    )
    log.info(operation, f"Block: {receipt.block_number}, Gas Used: {receipt.gas_used}")
    if receipt.contract_address:
        log.info(operation, f"Contract Address: {receipt.contract_address}")
