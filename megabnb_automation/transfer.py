"""
MegaBNB Transfer Engine

Native token transfers from one sender to many recipients. Before sending,
the engine works out how many transfers the sender can afford after keeping
a reserve for the deploy step, then sends strictly one at a time. A failed
transfer is logged and skipped; the rest still go out.
"""

import asyncio
from typing import List, Optional, Sequence

from web3 import Web3

from .chain_client import (
    ChainClient,
    Sleep,
    estimate_gas_or_default,
    log_receipt,
    submit_transaction,
)
from .config import Settings
from .errors import InsufficientBalance, InvalidAddress, TransactionRejected
from .events import EventLog
from .models import Account, GasPolicy, TransactionReceipt, TransferRequest
from .utils import checksum, format_ether, is_empty_code

ZERO_VALUE_MODES = ("empty", "ping", "message", "transfer")
ZERO_VALUE_GAS_LIMIT = 50_000
ZERO_VALUE_MESSAGE = "Hello MegaBNB"
SMALL_AMOUNT_WEI = 10**12  # 0.000001 MegaBNB


def affordable_count(balance_wei: int, reserve_wei: int, per_tx_cost_wei: int) -> int:
    """
    Number of transfers the balance can pay for

    floor((balance - reserve) / per_tx_cost), never negative.
    """
    if per_tx_cost_wei <= 0:
        raise ValueError("per_tx_cost_wei must be positive")
    available = balance_wei - reserve_wei
    if available <= 0:
        return 0
    return available // per_tx_cost_wei


def zero_value_payload(mode: str):
    """Call data and value used by send_zero_value for each mode"""
    if mode == "ping":
        return Web3.to_hex(Web3.keccak(text="ping()")[:4]), 0
    if mode == "message":
        return Web3.to_hex(text=ZERO_VALUE_MESSAGE), 0
    if mode == "transfer":
        return "0x", SMALL_AMOUNT_WEI
    if mode == "empty":
        return "0x", 0
    raise ValueError(f"Unknown zero-value mode: {mode} (expected one of {', '.join(ZERO_VALUE_MODES)})")


class TransferEngine:
    """Sequential native token transfers with per-recipient failure isolation"""

    def __init__(
        self,
        client: ChainClient,
        settings: Settings,
        log: Optional[EventLog] = None,
        sleep: Sleep = asyncio.sleep
    ):
        self.client = client
        self.settings = settings
        self.log = log or EventLog()
        self.sleep = sleep

    async def transfer_many(
        self,
        sender: Account,
        recipients: Sequence[str],
        amount_per_recipient_wei: int,
        reserve_wei: Optional[int] = None
    ) -> List[TransactionReceipt]:
        """
        Send `amount_per_recipient_wei` to each recipient in order

        Args:
            sender: Sending account
            recipients: Recipient addresses, all validated before anything is sent
            amount_per_recipient_wei: Amount per transfer
            reserve_wei: Balance to keep untouched, defaults to the deploy reserve

        Returns:
            Receipts of the successful transfers only. Recipients beyond the
            affordable count are not attempted.

        Raises:
            InvalidAddress: Any recipient is malformed
        """
        for address in recipients:
            if not self.client.is_address(address):
                raise InvalidAddress(address, "recipient address")
        if amount_per_recipient_wei < 0:
            raise ValueError("amount_per_recipient_wei must not be negative")
        if not recipients:
            return []
        self.settings.require_chain_id()

        gas = self.settings.transfer_gas_policy()
        reserve = self.reserve_for(reserve_wei)
        per_tx_cost = amount_per_recipient_wei + gas.fee_wei

        balance = await self.client.get_balance(sender.address)
        if per_tx_cost == 0:
            # free transfers, only the recipient list bounds the count
            count = len(recipients)
        else:
            count = affordable_count(balance, reserve, per_tx_cost)

        self.log.info("transfer", f"Amount per transfer: {format_ether(amount_per_recipient_wei)}")
        self.log.info("transfer", f"Gas cost per transfer: {format_ether(gas.fee_wei)}")
        self.log.info("transfer", f"Total cost per transfer: {format_ether(per_tx_cost)}")
        self.log.info(
            "transfer",
            f"Available balance after reserve: {format_ether(max(balance - reserve, 0))}",
            balance_wei=balance,
            reserve_wei=reserve,
            affordable_count=count,
        )

        if count == 0:
            self.log.warning(
                "transfer",
                "Balance too low for any transfer, skipping transfers",
                address=sender.address,
            )
            return []

        targets = list(recipients)
        if count < len(targets):
            self.log.warning(
                "transfer",
                f"Balance only covers {count} of {len(targets)} recipients",
                affordable_count=count,
                requested=len(targets),
            )
            targets = targets[:count]

        receipts: List[TransactionReceipt] = []
        for index, to_address in enumerate(targets):
            request = TransferRequest(sender, to_address, amount_per_recipient_wei)
            try:
                receipt = await self._send(request, gas, cap_gas=True)
                receipts.append(receipt)
            except Exception as e:
                self.log.error(
                    "transfer",
                    f"Failed to send tokens to {to_address}: {e}",
                    recipient=to_address,
                    error=str(e),
                )
            if index < len(targets) - 1:
                await self.sleep(self.settings.tx_delay)

        self.log.info(
            "transfer",
            f"Sent {format_ether(amount_per_recipient_wei)} to {len(receipts)}/{len(targets)} addresses",
            sent=len(receipts),
            attempted=len(targets),
        )
        return receipts

    async def send(self, sender: Account, to_address: str, amount_wei: int) -> TransactionReceipt:
        """
        Single transfer

        Raises:
            InvalidAddress: Malformed recipient
            InsufficientBalance: Balance below amount + gas fee
            TransactionRejected: Broadcast failed or the transaction reverted
        """
        if not self.client.is_address(to_address):
            raise InvalidAddress(to_address, "recipient address")
        self.settings.require_chain_id()

        gas = self.settings.transfer_gas_policy()
        balance = await self.client.get_balance(sender.address)
        required = amount_wei + gas.fee_wei
        if balance < required:
            raise InsufficientBalance(sender.address, balance, required)

        return await self._send(TransferRequest(sender, to_address, amount_wei), gas)

    def reserve_for(self, reserve_wei: Optional[int] = None) -> int:
        """Reserve actually applied: `reserve_wei`, or the deploy reserve when None"""
        return self.settings.deploy_reserve_wei if reserve_wei is None else reserve_wei

    def required_balance(self, count: int, amount_wei: int, reserve_wei: Optional[int] = None) -> int:
        """Balance needed to afford `count` transfers of `amount_wei` on top of the reserve"""
        fee = self.settings.transfer_gas_policy().fee_wei
        return self.reserve_for(reserve_wei) + count * (amount_wei + fee)

    async def is_contract(self, address: str) -> bool:
        return not is_empty_code(await self.client.get_code(address))

    async def send_zero_value(
        self,
        sender: Account,
        to_address: str,
        mode: str = "message"
    ) -> TransactionReceipt:
        """
        Poke a contract with a zero-value (or tiny) transaction

        Args:
            mode: "empty" (no data), "ping" (ping() selector), "message"
                  (utf-8 text as data) or "transfer" (tiny value, no data)
        """
        data, value = zero_value_payload(mode)
        if not self.client.is_address(to_address):
            raise InvalidAddress(to_address, "target address")
        self.settings.require_chain_id()

        if not await self.is_contract(to_address):
            self.log.warning("zero_transfer", f"{to_address} has no contract code")

        gas = GasPolicy(
            gas_price=self.settings.gas_price,
            gas_limit=max(self.settings.gas_limit, ZERO_VALUE_GAS_LIMIT),
        )
        self.log.info("zero_transfer", f"Sending {mode} transaction from {sender.address} to {to_address}")
        request = TransferRequest(sender, to_address, value)
        return await self._send(request, gas, data=data, operation="zero_transfer")

    async def _send(
        self,
        request: TransferRequest,
        gas: GasPolicy,
        data: str = "0x",
        cap_gas: bool = False,
        operation: str = "transfer"
    ) -> TransactionReceipt:
        sender = request.from_account
        amount_wei = request.amount_wei
        to_address = checksum(request.to_address)
        self.log.info(operation, f"Preparing to send {amount_wei} wei from {sender.address} to {to_address}...")

        estimate_tx = {"from": sender.address, "to": to_address, "value": amount_wei}
        if data != "0x":
            estimate_tx["data"] = data
        gas_limit = await estimate_gas_or_default(self.client, estimate_tx, gas.gas_limit, self.log, operation)
        if cap_gas and gas_limit > gas.gas_limit:
            # affordability was computed with the policy limit
            gas_limit = gas.gas_limit

        tx = {
            "to": to_address,
            "value": amount_wei,
            "gas": gas_limit,
            "gasPrice": gas.gas_price,
        }
        if data != "0x":
            tx["data"] = data

        receipt = await submit_transaction(self.client, self.settings, sender, tx, sleep=self.sleep)
        log_receipt(self.log, operation, "Token transfer" if operation == "transfer" else "Transaction", receipt)
        if not receipt.succeeded:
            raise TransactionRejected(f"Transaction reverted: {receipt.tx_hash}", tx_hash=receipt.tx_hash)
        return receipt
