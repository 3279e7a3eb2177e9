"""Domain models for the MegaBNB pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from eth_account import Account as EthAccount
from web3 import Web3

from .utils import mask_private_key


def _to_hex(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return Web3.to_hex(value)


@dataclass(frozen=True)
class Account:
    """Sender credentials. The private key never appears in repr."""

    address: str
    private_key: str = field(repr=False)

    @staticmethod
    def from_private_key(private_key: str) -> "Account":
        key = private_key if private_key.startswith("0x") else f"0x{private_key}"
        derived = EthAccount.from_key(key)
        return Account(address=derived.address, private_key=key)

    @property
    def masked_key(self) -> str:
        return mask_private_key(self.private_key)


@dataclass(frozen=True)
class GasPolicy:
    gas_price: int
    gas_limit: int

    @property
    def fee_wei(self) -> int:
        return self.gas_price * self.gas_limit


@dataclass(frozen=True)
class TransferRequest:
    from_account: Account
    to_address: str
    amount_wei: int


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    block_number: int
    gas_used: int
    status: int
    contract_address: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @staticmethod
    def from_web3(receipt: Mapping[str, Any]) -> "TransactionReceipt":
        """Convert a web3 receipt (AttributeDict or plain dict) to the standard format"""
        status = receipt.get("status", 0)
        if isinstance(status, bool):
            status = int(status)
        return TransactionReceipt(
            tx_hash=_to_hex(receipt.get("transactionHash")),
            block_number=int(receipt.get("blockNumber") or 0),
            gas_used=int(receipt.get("gasUsed") or 0),
            status=int(status),
            contract_address=receipt.get("contractAddress"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
            "gas_used": self.gas_used,
            "status": self.status,
            "contract_address": self.contract_address,
        }


@dataclass(frozen=True)
class FaucetResult:
    success: bool
    amount_wei: int
    tx_hash: Optional[str] = None
    message: Optional[str] = None
    declared_success: bool = False


@dataclass(frozen=True)
class DeploymentResult:
    receipt: TransactionReceipt
    deployed_address: Optional[str]
    contract_type: str
    verified: bool
    used_fallback: bool = False


class PairingState(Enum):
    PENDING = "pending"
    FAUCET_REQUESTED = "faucet_requested"
    TRANSFERRED = "transferred"
    DEPLOYED = "deployed"
    DONE = "done"
    FAILED = "failed"


class OutcomeStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Pairing:
    sender: Account
    recipient: str


@dataclass(frozen=True)
class OutcomeRecord:
    address: str
    status: OutcomeStatus
    recipient: Optional[str] = None
    contract_address: Optional[str] = None
    error: Optional[str] = None
    state: PairingState = PairingState.DONE
    transfers_sent: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "recipient": self.recipient,
            "contract_address": self.contract_address,
            "status": self.status.value,
            "state": self.state.value,
            "transfers_sent": self.transfers_sent,
            "error": self.error,
        }
