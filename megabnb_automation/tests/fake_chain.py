"""In-memory chain used by the test suite."""

import json
from typing import Any, Dict, List, Optional, Set

from megabnb_automation.config import Settings
from megabnb_automation.models import Account
from megabnb_automation.utils import is_valid_address

SENDER = Account.from_private_key("0x" + "11" * 32)
SENDER_2 = Account.from_private_key("0x" + "22" * 32)
SENDER_3 = Account.from_private_key("0x" + "33" * 32)
RECIPIENT_1 = "0x" + "a1" * 20
RECIPIENT_2 = "0x" + "b2" * 20
RECIPIENT_3 = "0x" + "c3" * 20


def make_settings(**overrides) -> Settings:
    values = dict(
        rpc_url="http://localhost:8545",
        chain_id=1,
        gas_price=5,
        gas_limit=20_000,
        deploy_gas_limit=200_000,
        deploy_reserve_wei=0,
        confirmation_attempts=3,
    )
    values.update(overrides)
    return Settings(**values)


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeChainClient:
    """
    Minimal ledger: balances, nonces, code and receipts

    Sent transactions are applied immediately. Failure knobs:
        reject_to: recipients whose broadcast raises
        revert_to: recipients whose receipt has status 0
        unmined: when True no receipt ever appears
        estimate_error: when True estimate_gas raises
        deployed_code: code placed at new contracts, "0x" simulates a silent failure
        reject_creations: number of upcoming contract creations to reject
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None, chain_id: int = 1):
        self.balances: Dict[str, int] = {k.lower(): v for k, v in (balances or {}).items()}
        self.nonces: Dict[str, int] = {}
        self.codes: Dict[str, str] = {}
        self.storage: Dict[tuple, str] = {}
        self.call_results: Dict[tuple, str] = {}
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.sent: List[Dict[str, Any]] = []
        self.nonce_queries: List[str] = []
        self._chain_id = chain_id
        self._block = 100

        self.reject_to: Set[str] = set()
        self.revert_to: Set[str] = set()
        self.unmined = False
        self.estimate_error = False
        self.estimate_result: Optional[int] = None
        self.deployed_code = "0x6080604052600080fdfe"
        self.deployed_codes: List[str] = []
        self.reject_creations = 0
        self.code_error = False

    def is_address(self, value: Any) -> bool:
        return is_valid_address(value)

    async def chain_id(self) -> int:
        return self._chain_id

    async def block_number(self) -> int:
        return self._block

    async def gas_price(self) -> int:
        return 5

    async def get_balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)

    async def get_transaction_count(self, address: str, block_identifier: str = "pending") -> int:
        self.nonce_queries.append(block_identifier)
        return self.nonces.get(address.lower(), 0)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        if self.estimate_error:
            raise ValueError("execution reverted")
        if self.estimate_result is not None:
            return self.estimate_result
        return 21_000 if not tx.get("data") else 60_000

    async def get_code(self, address: str) -> str:
        if self.code_error:
            raise ConnectionError("node unavailable")
        return self.codes.get(address.lower(), "0x")

    async def get_storage_at(self, address: str, slot: int) -> str:
        return self.storage.get((address.lower(), slot), "0x" + "00" * 32)

    async def call(self, tx: Dict[str, Any]) -> str:
        key = (tx["to"].lower(), tx["data"])
        if key not in self.call_results:
            raise ValueError("execution reverted")
        return self.call_results[key]

    def sign_transaction(self, tx: Dict[str, Any], private_key: str) -> bytes:
        payload = dict(tx, sender=Account.from_private_key(private_key).address)
        return json.dumps(payload).encode()

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        tx = json.loads(raw_tx.decode())
        to = (tx.get("to") or "").lower()
        if to and to in self.reject_to:
            raise ValueError(f"rejected transfer to {to}")
        if not to and self.reject_creations > 0:
            self.reject_creations -= 1
            raise ValueError("contract creation rejected")

        sender = tx["sender"].lower()
        self.sent.append(tx)
        tx_hash = "0x" + f"{len(self.sent):064x}"
        self.nonces[sender] = self.nonces.get(sender, 0) + 1
        self._block += 1

        cost = tx.get("value", 0) + tx["gas"] * tx["gasPrice"]
        self.balances[sender] = self.balances.get(sender, 0) - cost

        status = 1
        contract_address = None
        if to:
            if to in self.revert_to:
                status = 0
            else:
                self.balances[to] = self.balances.get(to, 0) + tx.get("value", 0)
        else:
            contract_address = "0x" + f"{0xC0DE0000 + len(self.sent):040x}"
            code = self.deployed_codes.pop(0) if self.deployed_codes else self.deployed_code
            self.codes[contract_address] = code

        self.receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "blockNumber": self._block,
            "gasUsed": tx["gas"],
            "status": status,
            "contractAddress": contract_address,
        }
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        if self.unmined:
            return None
        return self.receipts.get(tx_hash)

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        for index, tx in enumerate(self.sent, start=1):
            if "0x" + f"{index:064x}" == tx_hash:
                return tx
        return None
