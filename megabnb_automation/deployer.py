"""
MegaBNB Deployment Engine

Responsibilities:
1. Build deployment data from bytecode plus ABI-encoded constructor arguments
2. Submit the creation transaction and wait for its receipt
3. Confirm that code actually exists at the new address
4. Fall back to the verified no-op contract when the requested one fails
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import encode

from .chain_client import ChainClient, Sleep, estimate_gas_or_default, log_receipt, submit_transaction
from .config import Settings
from .contracts import FALLBACK_CONTRACT_TYPE, get_contract
from .errors import DeploymentUnconfirmed, TransactionRejected
from .events import EventLog
from .models import Account, DeploymentResult
from .utils import format_ether, is_empty_code


def build_deploy_data(
    bytecode: str,
    abi: Optional[List[Dict[str, Any]]] = None,
    constructor_args: Optional[Sequence[Any]] = None
) -> str:
    """
    Bytecode followed by the ABI-encoded constructor arguments

    Args:
        bytecode: Creation bytecode, with or without 0x
        abi: Contract ABI, only the constructor entry is used
        constructor_args: Positional constructor arguments

    Returns:
        0x-prefixed deployment data

    Raises:
        ValueError: Argument count does not match the constructor inputs
    """
    data = bytecode if bytecode.startswith("0x") else "0x" + bytecode
    args = list(constructor_args or [])

    inputs: List[Dict[str, Any]] = []
    for item in abi or []:
        if item.get("type") == "constructor":
            inputs = list(item.get("inputs", []))
            break

    if len(args) != len(inputs):
        raise ValueError(
            f"Constructor expects {len(inputs)} argument(s), got {len(args)}"
        )
    if not inputs:
        return data

    types = [item["type"] for item in inputs]
    return data + encode(types, args).hex()


class DeploymentEngine:
    """Contract deployment with post-deploy code verification"""

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

    async def deploy(
        self,
        account: Account,
        bytecode: str,
        constructor_args: Optional[Sequence[Any]] = None,
        abi: Optional[List[Dict[str, Any]]] = None,
        gas_limit: Optional[int] = None,
        contract_type: str = "custom"
    ) -> DeploymentResult:
        """
        Deploy raw bytecode and verify the result

        Args:
            account: Deployer
            bytecode: Creation bytecode
            constructor_args: Constructor arguments, encoded against `abi`
            abi: Contract ABI
            gas_limit: Gas used when estimation fails, defaults to the
                       configured deploy gas limit
            contract_type: Label carried into the result

        Returns:
            DeploymentResult with verified=True

        Raises:
            TransactionRejected: Broadcast failed or the creation reverted
            ConfirmationTimeout: No receipt within the polling bounds
            DeploymentUnconfirmed: Mined but no code at the contract address
        """
        chain_id = self.settings.require_chain_id()
        data = build_deploy_data(bytecode, abi, constructor_args)
        fallback_gas = gas_limit or self.settings.deploy_gas_limit

        self.log.info("deploy", f"Deploying {contract_type} contract from {account.address}")
        balance = await self.client.get_balance(account.address)
        self.log.info("deploy", f"Balance: {format_ether(balance)}, chain ID: {chain_id}")

        gas = await estimate_gas_or_default(
            self.client,
            {"from": account.address, "data": data},
            fallback_gas,
            self.log,
            "deploy",
        )
        self.log.info("deploy", f"Gas limit: {gas}, gas price: {self.settings.gas_price} wei")

        tx = {
            "data": data,
            "value": 0,
            "gas": gas,
            "gasPrice": self.settings.gas_price,
        }
        receipt = await submit_transaction(self.client, self.settings, account, tx, sleep=self.sleep)
        log_receipt(self.log, "deploy", "Contract deployment", receipt)

        if not receipt.succeeded:
            raise TransactionRejected(
                f"Deployment reverted: {receipt.tx_hash}",
                tx_hash=receipt.tx_hash,
            )

        address = receipt.contract_address
        if not address or not await self.verify_deployment(address):
            self.log.error("deploy", f"No contract code at {address}", tx_hash=receipt.tx_hash)
            raise DeploymentUnconfirmed(address, receipt)

        self.log.success("deploy", f"Contract code verified at {address}", contract_address=address)
        return DeploymentResult(
            receipt=receipt,
            deployed_address=address,
            contract_type=contract_type,
            verified=True,
        )

    async def verify_deployment(self, address: str) -> bool:
        """True when non-empty code exists at `address`; RPC errors count as False"""
        try:
            code = await self.client.get_code(address)
        except Exception as e:
            self.log.warning("deploy", f"Could not read code at {address}: {e}")
            return False
        return not is_empty_code(code)

    async def deploy_contract_type(
        self,
        account: Account,
        contract_type: str,
        constructor_args: Optional[Sequence[Any]] = None
    ) -> DeploymentResult:
        spec = get_contract(contract_type)
        args = constructor_args
        if args is None and spec.default_args is not None:
            args = spec.default_args
        return await self.deploy(
            account,
            spec.bytecode,
            constructor_args=args,
            abi=spec.abi,
            gas_limit=spec.gas_limit,
            contract_type=spec.name,
        )

    async def deploy_with_fallback(
        self,
        account: Account,
        contract_type: str,
        constructor_args: Optional[Sequence[Any]] = None,
        fallback_type: str = FALLBACK_CONTRACT_TYPE
    ) -> DeploymentResult:
        """
        Deploy `contract_type`, retrying once with `fallback_type` on failure

        Rejection and unconfirmed deployments trigger the fallback. If the
        requested type already is the fallback, errors propagate as-is.
        """
        try:
            return await self.deploy_contract_type(account, contract_type, constructor_args)
        except (TransactionRejected, DeploymentUnconfirmed) as e:
            if contract_type == fallback_type:
                raise
            self.log.warning(
                "deploy",
                f"{contract_type} deployment failed ({e}), trying {fallback_type} contract",
                contract_type=contract_type,
                error=str(e),
            )

        result = await self.deploy_contract_type(account, fallback_type)
        return DeploymentResult(
            receipt=result.receipt,
            deployed_address=result.deployed_address,
            contract_type=result.contract_type,
            verified=result.verified,
            used_fallback=True,
        )
