"""
MegaBNB Orchestrator - Pipeline Layer

Responsibilities:
1. Pair senders with recipients and drive each pairing through
   faucet -> transfer -> deploy
2. Isolate failures so one bad pairing never stops the batch
3. Collect per-account outcome records and print the run summary
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .chain_client import ChainClient, Sleep, wait_for_receipt
from .config import Settings
from .contracts import FALLBACK_CONTRACT_TYPE
from .deployer import DeploymentEngine
from .errors import (
    DataSourceEmpty,
    FaucetRequestFailed,
    InsufficientBalance,
    InvalidAddress,
    MegaBNBError,
    TransactionRejected,
)
from .events import EventLog
from .faucet import FaucetClient
from .models import Account, OutcomeRecord, OutcomeStatus, Pairing, PairingState
from .sources import AccountSource, RecipientSource
from .transfer import TransferEngine
from .utils import format_ether


def create_pairings(
    senders: Sequence[Account],
    recipients: Sequence[str],
    log: Optional[EventLog] = None
) -> List[Pairing]:
    """
    Pair senders[i] with recipients[i]

    The shorter list wins; the excess on the other side is ignored with a
    warning.
    """
    log = log or EventLog()
    count = min(len(senders), len(recipients))
    if len(senders) > len(recipients):
        log.warning(
            "pairing",
            f"More senders ({len(senders)}) than recipients ({len(recipients)}), "
            f"extra senders will be ignored",
        )
    if len(recipients) > len(senders):
        log.warning(
            "pairing",
            f"More recipients ({len(recipients)}) than senders ({len(senders)}), "
            f"extra recipients will be ignored",
        )
    return [Pairing(sender=senders[i], recipient=recipients[i]) for i in range(count)]


@dataclass
class RunReport:
    """Outcome of one batch"""

    records: List[OutcomeRecord] = field(default_factory=list)
    mode: str = "pairs"
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for record in self.records if record.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.records) - self.success_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    def finish(self) -> None:
        self.end_time = datetime.now().isoformat()

    def summary_lines(self) -> List[str]:
        lines = []
        for index, record in enumerate(self.records, start=1):
            target = f" -> {record.recipient}" if record.recipient else ""
            if record.succeeded:
                lines.append(f"✅ {index}. {record.address}{target} - success")
                if record.contract_address:
                    lines.append(f"   Contract address: {record.contract_address}")
            else:
                lines.append(f"❌ {index}. {record.address}{target} - failed")
                lines.append(f"   Error: {record.error}")
        lines.append("")
        lines.append(f"Succeeded: {self.success_count} | Failed: {self.failure_count}")
        return lines

    def print_summary(self, log: EventLog) -> None:
        log.banner("📊 EXECUTION SUMMARY")
        for index, record in enumerate(self.records, start=1):
            target = f" -> {record.recipient}" if record.recipient else ""
            if record.succeeded:
                log.success("summary", f"{index}. {record.address}{target} - success", **record.to_dict())
                if record.contract_address:
                    log.info("summary", f"Contract address: {record.contract_address}")
            else:
                log.error("summary", f"{index}. {record.address}{target} - failed", **record.to_dict())
                log.info("summary", f"Error: {record.error}")
        log.info(
            "summary",
            f"Succeeded: {self.success_count} | Failed: {self.failure_count}",
            success_count=self.success_count,
            failure_count=self.failure_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "records": [record.to_dict() for record in self.records],
        }


class Orchestrator:
    """Sequential faucet/transfer/deploy pipeline over many accounts"""

    def __init__(
        self,
        client: ChainClient,
        settings: Settings,
        log: Optional[EventLog] = None,
        faucet: Optional[FaucetClient] = None,
        transfers: Optional[TransferEngine] = None,
        deployer: Optional[DeploymentEngine] = None,
        sleep: Sleep = asyncio.sleep
    ):
        """
        Args:
            client: Chain access shared by every engine
            settings: Delays, gas and reserve configuration
            log: Event log, a fresh one is created when omitted
            faucet, transfers, deployer: Engines, built from client and settings when omitted
            sleep: Awaitable used for every delay
        """
        self.client = client
        self.settings = settings
        self.log = log or EventLog()
        self.sleep = sleep
        self.faucet = faucet or FaucetClient(client, settings, self.log, sleep=sleep)
        self.transfers = transfers or TransferEngine(client, settings, self.log, sleep=sleep)
        self.deployer = deployer or DeploymentEngine(client, settings, self.log, sleep=sleep)

    async def run(
        self,
        senders: Sequence[Account],
        recipients: Sequence[str],
        amount_wei: int,
        contract_type: str = FALLBACK_CONTRACT_TYPE,
        constructor_args: Optional[Sequence[Any]] = None,
        skip_deploy: bool = False
    ) -> RunReport:
        """
        One-to-one pipeline: sender i pays recipient i, then deploys

        Raises:
            DataSourceEmpty: No senders or no recipients
        """
        if not senders:
            raise DataSourceEmpty("No valid sender accounts found")
        if not recipients:
            raise DataSourceEmpty("No valid recipient addresses found")

        pairings = create_pairings(senders, recipients, self.log)
        self.log.info("pairing", f"One-to-one pairings ({len(pairings)}):")
        for index, pairing in enumerate(pairings, start=1):
            self.log.info("pairing", f"{index}. {pairing.sender.address} -> {pairing.recipient}")

        report = RunReport(mode="pairs")
        for index, pairing in enumerate(pairings, start=1):
            with self.log.correlation(f"pair-{index}"):
                self.log.banner(f"Processing account: {pairing.sender.address}")
                record = await self.process_pairing(
                    pairing,
                    amount_wei,
                    contract_type=contract_type,
                    constructor_args=constructor_args,
                    skip_deploy=skip_deploy,
                )
            report.records.append(record)

        report.finish()
        report.print_summary(self.log)
        return report

    async def run_sources(
        self,
        account_source: AccountSource,
        recipient_source: RecipientSource,
        amount_wei: int,
        **kwargs: Any
    ) -> RunReport:
        return await self.run(
            account_source.load_accounts(),
            recipient_source.load_recipients(),
            amount_wei,
            **kwargs,
        )

    async def process_pairing(
        self,
        pairing: Pairing,
        amount_wei: int,
        contract_type: str = FALLBACK_CONTRACT_TYPE,
        constructor_args: Optional[Sequence[Any]] = None,
        skip_deploy: bool = False
    ) -> OutcomeRecord:
        """
        Drive one pairing PENDING -> FAUCET_REQUESTED -> TRANSFERRED -> DEPLOYED -> DONE

        Never raises; any failure ends in a FAILED record carrying the message.
        """
        sender = pairing.sender
        recipient = pairing.recipient
        state = PairingState.PENDING

        try:
            self.log.info("faucet", f"Step 1: requesting faucet tokens for {sender.address}")
            state = PairingState.FAUCET_REQUESTED
            await self._fund(sender, minimum_wei=amount_wei)
            await self._settle(self.settings.faucet_step_delay)

            self.log.info("transfer", f"Step 2: sending {format_ether(amount_wei)} to {recipient}")
            if not self.client.is_address(recipient):
                raise InvalidAddress(recipient, "recipient address")
            # the deploy reserve only applies when a deploy follows
            reserve_wei = 0 if skip_deploy else None
            balance = await self.client.get_balance(sender.address)
            required = self.transfers.required_balance(1, amount_wei, reserve_wei)
            if balance < required:
                raise InsufficientBalance(sender.address, balance, required)
            receipts = await self.transfers.transfer_many(sender, [recipient], amount_wei, reserve_wei=reserve_wei)
            if not receipts:
                raise TransactionRejected(f"Transfer to {recipient} did not complete")
            state = PairingState.TRANSFERRED
            await self._settle(self.settings.transfer_step_delay)

            contract_address = None
            if skip_deploy:
                self.log.info("deploy", "Step 3: contract deployment skipped")
            else:
                self.log.info("deploy", f"Step 3: deploying {contract_type} contract from {sender.address}")
                result = await self.deployer.deploy_with_fallback(sender, contract_type, constructor_args)
                contract_address = result.deployed_address
                state = PairingState.DEPLOYED

            state = PairingState.DONE
            self.log.success("pipeline", f"Finished processing {sender.address}", state=state.value)
            return OutcomeRecord(
                address=sender.address,
                recipient=recipient,
                status=OutcomeStatus.SUCCESS,
                contract_address=contract_address,
                state=state,
                transfers_sent=len(receipts),
            )
        except Exception as e:
            self.log.error(
                "pipeline",
                f"Failed to process {sender.address}: {e}",
                failed_after=state.value,
                error=str(e),
            )
            return OutcomeRecord(
                address=sender.address,
                recipient=recipient,
                status=OutcomeStatus.FAILED,
                error=str(e),
                state=PairingState.FAILED,
            )

    async def run_fanout(
        self,
        accounts: Sequence[Account],
        recipients: Sequence[str],
        amount_wei: int,
        contract_type: str = FALLBACK_CONTRACT_TYPE,
        constructor_args: Optional[Sequence[Any]] = None,
        skip_deploy: bool = False
    ) -> RunReport:
        """Every account pays every recipient it can afford, then deploys"""
        if not accounts:
            raise DataSourceEmpty("No valid sender accounts found")

        self.log.info("pipeline", f"Processing {len(accounts)} account(s) against {len(recipients)} recipient(s)")
        report = RunReport(mode="fanout")
        for index, account in enumerate(accounts, start=1):
            with self.log.correlation(f"account-{index}"):
                self.log.banner(f"Processing address: {account.address}")
                record = await self.process_account(
                    account,
                    recipients,
                    amount_wei,
                    contract_type=contract_type,
                    constructor_args=constructor_args,
                    skip_deploy=skip_deploy,
                )
            report.records.append(record)

        report.finish()
        report.print_summary(self.log)
        return report

    async def process_account(
        self,
        account: Account,
        recipients: Sequence[str],
        amount_wei: int,
        contract_type: str = FALLBACK_CONTRACT_TYPE,
        constructor_args: Optional[Sequence[Any]] = None,
        skip_deploy: bool = False
    ) -> OutcomeRecord:
        """
        One sender fans out to all recipients, then deploys

        Unlike a pairing, partial or zero transfers do not fail the account;
        only a faucet failure with an empty balance (when there is something
        to send) or a failed deployment does.
        """
        try:
            self.log.info("faucet", "Step 1: requesting faucet tokens...")
            await self._fund(account, minimum_wei=0 if recipients else None)

            receipts = []
            if recipients:
                self.log.info("transfer", "Step 2: sending tokens to recipient addresses...")
                receipts = await self.transfers.transfer_many(
                    account,
                    recipients,
                    amount_wei,
                    reserve_wei=0 if skip_deploy else None,
                )
                balance = await self.client.get_balance(account.address)
                self.log.info("transfer", f"Balance after transfers: {format_ether(balance)}")
            else:
                self.log.info("transfer", "Step 2: no recipient addresses provided, skipping transfers")

            contract_address = None
            if not skip_deploy:
                self.log.info("deploy", "Step 3: deploying contract...")
                result = await self.deployer.deploy_with_fallback(account, contract_type, constructor_args)
                contract_address = result.deployed_address

            return OutcomeRecord(
                address=account.address,
                status=OutcomeStatus.SUCCESS,
                contract_address=contract_address,
                state=PairingState.DONE,
                transfers_sent=len(receipts),
            )
        except Exception as e:
            self.log.error("pipeline", f"Error processing address {account.address}: {e}", error=str(e))
            return OutcomeRecord(
                address=account.address,
                status=OutcomeStatus.FAILED,
                error=str(e),
                state=PairingState.FAILED,
            )

    async def request_faucet_rounds(
        self,
        addresses: Sequence[str],
        rounds: int = 1,
        round_delay: float = 10.0
    ) -> List[int]:
        """
        Faucet-only mode: request tokens for every address, `rounds` times

        Returns:
            Number of successful requests per round
        """
        if not addresses:
            raise DataSourceEmpty("No addresses to fund")

        per_round = []
        for round_number in range(1, rounds + 1):
            self.log.banner(f"Round {round_number}/{rounds}")
            successes = 0
            for index, address in enumerate(addresses, start=1):
                with self.log.correlation(f"faucet-{round_number}-{index}"):
                    self.log.info(
                        "faucet",
                        f"[{round_number}/{rounds}] address {index}/{len(addresses)}: {address}",
                    )
                    try:
                        await self.faucet.request_tokens(address)
                        successes += 1
                    except Exception as e:
                        self.log.error("faucet", f"Failed to process {address}: {e}")
                await self.sleep(self.settings.faucet_step_delay)

            per_round.append(successes)
            self.log.info(
                "faucet",
                f"Round {round_number} finished: {successes}/{len(addresses)} succeeded",
                round=round_number,
                successes=successes,
            )
            if round_number < rounds:
                await self.sleep(round_delay)
        return per_round

    async def _fund(self, account: Account, minimum_wei: Optional[int]) -> None:
        """
        Request faucet tokens. A faucet failure is tolerated while the balance
        stays above `minimum_wei`, or always when `minimum_wei` is None

        Raises:
            InsufficientBalance: Faucet failed and the balance is too low
        """
        try:
            result = await self.faucet.request_tokens(account.address)
        except FaucetRequestFailed as e:
            balance = await self.client.get_balance(account.address)
            if minimum_wei is None or balance > minimum_wei:
                self.log.warning(
                    "faucet",
                    f"Faucet request failed, continuing with existing balance {format_ether(balance)}",
                )
                return
            raise InsufficientBalance(account.address, balance, minimum_wei + 1) from e

        if result.tx_hash:
            try:
                await wait_for_receipt(
                    self.client,
                    result.tx_hash,
                    attempts=self.settings.confirmation_attempts,
                    poll_interval=self.settings.confirmation_poll_interval,
                    max_interval=self.settings.confirmation_max_interval,
                    sleep=self.sleep,
                )
                self.log.info("faucet", "Faucet transaction confirmed on chain")
            except MegaBNBError as e:
                self.log.warning("faucet", f"Could not confirm faucet transaction: {e}")

    async def _settle(self, seconds: float) -> None:
        if seconds > 0:
            self.log.info("pipeline", f"Waiting {seconds}s for the network to settle...")
            await self.sleep(seconds)
