"""
Run the MegaBNB automation tool

Usage:
    # Full pipeline, senders and recipients paired 1:1 from the spreadsheets
    python run_megabnb.py run

    # One sender fanning out to several recipients
    python run_megabnb.py run -k 0xKEY -r 0xA...,0xB... -m 0.02 --mode fanout

    # Faucet only, 5 rounds over every sender in the spreadsheet
    python run_megabnb.py faucet --rounds 5

    # Deploy a specific contract type
    python run_megabnb.py deploy -k 0xKEY -t minimal --constructor-args '["MyToken", "MTK"]'

    # ERC20 token with a custom name and symbol
    python run_megabnb.py deploy -k 0xKEY -t standard -n MyToken --token-symbol MTK

Settings come from the environment or a .env file (MEGABNB_RPC_URL,
MEGABNB_CHAIN_ID, GAS_PRICE, GAS_LIMIT, FAUCET_URL).
"""

import argparse
import asyncio
import json
import sys
import traceback
from dataclasses import replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from megabnb_automation.chain_client import Web3ChainClient
from megabnb_automation.config import DEFAULT_FAUCET_URL, Settings
from megabnb_automation.contracts import (
    CONTRACTS,
    DEFAULT_TOKEN_NAME,
    DEFAULT_TOKEN_SYMBOL,
    FALLBACK_CONTRACT_TYPE,
    token_args,
)
from megabnb_automation.deployer import DeploymentEngine
from megabnb_automation.diagnostics import check_connections
from megabnb_automation.errors import ConfigError, MegaBNBError
from megabnb_automation.events import EventLog
from megabnb_automation.models import Account
from megabnb_automation.nft_status import check_nft_status
from megabnb_automation.orchestrator import Orchestrator, RunReport
from megabnb_automation.sources import (
    InMemoryAccountSource,
    InMemoryRecipientSource,
    SpreadsheetAccountSource,
    SpreadsheetRecipientSource,
    accounts_summary,
)
from megabnb_automation.transfer import ZERO_VALUE_MODES, TransferEngine
from megabnb_automation.utils import ether_to_wei


class TeeWriter:
    """Copies everything written to the console into the run's log file"""

    def __init__(self, console, log_file):
        self.console = console
        self.log_file = log_file
        self.encoding = getattr(console, 'encoding', None) or 'utf-8'

    def write(self, message):
        self.console.write(message)
        if not self.log_file.closed:
            self.log_file.write(message)
        return len(message)

    def flush(self):
        self.console.flush()
        if not self.log_file.closed:
            self.log_file.flush()


class CLIArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def ether_amount(value: str) -> int:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid ether amount: {value!r}")
    if amount < 0:
        raise argparse.ArgumentTypeError(f"amount must not be negative: {value!r}")
    return ether_to_wei(amount)


def json_list(value: str) -> List[Any]:
    try:
        parsed = json.loads(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"constructor args must be a JSON list, got {value!r}")
    if not isinstance(parsed, list):
        raise argparse.ArgumentTypeError(f"constructor args must be a JSON list, got {value!r}")
    return parsed


def address_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = CLIArgumentParser(
        description='MegaBNB automation: faucet, transfers and contract deployment',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Note:
  The faucet URL for MegaBNB is {DEFAULT_FAUCET_URL}
  If contract deployment keeps failing, try --skip-deploy or -t simplest
        """
    )
    parser.add_argument('--env-file', type=str, default=None, help='Path of the .env file (default: ./.env)')
    parser.add_argument('--log-dir', type=str, default='log', help='Directory for console logs (default: log)')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    def add_key(sub, required=False):
        sub.add_argument('--private-key', '-k', type=str, required=required, help='Sender private key')

    def add_files(sub):
        sub.add_argument('--senders-file', type=str, default=None,
                         help='Sender spreadsheet with address/privateKey columns (default: SENDERS_FILE)')
        sub.add_argument('--recipients-file', type=str, default=None,
                         help='Recipient spreadsheet with an address column (default: RECIPIENTS_FILE)')

    def add_deploy_options(sub):
        sub.add_argument('--contract-type', '-t', type=str, default=FALLBACK_CONTRACT_TYPE,
                         choices=sorted(CONTRACTS),
                         help=f'Contract to deploy (default: {FALLBACK_CONTRACT_TYPE})')
        sub.add_argument('--constructor-args', type=json_list, default=None,
                         help='Constructor arguments as a JSON list')
        sub.add_argument('--token-name', '-n', type=str, default=None,
                         help=f'Token name for standard/nano/minimal (default: {DEFAULT_TOKEN_NAME}, MinimalToken for minimal)')
        sub.add_argument('--token-symbol', type=str, default=None,
                         help=f'Token symbol (default: {DEFAULT_TOKEN_SYMBOL}, MIN for minimal)')

    run = subparsers.add_parser('run', help='Faucet -> transfer -> deploy for every sender')
    add_key(run)
    run.add_argument('--address', '-a', type=str, default=None,
                     help='Expected sender address, checked against --private-key')
    run.add_argument('--recipients', '-r', type=address_list, default=None,
                     help='Comma-separated recipient addresses')
    run.add_argument('--amount', '-m', type=ether_amount, default=ether_amount('0.01'),
                     help='Amount per recipient in MegaBNB (default: 0.01)')
    add_deploy_options(run)
    run.add_argument('--skip-deploy', action='store_true', help='Skip contract deployment')
    run.add_argument('--mode', choices=['pairs', 'fanout'], default='pairs',
                     help='pairs: sender i pays recipient i; fanout: each sender pays every recipient')
    add_files(run)
    run.add_argument('--output-dir', type=str, default='results', help='Directory to save results (default: results)')

    faucet = subparsers.add_parser('faucet', help='Request faucet tokens only')
    faucet.add_argument('addresses', nargs='*', help='Addresses to fund (default: senders spreadsheet)')
    faucet.add_argument('--rounds', type=int, default=1, help='Number of rounds (default: 1)')
    faucet.add_argument('--round-delay', type=float, default=10.0, help='Seconds between rounds (default: 10)')
    add_files(faucet)

    transfer = subparsers.add_parser('transfer', help='Send tokens to recipients')
    add_key(transfer, required=True)
    transfer.add_argument('--recipients', '-r', type=address_list, required=True,
                          help='Comma-separated recipient addresses')
    transfer.add_argument('--amount', '-m', type=ether_amount, default=ether_amount('0.01'),
                          help='Amount per recipient in MegaBNB (default: 0.01)')
    transfer.add_argument('--reserve', type=ether_amount, default=0,
                          help='Balance to keep untouched in MegaBNB (default: 0)')

    deploy = subparsers.add_parser('deploy', help='Deploy a pre-compiled contract')
    add_key(deploy, required=True)
    add_deploy_options(deploy)
    deploy.add_argument('--no-fallback', action='store_true',
                        help=f'Do not fall back to the {FALLBACK_CONTRACT_TYPE} contract on failure')

    zero = subparsers.add_parser('zero-transfer', help='Send a zero-value interaction transaction')
    add_key(zero, required=True)
    zero.add_argument('--to', type=str, required=True, help='Target contract address')
    zero.add_argument('--mode', choices=ZERO_VALUE_MODES, default='message',
                      help='Payload: empty, ping, message or transfer (default: message)')

    accounts = subparsers.add_parser('accounts', help='Show loaded accounts with masked keys')
    add_files(accounts)

    subparsers.add_parser('check', help='Test RPC, website and faucet connections')

    nft = subparsers.add_parser('nft-status', help='Check an NFT contract for its mint status')
    nft.add_argument('contract', type=str, help='NFT contract address')

    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env(dotenv_path=args.env_file)
    overrides = {}
    if getattr(args, 'senders_file', None):
        overrides['senders_file'] = args.senders_file
    if getattr(args, 'recipients_file', None):
        overrides['recipients_file'] = args.recipients_file
    return replace(settings, **overrides) if overrides else settings


def load_senders(args: argparse.Namespace, settings: Settings, log: EventLog) -> List[Account]:
    if getattr(args, 'private_key', None):
        account = Account.from_private_key(args.private_key)
        expected = getattr(args, 'address', None)
        if expected and expected.lower() != account.address.lower():
            raise ConfigError(f"--address {expected} does not match the private key ({account.address})")
        return InMemoryAccountSource([account]).load_accounts()
    return SpreadsheetAccountSource(settings.senders_file, log).load_accounts()


def load_recipients(args: argparse.Namespace, settings: Settings, log: EventLog) -> List[str]:
    if getattr(args, 'recipients', None):
        return InMemoryRecipientSource(args.recipients).load_recipients()
    return SpreadsheetRecipientSource(settings.recipients_file, log).load_recipients()


def resolve_constructor_args(args: argparse.Namespace) -> Optional[List[Any]]:
    """--constructor-args wins; otherwise --token-name/--token-symbol build (name, symbol)"""
    if args.constructor_args is not None:
        return args.constructor_args
    if args.token_name or args.token_symbol:
        return token_args(args.contract_type, args.token_name, args.token_symbol)
    return None


def save_results(report: RunReport, output_dir: str) -> str:
    """Save run results"""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_path / f"megabnb_run_{timestamp}.json"

    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

    return str(filepath)


async def command_run(args, settings: Settings, log: EventLog) -> int:
    senders = load_senders(args, settings, log)
    recipients = load_recipients(args, settings, log)
    for line in accounts_summary(senders, recipients):
        log.info("accounts", line)

    client = Web3ChainClient(settings.require_rpc_url())
    orchestrator = Orchestrator(client, settings, log)
    options = dict(
        contract_type=args.contract_type,
        constructor_args=resolve_constructor_args(args),
        skip_deploy=args.skip_deploy,
    )
    if args.mode == 'fanout':
        report = await orchestrator.run_fanout(senders, recipients, args.amount, **options)
    else:
        report = await orchestrator.run(senders, recipients, args.amount, **options)

    output_file = save_results(report, args.output_dir)
    print(f"\n📁 Results saved to: {output_file}")
    return 0 if report.all_succeeded else 1


async def command_faucet(args, settings: Settings, log: EventLog) -> int:
    addresses = list(args.addresses)
    if not addresses:
        addresses = [account.address for account in SpreadsheetAccountSource(settings.senders_file, log).load_accounts()]

    client = Web3ChainClient(settings.require_rpc_url())
    orchestrator = Orchestrator(client, settings, log)
    per_round = await orchestrator.request_faucet_rounds(addresses, rounds=args.rounds, round_delay=args.round_delay)
    return 0 if any(per_round) else 1


async def command_transfer(args, settings: Settings, log: EventLog) -> int:
    sender = Account.from_private_key(args.private_key)
    client = Web3ChainClient(settings.require_rpc_url())
    receipts = await TransferEngine(client, settings, log).transfer_many(
        sender, args.recipients, args.amount, reserve_wei=args.reserve
    )
    return 0 if len(receipts) == len(args.recipients) else 1


async def command_deploy(args, settings: Settings, log: EventLog) -> int:
    account = Account.from_private_key(args.private_key)
    client = Web3ChainClient(settings.require_rpc_url())
    constructor_args = resolve_constructor_args(args)
    engine = DeploymentEngine(client, settings, log)
    if args.no_fallback:
        result = await engine.deploy_contract_type(account, args.contract_type, constructor_args)
    else:
        result = await engine.deploy_with_fallback(account, args.contract_type, constructor_args)
    print(f"\n📄 {result.contract_type} contract deployed at {result.deployed_address}"
          f"{' (fallback)' if result.used_fallback else ''}")
    return 0


async def command_zero_transfer(args, settings: Settings, log: EventLog) -> int:
    sender = Account.from_private_key(args.private_key)
    client = Web3ChainClient(settings.require_rpc_url())
    await TransferEngine(client, settings, log).send_zero_value(sender, args.to, args.mode)
    return 0


async def command_accounts(args, settings: Settings, log: EventLog) -> int:
    senders = SpreadsheetAccountSource(settings.senders_file, log).load_accounts()
    recipients = SpreadsheetRecipientSource(settings.recipients_file, log).load_recipients()
    log.banner("Account summary")
    for line in accounts_summary(senders, recipients):
        print(line)
    return 0


async def command_check(args, settings: Settings, log: EventLog) -> int:
    client = Web3ChainClient(settings.require_rpc_url())
    results = await check_connections(client, settings, log)
    return 0 if results["rpc"]["ok"] else 1


async def command_nft_status(args, settings: Settings, log: EventLog) -> int:
    client = Web3ChainClient(settings.require_rpc_url())
    report = await check_nft_status(client, args.contract, log)
    print(json.dumps(report, indent=2, default=str))
    return 0


COMMANDS = {
    'run': command_run,
    'faucet': command_faucet,
    'transfer': command_transfer,
    'deploy': command_deploy,
    'zero-transfer': command_zero_transfer,
    'accounts': command_accounts,
    'check': command_check,
    'nft-status': command_nft_status,
}


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    log_dir = Path(args.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    full_log_path = log_dir / f"megabnb_{args.command}_{timestamp}.log"

    full_log_file = open(full_log_path, 'w', encoding='utf-8')
    original_stdout = sys.stdout
    original_stderr = sys.stderr
    sys.stdout = TeeWriter(original_stdout, full_log_file)
    sys.stderr = TeeWriter(original_stderr, full_log_file)

    exit_code = 1
    try:
        log = EventLog()
        log.banner(f"🚀 MegaBNB Automation - {args.command}")
        print(f"📝 Full console log: {full_log_path}")

        settings = load_settings(args)
        if settings.faucet_url != DEFAULT_FAUCET_URL:
            log.warning("config", f"FAUCET_URL is {settings.faucet_url}, expected {DEFAULT_FAUCET_URL}")

        exit_code = await COMMANDS[args.command](args, settings, log)
    except MegaBNBError as e:
        print(f"\n❌ {type(e).__name__}: {e}")
    except (KeyError, ValueError) as e:
        print(f"\n❌ {e}")
    except Exception as e:
        print(f"\n❌ Unexpected error: {e}")
        traceback.print_exc()
    finally:
        sys.stdout = original_stdout
        sys.stderr = original_stderr
        if full_log_file and not full_log_file.closed:
            full_log_file.close()

    print(f"\n{'='*80}")
    print(f"{'✅' if exit_code == 0 else '❌'} MegaBNB {args.command} finished (exit code {exit_code})")
    print(f"📁 Full log saved to: {full_log_path}")
    print(f"{'='*80}\n")
    return exit_code


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
