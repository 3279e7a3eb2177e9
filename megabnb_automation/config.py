"""
MegaBNB Settings - Configuration Layer

Responsibilities:
1. Load `.env` into the process environment
2. Parse RPC, chain, gas and faucet options into a frozen Settings object
3. Provide the tunable delays and confirmation polling bounds
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .models import GasPolicy

DEFAULT_FAUCET_URL = "https://mbscan.io/airdrop"
DEFAULT_GAS_PRICE = 5_000_000_000  # 5 gwei
DEFAULT_TRANSFER_GAS_LIMIT = 21_000
DEFAULT_DEPLOY_GAS_LIMIT = 6_000_000
DEFAULT_DEPLOY_RESERVE_WEI = 5 * 10**16  # 0.05 MegaBNB kept back for the deploy step


@dataclass(frozen=True)
class Settings:
    rpc_url: Optional[str] = None
    chain_id: Optional[int] = None
    gas_price: int = DEFAULT_GAS_PRICE
    gas_limit: int = DEFAULT_TRANSFER_GAS_LIMIT
    deploy_gas_limit: int = DEFAULT_DEPLOY_GAS_LIMIT
    faucet_url: str = DEFAULT_FAUCET_URL
    faucet_timeout: float = 30.0
    faucet_settle_delay: float = 5.0
    faucet_step_delay: float = 3.0
    transfer_step_delay: float = 3.0
    tx_delay: float = 1.0
    deploy_reserve_wei: int = DEFAULT_DEPLOY_RESERVE_WEI
    confirmation_attempts: int = 30
    confirmation_poll_interval: float = 2.0
    confirmation_max_interval: float = 15.0
    senders_file: str = "megaBNBSend.xlsx"
    recipients_file: str = "megaBNBRecive.xlsx"

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None
    ) -> "Settings":
        """
        Build settings from environment variables

        Args:
            env: Explicit mapping to read from. When None, `.env` is loaded
                 first and os.environ is used
            dotenv_path: Optional path of the .env file

        Returns:
            Settings instance
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        rpc_url = (env.get("MEGABNB_RPC_URL") or "").strip() or None
        faucet_url = (env.get("FAUCET_URL") or "").strip() or DEFAULT_FAUCET_URL

        return cls(
            rpc_url=rpc_url,
            chain_id=_read_int(env, "MEGABNB_CHAIN_ID", None),
            gas_price=_read_int(env, "GAS_PRICE", DEFAULT_GAS_PRICE),
            gas_limit=_read_int(env, "GAS_LIMIT", DEFAULT_TRANSFER_GAS_LIMIT),
            deploy_gas_limit=_read_int(env, "DEPLOY_GAS_LIMIT", DEFAULT_DEPLOY_GAS_LIMIT),
            faucet_url=faucet_url,
            senders_file=env.get("SENDERS_FILE") or cls.senders_file,
            recipients_file=env.get("RECIPIENTS_FILE") or cls.recipients_file,
        )

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise ConfigError("MEGABNB_RPC_URL is not set")
        return self.rpc_url

    def require_chain_id(self) -> int:
        if self.chain_id is None:
            raise ConfigError("MEGABNB_CHAIN_ID is not set")
        return self.chain_id

    def transfer_gas_policy(self) -> GasPolicy:
        return GasPolicy(gas_price=self.gas_price, gas_limit=self.gas_limit)


def _read_int(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
