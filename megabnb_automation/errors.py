"""
Error kinds raised by the MegaBNB pipeline

Every error derives from MegaBNBError so the runner can tell an expected
pipeline failure apart from a programming error.
"""

from typing import Any, Dict, Optional


class MegaBNBError(Exception):
    """Base class for all pipeline errors"""


class ConfigError(MegaBNBError):
    """Missing or malformed configuration value"""


class InvalidAddress(MegaBNBError):
    """Malformed address, raised before any state-mutating call"""

    def __init__(self, address: Any, role: str = "address"):
        self.address = address
        self.role = role
        super().__init__(f"Invalid {role}: {address}")


class InsufficientBalance(MegaBNBError):
    def __init__(self, address: str, balance_wei: int, required_wei: int):
        self.address = address
        self.balance_wei = balance_wei
        self.required_wei = required_wei
        super().__init__(
            f"Insufficient balance for {address}: {balance_wei} wei, required {required_wei} wei"
        )


class FaucetRequestFailed(MegaBNBError):
    """
    Faucet declared failure and the balance did not move

    Attributes:
        has_balance: Whether the address still holds funds, letting callers
                     continue with what is already there
        status_code: HTTP status of the faucet response, if any
    """

    def __init__(
        self,
        message: str,
        has_balance: bool = False,
        status_code: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None
    ):
        self.has_balance = has_balance
        self.status_code = status_code
        self.response = response or {}
        super().__init__(f"Faucet request failed: {message}")


class GasEstimationFailed(MegaBNBError):
    """Always recovered locally with a fallback gas limit"""


class TransactionRejected(MegaBNBError):
    """Signing, broadcast or on-chain execution failure"""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ConfirmationTimeout(MegaBNBError):
    def __init__(self, tx_hash: str, attempts: int):
        self.tx_hash = tx_hash
        self.attempts = attempts
        super().__init__(f"Transaction {tx_hash} not confirmed after {attempts} attempts")


class DeploymentUnconfirmed(MegaBNBError):
    """Deployment was mined but no code exists at the contract address"""

    def __init__(self, address: Optional[str], receipt=None):
        self.address = address
        self.receipt = receipt
        super().__init__(f"No contract code found at {address}")


class DataSourceEmpty(MegaBNBError):
    """No accounts or recipients available to process"""
