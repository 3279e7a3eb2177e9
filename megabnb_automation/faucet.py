"""
MegaBNB Faucet Client

Requests test tokens for an address and decides whether the request worked.
The endpoint's own success flag is not trusted alone: a request counts as
successful when the faucet says so OR when the balance went up.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

import requests

from .chain_client import ChainClient, Sleep
from .config import DEFAULT_FAUCET_URL, Settings
from .errors import FaucetRequestFailed, InvalidAddress
from .events import EventLog
from .models import FaucetResult
from .utils import format_ether

FAUCET_HEADERS = {
    "Content-Type": "application/json",
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7)",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
    "X-Requested-With": "XMLHttpRequest",
}


class FaucetClient:
    """Faucet request with balance-delta classification"""

    def __init__(
        self,
        client: ChainClient,
        settings: Settings,
        log: Optional[EventLog] = None,
        session: Optional[requests.Session] = None,
        sleep: Sleep = asyncio.sleep
    ):
        self.client = client
        self.settings = settings
        self.log = log or EventLog()
        self.session = session or requests.Session()
        self.sleep = sleep

    async def request_tokens(self, address: str) -> FaucetResult:
        """
        Request tokens for `address`

        Returns:
            FaucetResult with amount_wei equal to the observed balance delta

        Raises:
            InvalidAddress: Malformed address, nothing is sent
            FaucetRequestFailed: Endpoint reported failure and balance did not increase
        """
        if not self.client.is_address(address):
            raise InvalidAddress(address)

        self.log.info("faucet", f"Requesting test tokens for {address} from {self.settings.faucet_url}")

        balance_before = await self.client.get_balance(address)
        self.log.info("faucet", f"Balance before request: {format_ether(balance_before)}")

        body, status_code, reason = await self._post(address)
        if reason:
            self.log.warning("faucet", f"Faucet request error: {reason}", status_code=status_code)

        self.log.info("faucet", f"Waiting {self.settings.faucet_settle_delay}s for the faucet transaction to settle...")
        await self.sleep(self.settings.faucet_settle_delay)

        balance_after = await self.client.get_balance(address)
        delta = balance_after - balance_before
        declared_success = bool(body.get("success"))
        tx_hash = body.get("tx_hash")
        message = body.get("message") or body.get("error")

        self.log.info("faucet", f"Balance after request: {format_ether(balance_after)}")

        if declared_success or delta > 0:
            if not declared_success:
                self.log.warning("faucet", "Faucet did not report success, but the balance increased")
            self.log.success(
                "faucet",
                f"Faucet request succeeded, received {format_ether(max(delta, 0))}",
                address=address,
                amount_wei=max(delta, 0),
                tx_hash=tx_hash,
            )
            return FaucetResult(
                success=True,
                amount_wei=max(delta, 0),
                tx_hash=tx_hash,
                message=message,
                declared_success=declared_success,
            )

        error_message = message or reason or "unknown error"
        self.log.error("faucet", f"Faucet request failed: {error_message}", address=address)
        raise FaucetRequestFailed(
            error_message,
            has_balance=balance_after > 0,
            status_code=status_code,
            response=body,
        )

    async def _post(self, address: str) -> Tuple[Dict[str, Any], Optional[int], Optional[str]]:
        """
        POST the faucet request without raising

        Returns:
            (response body, HTTP status code, failure reason or None)
        """
        try:
            response = await asyncio.to_thread(
                self.session.post,
                self.settings.faucet_url,
                json={"address": address},
                headers=FAUCET_HEADERS,
                timeout=self.settings.faucet_timeout,
            )
        except requests.Timeout:
            return {}, None, f"no response within {self.settings.faucet_timeout}s"
        except requests.RequestException as e:
            return {}, None, f"network error: {e}"

        body = _parse_body(response)
        status_code = response.status_code
        if 200 <= status_code < 300:
            return body, status_code, None

        reason = f"HTTP {status_code}"
        if status_code == 404:
            reason += f" (faucet URL is probably wrong, expected {DEFAULT_FAUCET_URL})"
        return body, status_code, reason


def _parse_body(response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
