"""Connection checks for the RPC node, the explorer website and the faucet endpoint."""

import asyncio
from typing import Any, Dict, Optional

import requests

from .chain_client import ChainClient
from .config import Settings
from .events import EventLog

WEBSITE_URL = "https://mbscan.io"
CHECK_TIMEOUT = 10


async def check_connections(
    client: ChainClient,
    settings: Settings,
    log: Optional[EventLog] = None,
    session: Optional[requests.Session] = None,
    website_url: str = WEBSITE_URL
) -> Dict[str, Dict[str, Any]]:
    """
    Check the RPC node, the website (GET) and the faucet (OPTIONS)

    Every check is independent; a failure is recorded, never raised.

    Returns:
        {"rpc": {...}, "website": {...}, "faucet": {...}}, each with an "ok" flag
    """
    log = log or EventLog()
    session = session or requests.Session()
    results: Dict[str, Dict[str, Any]] = {}

    log.banner("Testing Network Connections")

    log.info("check", f"Testing RPC connection to {settings.rpc_url}...")
    try:
        block_number = await client.block_number()
        chain_id = await client.chain_id()
        results["rpc"] = {"ok": True, "block_number": block_number, "chain_id": chain_id}
        log.success("check", f"RPC connection successful, block {block_number}, chain ID {chain_id}")
        if settings.chain_id is not None and settings.chain_id != chain_id:
            log.warning("check", f"MEGABNB_CHAIN_ID is {settings.chain_id} but the node reports {chain_id}")
    except Exception as e:
        results["rpc"] = {"ok": False, "error": str(e)}
        log.error("check", f"RPC connection failed: {e}")

    log.info("check", f"Testing HTTP connection to {website_url}...")
    results["website"] = await _check_endpoint(session, "GET", website_url)
    _report(log, "Website connection", results["website"])

    log.info("check", f"Testing faucet API with OPTIONS request to {settings.faucet_url}...")
    results["faucet"] = await _check_endpoint(session, "OPTIONS", settings.faucet_url)
    _report(log, "Faucet OPTIONS request", results["faucet"])

    return results


async def _check_endpoint(session: requests.Session, method: str, url: str) -> Dict[str, Any]:
    try:
        response = await asyncio.to_thread(session.request, method, url, timeout=CHECK_TIMEOUT)
    except requests.RequestException as e:
        return {"ok": False, "error": str(e)}
    return {
        "ok": response.ok,
        "status_code": response.status_code,
        "headers": dict(response.headers),
    }


def _report(log: EventLog, title: str, result: Dict[str, Any]) -> None:
    if result["ok"]:
        log.success("check", f"{title} successful, status {result['status_code']}")
    elif "status_code" in result:
        log.error("check", f"{title} failed, status {result['status_code']}")
    else:
        log.error("check", f"{title} failed: {result['error']}")
