"""Faucet outcome classification by declared success and balance delta."""

import unittest
from unittest import mock

import requests

from megabnb_automation.errors import FaucetRequestFailed, InvalidAddress
from megabnb_automation.events import EventLog
from megabnb_automation.faucet import FaucetClient

from megabnb_automation.tests.fake_chain import RECIPIENT_1, FakeChainClient, RecordingSleep, make_settings


def response(status_code=200, body=None, json_error=False):
    resp = mock.Mock()
    resp.status_code = status_code
    if json_error:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = body if body is not None else {}
    return resp


class CreditingSession:
    """requests.Session stand-in that optionally credits the address on POST"""

    def __init__(self, client, resp=None, credit=0, error=None):
        self.client = client
        self.resp = resp or response()
        self.credit = credit
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        address = json["address"].lower()
        self.client.balances[address] = self.client.balances.get(address, 0) + self.credit
        return self.resp


class FaucetClientTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.client = FakeChainClient()
        self.log = EventLog(echo=False)
        self.sleep = RecordingSleep()

    def faucet(self, session) -> FaucetClient:
        return FaucetClient(self.client, self.settings, self.log, session=session, sleep=self.sleep)

    async def test_declared_success(self) -> None:
        session = CreditingSession(
            self.client, response(body={"success": True, "tx_hash": "0xabc"}), credit=10**17
        )
        result = await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertTrue(result.success)
        self.assertTrue(result.declared_success)
        self.assertEqual(result.amount_wei, 10**17)
        self.assertEqual(result.tx_hash, "0xabc")
        self.assertEqual(session.calls[0]["json"], {"address": RECIPIENT_1})
        self.assertEqual(session.calls[0]["url"], self.settings.faucet_url)
        self.assertEqual(session.calls[0]["headers"]["Content-Type"], "application/json")
        self.assertEqual(session.calls[0]["timeout"], 30)
        self.assertEqual(self.sleep.calls, [self.settings.faucet_settle_delay])

    async def test_balance_increase_overrides_declared_failure(self) -> None:
        session = CreditingSession(
            self.client,
            response(body={"success": False, "message": "already claimed"}),
            credit=500_000_000_000_000,
        )
        result = await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertTrue(result.success)
        self.assertFalse(result.declared_success)
        self.assertEqual(result.amount_wei, 500_000_000_000_000)

    async def test_declared_success_without_delta_reports_zero(self) -> None:
        session = CreditingSession(self.client, response(body={"success": True}))
        result = await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertTrue(result.success)
        self.assertEqual(result.amount_wei, 0)

    async def test_failure_carries_endpoint_message_and_balance_flag(self) -> None:
        self.client.balances[RECIPIENT_1] = 42
        session = CreditingSession(self.client, response(body={"success": False, "error": "rate limited"}))

        with self.assertRaises(FaucetRequestFailed) as ctx:
            await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertIn("rate limited", str(ctx.exception))
        self.assertTrue(ctx.exception.has_balance)

    async def test_http_404_hints_at_url(self) -> None:
        session = CreditingSession(self.client, response(status_code=404, json_error=True))

        with self.assertRaises(FaucetRequestFailed) as ctx:
            await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertIn("HTTP 404", str(ctx.exception))
        self.assertIn("https://mbscan.io/airdrop", str(ctx.exception))
        self.assertFalse(ctx.exception.has_balance)
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_timeout_still_checks_balance(self) -> None:
        session = CreditingSession(self.client, error=requests.Timeout("slow"))

        with self.assertRaises(FaucetRequestFailed) as ctx:
            await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertIn("no response", str(ctx.exception))
        self.assertEqual(self.sleep.calls, [self.settings.faucet_settle_delay])

    async def test_unknown_error_message(self) -> None:
        session = CreditingSession(self.client, response(body={"success": False}))

        with self.assertRaises(FaucetRequestFailed) as ctx:
            await self.faucet(session).request_tokens(RECIPIENT_1)

        self.assertIn("unknown error", str(ctx.exception))

    async def test_invalid_address_makes_no_request(self) -> None:
        session = CreditingSession(self.client)

        with self.assertRaises(InvalidAddress):
            await self.faucet(session).request_tokens("not-an-address")

        self.assertEqual(session.calls, [])
        self.assertEqual(self.sleep.calls, [])


if __name__ == "__main__":
    unittest.main()
