import unittest
from unittest import mock

import requests

from megabnb_automation.diagnostics import check_connections
from megabnb_automation.events import EventLog

from megabnb_automation.tests.fake_chain import FakeChainClient, make_settings


class BrokenRpcClient(FakeChainClient):
    async def block_number(self) -> int:
        raise ConnectionError("connection refused")


class CheckConnectionsTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.log = EventLog(echo=False)
        self.session = mock.Mock(spec=requests.Session)

    async def test_all_reachable(self) -> None:
        self.session.request.return_value = mock.Mock(ok=True, status_code=200, headers={"server": "x"})

        results = await check_connections(FakeChainClient(), make_settings(), self.log, session=self.session)

        self.assertTrue(all(result["ok"] for result in results.values()))
        self.assertEqual(results["rpc"]["chain_id"], 1)
        methods = [c.args[0] for c in self.session.request.call_args_list]
        self.assertEqual(methods, ["GET", "OPTIONS"])

    async def test_failures_are_recorded_not_raised(self) -> None:
        self.session.request.side_effect = [
            mock.Mock(ok=False, status_code=503, headers={}),
            requests.ConnectionError("dns failure"),
        ]

        results = await check_connections(BrokenRpcClient(), make_settings(), self.log, session=self.session)

        self.assertFalse(results["rpc"]["ok"])
        self.assertIn("connection refused", results["rpc"]["error"])
        self.assertEqual(results["website"]["status_code"], 503)
        self.assertIn("dns failure", results["faucet"]["error"])
        self.assertEqual(len(self.log.find(operation="check", level="error")), 3)

    async def test_chain_id_mismatch_warns(self) -> None:
        self.session.request.return_value = mock.Mock(ok=True, status_code=200, headers={})

        await check_connections(FakeChainClient(chain_id=56), make_settings(chain_id=5687), self.log, session=self.session)

        self.assertEqual(len(self.log.find(operation="check", level="warning")), 1)


if __name__ == "__main__":
    unittest.main()
