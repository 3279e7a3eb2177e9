import unittest

from eth_abi import encode
from web3 import Web3

from megabnb_automation.errors import InvalidAddress
from megabnb_automation.events import EventLog
from megabnb_automation.nft_status import MAX_MINTS_SLOT, TOTAL_MINTS_SLOT, check_nft_status, selector

from megabnb_automation.tests.fake_chain import FakeChainClient

NFT = "0x" + "dd" * 20


class NftStatusTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = FakeChainClient()
        self.client.codes[NFT] = "0x6080"
        self.log = EventLog(echo=False)

    def answer(self, method: str, output_type: str, value) -> None:
        self.client.call_results[(NFT, selector(method))] = "0x" + encode([output_type], [value]).hex()

    def test_selector(self) -> None:
        self.assertEqual(selector("totalSupply"), "0x18160ddd")
        self.assertEqual(selector("name"), "0x06fdde03")

    async def test_minted_and_max_from_view_methods(self) -> None:
        self.answer("name", "string", "Mega Pass")
        self.answer("totalSupply", "uint256", 40)
        self.answer("MAX_SUPPLY", "uint256", 100)

        report = await check_nft_status(self.client, NFT, self.log)

        self.assertEqual(report["address"], Web3.to_checksum_address(NFT))
        self.assertEqual(report["methods"]["name"], "Mega Pass")
        self.assertEqual((report["minted"], report["max"]), (40, 100))
        self.assertFalse(report["sold_out"])
        self.assertEqual(report["remaining"], 60)

    async def test_sold_out(self) -> None:
        self.answer("totalMints", "uint256", 100)
        self.answer("totalSupply", "uint256", 7)
        self.answer("maxMints", "uint256", 100)

        report = await check_nft_status(self.client, NFT, self.log)

        self.assertEqual(report["minted"], 100)
        self.assertTrue(report["sold_out"])
        self.assertEqual(report["remaining"], 0)
        self.assertTrue(self.log.find(operation="nft_status", level="warning"))

    async def test_storage_guess_is_kept_apart(self) -> None:
        self.client.storage[(NFT, TOTAL_MINTS_SLOT)] = "0x" + f"{12:064x}"
        self.client.storage[(NFT, MAX_MINTS_SLOT)] = "0x" + f"{500:064x}"

        report = await check_nft_status(self.client, NFT, self.log)

        self.assertIsNone(report["minted"])
        self.assertIsNone(report["sold_out"])
        self.assertEqual(report["best_effort_unverified"]["total_mints"], 12)
        self.assertEqual(report["best_effort_unverified"]["max_mints"], 500)

    async def test_rejects_bad_address_and_plain_accounts(self) -> None:
        with self.assertRaises(InvalidAddress):
            await check_nft_status(self.client, "0x1234", self.log)
        with self.assertRaises(InvalidAddress):
            await check_nft_status(self.client, "0x" + "ee" * 20, self.log)


if __name__ == "__main__":
    unittest.main()
