import unittest
from decimal import Decimal

from megabnb_automation.models import Account, TransactionReceipt
from megabnb_automation.utils import (
    ether_to_wei,
    format_ether,
    hex_to_int,
    is_empty_code,
    is_valid_address,
    mask_private_key,
    wei_to_ether,
)


class ConversionTests(unittest.TestCase):
    def test_ether_to_wei(self) -> None:
        self.assertEqual(ether_to_wei("0.01"), 10**16)
        self.assertEqual(ether_to_wei(1), 10**18)
        self.assertEqual(ether_to_wei(Decimal("0.000000000000000001")), 1)

    def test_wei_to_ether(self) -> None:
        self.assertEqual(wei_to_ether(10**16), Decimal("0.01"))
        self.assertEqual(format_ether(10**16), "0.01 MegaBNB")
        self.assertEqual(format_ether(10**18, symbol="tBNB"), "1 tBNB")

    def test_hex_to_int(self) -> None:
        self.assertEqual(hex_to_int("0x0a"), 10)
        self.assertEqual(hex_to_int("0x"), 0)
        self.assertEqual(hex_to_int(None), 0)
        self.assertEqual(hex_to_int(b"\x01\x00"), 256)
        self.assertEqual(hex_to_int(7), 7)


class AddressAndCodeTests(unittest.TestCase):
    def test_is_valid_address(self) -> None:
        self.assertTrue(is_valid_address("0x" + "a1" * 20))
        self.assertFalse(is_valid_address("0x1234"))
        self.assertFalse(is_valid_address(None))

    def test_is_empty_code(self) -> None:
        for empty in (None, "", "0x", "0x0", b""):
            self.assertTrue(is_empty_code(empty), empty)
        self.assertFalse(is_empty_code("0x6080"))
        self.assertFalse(is_empty_code(b"\x60\x80"))


class MaskingTests(unittest.TestCase):
    def test_mask_keeps_prefix_and_suffix_only(self) -> None:
        key = "0x" + "ab" * 31 + "cdef"
        self.assertEqual(mask_private_key(key), "0xabab...cdef")
        self.assertEqual(mask_private_key("short"), "***")
        self.assertEqual(mask_private_key(""), "***")

    def test_account_repr_hides_key(self) -> None:
        account = Account.from_private_key("11" * 32)

        self.assertTrue(account.private_key.startswith("0x"))
        self.assertNotIn(account.private_key, repr(account))
        self.assertEqual(account.masked_key, "0x1111...1111")


class ReceiptTests(unittest.TestCase):
    def test_from_web3_normalizes_fields(self) -> None:
        receipt = TransactionReceipt.from_web3({
            "transactionHash": b"\x01" * 32,
            "blockNumber": 12,
            "gasUsed": 21000,
            "status": True,
            "contractAddress": None,
        })

        self.assertEqual(receipt.tx_hash, "0x" + "01" * 32)
        self.assertEqual(receipt.status, 1)
        self.assertTrue(receipt.succeeded)
        self.assertEqual(receipt.to_dict()["block_number"], 12)

    def test_missing_status_counts_as_failure(self) -> None:
        receipt = TransactionReceipt.from_web3({"transactionHash": "ab"})

        self.assertEqual(receipt.tx_hash, "0xab")
        self.assertFalse(receipt.succeeded)


if __name__ == "__main__":
    unittest.main()
