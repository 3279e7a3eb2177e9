import os
import tempfile
import unittest

from megabnb_automation.events import EventLog
from megabnb_automation.sources import (
    InMemoryAccountSource,
    InMemoryRecipientSource,
    SpreadsheetAccountSource,
    SpreadsheetRecipientSource,
    accounts_summary,
)

from megabnb_automation.tests.fake_chain import RECIPIENT_1, RECIPIENT_2, SENDER, SENDER_2


class SpreadsheetSourceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.log = EventLog(echo=False)

    def write(self, name: str, text: str) -> str:
        path = os.path.join(self.tmp.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_sender_rows(self) -> None:
        path = self.write("senders.csv", "\n".join([
            "address,privateKey,mnemonic",
            f"{SENDER.address},{SENDER.private_key},",
            f"{SENDER.address},,",
            f"{SENDER.address},0xnotakey,",
            f"{RECIPIENT_1},{SENDER_2.private_key},",
        ]) + "\n")

        accounts = SpreadsheetAccountSource(path, self.log).load_accounts()

        self.assertEqual([a.address for a in accounts], [SENDER.address, SENDER_2.address])
        warnings = [e.message for e in self.log.find(operation="sources", level="warning")]
        self.assertEqual(len(warnings), 3)
        self.assertIn("does not match its private key", warnings[2])
        for message in warnings:
            self.assertNotIn("notakey", message)

    def test_recipient_rows(self) -> None:
        path = self.write("recipients.csv", f"address\n{RECIPIENT_1}\n\n{RECIPIENT_2}\n")

        recipients = SpreadsheetRecipientSource(path, self.log).load_recipients()

        self.assertEqual(recipients, [RECIPIENT_1, RECIPIENT_2])

    def test_recipient_row_without_address_is_skipped(self) -> None:
        path = self.write("recipients.csv", f"address,note\n{RECIPIENT_1},a\n,b\n")

        recipients = SpreadsheetRecipientSource(path, self.log).load_recipients()

        self.assertEqual(recipients, [RECIPIENT_1])
        self.assertEqual(len(self.log.find(operation="sources", level="warning")), 1)

    def test_missing_file_is_empty(self) -> None:
        missing = os.path.join(self.tmp.name, "nope.xlsx")

        self.assertEqual(SpreadsheetAccountSource(missing, self.log).load_accounts(), [])
        self.assertEqual(SpreadsheetRecipientSource(missing, self.log).load_recipients(), [])
        self.assertEqual(len(self.log.find(level="warning")), 2)


class InMemorySourceTests(unittest.TestCase):
    def test_returns_copies(self) -> None:
        source = InMemoryRecipientSource([RECIPIENT_1])
        loaded = source.load_recipients()
        loaded.append(RECIPIENT_2)

        self.assertEqual(source.load_recipients(), [RECIPIENT_1])
        self.assertEqual(InMemoryAccountSource([SENDER]).load_accounts(), [SENDER])

    def test_summary_masks_keys(self) -> None:
        lines = accounts_summary([SENDER], [RECIPIENT_1])

        text = "\n".join(lines)
        self.assertNotIn(SENDER.private_key, text)
        self.assertIn(SENDER.masked_key, text)
        self.assertIn(f"Recipient 1: {RECIPIENT_1}", lines)


if __name__ == "__main__":
    unittest.main()
