"""
Account and recipient sources

The pipeline only depends on the two protocols below. Spreadsheet sources
read the sender sheet (address, privateKey[, mnemonic]) and the recipient
sheet (address) with pandas; in-memory sources back CLI flags and tests.
"""

import os
from typing import Any, Dict, List, Optional, Protocol, Sequence

import pandas as pd

from .events import EventLog
from .models import Account

SENDER_COLUMNS = ("address", "privateKey", "mnemonic")
RECIPIENT_COLUMNS = ("address",)


class AccountSource(Protocol):
    def load_accounts(self) -> List[Account]:
        ...


class RecipientSource(Protocol):
    def load_recipients(self) -> List[str]:
        ...


class InMemoryAccountSource:
    def __init__(self, accounts: Sequence[Account]):
        self.accounts = list(accounts)

    def load_accounts(self) -> List[Account]:
        return list(self.accounts)


class InMemoryRecipientSource:
    def __init__(self, recipients: Sequence[str]):
        self.recipients = list(recipients)

    def load_recipients(self) -> List[str]:
        return list(self.recipients)


def read_table(path: str, log: EventLog, columns: Sequence[str]) -> List[Dict[str, Optional[str]]]:
    """
    Read the first sheet of an .xlsx file (or a .csv) into row dicts

    Only `columns` are kept; blank cells become None. A missing or unreadable
    file yields an empty list with a warning.
    """
    if not os.path.exists(path):
        log.warning("sources", f"File not found: {path}")
        return []

    try:
        if path.lower().endswith(".csv"):
            frame = pd.read_csv(path, dtype=str)
        else:
            frame = pd.read_excel(path, sheet_name=0, dtype=str, engine="openpyxl")
    except Exception as e:
        log.warning("sources", f"Failed to read {path}: {e}")
        return []

    rows = []
    for record in frame.to_dict(orient="records"):
        rows.append({column: _cell(record.get(column)) for column in columns if column in record})
    return rows


def _cell(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


class SpreadsheetAccountSource:
    """Senders from a sheet with `address` and `privateKey` columns"""

    def __init__(self, path: str, log: Optional[EventLog] = None):
        self.path = path
        self.log = log or EventLog()

    def load_accounts(self) -> List[Account]:
        accounts = []
        for index, row in enumerate(read_table(self.path, self.log, SENDER_COLUMNS), start=1):
            address = row.get("address")
            private_key = row.get("privateKey")
            if not address or not private_key:
                self.log.warning("sources", f"Sender row {index} is missing address or privateKey, skipped")
                continue

            try:
                account = Account.from_private_key(private_key)
            except Exception:
                # the key itself is never echoed
                self.log.warning("sources", f"Sender row {index} has a malformed privateKey, skipped")
                continue

            if account.address.lower() != address.lower():
                self.log.warning(
                    "sources",
                    f"Sender row {index}: address {address} does not match its private key, "
                    f"using {account.address}",
                )
            accounts.append(account)
        return accounts


class SpreadsheetRecipientSource:
    """Recipients from a sheet with an `address` column"""

    def __init__(self, path: str, log: Optional[EventLog] = None):
        self.path = path
        self.log = log or EventLog()

    def load_recipients(self) -> List[str]:
        recipients = []
        for index, row in enumerate(read_table(self.path, self.log, RECIPIENT_COLUMNS), start=1):
            address = row.get("address")
            if not address:
                self.log.warning("sources", f"Recipient row {index} is missing address, skipped")
                continue
            recipients.append(address)
        return recipients


def accounts_summary(accounts: Sequence[Account], recipients: Sequence[str]) -> List[str]:
    """Printable summary of loaded accounts, private keys masked"""
    lines = [f"Sender accounts: {len(accounts)}"]
    for index, account in enumerate(accounts, start=1):
        lines.append(f"Sender {index}: {account.address} (key: {account.masked_key})")
    lines.append("")
    lines.append(f"Recipient addresses: {len(recipients)}")
    for index, address in enumerate(recipients, start=1):
        lines.append(f"Recipient {index}: {address}")
    return lines
