"""
record_sink.py - Account record sinks

Emits the final Account Table, one row per client, with columns:
    client, available, held, total, locked

Amounts are rounded to OUTPUT_DECIMAL_PLACES with banker's rounding and
printed without trailing zeros. The emitted total is the sum of the emitted
available and held, so every row balances exactly.
"""

from __future__ import annotations
from typing import IO, Dict, Iterable, Mapping, Protocol, Union, runtime_checkable
import csv

from .core import Account, normalize_decimal, round_amount


OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")


def account_row(account: Account) -> Dict[str, str]:
    """
    Format one account as an output row.

    Example:
        account_row(Account(1, Decimal("1.50000"), Decimal("0.12345")))
        # {'client': '1', 'available': '1.5', 'held': '0.1234',
        #  'total': '1.6234', 'locked': 'false'}
    """
    available = round_amount(account.available)
    held = round_amount(account.held)
    return {
        "client": str(account.client),
        "available": normalize_decimal(available),
        "held": normalize_decimal(held),
        "total": normalize_decimal(available + held),
        "locked": "true" if account.is_locked else "false",
    }


@runtime_checkable
class RecordSink(Protocol):
    """Protocol for account sinks."""

    def write_accounts(self, accounts: Union[Mapping[int, Account], Iterable[Account]]) -> None:
        ...


class CsvRecordSink:
    """
    Writes accounts as CSV to a text stream.

    Rows are written in ascending client order so identical inputs produce
    byte-identical output.
    """

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def write_accounts(self, accounts: Union[Mapping[int, Account], Iterable[Account]]) -> None:
        if isinstance(accounts, Mapping):
            accounts = accounts.values()
        # Format everything first so a failure leaves the stream untouched.
        rows = [account_row(account) for account in sorted(accounts, key=lambda a: a.client)]
        writer = csv.DictWriter(self.stream, fieldnames=OUTPUT_COLUMNS, lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        self.stream.flush()

    def __repr__(self):
        return f"CsvRecordSink({getattr(self.stream, 'name', self.stream)!r})"
