"""
record_source.py - Transaction record sources for replay

Provides the ordered transaction stream consumed by the Ledger.

Classes:
- RecordSource: Protocol defining the source interface
- StaticRecordSource: In-memory transactions
- CsvRecordSource: Streaming reader for `type, client, tx, amount` CSV files

Sources yield transactions in file order. Structural decode failures raise
RecordParseError and abort the run.
"""

from __future__ import annotations
from decimal import Decimal
from pathlib import Path
from typing import IO, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Union, runtime_checkable
import copy
import csv
import re

from .core import MAX_AMOUNT_DIGITS, RecordParseError, Transaction, TxAction


# Column names expected in the header row.
COLUMN_TYPE = "type"
COLUMN_CLIENT = "client"
COLUMN_TX = "tx"
COLUMN_AMOUNT = "amount"
REQUIRED_COLUMNS = (COLUMN_TYPE, COLUMN_CLIENT, COLUMN_TX)


@runtime_checkable
class RecordSource(Protocol):
    """
    Protocol for transaction record sources.

    A record source is an iterable of Transaction objects in input order.
    """

    def __iter__(self) -> Iterator[Transaction]:
        ...


class StaticRecordSource:
    """
    Record source over transactions already held in memory.

    Transactions are copied on iteration so the dispute flags mutated during
    replay never leak back into the caller's objects.
    """

    def __init__(self, transactions: Iterable[Transaction]):
        self.transactions: List[Transaction] = list(transactions)

    def __iter__(self) -> Iterator[Transaction]:
        for tx in self.transactions:
            yield copy.copy(tx)

    def __len__(self) -> int:
        return len(self.transactions)

    def __repr__(self):
        return f"StaticRecordSource({len(self.transactions)} transactions)"


# Plain ASCII literals only. int() and Decimal() also accept digit-group
# underscores, exponents, special values and non-ASCII digits.
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_AMOUNT_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def _parse_int(name: str, text: str, line: Optional[int]) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise RecordParseError(f"{name} is not an integer: {text!r}", line)
    return int(text)


def _parse_amount(text: Optional[str], line: Optional[int]) -> Optional[Decimal]:
    if text is None or text == "":
        return None
    if not _AMOUNT_PATTERN.fullmatch(text):
        raise RecordParseError(f"amount is not a decimal: {text!r}", line)
    amount = Decimal(text)
    if amount and amount.adjusted() >= MAX_AMOUNT_DIGITS:
        raise RecordParseError(
            f"amount out of range (more than {MAX_AMOUNT_DIGITS} integer digits): {text!r}", line
        )
    return amount


def parse_record(fields: Dict[str, Optional[str]], line: Optional[int] = None) -> Transaction:
    """
    Decode one row, keyed by trimmed column name, into a Transaction.

    Values are trimmed. A missing or empty amount decodes as None.

    Args:
        fields: Mapping from column name to raw value (None when absent)
        line: 1-based line number for error messages

    Raises:
        RecordParseError: If a required field is missing or a value cannot be decoded
    """
    values = {k: (v.strip() if v is not None else None) for k, v in fields.items()}

    for column in REQUIRED_COLUMNS:
        if not values.get(column):
            raise RecordParseError(f"missing required field: {column}", line)

    try:
        action = TxAction.from_wire(values[COLUMN_TYPE])
    except ValueError as e:
        raise RecordParseError(str(e), line) from None

    client = _parse_int(COLUMN_CLIENT, values[COLUMN_CLIENT], line)
    tx_id = _parse_int(COLUMN_TX, values[COLUMN_TX], line)
    amount = _parse_amount(values.get(COLUMN_AMOUNT), line)

    try:
        return Transaction(action, client, tx_id, amount)
    except ValueError as e:
        raise RecordParseError(str(e), line) from None


class CsvRecordSource:
    """
    Streaming CSV record source.

    Reads a header row, then yields one Transaction per data row. The reader
    is flexible: header names and fields are whitespace-trimmed, short rows
    leave trailing columns absent, extra fields are ignored and blank lines
    are skipped.

    Each iteration re-opens a path (or continues a stream), so a path-backed
    source can be replayed more than once.
    """

    def __init__(self, source: Union[str, Path, IO[str]]):
        """
        Args:
            source: Path to a CSV file, or an already-open text stream
        """
        self.source = source

    def __iter__(self) -> Iterator[Transaction]:
        if isinstance(self.source, (str, Path)):
            with open(self.source, newline="") as stream:
                yield from self._read(stream)
        else:
            yield from self._read(self.source)

    def _read(self, stream: IO[str]) -> Iterator[Transaction]:
        reader = csv.reader(stream)
        header = self._read_header(reader)
        if header is None:
            return

        for row in reader:
            if not any(field.strip() for field in row):
                continue
            fields = {
                name: (row[i] if i < len(row) else None)
                for i, name in enumerate(header)
            }
            yield parse_record(fields, reader.line_num)

    @staticmethod
    def _read_header(reader) -> Optional[Sequence[str]]:
        """Return the trimmed header names, or None for an empty input."""
        for row in reader:
            if not any(field.strip() for field in row):
                continue
            header = [name.strip() for name in row]
            for column in REQUIRED_COLUMNS:
                if column not in header:
                    raise RecordParseError(f"header is missing column: {column}", reader.line_num)
            return header
        return None

    def __repr__(self):
        return f"CsvRecordSource({self.source!r})"
