"""
Command line entry point.

Usage:
    python -m txreplay transactions.csv > accounts.csv
    python -m txreplay transactions.csv --eager-index --verbose

Exit status is 0 on success and 1 when the input cannot be read or decoded.
The whole input is replayed before anything is written to stdout, so a
failed run produces no partial output.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import sys

from .core import ReplayError
from .ledger import Ledger
from .record_sink import CsvRecordSink
from .record_source import CsvRecordSource


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txreplay",
        description="Replay a transaction log and print final client account balances as CSV.",
    )
    parser.add_argument("input", help="path to the transactions CSV file")
    parser.add_argument(
        "--eager-index",
        action="store_true",
        help="index all deposits before replay (loads the whole file into memory)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="report ignored transactions on stderr",
    )
    return parser


def run(path: str, eager_index: bool = False, verbose: bool = False, out=None) -> None:
    """Replay the file at `path` and write the account table to `out` (default: stdout)."""
    ledger = Ledger(verbose=verbose, eager_index=eager_index)
    accounts = ledger.replay(CsvRecordSource(path))
    CsvRecordSink(out if out is not None else sys.stdout).write_accounts(accounts)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run(args.input, eager_index=args.eager_index, verbose=args.verbose)
    except (ReplayError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
