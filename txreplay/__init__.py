"""
txreplay - Transaction Log Replay

Replays an ordered log of deposits, withdrawals, disputes, resolves and
chargebacks into final per-client account balances.

Usage:
    from txreplay import Ledger, CsvRecordSource, CsvRecordSink
    import sys

    ledger = Ledger()
    accounts = ledger.replay(CsvRecordSource("transactions.csv"))
    CsvRecordSink(sys.stdout).write_accounts(accounts)

Or build transactions directly:
    from decimal import Decimal
    from txreplay import Ledger, Transaction, TxAction

    ledger = Ledger()
    ledger.apply(Transaction(TxAction.DEPOSIT, 1, 1, Decimal("1.5")))
    ledger.apply(Transaction(TxAction.DISPUTE, 1, 1))
    ledger.get_account(1).held   # Decimal("1.5")
"""

# Core types
from .core import (
    TxAction,
    ApplyResult,
    Transaction,
    Account,
    AccountSnapshot,
    AccountMap,
    TxMap,
    TxAmount,
    ReplayError,
    RecordParseError,
    round_amount,
    normalize_decimal,
    format_amount,
    OUTPUT_DECIMAL_PLACES,
    MAX_CLIENT_ID,
    MAX_TX_ID,
    MAX_AMOUNT_DIGITS,
)

# Replay engine
from .ledger import Ledger, build_ledger_index, balance_accounts

# Record sources
from .record_source import (
    RecordSource,
    StaticRecordSource,
    CsvRecordSource,
    parse_record,
)

# Record sinks
from .record_sink import (
    RecordSink,
    CsvRecordSink,
    account_row,
)

__all__ = [
    # Core
    'TxAction', 'ApplyResult', 'Transaction', 'Account', 'AccountSnapshot',
    'AccountMap', 'TxMap', 'TxAmount',
    'ReplayError', 'RecordParseError',
    'round_amount', 'normalize_decimal', 'format_amount',
    'OUTPUT_DECIMAL_PLACES', 'MAX_CLIENT_ID', 'MAX_TX_ID', 'MAX_AMOUNT_DIGITS',
    # Ledger
    'Ledger', 'build_ledger_index', 'balance_accounts',
    # Sources
    'RecordSource', 'StaticRecordSource', 'CsvRecordSource', 'parse_record',
    # Sinks
    'RecordSink', 'CsvRecordSink', 'account_row',
]

__version__ = '1.0.0'
