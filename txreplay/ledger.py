"""
ledger.py - Stateful Transaction Replay Engine

The Ledger class is the central state manager for the replay system.
It is the only module that mutates account and dispute state.

Key responsibilities:
    - Owns the Account Table (client id -> Account), created lazily
    - Owns the Ledger Index (tx id -> deposit), the only transactions that
      later dispute rows may refer to
    - Applies each transaction strictly in input order
    - Never raises on business-rule violations; those rows are ignored
"""

from __future__ import annotations
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Any
import copy
import sys

from .core import (
    # Types
    Account, AccountMap, ApplyResult, Transaction, TxAction, TxMap,
    # Constants
    ZERO,
)


class Ledger:
    """
    Replays a transaction log into per-client account balances.

    Ordering:
        Later rows refer to earlier ones by id, and dispute rows depend on the
        flag set by earlier dispute rows on the same deposit, so transactions
        must be applied in input order.

        With eager_index=False (the default) each deposit enters the Ledger
        Index right after it is applied. A dispute that arrives before its
        deposit finds nothing and is ignored.

        With eager_index=True every deposit is indexed in a pre-pass before
        replay begins, which requires the whole input in memory. For in-order
        input both modes produce the same balances. If a deposit id appears
        twice, the pre-pass keeps the last row while the lazy mode keeps
        whichever was applied most recently at the time of the dispute.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger()
        ledger.apply(Transaction(TxAction.DEPOSIT, 1, 1, Decimal("1")))
        ledger.apply(Transaction(TxAction.DISPUTE, 1, 1))
        ledger.get_account(1).held  # Decimal("1")
    """

    def __init__(
        self,
        name: str = "main",
        verbose: bool = False,
        eager_index: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            verbose: Print a line to stderr for every ignored row (default: False)
            eager_index: Index all deposits before replay instead of as they
                         are applied (default: False)
        """
        self.name = name
        self.verbose = verbose
        self.eager_index = eager_index
        self.accounts: AccountMap = {}
        self.disputable_txs: TxMap = {}

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    def get_account(self, client: int) -> Optional[Account]:
        """Return the account for a client, or None if it was never referenced."""
        return self.accounts.get(client)

    def list_clients(self) -> List[int]:
        """List all client ids in ascending order."""
        return sorted(self.accounts.keys())

    def get_transaction(self, tx_id: int) -> Optional[Transaction]:
        """Return the indexed deposit with this id, or None."""
        return self.disputable_txs.get(tx_id)

    def disputed_transactions(self, client: Optional[int] = None) -> List[Transaction]:
        """
        List indexed deposits currently under dispute, ordered by tx id.

        Args:
            client: Restrict to one client (default: all clients)
        """
        return [
            tx for tx_id, tx in sorted(self.disputable_txs.items())
            if tx.is_disputed and (client is None or tx.client == client)
        ]

    def verify_totals(self) -> Dict[str, Any]:
        """
        Verify that every account's held funds match its open disputes.

        For each client, held must equal the sum of the amounts of indexed
        deposits belonging to that client that are currently disputed.
        Locked accounts are skipped: their dispute flags are frozen along with
        their balances.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every unlocked account is consistent
            - 'discrepancies': List[Dict] - client, expected, actual, difference
        """
        expected: Dict[int, Decimal] = {}
        for tx in self.disputable_txs.values():
            if tx.is_disputed and tx.amount is not None:
                expected[tx.client] = expected.get(tx.client, ZERO) + tx.amount

        discrepancies = []
        for client in self.list_clients():
            account = self.accounts[client]
            if account.is_locked:
                continue
            want = expected.get(client, ZERO)
            if account.held != want:
                discrepancies.append({
                    'client': client,
                    'expected': want,
                    'actual': account.held,
                    'difference': account.held - want,
                })

        return {
            'valid': len(discrepancies) == 0,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # REPLAY (Mutating)
    # ========================================================================

    def ensure_account(self, client: int) -> Account:
        """Return the client's account, creating a zero-balance one if absent."""
        account = self.accounts.get(client)
        if account is None:
            account = Account(client)
            self.accounts[client] = account
        return account

    def index(self, tx: Transaction) -> None:
        """Insert or overwrite a deposit in the Ledger Index. Other actions are skipped."""
        if tx.is_disputable():
            self.disputable_txs[tx.tx] = tx

    def apply(self, tx: Transaction) -> ApplyResult:
        """
        Apply one transaction.

        Steps:
        1. Ensure an account exists for tx.client
        2. Dispatch on tx.action
        3. Index the transaction if it is a deposit (lazy mode only)

        Args:
            tx: Transaction to apply. Deposits are stored by reference in the
                Ledger Index and their dispute flag is mutated later.

        Returns:
            ApplyResult.APPLIED if the row took effect, ApplyResult.IGNORED otherwise
        """
        account = self.ensure_account(tx.client)
        reason = self._dispatch(account, tx)

        if not self.eager_index:
            self.index(tx)

        if reason:
            if self.verbose:
                print(
                    f"IGNORED: {tx.action.value} client={tx.client} tx={tx.tx}: {reason}",
                    file=sys.stderr,
                )
            return ApplyResult.IGNORED
        return ApplyResult.APPLIED

    def _dispatch(self, account: Account, tx: Transaction) -> str:
        """
        Run the transition for one row.

        Returns:
            Empty string if state changed, otherwise the reason it was ignored
        """
        if account.is_locked:
            return "account locked"

        action = tx.action
        if action is TxAction.DEPOSIT:
            if not account.deposit(tx.amount):
                return "missing amount"
            return ""
        if action is TxAction.WITHDRAWAL:
            if tx.amount is None:
                return "missing amount"
            if not account.withdraw(tx.amount):
                return "insufficient funds"
            return ""
        if action.refers_to_deposit:
            disputed_tx = self.disputable_txs.get(tx.tx)
            if disputed_tx is None:
                return "unknown transaction"
            if not disputed_tx.is_disputable():
                return "not disputable"
            if disputed_tx.client != tx.client:
                return "client mismatch"
            return self._handle_dispute_action(account, disputed_tx, action)
        raise AssertionError(f"unhandled action: {action}")

    def _handle_dispute_action(
        self,
        account: Account,
        disputed_tx: Transaction,
        action: TxAction
    ) -> str:
        """
        Advance the dispute lifecycle of one indexed deposit.

        Normal --DISPUTE--> Disputed --RESOLVE--> Normal
                                     --CHARGEBACK--> charged back (account locked)

        A deposit recorded without an amount still changes state, but no
        funds move and the row is reported as "missing amount".
        """
        if action is TxAction.DISPUTE:
            if disputed_tx.is_disputed:
                return "already disputed"
            disputed_tx.is_disputed = True
            moved = account.hold(disputed_tx.amount)
        else:
            if not disputed_tx.is_disputed:
                return "not disputed"
            disputed_tx.is_disputed = False
            if action is TxAction.RESOLVE:
                moved = account.release(disputed_tx.amount)
            else:
                moved = account.chargeback(disputed_tx.amount)
        return "" if moved else "missing amount"

    def replay(self, transactions: Iterable[Transaction]) -> AccountMap:
        """
        Apply a sequence of transactions in order and return the Account Table.

        In lazy mode the iterable is consumed one row at a time, so a streaming
        source keeps memory bounded by the number of accounts and deposits.
        In eager mode it is materialized first so deposits can be pre-indexed.

        Structural errors raised by the iterable propagate unchanged; nothing
        about business rules ever raises.
        """
        if self.eager_index:
            transactions = list(transactions)
            self.disputable_txs.update(build_ledger_index(transactions))

        for tx in transactions:
            self.apply(tx)

        return self.accounts

    # ========================================================================
    # COPYING AND DIAGNOSTICS
    # ========================================================================

    def clone(self) -> Ledger:
        """
        Create a deep copy of this ledger.

        Accounts and indexed deposits are copied, so applying transactions to
        the clone never affects the original and vice versa.
        """
        cloned = Ledger(self.name, verbose=self.verbose, eager_index=self.eager_index)
        cloned.accounts = {c: copy.copy(a) for c, a in self.accounts.items()}
        cloned.disputable_txs = {t: copy.copy(tx) for t, tx in self.disputable_txs.items()}
        return cloned

    def get_memory_stats(self) -> Dict[str, int]:
        """
        Estimate memory consumption of the Account Table and Ledger Index.

        Note: These are estimates using sys.getsizeof(), which may not capture
        all overhead.

        Returns:
            Dictionary with byte estimates:
            - 'accounts': Account Table
            - 'disputable_txs': Ledger Index
            - 'total': Sum of both
        """
        accounts_size = sys.getsizeof(self.accounts)
        for client, account in self.accounts.items():
            accounts_size += sys.getsizeof(client) + sys.getsizeof(account)
            accounts_size += sys.getsizeof(account.available) + sys.getsizeof(account.held)

        index_size = sys.getsizeof(self.disputable_txs)
        for tx_id, tx in self.disputable_txs.items():
            index_size += sys.getsizeof(tx_id) + sys.getsizeof(tx)
            if tx.amount is not None:
                index_size += sys.getsizeof(tx.amount)

        return {
            'accounts': accounts_size,
            'disputable_txs': index_size,
            'total': accounts_size + index_size,
        }

    def __repr__(self) -> str:
        return (
            f"Ledger({self.name!r}, accounts={len(self.accounts)}, "
            f"indexed={len(self.disputable_txs)})"
        )


def build_ledger_index(transactions: Iterable[Transaction]) -> TxMap:
    """
    Index every deposit by transaction id in a single pass.

    A later deposit with a repeated id overwrites an earlier one.
    """
    index: TxMap = {}
    for tx in transactions:
        if tx.is_disputable():
            index[tx.tx] = tx
    return index


def balance_accounts(
    transactions: Iterable[Transaction],
    eager_index: bool = False,
    verbose: bool = False
) -> AccountMap:
    """
    Replay a transaction sequence into a fresh Account Table.

    Args:
        transactions: Transactions in input order
        eager_index: Pre-index deposits before replay (see Ledger)
        verbose: Report ignored rows on stderr

    Returns:
        Mapping from client id to final Account
    """
    ledger = Ledger(verbose=verbose, eager_index=eager_index)
    return ledger.replay(transactions)
