"""
generators.py - Synthetic transaction logs

Builders for load tests and scenario tests:
- withdrawal_flood: one large deposit drained by many unit withdrawals
- dispute_scenario: deposits, withdrawals, duplicate disputes, a resolve,
  a chargeback and a deposit into the locked account
- random_log: seeded random mix of every action
- write_csv: serialize any of the above in the input CSV format
"""

from __future__ import annotations
from decimal import Decimal
from typing import IO, Iterable, Iterator, List

import numpy as np

from .core import Transaction, TxAction, OUTPUT_DECIMAL_PLACES


def withdrawal_flood(count: int) -> Iterator[Transaction]:
    """
    Deposit `count` for client 1, then withdraw 1 `count` times.

    The final available balance is zero. Yields lazily so very large counts
    never need to be held in memory.
    """
    yield Transaction(TxAction.DEPOSIT, 1, 1, Decimal(count))
    for i in range(1, count + 1):
        yield Transaction(TxAction.WITHDRAWAL, 1, i + 1, Decimal(1))


def dispute_scenario(num_clients: int = 10) -> List[Transaction]:
    """
    Multi-client dispute scenario.

    Client i deposits 10 (tx 2i-1) and withdraws i (tx 2i). Clients 1 and 2
    each dispute their deposit twice; client 1 resolves, client 2 charges
    back and then tries to deposit again into the locked account.

    Expected final state:
        client 1: available 9, held 0, unlocked
        client 2: available -2, held 0, total -2, locked
        client i > 2: available 10 - i, unlocked
    """
    if num_clients < 2:
        raise ValueError("dispute_scenario needs at least 2 clients")

    txs: List[Transaction] = []
    for i in range(1, num_clients + 1):
        txs.append(Transaction(TxAction.DEPOSIT, i, 2 * i - 1, Decimal(10)))
        txs.append(Transaction(TxAction.WITHDRAWAL, i, 2 * i, Decimal(i)))

    for i in (1, 2):
        txs.append(Transaction(TxAction.DISPUTE, i, 2 * i - 1))
        txs.append(Transaction(TxAction.DISPUTE, i, 2 * i - 1))

    txs.append(Transaction(TxAction.RESOLVE, 1, 1))
    txs.append(Transaction(TxAction.CHARGEBACK, 2, 3))
    txs.append(Transaction(TxAction.DEPOSIT, 2, 3, Decimal(10)))
    return txs


def random_log(num_rows: int, num_clients: int = 10, seed: int = 42) -> List[Transaction]:
    """
    Seeded random transaction log covering every action.

    Deposits and withdrawals get fresh, increasing tx ids and amounts with
    OUTPUT_DECIMAL_PLACES fractional digits. Dispute-lifecycle rows refer to
    a random earlier deposit id, usually of the same client, so the log
    exercises both eligible and ineligible references.
    """
    rng = np.random.default_rng(seed)
    scale = 10 ** OUTPUT_DECIMAL_PLACES
    actions = [TxAction.DEPOSIT, TxAction.WITHDRAWAL, TxAction.DISPUTE,
               TxAction.RESOLVE, TxAction.CHARGEBACK]
    weights = np.array([0.4, 0.3, 0.15, 0.1, 0.05])

    txs: List[Transaction] = []
    deposits: List[Transaction] = []
    next_tx = 1

    for _ in range(num_rows):
        action = actions[int(rng.choice(len(actions), p=weights))]
        client = int(rng.integers(1, num_clients + 1))

        if action in (TxAction.DEPOSIT, TxAction.WITHDRAWAL):
            units = int(rng.integers(1, 1000 * scale))
            amount = Decimal(units).scaleb(-OUTPUT_DECIMAL_PLACES)
            tx = Transaction(action, client, next_tx, amount)
            next_tx += 1
            if action is TxAction.DEPOSIT:
                deposits.append(tx)
            txs.append(tx)
            continue

        if not deposits:
            continue
        target = deposits[int(rng.integers(len(deposits)))]
        # Mostly the owner, occasionally a different client
        if rng.random() < 0.9:
            client = target.client
        txs.append(Transaction(action, client, target.tx))

    return txs


def write_csv(transactions: Iterable[Transaction], stream: IO[str]) -> int:
    """
    Write transactions in the `type, client, tx, amount` input format.

    Dispute-lifecycle rows leave the amount column out entirely.

    Returns:
        Number of rows written (excluding the header)
    """
    stream.write("type, client, tx, amount\n")
    count = 0
    for tx in transactions:
        if tx.amount is None:
            stream.write(f"{tx.action.value}, {tx.client}, {tx.tx}\n")
        else:
            stream.write(f"{tx.action.value}, {tx.client}, {tx.tx}, {tx.amount}\n")
        count += 1
    return count
