"""
load_example.py - Replay Load Test

Demonstrates streaming replay over large synthetic logs:
- Withdrawal flood: one deposit drained by 1,000,000 unit withdrawals
- Random log: 200,000 mixed rows across 1,000 clients
- Both logs are written to a temporary CSV and replayed through the same
  CsvRecordSource / Ledger / CsvRecordSink path the command line uses

Run:
    python load_example.py
"""

import io
import os
import tempfile
import time

from txreplay import Ledger, CsvRecordSource, CsvRecordSink
from txreplay.generators import withdrawal_flood, random_log, write_csv


def replay_file(path: str, eager_index: bool = False) -> Ledger:
    t0 = time.perf_counter()
    ledger = Ledger(name="load_test", eager_index=eager_index)
    ledger.replay(CsvRecordSource(path))
    t1 = time.perf_counter()
    mode = "eager" if eager_index else "lazy"
    print(f"  Replay ({mode}):     {(t1-t0)*1000:.1f}ms")
    return ledger


def write_accounts(ledger: Ledger) -> str:
    t0 = time.perf_counter()
    out = io.StringIO()
    CsvRecordSink(out).write_accounts(ledger.accounts)
    t1 = time.perf_counter()
    print(f"  Accounts written:   {(t1-t0)*1000:.1f}ms")
    return out.getvalue()


def main():
    """Run the replay load test."""
    print("=" * 70)
    print("    REPLAY LOAD TEST")
    print("=" * 70)

    # Configuration
    FLOOD_COUNT = 1_000_000
    RANDOM_ROWS = 200_000
    RANDOM_CLIENTS = 1_000
    SEED = 42

    print(f"""
    Configuration:
      Flood withdrawals: {FLOOD_COUNT:,}
      Random rows:       {RANDOM_ROWS:,}
      Random clients:    {RANDOM_CLIENTS:,}
      Seed:              {SEED}
    """)

    with tempfile.TemporaryDirectory() as tmp:
        # =====================================================================
        # PHASE 1: Withdrawal flood
        # =====================================================================
        print("-" * 70)
        print("PHASE 1: Withdrawal flood")
        print("-" * 70)

        flood_path = os.path.join(tmp, "flood.csv")
        with open(flood_path, "w") as f:
            rows = write_csv(withdrawal_flood(FLOOD_COUNT), f)
        print(f"  Rows written: {rows:,}")

        ledger = replay_file(flood_path)
        account = ledger.get_account(1)
        print(f"  Client 1 available: {account.available} (expected 0)")
        print(f"  Memory: {ledger.get_memory_stats()}")

        # =====================================================================
        # PHASE 2: Random log, lazy vs eager indexing
        # =====================================================================
        print("-" * 70)
        print("PHASE 2: Random log")
        print("-" * 70)

        random_path = os.path.join(tmp, "random.csv")
        with open(random_path, "w") as f:
            rows = write_csv(random_log(RANDOM_ROWS, RANDOM_CLIENTS, SEED), f)
        print(f"  Rows written: {rows:,}")

        lazy = replay_file(random_path)
        eager = replay_file(random_path, eager_index=True)

        lazy_out = write_accounts(lazy)
        eager_out = write_accounts(eager)
        print(f"  Accounts:           {len(lazy.accounts):,}")
        print(f"  Open disputes:      {len(lazy.disputed_transactions()):,}")
        print(f"  Lazy == eager:      {lazy_out == eager_out}")
        print(f"  Held consistent:    {lazy.verify_totals()['valid']}")

    print("=" * 70)


if __name__ == "__main__":
    main()
