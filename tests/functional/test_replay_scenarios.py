"""
test_replay_scenarios.py - End-to-end replay scenarios

Each scenario goes through the full path used by the command line:
CSV file -> CsvRecordSource -> Ledger -> CsvRecordSink, and checks the
emitted rows.
"""

import io
import pytest

from txreplay import Ledger, CsvRecordSource, CsvRecordSink


def replay_csv(path: str, eager_index: bool = False) -> list:
    ledger = Ledger(eager_index=eager_index)
    accounts = ledger.replay(CsvRecordSource(path))
    out = io.StringIO()
    CsvRecordSink(out).write_accounts(accounts)
    return out.getvalue().splitlines()


HEADER = "client,available,held,total,locked"


class TestBasicScenarios:

    def test_deposits_and_withdrawals(self, write_input, index_mode):
        path = write_input(
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )
        assert replay_csv(path, index_mode) == [
            HEADER,
            "1,1.5,0,1.5,false",
            "2,2,0,2,false",
        ]

    def test_dispute_and_resolve(self, write_input, index_mode):
        path = write_input(
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        )
        assert replay_csv(path, index_mode) == [HEADER, "1,100,0,100,false"]

    def test_dispute_and_chargeback(self, write_input, index_mode):
        path = write_input(
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "deposit, 1, 2, 20.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 3, 50.0",
        )
        assert replay_csv(path, index_mode) == [HEADER, "1,20,0,20,true"]

    def test_open_dispute(self, write_input, index_mode):
        path = write_input(
            "type, client, tx, amount",
            "deposit, 1, 1, 3.3333",
            "deposit, 1, 2, 1.0001",
            "dispute, 1, 2",
        )
        assert replay_csv(path, index_mode) == [HEADER, "1,3.3333,1.0001,4.3334,false"]


class TestDisputeScenarioFile:
    """
    Ten clients each deposit 10 and withdraw their own id; clients 1 and 2
    dispute twice, client 1 resolves, client 2 charges back and then tries
    to deposit into the locked account.
    """

    @pytest.fixture
    def path(self, write_input):
        lines = ["type, client, tx, amount"]
        for i in range(1, 11):
            lines.append(f"deposit, {i}, {2 * i - 1}, 10")
            lines.append(f"withdrawal, {i}, {2 * i},  {i}")
        for i in (1, 2):
            lines.append(f"dispute, {i}, {2 * i - 1}")
            lines.append(f"dispute, {i}, {2 * i - 1}")
        lines.append("resolve, 1, 1")
        lines.append("chargeback, 2, 3")
        lines.append("deposit, 2, 3, 10")
        return write_input(*lines)

    def test_output(self, path, index_mode):
        rows = replay_csv(path, index_mode)
        assert rows[0] == HEADER
        assert rows[1] == "1,9,0,9,false"
        assert rows[2] == "2,-2,0,-2,true"
        for i in range(3, 11):
            assert rows[i] == f"{i},{10 - i},0,{10 - i},false"


class TestCrossClientAndUnknown:

    def test_cross_client_rows_ignored(self, write_input):
        path = write_input(
            "type,client,tx,amount",
            "deposit,1,1,5",
            "dispute,2,1",
            "chargeback,2,1",
            "withdrawal,2,2,1",
        )
        assert replay_csv(path) == [HEADER, "1,5,0,5,false", "2,0,0,0,false"]

    def test_unknown_and_withdrawal_references_ignored(self, write_input):
        path = write_input(
            "type,client,tx,amount",
            "deposit,1,1,5",
            "withdrawal,1,2,2",
            "dispute,1,2",
            "dispute,1,77",
            "resolve,1,1",
            "chargeback,1,1",
        )
        assert replay_csv(path) == [HEADER, "1,3,0,3,false"]


class TestPrecision:

    def test_many_small_deposits(self, write_input):
        lines = ["type,client,tx,amount"]
        lines += [f"deposit,1,{i},0.0001" for i in range(1, 1001)]
        assert replay_csv(write_input(*lines)) == [HEADER, "1,0.1,0,0.1,false"]

    def test_excess_precision_is_rounded_on_output(self, write_input):
        path = write_input(
            "type,client,tx,amount",
            "deposit,1,1,0.00005",
            "deposit,1,2,0.00001",
        )
        assert replay_csv(path) == [HEADER, "1,0.0001,0,0.0001,false"]
