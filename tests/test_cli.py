import io

import pytest

from amount import Amount, ZERO
from csv_io import read_transactions, write_accounts
from errors import RowParseError
from config import Settings, get_settings_for_environment
from main import configure_logging, main, run
from models import Client, TransactionKind


def write_input(tmp_path, *lines):
    csv_file = tmp_path / "transactions.csv"
    csv_file.write_text("\n".join(["type, client, tx, amount", *lines]) + "\n")
    return str(csv_file)


class TestReadTransactions:
    """Test CSV row parsing."""

    def test_fields_are_trimmed(self):
        stream = io.StringIO("type, client, tx, amount\n   deposit   , 55 ,  123 ,  17.64  \n")
        (transaction,) = list(read_transactions(stream))

        assert transaction.kind == TransactionKind.deposit
        assert transaction.client_id == 55
        assert transaction.id == 123
        assert transaction.amount == Amount.parse("17.64")

    def test_amount_column_optional_for_disputes(self):
        stream = io.StringIO("type,client,tx,amount\ndeposit,1,1,10\ndispute,1,1\nresolve,1,1,\n")
        transactions = list(read_transactions(stream))

        assert [t.kind for t in transactions] == [
            TransactionKind.deposit, TransactionKind.dispute, TransactionKind.resolve
        ]
        assert transactions[1].amount == ZERO
        assert transactions[2].amount == ZERO

    def test_blank_lines_skipped(self):
        stream = io.StringIO("type,client,tx,amount\n\ndeposit,1,1,10\n\n")

        assert len(list(read_transactions(stream))) == 1

    def test_empty_input(self):
        assert list(read_transactions(io.StringIO(""))) == []

    @pytest.mark.parametrize("row", [
        "deposit,1,1,abc",
        "deposit,1,1,1.23456",
        "deposit,x,1,1",
        "deposit,1,-1,1",
        "deposit,70000,1,1",
        "bacon,1,1,1",
        "deposit,1,1",
        "deposit,1,1,1,extra",
        "deposit,1,1.0,1",
        "deposit,1,1_000,1",
        "deposit,1.0,1,1",
        "deposit,+1,1,1",
        "dispute,1,1e3,",
    ])
    def test_malformed_row(self, row):
        stream = io.StringIO(f"type,client,tx,amount\ndeposit,1,1,1\n{row}\n")
        transactions = read_transactions(stream)

        assert next(transactions).id == 1
        with pytest.raises(RowParseError) as exc_info:
            next(transactions)
        assert exc_info.value.line == 3

    def test_missing_header_column(self):
        stream = io.StringIO("type,client,amount\ndeposit,1,1\n")

        with pytest.raises(RowParseError) as exc_info:
            list(read_transactions(stream))
        assert exc_info.value.line == 1


class TestWriteAccounts:
    """Test account report rendering."""

    def test_write_accounts(self):
        stream = io.StringIO()
        write_accounts([
            Client(id=1, available="1.5"),
            Client(id=2, available="0", held="2.25", locked=True),
        ], stream)

        assert stream.getvalue() == (
            "client,available,held,total,locked\n"
            "1,1.5,0,1.5,false\n"
            "2,0,2.25,2.25,true\n"
        )


class TestMain:
    """Test the command line entry point."""

    def test_deposits_and_withdrawals(self, tmp_path, capsys):
        path = write_input(
            tmp_path,
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )

        assert main([path, "--log-level", "CRITICAL"]) == 0
        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,1.5,0,1.5,false\n"
            "2,2,0,2,false\n"
        )

    def test_dispute_without_reference(self, tmp_path, capsys):
        path = write_input(tmp_path, "deposit, 1, 1, 10", "dispute, 1, 2,")

        assert main([path, "--log-level", "CRITICAL"]) == 0
        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,10,0,10,false\n"
        )

    def test_chargeback_lifecycle(self, tmp_path, capsys):
        path = write_input(tmp_path, "deposit, 1, 1, 10", "dispute, 1, 1,", "chargeback, 1, 1,")

        assert main([path, "--log-level", "CRITICAL"]) == 0
        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,0,0,0,true\n"
        )

    def test_malformed_row_aborts(self, tmp_path, capsys):
        path = write_input(tmp_path, "deposit, 1, 1, 10", "deposit, 1, 2, ten")

        assert main([path, "--log-level", "CRITICAL"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "line 3" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.csv"), "--log-level", "CRITICAL"]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_argument(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code != 0
        assert "usage" in capsys.readouterr().err


class TestSettings:
    """Test environment profiles."""

    def test_profiles(self):
        assert get_settings_for_environment("production").log_format == "json"
        assert get_settings_for_environment("Development").log_level == "DEBUG"
        assert get_settings_for_environment("testing").report_order == "client_id"
        assert type(get_settings_for_environment("staging")) is Settings

    def test_rejections_logged_to_stderr(self, tmp_path, capsys):
        path = write_input(tmp_path, "withdrawal, 1, 1, 5")
        settings = get_settings_for_environment("production")
        configure_logging(settings)

        assert run(path, settings) == 0
        captured = capsys.readouterr()
        assert captured.out == "client,available,held,total,locked\n"
        assert "InsufficientFunds" in captured.err
