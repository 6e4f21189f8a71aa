"""Reading transaction rows from CSV and writing the account report."""

import csv
from typing import IO, Iterable, Iterator, List

import structlog
from pydantic import ValidationError

from errors import RowParseError
from models import AccountReport, Client, Transaction

logger = structlog.get_logger()

INPUT_FIELDS = ("type", "client", "tx", "amount")
OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


def read_transactions(stream: IO[str]) -> Iterator[Transaction]:
    """Yield one transaction per row, in file order.

    Fields are trimmed and the trailing ``amount`` column may be left out.
    Raises ``RowParseError`` on the first row that is not a valid transaction.
    """
    reader = csv.reader(stream)
    header = next(reader, None)
    if header is None:
        return

    columns = [name.strip() for name in header]
    missing = [name for name in INPUT_FIELDS if name not in columns]
    if missing:
        raise RowParseError(1, header, ValueError(f"missing columns: {', '.join(missing)}"))

    for record in reader:
        if not any(field.strip() for field in record):
            continue
        yield parse_row(reader.line_num, columns, record)


def parse_row(line: int, columns: List[str], record: List[str]) -> Transaction:
    if len(record) > len(columns):
        raise RowParseError(line, record, ValueError(f"expected at most {len(columns)} fields, got {len(record)}"))

    fields = {name: value.strip() for name, value in zip(columns, record)}
    try:
        return Transaction(
            id=fields.get("tx"),
            client_id=fields.get("client"),
            kind=fields.get("type"),
            amount=fields.get("amount"),
        )
    except ValidationError as e:
        logger.error("Malformed transaction row", line=line, row=record, error=str(e))
        raise RowParseError(line, record, e) from e


def write_accounts(clients: Iterable[Client], stream: IO[str]) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for client in clients:
        writer.writerow(AccountReport.from_client(client).to_row())
