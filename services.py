from typing import Iterable, List, Optional

import structlog

from amount import ZERO
from config import Settings, get_settings
from errors import (
    ClientLocked,
    ClientMismatch,
    DuplicateTransaction,
    InvalidDisputeState,
    NegativeTransaction,
    ReferencedTransactionNonexistent,
    TransactionError,
)
from models import (
    DISPUTE_TRANSITIONS,
    Client,
    LedgerStats,
    Transaction,
    TransactionKind,
    TransactionRecord,
)
from repositories import (
    AccountRepository,
    InMemoryAccountRepository,
    InMemoryTransactionRepository,
    TransactionRepository,
)

logger = structlog.get_logger()


class Ledger:
    """Applies transactions, in the order given, to in-memory account state.

    Deposits and withdrawals are kept as referenceable records so that later
    dispute, resolve and chargeback rows can find the amount they refer to.
    A failed transaction leaves both the accounts and the history untouched.
    """

    def __init__(
        self,
        account_repo: Optional[AccountRepository] = None,
        transaction_repo: Optional[TransactionRepository] = None,
        settings: Optional[Settings] = None,
    ):
        self.account_repo = account_repo if account_repo is not None else InMemoryAccountRepository()
        self.transaction_repo = transaction_repo if transaction_repo is not None else InMemoryTransactionRepository()
        self.settings = settings if settings is not None else get_settings()
        self.stats = LedgerStats()

    def mutate(self, transaction: Transaction) -> Client:
        """Apply one transaction and return the account's new state.

        Raises a ``TransactionError`` subclass if the transaction cannot be applied.
        """
        if transaction.amount < ZERO:
            raise NegativeTransaction(
                f"negative amount {transaction.amount}",
                tx_id=transaction.id,
                client_id=transaction.client_id
            )

        client = self.account_repo.get(transaction.client_id)
        if client is None:
            client = Client(id=transaction.client_id)

        if client.locked:
            raise ClientLocked(
                f"client {client.id} is locked",
                tx_id=transaction.id,
                client_id=client.id
            )

        if transaction.kind.is_referenceable:
            updated = self._apply_direct(client, transaction)
        elif transaction.kind in DISPUTE_TRANSITIONS:
            updated = self._apply_referenced(client, transaction)
        else:
            raise ValueError(f"Unhandled transaction kind: {transaction.kind!r}")

        self.account_repo.save(updated)

        logger.debug(
            "Transaction applied",
            tx_id=transaction.id,
            client_id=updated.id,
            kind=transaction.kind.value,
            available=str(updated.available),
            held=str(updated.held),
            locked=updated.locked
        )

        return updated

    def _apply_direct(self, client: Client, transaction: Transaction) -> Client:
        """Deposit or withdraw, then record the transaction for later disputes."""
        if self.settings.reject_duplicate_ids and self.transaction_repo.get(transaction.id) is not None:
            raise DuplicateTransaction(
                f"transaction id {transaction.id} is already recorded",
                tx_id=transaction.id,
                client_id=client.id
            )

        try:
            if transaction.kind == TransactionKind.deposit:
                updated = client.deposit(transaction.amount)
            else:
                updated = client.withdrawal(transaction.amount)
        except TransactionError as e:
            e.tx_id = transaction.id
            raise

        if not self.transaction_repo.add(TransactionRecord(transaction=transaction)):
            logger.info(
                "Transaction id already recorded, keeping the original",
                tx_id=transaction.id,
                client_id=client.id,
                kind=transaction.kind.value
            )

        return updated

    def _apply_referenced(self, client: Client, transaction: Transaction) -> Client:
        """Dispute, resolve or charge back a previously recorded transaction."""
        record = self.transaction_repo.get(transaction.id)
        if record is None:
            raise ReferencedTransactionNonexistent(
                f"transaction {transaction.id} not found",
                tx_id=transaction.id,
                client_id=client.id
            )

        if record.client_id != client.id:
            raise ClientMismatch(
                f"transaction {transaction.id} belongs to client {record.client_id}",
                tx_id=transaction.id,
                client_id=client.id
            )

        required, next_status = DISPUTE_TRANSITIONS[transaction.kind]
        if record.status != required:
            raise InvalidDisputeState(
                f"cannot {transaction.kind.value} transaction {transaction.id} in status {record.status.value}",
                tx_id=transaction.id,
                client_id=client.id
            )

        if transaction.kind == TransactionKind.dispute:
            updated = client.dispute(record.amount)
        elif transaction.kind == TransactionKind.resolve:
            updated = client.resolve(record.amount)
        else:
            updated = client.chargeback(record.amount)

        record.status = next_status
        return updated

    def process(self, transactions: Iterable[Transaction]) -> LedgerStats:
        """Apply every transaction in order, skipping the ones that fail.

        Only ``TransactionError`` is handled here; anything raised while
        producing the transactions (a malformed input row) aborts the batch.
        """
        for transaction in transactions:
            try:
                self.mutate(transaction)
            except TransactionError as e:
                self.stats.rejected += 1
                self.stats.rejections[e.reason] = self.stats.rejections.get(e.reason, 0) + 1
                logger.warning(
                    "Transaction rejected",
                    tx_id=transaction.id,
                    client_id=transaction.client_id,
                    kind=transaction.kind.value,
                    reason=e.reason,
                    detail=str(e)
                )
            else:
                self.stats.applied += 1

        self.stats.accounts_count = self.account_repo.count()
        self.stats.transactions_recorded = self.transaction_repo.count()

        logger.info(
            "Batch processed",
            applied=self.stats.applied,
            rejected=self.stats.rejected,
            accounts_count=self.stats.accounts_count,
            transactions_recorded=self.stats.transactions_recorded
        )

        return self.stats

    def accounts(self) -> List[Client]:
        """Accounts in report order."""
        clients = self.account_repo.all()
        if self.settings.report_order == "client_id":
            clients.sort(key=lambda client: client.id)
        return clients


# Factory function for dependency injection
def get_ledger(settings: Optional[Settings] = None) -> Ledger:
    return Ledger(InMemoryAccountRepository(), InMemoryTransactionRepository(), settings)
