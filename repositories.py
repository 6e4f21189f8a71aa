from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from models import Client, TransactionRecord


class AccountRepository(ABC):
    @abstractmethod
    def get(self, client_id: int) -> Optional[Client]:
        """Get account state. Returns None if the account has never been stored."""
        pass

    @abstractmethod
    def save(self, client: Client) -> None:
        """Store account state, replacing any previous state for the same id."""
        pass

    @abstractmethod
    def all(self) -> List[Client]:
        """All accounts in the order they were first stored."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get total number of accounts."""
        pass


class TransactionRepository(ABC):
    @abstractmethod
    def get(self, tx_id: int) -> Optional[TransactionRecord]:
        """Get a referenceable transaction by id."""
        pass

    @abstractmethod
    def add(self, record: TransactionRecord) -> bool:
        """Store a referenceable transaction. Returns False and keeps the original if the id is taken."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Get total number of referenceable transactions."""
        pass


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self.accounts: Dict[int, Client] = {}

    def get(self, client_id: int) -> Optional[Client]:
        return self.accounts.get(client_id)

    def save(self, client: Client) -> None:
        self.accounts[client.id] = client

    def all(self) -> List[Client]:
        return list(self.accounts.values())

    def count(self) -> int:
        return len(self.accounts)


class InMemoryTransactionRepository(TransactionRepository):
    def __init__(self):
        self.records: Dict[int, TransactionRecord] = {}

    def get(self, tx_id: int) -> Optional[TransactionRecord]:
        return self.records.get(tx_id)

    def add(self, record: TransactionRecord) -> bool:
        tx_id = record.transaction.id
        if tx_id in self.records:
            return False
        self.records[tx_id] = record
        return True

    def count(self) -> int:
        return len(self.records)
