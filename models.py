from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum
import re
from typing import Dict, Tuple

from amount import Amount, ZERO
from errors import InsufficientFunds

U16_MAX = 2 ** 16 - 1
U64_MAX = 2 ** 64 - 1

_ID_DIGITS = re.compile(r"[0-9]+")


class TransactionKind(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    dispute = "dispute"
    resolve = "resolve"
    chargeback = "chargeback"

    @property
    def is_referenceable(self) -> bool:
        return self in (TransactionKind.deposit, TransactionKind.withdrawal)


class DisputeStatus(str, Enum):
    normal = "normal"
    disputed = "disputed"
    resolved = "resolved"
    charged_back = "charged_back"


# kind -> (required status of the referenced transaction, status after the transition)
DISPUTE_TRANSITIONS: Dict[TransactionKind, Tuple[DisputeStatus, DisputeStatus]] = {
    TransactionKind.dispute: (DisputeStatus.normal, DisputeStatus.disputed),
    TransactionKind.resolve: (DisputeStatus.disputed, DisputeStatus.resolved),
    TransactionKind.chargeback: (DisputeStatus.disputed, DisputeStatus.charged_back),
}


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, le=U64_MAX, description="Transaction identifier")
    client_id: int = Field(..., ge=0, le=U16_MAX, description="Account identifier")
    kind: TransactionKind = Field(..., description="Transaction type")
    amount: Amount = Field(
        ZERO,
        description="Amount for deposits and withdrawals, ignored by dispute, resolve and chargeback"
    )

    @field_validator('id', 'client_id', mode='before')
    @classmethod
    def validate_plain_integer(cls, v):
        if isinstance(v, bool):
            raise ValueError('identifier must be an integer')
        if isinstance(v, str):
            if not _ID_DIGITS.fullmatch(v):
                raise ValueError('identifier must contain only digits')
            return int(v)
        return v

    @model_validator(mode='before')
    @classmethod
    def default_missing_amount(cls, data):
        if not isinstance(data, dict):
            return data
        amount = data.get('amount')
        if amount is None or amount == "":
            if data.get('kind') in (TransactionKind.deposit, TransactionKind.withdrawal):
                raise ValueError(f"{data['kind']} requires an amount")
            data = {**data, 'amount': ZERO}
        return data


class Client(BaseModel):
    """Balances and lock flag of a single account.

    Every transition returns a new ``Client``; instances are never changed in place.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=0, le=U16_MAX)
    available: Amount = ZERO
    held: Amount = ZERO
    locked: bool = False

    @property
    def total(self) -> Amount:
        return self.available + self.held

    def deposit(self, amount: Amount) -> "Client":
        return self.model_copy(update={'available': self.available + amount})

    def withdrawal(self, amount: Amount) -> "Client":
        if amount > self.available:
            raise InsufficientFunds(
                f"cannot withdraw {amount}, only {self.available} available",
                client_id=self.id
            )
        return self.model_copy(update={'available': self.available - amount})

    def dispute(self, amount: Amount) -> "Client":
        return self.model_copy(update={
            'available': self.available - amount,
            'held': self.held + amount,
        })

    def resolve(self, amount: Amount) -> "Client":
        return self.model_copy(update={
            'available': self.available + amount,
            'held': self.held - amount,
        })

    def chargeback(self, amount: Amount) -> "Client":
        return self.model_copy(update={
            'held': self.held - amount,
            'locked': True,
        })


class TransactionRecord(BaseModel):
    """A deposit or withdrawal kept so later disputes can find its amount."""

    transaction: Transaction
    status: DisputeStatus = DisputeStatus.normal

    @property
    def client_id(self) -> int:
        return self.transaction.client_id

    @property
    def amount(self) -> Amount:
        return self.transaction.amount


class AccountReport(BaseModel):
    client: int = Field(..., description="Account identifier")
    available: Amount
    held: Amount
    total: Amount
    locked: bool

    @classmethod
    def from_client(cls, client: Client) -> "AccountReport":
        return cls(
            client=client.id,
            available=client.available,
            held=client.held,
            total=client.total,
            locked=client.locked,
        )

    def to_row(self) -> list:
        return [
            self.client,
            str(self.available),
            str(self.held),
            str(self.total),
            str(self.locked).lower(),
        ]


class LedgerStats(BaseModel):
    applied: int = Field(0, description="Transactions applied to an account")
    rejected: int = Field(0, description="Transactions skipped because they could not be applied")
    rejections: Dict[str, int] = Field(default_factory=dict, description="Skipped transactions by reason")
    accounts_count: int = Field(0, description="Accounts in the ledger")
    transactions_recorded: int = Field(0, description="Deposits and withdrawals available for dispute")

    @property
    def processed(self) -> int:
        return self.applied + self.rejected
