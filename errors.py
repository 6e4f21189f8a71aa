from typing import Optional


class AmountError(ValueError):
    """Base exception for fixed-point amount parsing failures."""
    pass


class NoInput(AmountError):
    """Raised when an amount string is empty."""
    pass


class Malformed(AmountError):
    """Raised when an amount string is not of the form [-]digits[.digits]."""
    pass


class PrecisionTooHigh(AmountError):
    """Raised when an amount carries more than 4 fractional digits."""
    pass


class RowParseError(Exception):
    """Raised when an input row cannot be turned into a transaction. Fatal for the run."""

    def __init__(self, line: int, row, cause: Exception):
        self.line = line
        self.row = row
        self.cause = cause
        super().__init__(f"line {line}: cannot parse row {row!r}: {cause}")


class TransactionError(Exception):
    """Base exception for transactions that are well formed but cannot be applied."""

    def __init__(self, message: str, tx_id: Optional[int] = None, client_id: Optional[int] = None):
        self.tx_id = tx_id
        self.client_id = client_id
        super().__init__(message)

    @property
    def reason(self) -> str:
        return type(self).__name__


class NegativeTransaction(TransactionError):
    pass


class ClientLocked(TransactionError):
    pass


class InsufficientFunds(TransactionError):
    pass


class ReferencedTransactionNonexistent(TransactionError):
    pass


class InvalidDisputeState(TransactionError):
    """Raised when a dispute, resolve or chargeback is out of sequence for the referenced transaction."""
    pass


class ClientMismatch(TransactionError):
    """Raised when a dispute-class row references a transaction owned by another client."""
    pass


class DuplicateTransaction(TransactionError):
    pass
