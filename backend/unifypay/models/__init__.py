from .common import (
    Attachment,
    RelatedTransaction,
    BALANCE_CURRENCIES,
    CONFIRMED,
)
from .transaction import Transaction, TransactionCreate, TransactionUpdate
from .deposit import Deposit, DepositCreate, DepositUpdate

__all__ = [
    "Attachment",
    "RelatedTransaction",
    "BALANCE_CURRENCIES",
    "CONFIRMED",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
    "Deposit",
    "DepositCreate",
    "DepositUpdate",
]
