from .database import TransactionStore, DepositStore, get_db

__all__ = ["TransactionStore", "DepositStore", "get_db"]
