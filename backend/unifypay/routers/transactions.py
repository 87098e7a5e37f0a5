"""Transactions router: income and expense records."""
from fastapi import APIRouter
from unifypay.errors import NotFoundError
from unifypay.models import TransactionCreate, TransactionUpdate
from unifypay.routers import envelope
from unifypay.services.attachments import decode_data_url
from unifypay.storage.database import get_db


router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("")
async def list_transactions():
    """All transactions in insertion order."""
    transaction_store, _ = get_db()
    transactions = transaction_store.get_transactions()
    return envelope(transactions, count=len(transactions))


@router.get("/income")
async def list_income_transactions():
    transaction_store, _ = get_db()
    transactions = transaction_store.get_transactions(direction="income")
    return envelope(transactions, count=len(transactions))


@router.get("/expenses")
async def list_expense_transactions():
    transaction_store, _ = get_db()
    transactions = transaction_store.get_transactions(direction="expense")
    return envelope(transactions, count=len(transactions))


@router.get("/code/{code}")
async def get_transaction_by_code(code: str):
    transaction_store, _ = get_db()
    transaction = transaction_store.get_transaction_by_code(code)
    if not transaction:
        raise NotFoundError(f"Transaction with code '{code}' not found")
    return envelope(transaction)


@router.post("", status_code=201)
async def create_transaction(payload: TransactionCreate):
    """
    Create a transaction.

    ``code`` is generated from the direction (IN### / EX###) and ``id``
    from uuid4 when they are not supplied. An optional ``file`` is accepted
    as a base64 data URL.
    """
    transaction_store, _ = get_db()
    attachment = None
    if payload.file:
        attachment = decode_data_url(payload.file, payload.file_name, stem="attachment")
    transaction = transaction_store.add_transaction(payload, attachment)
    return envelope(transaction)


@router.get("/{transaction_id}")
async def get_transaction(transaction_id: str):
    transaction_store, _ = get_db()
    transaction = transaction_store.get_transaction(transaction_id)
    if not transaction:
        raise NotFoundError("Transaction not found")
    return envelope(transaction)


@router.put("/{transaction_id}")
async def update_transaction(transaction_id: str, payload: TransactionUpdate):
    """Partial update; code and direction cannot be changed."""
    transaction_store, _ = get_db()
    attachment = None
    if payload.file:
        attachment = decode_data_url(payload.file, payload.file_name, stem="attachment")
    transaction = transaction_store.update_transaction(transaction_id, payload.changes(), attachment)
    if not transaction:
        raise NotFoundError("Transaction not found")
    return envelope(transaction)


@router.delete("/{transaction_id}")
async def delete_transaction(transaction_id: str):
    """Delete a transaction. Deposits pointing at it keep a dangling reference."""
    transaction_store, _ = get_db()
    if not transaction_store.delete_transaction(transaction_id):
        raise NotFoundError("Transaction not found")
    return envelope({})
