"""Deposits router."""
import base64
from typing import Any, Dict
from fastapi import APIRouter, Response
from unifypay.errors import NotFoundError, ValidationError
from unifypay.models import Deposit, DepositCreate, DepositUpdate
from unifypay.routers import envelope
from unifypay.services.attachments import content_disposition, decode_data_url
from unifypay.services.dashboard import related_transaction
from unifypay.storage.database import get_db

router = APIRouter(prefix="/api/deposits", tags=["deposits"])


def _with_related(deposit: Deposit, transaction_store) -> Dict[str, Any]:
    """Deposit plus its resolved related transaction (or None)."""
    return {
        **deposit.model_dump(),
        "related_transaction": related_transaction(deposit, transaction_store),
    }


def _check_reference(transaction_ref, transaction_store) -> None:
    if transaction_ref and transaction_store.get_transaction(transaction_ref) is None:
        raise ValidationError("Referenced transaction not found")


@router.get("")
async def list_deposits():
    transaction_store, deposit_store = get_db()
    deposits = deposit_store.get_deposits()
    return envelope([_with_related(d, transaction_store) for d in deposits], count=len(deposits))


@router.get("/code/{code}")
async def get_deposit_by_code(code: str):
    transaction_store, deposit_store = get_db()
    deposit = deposit_store.get_deposit_by_code(code)
    if not deposit:
        raise NotFoundError(f"Deposit with code '{code}' not found")
    return envelope(_with_related(deposit, transaction_store))


@router.post("", status_code=201)
async def create_deposit(payload: DepositCreate):
    """
    Create a deposit.

    ``code`` (DE###) and ``id`` are generated when absent. A
    ``transaction_ref`` must point at an existing transaction. The receipt
    may be sent as a base64 data URL in ``file``.
    """
    transaction_store, deposit_store = get_db()
    _check_reference(payload.transaction_ref, transaction_store)
    attachment = None
    if payload.file:
        attachment = decode_data_url(payload.file, payload.file_name, stem="receipt")
    deposit = deposit_store.add_deposit(payload, attachment)
    return envelope(_with_related(deposit, transaction_store))


@router.get("/{deposit_id}")
async def get_deposit(deposit_id: str):
    transaction_store, deposit_store = get_db()
    deposit = deposit_store.get_deposit(deposit_id)
    if not deposit:
        raise NotFoundError("Deposit not found")
    return envelope(_with_related(deposit, transaction_store))


@router.get("/{deposit_id}/attachment")
async def get_deposit_attachment(deposit_id: str):
    """Raw bytes of the stored receipt."""
    _, deposit_store = get_db()
    if deposit_store.get_deposit(deposit_id) is None:
        raise NotFoundError("Deposit not found")
    attachment = deposit_store.get_attachment(deposit_id)
    if attachment is None:
        raise NotFoundError("Deposit has no attachment")
    return Response(
        content=base64.b64decode(attachment.data),
        media_type=attachment.mime_type,
        headers={"Content-Disposition": content_disposition(attachment.name)},
    )


@router.put("/{deposit_id}")
async def update_deposit(deposit_id: str, payload: DepositUpdate):
    """Partial update; the code cannot be changed."""
    transaction_store, deposit_store = get_db()
    _check_reference(payload.transaction_ref, transaction_store)
    attachment = None
    if payload.file:
        attachment = decode_data_url(payload.file, payload.file_name, stem="receipt")
    deposit = deposit_store.update_deposit(deposit_id, payload.changes(), attachment)
    if not deposit:
        raise NotFoundError("Deposit not found")
    return envelope(_with_related(deposit, transaction_store))


@router.delete("/{deposit_id}")
async def delete_deposit(deposit_id: str):
    _, deposit_store = get_db()
    if not deposit_store.delete_deposit(deposit_id):
        raise NotFoundError("Deposit not found")
    return envelope({})
