"""Balance router: views derived from confirmed records."""
from typing import Optional
from fastapi import APIRouter, Query
from unifypay.routers import envelope
from unifypay.services.balance import BalanceAggregator
from unifypay.storage.database import get_db
from unifypay.utils.timestamp import utcnow

router = APIRouter(prefix="/api/balance", tags=["balance"])


def _aggregator() -> BalanceAggregator:
    return BalanceAggregator(*get_db())


def _pick_limit(limit: Optional[int], limite: Optional[int], default: int) -> int:
    """``limit`` wins; ``limite`` is the legacy spelling of the same parameter."""
    if limit is not None:
        return limit
    return default if limite is None else limite


@router.get("")
async def get_all_balances():
    """Balances for USD, EUR, PEN, MXN and COP; failures are reported per currency."""
    body = envelope(_aggregator().all_balances())
    body["queried_at"] = utcnow()
    return body


@router.get("/{currency}")
async def get_balance(currency: str):
    aggregator = _aggregator()
    balance = aggregator.calculate_balance(currency)
    return envelope({
        **balance,
        "last_movement": aggregator.last_movement(currency),
        "queried_at": utcnow(),
    })


@router.get("/{currency}/movements")
async def get_recent_movements(
    currency: str,
    limit: Optional[int] = Query(None, description="Number of movements, 1 to 100 (default 10)"),
    limite: Optional[int] = Query(None, include_in_schema=False),
):
    movements = _aggregator().recent_movements(currency, _pick_limit(limit, limite, 10))
    return envelope(movements, count=len(movements))


@router.get("/{currency}/summary")
async def get_balance_summary(
    currency: str,
    limit: Optional[int] = Query(None, description="Number of recent movements, 1 to 100 (default 5)"),
    limite: Optional[int] = Query(None, include_in_schema=False),
):
    """Balance, recent movements and statistics in one response."""
    return envelope(_aggregator().summary(currency, _pick_limit(limit, limite, 5)))
