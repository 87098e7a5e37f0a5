"""Dashboard: current-month summary, recent activity and all-time counts."""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from unifypay.models import Deposit, RelatedTransaction, Transaction
from unifypay.utils.timestamp import month_bounds, utcnow

RECENT_ACTIVITY_SIZE = 5


def totals_by_currency(records: Iterable[Any], field: str = "amount") -> Dict[str, float]:
    """Fold records into ``{currency: sum of field}``."""
    totals: Dict[str, float] = {}
    for record in records:
        amount = getattr(record, field, None) or getattr(record, "amount", None) or 0.0
        totals[record.currency] = totals.get(record.currency, 0.0) + amount
    return totals


def related_transaction(deposit: Deposit, transaction_store) -> Optional[RelatedTransaction]:
    """Resolve a deposit's weak reference; a dangling one resolves to None."""
    if not deposit.transaction_ref:
        return None
    tx = transaction_store.get_transaction(deposit.transaction_ref)
    if tx is None:
        return None
    return RelatedTransaction(id=tx.id, code=tx.code, description=tx.description)


def _category_summary(records: List[Any]) -> Dict[str, Any]:
    return {
        "count": len(records),
        "totals_by_currency": totals_by_currency(records),
        # last in query order, which is not necessarily the highest code
        "last_code": records[-1].code if records else None,
    }


def _transaction_activity(tx: Transaction) -> Dict[str, Any]:
    return {
        "code": tx.code,
        "description": tx.description,
        "amount": tx.amount,
        "currency": tx.currency,
        "status": tx.status,
        "date": tx.occurred_at,
        "created": tx.created_at,
    }


class DashboardAggregator:
    """Builds the dashboard view from both stores."""

    def __init__(self, transaction_store, deposit_store, now: Optional[datetime] = None):
        self.transactions = transaction_store
        self.deposits = deposit_store
        self.now = now

    def monthly_summary(self) -> Dict[str, Any]:
        """Records whose occurrence date falls in the current month."""
        start, end = month_bounds(self.now)
        income = self.transactions.get_transactions("income", start, end)
        expense = self.transactions.get_transactions("expense", start, end)
        deposits = self.deposits.get_deposits(start, end)
        return {
            "month": start.strftime("%B %Y"),
            "period": {"start": start, "end": end},
            "income": _category_summary(income),
            "expense": _category_summary(expense),
            "deposits": _category_summary(deposits),
        }

    def recent_activity(self) -> Dict[str, Any]:
        """Latest records by creation time, regardless of occurrence date."""
        income = self.transactions.get_recent_transactions(RECENT_ACTIVITY_SIZE, direction="income")
        expense = self.transactions.get_recent_transactions(RECENT_ACTIVITY_SIZE, direction="expense")
        deposits = self.deposits.get_recent_deposits(RECENT_ACTIVITY_SIZE)
        return {
            "income": [_transaction_activity(tx) for tx in income],
            "expense": [_transaction_activity(tx) for tx in expense],
            "deposits": [
                {
                    "code": d.code,
                    "description": d.description,
                    "amount": d.amount,
                    "currency": d.currency,
                    "status": d.status,
                    "recipient": d.recipient,
                    "deposit_type": d.deposit_type,
                    "date": d.occurred_at,
                    "created": d.created_at,
                    "related_transaction": self._related_summary(d),
                }
                for d in deposits
            ],
        }

    def general_statistics(self) -> Dict[str, Any]:
        return {
            "total_income_count": self.transactions.count_transactions("income"),
            "total_expense_count": self.transactions.count_transactions("expense"),
            "total_deposit_count": self.deposits.count_deposits(),
            "last_updated": utcnow(),
        }

    def build(self) -> Dict[str, Any]:
        return {
            "monthly_summary": self.monthly_summary(),
            "recent_activity": self.recent_activity(),
            "general_statistics": self.general_statistics(),
        }

    def _related_summary(self, deposit: Deposit) -> Optional[Dict[str, str]]:
        related = related_transaction(deposit, self.transactions)
        if related is None:
            return None
        return {"code": related.code, "description": related.description}
