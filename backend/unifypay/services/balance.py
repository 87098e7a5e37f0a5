"""Per-currency balance computed from confirmed transactions and deposits."""
import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional
from unifypay.errors import AggregationError, ValidationError
from unifypay.models import BALANCE_CURRENCIES
from unifypay.utils.timestamp import utcnow

logger = logging.getLogger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 100


def normalize_currency(currency: str) -> str:
    """Upper-case ``currency`` and check it against the queryable set."""
    code = (currency or "").strip().upper()
    if code not in BALANCE_CURRENCIES:
        raise ValidationError(f"Unsupported currency. Allowed: {', '.join(BALANCE_CURRENCIES)}")
    return code


def validate_limit(limit: int) -> int:
    if limit < MIN_LIMIT or limit > MAX_LIMIT:
        raise ValidationError(f"Limit must be between {MIN_LIMIT} and {MAX_LIMIT}")
    return limit


def _zero_balance(currency: str) -> Dict[str, Any]:
    return {
        "currency": currency,
        "current_balance": 0.0,
        "total_income": 0.0,
        "total_expense": 0.0,
        "total_deposits": 0.0,
    }


class BalanceAggregator:
    """Read-only projections over the transaction and deposit stores.

    Only ``confirmed`` records count. Nothing is persisted: every call
    recomputes from the stores.
    """

    def __init__(self, transaction_store, deposit_store):
        self.transactions = transaction_store
        self.deposits = deposit_store

    def calculate_balance(self, currency: str) -> Dict[str, Any]:
        """
        Balance = income + deposits - expense.

        Returns:
            Dictionary with current_balance, total_income, total_expense,
            total_deposits and currency
        """
        currency = normalize_currency(currency)
        try:
            totals = self.transactions.get_confirmed_totals(currency)
            deposits = self.deposits.get_confirmed_total(currency)
        except sqlite3.Error as e:
            raise AggregationError(f"Error calculating balance: {e}") from e

        income = totals.get("income") or 0.0
        expense = totals.get("expense") or 0.0
        return {
            "currency": currency,
            "current_balance": income + deposits - expense,
            "total_income": income,
            "total_expense": expense,
            "total_deposits": deposits,
        }

    def last_movement(self, currency: str) -> Optional[datetime]:
        """Creation time of the newest confirmed transaction or deposit."""
        currency = normalize_currency(currency)
        candidates = [
            self.transactions.latest_confirmed_created_at(currency),
            self.deposits.latest_confirmed_created_at(currency),
        ]
        candidates = [c for c in candidates if c is not None]
        return max(candidates) if candidates else None

    def recent_movements(self, currency: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Confirmed transactions and deposits interleaved, newest first."""
        currency = normalize_currency(currency)
        limit = validate_limit(limit)
        try:
            transactions = self.transactions.get_recent_transactions(
                limit, currency=currency, confirmed_only=True
            )
            deposits = self.deposits.get_recent_deposits(limit, currency=currency, confirmed_only=True)
        except sqlite3.Error as e:
            raise AggregationError(f"Error fetching movements: {e}") from e

        movements = [
            {
                "code": t.code,
                "description": t.description,
                "amount": t.amount,
                "kind": t.direction,
                "date": t.created_at,
                "category": "transaction",
            }
            for t in transactions
        ] + [
            {
                "code": d.code,
                "description": d.description,
                "amount": d.amount,
                "kind": "deposit",
                "date": d.created_at,
                "category": "deposit",
            }
            for d in deposits
        ]
        movements.sort(key=lambda m: m["date"], reverse=True)
        return movements[:limit]

    def statistics(self, currency: str) -> Dict[str, Any]:
        """Count, total and average per transaction direction and for deposits."""
        currency = normalize_currency(currency)
        return {
            "transactions": self.transactions.get_confirmed_stats(currency),
            "deposits": self.deposits.get_confirmed_stats(currency),
        }

    def summary(self, currency: str, limit: int = 5) -> Dict[str, Any]:
        currency = normalize_currency(currency)
        limit = validate_limit(limit)
        return {
            "balance": {
                **self.calculate_balance(currency),
                "last_movement": self.last_movement(currency),
            },
            "recent_movements": self.recent_movements(currency, limit),
            "statistics": self.statistics(currency),
            "queried_at": utcnow(),
        }

    def all_balances(self) -> List[Dict[str, Any]]:
        """Balance of every queryable currency.

        A currency that fails is reported with zeroed totals and an
        ``error`` message; the remaining currencies are still computed.
        """
        balances = []
        for currency in BALANCE_CURRENCIES:
            try:
                balances.append({
                    **self.calculate_balance(currency),
                    "last_movement": self.last_movement(currency),
                })
            except Exception as e:
                logger.warning("Balance for %s failed: %s", currency, e)
                balances.append({**_zero_balance(currency), "error": str(e)})
        return balances
