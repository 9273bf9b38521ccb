# app/services/reports.py
# Role: Read-side aggregations for the dashboard and payroll views.
#       All amounts are in the reporting currency; expenses are reported as
#       positive magnitudes.

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from models import TeamMember, Transaction
from app.services.classifier import EXPENSE, INCOME
from app.services.descriptions import normalize_vendor
from app.services.import_helpers import period_labels_for

# Description markers for known payment processors, checked in order
INCOME_SOURCES = [
    ("cartpanda", "Cartpanda"),
    ("shopify", "Shopify"),
    ("stripe", "Stripe"),
    ("paypal", "PayPal"),
]

TOP_VENDORS_LIMIT = 5


# -------------------------------------------------------------------
# Filtering
# -------------------------------------------------------------------

def filter_by_period(query: Query, year: Optional[int], months: Optional[Iterable[int]] = None) -> Query:
    """
    Restrict a Transaction query to a year, or to some months of a year.

    Rows without a period label are always kept.
    """
    if year is None:
        return query

    labels = period_labels_for(year, months)
    if labels:
        return query.filter(or_(Transaction.period.is_(None), Transaction.period.in_(labels)))
    return query.filter(or_(Transaction.period.is_(None), Transaction.period.like(f"% {year}")))


# -------------------------------------------------------------------
# Grouping helpers
# -------------------------------------------------------------------

def income_source(tx: Transaction) -> str:
    desc = (tx.description or "").lower()
    for marker, label in INCOME_SOURCES:
        if marker in desc:
            return label
    if tx.category == "Refunds":
        return "Refunds"
    if tx.payee:
        return tx.payee
    return tx.bank


def _sorted_groups(groups: Dict[str, Dict[str, Any]], key_name: str) -> List[Dict[str, Any]]:
    items = [{key_name: k, **v} for k, v in groups.items()]
    return sorted(items, key=lambda g: -g["total"])


def _group(rows: Iterable[Transaction], key, value) -> Dict[str, Dict[str, Any]]:
    groups: Dict[str, Dict[str, Any]] = {}
    for tx in rows:
        k = key(tx)
        if k not in groups:
            groups[k] = {"total": 0.0, "count": 0}
        groups[k]["total"] += value(tx)
        groups[k]["count"] += 1
    return groups


# -------------------------------------------------------------------
# Views
# -------------------------------------------------------------------

def dashboard_summary(db: Session, year: Optional[int] = None, months: Optional[Iterable[int]] = None) -> Dict[str, Any]:
    rows: List[Transaction] = filter_by_period(db.query(Transaction), year, months).all()

    income_rows = [t for t in rows if t.type == INCOME]
    expense_rows = [t for t in rows if t.type == EXPENSE]

    income = sum(t.amount for t in income_rows)
    expenses = sum(abs(t.amount) for t in expense_rows)
    profit = income - expenses
    margin = round(profit / income * 100, 1) if income > 0 else 0.0

    by_category = _group(expense_rows, lambda t: t.category or "Other", lambda t: abs(t.amount))
    by_source = _group(income_rows, income_source, lambda t: t.amount)
    by_bank = _group(income_rows, lambda t: t.bank or "Unknown", lambda t: t.amount)

    # Mis-categorized sales are not vendors
    vendor_rows = [t for t in expense_rows if t.category != "Sales"]
    vendors: Dict[str, Dict[str, Any]] = {}
    for t in vendor_rows:
        name = normalize_vendor(t.payee or t.description or "Unknown")
        if name not in vendors:
            vendors[name] = {"total": 0.0, "count": 0, "category": t.category}
        vendors[name]["total"] += abs(t.amount)
        vendors[name]["count"] += 1

    currencies: Dict[str, Dict[str, Any]] = {}
    for t in income_rows:
        code = t.original_currency or t.currency or "USD"
        original = abs(t.original_amount) if t.original_amount is not None else abs(t.amount)
        if code not in currencies:
            currencies[code] = {"total": 0.0, "original_total": 0.0, "count": 0}
        currencies[code]["total"] += abs(t.amount)
        currencies[code]["original_total"] += original
        currencies[code]["count"] += 1

    return {
        "income": income,
        "expenses": expenses,
        "profit": profit,
        "margin": margin,
        "transaction_count": len(rows),
        "expenses_by_category": _sorted_groups(by_category, "category"),
        "income_by_source": _sorted_groups(by_source, "source"),
        "income_by_bank": _sorted_groups(by_bank, "bank"),
        "top_vendors": _sorted_groups(vendors, "vendor")[:TOP_VENDORS_LIMIT],
        "income_by_currency": _sorted_groups(currencies, "currency"),
    }


def payroll_view(db: Session, period: str) -> Dict[str, Any]:
    """Base + variable pay per member for one period, next to Payroll transactions."""
    members = db.query(TeamMember).order_by(TeamMember.name).all()

    lines = []
    for m in members:
        comp = m.compensation_map().get(period, {})
        variable = comp.get("variable", 0.0) or 0.0
        lines.append({
            "id": m.id,
            "name": m.name,
            "role": m.role,
            "base": m.base_salary,
            "variable": variable,
            "note": comp.get("note", ""),
            "total": m.base_salary + variable,
        })

    tx_count, tx_total = (
        db.query(
            func.count(Transaction.id),
            func.coalesce(func.sum(func.abs(Transaction.amount)), 0.0),
        )
        .filter(Transaction.period == period, Transaction.category == "Payroll")
        .one()
    )

    return {
        "period": period,
        "members": lines,
        "total_payroll": sum(line["total"] for line in lines),
        "transactions_total": float(tx_total),
        "transactions_count": int(tx_count),
    }
