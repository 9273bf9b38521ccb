# routes_transactions.py
"""
Routes related to the transaction ledger: listing, export, bulk category
edits and period-scoped deletes.
"""

import io
import logging
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models import Statement, Transaction
from app.deps import get_db
from app.schemas import BulkCategoryUpdate
from app.services.import_cleanup import delete_all_data, delete_by_period
from app.services.import_helpers import sort_periods_desc
from app.services.reports import filter_by_period
from app.services.rule_applier import create_rule

logger = logging.getLogger(__name__)

router = APIRouter()

EXPORT_COLUMNS = [
    "date", "description", "payee", "bank", "type", "category",
    "amount", "currency", "original_amount", "original_currency",
    "reference", "period",
]


def _filtered_query(
    db: Session,
    year: Optional[int],
    months: List[int],
    type: Optional[str],
    category: List[str],
    search: Optional[str],
):
    query = filter_by_period(db.query(Transaction), year, months)

    if type:
        query = query.filter(Transaction.type == type)

    if category:
        query = query.filter(Transaction.category.in_(category))

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Transaction.description.ilike(pattern),
                Transaction.payee.ilike(pattern),
                Transaction.reference.ilike(pattern),
            )
        )

    return query.order_by(Transaction.date.desc(), Transaction.created_at.desc())


@router.get("/transactions")
def list_transactions(
    year: Optional[int] = Query(None),
    months: List[int] = Query(default=[]),
    type: Optional[str] = Query(None),
    category: List[str] = Query(default=[]),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    rows = _filtered_query(db, year, months, type, category, search).all()

    income = sum(t.amount for t in rows if t.type == "income")
    expenses = sum(abs(t.amount) for t in rows if t.type == "expense")

    return {
        "count": len(rows),
        "income": income,
        "expenses": expenses,
        "transactions": [t.to_dict() for t in rows],
    }


@router.get("/transactions/export")
def export_transactions(
    year: Optional[int] = Query(None),
    months: List[int] = Query(default=[]),
    type: Optional[str] = Query(None),
    category: List[str] = Query(default=[]),
    search: Optional[str] = Query(None),
    ids: List[str] = Query(default=[]),
    db: Session = Depends(get_db),
):
    """CSV download of the filtered ledger (or of the selected ids)."""
    query = _filtered_query(db, year, months, type, category, search)
    if ids:
        query = query.filter(Transaction.id.in_(ids))

    df = pd.DataFrame([t.to_dict() for t in query.all()], columns=EXPORT_COLUMNS)

    buf = io.StringIO()
    df.to_csv(buf, index=False)

    return Response(
        content=buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="transactions.csv"'},
    )


@router.post("/transactions/bulk-category")
def bulk_update_category(
    payload: BulkCategoryUpdate,
    db: Session = Depends(get_db),
):
    """Set one category on many transactions; optionally remember it as a rule."""
    try:
        updated = 0
        if payload.transaction_ids:
            updated = (
                db.query(Transaction)
                .filter(Transaction.id.in_(payload.transaction_ids))
                .update({Transaction.category: payload.category}, synchronize_session=False)
            )

        rule = None
        if payload.keyword and payload.keyword.strip():
            rule = create_rule(db, payload.keyword, payload.category, "contains")

        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("[bulk-category] ERROR: %r", e)
        raise HTTPException(status_code=500, detail="Bulk update failed")

    return {"updated": updated, "rule": rule.to_dict() if rule else None}


@router.delete("/transactions/all")
def delete_everything(db: Session = Depends(get_db)):
    try:
        removed = delete_all_data(db)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("[delete] ERROR deleting all data: %r", e)
        raise HTTPException(status_code=500, detail="Delete failed")
    return {"deleted": removed}


@router.delete("/transactions")
def delete_period(
    period: str = Query(...),
    db: Session = Depends(get_db),
):
    try:
        removed = delete_by_period(db, period)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("[delete] ERROR deleting period %s: %r", period, e)
        raise HTTPException(status_code=500, detail="Delete failed")
    return {"deleted": removed, "period": period}


@router.get("/statements")
def list_statements(db: Session = Depends(get_db)):
    """Import history grouped by period, newest period first."""
    statements = db.query(Statement).order_by(Statement.created_at.desc()).all()

    counts = dict(
        db.query(Transaction.period, func.count(Transaction.id))
        .group_by(Transaction.period)
        .all()
    )

    by_period = {}
    for s in statements:
        by_period.setdefault(s.period, []).append(s.to_dict())

    return [
        {
            "period": period,
            "transactions_count": counts.get(period, 0),
            "statements": by_period[period],
        }
        for period in sort_periods_desc(by_period.keys())
    ]
