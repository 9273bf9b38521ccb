# app/services/import_cleanup.py
#
# Delete operations on imported data. Callers own the commit.

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from models import Statement, Transaction

logger = logging.getLogger(__name__)


def replace_period_bank(db: Session, period: str, banks: Iterable[str]) -> int:
    """
    Remove existing transactions for (period, bank) before a re-import.

    Only rows with that exact pair are touched, so statements from other
    banks for the same period survive. Returns the number of rows removed.
    """
    removed = 0
    for bank in banks:
        removed += (
            db.query(Transaction)
            .filter(Transaction.period == period, Transaction.bank == bank)
            .delete(synchronize_session=False)
        )
    if removed:
        logger.info("[cleanup] replaced %d existing transactions for %s", removed, period)
    return removed


def replace_statement(db: Session, filename: str, bank: str, period: str, count: int) -> Statement:
    """Drop any statement row with the same filename and record a new one."""
    db.query(Statement).filter(Statement.filename == filename).delete(synchronize_session=False)
    stmt = Statement(filename=filename, bank=bank, period=period, transactions_count=count)
    db.add(stmt)
    return stmt


def delete_by_period(db: Session, period: str) -> int:
    """Delete every transaction and statement of one period."""
    removed = (
        db.query(Transaction)
        .filter(Transaction.period == period)
        .delete(synchronize_session=False)
    )
    db.query(Statement).filter(Statement.period == period).delete(synchronize_session=False)
    logger.info("[cleanup] deleted %d transactions for period %s", removed, period)
    return removed


def delete_all_data(db: Session) -> int:
    removed = db.query(Transaction).delete(synchronize_session=False)
    db.query(Statement).delete(synchronize_session=False)
    logger.info("[cleanup] deleted all data (%d transactions)", removed)
    return removed
