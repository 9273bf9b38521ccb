# app/deps.py
# Role: Shared application-level dependencies and globals.
#       Provides the in-memory store for pending CSV upload batches, the
#       process-wide exchange-rate cache, and the standard SQLAlchemy session dependency.

"""
Shared dependencies and globals for the finance dashboard.
"""

from typing import Any, Dict, Generator

from fastapi import HTTPException
from sqlalchemy.orm import Session

from db import SessionLocal
from app.errors import FinanceError
from app.services.exchange_rates import ExchangeRateCache

# -------------------------------------------------------------------
# In-memory batches for CSV import flow
# -------------------------------------------------------------------

# Parsed-but-unconfirmed uploads, keyed by batch_id.
#
# Structure:
# PENDING_BATCHES[batch_id] = {
#     "period": "Nov 2025",
#     "filenames": [...],
#     "transactions": {tx_id: tx_dict},
#     "order": [tx_id, ...],
#     "banks": [...],
#     "warnings": [...],
#     "summary": {...},
# }
PENDING_BATCHES: Dict[str, Dict[str, Any]] = {}

# -------------------------------------------------------------------
# Exchange rates
# -------------------------------------------------------------------

# One cache per process; tests override get_rate_cache.
EXCHANGE_RATES = ExchangeRateCache()


def get_rate_cache() -> ExchangeRateCache:
    return EXCHANGE_RATES


# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# Errors
# -------------------------------------------------------------------

def http_error(e: FinanceError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)
