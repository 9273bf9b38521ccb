# app/routes_analyze.py
"""
Single-file analysis endpoint with the optional AI parsing path.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from models import TeamMember
from app.deps import get_db, get_rate_cache
from app.errors import NoTransactionsFound
from app.schemas import AnalyzeRequest
from app.services.ai_parser import analyze_statement
from app.services.classifier import build_context
from app.services.exchange_rates import ExchangeRateCache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/analyze")
def analyze(
    payload: AnalyzeRequest,
    db: Session = Depends(get_db),
    rate_cache: ExchangeRateCache = Depends(get_rate_cache),
):
    if not payload.csv_content:
        raise HTTPException(status_code=400, detail="No CSV content provided")

    ctx = build_context(m.beneficiary_account for m in db.query(TeamMember).all())
    result = analyze_statement(
        payload.csv_content,
        payload.file_name,
        payload.period,
        ctx,
        rate_cache.get_rates(),
    )

    if not result["transactions"]:
        raise HTTPException(status_code=400, detail=NoTransactionsFound().message)

    logger.info(
        "[analyze] %s: %d transactions (ai=%s)",
        payload.file_name,
        result["meta"]["total"],
        result["meta"]["used_ai"],
    )
    return result
