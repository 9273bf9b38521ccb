# app/routes_dashboard.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.deps import get_db
from app.services.reports import dashboard_summary

router = APIRouter()


@router.get("/dashboard")
def dashboard(
    year: Optional[int] = Query(None),
    months: List[int] = Query(default=[]),
    db: Session = Depends(get_db),
):
    """Profit overview for a year, or for selected months (1-12) of it."""
    summary = dashboard_summary(db, year, months)
    return {"year": year, "months": months, **summary}
