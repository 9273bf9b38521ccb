# app/routes_team.py
"""
Team members, per-period variable pay and the payroll view.

Member beneficiary accounts feed the classifier: outgoing Revolut transfers
to one of them are booked as Payroll.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from models import Compensation, TeamMember
from app.deps import get_db
from app.schemas import CompensationIn, TeamMemberIn
from app.services.import_helpers import period_label, previous_month
from app.services.reports import payroll_view

router = APIRouter()


def _get_member(db: Session, member_id: str) -> TeamMember:
    member = db.get(TeamMember, member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Team member not found")
    return member


@router.get("/team")
def list_team(db: Session = Depends(get_db)):
    return [m.to_dict() for m in db.query(TeamMember).order_by(TeamMember.name).all()]


@router.post("/team")
def add_member(payload: TeamMemberIn, db: Session = Depends(get_db)):
    account = (payload.beneficiary_account or "").strip() or None
    member = TeamMember(
        name=payload.name.strip(),
        role=payload.role.strip(),
        base_salary=payload.base_salary,
        beneficiary_account=account,
    )
    db.add(member)
    db.commit()
    db.refresh(member)
    return member.to_dict()


@router.delete("/team/{member_id}")
def delete_member(member_id: str, db: Session = Depends(get_db)):
    member = _get_member(db, member_id)
    db.delete(member)
    db.commit()
    return {"deleted": member_id}


@router.put("/team/{member_id}/compensation")
def set_compensation(member_id: str, payload: CompensationIn, db: Session = Depends(get_db)):
    """Create or update the variable pay of one member for one period."""
    member = _get_member(db, member_id)

    comp = (
        db.query(Compensation)
        .filter(Compensation.member_id == member.id, Compensation.period == payload.period)
        .first()
    )
    if comp is None:
        comp = Compensation(member_id=member.id, period=payload.period)
        db.add(comp)

    comp.variable_amount = payload.variable_amount
    comp.note = payload.note
    db.commit()
    db.refresh(member)
    return member.to_dict()


@router.get("/payroll")
def payroll(
    period: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if not period:
        year, month = previous_month()
        period = period_label(month, year)
    return payroll_view(db, period)
