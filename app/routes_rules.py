# app/routes_rules.py
"""
Categorization rule store, rule suggestions and the retroactive apply.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from models import CategorizationRule, Transaction
from app.deps import get_db
from app.schemas import RuleIn, RuleUpdate
from app.services.categorizer import UserRuleSet, normalize_keyword, uncategorized_patterns
from app.services.rule_applier import apply_rules_to_existing, create_rule, load_rule_set

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_rule(db: Session, rule_id: str) -> CategorizationRule:
    rule = db.get(CategorizationRule, rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule


@router.get("/rules")
def list_rules(db: Session = Depends(get_db)):
    rule_set = load_rule_set(db)
    transactions = db.query(Transaction.description, Transaction.payee).all()
    return [
        {**r._asdict(), "matches": rule_set.match_count(r, transactions)}
        for r in rule_set.rules
    ]


@router.post("/rules")
def add_rule(payload: RuleIn, db: Session = Depends(get_db)):
    if not normalize_keyword(payload.keyword):
        raise HTTPException(status_code=400, detail="Keyword must not be blank")

    rule = create_rule(db, payload.keyword, payload.category, payload.match_type)
    db.commit()
    db.refresh(rule)
    logger.info("Rule created: %r -> %s", rule.keyword, rule.category)
    return rule.to_dict()


@router.patch("/rules/{rule_id}")
def update_rule(rule_id: str, payload: RuleUpdate, db: Session = Depends(get_db)):
    rule = _get_rule(db, rule_id)

    if payload.keyword is not None:
        keyword = normalize_keyword(payload.keyword)
        if not keyword:
            raise HTTPException(status_code=400, detail="Keyword must not be blank")
        rule.keyword = keyword
    if payload.category is not None:
        rule.category = payload.category
    if payload.match_type is not None:
        rule.match_type = payload.match_type

    db.commit()
    return rule.to_dict()


@router.delete("/rules/{rule_id}")
def delete_rule(rule_id: str, db: Session = Depends(get_db)):
    rule = _get_rule(db, rule_id)
    db.delete(rule)
    db.commit()
    return {"deleted": rule_id}


@router.get("/rules/suggestions")
def rule_suggestions(db: Session = Depends(get_db)):
    """Descriptions still in `Other` that no rule covers, most frequent first."""
    transactions = db.query(Transaction).filter(Transaction.category == "Other").all()
    rules = db.query(CategorizationRule).all()
    return uncategorized_patterns(transactions, rules)


@router.post("/rules/apply")
def apply_rules(db: Session = Depends(get_db)):
    return {"updated": apply_rules_to_existing(db)}


@router.post("/rules/preview")
def preview_rule(payload: RuleIn, db: Session = Depends(get_db)):
    """How many stored transactions a candidate rule would match."""
    candidate = {
        "keyword": normalize_keyword(payload.keyword),
        "category": payload.category,
        "match_type": payload.match_type,
    }
    transactions = db.query(Transaction.description, Transaction.payee).all()
    return {"matches": UserRuleSet().match_count(candidate, transactions)}
