# app/services/rule_applier.py
"""
Retroactive application of user keyword rules to persisted transactions.

Each changed row is committed on its own: a failure on one row is logged,
rolled back and skipped, and the rows already written stay written. Running
it twice in a row updates nothing the second time.
"""

import logging
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import CategorizationRule, Transaction
from app.services.categorizer import MATCH_TYPES, UserRuleSet, normalize_keyword

logger = logging.getLogger(__name__)


def load_rule_set(db: Session) -> UserRuleSet:
    rules = (
        db.query(CategorizationRule)
        .order_by(CategorizationRule.priority.desc(), CategorizationRule.created_at.desc())
        .all()
    )
    return UserRuleSet(rules)


def apply_rules_to_existing(db: Session, rules: Optional[Iterable[Any]] = None) -> int:
    """
    Re-categorize stored transactions with the first matching rule.

    `rules` defaults to the persisted rule store. Returns the number of rows
    whose category actually changed.
    """
    rule_set = UserRuleSet(rules) if rules is not None else load_rule_set(db)
    if not len(rule_set):
        return 0

    rows = db.query(Transaction.id, Transaction.description, Transaction.payee, Transaction.category).all()
    updated = 0

    for tx_id, description, payee, current in rows:
        match = rule_set.first_match(description, payee)
        if match is None or match.category == current:
            continue

        try:
            db.query(Transaction).filter(Transaction.id == tx_id).update(
                {Transaction.category: match.category},
                synchronize_session=False,
            )
            db.commit()
            updated += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("[apply-rules] failed to update transaction %s: %r", tx_id, e)

    logger.info("[apply-rules] %d of %d transactions re-categorized", updated, len(rows))
    return updated


def create_rule(db: Session, keyword: str, category: str, match_type: str = "contains") -> CategorizationRule:
    """
    Add a rule to the store (caller commits).

    The keyword is stored lower-cased and trimmed; priority is count + 1 so
    the newest rule is evaluated first.
    """
    rule = CategorizationRule(
        keyword=normalize_keyword(keyword),
        category=category,
        match_type=match_type if match_type in MATCH_TYPES else "contains",
        priority=db.query(CategorizationRule).count() + 1,
    )
    db.add(rule)
    db.flush()
    return rule
