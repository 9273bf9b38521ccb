# app/services/categories.py
"""
Category set management.

Default categories are seeded once; deleting one only hides it. `Other` and
`Payroll` can be neither deleted nor hidden.
"""

import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Category, Transaction
from app.errors import DuplicateCategoryError, FinanceError, ProtectedCategoryError
from app.services.categorizer import DEFAULT_CATEGORY

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Ads", "purple"),
    ("Software", "cyan"),
    ("Payroll", "blue"),
    ("Fees", "amber"),
    ("Shipping", "orange"),
    ("Products", "pink"),
    ("Taxes", "red"),
    ("Operations", "indigo"),
    ("Refunds", "emerald"),
    ("Other", "zinc"),
]

PROTECTED_CATEGORIES = {"Other", "Payroll"}


def seed_default_categories(db: Session) -> int:
    """Insert missing default categories. Returns how many were added."""
    existing = {name.lower() for (name,) in db.query(Category.name).all()}
    added = 0
    for name, color in DEFAULT_CATEGORIES:
        if name.lower() in existing:
            continue
        db.add(Category(name=name, color=color, is_default=True))
        added += 1
    if added:
        db.commit()
        logger.info("Seeded %d default categories", added)
    return added


def list_categories(db: Session) -> List[Category]:
    return (
        db.query(Category)
        .filter(Category.hidden.is_(False))
        .order_by(Category.is_default.desc(), Category.name)
        .all()
    )


def create_category(db: Session, name: str, color: str = "zinc") -> Category:
    name = name.strip()
    found = db.query(Category).filter(func.lower(Category.name) == name.lower()).first()
    if found is not None:
        if found.hidden:
            # Re-adding a hidden default brings it back
            found.hidden = False
            found.color = color or found.color
            db.commit()
            return found
        raise DuplicateCategoryError(name)

    cat = Category(name=name, color=color or "zinc", is_default=False)
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat


def _get(db: Session, category_id: str) -> Category:
    cat = db.get(Category, category_id)
    if cat is None:
        raise FinanceError(f"Unknown category {category_id!r}")
    return cat


def _remove(db: Session, cat: Category) -> None:
    if cat.name in PROTECTED_CATEGORIES:
        raise ProtectedCategoryError(cat.name)

    # Defaults are only hidden so they can be restored by name
    if cat.is_default:
        cat.hidden = True
    else:
        db.delete(cat)


def delete_category(db: Session, category_id: str) -> None:
    _remove(db, _get(db, category_id))
    db.commit()


def migrate_category(db: Session, category_id: str, target: str) -> int:
    """
    Move every transaction of one category to `target`, then remove the
    category (hidden for defaults). Returns rows moved.

    Protected categories are refused before anything is moved.
    """
    cat = _get(db, category_id)
    if cat.name in PROTECTED_CATEGORIES:
        raise ProtectedCategoryError(cat.name)
    target = (target or "").strip() or DEFAULT_CATEGORY
    if target.lower() == cat.name.lower():
        raise FinanceError(f"Cannot migrate {cat.name!r} into itself")

    moved = (
        db.query(Transaction)
        .filter(Transaction.category == cat.name)
        .update({Transaction.category: target}, synchronize_session=False)
    )
    _remove(db, cat)
    db.commit()
    logger.info("Moved %d transactions from %s to %s and removed the category", moved, cat.name, target)
    return moved
