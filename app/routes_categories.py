# app/routes_categories.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps import get_db, http_error
from app.errors import FinanceError
from app.schemas import CategoryIn, CategoryMigrate
from app.services import categories as category_service

router = APIRouter()


@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    return [c.to_dict() for c in category_service.list_categories(db)]


@router.post("/categories")
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    try:
        cat = category_service.create_category(db, payload.name, payload.color)
    except FinanceError as e:
        raise http_error(e)
    return cat.to_dict()


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db)):
    try:
        category_service.delete_category(db, category_id)
    except FinanceError as e:
        raise http_error(e)
    return {"deleted": category_id}


@router.post("/categories/{category_id}/migrate")
def migrate_category(category_id: str, payload: CategoryMigrate, db: Session = Depends(get_db)):
    """Move all transactions of a category to another one, then remove the category."""
    try:
        moved = category_service.migrate_category(db, category_id, payload.target)
    except FinanceError as e:
        raise http_error(e)
    return {"moved": moved, "target": payload.target, "deleted": category_id}
