"""Category endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..deps import get_db
from ..services import blogs as blog_service

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=list[schemas.Category])
def list_categories(db: Session = Depends(get_db)) -> list[schemas.Category]:
    return [schemas.Category.model_validate(c) for c in blog_service.list_categories(db)]


@router.post("", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Category:
    category = blog_service.create_category(
        db, payload.name, description=payload.description, color=payload.color
    )
    return schemas.Category.model_validate(category)
