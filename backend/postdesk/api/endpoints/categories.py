from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from postdesk.core.database import get_db
from postdesk.core.auth import get_current_user
from postdesk.core.errors import ConflictError, NotFound, ValidationError
from postdesk.models.category import Category
from postdesk.models.user import User
from postdesk.schemas.category import (
    Category as CategorySchema,
    CategoryCreate,
    CategoryUpdate,
)
from postdesk.schemas.post import Message
from postdesk.services.slugs import generate_slug

router = APIRouter()
logger = logging.getLogger(__name__)

SLUG_TAKEN = "Category with this slug already exists"


def _get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFound("Category not found")
    return category


def _slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Category.id).filter(Category.slug == slug)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _commit(db: Session, category: Category) -> Category:
    # The pre-read can race with a concurrent insert; the unique index decides
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(SLUG_TAKEN)
    db.refresh(category)
    return category


@router.get("", response_model=List[CategorySchema])
def get_categories(db: Session = Depends(get_db)):
    """All categories, alphabetical by name."""
    return db.query(Category).order_by(Category.name).all()


@router.get("/{category_id}", response_model=CategorySchema)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return _get_category(db, category_id)


@router.post("", response_model=CategorySchema, status_code=201)
def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create a category.

    The slug is derived from the name when omitted and must not already exist.
    """
    slug = generate_slug(category.slug or category.name)
    if not slug:
        raise ValidationError("Slug is required")

    if _slug_taken(db, slug):
        raise ConflictError(SLUG_TAKEN)

    db_category = Category(
        name=category.name.strip(),
        slug=slug,
        description=category.description.strip() if category.description else None,
    )
    db.add(db_category)
    db_category = _commit(db, db_category)
    logger.info(f"Category '{db_category.slug}' created by user {current_user.id}")
    return db_category


@router.put("/{category_id}", response_model=CategorySchema)
def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = _get_category(db, category_id)

    update_data = category_update.model_dump(exclude_unset=True)
    if update_data.get("slug") is not None:
        slug = generate_slug(update_data["slug"])
        if not slug:
            raise ValidationError("Slug is required")
        if slug != category.slug and _slug_taken(db, slug, exclude_id=category.id):
            raise ConflictError(SLUG_TAKEN)
        update_data["slug"] = slug
    else:
        update_data.pop("slug", None)

    if update_data.get("name") is None:
        update_data.pop("name", None)
    else:
        name = update_data["name"].strip()
        if not name:
            raise ValidationError("Name is required")
        update_data["name"] = name

    if "description" in update_data:
        description = update_data["description"]
        update_data["description"] = description.strip() if description else None

    for key, value in update_data.items():
        setattr(category, key, value)

    return _commit(db, category)


@router.delete("/{category_id}", response_model=Message)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a category.

    Posts keep existing; they are only detached from this category.
    """
    category = _get_category(db, category_id)
    db.delete(category)
    db.commit()
    logger.info(f"Category {category_id} deleted by user {current_user.id}")
    return {"message": "Category deleted successfully"}
