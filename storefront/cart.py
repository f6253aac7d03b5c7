"""Shopping cart operations.

A user holds at most one row per product. Repeated adds for the same product
are folded into that row by accumulating the quantity, using a single
``INSERT ... ON CONFLICT DO UPDATE`` statement where the database supports it
so that concurrent adds cannot lose an increment.
"""
from typing import List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from . import models
from .errors import NotFound, ValidationFailed
from .utils import get_logger

logger = get_logger(__name__)

_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _check_quantity(quantity: int):
    if quantity <= 0:
        raise ValidationFailed("quantity must be positive")


def _find(db: Session, user_id: int, product_id: int) -> Optional[models.CartItem]:
    return (
        db.query(models.CartItem)
        .populate_existing()
        .filter(models.CartItem.user_id == user_id, models.CartItem.product_id == product_id)
        .first()
    )


def list_items(db: Session, user_id: int) -> List[models.CartItem]:
    return db.query(models.CartItem).filter(models.CartItem.user_id == user_id).order_by(models.CartItem.id).all()


def add_to_cart(db: Session, user_id: int, product_id: int, quantity: int) -> models.CartItem:
    _check_quantity(quantity)
    if not db.get(models.Product, product_id):
        raise NotFound("Product not found")

    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(models.CartItem).values(user_id=user_id, product_id=product_id, quantity=quantity)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "product_id"],
            set_={"quantity": models.CartItem.quantity + stmt.excluded.quantity},
        )
        db.execute(stmt)
    else:
        # other backends: read-then-write, the unique constraint still rejects duplicates
        existing = _find(db, user_id, product_id)
        if existing:
            existing.quantity = existing.quantity + quantity
            db.add(existing)
        else:
            db.add(models.CartItem(user_id=user_id, product_id=product_id, quantity=quantity))
    db.commit()

    item = _find(db, user_id, product_id)
    logger.debug("cart user=%s product=%s quantity=%s", user_id, product_id, item.quantity)
    return item


def update_quantity(db: Session, user_id: int, cart_item_id: int, quantity: int) -> Optional[models.CartItem]:
    """Overwrite the quantity of one of the user's cart rows."""
    _check_quantity(quantity)
    item = db.get(models.CartItem, cart_item_id)
    if not item or item.user_id != user_id:
        return None
    item.quantity = quantity
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, user_id: int, cart_item_id: int) -> bool:
    item = db.get(models.CartItem, cart_item_id)
    if not item or item.user_id != user_id:
        return False
    db.delete(item)
    db.commit()
    return True


def clear(db: Session, user_id: int, commit: bool = True) -> bool:
    """Delete every cart row of the user; True if there was anything to delete.

    With ``commit=False`` the delete joins the caller's transaction.
    """
    deleted = (
        db.query(models.CartItem)
        .filter(models.CartItem.user_id == user_id)
        .delete(synchronize_session="fetch")
    )
    if commit:
        db.commit()
    return deleted > 0
