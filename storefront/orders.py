"""Order placement and order status management.

Placing an order writes the order row, one row per purchased line and
clears the buyer's cart. All of it happens in one transaction: if any step
fails the whole placement is rolled back and the cart is left untouched.

Line items are snapshots. Product id, name, image, quantity and price are
copied from the request as-is so later catalog edits never change an
existing order.
"""
import secrets
import time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from . import cart, models, schemas
from .crud import round_amount
from .errors import InvalidTransition, NotFound
from .models import OrderStatus
from .utils import get_logger

logger = get_logger(__name__)

INITIAL_STATUS = OrderStatus.pending

ALLOWED_TRANSITIONS = {
    OrderStatus.pending: {OrderStatus.processing, OrderStatus.cancelled},
    OrderStatus.processing: {OrderStatus.shipped, OrderStatus.cancelled},
    OrderStatus.shipped: {OrderStatus.delivered},
    OrderStatus.delivered: set(),
    OrderStatus.cancelled: set(),
}


def generate_order_number() -> str:
    # millisecond timestamp plus a random suffix; the column is also unique
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


def _build_item(order: models.Order, line: schemas.OrderItemCreate) -> models.OrderItem:
    return models.OrderItem(
        order=order,
        product_id=line.product_id,
        product_name=line.product_name,
        product_image=line.product_image,
        quantity=line.quantity,
        price=round_amount(line.price),
    )


def place_order(db: Session, user_id: int, payload: schemas.OrderCreate) -> models.Order:
    total = sum((round_amount(line.price) * line.quantity for line in payload.items), Decimal("0"))
    try:
        order = models.Order(
            user_id=user_id,
            order_number=generate_order_number(),
            status=INITIAL_STATUS,
            total_amount=round_amount(total),
            shipping_address=payload.shipping_address,
        )
        db.add(order)
        db.flush()
        for line in payload.items:
            db.add(_build_item(order, line))
        db.flush()
        cart.clear(db, user_id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("order placement rolled back for user id=%s", user_id)
        raise
    db.refresh(order)
    logger.info("order %s placed by user id=%s with %d items", order.order_number, user_id, len(payload.items))
    return order


def list_user_orders(db: Session, user_id: int) -> List[models.Order]:
    return (
        db.query(models.Order)
        .options(selectinload(models.Order.items))
        .filter(models.Order.user_id == user_id)
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def list_all_orders(db: Session) -> List[models.Order]:
    return (
        db.query(models.Order)
        .options(selectinload(models.Order.items))
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def get_order_for_user(db: Session, user_id: int, order_id: int) -> Optional[models.Order]:
    order = db.get(models.Order, order_id)
    if not order or order.user_id != user_id:
        return None
    return order


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def update_status(db: Session, order_id: int, new_status: OrderStatus) -> models.Order:
    order = db.get(models.Order, order_id)
    if not order:
        raise NotFound("Order not found")
    current = OrderStatus(order.status)
    if not can_transition(current, new_status):
        raise InvalidTransition(f"cannot change order status from {current.value} to {new_status.value}")
    order.status = new_status
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("order %s status %s -> %s", order.order_number, current.value, new_status.value)
    return order
