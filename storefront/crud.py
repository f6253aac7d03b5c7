from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional

from . import models, schemas
from . import config
from .auth import hash_password, verify_password
from .errors import AccountInactive, AuthenticationFailed, Conflict, NotFound, ValidationFailed
from .utils import get_logger, sanitize_input

logger = get_logger(__name__)

ROLES = ("user", "admin")
USER_STATUSES = ("active", "inactive")

# Business rule: amount stored rounded to 2 decimals, non-negative

def round_amount(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def check_password_policy(password: str):
    min_len = config.get_settings().min_password_length
    if len(password) < min_len:
        raise ValidationFailed(f"Password must be at least {min_len} characters")


# -------------------- Users --------------------

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def register_user(db: Session, data: schemas.UserRegister) -> models.User:
    """Create a user together with its profile in one transaction."""
    check_password_policy(data.password)
    if get_user_by_email(db, data.email):
        raise Conflict("User already exists")

    user = models.User(email=data.email, password_hash=hash_password(data.password), role="user")
    user.profile = models.Profile(first_name=data.first_name, last_name=data.last_name, phone=data.phone)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # lost a race against a concurrent registration for the same email
        db.rollback()
        raise Conflict("User already exists") from e
    db.refresh(user)
    logger.info("registered user id=%s", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> models.User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("failed login for %s", email)
        raise AuthenticationFailed("Invalid credentials")
    if user.status != "active":
        logger.warning("login refused for inactive user id=%s", user.id)
        raise AccountInactive("Account is inactive")
    return user


def change_password(db: Session, user: models.User, current_password: str, new_password: str) -> models.User:
    check_password_policy(new_password)
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationFailed("Current password incorrect")
    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user id=%s changed password", user.id)
    return user


def reset_password(db: Session, user_id: int, new_password: str) -> models.User:
    check_password_policy(new_password)
    user = db.get(models.User, user_id)
    if not user:
        raise NotFound("User not found")
    user.password_hash = hash_password(new_password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("password reset for user id=%s", user.id)
    return user


def update_user_role(db: Session, user_id: int, role: str) -> models.User:
    if role not in ROLES:
        raise ValidationFailed("role must be one of: " + ", ".join(ROLES))
    user = db.get(models.User, user_id)
    if not user:
        raise NotFound("User not found")
    user.role = role
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_profile(db: Session, user_id: int) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.user_id == user_id).first()


def update_profile(db: Session, user_id: int, data: schemas.ProfileUpdate) -> models.Profile:
    profile = get_profile(db, user_id)
    if not profile:
        # users created outside registration (e.g. seeded admins) may lack one
        profile = models.Profile(user_id=user_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


# -------------------- Customers --------------------

def _customer_view(user: models.User) -> dict:
    profile = user.profile
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "is_active": user.status == "active",
        "created_at": user.created_at,
        "first_name": profile.first_name if profile else None,
        "last_name": profile.last_name if profile else None,
        "phone": profile.phone if profile else None,
    }


def list_customers(db: Session) -> List[dict]:
    users = db.query(models.User).filter(models.User.role == "user").order_by(models.User.id).all()
    return [_customer_view(u) for u in users]


def set_customer_status(db: Session, user_id: int, is_active: bool) -> dict:
    user = db.get(models.User, user_id)
    # admins are not customers and cannot be locked out through this route
    if not user or user.role != "user":
        raise NotFound("Customer not found")
    user.status = "active" if is_active else "inactive"
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("customer id=%s status set to %s", user.id, user.status)
    return _customer_view(user)


# -------------------- Categories --------------------

def list_categories(db: Session) -> List[models.Category]:
    return db.query(models.Category).order_by(models.Category.name).all()


def get_category(db: Session, category_id: int) -> Optional[models.Category]:
    return db.get(models.Category, category_id)


def create_category(db: Session, data: schemas.CategoryCreate) -> models.Category:
    if db.query(models.Category).filter(models.Category.name == data.name).first():
        raise Conflict("Category already exists")
    category = models.Category(name=data.name, description=data.description)
    db.add(category)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Category already exists") from e
    db.refresh(category)
    return category


# -------------------- Products --------------------

NULLABLE_PRODUCT_FIELDS = ("description", "image_url", "category_id")

def list_products(db: Session, category_id: Optional[int] = None) -> List[models.Product]:
    q = db.query(models.Product)
    if category_id is not None:
        q = q.filter(models.Product.category_id == category_id)
    return q.order_by(models.Product.created_at.desc(), models.Product.id.desc()).all()


def list_featured_products(db: Session) -> List[models.Product]:
    return (
        db.query(models.Product)
        .filter(models.Product.is_featured.is_(True))
        .order_by(models.Product.created_at.desc(), models.Product.id.desc())
        .all()
    )


def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    return db.get(models.Product, product_id)


def _check_category(db: Session, category_id: Optional[int]):
    if category_id is not None and not db.get(models.Category, category_id):
        raise ValidationFailed("foreign key violation: category does not exist")


def create_product(db: Session, data: schemas.ProductCreate) -> models.Product:
    _check_category(db, data.category_id)
    values = data.model_dump()
    values["price"] = round_amount(data.price)
    product = models.Product(**values)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product_id: int, data: schemas.ProductUpdate) -> Optional[models.Product]:
    product = db.get(models.Product, product_id)
    if not product:
        return None
    changes = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_PRODUCT_FIELDS
    }
    if "category_id" in changes:
        _check_category(db, changes["category_id"])
    if "price" in changes:
        changes["price"] = round_amount(changes["price"])
    for field, value in changes.items():
        setattr(product, field, value)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> bool:
    product = db.get(models.Product, product_id)
    if not product:
        return False
    db.delete(product)
    db.commit()
    return True


# -------------------- Reviews --------------------

def list_reviews(db: Session, product_id: int) -> List[models.Review]:
    return (
        db.query(models.Review)
        .filter(models.Review.product_id == product_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .all()
    )


def create_review(db: Session, product_id: int, user_id: int, data: schemas.ReviewCreate) -> models.Review:
    if not db.get(models.Product, product_id):
        raise NotFound("Product not found")
    comment = sanitize_input(data.comment) if data.comment is not None else None
    review = models.Review(product_id=product_id, user_id=user_id, rating=data.rating, comment=comment or None)
    db.add(review)
    db.commit()
    db.refresh(review)
    return review
