from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.config import ConfigDict
from typing import Annotated, Optional
from decimal import Decimal

from .models import MAX_ID, OrderStatus

# ids and counts are stored as signed 64-bit integers
RowId = Annotated[int, Field(gt=0, le=MAX_ID)]
Quantity = Annotated[int, Field(gt=0, le=MAX_ID)]


# -------------------- Users / auth --------------------

class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=40)

    @field_validator("email", mode="before")
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    def lower_email(cls, v: str):
        return v.lower()


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    def strip_email(cls, v: str):
        return v.strip().lower()


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    id: int
    email: str
    role: str = "user"
    status: str = "active"
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    user: UserRead
    token: str


class ProfileRead(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=40)


class ProfileResponse(BaseModel):
    user: UserRead
    profile: Optional[ProfileRead] = None


class CustomerRead(BaseModel):
    id: int
    email: str
    role: str
    status: str
    is_active: bool
    created_at: Optional[datetime] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class CustomerStatusUpdate(BaseModel):
    is_active: bool


# -------------------- Catalog --------------------

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=Decimal("0"))
    image_url: Optional[str] = None
    category_id: Optional[RowId] = None
    stock: int = Field(default=0, ge=0, le=MAX_ID)
    is_featured: bool = False


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=Decimal("0"))
    image_url: Optional[str] = None
    category_id: Optional[RowId] = None
    stock: Optional[int] = Field(default=None, ge=0, le=MAX_ID)
    is_featured: Optional[bool] = None


class ProductRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    stock: int = 0
    is_featured: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)


class ReviewRead(BaseModel):
    id: int
    product_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# -------------------- Cart --------------------

class CartItemCreate(BaseModel):
    product_id: RowId
    quantity: Quantity = 1


class CartItemUpdate(BaseModel):
    quantity: Quantity


class CartItemRead(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)


# -------------------- Orders --------------------

class OrderItemCreate(BaseModel):
    product_id: RowId
    product_name: str = Field(..., min_length=1, max_length=200)
    product_image: Optional[str] = None
    quantity: Quantity
    price: Decimal = Field(..., ge=Decimal("0"))


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = Field(..., min_length=1)
    shipping_address: Optional[str] = Field(default=None, max_length=500)


class OrderItemRead(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_image: Optional[str] = None
    quantity: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    user_id: int
    order_number: str
    status: OrderStatus
    total_amount: Decimal
    shipping_address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: list[OrderItemRead] = []

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
