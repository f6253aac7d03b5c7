from fastapi import FastAPI, Depends, HTTPException, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Annotated, List, Optional
from .db import Base, engine, get_db
from . import cart, config, crud, models, orders, schemas
from .auth import create_access_token
from .dependencies import get_current_user, require_admin
from .errors import DomainError
from .models import MAX_ID
from .utils import configure_logging, get_logger

# Refuse to start without a signing secret
settings = config.get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

# Create tables if not existing
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Storefront API")

# row ids are positive and fit a signed 64-bit INTEGER
PathId = Annotated[int, Path(gt=0, le=MAX_ID)]


def _http_error(e: DomainError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


def _auth_response(user: models.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(user=schemas.UserRead.model_validate(user), token=create_access_token(user.id))


# -------------------- Error boundary --------------------

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    return JSONResponse({"error": message}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.get("/health")
def health():
    return {"status": "ok"}


# -------------------- Auth --------------------

@app.post("/auth/register", response_model=schemas.AuthResponse, status_code=201)
def register(payload: schemas.UserRegister, db: Session = Depends(get_db)):
    try:
        user = crud.register_user(db, payload)
    except DomainError as e:
        raise _http_error(e)
    return _auth_response(user)


@app.post("/auth/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    try:
        user = crud.authenticate(db, payload.email, payload.password)
    except DomainError as e:
        raise _http_error(e)
    return _auth_response(user)


@app.post("/auth/change-password")
def change_password(payload: schemas.ChangePasswordRequest, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        crud.change_password(db, user, payload.current_password, payload.new_password)
    except DomainError as e:
        raise _http_error(e)
    return {"success": True}


@app.get("/auth/profile", response_model=schemas.ProfileResponse)
def get_profile(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = crud.get_profile(db, user.id)
    return schemas.ProfileResponse(
        user=schemas.UserRead.model_validate(user),
        profile=schemas.ProfileRead.model_validate(profile) if profile else None,
    )


@app.put("/auth/profile", response_model=schemas.ProfileRead)
def update_profile(payload: schemas.ProfileUpdate, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.update_profile(db, user.id, payload)


@app.post("/admin/users/{user_id}/reset-password")
def admin_reset_password(user_id: PathId, payload: schemas.ResetPasswordRequest, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        crud.reset_password(db, user_id, payload.new_password)
    except DomainError as e:
        raise _http_error(e)
    logger.info("admin id=%s reset password of user id=%s", admin.id, user_id)
    return {"success": True}


# -------------------- Products --------------------

@app.get("/products", response_model=List[schemas.ProductRead])
def list_products(category_id: Optional[int] = Query(default=None, gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    return crud.list_products(db, category_id=category_id)


@app.get("/products/featured", response_model=List[schemas.ProductRead])
def list_featured_products(db: Session = Depends(get_db)):
    return crud.list_featured_products(db)


@app.get("/products/{product_id}", response_model=schemas.ProductRead)
def get_product(product_id: PathId, db: Session = Depends(get_db)):
    product = crud.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.post("/products", response_model=schemas.ProductRead, status_code=201)
def create_product(payload: schemas.ProductCreate, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return crud.create_product(db, payload)
    except DomainError as e:
        raise _http_error(e)


@app.put("/products/{product_id}", response_model=schemas.ProductRead)
def update_product(product_id: PathId, payload: schemas.ProductUpdate, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        product = crud.update_product(db, product_id, payload)
    except DomainError as e:
        raise _http_error(e)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.delete("/products/{product_id}")
def delete_product(product_id: PathId, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    if not crud.delete_product(db, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True}


# -------------------- Categories --------------------

@app.get("/categories", response_model=List[schemas.CategoryRead])
def list_categories(db: Session = Depends(get_db)):
    return crud.list_categories(db)


@app.post("/categories", response_model=schemas.CategoryRead, status_code=201)
def create_category(payload: schemas.CategoryCreate, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return crud.create_category(db, payload)
    except DomainError as e:
        raise _http_error(e)


# -------------------- Reviews --------------------

@app.get("/products/{product_id}/reviews", response_model=List[schemas.ReviewRead])
def list_reviews(product_id: PathId, db: Session = Depends(get_db)):
    return crud.list_reviews(db, product_id)


@app.post("/products/{product_id}/reviews", response_model=schemas.ReviewRead, status_code=201)
def create_review(product_id: PathId, payload: schemas.ReviewCreate, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return crud.create_review(db, product_id, user.id, payload)
    except DomainError as e:
        raise _http_error(e)


# -------------------- Cart --------------------

@app.get("/cart", response_model=List[schemas.CartItemRead])
def get_cart(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return cart.list_items(db, user.id)


@app.post("/cart", response_model=schemas.CartItemRead)
def add_to_cart(payload: schemas.CartItemCreate, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return cart.add_to_cart(db, user.id, payload.product_id, payload.quantity)
    except DomainError as e:
        raise _http_error(e)


@app.put("/cart/{item_id}", response_model=schemas.CartItemRead)
def update_cart_item(item_id: PathId, payload: schemas.CartItemUpdate, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        item = cart.update_quantity(db, user.id, item_id, payload.quantity)
    except DomainError as e:
        raise _http_error(e)
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


@app.delete("/cart/{item_id}")
def remove_cart_item(item_id: PathId, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not cart.remove_item(db, user.id, item_id):
        raise HTTPException(status_code=404, detail="Cart item not found")
    return {"success": True}


@app.delete("/cart")
def clear_cart(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": cart.clear(db, user.id)}


# -------------------- Orders --------------------

@app.get("/orders", response_model=List[schemas.OrderRead])
def list_orders(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return orders.list_user_orders(db, user.id)


@app.get("/orders/{order_id}", response_model=schemas.OrderRead)
def get_order(order_id: PathId, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    order = orders.get_order_for_user(db, user.id, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.post("/orders", response_model=schemas.OrderRead, status_code=201)
def place_order(payload: schemas.OrderCreate, user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return orders.place_order(db, user.id, payload)


@app.get("/admin/orders", response_model=List[schemas.OrderRead])
def admin_list_orders(admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    return orders.list_all_orders(db)


@app.put("/admin/orders/{order_id}/status", response_model=schemas.OrderRead)
def admin_update_order_status(order_id: PathId, payload: schemas.OrderStatusUpdate, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return orders.update_status(db, order_id, payload.status)
    except DomainError as e:
        raise _http_error(e)


# -------------------- Customers --------------------

@app.get("/customers", response_model=List[schemas.CustomerRead])
def list_customers(admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.list_customers(db)


@app.patch("/customers/{user_id}/status", response_model=schemas.CustomerRead)
def update_customer_status(user_id: PathId, payload: schemas.CustomerStatusUpdate, admin: models.User = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return crud.set_customer_status(db, user_id, payload.is_active)
    except DomainError as e:
        raise _http_error(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
