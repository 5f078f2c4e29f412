from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from app.db.session import get_session
from app.routers.auth import get_current_user_id_optional, resolve_user_id
from app.schemas import CartCleared, CartItemCreate, CartItemRemoved, CartItemUpdate, CartLineRead, CartRead
from app.services.cart import CartService

router = APIRouter()

def get_cart_service(session: Session = Depends(get_session)) -> CartService:
    return CartService(session)

@router.get("/", response_model=CartRead)
def get_cart(
    user_id: Optional[str] = Query(None, alias="userId"),
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: CartService = Depends(get_cart_service)
):
    """Get user's cart items"""
    return service.list_for_user(resolve_user_id(user_id, token_user_id))

@router.post("/", response_model=CartLineRead, status_code=status.HTTP_201_CREATED)
def add_to_cart(
    cart_item: CartItemCreate,
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: CartService = Depends(get_cart_service)
):
    """Add item to cart"""
    user_id = resolve_user_id(cart_item.user_id, token_user_id)
    return service.add_or_merge(user_id, cart_item.product_id, cart_item.quantity)

@router.delete("/", response_model=CartCleared)
def clear_cart(
    user_id: Optional[str] = Query(None, alias="userId"),
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: CartService = Depends(get_cart_service)
):
    """Clear entire cart"""
    deleted = service.clear_for_user(resolve_user_id(user_id, token_user_id))
    return CartCleared(deleted_count=deleted)

@router.put("/{cart_item_id}", response_model=CartLineRead)
def update_cart_item(
    cart_item_id: int,
    cart_update: CartItemUpdate,
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: CartService = Depends(get_cart_service)
):
    """Update cart item quantity"""
    return service.update_quantity(cart_item_id, cart_update.quantity, user_id=token_user_id)

@router.delete("/{cart_item_id}", response_model=CartItemRemoved)
def remove_from_cart(
    cart_item_id: int,
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: CartService = Depends(get_cart_service)
):
    """Remove item from cart"""
    return CartItemRemoved(item=service.remove(cart_item_id, user_id=token_user_id))
