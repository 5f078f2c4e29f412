from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from app.core.errors import ValidationError
from app.db.session import get_session
from app.models.order import OrderStatus
from app.routers.auth import get_current_user_id_optional, resolve_user_id
from app.schemas import OrderCreate, OrderRead
from app.services.checkout import CheckoutService
from app.services.order import OrderService

router = APIRouter()

def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(session)

def get_checkout_service(session: Session = Depends(get_session)) -> CheckoutService:
    return CheckoutService(session)

@router.post("/", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    order_in: OrderCreate,
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: CheckoutService = Depends(get_checkout_service)
):
    """Place an order for everything in the user's cart"""
    user_id = resolve_user_id(order_in.user_id, token_user_id)
    # An omitted status means pending, an explicit null is not a status
    if order_in.status is None and "status" in order_in.model_fields_set:
        raise ValidationError(
            f"status must be one of: {', '.join(OrderStatus.values())}",
            code="INVALID_STATUS",
        )
    return service.place_order(user_id, order_in.shipping_address, order_in.status)

@router.get("/", response_model=List[OrderRead])
def list_orders(
    user_id: Optional[str] = Query(None, alias="userId"),
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: OrderService = Depends(get_order_service)
):
    return service.list_user_orders(resolve_user_id(user_id, token_user_id))

@router.get("/{id}", response_model=OrderRead)
def get_order(
    id: int,
    user_id: Optional[str] = Query(None, alias="userId"),
    token_user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: OrderService = Depends(get_order_service)
):
    return service.get_order(id, user_id=resolve_user_id(user_id, token_user_id))
