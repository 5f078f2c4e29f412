from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from app.db.session import get_session
from app.schemas import ProductCreate, ProductDeleted, ProductPage, ProductRead, ProductUpdate
from app.services.catalog import ProductService

router = APIRouter()

def get_product_service(session: Session = Depends(get_session)) -> ProductService:
    return ProductService(session)

@router.get("/", response_model=ProductPage)
def read_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    brand: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    sort: str = "createdAt",
    order: str = "desc",
    limit: Optional[int] = None,
    offset: int = 0,
    service: ProductService = Depends(get_product_service)
):
    return service.list_products(
        search=search,
        category=category,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        order=order,
        limit=limit,
        offset=offset,
    )

@router.get("/{id}", response_model=ProductRead)
def read_product(id: int, service: ProductService = Depends(get_product_service)):
    return service.get_by_id(id)

@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(product_in: ProductCreate, service: ProductService = Depends(get_product_service)):
    return service.create_product(product_in.model_dump())

@router.put("/{id}", response_model=ProductRead)
def update_product(id: int, product_in: ProductUpdate, service: ProductService = Depends(get_product_service)):
    changes = {k: v for k, v in product_in.model_dump(exclude_unset=True).items() if v is not None}
    return service.update_product(id, changes)

@router.delete("/{id}", response_model=ProductDeleted)
def delete_product(id: int, service: ProductService = Depends(get_product_service)):
    product = service.delete_product(id)
    return ProductDeleted(message="Product deleted", product=product)
