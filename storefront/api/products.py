from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from storefront.api.deps import get_db, require_admin
from storefront.application.auth import AdminPrincipal
from storefront.application.catalog import CatalogService
from storefront.application.schemas import ProductCreate, ProductRead, ProductUpdate, StockUpdate

router = APIRouter(prefix="/products", tags=["products"])

@router.get("")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Products currently for sale, newest first."""
    products, pagination = CatalogService(db).list_available(page, limit)
    return {
        "products": [ProductRead.model_validate(p) for p in products],
        "pagination": pagination,
    }

@router.get("/{identifier}", response_model=ProductRead)
def get_product(identifier: str, db: Session = Depends(get_db)):
    """Look up by product id or handle."""
    return CatalogService(db).get_product(identifier)

@router.post("", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), admin: AdminPrincipal = Depends(require_admin)):
    return CatalogService(db).create_product(payload)

@router.put("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    return CatalogService(db).update_product(product_id, payload)

@router.delete("/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db), admin: AdminPrincipal = Depends(require_admin)):
    CatalogService(db).delete_product(product_id)
    return {"success": True, "message": "Product deleted successfully", "id": product_id}

@router.patch("/{product_id}/stock", response_model=ProductRead)
def update_stock(
    product_id: str,
    payload: StockUpdate,
    db: Session = Depends(get_db),
    admin: AdminPrincipal = Depends(require_admin),
):
    return CatalogService(db).update_stock(product_id, payload.stock)
