from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from storefront.api.deps import get_db
from storefront.application.catalog_adapter import CatalogStoreAdapter

router = APIRouter(prefix="/catalog", tags=["catalog-sync"])

@router.get("/products")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Partner-format product feed for catalog sync."""
    return CatalogStoreAdapter(db).list_partner_products(page, limit)

@router.get("/collections")
def list_collections(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return CatalogStoreAdapter(db).list_partner_collections(page, limit)

@router.get("/collections/{collection_id}/products")
def list_collection_products(
    collection_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return CatalogStoreAdapter(db).list_partner_collection_products(collection_id, page, limit)
