from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_db
from storefront.application.catalog import CatalogService
from storefront.application.schemas import CollectionRead, CollectionWithProducts, ProductRead

router = APIRouter(prefix="/collections", tags=["collections"])

@router.get("", response_model=list[CollectionRead])
def list_collections(db: Session = Depends(get_db)):
    return CatalogService(db).list_collections()

@router.get("/{identifier}", response_model=CollectionWithProducts)
def get_collection(identifier: str, db: Session = Depends(get_db)):
    """Collection by id or handle, with its member products."""
    service = CatalogService(db)
    collection = service.get_collection(identifier)
    products = [ProductRead.model_validate(p) for p in service.collection_products(collection)]
    return CollectionWithProducts(**CollectionRead.model_validate(collection).model_dump(), products=products)

@router.get("/{handle}/products", response_model=list[ProductRead])
def get_collection_products(handle: str, db: Session = Depends(get_db)):
    return CatalogService(db).products_by_collection_handle(handle)
