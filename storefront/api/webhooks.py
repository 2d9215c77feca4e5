from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_db, parse_payload, verified_webhook_body
from storefront.application.catalog_adapter import CatalogStoreAdapter
from storefront.application.partner_schemas import PartnerCollectionPayload, PartnerProductPayload

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

@router.post("/product")
def product_webhook(body: bytes = Depends(verified_webhook_body), db: Session = Depends(get_db)):
    """Partner product create/update, upserted by external id."""
    payload = parse_payload(PartnerProductPayload, body)
    result = CatalogStoreAdapter(db).apply_product_update(payload)
    return {
        "success": True,
        "message": "Product updated successfully",
        "product_id": result.external_id,
        "created": result.created,
    }

@router.post("/collection")
def collection_webhook(body: bytes = Depends(verified_webhook_body), db: Session = Depends(get_db)):
    """Partner collection create/update, upserted by external id."""
    payload = parse_payload(PartnerCollectionPayload, body)
    result = CatalogStoreAdapter(db).apply_collection_update(payload)
    return {
        "success": True,
        "message": "Collection updated successfully",
        "collection_id": result.external_id,
        "created": result.created,
    }
