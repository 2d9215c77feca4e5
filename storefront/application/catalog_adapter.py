"""Catalog Store Adapter.

Translates catalog records to and from the partner wire format used by
the shipping/checkout collaborator's catalog sync. Outbound transforms
are pure; inbound updates are validated payloads that are upserted by
external id.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.core import get_logger
from storefront.application.partner_schemas import (
    PartnerCollectionPayload,
    PartnerProductPayload,
    PartnerVariantPayload,
)
from storefront.core_settings import get_settings
from storefront.domain.errors import NotFoundError
from storefront.domain.models import Collection, Product, ProductVariant

logger = get_logger(__name__)

DEFAULT_WEIGHT = 0.5
DEFAULT_SIDE = 10

@dataclass(frozen=True)
class UpsertResult:
    external_id: str
    created: bool

def slugify(name: str) -> str:
    """``"Grape Brewy"`` -> ``"grape-brewy"``."""
    return re.sub(r"\s+", "-", name.strip().lower())

def parse_price(raw: Optional[str]) -> Decimal:
    """Parse a partner price string; anything unparseable is zero."""
    if raw is None:
        return Decimal("0")
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return value

def _parse_weight(raw: Optional[str]) -> float:
    weight = parse_price(raw)
    return float(weight) if weight > 0 else DEFAULT_WEIGHT

def _price_str(price: Decimal) -> str:
    return format(Decimal(price).normalize(), "f")

def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

def _image(src: Optional[str]) -> dict:
    return {"src": src or ""}

# Outbound

def to_partner_product(product: Product) -> dict:
    settings = get_settings()
    first_image = product.images[0] if product.images else ""
    weight = (product.dimensions or {}).get("weight") or DEFAULT_WEIGHT
    return {
        "id": product.external_id,
        "title": product.name,
        "body_html": product.description,
        "vendor": settings.PARTNER_VENDOR,
        "product_type": product.flavor or settings.PARTNER_PRODUCT_TYPE,
        "created_at": _timestamp(product.created_at),
        "updated_at": _timestamp(product.updated_at),
        "status": "active" if product.available_for_sale else "draft",
        "variants": [
            {
                "id": variant.variant_id,
                "title": variant.title,
                "price": _price_str(variant.price),
                "quantity": product.stock or 0,
                "sku": variant.sku or product.external_id,
                "updated_at": _timestamp(product.updated_at),
                "image": _image(first_image),
                "weight": weight,
            }
            for variant in product.variants
        ],
        "image": _image(first_image),
    }

def to_partner_collection(collection: Collection) -> dict:
    return {
        "id": collection.external_id,
        "updated_at": _timestamp(collection.updated_at),
        "title": collection.name,
        "body_html": collection.description,
        "image": _image(collection.image),
    }

def paginate(total: int, page: int, limit: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }

class CatalogStoreAdapter:
    def __init__(self, db: Session):
        self.db = db

    # Reads

    def list_partner_products(self, page: int = 1, limit: int = 100) -> dict:
        total = self.db.scalar(select(func.count()).select_from(Product))
        products = self.db.scalars(
            select(Product)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return {
            "products": [to_partner_product(p) for p in products],
            "pagination": paginate(total, page, limit),
        }

    def list_partner_collections(self, page: int = 1, limit: int = 100) -> dict:
        total = self.db.scalar(select(func.count()).select_from(Collection))
        collections = self.db.scalars(
            select(Collection)
            .order_by(Collection.created_at.desc(), Collection.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return {
            "collections": [to_partner_collection(c) for c in collections],
            "pagination": paginate(total, page, limit),
        }

    def list_partner_collection_products(self, collection_id: str, page: int = 1, limit: int = 100) -> dict:
        collection = self.db.query(Collection).filter(Collection.external_id == collection_id).first()
        if not collection:
            raise NotFoundError("Collection not found")
        # Members that no longer exist are skipped, and not counted
        members = Product.external_id.in_(collection.product_ids or [])
        total = self.db.scalar(select(func.count()).select_from(Product).where(members))
        products = self.db.scalars(
            select(Product)
            .where(members)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return {
            "products": [to_partner_product(p) for p in products],
            "pagination": paginate(total, page, limit),
        }

    # Inbound upserts

    def _unique_handle(self, model, name: str, external_id: str) -> str:
        handle = slugify(name)
        taken = self.db.query(model).filter(model.handle == handle, model.external_id != external_id).first()
        return f"{handle}-{external_id}" if taken else handle

    def apply_product_update(self, payload: PartnerProductPayload) -> UpsertResult:
        settings = get_settings()
        external_id = payload.external_id
        product = self.db.query(Product).filter(Product.external_id == external_id).first()
        created = product is None
        if created:
            product = Product(
                external_id=external_id,
                flavor=settings.PARTNER_PRODUCT_TYPE,
                price=Decimal("0"),
                description="",
                images=[],
                stock=0,
            )
            self.db.add(product)

        product.name = payload.title
        product.available_for_sale = payload.status == "active"
        if payload.body_html is not None:
            product.description = payload.body_html
        if payload.product_type:
            product.flavor = payload.product_type

        if payload.variants:
            primary = payload.variants[0]
            product.price = parse_price(primary.price)
            product.stock = primary.quantity or 0
            self._merge_variants(product, payload.variants)
            if primary.weight is not None:
                dimensions = dict(product.dimensions or {})
                dimensions.setdefault("length", DEFAULT_SIDE)
                dimensions.setdefault("breadth", DEFAULT_SIDE)
                dimensions.setdefault("height", DEFAULT_SIDE)
                dimensions["weight"] = _parse_weight(primary.weight)
                product.dimensions = dimensions
            if primary.image and primary.image.src:
                product.images = [primary.image.src]
            elif payload.image and payload.image.src:
                product.images = [payload.image.src]
        elif payload.image and payload.image.src:
            product.images = [payload.image.src]

        if not product.handle:
            product.handle = self._unique_handle(Product, product.name, external_id)

        self.db.commit()
        logger.info(
            "Product upserted from partner webhook",
            extra={'extra_fields': {'external_id': external_id, 'created': created}}
        )
        return UpsertResult(external_id=external_id, created=created)

    def _merge_variants(self, product: Product, incoming: list[PartnerVariantPayload]) -> None:
        existing = {v.variant_id: v for v in product.variants}
        merged = []
        for item in incoming:
            variant_id = str(item.id)
            variant = existing.get(variant_id) or ProductVariant(variant_id=variant_id)
            variant.title = item.title
            variant.price = parse_price(item.price)
            variant.available_for_sale = product.available_for_sale
            variant.sku = item.sku or variant_id
            merged.append(variant)
        product.variants = merged

    def apply_collection_update(self, payload: PartnerCollectionPayload) -> UpsertResult:
        external_id = payload.external_id
        collection = self.db.query(Collection).filter(Collection.external_id == external_id).first()
        created = collection is None
        if created:
            collection = Collection(external_id=external_id, description="", product_ids=[])
            self.db.add(collection)

        collection.name = payload.title
        if payload.body_html is not None:
            collection.description = payload.body_html
        if payload.image and payload.image.src:
            collection.image = payload.image.src
        if not collection.handle:
            collection.handle = self._unique_handle(Collection, collection.name, external_id)

        self.db.commit()
        logger.info(
            "Collection upserted from partner webhook",
            extra={'extra_fields': {'external_id': external_id, 'created': created}}
        )
        return UpsertResult(external_id=external_id, created=created)
