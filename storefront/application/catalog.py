from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from storefront.application.catalog_adapter import paginate, slugify
from storefront.application.schemas import ProductCreate, ProductUpdate, VariantIn
from storefront.domain.errors import NotFoundError, ValidationError
from storefront.domain.models import Collection, Product, ProductVariant
from shared.core import get_logger

logger = get_logger(__name__)

class CatalogService:
    """Catalog administration: product CRUD and collection reads."""

    def __init__(self, db: Session):
        self.db = db

    def list_available(self, page: int = 1, limit: int = 10) -> tuple[list[Product], dict]:
        available = Product.available_for_sale.is_(True)
        total = self.db.scalar(select(func.count()).select_from(Product).where(available))
        products = self.db.scalars(
            select(Product)
            .where(available)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(products), paginate(total, page, limit)

    def get_product(self, identifier: str) -> Product:
        product = self.db.query(Product).filter(
            or_(Product.external_id == identifier, Product.handle == identifier)
        ).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _get_by_id(self, external_id: str) -> Product:
        product = self.db.query(Product).filter(Product.external_id == external_id).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, data: ProductCreate) -> Product:
        handle = data.handle or slugify(data.name)
        existing = self.db.query(Product).filter(
            or_(Product.external_id == data.id, Product.handle == handle)
        ).first()
        if existing:
            raise ValidationError("Product with this ID or handle already exists")
        product = Product(
            external_id=data.id,
            name=data.name,
            flavor=data.flavor,
            price=data.price,
            description=data.description,
            handle=handle,
            images=list(data.images),
            stock=data.stock,
            available_for_sale=data.available_for_sale,
            dimensions=data.dimensions.model_dump() if data.dimensions else None,
            variants=[self._variant(v) for v in data.variants],
        )
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info("Product created", extra={'extra_fields': {'external_id': product.external_id}})
        return product

    @staticmethod
    def _variant(data: VariantIn) -> ProductVariant:
        return ProductVariant(
            variant_id=data.id,
            title=data.title,
            price=data.price,
            available_for_sale=data.available_for_sale,
            sku=data.sku,
        )

    def update_product(self, external_id: str, data: ProductUpdate) -> Product:
        product = self._get_by_id(external_id)
        changes = data.model_dump(exclude_unset=True, exclude={"variants", "dimensions"})
        if "handle" in changes and changes["handle"] != product.handle:
            clash = self.db.query(Product).filter(
                Product.handle == changes["handle"], Product.id != product.id
            ).first()
            if clash:
                raise ValidationError("Product with this ID or handle already exists")
        for field, value in changes.items():
            if value is not None:
                setattr(product, field, value)
        if data.variants is not None:
            product.variants = [self._variant(v) for v in data.variants]
        if data.dimensions is not None:
            product.dimensions = data.dimensions.model_dump()
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, external_id: str) -> None:
        product = self._get_by_id(external_id)
        self.db.delete(product)
        self.db.commit()
        logger.info("Product deleted", extra={'extra_fields': {'external_id': external_id}})

    def update_stock(self, external_id: str, stock: int) -> Product:
        product = self._get_by_id(external_id)
        product.stock = stock
        self.db.commit()
        self.db.refresh(product)
        return product

    # Collections

    def list_collections(self) -> list[Collection]:
        return self.db.query(Collection).order_by(Collection.created_at.desc(), Collection.id.desc()).all()

    def get_collection(self, identifier: str) -> Collection:
        collection = self.db.query(Collection).filter(
            or_(Collection.external_id == identifier, Collection.handle == identifier)
        ).first()
        if not collection:
            raise NotFoundError("Collection not found")
        return collection

    def collection_products(self, collection: Collection) -> list[Product]:
        if not collection.product_ids:
            return []
        return self.db.query(Product).filter(Product.external_id.in_(collection.product_ids)).all()

    def products_by_collection_handle(self, handle: str) -> list[Product]:
        collection = self.db.query(Collection).filter(Collection.handle == handle).first()
        if not collection:
            raise NotFoundError("Collection not found")
        return self.collection_products(collection)
