"""Sample beverage catalog.

Run with ``python -m storefront.seed``. Existing records are updated in
place by their ids, so the script can be re-run safely.
"""

from decimal import Decimal
from sqlalchemy.orm import Session
from storefront.domain.models import Collection, Product, ProductVariant
from storefront.infrastructure.db import SessionLocal, init_models

CAN_DIMENSIONS = {"length": 6, "breadth": 6, "height": 12, "weight": 0.35}

# (slug, name, flavor, sku prefix, image, description)
FLAVORS = [
    ("black_cherry", "Black Cherry Brewy", "blackCherry", "BC", "/labels/cherry.png",
     "Rich and bold black cherry flavor with zero sugar. A perfect blend of sweet and tart notes."),
    ("grape", "Grape Brewy", "grape", "GR", "/labels/grape.png",
     "Juicy grape goodness in every sip. Made with natural grape extracts and packed with prebiotics."),
    ("lemon_lime", "Lemon Lime Brewy", "lemonLime", "LL", "/labels/lemon-lime.png",
     "Refreshing citrus burst with the perfect balance of lemon and lime. Zero calories."),
    ("strawberry_lemonade", "Strawberry Lemonade Brewy", "strawberryLemonade", "SL", "/labels/strawberry.png",
     "Sweet strawberries meet tangy lemonade in this delightful fusion. Plant-based and packed with flavor."),
    ("watermelon", "Watermelon Brewy", "watermelon", "WM", "/labels/watermelon.png",
     "Fresh watermelon taste that brings summer vibes all year round. Hydrating with zero sugar."),
]

HANDLES = {"black_cherry": "black-cherry", "lemon_lime": "lemon-lime", "strawberry_lemonade": "strawberry-lemonade"}

COLLECTIONS = [
    {
        "external_id": "coll_all_flavors",
        "name": "All Flavors",
        "handle": "all-flavors",
        "description": "Complete collection of all Brewy flavors, from bold cherry to refreshing watermelon",
        "product_ids": [f"prod_{slug}" for slug, *_ in FLAVORS],
        "image": "/collections/all-flavors.jpg",
    },
    {
        "external_id": "coll_citrus",
        "name": "Citrus Collection",
        "handle": "citrus",
        "description": "Refreshing citrus flavors perfect for a hot day",
        "product_ids": ["prod_lemon_lime", "prod_strawberry_lemonade"],
        "image": "/collections/citrus.jpg",
    },
    {
        "external_id": "coll_berry",
        "name": "Berry Collection",
        "handle": "berry",
        "description": "Sweet and tart berry flavors that will tantalize your taste buds",
        "product_ids": ["prod_black_cherry", "prod_grape", "prod_strawberry_lemonade", "prod_watermelon"],
        "image": "/collections/berry.jpg",
    },
]

def sample_products() -> list[dict]:
    products = []
    for slug, name, flavor, sku, image, description in FLAVORS:
        products.append({
            "external_id": f"prod_{slug}",
            "name": name,
            "flavor": flavor,
            "price": Decimal("49"),
            "description": description,
            "handle": HANDLES.get(slug, slug),
            "images": [image],
            "stock": 100,
            "available_for_sale": True,
            "dimensions": dict(CAN_DIMENSIONS),
            "variants": [
                {"variant_id": f"var_{slug}_single", "title": "Single Can", "price": Decimal("49"), "sku": f"{sku}-SINGLE"},
                {"variant_id": f"var_{slug}_pack", "title": "6 Pack", "price": Decimal("279"), "sku": f"{sku}-PACK6"},
            ],
        })
    return products

def seed_catalog(db: Session) -> tuple[int, int]:
    for data in sample_products():
        variants = data.pop("variants")
        product = db.query(Product).filter(Product.external_id == data["external_id"]).first()
        if product is None:
            product = Product(external_id=data["external_id"])
            db.add(product)
        for field, value in data.items():
            setattr(product, field, value)
        product.variants = [ProductVariant(available_for_sale=True, **v) for v in variants]

    for data in COLLECTIONS:
        collection = db.query(Collection).filter(Collection.external_id == data["external_id"]).first()
        if collection is None:
            collection = Collection(external_id=data["external_id"])
            db.add(collection)
        for field, value in data.items():
            setattr(collection, field, list(value) if isinstance(value, list) else value)

    db.commit()
    return len(FLAVORS), len(COLLECTIONS)

def main():
    init_models()
    db = SessionLocal()
    try:
        products, collections = seed_catalog(db)
    finally:
        db.close()
    print(f"Seeded {products} products and {collections} collections")

if __name__ == "__main__":
    main()
