# storefront/data/seed.py
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal, init_db
from storefront.data.models.product import ProductModel
from storefront.data.models.user import UserModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {"name": "Lavender Calm", "price": Decimal("24.00"), "mood_category": "relaxing", "product_type": "container", "stock_quantity": 40},
    {"name": "Citrus Spark", "price": Decimal("22.50"), "mood_category": "energizing", "product_type": "pillar", "stock_quantity": 25},
    {"name": "Rose Evening", "price": Decimal("29.00"), "mood_category": "romantic", "product_type": "container", "stock_quantity": 15},
    {"name": "Winter Pine", "price": Decimal("19.99"), "mood_category": "relaxing", "product_type": "seasonal", "stock_quantity": 8},
    {"name": "Date Night Set", "price": Decimal("64.00"), "mood_category": "romantic", "product_type": "gift_set", "stock_quantity": 5},
]


def seed(db: Session) -> int:
    # not forcing: only seed if the catalog is empty
    if db.execute(select(ProductModel.id).limit(1)).first():
        return 0

    for data in DEMO_PRODUCTS:
        db.add(ProductModel(is_active=True, **data))

    if not db.execute(select(UserModel.id).where(UserModel.email == "admin@example.com")).first():
        db.add(UserModel(email="admin@example.com", first_name="Store", last_name="Admin", is_admin=True))

    db.commit()
    logger.info(f"Seeded {len(DEMO_PRODUCTS)} demo products")
    return len(DEMO_PRODUCTS)


if __name__ == "__main__":
    init_db()
    session = SessionLocal()
    try:
        seed(session)
    finally:
        session.close()
