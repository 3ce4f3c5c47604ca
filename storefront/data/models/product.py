# storefront/data/models/product.py
from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, Text, CheckConstraint

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)

    mood_category = Column(String(50), nullable=True, index=True)
    product_type = Column(String(50), nullable=True, index=True)
    image_url = Column(String(500), nullable=True)

    stock_quantity = Column(Integer, nullable=False, default=0)
    # soft delete, order history keeps pointing at inactive products
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
