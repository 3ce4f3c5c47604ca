# storefront/data/models/cart_line.py
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartLineModel(Base):
    """
    One (identity, product) pairing. The owner is either a user or a guest
    session, never both. Prices are not stored; they are joined from the
    live product row on read.
    """

    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = Column(String(255), nullable=True, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    product = relationship("ProductModel")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_lines_user_product"),
        UniqueConstraint("session_id", "product_id", name="uq_cart_lines_session_product"),
        CheckConstraint("quantity > 0", name="ck_cart_lines_quantity_positive"),
        CheckConstraint(
            "(user_id IS NULL AND session_id IS NOT NULL) OR (user_id IS NOT NULL AND session_id IS NULL)",
            name="ck_cart_lines_single_owner",
        ),
    )
