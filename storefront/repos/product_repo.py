# storefront/repos/product_repo.py
from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_active_product(self, product_id: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(
                ProductModel.id == product_id,
                ProductModel.is_active.is_(True),
            )
        ).scalar_one_or_none()

    def lock_products(self, product_ids: Iterable[str]) -> dict[str, ProductModel]:
        """
        SELECT ... FOR UPDATE over the given rows in a stable order so two
        transactions never take the same locks in opposite order.
        Inactive rows are returned too; the caller decides what they mean.
        """
        ids = sorted(set(product_ids))
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {p.id: p for p in rows}

    def decrement_stock(self, product: ProductModel, quantity: int) -> int:
        """Guarded decrement, returns the affected rowcount (0 when stock is short)."""
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product.id,
                ProductModel.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=ProductModel.stock_quantity - quantity,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        self.db.expire(product, ["stock_quantity", "updated_at"])
        return result.rowcount

    def list_active(
        self,
        mood_category: str | None = None,
        product_type: str | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> List[ProductModel]:
        stmt = select(ProductModel).where(ProductModel.is_active.is_(True))

        if mood_category:
            stmt = stmt.where(ProductModel.mood_category == mood_category)
        if product_type:
            stmt = stmt.where(ProductModel.product_type == product_type)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(ProductModel.name).like(pattern),
                    func.lower(ProductModel.description).like(pattern),
                )
            )

        stmt = stmt.order_by(ProductModel.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all())

    def list_low_stock(self, threshold: int) -> List[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .where(
                    ProductModel.is_active.is_(True),
                    ProductModel.stock_quantity <= threshold,
                )
                .order_by(ProductModel.stock_quantity, ProductModel.name)
            ).scalars().all()
        )

    def catalog_totals(self) -> tuple[int, int]:
        active, stock = self.db.execute(
            select(
                func.count(ProductModel.id),
                func.coalesce(func.sum(ProductModel.stock_quantity), 0),
            ).where(ProductModel.is_active.is_(True))
        ).one()
        return int(active), int(stock)

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def commit(self):
        self.db.commit()
