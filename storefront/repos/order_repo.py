# storefront/repos/order_repo.py
from datetime import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.enums import PaymentStatus


def _with_items():
    return selectinload(OrderModel.items).selectinload(OrderItemModel.product)


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        return item

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(_with_items())
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_by_user(self, user_id: str) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .options(_with_items())
                .order_by(OrderModel.created_at.desc())
            ).scalars().all()
        )

    def list_orders(self, status: str | None = None, limit: int | None = None) -> List[OrderModel]:
        stmt = select(OrderModel).options(_with_items())
        if status:
            stmt = stmt.where(OrderModel.status == status)
        stmt = stmt.order_by(OrderModel.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def list_created_between(self, start: datetime | None = None, end: datetime | None = None) -> List[OrderModel]:
        stmt = select(OrderModel)
        if start is not None:
            stmt = stmt.where(OrderModel.created_at >= start)
        if end is not None:
            stmt = stmt.where(OrderModel.created_at < end)
        return list(self.db.execute(stmt.order_by(OrderModel.created_at)).scalars().all())

    def status_counts(self, since: datetime) -> dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id))
            .where(OrderModel.created_at >= since)
            .group_by(OrderModel.status)
        ).all()
        return {status: int(count) for status, count in rows}

    def payment_totals(self, since: datetime) -> tuple[int, Decimal]:
        completed = OrderModel.payment_status == PaymentStatus.COMPLETED.value
        count, revenue = self.db.execute(
            select(
                func.count(case((completed, OrderModel.id))),
                func.coalesce(func.sum(case((completed, OrderModel.total_amount))), 0),
            ).where(OrderModel.created_at >= since)
        ).one()
        return int(count), Decimal(str(revenue)).quantize(Decimal("0.01"))

    def commit(self):
        self.db.commit()
