# storefront/services/catalog_service.py
from typing import List

from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import InsufficientStock, NotFound, ValidationError
from storefront.domain.schemas import ProductCreate, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger
from storefront.utils.settings import LOW_STOCK_THRESHOLD

logger = get_logger(__name__)


class CatalogService:
    """
    Read side of the catalog plus the admin commands that edit it.
    Inactive products never show up here.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    #query
    def list_products(
        self,
        mood_category: str | None = None,
        product_type: str | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> List[ProductModel]:
        return self.repo.list_active(
            mood_category=mood_category,
            product_type=product_type,
            search=search,
            limit=limit,
        )

    def get_product(self, product_id: str) -> ProductModel:
        product = self.repo.get_active_product(product_id)
        if not product:
            raise NotFound(f"Product {product_id} not found", resource_id=product_id)
        return product

    def low_stock(self, threshold: int | None = None) -> List[ProductModel]:
        return self.repo.list_low_stock(LOW_STOCK_THRESHOLD if threshold is None else threshold)

    #commands
    def create_product(self, payload: ProductCreate) -> ProductModel:
        product = ProductModel(
            name=payload.name,
            description=payload.description,
            price=payload.price,
            mood_category=payload.mood_category.value,
            product_type=payload.product_type.value,
            image_url=payload.image_url,
            stock_quantity=payload.stock_quantity,
            is_active=True,
        )
        self.repo.add_product(product)
        self.repo.commit()

        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def update_product(self, product_id: str, payload: ProductUpdate) -> ProductModel:
        product = self.get_product(product_id)

        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update")

        for field, value in changes.items():
            if value is None and field in ("name", "price", "stock_quantity"):
                raise ValidationError(f"{field} cannot be null")
            setattr(product, field, getattr(value, "value", value))

        self.repo.commit()

        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return product

    def delete_product(self, product_id: str) -> ProductModel:
        product = self.get_product(product_id)
        product.is_active = False
        self.repo.commit()

        logger.info(f"Deactivated product {product_id}")
        return product

    def adjust_stock(self, product_id: str, delta: int) -> ProductModel:
        product = self.get_product(product_id)

        new_quantity = product.stock_quantity + delta
        if new_quantity < 0:
            logger.warning(f"Rejected stock adjustment {delta} for product {product_id}")
            raise InsufficientStock(product_id, -delta, product.stock_quantity, name=product.name)

        product.stock_quantity = new_quantity
        self.repo.commit()

        logger.info(f"Stock for product {product_id} adjusted by {delta} to {new_quantity}")
        return product
