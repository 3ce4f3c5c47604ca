# storefront/api/routers/products.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.enums import MoodCategory, ProductType
from storefront.domain.schemas import ProductListOut, ProductOut
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=ProductListOut)
def list_products(
    mood_category: MoodCategory | None = Query(None),
    product_type: ProductType | None = Query(None),
    q: str | None = Query(None, min_length=1, max_length=100),
    limit: int | None = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
):
    products = CatalogService(db).list_products(
        mood_category=mood_category.value if mood_category else None,
        product_type=product_type.value if product_type else None,
        search=q,
        limit=limit,
    )
    return {"products": products, "count": len(products)}


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return CatalogService(db).get_product(product_id)
