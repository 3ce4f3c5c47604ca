# storefront/tasks/expire.py
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.cart_repo import CartRepo
from storefront.utils.settings import GUEST_CART_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def purge_stale_guest_carts(db: Session, now: datetime | None = None, ttl_seconds: int = GUEST_CART_TTL_SECONDS) -> int:
    """
    Delete guest (session) cart lines nobody touched within the TTL.
    User carts are never purged.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=ttl_seconds)

    repo = CartRepo(db)
    removed = repo.delete_stale_guest_lines(cutoff)
    repo.commit()

    logger.info(f"Purged {removed} guest cart lines not updated since {cutoff.isoformat()}")
    return removed


@celery_app.task(name="storefront.tasks.expire.purge_guest_carts_task")
def purge_guest_carts_task():
    logger.info("Purge guest carts task started")

    db = SessionLocal()
    try:
        return purge_stale_guest_carts(db)
    finally:
        db.close()
