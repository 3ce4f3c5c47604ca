# storefront/services/cart_merge.py
from sqlalchemy.orm import Session

from storefront.data.database import transaction
from storefront.domain.errors import InvalidIdentity
from storefront.domain.identity import GuestIdentity, UserIdentity
from storefront.repos.cart_repo import CartRepo
from storefront.services.lock_service import LockService
from storefront.utils.settings import MERGE_LOCK_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartMergeService:
    """
    Moves a guest cart into a user's cart after login.

    This is a data migration, not a purchase: there is no stock check.
    Running it twice while guest lines still exist would add them twice,
    so the login flow goes through ``merge_once``.
    """

    def __init__(self, db: Session, lock_service: LockService | None = None):
        self.db = db
        self.repo = CartRepo(db)
        self.lock_service = lock_service

    def merge_guest_cart(self, session_id: str, user_id: str) -> int:
        if not session_id or not user_id:
            raise InvalidIdentity("Both a session ID and a user ID are required to merge carts")

        guest = GuestIdentity(session_id=session_id)
        user = UserIdentity(user_id=user_id)

        with transaction(self.db):
            guest_lines = self.repo.get_lines(guest)
            if not guest_lines:
                logger.info(f"Guest cart {session_id} is empty, nothing to merge")
                return 0

            for line in guest_lines:
                existing = self.repo.get_line(user, line.product_id)

                if existing:
                    logger.info(
                        f"Merging product {line.product_id}: user {user_id} "
                        f"{existing.quantity} + guest {line.quantity}"
                    )
                    existing.quantity += line.quantity
                    self.db.delete(line)
                else:
                    logger.info(f"Re-homing product {line.product_id} from session {session_id} to user {user_id}")
                    self.repo.rehome_line(line, user_id)

        logger.info(f"Merged {len(guest_lines)} guest lines from session {session_id} into user {user_id}")
        return len(guest_lines)

    def merge_once(self, session_id: str, user_id: str) -> bool:
        """
        Login hook. A short-lived redis guard keyed by the session token makes
        a replayed merge request a no-op instead of a double add.
        """
        if self.lock_service is None:
            raise RuntimeError("merge_once requires a lock service")

        acquired = self.lock_service.acquire_merge_lock(
            session_id=session_id,
            user_id=user_id,
            ttl=MERGE_LOCK_TTL_SECONDS,
        )

        if not acquired:
            logger.warning(f"Merge for session {session_id} already ran or is running, skipping")
            return False

        try:
            self.merge_guest_cart(session_id, user_id)
        except Exception as e:
            # nothing was written, let the client retry the merge
            logger.error(f"Cart merge failed for session {session_id}: {e}")
            self.lock_service.release_merge_lock(session_id, user_id)
            raise

        return True
