# storefront/api/deps.py
"""
Request-scoped collaborators resolved through FastAPI dependencies.

The credential service sits in front of this API and forwards the
authenticated user id in ``X-User-Id``. Anonymous shoppers send their
guest cart token in ``X-Session-Id``. Both are resolved here once and
handed to routes as explicit values.
"""
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.identity import CartIdentity, resolve_identity
from storefront.repos.user_repo import UserRepo
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import PaymentGateway, get_payment_gateway


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str
    is_admin: bool = False


def get_optional_user(
    x_user_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> AuthenticatedUser | None:
    if not x_user_id:
        return None
    user = UserRepo(db).get_user(x_user_id)
    # unknown ids are treated as anonymous
    if not user:
        return None
    return AuthenticatedUser(id=user.id, email=user.email, is_admin=user.is_admin)


def get_current_user(user: AuthenticatedUser | None = Depends(get_optional_user)) -> AuthenticatedUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Access token required")
    return user


def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def get_cart_identity(
    user: AuthenticatedUser | None = Depends(get_optional_user),
    x_session_id: str | None = Header(default=None),
) -> CartIdentity | None:
    return resolve_identity(user.id if user else None, x_session_id)


_lock_service: LockService | None = None


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service


def get_gateway() -> PaymentGateway:
    return get_payment_gateway()


def get_notification_service() -> NotificationService:
    return NotificationService()
