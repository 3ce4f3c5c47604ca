# storefront/domain/identity.py
"""
Cart ownership as a tagged union.

A cart is addressed by exactly one of a user id or an anonymous session
token. Callers resolve the pair of optional request values once, at the
edge, and pass the resulting ``CartIdentity`` down explicitly.
"""
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UserIdentity:
    user_id: str


@dataclass(frozen=True)
class GuestIdentity:
    session_id: str


CartIdentity = Union[UserIdentity, GuestIdentity]


def resolve_identity(user_id: str | None = None, session_id: str | None = None) -> CartIdentity | None:
    # an authenticated caller still sending a stale session header addresses the user cart
    if user_id:
        return UserIdentity(user_id=str(user_id))
    if session_id:
        return GuestIdentity(session_id=str(session_id))
    return None


def describe(identity: CartIdentity | None) -> str:
    if isinstance(identity, UserIdentity):
        return f"user:{identity.user_id}"
    if isinstance(identity, GuestIdentity):
        return f"session:{identity.session_id}"
    return "anonymous"
