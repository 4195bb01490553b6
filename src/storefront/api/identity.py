"""Caller identity, as asserted by the authentication gateway in request headers."""

from dataclasses import dataclass

from fastapi import Depends, Header

from storefront.errors import AuthenticationRequired, AuthorizationError

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: str | None = None
    role: str | None = None
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == ADMIN_ROLE


def current_identity(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
    x_user_email: str = Header(default=""),
) -> Identity:
    return Identity(
        user_id=x_user_id or None,
        role=(x_user_role or "customer").lower() if x_user_id else None,
        email=x_user_email or None,
    )


def authenticated(identity: Identity = Depends(current_identity)) -> Identity:
    if not identity.is_authenticated:
        raise AuthenticationRequired()
    return identity


def admin(identity: Identity = Depends(authenticated)) -> Identity:
    if not identity.is_admin:
        raise AuthorizationError("Admin access required")
    return identity
