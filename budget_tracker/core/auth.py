"""Authentication context extraction and role guard utilities."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_tracker.core.config import get_settings
from budget_tracker.db.dependencies import get_db_session
from budget_tracker.models.entities import User, UserRole


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from headers and DB state."""

    user_id: UUID
    email: str
    name: str
    role: UserRole

    @property
    def is_manager(self) -> bool:
        return self.role is UserRole.MANAGER


def _require_identity_headers(x_user_email: str | None, x_user_name: str | None) -> tuple[str, str]:
    if not x_user_email or not x_user_email.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing identity headers. Expected X-USER-EMAIL or enable development principal fallback.",
        )

    email = x_user_email.strip().lower()
    name = (x_user_name or "").strip() or email
    return email, name


def _resolve_identity(x_user_email: str | None, x_user_name: str | None) -> tuple[str, str, UserRole | None]:
    settings = get_settings()
    if x_user_email:
        email, name = _require_identity_headers(x_user_email, x_user_name)
        return email, name, None

    if settings.auth_allow_dev_principal:
        return (
            settings.auth_dev_email.strip().lower(),
            settings.auth_dev_name.strip(),
            UserRole.MANAGER,
        )

    email, name = _require_identity_headers(x_user_email, x_user_name)
    return email, name, None


def _upsert_user(db: Session, *, email: str, name: str, role: UserRole | None) -> User:
    user = db.scalar(select(User).where(User.email == email))

    if user is None:
        user = User(email=email, name=name, role=role or UserRole.CONTRIBUTOR)
        db.add(user)
        db.flush()
        return user

    if role is not None and user.role is not role:
        user.role = role
        db.flush()
    return user


def ensure_user(db: Session, *, email: str, name: str, role: UserRole | None = None) -> User:
    """Ensure user exists and return persisted row.

    Utility exported for tests and seed helpers. A given ``role`` overwrites
    the stored one; otherwise new users start as contributors.
    """

    normalized_email = email.strip().lower()
    user = _upsert_user(
        db,
        email=normalized_email,
        name=name.strip() or normalized_email,
        role=role,
    )
    db.commit()
    db.refresh(user)
    return user


def get_current_user_context(
    x_user_email: str | None = Header(default=None, alias="X-USER-EMAIL"),
    x_user_name: str | None = Header(default=None, alias="X-USER-NAME"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve current request user.

    Header strategy: trusted headers from a proxy or test client. First-seen
    emails are registered as contributors; roles are changed out of band.
    """

    email, name, role = _resolve_identity(x_user_email, x_user_name)
    user = _upsert_user(db, email=email, name=name, role=role)
    db.commit()

    return RequestUserContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
    )


def has_role(context: RequestUserContext, allowed_roles: set[UserRole]) -> bool:
    """Check whether user has any of the allowed roles."""

    return context.role in allowed_roles


def require_roles(*roles: UserRole):
    """Dependency factory requiring at least one provided role."""

    allowed = set(roles)

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )
        return context

    return dependency
