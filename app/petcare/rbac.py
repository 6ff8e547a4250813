from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import abort, g

from app.petcare.models import User


@dataclass(frozen=True)
class SessionClaims:
    """What a validated session asserts about the caller."""

    user_id: int
    email: str
    is_admin: bool

    @classmethod
    def for_user(cls, user: User) -> "SessionClaims":
        return cls(user_id=user.id, email=user.email, is_admin=bool(user.is_admin))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.user_id, "email": self.email, "isAdmin": self.is_admin}


def current_claims() -> SessionClaims | None:
    return getattr(g, "claims", None)


def current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def user_is_admin(user: User | None) -> bool:
    return bool(user and user.is_active and user.is_admin)


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_claims() is None:
            abort(401)
        return fn(*args, **kwargs)

    return wrapped


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        claims = current_claims()
        # Unauthenticated → 401, authenticated but not admin → 403
        if claims is None:
            abort(401)
        if not claims.is_admin:
            abort(403, description="Admin access required")
        return fn(*args, **kwargs)

    return wrapped


def require_feature(feature_name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Gate a route on the caller's resolved entitlement for `feature_name`."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            from app.petcare.db import db_session
            from app.petcare.modules.features.service import get_user_enabled_features

            claims = current_claims()
            if claims is None:
                abort(401)
            enabled = get_user_enabled_features(db_session(), claims.user_id)
            if feature_name not in enabled:
                g.missing_feature = feature_name
                abort(403, description=f"Feature '{feature_name}' is not enabled")
            return fn(*args, **kwargs)

        return wrapped

    return decorator
