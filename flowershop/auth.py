"""Bearer token verification and role gates for the API blueprints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Iterable, Optional

import jwt
from flask import current_app, g, request

from .services.errors import AuthError, AuthorizationError


CUSTOMER = "customer"
EMPLOYEE = "employee"
ADMIN = "admin"
ROLES = (CUSTOMER, EMPLOYEE, ADMIN)
STAFF_ROLES = (EMPLOYEE, ADMIN)


def _config():
    return current_app.config["FLOWERSHOP_CONFIG"]


def issue_token(user_id: int, role: str = CUSTOMER, *, secret: str, algorithm: str = "HS256", ttl_hours: int = 24) -> str:
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    payload = {
        "id": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def verify_request() -> dict:
    token = _bearer_token()
    if not token:
        raise AuthError("No authentication token, access denied")
    cfg = _config()
    try:
        claims = jwt.decode(token, cfg.jwt_secret, algorithms=[cfg.jwt_algorithm])
    except jwt.PyJWTError:
        raise AuthError("Token is not valid")
    if claims.get("id") is None or claims.get("role") not in ROLES:
        raise AuthError("Token is not valid")
    return {"id": claims["id"], "role": claims["role"]}


def _require(roles: Optional[Iterable[str]], denied_message: str):
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            user = verify_request()
            if roles is not None and user["role"] not in roles:
                raise AuthorizationError(denied_message)
            g.user = user
            return fn(*args, **kwargs)

        return decorator

    return wrapper


auth_required = _require(None, "Access denied")
staff_required = _require(STAFF_ROLES, "Access denied. Admin privileges required.")
admin_only = _require((ADMIN,), "Access denied. Admin only.")
