"""
Bearer-token authentication and role checks.

A token carries ``{id, role}``. The principal is loaded from the collection
that matches the role; tokens without a role (older customer tokens) are
resolved by trying each collection in turn.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import ConfigurationError, JWT_ALGORITHM, JWT_EXPIRES_DAYS, get_jwt_secret
from database import get_db, to_object_id

logger = logging.getLogger(__name__)

ROLE_COLLECTIONS = {
    "customer": "user",
    "vendor": "vendor",
    "delivery": "deliverystaff",
}

_bearer = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """Authenticated actor attached to a request."""
    id: str
    role: str
    doc: Dict[str, Any] = field(default_factory=dict, repr=False)


def create_access_token(principal_id: str, role: str, expires_days: Optional[int] = None) -> str:
    days = JWT_EXPIRES_DAYS if expires_days is None else expires_days
    payload = {
        "id": str(principal_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(days=days),
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def _load_principal(principal_id: str, role: Optional[str]) -> Optional[Principal]:
    oid = to_object_id(principal_id)
    if oid is None:
        return None

    if role:
        collection = ROLE_COLLECTIONS.get(role)
        candidates = [(role, collection)] if collection else []
    else:
        candidates = list(ROLE_COLLECTIONS.items())

    db = get_db()
    for candidate_role, collection in candidates:
        doc = db[collection].find_one({"_id": oid})
        if doc:
            doc.pop("password", None)
            return Principal(id=str(doc["_id"]), role=candidate_role, doc=doc)
    return None


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    try:
        payload = jwt.decode(credentials.credentials, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except ConfigurationError as e:
        logger.error("Token verification unavailable: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    except jwt.PyJWTError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    try:
        principal = _load_principal(payload.get("id"), payload.get("role"))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

    if principal is None:
        raise HTTPException(status_code=401, detail="Not authorized, user not found")

    if principal.role == "delivery" and principal.doc.get("status") != "active":
        raise HTTPException(status_code=403, detail="Delivery staff account is not active")

    return principal


def require_role(*roles: str):
    """Dependency factory that admits only principals with one of ``roles``."""

    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role ({principal.role}) is not authorized to access this resource",
            )
        return principal

    return checker
