import hmac
from typing import Optional

from fastapi import Header

from app.core.config import settings
from app.core.errors import Unauthorized


def verify_bearer_token(authorization: Optional[str], expected: str) -> bool:
    """
    Checks an `Authorization: Bearer <token>` header against the configured
    admin token. An unset admin token rejects everyone.
    """
    if not expected or not authorization:
        return False

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return False

    return hmac.compare_digest(token.strip().encode(), expected.encode())


async def require_admin(authorization: Optional[str] = Header(None)):
    """
    Dependency guarding admin endpoints (listing, status changes, deletion).
    """
    if not verify_bearer_token(authorization, settings.ADMIN_API_TOKEN):
        raise Unauthorized("Missing or invalid bearer token")
    return True
