"""
api_key.py
----------
Purpose:
    Shared-secret guard for the admin endpoints.

Notes:
    - Callers send the key in the `X-API-Key` header.
    - An unset `ADMIN_API_KEY` disables the admin surface (503) instead of
      leaving it open.
"""

import hmac

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from codesync.config import settings

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_admin_api_key(api_key: str | None = Security(_api_key_header)) -> str:
    expected = settings.ADMIN_API_KEY
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API key is not configured",
        )

    if not api_key or not hmac.compare_digest(api_key.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key
