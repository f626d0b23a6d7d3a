"""
API-key gate for the validation endpoints.

Keys come from ``API_API_KEYS`` (comma separated). With ``API_ENABLE_AUTH``
off every request is let through.
"""

import hmac
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from shared.utils.logger import setup_logger
from src.api.config import get_api_settings

logger = setup_logger(__name__)

settings = get_api_settings()

api_key_header = APIKeyHeader(name=settings.API_KEY_HEADER, auto_error=False)


def _is_known_key(api_key: str) -> bool:
    return any(hmac.compare_digest(api_key, known) for known in settings.API_KEYS)


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)) -> str:
    """
    Return the caller's API key.

    Raises:
        HTTPException: 401 when the header is missing, 403 when the key is unknown
    """
    if not settings.ENABLE_AUTH:
        return "auth_disabled"

    if not api_key:
        logger.warning(f"Validation API request without {settings.API_KEY_HEADER} header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is required",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if settings.API_KEYS and not _is_known_key(api_key):
        logger.warning(f"Rejected API key ending in ...{api_key[-4:]}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key
