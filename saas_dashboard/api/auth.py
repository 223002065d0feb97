"""API authentication."""
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from saas_dashboard.config import Settings, get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(
    api_key: str = Security(api_key_header),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Verify the API key from request header.

    Auth is off when no API_SECRET_KEY is configured.
    """
    if not settings.api_secret_key:
        return None

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
        )

    if api_key != settings.api_secret_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key
