from fastapi import Header, HTTPException, Request, status

from dpma_direkt.core.config import get_settings
from dpma_direkt.core.rate_limit import get_rate_limiter
from dpma_direkt.core.security import validate_api_key
from dpma_direkt.services.taxonomy import TaxonomyService, get_taxonomy_service


def require_api_key(x_api_key: str | None = Header(default=None)) -> str:
    validate_api_key(x_api_key)
    return x_api_key


def enforce_registration_rate_limit(request: Request) -> None:
    settings = get_settings()
    client = request.client.host if request.client else "unknown"
    allowed = get_rate_limiter().allow(
        f"rate:register:{client}",
        settings.registration_rate_limit,
        settings.rate_limit_window_seconds,
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many registration requests, try again later",
        )


def get_taxonomy() -> TaxonomyService:
    return get_taxonomy_service()
