"""FastAPI dependency injection functions."""

from functools import lru_cache

from snipdex.config import Config, load_settings
from snipdex.service import CatalogService


@lru_cache
def get_settings() -> Config:
    """Get cached application settings."""
    return load_settings()


# One catalog service per process
_catalog_service: CatalogService | None = None


def get_catalog_service() -> CatalogService:
    """Get the process-wide catalog service, creating it on first use."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService.from_settings(get_settings())
    return _catalog_service


def _reset_catalog_service() -> None:
    """Reset the catalog service (for testing)."""
    global _catalog_service
    _catalog_service = None
