"""Catalog endpoints."""

import logging

from fastapi import APIRouter, Depends, status

from snipdex.api.deps import get_catalog_service
from snipdex.api.schemas import (
    BuildReportOut,
    CatalogData,
    CatalogOut,
    ErrorDetail,
    InvalidateData,
    OkResponse,
)
from snipdex.service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("", response_model=OkResponse[CatalogData])
async def get_catalog(
    service: CatalogService = Depends(get_catalog_service),
) -> OkResponse[CatalogData]:
    """Return the full catalog and the report from its build.

    If the latest rebuild failed but an earlier one succeeded, the earlier
    catalog is returned with ``error`` describing the failure.
    """
    result = await service.load()
    if result.catalog is None:
        assert result.error is not None
        raise result.error

    snippets = service.overlay(result.catalog.snippet_list())
    return OkResponse[CatalogData](
        data=CatalogData(
            catalog=CatalogOut.from_catalog(result.catalog, snippets),
            report=BuildReportOut.from_report(result.report),
            from_cache=result.from_cache,
            error=ErrorDetail.from_error(result.error) if result.error else None,
        )
    )


@router.post(
    "/invalidate",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=OkResponse[InvalidateData],
)
async def invalidate_catalog(
    service: CatalogService = Depends(get_catalog_service),
) -> OkResponse[InvalidateData]:
    """Mark the catalog stale. The next read rebuilds it."""
    service.invalidate()
    logger.info("Catalog invalidated via API")
    return OkResponse[InvalidateData](data=InvalidateData(state=service.cache.state.value))
