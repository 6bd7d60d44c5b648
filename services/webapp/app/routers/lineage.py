# =============================================================================
# Lineage Router
# =============================================================================
# Endpoints for lineage graphs and upstream run chains.
# =============================================================================

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from libs.lineage import InvalidNodeKindError
from libs.models import NodeId

from app.services.lineage_service import get_lineage_service

router = APIRouter(prefix="/api/v1", tags=["lineage"])

logger = logging.getLogger(__name__)


@router.get("/lineage", response_model=None)
def get_lineage(
    node_id: str = Query(..., alias="nodeId", description="job:<ns>:<name> or dataset:<ns>:<name>"),
    depth: Optional[int] = Query(None, ge=0, description="Job-to-job hops to follow"),
    with_run_facets: bool = Query(False, alias="withRunFacets", description="Include run facets"),
) -> JSONResponse:
    """
    Get the lineage graph around a job or dataset.

    Returns ``{"graph": [...]}`` with nodes sorted by node id.
    """
    try:
        parsed = NodeId.parse(node_id)
    except (ValidationError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid node id '{node_id}'") from exc

    service = get_lineage_service()
    try:
        lineage = service.lineage(parsed, depth, with_run_facets)
    except InvalidNodeKindError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PyMongoError as exc:
        logger.error("Failed to build lineage for node '%s': %s", node_id, exc)
        raise HTTPException(
            status_code=503,
            detail=f"Failed to query catalog store: {exc}",
        ) from exc

    return JSONResponse(content=lineage.to_json_dict())


@router.get("/runs/{run_id}/upstream", response_model=None)
def get_upstream_lineage(
    run_id: UUID,
    depth: Optional[int] = Query(None, ge=0, description="Upstream levels to follow"),
) -> JSONResponse:
    """
    Get the chain of runs that produced the inputs of a run.

    Returns ``{"runs": [...]}``; an unknown run yields an empty list.
    """
    service = get_lineage_service()
    try:
        upstream = service.upstream(run_id, depth)
    except PyMongoError as exc:
        logger.error("Failed to trace upstream runs of '%s': %s", run_id, exc)
        raise HTTPException(
            status_code=503,
            detail=f"Failed to query catalog store: {exc}",
        ) from exc

    return JSONResponse(content=upstream.to_json_dict())
