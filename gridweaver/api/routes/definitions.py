"""API routes for table definitions.

Clients fetch a stored definition by id and hydrate it locally with their
own renderer registry. Mutating routes require the configured secret
header; reads pass the request headers to the gateway's read guard.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from gridweaver.errors import DefinitionNotFound, Forbidden, Unauthorized, ValidationError
from gridweaver.gateway.gateway import DefinitionGateway, get_definition_gateway, get_secret_header

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/table-definitions", tags=["table-definitions"])


def _secret(request: Request) -> Optional[str]:
    return request.headers.get(get_secret_header())


def _http_error(e: Exception) -> HTTPException:
    """Map gateway errors to HTTP errors."""
    if isinstance(e, Unauthorized):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, Forbidden):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, DefinitionNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": str(e), "errors": [err.to_dict() for err in e.errors]},
        )
    return HTTPException(status_code=500, detail=str(e))


# ── List / detail ────────────────────────────────────────


@router.get("", response_model=list[str])
async def list_table_definitions(
    request: Request,
    gateway: DefinitionGateway = Depends(get_definition_gateway),
):
    """List the ids of all readable table definitions."""
    return gateway.list_ids(context=dict(request.headers))


@router.get("/{definition_id}")
async def get_table_definition(
    definition_id: str,
    request: Request,
    gateway: DefinitionGateway = Depends(get_definition_gateway),
):
    """Get a stored table definition, unchanged."""
    try:
        document = gateway.read_document(definition_id, context=dict(request.headers))
    except Forbidden as e:
        raise _http_error(e)

    if document is None:
        raise HTTPException(
            status_code=404,
            detail=f"Table definition '{definition_id}' not found",
        )
    return JSONResponse(content=document)


# ── CRUD ─────────────────────────────────────────────────


@router.post("", status_code=201)
async def create_table_definition(
    request: Request,
    payload: Any = Body(None),
    gateway: DefinitionGateway = Depends(get_definition_gateway),
):
    """Create a new table definition; returns the assigned id."""
    try:
        definition_id = gateway.create(payload, secret=_secret(request))
    except (Unauthorized, ValidationError) as e:
        raise _http_error(e)

    logger.info(f"Created table definition via API: {definition_id}")
    return {"id": definition_id}


@router.patch("/{definition_id}")
async def update_table_definition(
    definition_id: str,
    request: Request,
    partial: Any = Body(None),
    gateway: DefinitionGateway = Depends(get_definition_gateway),
):
    """Apply a partial update to a table definition."""
    try:
        gateway.update(definition_id, partial, secret=_secret(request))
    except (Unauthorized, ValidationError, DefinitionNotFound) as e:
        raise _http_error(e)

    logger.info(f"Updated table definition via API: {definition_id}")
    return {"updated": definition_id}


@router.delete("/{definition_id}")
async def delete_table_definition(
    definition_id: str,
    request: Request,
    gateway: DefinitionGateway = Depends(get_definition_gateway),
):
    """Delete a table definition."""
    try:
        gateway.delete(definition_id, secret=_secret(request))
    except (Unauthorized, DefinitionNotFound) as e:
        raise _http_error(e)

    logger.info(f"Deleted table definition via API: {definition_id}")
    return {"deleted": definition_id}
