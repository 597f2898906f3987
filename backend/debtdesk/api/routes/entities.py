"""
Entity API Routes.

Generic CRUD over every entity name the repository knows. Query
parameters other than ``order_by`` become equality filters, typed by the
entity's field table; a key given more than once becomes a membership filter.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from pydantic import BaseModel, Field

from debtdesk.api.dependencies import get_repository
from debtdesk.services.repository import Repository

router = APIRouter(prefix="/entities", tags=["Entities"])

RESERVED_PARAMS = {"order_by"}


class BulkCreateRequest(BaseModel):
    """Request for creating many records at once."""
    rows: list[dict[str, Any]] = Field(..., description="Records to create")


def _query_filters(request: Request, repo: Repository, entity: str) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    for key in request.query_params.keys():
        if key in RESERVED_PARAMS or key in filters:
            continue
        values = request.query_params.getlist(key)
        filters[key] = values[0] if len(values) == 1 else set(values)
    return repo.definition(entity).coerce_filters(filters)


@router.get("")
async def list_entities(repo: Repository = Depends(get_repository)) -> dict:
    """List registered entity definitions."""
    return {"entities": [d.to_dict() for d in repo.registry.list_all()]}


@router.get("/{entity}")
async def list_records(
    entity: str,
    request: Request,
    order_by: Optional[str] = Query(None, description="Field to sort by, '-' prefix for descending"),
    repo: Repository = Depends(get_repository),
) -> dict:
    """List or filter records of an entity."""
    filters = _query_filters(request, repo, entity)
    if filters:
        records = await repo.filter(entity, filters, order_by)
    else:
        records = await repo.list(entity, order_by)
    return {
        "entity": entity,
        "total": len(records),
        "records": [r.to_dict() for r in records],
    }


@router.post("/{entity}", status_code=201)
async def create_record(
    entity: str,
    fields: dict[str, Any],
    x_actor: Optional[str] = Header(None),
    repo: Repository = Depends(get_repository),
) -> dict:
    record = await repo.create(entity, fields, actor=x_actor)
    return record.to_dict()


@router.post("/{entity}/bulk", status_code=201)
async def bulk_create_records(
    entity: str,
    body: BulkCreateRequest,
    x_actor: Optional[str] = Header(None),
    repo: Repository = Depends(get_repository),
) -> dict:
    records = await repo.bulk_create(entity, body.rows, actor=x_actor)
    return {
        "entity": entity,
        "created": len(records),
        "records": [r.to_dict() for r in records],
    }


@router.get("/{entity}/{record_id}")
async def get_record(
    entity: str,
    record_id: str,
    repo: Repository = Depends(get_repository),
) -> dict:
    record = await repo.get(entity, record_id)
    return record.to_dict()


@router.patch("/{entity}/{record_id}")
async def update_record(
    entity: str,
    record_id: str,
    fields: dict[str, Any],
    x_actor: Optional[str] = Header(None),
    repo: Repository = Depends(get_repository),
) -> dict:
    record = await repo.update(entity, record_id, fields, actor=x_actor)
    return record.to_dict()


@router.delete("/{entity}/{record_id}")
async def delete_record(
    entity: str,
    record_id: str,
    repo: Repository = Depends(get_repository),
) -> dict:
    await repo.delete(entity, record_id)
    return {"success": True, "entity": entity, "id": record_id}
