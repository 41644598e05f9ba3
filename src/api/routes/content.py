"""
Content API Routes.

Create, update and fetch host entities. Every save runs redirect
reconciliation for the entity's redirect source field and returns the
resulting messages.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.adapters.messenger import InMemoryMessenger
from src.adapters.sqlite.repos import RedirectStoreError
from src.api.deps import get_content_service, get_messenger
from src.domain.entities import HostEntity, RedirectSourceValue
from src.services.content import (
    ContentNotFoundError,
    ContentService,
    InvalidRedirectSourceError,
    SaveResult,
)

router = APIRouter()


class RedirectSourceModel(BaseModel):
    """Redirect source field value."""

    path: str | None = Field(None, description="Source path (e.g., /old-page)")
    query: dict[str, Any] = Field(default_factory=dict, description="Query parameters")


class CreateContentRequest(BaseModel):
    """Request to create a host entity."""

    title: str | None = Field(None, description="Entity title")
    kind: Literal["content", "config"] = Field("content", description="Entity kind")
    internal_path: str | None = Field(None, description="Own path, defaults to node/{id}")
    redirect_source: RedirectSourceModel | None = None


class UpdateContentRequest(BaseModel):
    """Request to update a host entity."""

    title: str | None = Field(None, description="Entity title")
    internal_path: str | None = Field(None, description="Own path")
    redirect_source: RedirectSourceModel | None = None


class MessageResponse(BaseModel):
    message: str
    severity: str


class ContentResponse(BaseModel):
    """Host entity response."""

    id: int
    kind: str
    title: str | None
    internal_path: str
    redirect_source: RedirectSourceModel | None = None


class SaveContentResponse(BaseModel):
    """Save response with reconciliation result."""

    content: ContentResponse
    outcome: str | None = None
    redirect_id: int | None = None
    messages: list[MessageResponse] = Field(default_factory=list)


# --- Helper Functions ---


def _to_value(model: RedirectSourceModel | None) -> RedirectSourceValue | None:
    if model is None:
        return None
    return RedirectSourceValue(path=model.path, query=model.query)


def _entity_to_response(entity: HostEntity) -> ContentResponse:
    value = entity.redirect_source
    return ContentResponse(
        id=entity.id or 0,
        kind=entity.kind,
        title=entity.title,
        internal_path=entity.internal_path,
        redirect_source=(
            RedirectSourceModel(path=value.path, query=value.query) if value else None
        ),
    )


def _save_response(result: SaveResult, messenger: InMemoryMessenger) -> SaveContentResponse:
    outcome = result.outcome
    return SaveContentResponse(
        content=_entity_to_response(result.entity),
        outcome=outcome.kind.value if outcome else None,
        redirect_id=outcome.redirect.id if outcome and outcome.redirect else None,
        messages=[
            MessageResponse(message=m.message, severity=m.severity) for m in messenger.drain()
        ],
    )


def _invalid(e: InvalidRedirectSourceError) -> HTTPException:
    errors = [{"code": err.code, "message": err.message, "field": err.field} for err in e.errors]
    return HTTPException(status_code=400, detail={"errors": errors})


# --- Routes ---


@router.post("", response_model=SaveContentResponse)
def create_content(
    request: CreateContentRequest,
    service: ContentService = Depends(get_content_service),
    messenger: InMemoryMessenger = Depends(get_messenger),
) -> SaveContentResponse:
    """Create a host entity and reconcile its redirect source."""
    try:
        result = service.create(
            title=request.title,
            kind=request.kind,
            internal_path=request.internal_path,
            redirect_source=_to_value(request.redirect_source),
        )
    except InvalidRedirectSourceError as e:
        raise _invalid(e) from e
    except RedirectStoreError as e:
        raise HTTPException(status_code=503, detail="Redirect store unavailable") from e

    return _save_response(result, messenger)


@router.put("/{content_id}", response_model=SaveContentResponse)
def update_content(
    content_id: int,
    request: UpdateContentRequest,
    service: ContentService = Depends(get_content_service),
    messenger: InMemoryMessenger = Depends(get_messenger),
) -> SaveContentResponse:
    """Update a host entity and reconcile its redirect source."""
    updates: dict[str, Any] = {}
    for name in request.model_fields_set:
        if name == "redirect_source":
            updates[name] = _to_value(request.redirect_source)
        elif name == "internal_path" and request.internal_path is None:
            continue
        else:
            updates[name] = getattr(request, name)

    try:
        result = service.update(content_id, updates)
    except ContentNotFoundError as e:
        raise HTTPException(status_code=404, detail="Content not found") from e
    except InvalidRedirectSourceError as e:
        raise _invalid(e) from e
    except RedirectStoreError as e:
        raise HTTPException(status_code=503, detail="Redirect store unavailable") from e

    return _save_response(result, messenger)


@router.get("/{content_id}", response_model=ContentResponse)
def get_content(
    content_id: int,
    service: ContentService = Depends(get_content_service),
) -> ContentResponse:
    """Get a host entity with its redirect source field."""
    entity = service.get(content_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Content not found")
    return _entity_to_response(entity)
