"""
Admin Redirects API Routes.

Read-only admin view of the redirect store. Duplicate warnings link to
the single-redirect endpoint as the edit affordance.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.adapters.sqlite.repos import RedirectStoreError
from src.api.deps import get_redirect_repo
from src.domain.entities import RedirectRecord

router = APIRouter()


class RedirectResponse(BaseModel):
    """Redirect response."""

    id: int
    source_path: str
    source_query: dict[str, Any]
    redirect_uri: str
    title: str | None = None
    status_code: int
    created_at: str


class RedirectListResponse(BaseModel):
    """List of redirects response."""

    redirects: list[RedirectResponse]
    count: int


# --- Helper Functions ---


def _redirect_to_response(redirect: RedirectRecord) -> RedirectResponse:
    """Convert RedirectRecord to response model."""
    return RedirectResponse(
        id=redirect.id or 0,
        source_path=redirect.source_path,
        source_query=redirect.source_query,
        redirect_uri=redirect.destination.uri,
        title=redirect.destination.title,
        status_code=redirect.status_code,
        created_at=redirect.created_at.isoformat(),
    )


# --- Routes ---


@router.get("/redirects", response_model=RedirectListResponse)
def list_redirects(repo: Any = Depends(get_redirect_repo)) -> RedirectListResponse:
    """List all redirects."""
    try:
        redirects = repo.list_all()
    except RedirectStoreError as e:
        raise HTTPException(status_code=503, detail="Redirect store unavailable") from e

    return RedirectListResponse(
        redirects=[_redirect_to_response(r) for r in redirects],
        count=len(redirects),
    )


@router.get("/redirects/{redirect_id}", response_model=RedirectResponse)
def get_redirect(redirect_id: int, repo: Any = Depends(get_redirect_repo)) -> RedirectResponse:
    """Get a single redirect."""
    try:
        redirect = repo.get_by_id(redirect_id)
    except RedirectStoreError as e:
        raise HTTPException(status_code=503, detail="Redirect store unavailable") from e

    if redirect is None:
        raise HTTPException(status_code=404, detail="Redirect not found")

    return _redirect_to_response(redirect)
