"""
Category router.

GET  /categories           categories with published-article counts
GET  /categories/{slug}
POST /categories
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request, Response

from mediawatch.api.deps import Content
from mediawatch.api.responses import cached_response
from mediawatch.content.dtos import CategoryDetailDTO
from mediawatch.content.schemas import CategoryCreate

router = APIRouter(prefix="/categories")


@router.get("")
async def list_categories(
    request: Request,
    content: Content,
    language: str | None = Query(None, description="'en' or 'ar'; defaults to English"),
) -> Response:
    return cached_response(request, await content.list_categories(language))


@router.get("/{slug}", response_model=CategoryDetailDTO)
async def get_category(
    request: Request,
    content: Content,
    slug: str,
    language: str = Query("en"),
) -> Response:
    return cached_response(request, await content.get_category(slug, language))


@router.post("", status_code=201, response_model=CategoryDetailDTO)
async def create_category(body: CategoryCreate, content: Content) -> dict[str, Any]:
    return await content.create_category(body)
