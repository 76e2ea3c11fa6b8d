"""
Article router: cached listing, search and detail plus editor writes.

GET    /articles                  flat list, or envelope when paged/cursored
GET    /articles/search?q=        published articles matching ``q``
GET    /articles/{article_id:int} editor view by id
GET    /articles/{slug}           public detail by slug
POST   /articles
PUT    /articles/{article_id}
DELETE /articles/{article_id}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request, Response

from mediawatch.api.deps import Content
from mediawatch.api.responses import cached_response
from mediawatch.content.dtos import ArticleAdminDTO
from mediawatch.content.schemas import DEFAULT_PAGE_SIZE, ArticleCreate, ArticleQueryOptions, ArticleUpdate

router = APIRouter(prefix="/articles")


@router.get("")
async def list_articles(
    request: Request,
    content: Content,
    category_id: int | None = Query(None, description="Filter by category"),
    featured: bool | None = Query(None, description="Only featured / non-featured"),
    published: bool = Query(True, description="Published state to list"),
    language: str = Query("en", description="'en' or 'ar'"),
    limit: int = Query(DEFAULT_PAGE_SIZE, description="Page size, clamped to [1, max_page_size]"),
    offset: int = Query(0, description="Rows to skip (ignored when a cursor is given)"),
    cursor: str | None = Query(None, description="Opaque cursor from pagination.next_cursor"),
    sort_by: str = Query("published_at", description="published_at, created_at or id"),
    sort_order: str = Query("desc", description="asc or desc"),
    paginated: bool = Query(False, description="Return the pagination envelope on page one"),
) -> Response:
    """List articles.

    Without ``paginated``, ``cursor`` or ``offset`` the response is a plain
    JSON array. Otherwise it is ``{"data": [...], "pagination": {...}}``;
    pass ``pagination.next_cursor`` back as ``cursor`` to load the next page.

    Example:
        GET /api/articles?paginated=true&limit=2

        Response:
        {
            "data": [{"id": 25, "slug": "...", ...}, {"id": 24, ...}],
            "pagination": {
                "total": 25, "limit": 2, "offset": 0,
                "has_next": true, "has_prev": false,
                "next_cursor": "eyJ2IjoxLC...", "total_pages": 13, "current_page": 1
            }
        }
    """
    options = ArticleQueryOptions(
        category_id=category_id,
        featured=featured,
        published=published,
        language=language,
        limit=limit,
        offset=offset,
        cursor=cursor,
        sort_by=sort_by,
        sort_order=sort_order,
        paginated=paginated,
    )
    return cached_response(request, await content.list_articles(options))


@router.get("/search")
async def search_articles(
    request: Request,
    content: Content,
    q: str = Query(..., description="Text to look for in titles, excerpts and bodies"),
    language: str = Query("en"),
) -> Response:
    return cached_response(request, await content.search_articles(q, language))


@router.get("/{article_id:int}", response_model=ArticleAdminDTO)
async def get_article(request: Request, content: Content, article_id: int) -> Response:
    """Editor view of one article (includes unpublished ones)."""
    return cached_response(request, await content.get_article(article_id))


@router.get("/{slug}")
async def get_article_by_slug(
    request: Request,
    content: Content,
    slug: str,
    language: str = Query("en"),
) -> Response:
    return cached_response(request, await content.get_article_by_slug(slug, language))


@router.post("", status_code=201, response_model=ArticleAdminDTO)
async def create_article(body: ArticleCreate, content: Content) -> dict[str, Any]:
    return await content.create_article(body)


@router.put("/{article_id}", response_model=ArticleAdminDTO)
async def update_article(article_id: int, body: ArticleUpdate, content: Content) -> dict[str, Any]:
    return await content.update_article(article_id, body)


@router.delete("/{article_id}", status_code=204)
async def delete_article(article_id: int, content: Content) -> Response:
    await content.delete_article(article_id)
    return Response(status_code=204)
