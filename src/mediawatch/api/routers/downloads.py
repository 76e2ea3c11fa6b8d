"""
Download router: the downloadable-resources library.

GET    /downloads
GET    /downloads/{download_id}
POST   /downloads
PUT    /downloads/{download_id}
DELETE /downloads/{download_id}
POST   /downloads/{download_id}/track   count one download
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request, Response

from mediawatch.api.deps import Content
from mediawatch.api.responses import cached_response
from mediawatch.api.schemas import DownloadTrackResponse
from mediawatch.content.dtos import DownloadDetailDTO
from mediawatch.content.schemas import DEFAULT_PAGE_SIZE, DownloadCreate, DownloadQueryOptions, DownloadUpdate

router = APIRouter(prefix="/downloads")


@router.get("")
async def list_downloads(
    request: Request,
    content: Content,
    category: str | None = Query(None),
    file_type: str | None = Query(None, description="e.g. pdf, docx"),
    featured: bool | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0),
) -> Response:
    """Featured first, then newest uploads; always enveloped."""
    options = DownloadQueryOptions(
        category=category,
        file_type=file_type,
        featured=featured,
        limit=limit,
        offset=offset,
    )
    return cached_response(request, await content.list_downloads(options))


@router.get("/{download_id}", response_model=DownloadDetailDTO)
async def get_download(request: Request, content: Content, download_id: int) -> Response:
    return cached_response(request, await content.get_download(download_id))


@router.post("", status_code=201, response_model=DownloadDetailDTO)
async def create_download(body: DownloadCreate, content: Content) -> dict[str, Any]:
    return await content.create_download(body)


@router.put("/{download_id}", response_model=DownloadDetailDTO)
async def update_download(download_id: int, body: DownloadUpdate, content: Content) -> dict[str, Any]:
    return await content.update_download(download_id, body)


@router.delete("/{download_id}", status_code=204)
async def delete_download(download_id: int, content: Content) -> Response:
    await content.delete_download(download_id)
    return Response(status_code=204)


@router.post("/{download_id}/track", response_model=DownloadTrackResponse)
async def track_download(download_id: int, content: Content) -> DownloadTrackResponse:
    count = await content.record_download(download_id)
    return DownloadTrackResponse(id=download_id, download_count=count)
