"""Apps API: submission, snapshot fetch, gallery listing, votes and deletes."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from starlette.responses import HTMLResponse, JSONResponse, Response

from appshare.api.deps import (
    enforce_global_rate_limit,
    enforce_sensitive_rate_limit,
    get_client_ip,
    get_services,
)
from appshare.container import Services
from appshare.errors import ForbiddenError, NotFoundError, ValidationFailure
from appshare.schemas.apps import (
    AppSubmitPayload,
    GalleryItemOut,
    GalleryView,
    SubmitResponse,
    UpvoteResponse,
)
from appshare.submission_service import SubmitStatus

router = APIRouter(
    prefix="/api/apps",
    tags=["apps"],
    dependencies=[Depends(enforce_global_rate_limit)],
)
logger = logging.getLogger(__name__)


@router.get("", response_model=list[GalleryItemOut])
async def list_gallery(
    view: GalleryView = GalleryView.POPULAR,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    services: Services = Depends(get_services),
) -> list[GalleryItemOut]:
    items = await services.directory.list_view(view)
    if limit is not None:
        start = (page - 1) * limit
        items = items[start:start + limit]
    logger.info("Gallery listed", extra={"view": view.value, "count": len(items)})
    return [GalleryItemOut.from_item(item) for item in items]


@router.get("/{session_id}/{version}")
async def fetch_snapshot(
    session_id: str,
    version: str,
    raw: bool = False,
    services: Services = Depends(get_services),
) -> Response:
    snapshot = await services.submissions.fetch_snapshot(session_id, version)
    if snapshot is None:
        return JSONResponse({"error": "Not found"}, status_code=404)
    if raw:
        return HTMLResponse(snapshot.html)
    return JSONResponse(snapshot.to_public())


@router.post(
    "/{session_id}/{version}",
    response_model=SubmitResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_sensitive_rate_limit)],
)
async def submit_app(
    session_id: str,
    version: str,
    payload: AppSubmitPayload,
    ip: str = Depends(get_client_ip),
    services: Services = Depends(get_services),
) -> SubmitResponse:
    result = await services.submissions.submit(session_id, version, payload, ip)
    if result.status == SubmitStatus.FORBIDDEN:
        raise ForbiddenError("IP address is blocked")
    if result.status == SubmitStatus.INVALID_SIGNATURE:
        raise ValidationFailure("Invalid signature")
    if result.status == SubmitStatus.STORE_FAILED:
        return JSONResponse({"success": False, "error": "Failed to save app"}, status_code=500)
    return SubmitResponse(success=True, warning=result.warning)


@router.delete(
    "/{session_id}/{version}",
    dependencies=[Depends(enforce_sensitive_rate_limit)],
)
async def delete_entry(
    session_id: str,
    version: str,
    ip: str = Depends(get_client_ip),
    services: Services = Depends(get_services),
) -> dict[str, bool]:
    entry = await services.directory.get_entry(session_id, version)
    if entry is None:
        raise NotFoundError("Gallery item not found")
    if not await services.directory.remove(session_id, version, ip):
        raise ForbiddenError("Not authorized to delete this app")
    return {"success": True}


@router.post(
    "/{session_id}/{version}/upvote",
    response_model=UpvoteResponse,
    dependencies=[Depends(enforce_sensitive_rate_limit)],
)
async def upvote_app(
    session_id: str,
    version: str,
    ip: str = Depends(get_client_ip),
    services: Services = Depends(get_services),
) -> UpvoteResponse:
    count = await services.ledger.upvote(session_id, version, ip)
    return UpvoteResponse(success=True, upvote_count=count)


@router.get("/{session_id}/{version}/upvotes")
async def get_upvotes(
    session_id: str,
    version: str,
    services: Services = Depends(get_services),
) -> dict[str, int]:
    return {"upvoteCount": await services.ledger.count(session_id, version)}
