"""Admin API: block-list management behind X-Admin-Token."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from appshare.api.deps import get_services, require_admin_token
from appshare.container import Services
from appshare.errors import NotFoundError
from appshare.schemas.apps import BlockIPPayload

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_token)],
)
logger = logging.getLogger(__name__)


@router.get("/blocked-ips")
async def list_blocked_ips(services: Services = Depends(get_services)) -> dict[str, Any]:
    rows = await services.guard.list_blocked()
    return {
        "items": [
            {
                "ip": row.ip_address,
                "reason": row.reason,
                "blockedAt": row.blocked_at,
            }
            for row in rows
        ]
    }


@router.post("/blocked-ips")
async def block_ip(payload: BlockIPPayload, services: Services = Depends(get_services)) -> dict[str, Any]:
    created = await services.guard.block(payload.ip, payload.reason)
    return {"success": True, "created": created}


@router.delete("/blocked-ips/{ip}")
async def unblock_ip(ip: str, services: Services = Depends(get_services)) -> dict[str, bool]:
    if not await services.guard.unblock(ip):
        raise NotFoundError("IP is not blocked")
    return {"success": True}
