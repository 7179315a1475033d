from __future__ import annotations

from fastapi import APIRouter

from ..errors import GatewayError
from ..gateway import gateway
from ..logs import search_logs
from .base import to_http_error

router = APIRouter()


@router.get("/api/logs/search")
async def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
):
    try:
        total, items = await search_logs(gateway, query, action, ts_from, ts_to, page, size)
    except GatewayError as e:
        raise to_http_error(e)
    return {"total": total, "items": items}
