from fastapi import APIRouter, HTTPException, Query, Request

from .. import __version__
from ..errors import ConnectionUnavailable, InvalidTableName
from ..gateway import DEFAULT_BINDING, QueryGateway

router = APIRouter()


def get_gateway(request: Request, binding: str = Query(DEFAULT_BINDING)) -> QueryGateway:
    """Per-request gateway bound to the handle the host keeps under `binding`."""
    gw = QueryGateway()
    if not gw.bind_from_context(request.app.state.bindings, binding):
        raise HTTPException(status_code=404, detail=f"unknown binding: {binding}")
    return gw


def to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, InvalidTableName):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ConnectionUnavailable):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/version")
def version():
    return {"app": "querygate-api", "version": __version__}


@router.get("/api/bindings")
def bindings(request: Request):
    return {"items": sorted(request.app.state.bindings)}
