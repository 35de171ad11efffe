"""
graphview/api/routes/__init__.py

Shared FastAPI dependencies for the viewer routes.
"""
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from graphview.config import settings
from graphview.errors import UnknownApplication
from graphview.view.graph_view import GraphView
from graphview.view.registry import ViewRegistry, get_registry

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(api_key: str | None = Security(_api_key_header)) -> str:
    """Reject requests whose X-API-Key header is missing or wrong (HTTP 401)."""
    if api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return api_key


async def mounted_view(app_name: str, registry: ViewRegistry = Depends(get_registry)) -> GraphView:
    """Resolve an already mounted view, or HTTP 404."""
    try:
        return registry.get(app_name)
    except UnknownApplication as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


async def view_for(app_name: str, registry: ViewRegistry = Depends(get_registry)) -> GraphView:
    """Resolve the view for *app_name*, mounting it on first use."""
    return await registry.get_or_mount(app_name)
