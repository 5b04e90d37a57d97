"""API route handlers."""

from fastapi import APIRouter, Depends, HTTPException, Request

from ..layer import CONFIG_SERVICE_TOKEN
from ..service import ConfigService
from .models import ConfigHealthResponse, NamespaceInfo

router = APIRouter(prefix="/v1/config", tags=["config"])


def get_config_service(request: Request) -> ConfigService:
    """Dependency injection for the config service.

    The service is registered by ConfigLayer on the first request.
    """
    container = request.app.state.container
    if not container.has(CONFIG_SERVICE_TOKEN):
        raise HTTPException(status_code=503, detail="Config service not initialized")
    return container.resolve(CONFIG_SERVICE_TOKEN)


@router.get("/health", response_model=ConfigHealthResponse)
async def health(
    request: Request,
    service: ConfigService = Depends(get_config_service),
) -> ConfigHealthResponse:
    """Report which namespaces are registered and whether they are loaded."""
    layer = request.app.state.config_layer
    namespaces = []
    for name in service.namespace_names:
        ns = service.namespace(name)
        namespaces.append(NamespaceInfo(
            name=name,
            store_id=ns.store_id,
            backend=type(ns.backend).__name__,
            refresh_interval_ms=ns.refresh_interval_ms,
            loaded=ns.last_fetched_at is not None,
            refresh_in_flight=ns.refresh_in_flight,
        ))

    return ConfigHealthResponse(
        status="ok",
        initialized=layer.initialized,
        platform=layer.settings.platform.value if layer.settings else None,
        namespaces=namespaces,
    )
