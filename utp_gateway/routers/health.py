from fastapi import APIRouter, Depends, Request

from utp_gateway.services.container import ServiceContainer, get_container

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness plus per-engine status")
async def health(request: Request, services: ServiceContainer = Depends(get_container)):
    settings = request.app.state.settings
    return {
        "status": "ok",
        "version": settings.version,
        "services": {
            "pricing": services.oracle.status(),
            "conversion": services.conversion.status(),
            "settlement": services.settlements.status(),
        },
    }
