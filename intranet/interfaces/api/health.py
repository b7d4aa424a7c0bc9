"""Health check route (no auth)."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from intranet.application.services.health_service import run_health_checks

router = APIRouter(prefix="/api", tags=["Health"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/health")
def health():
    result = run_health_checks()
    code = status.HTTP_500_INTERNAL_SERVER_ERROR if result["status"] == "unhealthy" else status.HTTP_200_OK
    return JSONResponse(status_code=code, content=result, headers=NO_CACHE_HEADERS)
