"""
API v1 router.

Combines all v1 endpoint routers.
"""

from fastapi import APIRouter

from src.api.v1.endpoints import validations

api_router = APIRouter()


@api_router.get("/", tags=["info"])
async def api_v1_info():
    """
    API v1 information endpoint.

    Returns:
        API version and available endpoints
    """
    return {
        "title": "Unit Validation API",
        "version": "1.0.0",
        "endpoints": {
            "trigger": "/api/v1/validations/{id}/trigger",
            "status": "/api/v1/validations/{id}",
            "results": "/api/v1/validations/{id}/results",
            "health": "/health",
            "docs": "/docs",
        },
    }


api_router.include_router(validations.router)
