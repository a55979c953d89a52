"""
API router aggregation
Combines all route handlers into a single router
Reference: https://fastapi.tiangolo.com/tutorial/bigger-applications/
"""
from fastapi import APIRouter

from taskreload.api.v1.routes import health, task


def build_api_router(prefix: str) -> APIRouter:
    """
    Create the API router with every route module mounted under ``prefix``

    Args:
        prefix: URL prefix, e.g. "/api"
    """
    api_router = APIRouter(prefix=prefix)

    # Each route module is added as a sub-router
    api_router.include_router(task.router)
    api_router.include_router(health.router)
    return api_router
