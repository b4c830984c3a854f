"""
GET /health - load balancer health check.

No authentication required. Reports DB reachability and the running
environment; always answers 200 so a DB outage shows up in the body, not as
a crash loop.
"""
from fastapi import APIRouter
from pydantic import BaseModel

from app.core.config import get_settings
from app.core.db import check_db_connection

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    db: str
    environment: str


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check() -> HealthResponse:
    db_ok = await check_db_connection()
    return HealthResponse(
        status="ok",
        db="ok" if db_ok else "error",
        environment=get_settings().environment,
    )
