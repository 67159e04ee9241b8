"""Health check endpoint with Oracle connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.engine import Engine

from manager_api.core.config import Settings, get_settings
from manager_api.core.database import check_db_connected, get_engine, is_db_configured
from manager_api.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    settings: Annotated[Settings, Depends(get_settings)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> HealthResponse:
    """
    Return service health status and credential store connectivity.
    Used by load balancers and monitoring.
    """
    if not is_db_configured(settings) and engine.dialect.name == "oracle":
        db_status = "not_configured"
    elif check_db_connected(engine):
        db_status = "connected"
    else:
        db_status = "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
    )
