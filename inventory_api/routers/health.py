from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

from inventory_api.adapters.postgres.session import get_db
from inventory_api.errors import raise_api_error

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health/live")
async def liveness():
    """Liveness probe: Service is running."""
    return {"status": "ok", "checks": {"api": "ok"}}


@router.get("/health/ready")
def readiness(db: Session = Depends(get_db)):
    """Readiness probe: Database reachable."""
    health = {"status": "ok", "checks": {}}

    try:
        db.execute(text("SELECT 1"))
        health["checks"]["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check failed (database): {e}")
        health["checks"]["database"] = "failed"
        health["status"] = "failed"

    if health["status"] == "failed":
        raise_api_error("STORE_UNAVAILABLE", 503, "Database unavailable", details=health)

    return health
