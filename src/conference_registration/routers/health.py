from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from conference_registration.backends.blob_store import DatabaseBlobStore
from conference_registration.config import config
from conference_registration.models.database import get_db
from conference_registration.models.registration import Registration
from conference_registration.services.storage_service import get_blob_store

health = APIRouter(tags=["Health"])


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "conference-registration",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
    }


@health.get("/health/detailed")
async def detailed_health_check(
    db: Session = Depends(get_db),
    blob_store: DatabaseBlobStore = Depends(get_blob_store),
):
    """Detailed health check with database and blob store checks"""
    health_status = {
        "status": "healthy",
        "service": "conference-registration",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
        "checks": {},
    }

    try:
        db.exec(select(Registration.id).limit(1)).first()
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    try:
        blob_store.ping()
        health_status["checks"]["blob_store"] = "healthy"
    except Exception as e:
        health_status["checks"]["blob_store"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
