from datetime import datetime, timezone

from fastapi import APIRouter

from dynamic_forms.config import config
from dynamic_forms.models.database import check_connection

health = APIRouter(tags=["Health"])


@health.get("/health")
def health_check():
    """Liveness plus database connectivity"""
    return {
        "success": True,
        "message": "Server is running!",
        "database": "Connected" if check_connection() else "Disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.get("environment"),
    }
