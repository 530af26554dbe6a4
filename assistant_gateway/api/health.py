"""Health check endpoint for the gateway API."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from assistant_gateway.api.dependencies import get_gateway
from assistant_gateway.core.context import GatewayContext

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
@router.head("/health")
async def health_check(gateway: GatewayContext = Depends(get_gateway)):
    """Check server health"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "extensionVersion": gateway.settings.extension_version,
    }
