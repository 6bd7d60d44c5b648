# =============================================================================
# Services Module
# =============================================================================
# Service wrappers for the MongoDB catalog store and the lineage engine.
# =============================================================================

from app.services.mongodb_service import MongoDBService, get_mongodb_service
from app.services.lineage_service import get_lineage_service

__all__ = [
    # MongoDB
    "MongoDBService",
    "get_mongodb_service",
    # Lineage
    "get_lineage_service",
]
