# =============================================================================
# Lineage Service Wiring
# =============================================================================
# Connects the lineage engine to the MongoDB catalog store.
# =============================================================================

from typing import Optional

from libs.lineage import LineageService
from libs.models import LineageSettings

from app.services.mongodb_service import get_mongodb_service

# Singleton instance
_lineage_service: Optional[LineageService] = None


def get_lineage_service() -> LineageService:
    """Get or create the lineage service singleton."""
    global _lineage_service
    if _lineage_service is None:
        _lineage_service = LineageService(get_mongodb_service(), LineageSettings())
    return _lineage_service
