# =============================================================================
# FastAPI Main Application
# =============================================================================
# Entry point for the lineage catalog webapp.
# =============================================================================

import logging

from fastapi import FastAPI

from app import __version__
from app.config import get_settings
from app.routers import health, lineage

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Application instance
app = FastAPI(
    title="Lineage Catalog",
    description="Lineage graphs and upstream run chains for cataloged jobs, datasets and runs.",
    version=__version__,
)

# Include routers
app.include_router(health.router)
app.include_router(lineage.router)
