# =============================================================================
# Lineage Catalog Webapp
# =============================================================================
# FastAPI application serving lineage graphs and upstream run chains.
# =============================================================================

__version__ = "0.1.0"
