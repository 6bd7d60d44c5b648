# =============================================================================
# Lineage Engine Library
# =============================================================================
# In-memory lineage graph construction and upstream run tracing.
# =============================================================================

"""
Lineage engine for the catalog.

This library provides:
- LineageGraphBuilder: bounded job/dataset lineage graph assembly
- UpstreamRunTracer: run -> input version -> producing run chains
- LineageService: facade exposing both operations with configured depths
- LineageRepository: storage contract the engine reads from
"""

from .errors import InvalidNodeKindError, LineageError
from .graph_builder import LineageGraphBuilder
from .repository import LineageRepository
from .service import LineageService
from .upstream import UpstreamRunTracer

__all__ = [
    "InvalidNodeKindError",
    "LineageError",
    "LineageGraphBuilder",
    "LineageRepository",
    "LineageService",
    "UpstreamRunTracer",
]
