# =============================================================================
# Lineage Catalog Shared Libraries
# =============================================================================
# This package contains the shared libraries for the lineage catalog.
# See individual sub-packages for detailed documentation.
# =============================================================================

"""
Lineage catalog shared libraries.

Sub-packages:
- models: Pydantic identifiers, row DTOs and lineage graph values
- lineage: Lineage graph builder and upstream run tracer
"""

__version__ = "0.1.0"
