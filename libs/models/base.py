# =============================================================================
# Base Models
# =============================================================================
# Shared base model for catalog value objects.
# =============================================================================

"""Base model shared by catalog value objects."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = ["CatalogModel"]


class CatalogModel(BaseModel):
    """
    Base class for catalog value objects.

    Catalog values are immutable, request-scoped snapshots. Field names are
    snake_case in Python and camelCase on the wire (``latestRun``,
    ``inEdges``), matching the catalog's JSON responses. Both spellings are
    accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict:
        """Dump the model as a JSON-compatible dict using wire names."""
        return self.model_dump(mode="json", by_alias=True)
