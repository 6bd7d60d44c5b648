# =============================================================================
# Configuration Models Module
# =============================================================================
# Provides Pydantic Settings models for the lineage catalog:
# - MongoSettings: MongoDB catalog store configuration
# - LineageSettings: Lineage traversal depth defaults and bounds
# =============================================================================

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "MongoSettings",
    "LineageSettings",
]


# =============================================================================
# MongoDB Settings (Catalog Store)
# =============================================================================

class MongoSettings(BaseSettings):
    """
    Configuration for MongoDB (catalog store).

    Maps environment variables with prefix "MONGO_":
    - MONGO_HOST → host
    - MONGO_PORT → port
    - MONGO_INITDB_ROOT_USERNAME → username
    - MONGO_INITDB_ROOT_PASSWORD → password
    - MONGO_DATABASE → database
    - MONGO_AUTH_SOURCE → auth_source

    Attributes:
        host: MongoDB host (default: "mongodb")
        port: MongoDB port (default: 27017)
        username: MongoDB username (maps from MONGO_INITDB_ROOT_USERNAME)
        password: MongoDB password (maps from MONGO_INITDB_ROOT_PASSWORD)
        database: Database name (default: "lineage_catalog")
        auth_source: Authentication source (default: "admin")
    """

    host: str = Field("mongodb", validation_alias="MONGO_HOST", description="MongoDB host")
    port: int = Field(27017, validation_alias="MONGO_PORT", description="MongoDB port")
    username: str = Field(..., validation_alias="MONGO_INITDB_ROOT_USERNAME", description="MongoDB username (maps from MONGO_INITDB_ROOT_USERNAME)")
    password: str = Field(..., validation_alias="MONGO_INITDB_ROOT_PASSWORD", description="MongoDB password (maps from MONGO_INITDB_ROOT_PASSWORD)")
    database: str = Field("lineage_catalog", validation_alias="MONGO_DATABASE", description="Database name")
    auth_source: str = Field("admin", validation_alias="MONGO_AUTH_SOURCE", description="Authentication source")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unrelated env vars from shared .env files
    )

    @property
    def connection_string(self) -> str:
        """
        Build MongoDB connection URI.

        Format: mongodb://[username]:[password]@[host]:[port]/[database]?authSource=[auth_source]

        Returns:
            MongoDB connection URI string
        """
        return (
            f"mongodb://{self.username}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?authSource={self.auth_source}"
        )


# =============================================================================
# Lineage Settings (Traversal Bounds)
# =============================================================================

class LineageSettings(BaseSettings):
    """
    Traversal depth configuration for lineage queries.

    Maps environment variables with prefix "LINEAGE_":
    - LINEAGE_DEFAULT_DEPTH → default_depth
    - LINEAGE_MAX_DEPTH → max_depth
    - LINEAGE_UPSTREAM_DEFAULT_DEPTH → upstream_default_depth

    Attributes:
        default_depth: Graph depth used when the caller gives none (default: 20)
        max_depth: Upper bound applied to every requested depth (default: 100)
        upstream_default_depth: Upstream run depth used when the caller
            gives none (default: 10)
    """

    default_depth: int = Field(20, ge=0, validation_alias="LINEAGE_DEFAULT_DEPTH", description="Default graph traversal depth")
    max_depth: int = Field(100, ge=0, validation_alias="LINEAGE_MAX_DEPTH", description="Maximum traversal depth")
    upstream_default_depth: int = Field(10, ge=0, validation_alias="LINEAGE_UPSTREAM_DEFAULT_DEPTH", description="Default upstream run depth")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _defaults_within_bounds(self) -> "LineageSettings":
        if self.default_depth > self.max_depth:
            raise ValueError("LINEAGE_DEFAULT_DEPTH cannot exceed LINEAGE_MAX_DEPTH")
        if self.upstream_default_depth > self.max_depth:
            raise ValueError(
                "LINEAGE_UPSTREAM_DEFAULT_DEPTH cannot exceed LINEAGE_MAX_DEPTH"
            )
        return self

    def clamp(self, depth: int | None, *, default: int | None = None) -> int:
        """
        Resolve a requested depth against the configured bounds.

        None falls back to ``default`` (or ``default_depth``); negative
        values become 0; values above ``max_depth`` are capped.
        """
        if depth is None:
            depth = self.default_depth if default is None else default
        return max(0, min(depth, self.max_depth))
