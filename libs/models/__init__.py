# =============================================================================
# Data Models Library
# =============================================================================
# Pydantic models and schemas for the lineage catalog.
# =============================================================================

"""
Data models for the lineage catalog.

This library provides:
- Identifiers: NodeId, JobId, DatasetId, RunId
- Row DTOs: JobData, DatasetData, Run and upstream run summaries
- Graph values: Node, Edge, Lineage
- Configuration models
"""

__version__ = "0.1.0"

# Identifiers
from .ids import (
    DatasetId,
    JobId,
    NodeId,
    NodeKind,
    RunId,
    parse_node_id,
)

# Dataset models
from .dataset import (
    DatasetData,
    DatasetField,
)

# Job and run models
from .job import (
    JobData,
    JobRow,
    Run,
    RunState,
)

# Graph models
from .graph import (
    Edge,
    Lineage,
    Node,
    NodeType,
)

# Upstream run models
from .upstream import (
    DatasetSummary,
    JobSummary,
    RunSummary,
    UpstreamRun,
    UpstreamRunLineage,
    UpstreamRunRow,
)

# Configuration models
from .config import (
    LineageSettings,
    MongoSettings,
)

__all__ = [
    # Identifiers
    "DatasetId",
    "JobId",
    "NodeId",
    "NodeKind",
    "RunId",
    "parse_node_id",
    # Dataset models
    "DatasetData",
    "DatasetField",
    # Job and run models
    "JobData",
    "JobRow",
    "Run",
    "RunState",
    # Graph models
    "Edge",
    "Lineage",
    "Node",
    "NodeType",
    # Upstream run models
    "DatasetSummary",
    "JobSummary",
    "RunSummary",
    "UpstreamRun",
    "UpstreamRunLineage",
    "UpstreamRunRow",
    # Configuration models
    "LineageSettings",
    "MongoSettings",
]
