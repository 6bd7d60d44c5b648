"""Errors raised by the lineage engine."""

__all__ = ["LineageError", "InvalidNodeKindError"]


class LineageError(Exception):
    """Base class for lineage engine failures."""


class InvalidNodeKindError(LineageError, ValueError):
    """Raised when a lineage seed is neither a job nor a dataset node."""
