"""
Shared pytest fixtures for lineage tests.

Provides a small reusable catalog to avoid duplication across test files.
"""

import pytest

from tests.factories import InMemoryLineageRepository, make_dataset, make_job


# =============================================================================
# Catalog Fixtures
# =============================================================================

@pytest.fixture
def orders_catalog():
    """
    Small catalog: ingest writes raw.orders; clean reads it and writes
    mart.orders; report reads mart.orders. A disconnected job also exists.
    """
    raw = make_dataset("warehouse", "raw.orders")
    mart = make_dataset("warehouse", "mart.orders")
    other = make_dataset("warehouse", "other.events")
    ingest = make_job("etl", "ingest", outputs=[raw])
    clean = make_job("etl", "clean", inputs=[raw], outputs=[mart])
    report = make_job("bi", "report", inputs=[mart])
    lonely = make_job("etl", "lonely", outputs=[other])
    return {
        "datasets": {"raw": raw, "mart": mart, "other": other},
        "jobs": {"ingest": ingest, "clean": clean, "report": report, "lonely": lonely},
    }


@pytest.fixture
def orders_repository(orders_catalog):
    """In-memory repository over ``orders_catalog``."""
    return InMemoryLineageRepository(
        jobs=orders_catalog["jobs"].values(),
        datasets=orders_catalog["datasets"].values(),
    )
