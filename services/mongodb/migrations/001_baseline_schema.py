"""
Migration 001: Baseline Schema

This migration establishes the MongoDB schema of the lineage catalog:
- jobs: current job definitions with input/output dataset uuids
- datasets: dataset metadata
- dataset_versions: versions written by runs (or seeded for external inputs)
- runs: job runs with the dataset versions they read

Namespace and name lookups are case-insensitive and go through the
lowercased namespace_key/name_key fields, which carry the unique indexes.

Schema constants are FROZEN - do not modify. Create new migration for changes.
"""

from pymongo.database import Database
from pymongo.errors import CollectionInvalid

VERSION = "001"

# =============================================================================
# FROZEN SCHEMA CONSTANTS - DO NOT MODIFY
# =============================================================================

_NULLABLE_DATE = {"bsonType": ["date", "null"]}
_NULLABLE_STRING = {"bsonType": ["string", "null"]}

DATASETS_SCHEMA_V001 = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": [
            "uuid",
            "namespace",
            "name",
            "namespace_key",
            "name_key",
            "type",
            "created_at",
        ],
        "properties": {
            "uuid": {"bsonType": "string"},
            "namespace": {"bsonType": "string"},
            "name": {"bsonType": "string"},
            "namespace_key": {"bsonType": "string"},
            "name_key": {"bsonType": "string"},
            "type": {"bsonType": "string"},
            "physical_name": _NULLABLE_STRING,
            "source_name": _NULLABLE_STRING,
            "description": _NULLABLE_STRING,
            "fields": {
                "bsonType": ["array", "null"],
                "items": {
                    "bsonType": "object",
                    "required": ["name"],
                    "properties": {
                        "name": {"bsonType": "string"},
                        "type": _NULLABLE_STRING,
                        "description": _NULLABLE_STRING,
                    },
                },
            },
            "created_at": {"bsonType": "date"},
            "updated_at": _NULLABLE_DATE,
            "last_modified_at": _NULLABLE_DATE,
        },
    }
}

JOBS_SCHEMA_V001 = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": [
            "uuid",
            "namespace",
            "name",
            "namespace_key",
            "name_key",
            "type",
            "input_uuids",
            "output_uuids",
            "created_at",
        ],
        "properties": {
            "uuid": {"bsonType": "string"},
            "namespace": {"bsonType": "string"},
            "name": {"bsonType": "string"},
            "namespace_key": {"bsonType": "string"},
            "name_key": {"bsonType": "string"},
            "type": {"bsonType": "string"},
            "description": _NULLABLE_STRING,
            "location": _NULLABLE_STRING,
            "input_uuids": {"bsonType": "array", "items": {"bsonType": "string"}},
            "output_uuids": {"bsonType": "array", "items": {"bsonType": "string"}},
            "parent_job_uuid": _NULLABLE_STRING,
            "created_at": {"bsonType": "date"},
            "updated_at": _NULLABLE_DATE,
        },
    }
}

DATASET_VERSIONS_SCHEMA_V001 = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["uuid", "dataset_uuid", "namespace", "name", "created_at"],
        "properties": {
            "uuid": {"bsonType": "string"},
            "dataset_uuid": {"bsonType": "string"},
            "namespace": {"bsonType": "string"},
            "name": {"bsonType": "string"},
            "run_uuid": _NULLABLE_STRING,
            "created_at": {"bsonType": "date"},
        },
    }
}

RUNS_SCHEMA_V001 = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": [
            "uuid",
            "job_uuid",
            "job_name",
            "namespace_name",
            "state",
            "created_at",
            "input_version_uuids",
        ],
        "properties": {
            "uuid": {"bsonType": "string"},
            "job_uuid": {"bsonType": "string"},
            "job_name": {"bsonType": "string"},
            "namespace_name": {"bsonType": "string"},
            "job_version": _NULLABLE_STRING,
            "state": {"enum": ["NEW", "RUNNING", "COMPLETED", "ABORTED", "FAILED"]},
            "created_at": {"bsonType": "date"},
            "updated_at": _NULLABLE_DATE,
            "started_at": _NULLABLE_DATE,
            "ended_at": _NULLABLE_DATE,
            "facets": {"bsonType": "object"},
            "input_version_uuids": {
                "bsonType": "array",
                "items": {"bsonType": "string"},
            },
        },
    }
}


def _ensure_collection(db: Database, name: str, validator: dict) -> None:
    try:
        db.create_collection(
            name,
            validator=validator,
            validationLevel="strict",
            validationAction="error",
        )
    except CollectionInvalid:
        db.command(
            "collMod",
            name,
            validator=validator,
            validationLevel="strict",
            validationAction="error",
        )


def up(db: Database) -> None:
    """Apply baseline schema migration."""

    # Datasets collection
    _ensure_collection(db, "datasets", DATASETS_SCHEMA_V001)
    db.datasets.create_index([("uuid", 1)], unique=True)
    db.datasets.create_index([("namespace_key", 1), ("name_key", 1)], unique=True)

    # Jobs collection
    _ensure_collection(db, "jobs", JOBS_SCHEMA_V001)
    db.jobs.create_index([("uuid", 1)], unique=True)
    db.jobs.create_index([("namespace_key", 1), ("name_key", 1)], unique=True)
    db.jobs.create_index([("input_uuids", 1)])
    db.jobs.create_index([("output_uuids", 1)])
    db.jobs.create_index([("updated_at", -1)])

    # Dataset versions collection
    _ensure_collection(db, "dataset_versions", DATASET_VERSIONS_SCHEMA_V001)
    db.dataset_versions.create_index([("uuid", 1)], unique=True)
    db.dataset_versions.create_index([("dataset_uuid", 1), ("created_at", -1)])
    db.dataset_versions.create_index([("run_uuid", 1)])

    # Runs collection
    _ensure_collection(db, "runs", RUNS_SCHEMA_V001)
    db.runs.create_index([("uuid", 1)], unique=True)
    db.runs.create_index([("job_uuid", 1), ("created_at", -1)])
    db.runs.create_index([("state", 1)])


def down(db: Database) -> None:
    """
    Rollback migration (best effort).

    Note: This is destructive - drops all collections.
    Only use in development when resetting to clean state.
    """
    for collection_name in ["jobs", "datasets", "dataset_versions", "runs"]:
        if collection_name in db.list_collection_names():
            db.drop_collection(collection_name)
