# =============================================================================
# MongoDB Service - Catalog Store Operations
# =============================================================================
# Service wrapper for the MongoDB catalog store: records jobs, datasets,
# dataset versions and runs, and answers the lineage engine's queries.
# =============================================================================

import logging
import re
from datetime import datetime, timezone
from typing import Any, Collection as CollectionOf, Iterable, Optional, Sequence
from uuid import UUID, uuid4

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from app.config import get_settings
from libs.models import (
    DatasetData,
    DatasetField,
    DatasetId,
    DatasetSummary,
    JobData,
    JobId,
    JobRow,
    JobSummary,
    Run,
    RunState,
    RunSummary,
    UpstreamRunRow,
)

logger = logging.getLogger(__name__)

_LATEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


def _key(value: str) -> str:
    """Lookup key for case-insensitive namespace/name matching."""
    return value.casefold()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MongoDBService:
    """
    Service for catalog store operations.

    Collections:
    - jobs: current job definition with input/output dataset uuids
    - datasets: dataset metadata
    - dataset_versions: one document per version written by a run
    - runs: job runs with the dataset versions they read

    Uuids are stored as strings. Namespace and name lookups go through the
    lowercased ``namespace_key``/``name_key`` fields so they match
    case-insensitively.
    """

    JOBS = "jobs"
    DATASETS = "datasets"
    DATASET_VERSIONS = "dataset_versions"
    RUNS = "runs"

    def __init__(
        self,
        connection_string: Optional[str] = None,
        database: Optional[str] = None,
    ) -> None:
        if connection_string is None:
            connection_string = get_settings().mongo_connection_string
        self._client = MongoClient(connection_string)
        self._db_name = database or self._extract_db_name(connection_string)
        self._db: Database = self._client[self._db_name]

    @staticmethod
    def _extract_db_name(connection_string: str) -> str:
        """Extract database name from MongoDB connection string."""
        # Pattern: mongodb://[credentials@]hosts/<database>?...
        hosts_and_path = connection_string.split("://", 1)[-1].split("@")[-1]
        match = re.search(r"/([^/?]+)", hosts_and_path)
        if match:
            return match.group(1)
        return "lineage_catalog"  # Default

    def _get_collection(self, name: str) -> Collection:
        return self._db[name]

    def ping(self) -> bool:
        """Return True when the server answers a ping."""
        self._client.admin.command("ping")
        return True

    # ------------------------------------------------------------------
    # Catalog writes
    # ------------------------------------------------------------------

    def upsert_dataset(
        self,
        namespace: str,
        name: str,
        *,
        type: Optional[str] = None,
        physical_name: Optional[str] = None,
        source_name: Optional[str] = None,
        description: Optional[str] = None,
        fields: Optional[Iterable[DatasetField]] = None,
    ) -> DatasetData:
        """
        Create a dataset or update the given attributes of an existing one.

        Attributes left as None keep their stored value.
        """
        collection = self._get_collection(self.DATASETS)
        now = _now()
        updates: dict[str, Any] = {
            "type": type,
            "physical_name": physical_name,
            "source_name": source_name,
            "description": description,
            "fields": [f.model_dump() for f in fields] if fields is not None else None,
        }
        updates = {k: v for k, v in updates.items() if v is not None}
        on_insert: dict[str, Any] = {
            "uuid": str(uuid4()),
            "namespace": namespace,
            "name": name,
            "namespace_key": _key(namespace),
            "name_key": _key(name),
            "created_at": now,
            "last_modified_at": None,
            **({} if type else {"type": "DB_TABLE"}),
        }
        # updated_at only moves when an attribute is written
        if updates:
            updates["updated_at"] = now
        else:
            on_insert["updated_at"] = now

        operations: dict[str, Any] = {"$setOnInsert": on_insert}
        if updates:
            operations["$set"] = updates
        collection.update_one(
            {"namespace_key": _key(namespace), "name_key": _key(name)},
            operations,
            upsert=True,
        )
        doc = collection.find_one({"namespace_key": _key(namespace), "name_key": _key(name)})
        return self._to_dataset(doc)

    def upsert_job(
        self,
        namespace: str,
        name: str,
        *,
        inputs: Iterable[DatasetId] = (),
        outputs: Iterable[DatasetId] = (),
        type: Optional[str] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
        parent: Optional[JobId] = None,
    ) -> JobData:
        """
        Create a job or replace its current inputs and outputs.

        The job's input and output datasets are replaced by the given ones;
        datasets that are not yet cataloged are created. Other attributes
        left as None keep their stored value.
        """
        inputs = list(inputs)
        outputs = list(outputs)
        resolved = self._resolve_datasets([*inputs, *outputs])

        parent_uuid = None
        if parent is not None:
            parent_row = self.find_job_by_name(parent.namespace, parent.name)
            parent_uuid = str(parent_row.uuid) if parent_row else None

        return self._write_job(
            namespace,
            name,
            [resolved[_dataset_key(ds)] for ds in inputs],
            [resolved[_dataset_key(ds)] for ds in outputs],
            type=type,
            description=description,
            location=location,
            parent_uuid=parent_uuid,
        )

    def _resolve_datasets(self, dataset_ids: Iterable[DatasetId]) -> dict[tuple[str, str], DatasetData]:
        """Catalog each distinct dataset once, keyed by its lookup key."""
        resolved: dict[tuple[str, str], DatasetData] = {}
        for dataset_id in dataset_ids:
            key = _dataset_key(dataset_id)
            if key not in resolved:
                resolved[key] = self.upsert_dataset(dataset_id.namespace, dataset_id.name)
        return resolved

    def _write_job(
        self,
        namespace: str,
        name: str,
        inputs: Sequence[DatasetData],
        outputs: Sequence[DatasetData],
        *,
        type: Optional[str] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
        parent_uuid: Optional[str] = None,
    ) -> JobData:
        input_uuids = [str(ds.uuid) for ds in inputs]
        output_uuids = [str(ds.uuid) for ds in outputs]

        collection = self._get_collection(self.JOBS)
        now = _now()
        updates: dict[str, Any] = {
            "type": type,
            "description": description,
            "location": location,
            "parent_job_uuid": parent_uuid,
        }
        updates = {k: v for k, v in updates.items() if v is not None}
        updates.update(
            {
                "input_uuids": sorted(set(input_uuids)),
                "output_uuids": sorted(set(output_uuids)),
                "updated_at": now,
            }
        )
        collection.update_one(
            {"namespace_key": _key(namespace), "name_key": _key(name)},
            {
                "$set": updates,
                "$setOnInsert": {
                    "uuid": str(uuid4()),
                    "namespace": namespace,
                    "name": name,
                    "namespace_key": _key(namespace),
                    "name_key": _key(name),
                    "created_at": now,
                    **({} if type else {"type": "BATCH"}),
                },
            },
            upsert=True,
        )
        doc = collection.find_one({"namespace_key": _key(namespace), "name_key": _key(name)})
        return self._to_job(doc)

    def record_run(
        self,
        namespace: str,
        job_name: str,
        *,
        state: RunState = RunState.COMPLETED,
        inputs: Iterable[DatasetId] = (),
        outputs: Iterable[DatasetId] = (),
        facets: Optional[dict[str, Any]] = None,
        run_id: Optional[UUID] = None,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        job_version: Optional[UUID] = None,
    ) -> Run:
        """
        Record a run of a job.

        The job's current inputs/outputs become those of the run. The run
        reads the latest version of each input (a version is created for
        inputs that have none yet) and writes a new version of each output.
        """
        resolved = self._resolve_datasets([*inputs, *outputs])
        inputs = [resolved[_dataset_key(ds)] for ds in inputs]
        outputs = [resolved[_dataset_key(ds)] for ds in outputs]
        job = self._write_job(namespace, job_name, inputs, outputs)
        run_uuid = str(run_id or uuid4())
        now = created_at or _now()

        input_versions = []
        for dataset in inputs:
            version = self._latest_version(str(dataset.uuid))
            if version is None:
                version = self._insert_version(dataset, run_uuid=None, created_at=now)
            input_versions.append(version["uuid"])

        self._get_collection(self.RUNS).insert_one(
            {
                "uuid": run_uuid,
                "job_uuid": str(job.uuid),
                "job_name": job.name,
                "namespace_name": job.namespace,
                "job_version": str(job_version) if job_version else None,
                "state": state.value,
                "created_at": now,
                "updated_at": now,
                "started_at": started_at,
                "ended_at": ended_at,
                "facets": facets or {},
                "input_version_uuids": input_versions,
            }
        )

        for dataset in outputs:
            self._insert_version(dataset, run_uuid=run_uuid, created_at=now)

        logger.debug(
            "Recorded run '%s' of job '%s:%s' (%d inputs, %d outputs)",
            run_uuid,
            namespace,
            job_name,
            len(inputs),
            len(outputs),
        )
        return self.get_run(UUID(run_uuid))

    def _latest_version(self, dataset_uuid: str) -> Optional[dict]:
        return self._get_collection(self.DATASET_VERSIONS).find_one(
            {"dataset_uuid": dataset_uuid}, sort=_LATEST_FIRST
        )

    def _insert_version(
        self, dataset: DatasetData, *, run_uuid: Optional[str], created_at: datetime
    ) -> dict:
        version = {
            "uuid": str(uuid4()),
            "dataset_uuid": str(dataset.uuid),
            "namespace": dataset.namespace,
            "name": dataset.name,
            "run_uuid": run_uuid,
            "created_at": created_at,
        }
        self._get_collection(self.DATASET_VERSIONS).insert_one(dict(version))
        if run_uuid is not None:
            self._get_collection(self.DATASETS).update_one(
                {"uuid": str(dataset.uuid)},
                {"$set": {"last_modified_at": created_at}},
            )
        return version

    # ------------------------------------------------------------------
    # Job lookups
    # ------------------------------------------------------------------

    def find_job_by_name(self, namespace: str, name: str) -> Optional[JobRow]:
        doc = self._get_collection(self.JOBS).find_one(
            {"namespace_key": _key(namespace), "name_key": _key(name)},
            projection={"uuid": 1, "namespace": 1, "name": 1},
        )
        if not doc:
            return None
        return JobRow(uuid=UUID(doc["uuid"]), namespace=doc["namespace"], name=doc["name"])

    def find_job_uuid_from_dataset(self, name: str, namespace: str) -> Optional[UUID]:
        """
        Return a job that writes or reads the dataset.

        Writers are preferred over readers; among those, the most recently
        updated job wins, then the job name.
        """
        dataset = self._get_collection(self.DATASETS).find_one(
            {"namespace_key": _key(namespace), "name_key": _key(name)},
            projection={"uuid": 1},
        )
        if not dataset:
            return None

        jobs = self._get_collection(self.JOBS)
        for field in ("output_uuids", "input_uuids"):
            doc = jobs.find_one(
                {field: dataset["uuid"]},
                projection={"uuid": 1},
                sort=[("updated_at", DESCENDING), ("namespace_key", ASCENDING), ("name_key", ASCENDING)],
            )
            if doc:
                return UUID(doc["uuid"])
        return None

    def get_lineage(self, job_uuids: CollectionOf[UUID], depth: int) -> list[JobData]:
        """
        Breadth-first job closure over shared input/output datasets.

        Each of the ``depth`` rounds adds every job that reads or writes a
        dataset of the previous round's jobs.
        """
        jobs = self._get_collection(self.JOBS)
        seeds = [str(uuid) for uuid in job_uuids]
        found: dict[str, dict] = {doc["uuid"]: doc for doc in jobs.find({"uuid": {"$in": seeds}})}
        frontier = list(found.values())

        for _ in range(max(depth, 0)):
            dataset_uuids = sorted(
                {
                    uuid
                    for doc in frontier
                    for uuid in (*doc.get("input_uuids", []), *doc.get("output_uuids", []))
                }
            )
            if not dataset_uuids:
                break
            frontier = list(
                jobs.find(
                    {
                        "uuid": {"$nin": list(found)},
                        "$or": [
                            {"input_uuids": {"$in": dataset_uuids}},
                            {"output_uuids": {"$in": dataset_uuids}},
                        ],
                    }
                )
            )
            if not frontier:
                break
            for doc in frontier:
                found[doc["uuid"]] = doc

        ordered = sorted(found.values(), key=lambda d: (d["namespace_key"], d["name_key"]))
        return [self._to_job(doc) for doc in ordered]

    # ------------------------------------------------------------------
    # Run lookups
    # ------------------------------------------------------------------

    def get_run(self, run_id: UUID) -> Optional[Run]:
        doc = self._get_collection(self.RUNS).find_one({"uuid": str(run_id)})
        if not doc:
            return None
        return self._to_run(doc)

    def get_current_runs(self, job_uuids: CollectionOf[UUID]) -> list[Run]:
        return self._current_runs(job_uuids, with_facets=False)

    def get_current_runs_with_facets(self, job_uuids: CollectionOf[UUID]) -> list[Run]:
        return self._current_runs(job_uuids, with_facets=True)

    def _current_runs(self, job_uuids: CollectionOf[UUID], *, with_facets: bool) -> list[Run]:
        """Latest run per job, by creation time."""
        pipeline: list[dict[str, Any]] = [
            {"$match": {"job_uuid": {"$in": [str(uuid) for uuid in job_uuids]}}},
            {"$sort": dict(_LATEST_FIRST)},
        ]
        if not with_facets:
            pipeline.append({"$project": {"facets": 0}})
        pipeline.extend(
            [
                {"$group": {"_id": "$job_uuid", "doc": {"$first": "$$ROOT"}}},
                {"$sort": {"_id": ASCENDING}},
            ]
        )
        rows = self._get_collection(self.RUNS).aggregate(pipeline)
        return [self._to_run(row["doc"]) for row in rows]

    # ------------------------------------------------------------------
    # Dataset lookups
    # ------------------------------------------------------------------

    def get_dataset_data(self, dataset_uuids: CollectionOf[UUID]) -> list[DatasetData]:
        cursor = (
            self._get_collection(self.DATASETS)
            .find({"uuid": {"$in": [str(uuid) for uuid in dataset_uuids]}})
            .sort([("namespace_key", ASCENDING), ("name_key", ASCENDING)])
        )
        return [self._to_dataset(doc) for doc in cursor]

    def get_dataset_data_by_name(self, namespace: str, name: str) -> Optional[DatasetData]:
        doc = self._get_collection(self.DATASETS).find_one(
            {"namespace_key": _key(namespace), "name_key": _key(name)}
        )
        if not doc:
            return None
        return self._to_dataset(doc)

    # ------------------------------------------------------------------
    # Upstream runs
    # ------------------------------------------------------------------

    def get_upstream_runs(self, run_id: UUID, depth: int) -> list[UpstreamRunRow]:
        """
        Walk run -> input dataset versions -> producing runs.

        Runs are visited level by level, once each, ordered by job name
        within a level. Every run contributes one row per input version, or
        a single row without input when it read nothing.
        """
        runs = self._get_collection(self.RUNS)
        rows: list[UpstreamRunRow] = []
        visited: set[str] = set()
        level = [str(run_id)]
        current_depth = 0

        while level:
            docs = runs.find({"uuid": {"$in": level}}, projection={"facets": 0})
            next_level: list[str] = []
            for doc in sorted(docs, key=lambda d: (_key(d["job_name"]), d["uuid"])):
                if doc["uuid"] in visited:
                    continue
                visited.add(doc["uuid"])

                job = JobSummary(
                    namespace=doc["namespace_name"],
                    name=doc["job_name"],
                    version=_uuid_or_none(doc.get("job_version")),
                )
                run = RunSummary(
                    id=UUID(doc["uuid"]),
                    start=doc.get("started_at"),
                    end=doc.get("ended_at"),
                    status=doc["state"],
                )
                versions = self._versions_in_order(doc.get("input_version_uuids", []))
                if not versions:
                    rows.append(UpstreamRunRow(job=job, run=run, input=None))
                for version in versions:
                    producer = version.get("run_uuid")
                    rows.append(
                        UpstreamRunRow(
                            job=job,
                            run=run,
                            input=DatasetSummary(
                                namespace=version["namespace"],
                                name=version["name"],
                                version=UUID(version["uuid"]),
                                produced_by_run_id=_uuid_or_none(producer),
                            ),
                        )
                    )
                    if producer and current_depth < depth and producer not in visited:
                        next_level.append(producer)

            level = list(dict.fromkeys(next_level))
            current_depth += 1

        return rows

    def _versions_in_order(self, version_uuids: Sequence[str]) -> list[dict]:
        if not version_uuids:
            return []
        docs = self._get_collection(self.DATASET_VERSIONS).find(
            {"uuid": {"$in": list(version_uuids)}}
        )
        by_uuid = {doc["uuid"]: doc for doc in docs}
        return [by_uuid[uuid] for uuid in version_uuids if uuid in by_uuid]

    # ------------------------------------------------------------------
    # Document mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_dataset(doc: dict) -> DatasetData:
        return DatasetData(
            uuid=UUID(doc["uuid"]),
            namespace=doc["namespace"],
            name=doc["name"],
            type=doc.get("type") or "DB_TABLE",
            physical_name=doc.get("physical_name"),
            source_name=doc.get("source_name"),
            description=doc.get("description"),
            fields=tuple(DatasetField(**f) for f in doc.get("fields") or []),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            last_modified_at=doc.get("last_modified_at"),
        )

    @staticmethod
    def _to_job(doc: dict) -> JobData:
        return JobData(
            uuid=UUID(doc["uuid"]),
            namespace=doc["namespace"],
            name=doc["name"],
            type=doc.get("type") or "BATCH",
            description=doc.get("description"),
            location=doc.get("location"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            input_uuids=frozenset(UUID(u) for u in doc.get("input_uuids", [])),
            output_uuids=frozenset(UUID(u) for u in doc.get("output_uuids", [])),
            parent_job_uuid=_uuid_or_none(doc.get("parent_job_uuid")),
        )

    @staticmethod
    def _to_run(doc: dict) -> Run:
        return Run(
            id=UUID(doc["uuid"]),
            job_uuid=_uuid_or_none(doc.get("job_uuid")),
            job_name=doc["job_name"],
            namespace_name=doc["namespace_name"],
            state=RunState(doc["state"]),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            started_at=doc.get("started_at"),
            ended_at=doc.get("ended_at"),
            job_version=_uuid_or_none(doc.get("job_version")),
            facets=doc.get("facets") or {},
        )


def _uuid_or_none(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None


def _dataset_key(dataset_id: DatasetId) -> tuple[str, str]:
    return (_key(dataset_id.namespace), _key(dataset_id.name))


# Singleton instance
_mongodb_service: Optional[MongoDBService] = None


def get_mongodb_service() -> MongoDBService:
    """Get or create the MongoDB service singleton."""
    global _mongodb_service
    if _mongodb_service is None:
        _mongodb_service = MongoDBService()
    return _mongodb_service
