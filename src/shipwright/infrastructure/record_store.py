"""
shipwright.infrastructure.record_store - Record Persistence Layer
===================================================================

The RecordStore holds the three record types the pipeline works with.
Infrastructure records are keyed by infrastructure name; build and deploy
records are keyed by AppTuple.

Architecture Context:
    ┌────────────────────┐  get_infra / get_build   ┌───────────────┐
    │ PipelineOrchestrator│ ───────────────────────→ │               │
    │                     │ ── put_build ──────────→ │  RecordStore  │
    │ DeployStateReconciler ── get/put_deploy ─────→ │               │
    └────────────────────┘                           └───────────────┘
    ┌────────────────────┐        put_infra                ↑
    │ infra provisioner   │ ───────────────────────────────┘
    └────────────────────┘

Deploy IDs:
    put_deploy() assigns a state handle the first time a record without an
    ID is written. A tuple that already has a stored ID keeps it, even if a
    caller writes a fresh record with id=None. A handle, once assigned, is
    never regenerated.

Implementations:
    - RecordStore (ABC):    Abstract interface
    - InMemoryRecordStore:  Dict-based, for development/testing
    - FileRecordStore:      One JSON document per record under a directory
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, TypeVar
from urllib.parse import quote
from uuid import uuid4

import structlog
from pydantic import BaseModel

from shipwright.core.models import (
    AppTuple,
    BuildRecord,
    DeployRecord,
    InfrastructureRecord,
)


logger = structlog.get_logger()

_Record = TypeVar("_Record", bound=BaseModel)


def _generate_deploy_id() -> str:
    """Generate a deploy state handle like "dep-a1b2c3d4-..."."""
    return f"dep-{uuid4()}"


# =============================================================================
# Abstract Base Class
# =============================================================================
class RecordStore(ABC):
    """Abstract interface for infrastructure, build and deploy records.

    Reads return None when a record does not exist. Writes raise whatever
    the backend raises; callers decide how to report it.

    Example:
        >>> store: RecordStore = InMemoryRecordStore()
        >>> await store.put_infra(InfrastructureRecord(name="aws", state=InfraState.READY))
        >>> infra = await store.get_infra("aws")
    """

    # -------------------------------------------------------------------------
    # Infrastructure Records
    # -------------------------------------------------------------------------
    @abstractmethod
    async def get_infra(self, name: str) -> Optional[InfrastructureRecord]:
        """Retrieve an infrastructure record by name.

        Args:
            name: Infrastructure name.

        Returns:
            The record if found, None otherwise.
        """

    @abstractmethod
    async def put_infra(self, record: InfrastructureRecord) -> None:
        """Save or replace an infrastructure record.

        Only the infrastructure stage writes these; build and deploy read them.
        """

    # -------------------------------------------------------------------------
    # Build Records
    # -------------------------------------------------------------------------
    @abstractmethod
    async def get_build(self, app_tuple: AppTuple) -> Optional[BuildRecord]:
        """Retrieve the build record for a tuple, or None."""

    @abstractmethod
    async def put_build(self, record: BuildRecord) -> None:
        """Save a build record, replacing any previous build for its tuple."""

    # -------------------------------------------------------------------------
    # Deploy Records
    # -------------------------------------------------------------------------
    @abstractmethod
    async def get_deploy(self, app_tuple: AppTuple) -> Optional[DeployRecord]:
        """Retrieve the deploy record for a tuple, or None."""

    @abstractmethod
    async def put_deploy(self, record: DeployRecord) -> DeployRecord:
        """Save a deploy record, assigning an ID if it has none.

        If the tuple already has a stored ID, that ID is kept.

        Args:
            record: The DeployRecord to persist.

        Returns:
            The record as stored, with its ID set.
        """


# =============================================================================
# InMemoryRecordStore Implementation
# =============================================================================
class InMemoryRecordStore(RecordStore):
    """In-memory record store for development and testing.

    Writes are serialized with an asyncio.Lock so that concurrent runs for
    the same tuple cannot mint two different deploy IDs. Records are
    copied on the way in and out, so callers never share state with the
    store.
    """

    def __init__(self) -> None:
        self._infra: dict[str, InfrastructureRecord] = {}
        self._builds: dict[AppTuple, BuildRecord] = {}
        self._deploys: dict[AppTuple, DeployRecord] = {}
        self._lock = asyncio.Lock()
        self._logger = logger.bind(component="in_memory_record_store")

    async def get_infra(self, name: str) -> Optional[InfrastructureRecord]:
        record = self._infra.get(name)
        return record.model_copy(deep=True) if record else None

    async def put_infra(self, record: InfrastructureRecord) -> None:
        async with self._lock:
            self._infra[record.name] = record.model_copy(deep=True)
        self._logger.debug("infra_saved", infra=record.name, state=record.state.value)

    async def get_build(self, app_tuple: AppTuple) -> Optional[BuildRecord]:
        record = self._builds.get(app_tuple)
        return record.model_copy(deep=True) if record else None

    async def put_build(self, record: BuildRecord) -> None:
        async with self._lock:
            self._builds[record.app_tuple] = record.model_copy(deep=True)
        self._logger.debug(
            "build_saved",
            tuple=record.app_tuple.key,
            regions=sorted(record.artifact),
        )

    async def get_deploy(self, app_tuple: AppTuple) -> Optional[DeployRecord]:
        record = self._deploys.get(app_tuple)
        return record.model_copy(deep=True) if record else None

    async def put_deploy(self, record: DeployRecord) -> DeployRecord:
        async with self._lock:
            stored = _with_deploy_id(record, self._deploys.get(record.app_tuple))
            self._deploys[stored.app_tuple] = stored
        self._logger.debug(
            "deploy_saved",
            tuple=stored.app_tuple.key,
            deploy_id=stored.id,
            state=stored.state.value,
        )
        return stored.model_copy(deep=True)

    async def count(self) -> int:
        """Total number of stored records of all types."""
        return len(self._infra) + len(self._builds) + len(self._deploys)


# =============================================================================
# FileRecordStore Implementation
# =============================================================================
# Layout under the root directory:
#   infra/{name}.json
#   builds/{app}/{infra}/{infra_flavor}.json
#   deploys/{app}/{infra}/{infra_flavor}.json
#
# Each name is percent-encoded into a single path component, so "/" or ".."
# inside a name can neither merge two tuples onto one file nor leave the
# root. Writes go to a temp file in the same directory and are then renamed
# over the target, so a reader never sees a half-written record. File I/O
# runs in a worker thread to keep the event loop free.
# =============================================================================
def _path_component(name: str) -> str:
    """Encode a record name as one safe, reversible path component."""
    encoded = quote(name, safe="")
    if encoded in (".", ".."):
        encoded = encoded.replace(".", "%2E")
    return encoded


class FileRecordStore(RecordStore):
    """Record store backed by JSON files under a root directory.

    Survives process restarts, which is what a deploy state handle needs.
    Safe for concurrent runs within one process; across processes the last
    rename wins.

    Example:
        >>> store = FileRecordStore(".shipwright/records")
        >>> await store.put_build(build)
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._lock = asyncio.Lock()
        self._logger = logger.bind(component="file_record_store", root=str(self._root))

    @property
    def root(self) -> Path:
        return self._root

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------
    def _infra_path(self, name: str) -> Path:
        return self._root / "infra" / f"{_path_component(name)}.json"

    def _tuple_path(self, kind: str, app_tuple: AppTuple) -> Path:
        return (
            self._root / kind
            / _path_component(app_tuple.app)
            / _path_component(app_tuple.infra)
            / f"{_path_component(app_tuple.infra_flavor)}.json"
        )

    # -------------------------------------------------------------------------
    # Raw I/O
    # -------------------------------------------------------------------------
    @staticmethod
    def _read_sync(path: Path, model: type[_Record]) -> Optional[_Record]:
        if not path.exists():
            return None
        return model.model_validate_json(path.read_text(encoding="utf-8"))

    @staticmethod
    def _write_sync(path: Path, record: BaseModel) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def _read(self, path: Path, model: type[_Record]) -> Optional[_Record]:
        return await asyncio.to_thread(self._read_sync, path, model)

    async def _write(self, path: Path, record: BaseModel) -> None:
        await asyncio.to_thread(self._write_sync, path, record)

    async def _read_tuple(
        self, kind: str, app_tuple: AppTuple, model: type[_Record]
    ) -> Optional[_Record]:
        record = await self._read(self._tuple_path(kind, app_tuple), model)
        if record is not None and record.app_tuple != app_tuple:
            self._logger.warning(
                "record_tuple_mismatch",
                kind=kind,
                requested=app_tuple.key,
                stored=record.app_tuple.key,
            )
            return None
        return record

    # -------------------------------------------------------------------------
    # RecordStore API
    # -------------------------------------------------------------------------
    async def get_infra(self, name: str) -> Optional[InfrastructureRecord]:
        return await self._read(self._infra_path(name), InfrastructureRecord)

    async def put_infra(self, record: InfrastructureRecord) -> None:
        async with self._lock:
            await self._write(self._infra_path(record.name), record)
        self._logger.debug("infra_saved", infra=record.name, state=record.state.value)

    async def get_build(self, app_tuple: AppTuple) -> Optional[BuildRecord]:
        return await self._read_tuple("builds", app_tuple, BuildRecord)

    async def put_build(self, record: BuildRecord) -> None:
        async with self._lock:
            await self._write(self._tuple_path("builds", record.app_tuple), record)
        self._logger.debug("build_saved", tuple=record.app_tuple.key)

    async def get_deploy(self, app_tuple: AppTuple) -> Optional[DeployRecord]:
        return await self._read_tuple("deploys", app_tuple, DeployRecord)

    async def put_deploy(self, record: DeployRecord) -> DeployRecord:
        async with self._lock:
            existing = await self._read_tuple("deploys", record.app_tuple, DeployRecord)
            stored = _with_deploy_id(record, existing)
            await self._write(self._tuple_path("deploys", stored.app_tuple), stored)
        self._logger.debug("deploy_saved", tuple=stored.app_tuple.key, deploy_id=stored.id)
        return stored


def _with_deploy_id(
    record: DeployRecord, existing: Optional[DeployRecord]
) -> DeployRecord:
    """Return a copy of `record` carrying the ID it should be stored under.

    Preference order: the record's own ID, the ID already stored for the
    tuple, then a freshly generated one.
    """
    if record.id is not None:
        return record.model_copy(deep=True)
    if existing is not None and existing.id is not None:
        return record.model_copy(update={"id": existing.id}, deep=True)
    return record.model_copy(update={"id": _generate_deploy_id()}, deep=True)
