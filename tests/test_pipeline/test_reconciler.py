"""
Tests for shipwright.pipeline.reconciler
==========================================

What's Being Tested:
    - First reconcile creates and stores a NEW record with an ID
    - Later reconciles return the same ID without writing
    - Existing records are returned unchanged (never reset)
    - Store write failures surface as PersistenceError
"""

import pytest

from shipwright.core.enums import DeployState
from shipwright.core.exceptions import PersistenceError
from shipwright.core.models import AppTuple, DeployRecord
from shipwright.infrastructure.record_store import InMemoryRecordStore
from shipwright.pipeline.reconciler import DeployStateReconciler


# =============================================================================
# Helpers
# =============================================================================
class CountingStore(InMemoryRecordStore):
    """InMemoryRecordStore that counts put_deploy calls."""

    def __init__(self) -> None:
        super().__init__()
        self.put_deploy_calls = 0

    async def put_deploy(self, record: DeployRecord) -> DeployRecord:
        self.put_deploy_calls += 1
        return await super().put_deploy(record)


class BrokenDeployStore(InMemoryRecordStore):
    """InMemoryRecordStore whose deploy writes always fail."""

    async def put_deploy(self, record: DeployRecord) -> DeployRecord:
        raise OSError("disk full")


# =============================================================================
# Tests
# =============================================================================
class TestDeployStateReconciler:
    """Tests for DeployStateReconciler.reconcile."""

    async def test_creates_new_record_with_id(self, app_tuple) -> None:
        store = CountingStore()
        deploy = await DeployStateReconciler(store).reconcile(app_tuple)

        assert deploy.id is not None
        assert deploy.id.startswith("dep-")
        assert deploy.state == DeployState.NEW
        assert deploy.app_tuple == app_tuple
        assert store.put_deploy_calls == 1

    async def test_record_is_persisted_before_returning(self, app_tuple) -> None:
        store = InMemoryRecordStore()
        deploy = await DeployStateReconciler(store).reconcile(app_tuple)

        stored = await store.get_deploy(app_tuple)
        assert stored is not None
        assert stored.id == deploy.id

    async def test_second_call_reuses_id_without_writing(self, app_tuple) -> None:
        store = CountingStore()
        reconciler = DeployStateReconciler(store)

        first = await reconciler.reconcile(app_tuple)
        second = await reconciler.reconcile(app_tuple)

        assert second.id == first.id
        assert store.put_deploy_calls == 1

    async def test_existing_record_returned_unchanged(self, app_tuple) -> None:
        store = CountingStore()
        await store.put_deploy(
            DeployRecord.for_tuple(app_tuple, id="dep-existing", state=DeployState.SUCCESS)
        )
        store.put_deploy_calls = 0

        deploy = await DeployStateReconciler(store).reconcile(app_tuple)

        assert deploy.id == "dep-existing"
        assert deploy.state == DeployState.SUCCESS
        assert store.put_deploy_calls == 0

    async def test_tuples_get_distinct_ids(self, app_tuple) -> None:
        store = InMemoryRecordStore()
        reconciler = DeployStateReconciler(store)
        other = AppTuple(app="worker", infra="aws", infra_flavor="simple")

        first = await reconciler.reconcile(app_tuple)
        second = await reconciler.reconcile(other)

        assert first.id != second.id

    async def test_write_failure_raises_persistence_error(self, app_tuple) -> None:
        with pytest.raises(PersistenceError) as exc_info:
            await DeployStateReconciler(BrokenDeployStore()).reconcile(app_tuple)

        assert exc_info.value.record_type == "deploy"
        assert exc_info.value.error_code == "DEPLOY_STORE_FAILED"
        assert "disk full" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, OSError)
