"""
shipwright.pipeline.reconciler - Deploy State Handle Reconciliation
=====================================================================

Terraform keeps its own state, keyed here by the deploy record's ID. That
ID has to exist, durably, BEFORE Terraform runs: if the apply fails half
way, the next attempt must find the same state and converge instead of
creating a second copy of everything.

    get_deploy(tuple)
        ├── found     → return it unchanged (no write)
        └── not found → DeployRecord(state=NEW) → put_deploy → return stored

The reconciler never deletes or resets a record. Reads are not atomic with
the write; the store keeps any ID it already holds for the tuple, so a
racing second writer ends up with the same handle.
"""

from __future__ import annotations

import structlog

from shipwright.core.enums import DeployState
from shipwright.core.exceptions import PersistenceError
from shipwright.core.models import AppTuple, DeployRecord
from shipwright.infrastructure.record_store import RecordStore


logger = structlog.get_logger()


class DeployStateReconciler:
    """Fetch-or-create for the deploy record of a tuple.

    Attributes:
        _store: Where deploy records live.

    Example:
        >>> reconciler = DeployStateReconciler(store)
        >>> deploy = await reconciler.reconcile(app_tuple)
        >>> deploy.id  # stable across calls
        'dep-...'
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = logger.bind(component="deploy_state_reconciler")

    async def reconcile(self, app_tuple: AppTuple) -> DeployRecord:
        """Return the deploy record for `app_tuple`, creating it if needed.

        Raises:
            PersistenceError: If a new record could not be stored.
        """
        existing = await self._store.get_deploy(app_tuple)
        if existing is not None:
            self._logger.debug(
                "deploy_record_reused",
                tuple=app_tuple.key,
                deploy_id=existing.id,
                state=existing.state.value,
            )
            return existing

        placeholder = DeployRecord.for_tuple(app_tuple, state=DeployState.NEW)
        try:
            stored = await self._store.put_deploy(placeholder)
        except Exception as exc:
            raise PersistenceError(
                message=(
                    f"Error storing the deploy record in the record store: {exc}\n\n"
                    f"A deploy record must be stored before deploying so that the\n"
                    f"deploy tool has a stable place to keep its state. Nothing has\n"
                    f"been deployed yet. Please fix the above error and deploy again."
                ),
                record_type="deploy",
                error_code="DEPLOY_STORE_FAILED",
                details={"tuple": app_tuple.key},
            ) from exc

        self._logger.info("deploy_record_created", tuple=app_tuple.key, deploy_id=stored.id)
        return stored
