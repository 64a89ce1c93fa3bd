# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mongodb_operator.automation.config import build_automation_config
from mongodb_operator.automation.versioning import content_hash, next_version
from mongodb_operator.config import Settings, settings as default_settings
from mongodb_operator.db.models import ReplicaSet, ReplicaSetStatus
from mongodb_operator.exceptions import (
    BuildError,
    NotFoundError,
    ReadError,
    ReplicaSetError,
    SerializationError,
    UpsertError,
)
from mongodb_operator.kube.configmap import build_automation_config_map
from mongodb_operator.kube.statefulset import StatefulSetBuilder
from mongodb_operator.reconciler.stores import (
    ArtifactStore,
    DatabaseDesiredStateStore,
    DesiredStateStore,
    create_artifact_store,
)

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    DONE = "done"
    REQUEUE = "requeue"
    PERMANENT_FAILURE = "permanent_failure"


@dataclass
class ReconcileResult:
    """What the dispatcher should do with a reconciliation request"""

    outcome: ReconcileOutcome
    error: Optional[Exception] = None

    @classmethod
    def done(cls) -> "ReconcileResult":
        return cls(ReconcileOutcome.DONE)

    @classmethod
    def requeue(cls, error: Exception) -> "ReconcileResult":
        return cls(ReconcileOutcome.REQUEUE, error)

    @classmethod
    def permanent_failure(cls, error: Exception) -> "ReconcileResult":
        return cls(ReconcileOutcome.PERMANENT_FAILURE, error)

    @property
    def should_requeue(self) -> bool:
        return self.outcome == ReconcileOutcome.REQUEUE

    def to_dict(self) -> dict:
        return {"outcome": self.outcome.value, "error": str(self.error) if self.error else None}


class ReplicaSetReconciler:
    """
    Converges the ConfigMap and StatefulSet of a replica set towards its desired state.

    Every call rebuilds both objects from scratch and writes them with
    create-or-replace, so repeated calls with an unchanged desired state
    produce identical objects. The reconciler keeps no state between calls.
    """

    def __init__(
        self,
        desired_state_store: DesiredStateStore,
        artifact_store: ArtifactStore,
        stateful_set_builder: StatefulSetBuilder,
    ):
        self.desired_state_store = desired_state_store
        self.artifact_store = artifact_store
        self.stateful_set_builder = stateful_set_builder

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        identity = f"{namespace}/{name}"
        logger.info(f"Reconciling MongoDB replica set {identity}")

        try:
            replica_set = self._fetch(namespace, name)
        except NotFoundError:
            # Deleted after the request was queued, cleanup of owned objects is not done here
            logger.info(f"Replica set {identity} not found, nothing to reconcile")
            return ReconcileResult.done()
        except ReadError as e:
            logger.error(f"Error reading replica set {identity}: {e}")
            return ReconcileResult.requeue(e)

        try:
            status = self._ensure_automation_config(replica_set)
        except (ReadError, SerializationError, UpsertError) as e:
            logger.warning(f"Failed creating automation config for {identity}: {e}")
            self._record_failure(replica_set, e)
            return ReconcileResult.requeue(e)

        try:
            stateful_set = self.stateful_set_builder.build(replica_set)
        except BuildError as e:
            logger.warning(f"Error building StatefulSet for {identity}: {e}")
            self._record_failure(replica_set, e)
            return ReconcileResult.permanent_failure(e)

        try:
            self.artifact_store.upsert_stateful_set(stateful_set)
        except UpsertError as e:
            logger.warning(f"Error creating/updating StatefulSet for {identity}: {e}")
            self._record_failure(replica_set, e)
            return ReconcileResult.requeue(e)

        status.mark_running(replica_set.generation)
        try:
            self.desired_state_store.save_status(status)
        except UpsertError as e:
            logger.warning(f"Failed to write status of {identity}: {e}")
            return ReconcileResult.requeue(e)

        logger.info(
            f"Successfully finished reconciliation of {identity}: members={replica_set.members}, "
            f"version={replica_set.version}, automation config v{status.automation_config_version}"
        )
        return ReconcileResult.done()

    def _fetch(self, namespace: str, name: str) -> ReplicaSet:
        replica_set = self.desired_state_store.get(namespace, name)
        if replica_set is None:
            raise NotFoundError(f"replica set {namespace}/{name} not found")
        return replica_set

    def _get_or_new_status(self, replica_set: ReplicaSet) -> ReplicaSetStatus:
        status = self.desired_state_store.get_status(replica_set.namespace, replica_set.name)
        if status is None:
            status = ReplicaSetStatus(namespace=replica_set.namespace, name=replica_set.name)
        return status

    def _ensure_automation_config(self, replica_set: ReplicaSet) -> ReplicaSetStatus:
        """
        Write the automation config ConfigMap. The version counter moves
        forward only when the document content differs from the last one
        recorded. A new (version, hash) is recorded before the ConfigMap is
        written, so the stored version is never behind the live one.
        """
        status = self._get_or_new_status(replica_set)

        new_hash = content_hash(build_automation_config(replica_set))
        version = next_version(status.automation_config_version, status.automation_config_hash, new_hash)
        config_map = build_automation_config_map(replica_set, version)

        if version != status.automation_config_version or new_hash != status.automation_config_hash:
            logger.debug(f"Automation config of {replica_set.identity} is now at version {version}")
            status.record_automation_config(version, new_hash)
            status = self.desired_state_store.save_status(status)

        self.artifact_store.upsert_config_map(config_map)
        return status

    def _record_failure(self, replica_set: ReplicaSet, error: ReplicaSetError):
        """Best effort: the reconciliation outcome already carries the error"""
        try:
            status = self._get_or_new_status(replica_set)
            status.mark_failed(str(error))
            self.desired_state_store.save_status(status)
        except (ReadError, UpsertError) as e:
            logger.error(f"Failed to record failure status for {replica_set.identity}: {e}")


def create_replica_set_reconciler(settings: Optional[Settings] = None) -> ReplicaSetReconciler:
    """Wire a reconciler from settings: database desired state, configured artifact store"""
    settings = settings or default_settings
    return ReplicaSetReconciler(
        desired_state_store=DatabaseDesiredStateStore(),
        artifact_store=create_artifact_store(settings.artifact_store, settings.kube_config_path),
        stateful_set_builder=StatefulSetBuilder(settings.agent_image),
    )
