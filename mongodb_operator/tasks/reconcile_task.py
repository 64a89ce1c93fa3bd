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
from typing import Optional

from config.celery import app
from mongodb_operator.config import settings
from mongodb_operator.reconciler.replica_set import (
    ReconcileOutcome,
    ReplicaSetReconciler,
    create_replica_set_reconciler,
)
from mongodb_operator.reconciler.stores import DatabaseDesiredStateStore

logger = logging.getLogger(__name__)

_reconciler: Optional[ReplicaSetReconciler] = None


def get_reconciler() -> ReplicaSetReconciler:
    """Reconciler shared by the tasks of this worker process, built on first use"""
    global _reconciler
    if _reconciler is None:
        _reconciler = create_replica_set_reconciler(settings)
    return _reconciler


@app.task(bind=True)
def reconcile_replica_set_task(self, namespace: str, name: str):
    """
    Reconcile one replica set

    Args:
        namespace: Namespace of the replica set
        name: Name of the replica set
    """
    result = get_reconciler().reconcile(namespace, name)

    if result.outcome == ReconcileOutcome.REQUEUE:
        countdown = settings.reconcile_retry_countdown * (2 ** self.request.retries)
        logger.info(f"Requeueing reconciliation of {namespace}/{name} in {countdown}s: {result.error}")
        raise self.retry(exc=result.error, countdown=countdown, max_retries=settings.reconcile_max_retries)

    if result.outcome == ReconcileOutcome.PERMANENT_FAILURE:
        logger.error(f"Reconciliation of {namespace}/{name} failed permanently: {result.error}")

    return result.to_dict()


@app.task
def reconcile_all_replica_sets_task():
    """Periodic task queueing a reconciliation for every live replica set"""
    try:
        replica_sets = DatabaseDesiredStateStore().list_replica_sets()
        for replica_set in replica_sets:
            reconcile_replica_set_task.delay(replica_set.namespace, replica_set.name)
        logger.info(f"Queued reconciliation of {len(replica_sets)} replica sets")
        return len(replica_sets)
    except Exception as e:
        logger.error(f"Replica set resync failed: {e}", exc_info=True)
        raise
