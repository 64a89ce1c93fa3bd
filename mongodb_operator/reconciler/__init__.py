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

"""
Replica set reconciliation.

For one replica set identity the reconciler reads the desired state, writes
the automation config ConfigMap, then writes the StatefulSet running one
mongodb-agent per member:

    Start -> Fetched -> ConfigEnsured -> WorkloadEnsured -> Done

A missing desired state ends the run successfully. Read and write failures ask
for a requeue; a StatefulSet that cannot be built from the desired state is a
permanent failure.
"""

from .replica_set import (
    ReconcileOutcome,
    ReconcileResult,
    ReplicaSetReconciler,
    create_replica_set_reconciler,
)
from .stores import (
    ArtifactStore,
    DatabaseDesiredStateStore,
    DesiredStateStore,
    LocalArtifactStore,
    create_artifact_store,
)

__all__ = [
    "ReconcileOutcome",
    "ReconcileResult",
    "ReplicaSetReconciler",
    "create_replica_set_reconciler",
    "ArtifactStore",
    "DatabaseDesiredStateStore",
    "DesiredStateStore",
    "LocalArtifactStore",
    "create_artifact_store",
]
