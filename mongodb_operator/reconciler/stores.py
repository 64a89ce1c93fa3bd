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

import copy
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from kubernetes import client
from sqlalchemy.exc import SQLAlchemyError

from mongodb_operator.db.models import ReplicaSet, ReplicaSetStatus
from mongodb_operator.db.ops import DatabaseOps, db_ops
from mongodb_operator.exceptions import ReadError, UpsertError

logger = logging.getLogger(__name__)


class DesiredStateStore(ABC):
    """Where replica set desired state and its companion status live"""

    @abstractmethod
    def get(self, namespace: str, name: str) -> Optional[ReplicaSet]:
        """
        Get the desired state of a replica set

        Returns:
            The record, or None if it does not exist

        Raises:
            ReadError: the store could not be read
        """
        pass

    @abstractmethod
    def list_replica_sets(self) -> List[ReplicaSet]:
        pass

    @abstractmethod
    def get_status(self, namespace: str, name: str) -> Optional[ReplicaSetStatus]:
        pass

    @abstractmethod
    def save_status(self, status: ReplicaSetStatus) -> ReplicaSetStatus:
        """Raises UpsertError if the status could not be written"""
        pass


class ArtifactStore(ABC):
    """
    Create-or-replace writes of the objects derived from a replica set.
    Objects are matched by name and namespace.
    """

    @abstractmethod
    def upsert_config_map(self, config_map: client.V1ConfigMap) -> None:
        pass

    @abstractmethod
    def upsert_stateful_set(self, stateful_set: client.V1StatefulSet) -> None:
        pass


class DatabaseDesiredStateStore(DesiredStateStore):
    """Desired state kept in the operator database"""

    def __init__(self, ops: Optional[DatabaseOps] = None):
        self.ops = ops or db_ops

    def get(self, namespace: str, name: str) -> Optional[ReplicaSet]:
        try:
            return self.ops.query_replica_set(namespace, name)
        except SQLAlchemyError as e:
            raise ReadError(f"failed to read replica set {namespace}/{name}: {e}") from e

    def list_replica_sets(self) -> List[ReplicaSet]:
        try:
            return self.ops.query_replica_sets()
        except SQLAlchemyError as e:
            raise ReadError(f"failed to list replica sets: {e}") from e

    def get_status(self, namespace: str, name: str) -> Optional[ReplicaSetStatus]:
        try:
            return self.ops.query_replica_set_status(namespace, name)
        except SQLAlchemyError as e:
            raise ReadError(f"failed to read status of replica set {namespace}/{name}: {e}") from e

    def save_status(self, status: ReplicaSetStatus) -> ReplicaSetStatus:
        try:
            return self.ops.save_replica_set_status(status)
        except SQLAlchemyError as e:
            raise UpsertError(f"failed to write status of replica set {status.namespace}/{status.name}: {e}") from e


class LocalArtifactStore(ArtifactStore):
    """In-memory implementation for dry runs and tests"""

    def __init__(self):
        self._config_maps: Dict[Tuple[str, str], client.V1ConfigMap] = {}
        self._stateful_sets: Dict[Tuple[str, str], client.V1StatefulSet] = {}

    def upsert_config_map(self, config_map: client.V1ConfigMap) -> None:
        key = (config_map.metadata.namespace, config_map.metadata.name)
        action = "Replaced" if key in self._config_maps else "Created"
        self._config_maps[key] = copy.deepcopy(config_map)
        logger.debug(f"{action} ConfigMap {key[0]}/{key[1]}")

    def upsert_stateful_set(self, stateful_set: client.V1StatefulSet) -> None:
        key = (stateful_set.metadata.namespace, stateful_set.metadata.name)
        action = "Replaced" if key in self._stateful_sets else "Created"
        self._stateful_sets[key] = copy.deepcopy(stateful_set)
        logger.debug(f"{action} StatefulSet {key[0]}/{key[1]}")

    def get_config_map(self, namespace: str, name: str) -> Optional[client.V1ConfigMap]:
        return self._config_maps.get((namespace, name))

    def get_stateful_set(self, namespace: str, name: str) -> Optional[client.V1StatefulSet]:
        return self._stateful_sets.get((namespace, name))


def create_artifact_store(store_type: str = "kubernetes", kube_config_path: Optional[str] = None) -> ArtifactStore:
    """Factory function to create an artifact store"""
    if store_type == "kubernetes":
        from mongodb_operator.kube.client import KubernetesArtifactStore

        return KubernetesArtifactStore(kube_config_path=kube_config_path)
    elif store_type == "local":
        return LocalArtifactStore()
    else:
        raise ValueError(f"Unknown artifact store type: {store_type}")
