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
from typing import Callable, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from mongodb_operator.exceptions import UpsertError
from mongodb_operator.reconciler.stores import ArtifactStore

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


def load_kube_client_config(kube_config_path: Optional[str] = None):
    """Load in-cluster config when running in a pod, the kubeconfig otherwise"""
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        config.load_kube_config(config_file=kube_config_path)
        logger.info("Loaded kubeconfig")


class KubernetesArtifactStore(ArtifactStore):
    """Writes ConfigMaps and StatefulSets to the Kubernetes API"""

    def __init__(
        self,
        core_api: Optional[client.CoreV1Api] = None,
        apps_api: Optional[client.AppsV1Api] = None,
        kube_config_path: Optional[str] = None,
    ):
        if core_api is None or apps_api is None:
            load_kube_client_config(kube_config_path)
        self._core_api = core_api or client.CoreV1Api()
        self._apps_api = apps_api or client.AppsV1Api()

    def upsert_config_map(self, config_map: client.V1ConfigMap) -> None:
        self._create_or_update(
            "ConfigMap",
            config_map,
            read=self._core_api.read_namespaced_config_map,
            create=self._core_api.create_namespaced_config_map,
            replace=self._core_api.replace_namespaced_config_map,
        )

    def upsert_stateful_set(self, stateful_set: client.V1StatefulSet) -> None:
        self._create_or_update(
            "StatefulSet",
            stateful_set,
            read=self._apps_api.read_namespaced_stateful_set,
            create=self._apps_api.create_namespaced_stateful_set,
            replace=self._apps_api.replace_namespaced_stateful_set,
        )

    def _create_or_update(self, kind: str, obj, read: Callable, create: Callable, replace: Callable):
        namespace = obj.metadata.namespace
        name = obj.metadata.name
        try:
            try:
                read(name, namespace)
            except ApiException as e:
                if e.status != HTTP_NOT_FOUND:
                    raise
                try:
                    create(namespace, obj)
                    logger.info(f"Created {kind} {namespace}/{name}")
                    return
                except ApiException as create_error:
                    # Lost a race with a concurrent reconciliation of the same replica set
                    if create_error.status != HTTP_CONFLICT:
                        raise
            replace(name, namespace, obj)
            logger.debug(f"Replaced {kind} {namespace}/{name}")
        except (ApiException, HTTPError) as e:
            raise UpsertError(f"failed to create or update {kind} {namespace}/{name}: {e}") from e
