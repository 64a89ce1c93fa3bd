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

from kubernetes import client

from mongodb_operator.automation.config import INITIAL_VERSION, build_automation_config
from mongodb_operator.db.models import ReplicaSet
from mongodb_operator.exceptions import SerializationError

AUTOMATION_CONFIG_KEY = "automation-config"


def build_automation_config_map(replica_set: ReplicaSet, version: int = INITIAL_VERSION) -> client.V1ConfigMap:
    """Wrap the serialized automation config of a replica set in its ConfigMap"""
    automation_config = build_automation_config(replica_set, version)
    try:
        payload = automation_config.to_json()
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to encode automation config for {replica_set.identity}: {e}") from e

    return client.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=client.V1ObjectMeta(name=replica_set.config_map_name(), namespace=replica_set.namespace),
        data={AUTOMATION_CONFIG_KEY: payload},
    )
