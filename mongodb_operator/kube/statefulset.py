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

from typing import Dict

from kubernetes import client

from mongodb_operator.db.models import ReplicaSet
from mongodb_operator.exceptions import BuildError
from mongodb_operator.kube.configmap import AUTOMATION_CONFIG_KEY
from mongodb_operator.kube.resources import default_resource_requirements


AGENT_NAME = "mongodb-agent"
AUTOMATION_CONFIG_VOLUME = "automation-config"
AUTOMATION_CONFIG_MOUNT_PATH = "/var/lib/automation/config"
AUTOMATION_CONFIG_FILE = "automation-config.json"
AGENT_COMMAND = [
    "agent/mongodb-agent",
    f"-cluster={AUTOMATION_CONFIG_MOUNT_PATH}/{AUTOMATION_CONFIG_FILE}",
]


def build_labels(replica_set: ReplicaSet) -> Dict[str, str]:
    return {"app": replica_set.service()}


class StatefulSetBuilder:
    """
    Builds the StatefulSet running one mongodb-agent per replica set member.

    The agent image is handed in at construction so that building never
    consults process environment.
    """

    def __init__(self, agent_image: str):
        self.agent_image = agent_image

    def build(self, replica_set: ReplicaSet) -> client.V1StatefulSet:
        """
        Args:
            replica_set: Desired state of the replica set

        Raises:
            BuildError: member count below one or no agent image configured
        """
        if replica_set.members is None or replica_set.members < 1:
            raise BuildError(
                f"replica set {replica_set.identity} needs at least one member, got {replica_set.members}"
            )
        if not self.agent_image:
            raise BuildError("agent image is not configured, set AGENT_IMAGE")

        labels = build_labels(replica_set)

        agent_container = client.V1Container(
            name=AGENT_NAME,
            image=self.agent_image,
            resources=default_resource_requirements(),
            command=list(AGENT_COMMAND),
            volume_mounts=[
                client.V1VolumeMount(
                    name=AUTOMATION_CONFIG_VOLUME,
                    mount_path=AUTOMATION_CONFIG_MOUNT_PATH,
                    read_only=True,
                )
            ],
        )

        config_volume = client.V1Volume(
            name=AUTOMATION_CONFIG_VOLUME,
            config_map=client.V1ConfigMapVolumeSource(
                name=replica_set.config_map_name(),
                items=[client.V1KeyToPath(key=AUTOMATION_CONFIG_KEY, path=AUTOMATION_CONFIG_FILE)],
            ),
        )

        pod_template = client.V1PodTemplateSpec(
            metadata=client.V1ObjectMeta(labels=dict(labels)),
            spec=client.V1PodSpec(containers=[agent_container], volumes=[config_volume]),
        )

        return client.V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=client.V1ObjectMeta(
                name=replica_set.name,
                namespace=replica_set.namespace,
                labels=dict(labels),
            ),
            spec=client.V1StatefulSetSpec(
                replicas=replica_set.members,
                service_name=replica_set.service(),
                selector=client.V1LabelSelector(match_labels=dict(labels)),
                template=pod_template,
            ),
        )
