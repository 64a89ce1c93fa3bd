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
Automation config: the replica set topology document consumed by every
mongodb-agent process. Its JSON layout is read by the agent, keep it stable.
"""

import json
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from mongodb_operator.db.models import ReplicaSet

DEFAULT_CLUSTER_DOMAIN = "cluster.local"
INITIAL_VERSION = 1
MONGOD_PORT = 27017
DATA_DIR = "/data"


class Topology(str, Enum):
    REPLICA_SET = "replica-set"


class Process(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    hostname: str
    process_type: str = Field(default="mongod", alias="processType")
    version: str
    port: int = MONGOD_PORT
    repl_set_name: str = Field(alias="replSetName")
    db_path: str = Field(default=DATA_DIR, alias="dbPath")


class ReplicaSetMember(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id")
    host: str
    priority: int = 1
    votes: int = 1


class ReplicaSetConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    members: List[ReplicaSetMember]


class AutomationConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int
    topology: Topology
    name: str
    domain: str
    members: int
    mongodb_version: str = Field(alias="mongoDbVersion")
    processes: List[Process] = Field(default_factory=list)
    replica_sets: List[ReplicaSetConfig] = Field(default_factory=list, alias="replicaSets")

    def to_json(self, exclude_version: bool = False) -> str:
        """Canonical JSON: sorted keys, no whitespace"""
        exclude = {"version"} if exclude_version else None
        data = self.model_dump(mode="json", by_alias=True, exclude=exclude)
        return json.dumps(data, sort_keys=True, separators=(",", ":"))


def get_domain(service: str, namespace: str, cluster_domain: str = "") -> str:
    if not cluster_domain:
        cluster_domain = DEFAULT_CLUSTER_DOMAIN
    return f"{service}.{namespace}.svc.{cluster_domain}"


def build_automation_config(replica_set: ReplicaSet, version: int = INITIAL_VERSION) -> AutomationConfig:
    """Translate the desired state of a replica set into its automation config"""
    domain = get_domain(replica_set.service(), replica_set.namespace, replica_set.cluster_domain or "")

    processes = []
    rs_members = []
    for i in range(max(replica_set.members, 0)):
        process_name = f"{replica_set.name}-{i}"
        processes.append(
            Process(
                name=process_name,
                hostname=f"{process_name}.{domain}",
                version=replica_set.version,
                repl_set_name=replica_set.name,
            )
        )
        rs_members.append(ReplicaSetMember(id=i, host=process_name))

    return AutomationConfig(
        version=version,
        topology=Topology.REPLICA_SET,
        name=replica_set.name,
        domain=domain,
        members=replica_set.members,
        mongodb_version=replica_set.version,
        processes=processes,
        replica_sets=[ReplicaSetConfig(id=replica_set.name, members=rs_members)],
    )
