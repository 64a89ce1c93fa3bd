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

import random
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint

DEFAULT_SERVICE_SUFFIX = "-service"
CONFIG_MAP_SUFFIX = "-config"


def random_id():
    """Generate a random ID string"""
    return "".join(random.sample(uuid.uuid4().hex, 16))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReplicaSetPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    FAILED = "Failed"


class ReplicaSet(SQLModel, table=True):
    """Desired state of one MongoDB replica set"""

    __tablename__ = "replica_set"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_replica_set_namespace_name"),)

    id: str = Field(default_factory=lambda: "rs" + random_id(), primary_key=True, max_length=24)
    namespace: str = Field(max_length=253)
    name: str = Field(max_length=63)
    members: int
    version: str = Field(max_length=32)
    cluster_domain: Optional[str] = Field(default=None, max_length=253)
    service_name: Optional[str] = Field(default=None, max_length=63)
    # Bumped on every spec change, compared against ReplicaSetStatus.observed_generation
    generation: int = 1
    created_by: str = Field(default="system", max_length=256)
    gmt_created: datetime = Field(default_factory=utc_now)
    gmt_updated: datetime = Field(default_factory=utc_now)
    gmt_deleted: Optional[datetime] = None

    @property
    def identity(self) -> str:
        return f"{self.namespace}/{self.name}"

    def service(self) -> str:
        """Name of the governing service, defaults to <name>-service"""
        return self.service_name or self.name + DEFAULT_SERVICE_SUFFIX

    def config_map_name(self) -> str:
        return self.name + CONFIG_MAP_SUFFIX

    def update_spec(
        self,
        members: int,
        version: str,
        cluster_domain: Optional[str] = None,
        service_name: Optional[str] = None,
    ) -> bool:
        """Apply a new spec, bumping the generation if anything changed"""
        changed = (
            self.members != members
            or self.version != version
            or self.cluster_domain != cluster_domain
            or self.service_name != service_name
        )
        if changed:
            self.members = members
            self.version = version
            self.cluster_domain = cluster_domain
            self.service_name = service_name
            self.generation += 1
            self.gmt_updated = utc_now()
        return changed


class ReplicaSetStatus(SQLModel, table=True):
    """Observed state of one replica set, written back by the reconciler"""

    __tablename__ = "replica_set_status"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_replica_set_status_namespace_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    namespace: str = Field(max_length=253)
    name: str = Field(max_length=63)
    phase: ReplicaSetPhase = ReplicaSetPhase.PENDING
    message: Optional[str] = None
    observed_generation: int = 0
    # Last automation config written to the ConfigMap
    automation_config_version: int = 0
    automation_config_hash: Optional[str] = Field(default=None, max_length=64)
    gmt_last_reconciled: Optional[datetime] = None
    gmt_created: datetime = Field(default_factory=utc_now)
    gmt_updated: datetime = Field(default_factory=utc_now)

    def record_automation_config(self, version: int, content_hash: str):
        self.automation_config_version = version
        self.automation_config_hash = content_hash
        self.gmt_updated = utc_now()

    def mark_running(self, observed_generation: int):
        self.phase = ReplicaSetPhase.RUNNING
        self.message = None
        self.observed_generation = observed_generation
        self.gmt_last_reconciled = utc_now()
        self.gmt_updated = self.gmt_last_reconciled

    def mark_failed(self, message: str):
        self.phase = ReplicaSetPhase.FAILED
        self.message = message
        self.gmt_last_reconciled = utc_now()
        self.gmt_updated = self.gmt_last_reconciled
