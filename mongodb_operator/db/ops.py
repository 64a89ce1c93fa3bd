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
from typing import List, Optional, Tuple

from sqlmodel import select

from mongodb_operator.config import get_sync_session
from mongodb_operator.db.models import ReplicaSet, ReplicaSetStatus, utc_now

logger = logging.getLogger(__name__)


class DatabaseOps:
    """Database operations for replica set records, one session per call"""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_sync_session

    def query_replica_set(self, namespace: str, name: str) -> Optional[ReplicaSet]:
        """Get a live (not deleted) replica set by identity"""
        with self._session_factory() as session:
            stmt = select(ReplicaSet).where(
                ReplicaSet.namespace == namespace,
                ReplicaSet.name == name,
                ReplicaSet.gmt_deleted.is_(None),
            )
            result = session.execute(stmt)
            return result.scalars().first()

    def query_replica_sets(self, namespace: Optional[str] = None) -> List[ReplicaSet]:
        with self._session_factory() as session:
            stmt = select(ReplicaSet).where(ReplicaSet.gmt_deleted.is_(None))
            if namespace:
                stmt = stmt.where(ReplicaSet.namespace == namespace)
            stmt = stmt.order_by(ReplicaSet.namespace, ReplicaSet.name)
            result = session.execute(stmt)
            return list(result.scalars().all())

    def apply_replica_set(
        self,
        namespace: str,
        name: str,
        members: int,
        version: str,
        cluster_domain: Optional[str] = None,
        service_name: Optional[str] = None,
        user: str = "system",
    ) -> Tuple[ReplicaSet, bool]:
        """
        Create or update the desired state of a replica set

        Returns:
            The stored record and whether its spec changed
        """
        with self._session_factory() as session:
            stmt = select(ReplicaSet).where(ReplicaSet.namespace == namespace, ReplicaSet.name == name)
            result = session.execute(stmt)
            instance = result.scalars().first()

            if instance is None:
                instance = ReplicaSet(
                    namespace=namespace,
                    name=name,
                    members=members,
                    version=version,
                    cluster_domain=cluster_domain,
                    service_name=service_name,
                    created_by=user,
                )
                changed = True
                logger.debug(f"Created replica set {namespace}/{name}")
            elif instance.gmt_deleted is not None:
                # Revive a soft-deleted record, the unique constraint covers deleted rows too
                if not instance.update_spec(members, version, cluster_domain, service_name):
                    instance.generation += 1
                instance.gmt_deleted = None
                changed = True
                logger.debug(f"Revived replica set {namespace}/{name} at generation {instance.generation}")
            else:
                changed = instance.update_spec(members, version, cluster_domain, service_name)
                if changed:
                    logger.debug(f"Updated replica set {namespace}/{name} to generation {instance.generation}")

            session.add(instance)
            session.commit()
            return instance, changed

    def delete_replica_set(self, namespace: str, name: str) -> Optional[ReplicaSet]:
        """Soft delete a replica set"""
        with self._session_factory() as session:
            stmt = select(ReplicaSet).where(
                ReplicaSet.namespace == namespace,
                ReplicaSet.name == name,
                ReplicaSet.gmt_deleted.is_(None),
            )
            result = session.execute(stmt)
            instance = result.scalars().first()

            if instance:
                instance.gmt_deleted = utc_now()
                session.add(instance)
                session.commit()
            return instance

    def query_replica_set_status(self, namespace: str, name: str) -> Optional[ReplicaSetStatus]:
        with self._session_factory() as session:
            stmt = select(ReplicaSetStatus).where(
                ReplicaSetStatus.namespace == namespace, ReplicaSetStatus.name == name
            )
            result = session.execute(stmt)
            return result.scalars().first()

    def save_replica_set_status(self, status: ReplicaSetStatus) -> ReplicaSetStatus:
        with self._session_factory() as session:
            merged = session.merge(status)
            session.commit()
            return merged


db_ops = DatabaseOps()
