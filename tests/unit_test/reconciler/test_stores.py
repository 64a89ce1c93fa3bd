"""
Unit tests for the desired-state and artifact store adapters.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from mongodb_operator.db.models import ReplicaSetStatus
from mongodb_operator.exceptions import ReadError, UpsertError
from mongodb_operator.kube.configmap import build_automation_config_map
from mongodb_operator.kube.statefulset import StatefulSetBuilder
from mongodb_operator.reconciler.stores import (
    DatabaseDesiredStateStore,
    LocalArtifactStore,
    create_artifact_store,
)


def _db_error():
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


class TestDatabaseDesiredStateStore:
    def test_get(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")
        store = DatabaseDesiredStateStore(db_ops)

        replica_set = store.get("ns1", "my-rs")

        assert replica_set.members == 3
        assert store.get("ns1", "ghost") is None

    def test_list_replica_sets(self, db_ops):
        db_ops.apply_replica_set("ns1", "b-rs", members=1, version="4.2.0")
        db_ops.apply_replica_set("ns1", "a-rs", members=1, version="4.2.0")

        names = [rs.name for rs in DatabaseDesiredStateStore(db_ops).list_replica_sets()]

        assert names == ["a-rs", "b-rs"]

    def test_status_round_trip(self, db_ops):
        store = DatabaseDesiredStateStore(db_ops)
        assert store.get_status("ns1", "my-rs") is None

        status = ReplicaSetStatus(namespace="ns1", name="my-rs")
        status.record_automation_config(3, "abc")
        store.save_status(status)

        saved = store.get_status("ns1", "my-rs")
        assert saved.automation_config_version == 3
        assert saved.automation_config_hash == "abc"

    def test_read_errors_are_translated(self):
        ops = MagicMock()
        ops.query_replica_set.side_effect = _db_error()
        ops.query_replica_sets.side_effect = _db_error()
        ops.query_replica_set_status.side_effect = _db_error()
        store = DatabaseDesiredStateStore(ops)

        with pytest.raises(ReadError, match="ns1/my-rs"):
            store.get("ns1", "my-rs")
        with pytest.raises(ReadError):
            store.list_replica_sets()
        with pytest.raises(ReadError):
            store.get_status("ns1", "my-rs")

    def test_write_errors_are_translated(self):
        ops = MagicMock()
        ops.save_replica_set_status.side_effect = _db_error()

        with pytest.raises(UpsertError, match="ns1/my-rs"):
            DatabaseDesiredStateStore(ops).save_status(ReplicaSetStatus(namespace="ns1", name="my-rs"))


class TestLocalArtifactStore:
    def test_create_then_replace(self, replica_set):
        store = LocalArtifactStore()

        store.upsert_config_map(build_automation_config_map(replica_set, 1))
        store.upsert_config_map(build_automation_config_map(replica_set, 2))

        cm = store.get_config_map("ns1", "my-rs-config")
        assert '"version":2' in cm.data["automation-config"]

    def test_stored_objects_are_copies(self, replica_set):
        store = LocalArtifactStore()
        sts = StatefulSetBuilder("agent:1").build(replica_set)

        store.upsert_stateful_set(sts)
        sts.spec.replicas = 10

        assert store.get_stateful_set("ns1", "my-rs").spec.replicas == 3

    def test_unknown_objects(self):
        store = LocalArtifactStore()
        assert store.get_config_map("ns1", "missing") is None
        assert store.get_stateful_set("ns1", "missing") is None


class TestCreateArtifactStore:
    def test_local(self):
        assert isinstance(create_artifact_store("local"), LocalArtifactStore)

    @patch("mongodb_operator.kube.client.load_kube_client_config")
    def test_kubernetes(self, mock_load_config):
        from mongodb_operator.kube.client import KubernetesArtifactStore

        store = create_artifact_store("kubernetes", "/tmp/kubeconfig")

        assert isinstance(store, KubernetesArtifactStore)
        mock_load_config.assert_called_once_with("/tmp/kubeconfig")

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown artifact store type"):
            create_artifact_store("etcd")
