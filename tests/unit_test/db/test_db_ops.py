"""
Unit tests for DatabaseOps against an in-memory SQLite database.
"""

from mongodb_operator.db.models import ReplicaSetPhase, ReplicaSetStatus


class TestApplyReplicaSet:
    def test_create(self, db_ops):
        replica_set, changed = db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0", user="admin")

        assert changed is True
        assert replica_set.generation == 1
        assert replica_set.created_by == "admin"
        assert replica_set.service() == "my-rs-service"
        assert replica_set.config_map_name() == "my-rs-config"
        assert db_ops.query_replica_set("ns1", "my-rs").id == replica_set.id

    def test_unchanged_spec_keeps_generation(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")
        replica_set, changed = db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")

        assert changed is False
        assert replica_set.generation == 1

    def test_changed_spec_bumps_generation(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")
        replica_set, changed = db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.4.0")

        assert changed is True
        assert replica_set.generation == 2
        assert db_ops.query_replica_set("ns1", "my-rs").version == "4.4.0"

    def test_same_name_in_other_namespace(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")
        db_ops.apply_replica_set("ns2", "my-rs", members=1, version="4.2.0")

        assert db_ops.query_replica_set("ns1", "my-rs").members == 3
        assert db_ops.query_replica_set("ns2", "my-rs").members == 1
        assert len(db_ops.query_replica_sets()) == 2
        assert len(db_ops.query_replica_sets("ns2")) == 1


class TestDeleteReplicaSet:
    def test_soft_delete(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")

        deleted = db_ops.delete_replica_set("ns1", "my-rs")

        assert deleted.gmt_deleted is not None
        assert db_ops.query_replica_set("ns1", "my-rs") is None
        assert db_ops.query_replica_sets() == []

    def test_delete_missing(self, db_ops):
        assert db_ops.delete_replica_set("ns1", "ghost") is None

    def test_reapply_after_delete(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")
        db_ops.delete_replica_set("ns1", "my-rs")

        replica_set, changed = db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")

        assert changed is True
        assert replica_set.gmt_deleted is None
        assert replica_set.generation == 2
        assert db_ops.query_replica_set("ns1", "my-rs") is not None

    def test_reapply_changed_spec_after_delete_bumps_generation_once(self, db_ops):
        db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")
        db_ops.delete_replica_set("ns1", "my-rs")

        replica_set, changed = db_ops.apply_replica_set("ns1", "my-rs", members=5, version="4.2.0")

        assert changed is True
        assert replica_set.members == 5
        assert replica_set.generation == 2


class TestReplicaSetStatus:
    def test_save_and_update(self, db_ops):
        status = db_ops.save_replica_set_status(ReplicaSetStatus(namespace="ns1", name="my-rs"))
        assert status.phase == ReplicaSetPhase.PENDING

        status.mark_running(observed_generation=4)
        db_ops.save_replica_set_status(status)

        saved = db_ops.query_replica_set_status("ns1", "my-rs")
        assert saved.phase == ReplicaSetPhase.RUNNING
        assert saved.observed_generation == 4
        assert saved.gmt_last_reconciled is not None

    def test_mark_failed(self, db_ops):
        status = ReplicaSetStatus(namespace="ns1", name="my-rs")
        status.mark_failed("agent image is not configured")
        db_ops.save_replica_set_status(status)

        saved = db_ops.query_replica_set_status("ns1", "my-rs")
        assert saved.phase == ReplicaSetPhase.FAILED
        assert saved.message == "agent image is not configured"
