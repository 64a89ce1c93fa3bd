"""
Unit tests for the replica set manager CLI.
"""

import json
from unittest.mock import patch

import pytest

from mongodb_operator.cli import replica_set_manager


@pytest.fixture
def patched_db_ops(db_ops):
    with patch("mongodb_operator.db.ops.db_ops", db_ops):
        yield db_ops


class TestReplicaSetManagerCli:
    def test_no_command_prints_help(self, capsys):
        assert replica_set_manager.main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_apply_and_status(self, patched_db_ops, capsys):
        code = replica_set_manager.main(
            ["apply", "--namespace", "ns1", "--name", "my-rs", "--members", "3", "--version", "4.2.0"]
        )
        assert code == 0
        assert "Applied replica set ns1/my-rs (generation 1)" in capsys.readouterr().out

        assert replica_set_manager.main(["status", "--namespace", "ns1", "--name", "my-rs"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["spec"]["members"] == 3
        assert output["status"] is None

    def test_apply_unchanged(self, patched_db_ops, capsys):
        args = ["apply", "--namespace", "ns1", "--name", "my-rs", "--members", "3", "--version", "4.2.0"]
        replica_set_manager.main(args)
        capsys.readouterr()

        assert replica_set_manager.main(args) == 0
        assert "unchanged" in capsys.readouterr().out

    def test_delete_missing(self, patched_db_ops, capsys):
        assert replica_set_manager.main(["delete", "--namespace", "ns1", "--name", "ghost"]) == 1

    def test_render(self, patched_db_ops, capsys):
        patched_db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")

        with patch.object(replica_set_manager.settings, "agent_image", "agent:1"):
            assert replica_set_manager.main(["render", "--namespace", "ns1", "--name", "my-rs"]) == 0

        config_map, stateful_set = json.loads(capsys.readouterr().out)
        assert config_map["metadata"]["name"] == "my-rs-config"
        assert stateful_set["spec"]["replicas"] == 3
        assert stateful_set["spec"]["template"]["spec"]["containers"][0]["image"] == "agent:1"

    def test_render_without_agent_image_fails(self, patched_db_ops):
        patched_db_ops.apply_replica_set("ns1", "my-rs", members=3, version="4.2.0")

        with patch.object(replica_set_manager.settings, "agent_image", ""):
            assert replica_set_manager.main(["render", "--namespace", "ns1", "--name", "my-rs"]) == 1

    def test_reconcile_requires_identity(self):
        with pytest.raises(SystemExit):
            replica_set_manager.main(["reconcile"])
