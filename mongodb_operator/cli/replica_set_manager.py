#!/usr/bin/env python3
"""
CLI tool for managing MongoDB replica sets

Usage:
    python -m mongodb_operator.cli.replica_set_manager --help
    python -m mongodb_operator.cli.replica_set_manager init-db
    python -m mongodb_operator.cli.replica_set_manager apply --namespace ns1 --name my-rs --members 3 --version 4.2.0
    python -m mongodb_operator.cli.replica_set_manager status --namespace ns1 --name my-rs
    python -m mongodb_operator.cli.replica_set_manager reconcile --namespace ns1 --name my-rs
    python -m mongodb_operator.cli.replica_set_manager render --namespace ns1 --name my-rs
    python -m mongodb_operator.cli.replica_set_manager delete --namespace ns1 --name my-rs
"""

import argparse
import json
import logging
import sys

from mongodb_operator.config import settings

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def init_database():
    from mongodb_operator.config import init_db

    init_db()
    print("Database tables created")


def apply_replica_set(args):
    """Create or update the desired state of a replica set"""
    from mongodb_operator.db.ops import db_ops

    replica_set, changed = db_ops.apply_replica_set(
        namespace=args.namespace,
        name=args.name,
        members=args.members,
        version=args.version,
        cluster_domain=args.cluster_domain,
        service_name=args.service_name,
        user=args.user,
    )
    if changed:
        print(f"Applied replica set {replica_set.identity} (generation {replica_set.generation})")
    else:
        print(f"Replica set {replica_set.identity} unchanged")

    if args.reconcile:
        return run_reconciliation(args.namespace, args.name)
    return 0


def delete_replica_set(namespace: str, name: str):
    from mongodb_operator.db.ops import db_ops

    replica_set = db_ops.delete_replica_set(namespace, name)
    if replica_set is None:
        print(f"Replica set {namespace}/{name} not found")
        return 1
    print(f"Deleted replica set {namespace}/{name}")
    return 0


def show_status(namespace: str, name: str):
    from mongodb_operator.db.ops import db_ops

    replica_set = db_ops.query_replica_set(namespace, name)
    if replica_set is None:
        print(f"Replica set {namespace}/{name} not found")
        return 1

    status = db_ops.query_replica_set_status(namespace, name)
    _print_json(
        {
            "spec": replica_set.model_dump(mode="json"),
            "status": status.model_dump(mode="json") if status else None,
        }
    )
    return 0


def list_replica_sets(namespace: str = None):
    from mongodb_operator.db.ops import db_ops

    replica_sets = db_ops.query_replica_sets(namespace)
    if not replica_sets:
        print("No replica sets found")
        return 0

    for replica_set in replica_sets:
        status = db_ops.query_replica_set_status(replica_set.namespace, replica_set.name)
        phase = status.phase.value if status else "Pending"
        observed = status.observed_generation if status else 0
        print(
            f"- {replica_set.identity}: members={replica_set.members}, version={replica_set.version}, "
            f"phase={phase}, generation={replica_set.generation}, observed={observed}"
        )
        if status and status.message:
            print(f"  Error: {status.message}")
    return 0


def run_reconciliation(namespace: str, name: str):
    """Reconcile one replica set in this process"""
    from mongodb_operator.reconciler.replica_set import ReconcileOutcome, create_replica_set_reconciler

    reconciler = create_replica_set_reconciler(settings)
    result = reconciler.reconcile(namespace, name)
    _print_json(result.to_dict())
    return 0 if result.outcome == ReconcileOutcome.DONE else 1


def run_all_reconciliations():
    from mongodb_operator.db.ops import db_ops
    from mongodb_operator.reconciler.replica_set import ReconcileOutcome, create_replica_set_reconciler

    reconciler = create_replica_set_reconciler(settings)
    failed = 0
    for replica_set in db_ops.query_replica_sets():
        result = reconciler.reconcile(replica_set.namespace, replica_set.name)
        print(f"{replica_set.identity}: {result.outcome.value}")
        if result.outcome != ReconcileOutcome.DONE:
            failed += 1
    return 1 if failed else 0


def render_artifacts(namespace: str, name: str):
    """Print the ConfigMap and StatefulSet that would be written, without writing them"""
    from kubernetes.client import ApiClient

    from mongodb_operator.db.ops import db_ops
    from mongodb_operator.kube.configmap import build_automation_config_map
    from mongodb_operator.kube.statefulset import StatefulSetBuilder

    replica_set = db_ops.query_replica_set(namespace, name)
    if replica_set is None:
        print(f"Replica set {namespace}/{name} not found")
        return 1

    status = db_ops.query_replica_set_status(namespace, name)
    version = status.automation_config_version if status and status.automation_config_version else 1

    api_client = ApiClient()
    config_map = build_automation_config_map(replica_set, version)
    stateful_set = StatefulSetBuilder(settings.agent_image).build(replica_set)
    _print_json(
        [
            api_client.sanitize_for_serialization(config_map),
            api_client.sanitize_for_serialization(stateful_set),
        ]
    )
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="MongoDB Replica Set Manager CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('init-db', help='Create database tables')

    apply_parser = subparsers.add_parser('apply', help='Create or update a replica set')
    apply_parser.add_argument('--namespace', required=True, help='Namespace')
    apply_parser.add_argument('--name', required=True, help='Replica set name')
    apply_parser.add_argument('--members', required=True, type=int, help='Number of members')
    apply_parser.add_argument('--version', required=True, help='MongoDB version, e.g. 4.2.0')
    apply_parser.add_argument('--cluster-domain', help='Cluster domain (default: cluster.local)')
    apply_parser.add_argument('--service-name', help='Service name (default: <name>-service)')
    apply_parser.add_argument('--user', default='system', help='User applying the change')
    apply_parser.add_argument('--reconcile', action='store_true', help='Reconcile right away')

    delete_parser = subparsers.add_parser('delete', help='Delete a replica set')
    delete_parser.add_argument('--namespace', required=True, help='Namespace')
    delete_parser.add_argument('--name', required=True, help='Replica set name')

    status_parser = subparsers.add_parser('status', help='Show spec and status of a replica set')
    status_parser.add_argument('--namespace', required=True, help='Namespace')
    status_parser.add_argument('--name', required=True, help='Replica set name')

    list_parser = subparsers.add_parser('list', help='List replica sets')
    list_parser.add_argument('--namespace', help='Only this namespace')

    reconcile_parser = subparsers.add_parser('reconcile', help='Run reconciliation in this process')
    reconcile_parser.add_argument('--namespace', help='Namespace')
    reconcile_parser.add_argument('--name', help='Replica set name')
    reconcile_parser.add_argument('--all', action='store_true', help='Reconcile every replica set')

    render_parser = subparsers.add_parser('render', help='Print the generated ConfigMap and StatefulSet')
    render_parser.add_argument('--namespace', required=True, help='Namespace')
    render_parser.add_argument('--name', required=True, help='Replica set name')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'init-db':
            init_database()
            return 0
        elif args.command == 'apply':
            return apply_replica_set(args)
        elif args.command == 'delete':
            return delete_replica_set(args.namespace, args.name)
        elif args.command == 'status':
            return show_status(args.namespace, args.name)
        elif args.command == 'list':
            return list_replica_sets(args.namespace)
        elif args.command == 'reconcile':
            if args.all:
                return run_all_reconciliations()
            if not args.namespace or not args.name:
                parser.error("reconcile needs --namespace and --name, or --all")
            return run_reconciliation(args.namespace, args.name)
        elif args.command == 'render':
            return render_artifacts(args.namespace, args.name)
        else:
            print(f"Unknown command: {args.command}")
            return 1
    except Exception as e:
        logger.error(f"Command failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
