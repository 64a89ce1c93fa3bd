import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mongodb_operator.config import init_db
from mongodb_operator.db.models import ReplicaSet
from mongodb_operator.db.ops import DatabaseOps


@pytest.fixture
def replica_set():
    """The replica set used throughout the examples: my-rs in ns1, 3 members, 4.2.0"""
    return ReplicaSet(namespace="ns1", name="my-rs", members=3, version="4.2.0")


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_ops(sqlite_engine):
    return DatabaseOps(sessionmaker(bind=sqlite_engine, expire_on_commit=False))
