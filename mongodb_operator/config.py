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
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Desired-state and status records
    database_url: str = "sqlite:///./mongodb_operator.db"

    # Image of the agent container run by every member pod
    agent_image: str = ""

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    reconcile_interval: float = 30.0
    reconcile_retry_countdown: int = 30
    reconcile_max_retries: int = 5

    # Where ConfigMaps and StatefulSets are written: "kubernetes" or "local"
    artifact_store: str = "kubernetes"
    kube_config_path: Optional[str] = None

    log_level: str = "INFO"


settings = Settings()


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url))
SyncSessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_sync_session():
    """Get a synchronous database session"""
    return SyncSessionLocal()


def init_db(bind=None):
    """Create the replica set tables if they do not exist yet"""
    # Register the table models on SQLModel.metadata
    from mongodb_operator.db import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.debug("Database tables ensured")
