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

import hashlib
from typing import Optional

from mongodb_operator.automation.config import INITIAL_VERSION, AutomationConfig
from mongodb_operator.exceptions import SerializationError


def content_hash(automation_config: AutomationConfig) -> str:
    """Hash of everything in the document except its own version counter"""
    try:
        payload = automation_config.to_json(exclude_version=True)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to encode automation config {automation_config.name}: {e}") from e
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def next_version(current_version: int, current_hash: Optional[str], new_hash: str) -> int:
    """
    Version to stamp on an automation config with content hash new_hash,
    given the last version written. Never goes backwards; moves forward
    only when the content changed.
    """
    if current_version < INITIAL_VERSION or not current_hash:
        return max(current_version, INITIAL_VERSION)
    if current_hash == new_hash:
        return current_version
    return current_version + 1
