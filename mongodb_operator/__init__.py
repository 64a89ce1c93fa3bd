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
MongoDB replica set operator

Keeps MongoDB replica sets running on Kubernetes in line with their declared
desired state. For every replica set the operator derives:

- an automation config ConfigMap (<name>-config) describing the replica set
  topology, read by the mongodb-agent in every pod
- a StatefulSet (<name>) running one mongodb-agent per member

and writes both with create-or-replace on every reconciliation.
"""

__version__ = "0.1.0"
