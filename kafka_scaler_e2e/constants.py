# /*
# Copyright 2026 The Grove Authors.
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
# */

"""Names, topics, versions, and timing defaults."""

from __future__ import annotations

# -- Test identity --
DEFAULT_TEST_NAME = "kafka-test"
DEFAULT_ENV_FILE = ".env"

# -- Topics --
TOPIC_1 = "kafka-topic"
TOPIC_2 = "kafka-topic2"
TOPIC_ZERO_INVALID_OFFSET = "kafka-topic-zero-invalid-offset"
TOPIC_ONE_INVALID_OFFSET = "kafka-topic-one-invalid-offset"
TOPIC_PARTITIONS = 3
INVALID_OFFSET_TOPIC_PARTITIONS = 1

# (topic name, partitions) created once during setup
BASE_TOPICS = (
    (TOPIC_1, TOPIC_PARTITIONS),
    (TOPIC_2, TOPIC_PARTITIONS),
    (TOPIC_ZERO_INVALID_OFFSET, INVALID_OFFSET_TOPIC_PARTITIONS),
    (TOPIC_ONE_INVALID_OFFSET, INVALID_OFFSET_TOPIC_PARTITIONS),
)

# -- Consumer groups --
GROUP_EARLIEST = "earliest"
GROUP_LATEST = "latest"
GROUP_MULTI_TOPIC = "multiTopic"
GROUP_INVALID_OFFSET = "invalidOffset"

FALSE_STRING = "false"
TRUE_STRING = "true"

# -- Kafka --
KAFKA_PORT = 9092
KAFKA_MESSAGE = '{"text": "foo"}'
COMMIT_TIMEOUT_MS = 15000

# -- Strimzi operator --
DEFAULT_STRIMZI_VERSION = "0.30.0"
HELM_REPO_STRIMZI = "strimzi"
HELM_REPO_STRIMZI_URL = "https://strimzi.io/charts/"
HELM_CHART_STRIMZI = "strimzi/strimzi-kafka-operator"

# -- Resource kinds used for readiness waits --
KIND_KAFKA = "kafka"
KIND_KAFKA_TOPIC = "kafkatopic"
KIND_POD = "pod"
CONDITION_READY = "Ready"

# -- Timing defaults (seconds) --
DEFAULT_READY_TIMEOUT = 300
DEFAULT_COMMAND_TIMEOUT = 120
DEFAULT_POLL_ATTEMPTS = 60
DEFAULT_POLL_INTERVAL = 2
DEFAULT_DRAIN_POLL_INTERVAL = 10
DEFAULT_STABILITY_WINDOW = 60
DEFAULT_STABILITY_INTERVAL = 1
DEFAULT_OBSERVE_ERROR_RETRIES = 3
KUBECTL_TIMEOUT_SLACK = 10
KUBECTL_DEFAULT_TIMEOUT = 60
