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

"""Resource template bodies for the consumer workloads, ScaledObjects, and Kafka."""

from __future__ import annotations

from kafka_scaler_e2e.templates import ResourceTemplate

SINGLE_DEPLOYMENT = ResourceTemplate("singleDeploymentTemplate", """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ deployment_name }}
  namespace: {{ test_namespace }}
  labels:
    app: {{ deployment_name }}
spec:
  replicas: 0
  selector:
    matchLabels:
      app: kafka-consumer
  template:
    metadata:
      labels:
        app: kafka-consumer
    spec:
      containers:
      - name: kafka-consumer
        image: confluentinc/cp-kafka:5.2.1
        command:
          - sh
          - -c
          - "kafka-console-consumer --bootstrap-server {{ bootstrap_server }} {{ params }} --consumer-property enable.auto.commit={{ commit }}"
""")

# Two containers join the same group because this console consumer has no
# multi-topic include flag.
MULTI_DEPLOYMENT = ResourceTemplate("multiDeploymentTemplate", """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ deployment_name }}
  namespace: {{ test_namespace }}
  labels:
    app: {{ deployment_name }}
spec:
  replicas: 0
  selector:
    matchLabels:
      app: kafka-consumer
  template:
    metadata:
      labels:
        app: kafka-consumer
    spec:
      containers:
      - name: kafka-consumer
        image: confluentinc/cp-kafka:5.2.1
        command:
          - sh
          - -c
          - "kafka-console-consumer --bootstrap-server {{ bootstrap_server }} --topic '{{ topic1_name }}' --group multiTopic --from-beginning --consumer-property enable.auto.commit=false"
      - name: kafka-consumer-2
        image: confluentinc/cp-kafka:5.2.1
        command:
          - sh
          - -c
          - "kafka-console-consumer --bootstrap-server {{ bootstrap_server }} --topic '{{ topic2_name }}' --group multiTopic --from-beginning --consumer-property enable.auto.commit=false"
""")

SINGLE_SCALED_OBJECT = ResourceTemplate("singleScaledObjectTemplate", """\
apiVersion: keda.sh/v1alpha1
kind: ScaledObject
metadata:
  name: {{ scaled_object_name }}
  namespace: {{ test_namespace }}
  labels:
    app: {{ deployment_name }}
spec:
  scaleTargetRef:
    name: {{ deployment_name }}
  triggers:
  - type: kafka
    metadata:
      topic: {{ topic_name }}
      bootstrapServers: {{ bootstrap_server }}
      consumerGroup: {{ reset_policy }}
      lagThreshold: '1'
      activationLagThreshold: '1'
      offsetResetPolicy: {{ reset_policy }}
""")

MULTI_SCALED_OBJECT = ResourceTemplate("multiScaledObjectTemplate", """\
apiVersion: keda.sh/v1alpha1
kind: ScaledObject
metadata:
  name: {{ scaled_object_name }}
  namespace: {{ test_namespace }}
  labels:
    app: {{ deployment_name }}
spec:
  scaleTargetRef:
    name: {{ deployment_name }}
  triggers:
  - type: kafka
    metadata:
      bootstrapServers: {{ bootstrap_server }}
      consumerGroup: multiTopic
      lagThreshold: '1'
      offsetResetPolicy: 'latest'
""")

INVALID_OFFSET_SCALED_OBJECT = ResourceTemplate("invalidOffsetScaledObjectTemplate", """\
apiVersion: keda.sh/v1alpha1
kind: ScaledObject
metadata:
  name: {{ scaled_object_name }}
  namespace: {{ test_namespace }}
  labels:
    app: {{ deployment_name }}
spec:
  scaleTargetRef:
    name: {{ deployment_name }}
  triggers:
  - type: kafka
    metadata:
      topic: {{ topic_name }}
      bootstrapServers: {{ bootstrap_server }}
      consumerGroup: {{ reset_policy }}
      lagThreshold: '1'
      scaleToZeroOnInvalidOffset: '{{ scale_to_zero_on_invalid }}'
      offsetResetPolicy: 'latest'
""")

KAFKA_CLUSTER = ResourceTemplate("kafkaClusterTemplate", """\
apiVersion: kafka.strimzi.io/v1beta2
kind: Kafka
metadata:
  name: {{ kafka_name }}
  namespace: {{ test_namespace }}
spec:
  kafka:
    version: "3.1.0"
    replicas: 1
    listeners:
      - name: plain
        port: 9092
        type: internal
        tls: false
      - name: tls
        port: 9093
        type: internal
        tls: true
    config:
      offsets.topic.replication.factor: 1
      transaction.state.log.replication.factor: 1
      transaction.state.log.min.isr: 1
      log.message.format.version: "2.5"
    storage:
      type: ephemeral
  zookeeper:
    replicas: 1
    storage:
      type: ephemeral
  entityOperator:
    topicOperator: {}
    userOperator: {}
""")

KAFKA_TOPIC = ResourceTemplate("kafkaTopicTemplate", """\
apiVersion: kafka.strimzi.io/v1beta2
kind: KafkaTopic
metadata:
  name: {{ kafka_topic_name }}
  namespace: {{ test_namespace }}
  labels:
    strimzi.io/cluster: {{ kafka_name }}
spec:
  partitions: {{ kafka_topic_partitions }}
  replicas: 1
  config:
    retention.ms: 604800000
    segment.bytes: 1073741824
""")

KAFKA_CLIENT = ResourceTemplate("kafkaClientTemplate", """\
apiVersion: v1
kind: Pod
metadata:
  name: {{ kafka_client_name }}
  namespace: {{ test_namespace }}
spec:
  containers:
  - name: {{ kafka_client_name }}
    image: confluentinc/cp-kafka:5.2.1
    command:
      - sh
      - -c
      - "exec tail -f /dev/null"
""")

# Applied once in setup and deleted in teardown.
BASE_TEMPLATES = (KAFKA_CLIENT,)
