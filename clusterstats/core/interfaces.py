"""
Read-only interfaces consumed by the statistics aggregator.

The aggregator depends on these protocols rather than on the concrete
``ClusterModel`` so any snapshot source answering the same queries can be
measured.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from clusterstats.datastructures.resource import Resource
from clusterstats.datastructures.type_aliases import (
    BrokerId,
    Capacity,
    MonitoredRatio,
    ReplicaCount,
    TopicName,
    Utilization,
    UtilizationMatrix,
    WindowCount,
)


class LoadView(Protocol):
    def expected_utilization_for(self, resource: Resource) -> Utilization: ...


class HostView(Protocol):
    def expected_utilization_for(self, resource: Resource) -> Utilization: ...
    def capacity_for(self, resource: Resource) -> Capacity: ...


class BrokerView(Protocol):
    @property
    def id(self) -> BrokerId: ...
    @property
    def is_alive(self) -> bool: ...

    def num_replicas(self) -> ReplicaCount: ...
    def num_leader_replicas(self) -> ReplicaCount: ...
    def num_replicas_of_topic_in_broker(self, topic: TopicName) -> ReplicaCount: ...
    def expected_utilization_for(self, resource: Resource) -> Utilization: ...
    def capacity_for(self, resource: Resource) -> Capacity: ...


class ReplicaView(Protocol):
    @property
    def topic_partition(self) -> object: ...


class ClusterModelView(Protocol):
    """Queries a cluster snapshot must answer before statistics are populated."""

    def brokers(self) -> Sequence[BrokerView]: ...
    def alive_brokers(self) -> Sequence[BrokerView]: ...
    def topics(self) -> Sequence[TopicName]: ...
    def self_healing_eligible_replicas(self) -> Sequence[ReplicaView]: ...
    def host_for(self, broker: BrokerView) -> HostView: ...
    def expected_utilization_for(self, resource: Resource) -> Utilization: ...
    def capacity_for(self, resource: Resource) -> Capacity: ...
    def potential_leadership_load_for(self, broker_id: BrokerId) -> LoadView: ...
    def num_replicas(self) -> ReplicaCount: ...
    def num_topic_replicas(self, topic: TopicName) -> ReplicaCount: ...
    def utilization_matrix(self) -> UtilizationMatrix: ...
    def monitored_partitions_ratio(self) -> MonitoredRatio: ...
    def num_windows(self) -> WindowCount: ...


class BalancingConstraintView(Protocol):
    def resource_balance_percentage(self, resource: Resource) -> float: ...
    def capacity_threshold(self, resource: Resource) -> float: ...
