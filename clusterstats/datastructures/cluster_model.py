"""
In-memory cluster model for balance statistics.

This module provides immutable dataclasses describing a cluster snapshot:
brokers grouped onto hosts, replicas of topic partitions placed on brokers,
per-replica resource load and per-broker capacity. A ``ClusterModel`` is
built once from a full snapshot and answers the read-only queries that the
statistics aggregator consumes.

Every derived value (broker load, per-topic counts, partition leaders,
cluster totals) is computed once at construction, so queries are O(1) or
O(brokers).
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from hypothesis import strategies as st

from .resource import Resource
from .type_aliases import (
    BrokerId,
    Capacity,
    HostName,
    JsonDict,
    MonitoredRatio,
    PartitionNumber,
    RackId,
    ReplicaCount,
    TopicName,
    Utilization,
    UtilizationMatrix,
    WindowCount,
)


@dataclass(frozen=True, slots=True, order=True)
class TopicPartition:
    """Identity of a single partition of a topic."""

    topic: TopicName
    partition: PartitionNumber

    def __post_init__(self) -> None:
        if not self.topic:
            raise ValueError("Topic name cannot be empty")
        if self.partition < 0:
            raise ValueError(f"Partition must be non-negative, got {self.partition}")

    def __str__(self) -> str:
        return f"{self.topic}-{self.partition}"


@dataclass(frozen=True, slots=True)
class ResourceVector:
    """
    One value per resource.

    Used both for load (expected utilization) and for capacity. Values are
    validated to be non-negative.
    """

    cpu: float = 0.0
    nw_in: float = 0.0
    nw_out: float = 0.0
    disk: float = 0.0

    def __post_init__(self) -> None:
        for resource in Resource:
            if self.get(resource) < 0:
                raise ValueError(
                    f"{resource} value must be non-negative, got {self.get(resource)}"
                )

    @classmethod
    def empty(cls) -> ResourceVector:
        return cls()

    @classmethod
    def of(cls, values: Mapping[Resource, float]) -> ResourceVector:
        return cls(**{_FIELD_BY_RESOURCE[r]: float(v) for r, v in values.items()})

    def get(self, resource: Resource) -> float:
        return getattr(self, _FIELD_BY_RESOURCE[resource])

    def expected_utilization_for(self, resource: Resource) -> Utilization:
        return self.get(resource)

    def as_row(self) -> tuple[float, ...]:
        """Values in ``Resource`` declaration order."""
        return tuple(self.get(resource) for resource in Resource)

    def __add__(self, other: ResourceVector) -> ResourceVector:
        return ResourceVector(
            cpu=self.cpu + other.cpu,
            nw_in=self.nw_in + other.nw_in,
            nw_out=self.nw_out + other.nw_out,
            disk=self.disk + other.disk,
        )

    def to_dict(self) -> dict[str, float]:
        return {resource.resource: self.get(resource) for resource in Resource}

    @classmethod
    def from_dict(cls, payload: object) -> ResourceVector:
        values: dict[Resource, float] = {}
        for key, value in _require_mapping(payload, "resource values").items():
            if not isinstance(value, int | float) or isinstance(value, bool):
                raise ValueError(f"Value for {key!r} must be numeric, got {value!r}")
            values[Resource.from_name(str(key))] = float(value)
        return cls.of(values)


def _require_mapping(value: object, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {value!r}")
    return value


def _require_bool(payload: Mapping[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key!r} must be true or false, got {value!r}")
    return value


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload[key]
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{key!r} must be an integer, got {value!r}")
    return value


_FIELD_BY_RESOURCE: dict[Resource, str] = {
    Resource.CPU: "cpu",
    Resource.NW_IN: "nw_in",
    Resource.NW_OUT: "nw_out",
    Resource.DISK: "disk",
}


def _sum_vectors(vectors: Iterable[ResourceVector]) -> ResourceVector:
    total = ResourceVector.empty()
    for vector in vectors:
        total = total + vector
    return total


@dataclass(frozen=True, slots=True)
class Replica:
    """A copy of a partition placed on a broker."""

    topic_partition: TopicPartition
    broker_id: BrokerId
    is_leader: bool = False
    load: ResourceVector = field(default_factory=ResourceVector.empty)
    # Replica sits on a failed disk of an otherwise alive broker.
    is_offline: bool = False

    @property
    def topic(self) -> TopicName:
        return self.topic_partition.topic

    def to_dict(self) -> JsonDict:
        return {
            "topic": self.topic_partition.topic,
            "partition": self.topic_partition.partition,
            "leader": self.is_leader,
            "offline": self.is_offline,
            "load": self.load.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: object, broker_id: BrokerId) -> Replica:
        entry = _require_mapping(payload, f"Replica entry of broker {broker_id}")
        topic = entry["topic"]
        if not isinstance(topic, str):
            raise ValueError(f"'topic' must be a string, got {topic!r}")
        return cls(
            topic_partition=TopicPartition(
                topic=topic, partition=_require_int(entry, "partition")
            ),
            broker_id=broker_id,
            is_leader=_require_bool(entry, "leader", False),
            load=ResourceVector.from_dict(entry.get("load", {})),
            is_offline=_require_bool(entry, "offline", False),
        )


@dataclass(frozen=True, slots=True)
class Broker:
    """
    A broker process hosting replicas.

    ``host_name`` defaults to a host of its own, so brokers sharing a
    machine must name the same host explicitly.
    """

    id: BrokerId
    capacity: ResourceVector
    replicas: tuple[Replica, ...] = ()
    host_name: HostName = ""
    rack: RackId = ""
    is_alive: bool = True

    _load: ResourceVector = field(init=False, repr=False, compare=False)
    _topic_counts: Counter[TopicName] = field(init=False, repr=False, compare=False)
    _num_leaders: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError(f"Broker id must be non-negative, got {self.id}")
        for replica in self.replicas:
            if replica.broker_id != self.id:
                raise ValueError(
                    f"Replica {replica.topic_partition} claims broker "
                    f"{replica.broker_id} but is placed on broker {self.id}"
                )
        if not self.host_name:
            object.__setattr__(self, "host_name", f"host-{self.id}")
        object.__setattr__(
            self, "_load", _sum_vectors(replica.load for replica in self.replicas)
        )
        object.__setattr__(
            self, "_topic_counts", Counter(replica.topic for replica in self.replicas)
        )
        object.__setattr__(
            self, "_num_leaders", sum(1 for r in self.replicas if r.is_leader)
        )

    def leader_replicas(self) -> tuple[Replica, ...]:
        return tuple(replica for replica in self.replicas if replica.is_leader)

    def num_replicas(self) -> ReplicaCount:
        return len(self.replicas)

    def num_leader_replicas(self) -> ReplicaCount:
        return self._num_leaders

    def num_replicas_of_topic_in_broker(self, topic: TopicName) -> ReplicaCount:
        return self._topic_counts.get(topic, 0)

    def load(self) -> ResourceVector:
        return self._load

    def expected_utilization_for(self, resource: Resource) -> Utilization:
        return self._load.get(resource)

    def capacity_for(self, resource: Resource) -> Capacity:
        return self.capacity.get(resource)

    def to_dict(self) -> JsonDict:
        return {
            "id": self.id,
            "host": self.host_name,
            "rack": self.rack,
            "alive": self.is_alive,
            "capacity": self.capacity.to_dict(),
            "replicas": [replica.to_dict() for replica in self.replicas],
        }

    @classmethod
    def from_dict(cls, payload: object) -> Broker:
        entry = _require_mapping(payload, "Broker entry")
        broker_id = _require_int(entry, "id")
        replicas = entry.get("replicas", [])
        if not isinstance(replicas, list):
            raise ValueError(
                f"'replicas' of broker {broker_id} must be a list, got {replicas!r}"
            )
        return cls(
            id=broker_id,
            capacity=ResourceVector.from_dict(entry.get("capacity", {})),
            replicas=tuple(
                Replica.from_dict(replica, broker_id) for replica in replicas
            ),
            host_name=str(entry.get("host", "")),
            rack=str(entry.get("rack", "")),
            is_alive=_require_bool(entry, "alive", True),
        )


@dataclass(frozen=True, slots=True)
class Host:
    """A machine running one or more brokers; host resources aggregate here."""

    name: HostName
    brokers: tuple[Broker, ...]

    def expected_utilization_for(self, resource: Resource) -> Utilization:
        return sum(broker.expected_utilization_for(resource) for broker in self.brokers)

    def capacity_for(self, resource: Resource) -> Capacity:
        return sum(broker.capacity_for(resource) for broker in self.brokers)


@dataclass(frozen=True, slots=True)
class ClusterModel:
    """
    Immutable snapshot of a cluster.

    Brokers are kept in id order. Cluster-wide load and capacity sum over
    every broker, dead ones included; replicas on dead brokers still count
    towards the load they will bring wherever they move.
    """

    _brokers: tuple[Broker, ...]
    _monitored_partitions_ratio: MonitoredRatio = 1.0
    _num_windows: WindowCount = 1

    _brokers_by_id: dict[BrokerId, Broker] = field(
        init=False, repr=False, compare=False
    )
    _hosts: dict[HostName, Host] = field(init=False, repr=False, compare=False)
    _partition_leaders: dict[TopicPartition, Replica] = field(
        init=False, repr=False, compare=False
    )
    _topic_replica_counts: Counter[TopicName] = field(
        init=False, repr=False, compare=False
    )
    _load: ResourceVector = field(init=False, repr=False, compare=False)
    _capacity: ResourceVector = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self._monitored_partitions_ratio <= 1.0:
            raise ValueError(
                "Monitored partitions ratio must be within [0, 1], "
                f"got {self._monitored_partitions_ratio}"
            )
        if self._num_windows < 0:
            raise ValueError(
                f"Number of windows must be non-negative, got {self._num_windows}"
            )

        brokers_by_id: dict[BrokerId, Broker] = {}
        for broker in self._brokers:
            if broker.id in brokers_by_id:
                raise ValueError(f"Duplicate broker id: {broker.id}")
            brokers_by_id[broker.id] = broker
        ordered = tuple(sorted(self._brokers, key=lambda b: b.id))
        object.__setattr__(self, "_brokers", ordered)
        object.__setattr__(self, "_brokers_by_id", brokers_by_id)

        host_members: defaultdict[HostName, list[Broker]] = defaultdict(list)
        for broker in ordered:
            host_members[broker.host_name].append(broker)
        object.__setattr__(
            self,
            "_hosts",
            {
                name: Host(name, tuple(members))
                for name, members in host_members.items()
            },
        )

        leaders: dict[TopicPartition, Replica] = {}
        topic_counts: Counter[TopicName] = Counter()
        for broker in ordered:
            for replica in broker.replicas:
                topic_counts[replica.topic] += 1
                if not replica.is_leader:
                    continue
                if replica.topic_partition in leaders:
                    raise ValueError(
                        f"Partition {replica.topic_partition} has more than one leader"
                    )
                leaders[replica.topic_partition] = replica
        object.__setattr__(self, "_partition_leaders", leaders)
        object.__setattr__(self, "_topic_replica_counts", topic_counts)
        object.__setattr__(self, "_load", _sum_vectors(b.load() for b in ordered))
        object.__setattr__(self, "_capacity", _sum_vectors(b.capacity for b in ordered))

    @classmethod
    def create(
        cls,
        brokers: Iterable[Broker],
        monitored_partitions_ratio: MonitoredRatio = 1.0,
        num_windows: WindowCount = 1,
    ) -> ClusterModel:
        """Create a cluster model from brokers and monitoring metadata."""
        return cls(
            _brokers=tuple(brokers),
            _monitored_partitions_ratio=float(monitored_partitions_ratio),
            _num_windows=int(num_windows),
        )

    def brokers(self) -> tuple[Broker, ...]:
        return self._brokers

    def alive_brokers(self) -> tuple[Broker, ...]:
        return tuple(broker for broker in self._brokers if broker.is_alive)

    def dead_brokers(self) -> tuple[Broker, ...]:
        return tuple(broker for broker in self._brokers if not broker.is_alive)

    def broker(self, broker_id: BrokerId) -> Broker:
        try:
            return self._brokers_by_id[broker_id]
        except KeyError:
            raise KeyError(f"Broker {broker_id} not found in cluster model") from None

    def host_for(self, broker: Broker) -> Host:
        return self._hosts[broker.host_name]

    def hosts(self) -> tuple[Host, ...]:
        return tuple(self._hosts.values())

    def topics(self) -> tuple[TopicName, ...]:
        return tuple(sorted(self._topic_replica_counts))

    def replicas(self) -> tuple[Replica, ...]:
        return tuple(replica for broker in self._brokers for replica in broker.replicas)

    def num_replicas(self) -> ReplicaCount:
        return self._topic_replica_counts.total()

    def num_topic_replicas(self, topic: TopicName) -> ReplicaCount:
        return self._topic_replica_counts.get(topic, 0)

    def self_healing_eligible_replicas(self) -> tuple[Replica, ...]:
        """Replicas on dead brokers or on failed disks."""
        return tuple(
            replica
            for broker in self._brokers
            for replica in broker.replicas
            if not broker.is_alive or replica.is_offline
        )

    def leader_of(self, topic_partition: TopicPartition) -> Replica | None:
        return self._partition_leaders.get(topic_partition)

    def potential_leadership_load_for(self, broker_id: BrokerId) -> ResourceVector:
        """Load the broker would carry if it led every partition it hosts."""
        broker = self.broker(broker_id)
        loads = []
        for replica in broker.replicas:
            leader = self._partition_leaders.get(replica.topic_partition, replica)
            loads.append(leader.load)
        return _sum_vectors(loads)

    def load(self) -> ResourceVector:
        return self._load

    def expected_utilization_for(self, resource: Resource) -> Utilization:
        return self._load.get(resource)

    def capacity_for(self, resource: Resource) -> Capacity:
        return self._capacity.get(resource)

    def utilization_matrix(self) -> UtilizationMatrix:
        """Rows are alive brokers in id order; columns follow ``Resource``."""
        return tuple(broker.load().as_row() for broker in self.alive_brokers())

    def monitored_partitions_ratio(self) -> MonitoredRatio:
        return self._monitored_partitions_ratio

    def num_windows(self) -> WindowCount:
        return self._num_windows

    def to_dict(self) -> JsonDict:
        return {
            "monitored_partitions_ratio": self._monitored_partitions_ratio,
            "num_windows": self._num_windows,
            "brokers": [broker.to_dict() for broker in self._brokers],
        }

    @classmethod
    def from_dict(cls, payload: JsonDict) -> ClusterModel:
        brokers = payload.get("brokers")
        if not isinstance(brokers, list):
            raise ValueError("Cluster snapshot must contain a 'brokers' list")
        ratio = payload.get("monitored_partitions_ratio", 1.0)
        if not isinstance(ratio, int | float) or isinstance(ratio, bool):
            raise ValueError(
                f"'monitored_partitions_ratio' must be numeric, got {ratio!r}"
            )
        num_windows = payload.get("num_windows", 1)
        if not isinstance(num_windows, int) or isinstance(num_windows, bool):
            raise ValueError(f"'num_windows' must be an integer, got {num_windows!r}")
        return cls.create(
            (Broker.from_dict(broker) for broker in brokers),
            monitored_partitions_ratio=float(ratio),
            num_windows=num_windows,
        )


# Hypothesis strategies for property-based testing


def resource_vector_strategy(
    min_value: float = 0.0, max_value: float = 1000.0
) -> st.SearchStrategy[ResourceVector]:
    """Generate resource vectors with every value in [min_value, max_value]."""
    value = st.floats(
        min_value=min_value, max_value=max_value, allow_nan=False, allow_infinity=False
    )
    return st.builds(ResourceVector, cpu=value, nw_in=value, nw_out=value, disk=value)


def cluster_model_strategy(
    max_brokers: int = 6,
    max_topics: int = 4,
    max_partitions: int = 4,
    allow_dead_brokers: bool = True,
) -> st.SearchStrategy[ClusterModel]:
    """
    Generate cluster models with at least one alive broker and at least one
    topic, positive capacities and a leader for every partition.
    """

    @st.composite
    def build_cluster(draw) -> ClusterModel:
        num_brokers = draw(st.integers(min_value=1, max_value=max_brokers))
        broker_ids = list(range(num_brokers))
        alive = [True] * num_brokers
        if allow_dead_brokers and num_brokers > 1:
            alive = [draw(st.booleans()) for _ in broker_ids]
            alive[draw(st.sampled_from(broker_ids))] = True
        num_hosts = draw(st.integers(min_value=1, max_value=num_brokers))

        placements: defaultdict[BrokerId, list[Replica]] = defaultdict(list)
        num_topics = draw(st.integers(min_value=1, max_value=max_topics))
        for topic_index in range(num_topics):
            topic = f"topic-{topic_index}"
            num_partitions = draw(st.integers(min_value=1, max_value=max_partitions))
            for partition in range(num_partitions):
                replica_brokers = draw(
                    st.lists(
                        st.sampled_from(broker_ids),
                        min_size=1,
                        max_size=min(3, num_brokers),
                        unique=True,
                    )
                )
                tp = TopicPartition(topic, partition)
                for position, broker_id in enumerate(replica_brokers):
                    placements[broker_id].append(
                        Replica(
                            topic_partition=tp,
                            broker_id=broker_id,
                            is_leader=position == 0,
                            load=draw(resource_vector_strategy(max_value=50.0)),
                            is_offline=draw(st.booleans()) and position > 0,
                        )
                    )

        brokers = [
            Broker(
                id=broker_id,
                capacity=draw(resource_vector_strategy(min_value=100.0)),
                replicas=tuple(placements[broker_id]),
                host_name=f"host-{broker_id % num_hosts}",
                is_alive=alive[broker_id],
            )
            for broker_id in broker_ids
        ]
        return ClusterModel.create(
            brokers,
            monitored_partitions_ratio=draw(st.floats(min_value=0.0, max_value=1.0)),
            num_windows=draw(st.integers(min_value=1, max_value=24)),
        )

    return build_cluster()
