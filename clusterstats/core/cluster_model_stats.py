"""
Balance statistics of a cluster model.

``ClusterModelStats`` measures how evenly load, replicas and leadership are
spread over the alive brokers of a cluster snapshot. It is populated once
from a cluster model and a balancing constraint and is read-only afterwards.

Numerical policy:

- Resource utilization is judged against the cluster-wide utilization
  fraction (cluster load / cluster capacity), not the mean broker load. The
  deviation of a broker is measured from ``avg_fraction * broker_capacity``
  so brokers with more capacity are expected to carry proportionally more.
- The balance band is ``[avg * max(0, 2 - pct), avg * pct]``.
- Replica averages divide the count over all brokers (dead ones included)
  by the number of alive brokers; the deviation is taken over alive brokers.
- Topic replica statistics are the unweighted mean of per-topic averages
  and standard deviations.

Zero divisors (no alive brokers, no topics, zero capacity) raise
``DegenerateClusterError`` before anything is published.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from loguru import logger

from clusterstats.datastructures.resource import Resource, Statistic
from clusterstats.datastructures.type_aliases import (
    BrokerCount,
    JsonDict,
    ReplicaCount,
    UtilizationMatrix,
    WindowCount,
)

from .balancing_constraint import BalancingConstraint
from .interfaces import BalancingConstraintView, BrokerView, ClusterModelView
from .model import DegenerateClusterError, StatsAlreadyPopulatedError
from .serialization import JsonSerializer
from .statistics import (
    BalanceBand,
    PotentialNwOutSummary,
    ReplicaDistributionSummary,
    ResourceUtilizationSummary,
    StatisticValues,
)

# Keys of the structured rendering
BROKERS = "brokers"
REPLICAS = "replicas"
TOPICS = "topics"
METADATA = "metadata"
STATISTICS = "statistics"
POTENTIAL_NW_OUT = "potentialNwOut"
LEADER_REPLICAS = "leaderReplicas"
TOPIC_REPLICAS = "topicReplicas"

UNIT_INTERVAL_TO_PERCENTAGE = 100.0

type ReplicaCounter = Callable[[BrokerView], ReplicaCount]


def _divide(numerator: float, denominator: float, quantity: str) -> float:
    if denominator == 0:
        raise DegenerateClusterError(quantity=quantity)
    return numerator / denominator


def summarize_resource_utilization(
    cluster_model: ClusterModelView,
    balancing_constraint: BalancingConstraintView,
    resource: Resource,
    num_alive_brokers: BrokerCount,
) -> ResourceUtilizationSummary:
    """Utilization statistics and balanced broker count for one resource."""
    cluster_utilization = cluster_model.expected_utilization_for(resource)
    avg_utilization_fraction = _divide(
        cluster_utilization,
        cluster_model.capacity_for(resource),
        f"cluster {resource} capacity",
    )
    balance_percentage = balancing_constraint.resource_balance_percentage(resource)
    band = BalanceBand(
        lower=avg_utilization_fraction * max(0.0, 2 - balance_percentage),
        upper=avg_utilization_fraction * balance_percentage,
    )

    hottest_broker_utilization = 0.0
    coldest_broker_utilization = sys.float_info.max
    variance_sum = 0.0
    num_balanced_brokers = 0
    for broker in cluster_model.alive_brokers():
        # Host resources are shared by co-located brokers
        source = cluster_model.host_for(broker) if resource.is_host_resource else broker
        utilization = source.expected_utilization_for(resource)
        capacity = source.capacity_for(resource)
        utilization_fraction = _divide(
            utilization, capacity, f"{resource} capacity of broker {broker.id}"
        )
        if band.contains(utilization_fraction):
            num_balanced_brokers += 1
        hottest_broker_utilization = max(hottest_broker_utilization, utilization)
        coldest_broker_utilization = min(coldest_broker_utilization, utilization)
        variance_sum += (utilization - avg_utilization_fraction * capacity) ** 2

    return ResourceUtilizationSummary(
        resource=resource,
        values=StatisticValues(
            average=_divide(
                cluster_utilization, num_alive_brokers, "alive broker count"
            ),
            maximum=hottest_broker_utilization,
            minimum=coldest_broker_utilization,
            st_dev=math.sqrt(
                _divide(variance_sum, num_alive_brokers, "alive broker count")
            ),
        ),
        num_balanced_brokers=num_balanced_brokers,
        avg_utilization_fraction=avg_utilization_fraction,
        band=band,
    )


def summarize_potential_nw_out(
    cluster_model: ClusterModelView,
    balancing_constraint: BalancingConstraintView,
    num_alive_brokers: BrokerCount,
) -> PotentialNwOutSummary:
    """Outbound network statistics if every broker led all its replicas."""
    alive_brokers = cluster_model.alive_brokers()
    potential_by_broker = {
        broker.id: cluster_model.potential_leadership_load_for(
            broker.id
        ).expected_utilization_for(Resource.NW_OUT)
        for broker in alive_brokers
    }
    potential_nw_out_in_cluster = sum(potential_by_broker.values())
    avg_potential_nw_out_fraction = _divide(
        potential_nw_out_in_cluster,
        cluster_model.capacity_for(Resource.NW_OUT),
        f"cluster {Resource.NW_OUT} capacity",
    )
    capacity_threshold = balancing_constraint.capacity_threshold(Resource.NW_OUT)

    max_potential_nw_out = 0.0
    min_potential_nw_out = sys.float_info.max
    variance_sum = 0.0
    num_brokers_under_threshold = 0
    for broker in alive_brokers:
        broker_utilization = potential_by_broker[broker.id]
        broker_capacity = broker.capacity_for(Resource.NW_OUT)
        fraction = _divide(
            broker_utilization,
            broker_capacity,
            f"{Resource.NW_OUT} capacity of broker {broker.id}",
        )
        if fraction <= capacity_threshold:
            num_brokers_under_threshold += 1
        max_potential_nw_out = max(max_potential_nw_out, broker_utilization)
        min_potential_nw_out = min(min_potential_nw_out, broker_utilization)
        variance_sum += (
            broker_utilization - avg_potential_nw_out_fraction * broker_capacity
        ) ** 2

    return PotentialNwOutSummary(
        values=StatisticValues(
            average=_divide(
                potential_nw_out_in_cluster, num_alive_brokers, "alive broker count"
            ),
            maximum=max_potential_nw_out,
            minimum=min_potential_nw_out,
            st_dev=math.sqrt(
                _divide(variance_sum, num_alive_brokers, "alive broker count")
            ),
        ),
        num_brokers_under_threshold=num_brokers_under_threshold,
        capacity_threshold=capacity_threshold,
    )


def summarize_replica_counts(
    cluster_model: ClusterModelView,
    count_replicas: ReplicaCounter,
    num_alive_brokers: BrokerCount,
) -> StatisticValues:
    """
    Statistics of a per-broker replica count.

    ``count_replicas`` decides which replicas of a broker are of interest.
    Sum, maximum and minimum run over every broker, but the average divides
    by the alive broker count and the deviation only visits alive brokers.
    """
    max_replicas_in_broker = 0
    min_replicas_in_broker = sys.maxsize
    num_replicas_in_cluster = 0
    for broker in cluster_model.brokers():
        num_replicas_in_broker = count_replicas(broker)
        num_replicas_in_cluster += num_replicas_in_broker
        max_replicas_in_broker = max(max_replicas_in_broker, num_replicas_in_broker)
        min_replicas_in_broker = min(min_replicas_in_broker, num_replicas_in_broker)
    avg_replicas = _divide(
        num_replicas_in_cluster, num_alive_brokers, "alive broker count"
    )

    variance = 0.0
    for broker in cluster_model.alive_brokers():
        variance += (count_replicas(broker) - avg_replicas) ** 2 / num_alive_brokers

    return StatisticValues(
        average=avg_replicas,
        maximum=max_replicas_in_broker,
        minimum=min_replicas_in_broker,
        st_dev=math.sqrt(variance),
    )


def summarize_replica_distribution(
    cluster_model: ClusterModelView,
) -> ReplicaDistributionSummary:
    """Total replicas and distinct partitions with a replica needing healing."""
    partitions_with_offline_replicas = {
        replica.topic_partition
        for replica in cluster_model.self_healing_eligible_replicas()
    }
    return ReplicaDistributionSummary(
        num_replicas_in_cluster=cluster_model.num_replicas(),
        num_partitions_with_offline_replicas=len(partitions_with_offline_replicas),
    )


def summarize_topic_replicas(
    cluster_model: ClusterModelView,
    num_alive_brokers: BrokerCount,
) -> StatisticValues:
    """
    Per-topic replica spread, averaged over topics.

    AVG and ST_DEV are means of the per-topic averages and deviations, not
    pooled statistics; a small topic weighs as much as a large one. MAX and
    MIN are the extremes over all topics.
    """
    topics = cluster_model.topics()
    brokers = cluster_model.brokers()
    alive_brokers = cluster_model.alive_brokers()

    avg_sum = 0.0
    max_topic_replicas = 0
    min_topic_replicas = sys.maxsize
    st_dev_sum = 0.0
    for topic in topics:
        max_topic_replicas_in_broker = 0
        min_topic_replicas_in_broker = sys.maxsize
        for broker in brokers:
            num_topic_replicas = broker.num_replicas_of_topic_in_broker(topic)
            max_topic_replicas_in_broker = max(
                max_topic_replicas_in_broker, num_topic_replicas
            )
            min_topic_replicas_in_broker = min(
                min_topic_replicas_in_broker, num_topic_replicas
            )

        alive_counts = [
            broker.num_replicas_of_topic_in_broker(topic) for broker in alive_brokers
        ]
        avg_topic_replicas = _divide(
            sum(alive_counts), num_alive_brokers, "alive broker count"
        )
        variance = 0.0
        for count in alive_counts:
            variance += (count - avg_topic_replicas) ** 2 / num_alive_brokers

        avg_sum += avg_topic_replicas
        max_topic_replicas = max(max_topic_replicas, max_topic_replicas_in_broker)
        min_topic_replicas = min(min_topic_replicas, min_topic_replicas_in_broker)
        st_dev_sum += math.sqrt(variance)

    return StatisticValues(
        average=_divide(avg_sum, len(topics), "topic count"),
        maximum=max_topic_replicas,
        minimum=min_topic_replicas,
        st_dev=_divide(st_dev_sum, len(topics), "topic count"),
    )


def _empty_mapping() -> Mapping[Any, Any]:
    return MappingProxyType({})


def _by_statistic(values: StatisticValues) -> Mapping[Statistic, int | float]:
    return MappingProxyType(values.as_mapping())


@dataclass(slots=True)
class ClusterModelStats:
    """
    Write-once balance statistics snapshot.

    Construct empty, call ``populate()`` once, then read. Before population
    the maps are empty, counts are zero and the utilization matrix is
    ``None``. Every published map is read-only.
    """

    _resource_utilization_stats: Mapping[Statistic, Mapping[Resource, float]] = (
        field(default_factory=_empty_mapping)
    )
    _potential_nw_out_utilization_stats: Mapping[Statistic, float] = field(
        default_factory=_empty_mapping
    )
    _replica_stats: Mapping[Statistic, int | float] = field(
        default_factory=_empty_mapping
    )
    _leader_replica_stats: Mapping[Statistic, int | float] = field(
        default_factory=_empty_mapping
    )
    _topic_replica_stats: Mapping[Statistic, int | float] = field(
        default_factory=_empty_mapping
    )
    _num_balanced_brokers_by_resource: Mapping[Resource, BrokerCount] = field(
        default_factory=_empty_mapping
    )
    _num_brokers: BrokerCount = 0
    _num_alive_brokers: BrokerCount = 0
    _num_replicas_in_cluster: ReplicaCount = 0
    _num_partitions_with_offline_replicas: int = 0
    _num_topics: int = 0
    _num_brokers_under_potential_nw_out: BrokerCount = 0
    _balancing_constraint: BalancingConstraintView | None = None
    _utilization_matrix: UtilizationMatrix | None = None
    _num_snapshot_windows: WindowCount = 0
    _monitored_partitions_ratio: float = 0.0
    _populated: bool = False

    def populate(
        self,
        cluster_model: ClusterModelView,
        balancing_constraint: BalancingConstraintView,
    ) -> ClusterModelStats:
        """
        Compute every statistic of ``cluster_model`` under ``balancing_constraint``.

        The cluster model is only read. All values are computed before any is
        stored, so a failure leaves this object unpopulated.

        Raises:
            StatsAlreadyPopulatedError: this object was populated before.
            DegenerateClusterError: a divisor of the statistics is zero.
        """
        if self._populated:
            raise StatsAlreadyPopulatedError()

        num_brokers = len(cluster_model.brokers())
        num_alive_brokers = len(cluster_model.alive_brokers())
        if num_alive_brokers == 0:
            raise DegenerateClusterError(quantity="alive broker count")

        resource_summaries: dict[Resource, ResourceUtilizationSummary] = {}
        for resource in Resource:
            summary = summarize_resource_utilization(
                cluster_model, balancing_constraint, resource, num_alive_brokers
            )
            logger.debug(
                "{} utilization fraction {:.4f} band [{:.4f}, {:.4f}]: "
                "{}/{} brokers balanced",
                resource,
                summary.avg_utilization_fraction,
                summary.band.lower,
                summary.band.upper,
                summary.num_balanced_brokers,
                num_alive_brokers,
            )
            resource_summaries[resource] = summary

        potential_nw_out = summarize_potential_nw_out(
            cluster_model, balancing_constraint, num_alive_brokers
        )
        logger.debug(
            "{}/{} brokers under potential {} threshold {:.2f}",
            potential_nw_out.num_brokers_under_threshold,
            num_alive_brokers,
            Resource.NW_OUT,
            potential_nw_out.capacity_threshold,
        )

        replica_values = summarize_replica_counts(
            cluster_model, lambda broker: broker.num_replicas(), num_alive_brokers
        )
        distribution = summarize_replica_distribution(cluster_model)
        leader_replica_values = summarize_replica_counts(
            cluster_model,
            lambda broker: broker.num_leader_replicas(),
            num_alive_brokers,
        )
        topic_replica_values = summarize_topic_replicas(
            cluster_model, num_alive_brokers
        )

        self._resource_utilization_stats = MappingProxyType(
            {
                stat: MappingProxyType(
                    {
                        resource: summary.values.as_mapping()[stat]
                        for resource, summary in resource_summaries.items()
                    }
                )
                for stat in Statistic
            }
        )
        self._num_balanced_brokers_by_resource = MappingProxyType(
            {
                resource: summary.num_balanced_brokers
                for resource, summary in resource_summaries.items()
            }
        )
        self._potential_nw_out_utilization_stats = _by_statistic(
            potential_nw_out.values
        )
        self._num_brokers_under_potential_nw_out = (
            potential_nw_out.num_brokers_under_threshold
        )
        self._replica_stats = _by_statistic(replica_values)
        self._leader_replica_stats = _by_statistic(leader_replica_values)
        self._topic_replica_stats = _by_statistic(topic_replica_values)
        self._num_replicas_in_cluster = distribution.num_replicas_in_cluster
        self._num_partitions_with_offline_replicas = (
            distribution.num_partitions_with_offline_replicas
        )
        self._num_brokers = num_brokers
        self._num_alive_brokers = num_alive_brokers
        self._num_topics = len(cluster_model.topics())
        self._balancing_constraint = balancing_constraint
        self._utilization_matrix = cluster_model.utilization_matrix()
        self._num_snapshot_windows = cluster_model.num_windows()
        self._monitored_partitions_ratio = cluster_model.monitored_partitions_ratio()
        self._populated = True

        logger.info("Populated cluster model stats: {}", self.to_string_counts())
        return self

    @property
    def is_populated(self) -> bool:
        return self._populated

    @property
    def resource_utilization_stats(
        self,
    ) -> Mapping[Statistic, Mapping[Resource, float]]:
        return self._resource_utilization_stats

    @property
    def potential_nw_out_utilization_stats(self) -> Mapping[Statistic, float]:
        return self._potential_nw_out_utilization_stats

    @property
    def replica_stats(self) -> Mapping[Statistic, int | float]:
        return self._replica_stats

    @property
    def leader_replica_stats(self) -> Mapping[Statistic, int | float]:
        return self._leader_replica_stats

    @property
    def topic_replica_stats(self) -> Mapping[Statistic, int | float]:
        return self._topic_replica_stats

    @property
    def num_brokers(self) -> BrokerCount:
        return self._num_brokers

    @property
    def num_alive_brokers(self) -> BrokerCount:
        return self._num_alive_brokers

    @property
    def num_replicas_in_cluster(self) -> ReplicaCount:
        return self._num_replicas_in_cluster

    @property
    def num_partitions_with_offline_replicas(self) -> int:
        return self._num_partitions_with_offline_replicas

    @property
    def num_topics(self) -> int:
        return self._num_topics

    @property
    def num_balanced_brokers_by_resource(self) -> Mapping[Resource, BrokerCount]:
        return self._num_balanced_brokers_by_resource

    @property
    def num_brokers_under_potential_nw_out(self) -> BrokerCount:
        return self._num_brokers_under_potential_nw_out

    @property
    def balancing_constraint(self) -> BalancingConstraintView | None:
        return self._balancing_constraint

    @property
    def utilization_matrix(self) -> UtilizationMatrix | None:
        """Alive brokers by resources, shared with the source model."""
        return self._utilization_matrix

    @property
    def monitored_partitions_percentage(self) -> float:
        return self._monitored_partitions_ratio * UNIT_INTERVAL_TO_PERCENTAGE

    @property
    def num_snapshot_windows(self) -> WindowCount:
        return self._num_snapshot_windows

    def to_json_structure(self) -> JsonDict:
        """Nested metadata and per-statistic values keyed by plain strings."""
        basic = {
            BROKERS: self.num_brokers,
            REPLICAS: self.num_replicas_in_cluster,
            TOPICS: self.num_topics,
        }
        all_stats: JsonDict = {}
        for stat in Statistic:
            resource_map: JsonDict = {
                resource.resource: self.resource_utilization_stats[stat][resource]
                for resource in Resource
            }
            resource_map[POTENTIAL_NW_OUT] = self.potential_nw_out_utilization_stats[
                stat
            ]
            resource_map[REPLICAS] = self.replica_stats[stat]
            resource_map[LEADER_REPLICAS] = self.leader_replica_stats[stat]
            resource_map[TOPIC_REPLICAS] = self.topic_replica_stats[stat]
            all_stats[stat.stat] = resource_map
        return {METADATA: basic, STATISTICS: all_stats}

    def to_json(self) -> str:
        return JsonSerializer().serialize(self.to_json_structure()).decode()

    def to_string_counts(self) -> str:
        return (
            f"{self.num_brokers} brokers {self.num_replicas_in_cluster} replicas "
            f"{self.num_topics} topics."
        )

    def __str__(self) -> str:
        lines = []
        for stat in Statistic:
            utilization = self.resource_utilization_stats[stat]
            resources = "".join(
                f"{resource}:{utilization[resource]:12.3f} " for resource in Resource
            )
            potential_nw_out = self.potential_nw_out_utilization_stats[stat]
            lines.append(
                f"{stat}:{{{resources}"
                f"{POTENTIAL_NW_OUT}:{potential_nw_out:12.3f} "
                f"{REPLICAS}:{self.replica_stats[stat]} "
                f"{LEADER_REPLICAS}:{self.leader_replica_stats[stat]} "
                f"{TOPIC_REPLICAS}:{self.topic_replica_stats[stat]}}}"
            )
        return "\n".join(lines)


def compute_cluster_model_stats(
    cluster_model: ClusterModelView,
    balancing_constraint: BalancingConstraintView | None = None,
) -> ClusterModelStats:
    """Populate a fresh snapshot, using the default constraint when none is given."""
    return ClusterModelStats().populate(
        cluster_model, balancing_constraint or BalancingConstraint()
    )
