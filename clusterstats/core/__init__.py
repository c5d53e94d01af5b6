"""
clusterstats core module.

Balance statistics aggregation over a cluster model together with the
balancing constraint, configuration, logging and serialization it uses.
"""

from .balancing_constraint import BalancingConstraint
from .cluster_model_stats import (
    ClusterModelStats,
    compute_cluster_model_stats,
    summarize_potential_nw_out,
    summarize_replica_counts,
    summarize_replica_distribution,
    summarize_resource_utilization,
    summarize_topic_replicas,
)
from .config import StatsSettings, load_settings
from .interfaces import BrokerView, ClusterModelView, HostView
from .logging import configure_logging
from .model import (
    ClusterStatsError,
    DegenerateClusterError,
    StatsAlreadyPopulatedError,
)
from .serialization import JsonSerializer, dump_cluster_model, load_cluster_model
from .statistics import (
    BalanceBand,
    PotentialNwOutSummary,
    ReplicaDistributionSummary,
    ResourceUtilizationSummary,
    StatisticValues,
)

__all__ = [
    "BalanceBand",
    "BalancingConstraint",
    "BrokerView",
    "ClusterModelStats",
    "ClusterModelView",
    "ClusterStatsError",
    "DegenerateClusterError",
    "HostView",
    "JsonSerializer",
    "PotentialNwOutSummary",
    "ReplicaDistributionSummary",
    "ResourceUtilizationSummary",
    "StatisticValues",
    "StatsAlreadyPopulatedError",
    "StatsSettings",
    "compute_cluster_model_stats",
    "configure_logging",
    "dump_cluster_model",
    "load_cluster_model",
    "load_settings",
    "summarize_potential_nw_out",
    "summarize_replica_counts",
    "summarize_replica_distribution",
    "summarize_resource_utilization",
    "summarize_topic_replicas",
]
