"""
clusterstats datastructures.

Immutable building blocks of a cluster snapshot:
- Resource / Statistic: the tracked resources and summary statistics
- ResourceVector: per-resource load or capacity
- Replica, Broker, Host, ClusterModel: the modeled cluster
"""

from __future__ import annotations

from .cluster_model import (
    Broker,
    ClusterModel,
    Host,
    Replica,
    ResourceVector,
    TopicPartition,
    cluster_model_strategy,
    resource_vector_strategy,
)
from .resource import Resource, Statistic

__all__ = [
    "Broker",
    "ClusterModel",
    "Host",
    "Replica",
    "Resource",
    "ResourceVector",
    "Statistic",
    "TopicPartition",
    "cluster_model_strategy",
    "resource_vector_strategy",
]
