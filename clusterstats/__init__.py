"""
clusterstats - Cluster Balance Statistics

Measures how evenly load (CPU, disk, network), replica count and leadership
are spread across the alive brokers of a modeled cluster, and how far each
broker deviates from its capacity-scaled share.

## Architecture

- **datastructures**: resources, statistics and the immutable cluster model
- **core**: the statistics aggregator, balancing constraint, settings,
  logging and serialization
- **cli**: the ``clusterstats`` command line tool

## Quick Start

```python
from pathlib import Path

from clusterstats import BalancingConstraint, ClusterModelStats
from clusterstats.core import load_cluster_model

cluster_model = load_cluster_model(Path("snapshot.json"))
stats = ClusterModelStats().populate(cluster_model, BalancingConstraint())
print(stats)
```
"""

from .core import (
    BalancingConstraint,
    ClusterModelStats,
    ClusterStatsError,
    DegenerateClusterError,
    StatsAlreadyPopulatedError,
    StatsSettings,
    compute_cluster_model_stats,
)
from .datastructures import (
    Broker,
    ClusterModel,
    Host,
    Replica,
    Resource,
    ResourceVector,
    Statistic,
    TopicPartition,
)

__version__ = "0.1.0"

__all__ = [
    "BalancingConstraint",
    "Broker",
    "ClusterModel",
    "ClusterModelStats",
    "ClusterStatsError",
    "DegenerateClusterError",
    "Host",
    "Replica",
    "Resource",
    "ResourceVector",
    "Statistic",
    "StatsAlreadyPopulatedError",
    "StatsSettings",
    "TopicPartition",
    "compute_cluster_model_stats",
]
