"""
Statistics dataclasses for cluster balance summaries.

Each summarizer returns one of these immutable values instead of a loose
dict, so the aggregator can assemble its snapshot from typed parts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from clusterstats.datastructures.resource import Resource, Statistic
from clusterstats.datastructures.type_aliases import (
    BrokerCount,
    UtilizationFraction,
)


@dataclass(frozen=True, slots=True)
class StatisticValues:
    """The four summary statistics of one metric."""

    average: float
    maximum: int | float
    minimum: int | float
    st_dev: float

    def as_mapping(self) -> dict[Statistic, int | float]:
        return {
            Statistic.AVG: self.average,
            Statistic.MAX: self.maximum,
            Statistic.MIN: self.minimum,
            Statistic.ST_DEV: self.st_dev,
        }


@dataclass(frozen=True, slots=True)
class BalanceBand:
    """
    Utilization fraction window inside which a broker counts as balanced.

    Both bounds are inclusive and a fraction within floating point rounding
    of a bound counts as on it.
    """

    lower: UtilizationFraction
    upper: UtilizationFraction

    def contains(self, fraction: UtilizationFraction) -> bool:
        above_lower = fraction >= self.lower or math.isclose(fraction, self.lower)
        below_upper = fraction <= self.upper or math.isclose(fraction, self.upper)
        return above_lower and below_upper


@dataclass(frozen=True, slots=True)
class ResourceUtilizationSummary:
    """Utilization statistics of one resource across alive brokers."""

    resource: Resource
    values: StatisticValues
    num_balanced_brokers: BrokerCount
    avg_utilization_fraction: UtilizationFraction
    band: BalanceBand


@dataclass(frozen=True, slots=True)
class PotentialNwOutSummary:
    """Outbound network statistics if every broker led all its replicas."""

    values: StatisticValues
    num_brokers_under_threshold: BrokerCount
    capacity_threshold: UtilizationFraction


@dataclass(frozen=True, slots=True)
class ReplicaDistributionSummary:
    """Cluster-wide replica totals gathered beside the replica statistics."""

    num_replicas_in_cluster: int
    num_partitions_with_offline_replicas: int
