"""Exception types raised by the statistics aggregator."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ClusterStatsError(ValueError):
    """Base error for statistics that cannot be computed from a cluster model."""

    message: str = "Cluster statistics could not be computed"

    def __str__(self) -> str:
        return self.message


@dataclass
class DegenerateClusterError(ClusterStatsError):
    """A divisor of the statistics is zero: no alive brokers, topics or capacity."""

    quantity: str = ""
    message: str = "Cluster statistics divisor is zero"

    def __post_init__(self) -> None:
        if self.quantity:
            self.message = f"Cannot compute cluster statistics: {self.quantity} is zero"


@dataclass
class StatsAlreadyPopulatedError(ClusterStatsError):
    """``populate()`` was called a second time on the same statistics object."""

    message: str = "Cluster model statistics can only be populated once"
