"""
Balancing thresholds used to classify brokers.

A broker is balanced for a resource when its utilization fraction lies inside
a band around the cluster-wide fraction; the band width comes from the
resource balance percentage. The capacity threshold is the ceiling a broker's
utilization fraction must stay under.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from clusterstats.datastructures.resource import Resource
from clusterstats.datastructures.type_aliases import (
    BalancePercentage,
    CapacityThreshold,
    JsonDict,
)

DEFAULT_RESOURCE_BALANCE_PERCENTAGE: BalancePercentage = 1.10

DEFAULT_CAPACITY_THRESHOLDS: Mapping[Resource, CapacityThreshold] = MappingProxyType(
    {
        Resource.CPU: 0.7,
        Resource.NW_IN: 0.8,
        Resource.NW_OUT: 0.8,
        Resource.DISK: 0.8,
    }
)


def _default_balance_percentages() -> Mapping[Resource, BalancePercentage]:
    return MappingProxyType(
        {resource: DEFAULT_RESOURCE_BALANCE_PERCENTAGE for resource in Resource}
    )


def _default_capacity_thresholds() -> Mapping[Resource, CapacityThreshold]:
    return MappingProxyType(dict(DEFAULT_CAPACITY_THRESHOLDS))


@dataclass(frozen=True, slots=True)
class BalancingConstraint:
    """Per-resource balance percentages and capacity thresholds."""

    balance_percentages: Mapping[Resource, BalancePercentage] = field(
        default_factory=_default_balance_percentages
    )
    capacity_thresholds: Mapping[Resource, CapacityThreshold] = field(
        default_factory=_default_capacity_thresholds
    )

    def __post_init__(self) -> None:
        balance = {
            resource: float(
                self.balance_percentages.get(
                    resource, DEFAULT_RESOURCE_BALANCE_PERCENTAGE
                )
            )
            for resource in Resource
        }
        thresholds = {
            resource: float(
                self.capacity_thresholds.get(
                    resource, DEFAULT_CAPACITY_THRESHOLDS[resource]
                )
            )
            for resource in Resource
        }
        for resource, percentage in balance.items():
            if not percentage > 1.0:
                raise ValueError(
                    f"Balance percentage for {resource} must be greater than 1.0, "
                    f"got {percentage}"
                )
        for resource, threshold in thresholds.items():
            if not 0.0 < threshold <= 1.0:
                raise ValueError(
                    f"Capacity threshold for {resource} must be within (0, 1], "
                    f"got {threshold}"
                )
        object.__setattr__(self, "balance_percentages", MappingProxyType(balance))
        object.__setattr__(self, "capacity_thresholds", MappingProxyType(thresholds))

    def resource_balance_percentage(self, resource: Resource) -> BalancePercentage:
        return self.balance_percentages[resource]

    def capacity_threshold(self, resource: Resource) -> CapacityThreshold:
        return self.capacity_thresholds[resource]

    def with_overrides(
        self,
        balance_percentages: Mapping[Resource, BalancePercentage] | None = None,
        capacity_thresholds: Mapping[Resource, CapacityThreshold] | None = None,
    ) -> BalancingConstraint:
        """Return a copy with some per-resource values replaced."""
        return BalancingConstraint(
            balance_percentages={
                **self.balance_percentages,
                **(balance_percentages or {}),
            },
            capacity_thresholds={
                **self.capacity_thresholds,
                **(capacity_thresholds or {}),
            },
        )

    def to_dict(self) -> JsonDict:
        return {
            "balance_percentages": {
                resource.resource: value
                for resource, value in self.balance_percentages.items()
            },
            "capacity_thresholds": {
                resource.resource: value
                for resource, value in self.capacity_thresholds.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> BalancingConstraint:
        """
        Build a constraint from a mapping keyed by resource name.

        Resources missing from the mapping keep their defaults. Unknown
        resource names raise ``ValueError``.
        """
        return cls(
            balance_percentages=_resource_mapping(
                payload.get("balance_percentages", {}), "balance_percentages"
            ),
            capacity_thresholds=_resource_mapping(
                payload.get("capacity_thresholds", {}), "capacity_thresholds"
            ),
        )


def _resource_mapping(value: object, section: str) -> dict[Resource, float]:
    if not isinstance(value, Mapping):
        raise ValueError(f"'{section}' must be a mapping of resource to number")
    result: dict[Resource, float] = {}
    for key, number in value.items():
        if not isinstance(number, int | float) or isinstance(number, bool):
            raise ValueError(f"'{section}.{key}' must be numeric, got {number!r}")
        result[Resource.from_name(str(key))] = float(number)
    return result
