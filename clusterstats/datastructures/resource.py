"""
Resource and statistic enumerations.

A resource is something a broker consumes capacity of. Some resources are
shared by every broker process on the same machine; those are flagged as host
resources and must be aggregated at host level.
"""

from __future__ import annotations

from enum import Enum


class Resource(Enum):
    """Physical resources tracked per broker."""

    CPU = ("cpu", True)
    NW_IN = ("networkInbound", True)
    NW_OUT = ("networkOutbound", True)
    DISK = ("disk", False)

    def __init__(self, resource: str, is_host_resource: bool) -> None:
        self.resource = resource
        self.is_host_resource = is_host_resource

    @classmethod
    def from_name(cls, name: str) -> Resource:
        """Resolve a resource from its wire name, enum name or short alias."""
        key = name.strip()
        for member in cls:
            if key == member.resource or key.upper() == member.name:
                return member
        alias = _RESOURCE_ALIASES.get(key.lower())
        if alias is not None:
            return alias
        raise ValueError(f"Unknown resource: {name!r}")

    def __str__(self) -> str:
        return self.resource


_RESOURCE_ALIASES: dict[str, Resource] = {
    "nw_in": Resource.NW_IN,
    "network_in": Resource.NW_IN,
    "nw_out": Resource.NW_OUT,
    "network_out": Resource.NW_OUT,
}


class Statistic(Enum):
    """Summary statistics computed for every tracked metric."""

    AVG = "AVG"
    MAX = "MAX"
    MIN = "MIN"
    ST_DEV = "STD"

    @property
    def stat(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.name
