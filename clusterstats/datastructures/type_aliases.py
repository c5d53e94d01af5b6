"""
Semantic type aliases for clusterstats datastructures.

These aliases replace raw int/float/str annotations with names that say what
the value means in the cluster model.
"""

from typing import Any

# Identifier types
type BrokerId = int
type HostName = str
type RackId = str
type TopicName = str
type PartitionNumber = int

# Load and capacity types
type Utilization = float
type Capacity = float
type UtilizationFraction = float
type BalancePercentage = float
type CapacityThreshold = float
type MonitoredRatio = float

# Count types
type ReplicaCount = int
type BrokerCount = int
type WindowCount = int

# Serialization types
type JsonDict = dict[str, Any]
type UtilizationRow = tuple[float, ...]
type UtilizationMatrix = tuple[UtilizationRow, ...]
