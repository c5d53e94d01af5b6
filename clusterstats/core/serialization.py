from pathlib import Path
from types import MappingProxyType
from typing import Any

import orjson

from clusterstats.datastructures.cluster_model import ClusterModel


class JsonSerializer:
    """JSON serialization of statistics and cluster snapshots using orjson."""

    def serialize(self, data: Any, *, indent: bool = False) -> bytes:
        """Serializes data to JSON bytes using orjson."""

        # orjson can't serialize these directly
        def default(obj: Any) -> Any:
            if isinstance(obj, frozenset):
                return list(obj)
            if isinstance(obj, MappingProxyType):
                return dict(obj)
            raise TypeError

        option = orjson.OPT_INDENT_2 if indent else 0
        return orjson.dumps(data, default=default, option=option)

    def deserialize(self, data: bytes) -> Any:
        """Deserializes JSON bytes to data using orjson."""
        return orjson.loads(data)


def load_cluster_model(
    path: Path, serializer: JsonSerializer | None = None
) -> ClusterModel:
    """Read a cluster snapshot written by ``ClusterModel.to_dict``."""
    payload = (serializer or JsonSerializer()).deserialize(path.read_bytes())
    if not isinstance(payload, dict):
        raise ValueError(f"Cluster snapshot {path} must be a JSON object")
    return ClusterModel.from_dict(payload)


def dump_cluster_model(
    cluster_model: ClusterModel, path: Path, serializer: JsonSerializer | None = None
) -> None:
    path.write_bytes(
        (serializer or JsonSerializer()).serialize(cluster_model.to_dict(), indent=True)
    )
