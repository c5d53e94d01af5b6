"""Pytest configuration and fixtures for clusterstats testing.

Provides small hand-built cluster models whose statistics can be worked out
on paper, plus a snapshot file for the CLI tests.
"""

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from clusterstats.core.serialization import dump_cluster_model
from clusterstats.datastructures.cluster_model import (
    Broker,
    ClusterModel,
    Replica,
    ResourceVector,
    TopicPartition,
)


def uniform_capacity(value: float = 100.0) -> ResourceVector:
    return ResourceVector(cpu=value, nw_in=value, nw_out=value, disk=value)


def disk_load(value: float) -> ResourceVector:
    return ResourceVector(disk=value)


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[None]:
    """CLI tests reconfigure loguru onto captured streams; put stderr back."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def three_broker_cluster() -> ClusterModel:
    """
    Two alive brokers carrying 40 and 60 disk, one dead broker carrying none.

    Every broker has capacity 100 per resource and its own host.
    """
    tp0 = TopicPartition("orders", 0)
    tp1 = TopicPartition("orders", 1)
    brokers = [
        Broker(
            id=0,
            capacity=uniform_capacity(),
            replicas=(Replica(tp0, 0, is_leader=True, load=disk_load(40.0)),),
        ),
        Broker(
            id=1,
            capacity=uniform_capacity(),
            replicas=(
                Replica(tp1, 1, is_leader=True, load=disk_load(30.0)),
                Replica(tp0, 1, load=disk_load(30.0)),
            ),
        ),
        Broker(id=2, capacity=uniform_capacity(), is_alive=False),
    ]
    return ClusterModel.create(brokers, monitored_partitions_ratio=0.95, num_windows=5)


@pytest.fixture
def shared_host_cluster() -> ClusterModel:
    """
    Brokers 0 and 1 share ``rack-a-host``; broker 2 runs alone.

    Partition ``logs-0`` is led by broker 0 with a follower on broker 2, and
    ``logs-1`` is led by broker 2 with a follower on broker 1.
    """
    leader_load = ResourceVector(cpu=20.0, nw_in=10.0, nw_out=30.0, disk=50.0)
    follower_load = ResourceVector(cpu=5.0, nw_in=10.0, nw_out=0.0, disk=50.0)
    logs0 = TopicPartition("logs", 0)
    logs1 = TopicPartition("logs", 1)
    brokers = [
        Broker(
            id=0,
            capacity=uniform_capacity(),
            replicas=(Replica(logs0, 0, is_leader=True, load=leader_load),),
            host_name="rack-a-host",
            rack="rack-a",
        ),
        Broker(
            id=1,
            capacity=uniform_capacity(),
            replicas=(Replica(logs1, 1, load=follower_load),),
            host_name="rack-a-host",
            rack="rack-a",
        ),
        Broker(
            id=2,
            capacity=uniform_capacity(200.0),
            replicas=(
                Replica(logs0, 2, load=follower_load),
                Replica(logs1, 2, is_leader=True, load=leader_load),
            ),
            rack="rack-b",
        ),
    ]
    return ClusterModel.create(brokers)


@pytest.fixture
def snapshot_path(tmp_path: Path, three_broker_cluster: ClusterModel) -> Path:
    path = tmp_path / "snapshot.json"
    dump_cluster_model(three_broker_cluster, path)
    return path
