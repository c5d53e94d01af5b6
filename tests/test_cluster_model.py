"""
Tests for the immutable cluster model.

Covers validation of partitions, vectors, brokers and the cluster, the
derived host and leadership views, and dict conversion of snapshots.
"""

import pytest
from hypothesis import given, settings

from clusterstats.datastructures.cluster_model import (
    Broker,
    ClusterModel,
    Replica,
    ResourceVector,
    TopicPartition,
    cluster_model_strategy,
)
from clusterstats.datastructures.resource import Resource

from tests.conftest import disk_load, uniform_capacity


class TestTopicPartition:
    def test_str(self) -> None:
        assert str(TopicPartition("orders", 3)) == "orders-3"

    def test_ordering(self) -> None:
        partitions = [
            TopicPartition("b", 0),
            TopicPartition("a", 1),
            TopicPartition("a", 0),
        ]
        assert sorted(partitions) == [
            TopicPartition("a", 0),
            TopicPartition("a", 1),
            TopicPartition("b", 0),
        ]

    def test_rejects_empty_topic(self) -> None:
        with pytest.raises(ValueError, match="Topic name cannot be empty"):
            TopicPartition("", 0)

    def test_rejects_negative_partition(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            TopicPartition("orders", -1)


class TestResourceVector:
    def test_rejects_negative_values(self) -> None:
        with pytest.raises(ValueError, match="disk value must be non-negative"):
            ResourceVector(disk=-1.0)

    def test_addition(self) -> None:
        total = ResourceVector(cpu=1.0, disk=2.0) + ResourceVector(cpu=3.0, nw_out=4.0)
        assert total == ResourceVector(cpu=4.0, nw_in=0.0, nw_out=4.0, disk=2.0)

    def test_row_follows_resource_order(self) -> None:
        vector = ResourceVector(cpu=1.0, nw_in=2.0, nw_out=3.0, disk=4.0)
        assert vector.as_row() == (1.0, 2.0, 3.0, 4.0)
        assert vector.get(Resource.NW_IN) == 2.0
        assert vector.expected_utilization_for(Resource.DISK) == 4.0

    def test_of_mapping(self) -> None:
        vector = ResourceVector.of({Resource.NW_OUT: 5, Resource.CPU: 1})
        assert vector == ResourceVector(cpu=1.0, nw_out=5.0)

    def test_dict_uses_wire_names(self) -> None:
        vector = ResourceVector(cpu=1.0, nw_in=2.0, nw_out=3.0, disk=4.0)
        assert vector.to_dict() == {
            "cpu": 1.0,
            "networkInbound": 2.0,
            "networkOutbound": 3.0,
            "disk": 4.0,
        }
        assert ResourceVector.from_dict(vector.to_dict()) == vector

    def test_from_dict_accepts_aliases_and_fills_missing(self) -> None:
        vector = ResourceVector.from_dict({"nw_in": 7, "DISK": 2.5})
        assert vector == ResourceVector(nw_in=7.0, disk=2.5)

    def test_from_dict_rejects_non_numeric(self) -> None:
        with pytest.raises(ValueError, match="must be numeric"):
            ResourceVector.from_dict({"cpu": "high"})

    @pytest.mark.parametrize("value", [True, False])
    def test_from_dict_rejects_booleans(self, value: bool) -> None:
        with pytest.raises(ValueError, match="must be numeric"):
            ResourceVector.from_dict({"cpu": value})

    @pytest.mark.parametrize("payload", [None, [1.0, 2.0], "cpu=1"])
    def test_from_dict_requires_object(self, payload: object) -> None:
        with pytest.raises(ValueError, match="resource values must be an object"):
            ResourceVector.from_dict(payload)


class TestBroker:
    def test_defaults(self) -> None:
        broker = Broker(id=3, capacity=uniform_capacity())
        assert broker.host_name == "host-3"
        assert broker.is_alive
        assert broker.num_replicas() == 0
        assert broker.load() == ResourceVector.empty()

    def test_rejects_negative_id(self) -> None:
        with pytest.raises(ValueError, match="Broker id must be non-negative"):
            Broker(id=-1, capacity=uniform_capacity())

    def test_rejects_replica_of_another_broker(self) -> None:
        replica = Replica(TopicPartition("orders", 0), broker_id=2)
        with pytest.raises(ValueError, match="claims broker 2"):
            Broker(id=1, capacity=uniform_capacity(), replicas=(replica,))

    def test_derived_counts_and_load(self) -> None:
        broker = Broker(
            id=0,
            capacity=uniform_capacity(),
            replicas=(
                Replica(TopicPartition("a", 0), 0, is_leader=True, load=disk_load(5)),
                Replica(TopicPartition("a", 1), 0, load=disk_load(7)),
                Replica(TopicPartition("b", 0), 0, is_leader=True, load=disk_load(1)),
            ),
        )
        assert broker.num_replicas() == 3
        assert broker.num_leader_replicas() == 2
        assert [r.topic_partition for r in broker.leader_replicas()] == [
            TopicPartition("a", 0),
            TopicPartition("b", 0),
        ]
        assert broker.num_replicas_of_topic_in_broker("a") == 2
        assert broker.num_replicas_of_topic_in_broker("missing") == 0
        assert broker.expected_utilization_for(Resource.DISK) == 13.0
        assert broker.capacity_for(Resource.CPU) == 100.0


class TestClusterModel:
    def test_brokers_are_sorted_by_id(self) -> None:
        cluster = ClusterModel.create(
            Broker(id=i, capacity=uniform_capacity()) for i in (2, 0, 1)
        )
        assert [b.id for b in cluster.brokers()] == [0, 1, 2]

    def test_rejects_duplicate_broker_ids(self) -> None:
        with pytest.raises(ValueError, match="Duplicate broker id: 1"):
            ClusterModel.create(
                [
                    Broker(id=1, capacity=uniform_capacity()),
                    Broker(id=1, capacity=uniform_capacity()),
                ]
            )

    def test_rejects_two_leaders_for_one_partition(self) -> None:
        tp = TopicPartition("orders", 0)
        with pytest.raises(ValueError, match="more than one leader"):
            ClusterModel.create(
                [
                    Broker(0, uniform_capacity(), (Replica(tp, 0, is_leader=True),)),
                    Broker(1, uniform_capacity(), (Replica(tp, 1, is_leader=True),)),
                ]
            )

    @pytest.mark.parametrize("ratio", [-0.1, 1.5])
    def test_rejects_monitored_ratio_outside_unit_interval(self, ratio: float) -> None:
        with pytest.raises(ValueError, match="Monitored partitions ratio"):
            ClusterModel.create([], monitored_partitions_ratio=ratio)

    def test_rejects_negative_windows(self) -> None:
        with pytest.raises(ValueError, match="Number of windows"):
            ClusterModel.create([], num_windows=-1)

    def test_unknown_broker(self, three_broker_cluster: ClusterModel) -> None:
        with pytest.raises(KeyError, match="Broker 99 not found"):
            three_broker_cluster.broker(99)

    def test_alive_and_dead_brokers(self, three_broker_cluster: ClusterModel) -> None:
        assert [b.id for b in three_broker_cluster.alive_brokers()] == [0, 1]
        assert [b.id for b in three_broker_cluster.dead_brokers()] == [2]

    def test_totals_include_dead_brokers(self) -> None:
        cluster = ClusterModel.create(
            [
                Broker(
                    0,
                    uniform_capacity(),
                    (Replica(TopicPartition("t", 0), 0, load=disk_load(10)),),
                ),
                Broker(
                    1,
                    uniform_capacity(),
                    (Replica(TopicPartition("t", 1), 1, load=disk_load(15)),),
                    is_alive=False,
                ),
            ]
        )
        assert cluster.expected_utilization_for(Resource.DISK) == 25.0
        assert cluster.capacity_for(Resource.DISK) == 200.0
        assert cluster.load() == disk_load(25.0)

    def test_topics_and_replica_counts(
        self, three_broker_cluster: ClusterModel
    ) -> None:
        assert three_broker_cluster.topics() == ("orders",)
        assert three_broker_cluster.num_replicas() == 3
        assert three_broker_cluster.num_topic_replicas("orders") == 3
        assert three_broker_cluster.num_topic_replicas("missing") == 0
        assert len(three_broker_cluster.replicas()) == 3

    def test_hosts_aggregate_co_located_brokers(
        self, shared_host_cluster: ClusterModel
    ) -> None:
        broker0 = shared_host_cluster.broker(0)
        host = shared_host_cluster.host_for(broker0)

        assert host.name == "rack-a-host"
        assert [b.id for b in host.brokers] == [0, 1]
        assert host.capacity_for(Resource.CPU) == 200.0
        assert host.expected_utilization_for(Resource.CPU) == 25.0
        assert host.expected_utilization_for(Resource.NW_OUT) == 30.0
        assert sorted(h.name for h in shared_host_cluster.hosts()) == [
            "host-2",
            "rack-a-host",
        ]

    def test_leader_of(self, shared_host_cluster: ClusterModel) -> None:
        leader = shared_host_cluster.leader_of(TopicPartition("logs", 1))
        assert leader is not None
        assert leader.broker_id == 2
        assert shared_host_cluster.leader_of(TopicPartition("logs", 9)) is None

    def test_potential_leadership_load(self, shared_host_cluster: ClusterModel) -> None:
        # Follower on broker 1 would take over the leader's load of logs-1
        potential = shared_host_cluster.potential_leadership_load_for(1)
        assert potential.get(Resource.NW_OUT) == 30.0
        assert potential.get(Resource.CPU) == 20.0

        potential = shared_host_cluster.potential_leadership_load_for(2)
        assert potential.get(Resource.NW_OUT) == 60.0

    def test_potential_leadership_load_without_leader_uses_own_load(self) -> None:
        cluster = ClusterModel.create(
            [
                Broker(
                    0,
                    uniform_capacity(),
                    (
                        Replica(
                            TopicPartition("orphan", 0),
                            0,
                            load=ResourceVector(nw_out=4.0),
                        ),
                    ),
                )
            ]
        )
        assert cluster.potential_leadership_load_for(0) == ResourceVector(nw_out=4.0)

    def test_self_healing_eligible_replicas(self) -> None:
        tp = TopicPartition("events", 0)
        other = TopicPartition("events", 1)
        cluster = ClusterModel.create(
            [
                Broker(
                    0,
                    uniform_capacity(),
                    (
                        Replica(tp, 0, is_leader=True),
                        Replica(other, 0, is_offline=True),
                    ),
                ),
                Broker(1, uniform_capacity(), (Replica(tp, 1),), is_alive=False),
                Broker(2, uniform_capacity(), (Replica(other, 2, is_leader=True),)),
            ]
        )
        eligible = cluster.self_healing_eligible_replicas()
        assert {(r.topic_partition, r.broker_id) for r in eligible} == {
            (other, 0),
            (tp, 1),
        }

    def test_utilization_matrix_rows_are_alive_brokers(
        self, three_broker_cluster: ClusterModel
    ) -> None:
        assert three_broker_cluster.utilization_matrix() == (
            (0.0, 0.0, 0.0, 40.0),
            (0.0, 0.0, 0.0, 60.0),
        )

    def test_monitoring_metadata(self, three_broker_cluster: ClusterModel) -> None:
        assert three_broker_cluster.monitored_partitions_ratio() == 0.95
        assert three_broker_cluster.num_windows() == 5

    def test_from_dict_defaults(self) -> None:
        cluster = ClusterModel.from_dict(
            {
                "brokers": [
                    {
                        "id": 4,
                        "capacity": {"cpu": 10, "disk": 50},
                        "replicas": [
                            {"topic": "t", "partition": 0, "load": {"disk": 1.5}}
                        ],
                    }
                ]
            }
        )
        broker = cluster.broker(4)
        assert broker.host_name == "host-4"
        assert broker.is_alive
        assert broker.capacity == ResourceVector(cpu=10.0, disk=50.0)
        assert not broker.replicas[0].is_leader
        assert not broker.replicas[0].is_offline
        assert broker.replicas[0].broker_id == 4
        assert cluster.monitored_partitions_ratio() == 1.0
        assert cluster.num_windows() == 1

    def test_from_dict_requires_brokers(self) -> None:
        with pytest.raises(ValueError, match="'brokers' list"):
            ClusterModel.from_dict({"brokers": {"0": {}}})

    @pytest.mark.parametrize(
        ("broker", "message"),
        [
            ({"id": 0, "capacity": None}, "resource values must be an object"),
            ({"id": 0, "replicas": [1]}, "Replica entry of broker 0 must be an object"),
            ({"id": 0, "replicas": {"t": 0}}, "'replicas' of broker 0 must be a list"),
            ({"id": 0, "alive": "false"}, "'alive' must be true or false"),
            ({"id": "0"}, "'id' must be an integer"),
            (7, "Broker entry must be an object"),
        ],
    )
    def test_from_dict_rejects_malformed_brokers(
        self, broker: object, message: str
    ) -> None:
        with pytest.raises(ValueError, match=message):
            ClusterModel.from_dict({"brokers": [broker]})

    @pytest.mark.parametrize(
        ("replica", "message"),
        [
            ({"topic": "t", "partition": 0, "leader": 1}, "'leader' must be true"),
            ({"topic": "t", "partition": 0, "offline": "no"}, "'offline' must be true"),
            ({"topic": "t", "partition": 1.5}, "'partition' must be an integer"),
            ({"topic": 3, "partition": 0}, "'topic' must be a string"),
            ({"topic": "t", "partition": 0, "load": None}, "must be an object"),
        ],
    )
    def test_from_dict_rejects_malformed_replicas(
        self, replica: object, message: str
    ) -> None:
        payload = {"brokers": [{"id": 0, "replicas": [replica]}]}
        with pytest.raises(ValueError, match=message):
            ClusterModel.from_dict(payload)

    def test_from_dict_rejects_non_numeric_metadata(self) -> None:
        with pytest.raises(ValueError, match="'num_windows' must be an integer"):
            ClusterModel.from_dict({"brokers": [], "num_windows": "5"})
        with pytest.raises(ValueError, match="'monitored_partitions_ratio'"):
            ClusterModel.from_dict(
                {"brokers": [], "monitored_partitions_ratio": None}
            )

    def test_dict_keeps_hosts_and_racks(
        self, shared_host_cluster: ClusterModel
    ) -> None:
        payload = shared_host_cluster.to_dict()
        assert [b["host"] for b in payload["brokers"]] == [
            "rack-a-host",
            "rack-a-host",
            "host-2",
        ]
        assert ClusterModel.from_dict(payload) == shared_host_cluster

    @given(cluster=cluster_model_strategy())
    @settings(max_examples=50, deadline=None)
    def test_generated_clusters_survive_dict_conversion(
        self, cluster: ClusterModel
    ) -> None:
        restored = ClusterModel.from_dict(cluster.to_dict())
        assert restored == cluster
        assert restored.utilization_matrix() == cluster.utilization_matrix()
