import pytest

from clusterstats.datastructures.resource import Resource, Statistic


class TestResource:
    def test_wire_names_and_host_flags(self) -> None:
        assert [r.resource for r in Resource] == [
            "cpu",
            "networkInbound",
            "networkOutbound",
            "disk",
        ]
        assert Resource.CPU.is_host_resource
        assert Resource.NW_IN.is_host_resource
        assert Resource.NW_OUT.is_host_resource
        assert not Resource.DISK.is_host_resource

    def test_str_is_wire_name(self) -> None:
        assert str(Resource.NW_OUT) == "networkOutbound"
        assert f"{Resource.DISK}" == "disk"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("cpu", Resource.CPU),
            ("CPU", Resource.CPU),
            ("networkInbound", Resource.NW_IN),
            ("nw_in", Resource.NW_IN),
            ("NW_OUT", Resource.NW_OUT),
            ("network_out", Resource.NW_OUT),
            (" disk ", Resource.DISK),
        ],
    )
    def test_from_name(self, name: str, expected: Resource) -> None:
        assert Resource.from_name(name) is expected

    def test_from_name_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown resource"):
            Resource.from_name("memory")


class TestStatistic:
    def test_rendered_keys(self) -> None:
        assert [s.stat for s in Statistic] == ["AVG", "MAX", "MIN", "STD"]

    def test_str_is_member_name(self) -> None:
        assert str(Statistic.ST_DEV) == "ST_DEV"
        assert str(Statistic.AVG) == "AVG"
