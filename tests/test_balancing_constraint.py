import pytest

from clusterstats.core.balancing_constraint import (
    DEFAULT_CAPACITY_THRESHOLDS,
    DEFAULT_RESOURCE_BALANCE_PERCENTAGE,
    BalancingConstraint,
)
from clusterstats.datastructures.resource import Resource


class TestBalancingConstraint:
    def test_defaults(self) -> None:
        constraint = BalancingConstraint()
        for resource in Resource:
            assert (
                constraint.resource_balance_percentage(resource)
                == DEFAULT_RESOURCE_BALANCE_PERCENTAGE
            )
            assert (
                constraint.capacity_threshold(resource)
                == DEFAULT_CAPACITY_THRESHOLDS[resource]
            )
        assert constraint.capacity_threshold(Resource.CPU) == 0.7

    def test_partial_mappings_keep_defaults(self) -> None:
        constraint = BalancingConstraint(
            balance_percentages={Resource.DISK: 1.25},
            capacity_thresholds={Resource.NW_OUT: 0.5},
        )
        assert constraint.resource_balance_percentage(Resource.DISK) == 1.25
        assert constraint.resource_balance_percentage(Resource.CPU) == 1.10
        assert constraint.capacity_threshold(Resource.NW_OUT) == 0.5
        assert constraint.capacity_threshold(Resource.NW_IN) == 0.8

    @pytest.mark.parametrize("percentage", [1.0, 0.9, -2.0])
    def test_rejects_balance_percentage_not_above_one(self, percentage: float) -> None:
        with pytest.raises(ValueError, match="must be greater than 1.0"):
            BalancingConstraint(balance_percentages={Resource.CPU: percentage})

    @pytest.mark.parametrize("threshold", [0.0, -0.1, 1.01])
    def test_rejects_threshold_outside_unit_interval(self, threshold: float) -> None:
        with pytest.raises(ValueError, match=r"within \(0, 1\]"):
            BalancingConstraint(capacity_thresholds={Resource.DISK: threshold})

    def test_threshold_of_one_is_allowed(self) -> None:
        constraint = BalancingConstraint(capacity_thresholds={Resource.DISK: 1.0})
        assert constraint.capacity_threshold(Resource.DISK) == 1.0

    def test_with_overrides_returns_new_constraint(self) -> None:
        base = BalancingConstraint(balance_percentages={Resource.CPU: 1.5})
        updated = base.with_overrides(
            balance_percentages={Resource.DISK: 1.3},
            capacity_thresholds={Resource.CPU: 0.9},
        )
        assert updated is not base
        assert updated.resource_balance_percentage(Resource.CPU) == 1.5
        assert updated.resource_balance_percentage(Resource.DISK) == 1.3
        assert updated.capacity_threshold(Resource.CPU) == 0.9
        assert base.resource_balance_percentage(Resource.DISK) == 1.10

    def test_with_overrides_validates(self) -> None:
        with pytest.raises(ValueError):
            BalancingConstraint().with_overrides(
                balance_percentages={Resource.NW_IN: 0.5}
            )

    def test_maps_are_read_only(self) -> None:
        constraint = BalancingConstraint()
        with pytest.raises(TypeError):
            constraint.balance_percentages[Resource.CPU] = 2.0

    def test_dict_conversion(self) -> None:
        constraint = BalancingConstraint.from_dict(
            {
                "balance_percentages": {"disk": 1.2, "nw_out": 1.4},
                "capacity_thresholds": {"CPU": 0.6},
            }
        )
        assert constraint.resource_balance_percentage(Resource.DISK) == 1.2
        assert constraint.resource_balance_percentage(Resource.NW_OUT) == 1.4
        assert constraint.capacity_threshold(Resource.CPU) == 0.6

        payload = constraint.to_dict()
        assert payload["balance_percentages"]["networkOutbound"] == 1.4
        assert payload["capacity_thresholds"]["cpu"] == 0.6
        assert BalancingConstraint.from_dict(payload) == constraint

    def test_from_dict_rejects_unknown_resource(self) -> None:
        with pytest.raises(ValueError, match="Unknown resource"):
            BalancingConstraint.from_dict({"balance_percentages": {"memory": 1.2}})

    @pytest.mark.parametrize("value", ["1.2", True, None])
    def test_from_dict_rejects_non_numeric(self, value: object) -> None:
        with pytest.raises(ValueError, match="must be numeric"):
            BalancingConstraint.from_dict({"capacity_thresholds": {"disk": value}})

    def test_from_dict_rejects_non_mapping_section(self) -> None:
        with pytest.raises(ValueError, match="must be a mapping"):
            BalancingConstraint.from_dict({"balance_percentages": [1.2]})
