import json
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .balancing_constraint import BalancingConstraint

SETTINGS_SECTION = "clusterstats"


def _as_str_tuple(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list | tuple):
        return tuple(str(item) for item in value)
    raise ValueError(f"Expected a string or list of strings, got {value!r}")


@dataclass(slots=True)
class StatsSettings:
    """clusterstats configuration settings."""

    log_level: str = "INFO"
    log_debug_scopes: tuple[str, ...] = ()
    log_colorize: bool = False
    balancing_constraint: BalancingConstraint = field(
        default_factory=BalancingConstraint
    )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StatsSettings":
        """Build settings from a mapping, normalizing scalar collections."""
        constraint = payload.get("balancing_constraint")
        if constraint is not None and not isinstance(constraint, Mapping):
            raise ValueError(
                f"'balancing_constraint' must be a table, got {constraint!r}"
            )
        return cls(
            log_level=str(payload.get("log_level", "INFO")).upper(),
            log_debug_scopes=_as_str_tuple(payload.get("log_debug_scopes")),
            log_colorize=bool(payload.get("log_colorize", False)),
            balancing_constraint=(
                BalancingConstraint.from_dict(constraint)
                if constraint is not None
                else BalancingConstraint()
            ),
        )

    @classmethod
    def from_toml(cls, path: Path) -> "StatsSettings":
        with path.open("rb") as handle:
            document = tomllib.load(handle)
        return cls.from_dict(document.get(SETTINGS_SECTION, {}))

    @classmethod
    def from_json(cls, path: Path) -> "StatsSettings":
        document = json.loads(path.read_text())
        if not isinstance(document, dict):
            raise ValueError(f"Settings file {path} must contain a JSON object")
        return cls.from_dict(document.get(SETTINGS_SECTION, {}))


def load_settings(path: Path) -> StatsSettings:
    """Load settings from a ``.toml`` or ``.json`` file."""
    suffix = path.suffix.lower()
    if suffix == ".toml":
        return StatsSettings.from_toml(path)
    if suffix == ".json":
        return StatsSettings.from_json(path)
    raise ValueError(f"Unsupported settings file type: {path.suffix or path.name}")
