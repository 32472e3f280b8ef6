"""Reading and writing SimulationConfig as YAML."""

from pathlib import Path
from typing import Any

import yaml

from fluidsim.params.schema import SimulationConfig, ValidationError


def load_config(path: str | Path) -> SimulationConfig:
    """Read a SimulationConfig from YAML, e.g. ``load_config("fluidsim.yaml")``.

    An empty file gives the defaults. Missing sections keep their defaults.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValidationError: If the document is not a mapping or a value is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValidationError(
            f"{path}: expected a mapping of sections, got {type(data).__name__}"
        )

    return SimulationConfig.from_dict(data)


def save_config(config: SimulationConfig, path: str | Path) -> None:
    """Write ``config`` to ``path`` in section order, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def load_config_with_overrides(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SimulationConfig:
    """Defaults or the YAML at ``path``, with per-section ``overrides`` on top.

    ``overrides`` maps section names to field updates, e.g.
    ``{"grid": {"size": [64, 64]}, "solver": {"pressure_iterations": 40}}``.
    """
    config = load_config(path) if path is not None else SimulationConfig()
    if overrides:
        config = config.with_updates(**overrides)
    return config
