"""YAML configuration loading for Herme.

Uses ``yaml.safe_load`` so untrusted configuration files cannot instantiate
arbitrary Python objects. Consumed by
[Agent.from_yaml()][herme.services.agent.Agent.from_yaml] and
[BaseService.from_yaml()][herme.core.base_service.BaseService.from_yaml].

Examples:
    ```python
    from herme.core.yaml import load_yaml

    config = load_yaml("config/agent.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a nested dictionary. Returns an empty dict
        if the file exists but contains no data.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid YAML or its top level
            is not a mapping.

    Warning:
        The structure is not validated here. Pass the result to a Pydantic
        model such as [AgentConfig][herme.services.agent.AgentConfig].
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
        )
    return data
