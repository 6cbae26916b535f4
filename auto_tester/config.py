"""Run configuration: which variants to run and whether to show the test.

Loaded from a YAML file:

    run_globe: true
    run_map: true
    view_test: true
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .registry.schema import Variant

# Environment variable naming the default config file
CONFIG_ENV_VAR = "AUTO_TESTER_CONFIG"


@dataclass
class RunConfiguration:
    """Toggles consulted when a run is configured."""
    run_globe: bool = True
    run_map: bool = True
    view_test: bool = True

    def enabled_variants(self) -> frozenset[Variant]:
        """Variants switched on by the run_globe / run_map toggles."""
        variants = set()
        if self.run_globe:
            variants.add(Variant.GLOBE)
        if self.run_map:
            variants.add(Variant.MAP)
        return frozenset(variants)

    def to_dict(self) -> dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def config_from_data(data: Optional[dict[str, Any]]) -> RunConfiguration:
    """Build a configuration from a mapping. Unknown keys are ignored.

    Raises:
        ValueError: If a toggle is not a boolean.
    """
    if data is None:
        return RunConfiguration()
    if not isinstance(data, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

    values = {}
    for f in fields(RunConfiguration):
        if f.name not in data:
            continue
        value = data[f.name]
        if not isinstance(value, bool):
            raise ValueError(f"'{f.name}' must be true or false, got {value!r}")
        values[f.name] = value
    return RunConfiguration(**values)


def load_config(file_path: Optional[Union[str, Path]] = None) -> RunConfiguration:
    """Load the run configuration.

    Args:
        file_path: YAML file to read. Defaults to $AUTO_TESTER_CONFIG; when
            neither is set the built-in defaults are used.

    Raises:
        FileNotFoundError: If the named config file doesn't exist.
        ValueError: If the file content is malformed.
    """
    if file_path is None:
        file_path = os.environ.get(CONFIG_ENV_VAR)
        if not file_path:
            return RunConfiguration()

    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return config_from_data(data)
