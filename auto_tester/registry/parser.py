"""YAML registry parser for the auto tester.

A registry file lists the test cases in display order:

    defaults:
      url: http://192.168.1.100:51321
    tests:
      - name: Geography
        kind: remote
        retry: aggressive
        capture_delay: 5
      - name: Vectors
        kind: command
        command: ./render.sh --{variant}
        capture_delay: 3
"""

from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .registry import TestRegistry
from .schema import TestCaseDescriptor

# Keys consumed by the descriptor rather than the case constructor
DESCRIPTOR_FIELDS = {"name", "kind", "capture_delay", "description"}


def load_registry_yaml(file_path: Union[str, Path]) -> dict:
    """Read a registry YAML file into a mapping.

    Raises:
        FileNotFoundError: If the registry file doesn't exist.
        ValueError: If the file is not YAML or is empty.
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Registry file not found: {file_path}")

    if file_path.suffix not in (".yaml", ".yml"):
        raise ValueError(f"Expected .yaml or .yml file, got: {file_path.suffix}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Empty registry file: {file_path}")

    return data


def parse_registry(file_path: Union[str, Path]) -> TestRegistry:
    """Parse a YAML registry file into a TestRegistry.

    Relative paths in command entries resolve against the file's directory.
    """
    file_path = Path(file_path)
    data = load_registry_yaml(file_path)
    return parse_registry_data(data, source=str(file_path), base_dir=file_path.parent)


def parse_registry_data(
    data: dict,
    source: str = "<inline>",
    base_dir: Optional[Path] = None,
) -> TestRegistry:
    """Parse a registry from a dictionary (already loaded YAML).

    Raises:
        ValueError: If required fields are missing, a kind is unknown or
            a name is duplicated.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Registry must be a YAML mapping, got {type(data).__name__}")

    defaults = data.get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ValueError(f"'defaults' must be a mapping in {source}")

    tests_data = data.get("tests", [])
    if not isinstance(tests_data, list):
        raise ValueError(f"'tests' must be a list in {source}")

    descriptors = []
    for i, entry in enumerate(tests_data):
        if not isinstance(entry, dict):
            raise ValueError(f"Test {i} must be a mapping in {source}")
        _require_fields(entry, ["name", "kind"], f"tests[{i}]", source)
        descriptors.append(_build_descriptor({**defaults, **entry}, base_dir))

    return TestRegistry(descriptors)


def _build_descriptor(entry: dict[str, Any], base_dir: Optional[Path]) -> TestCaseDescriptor:
    from ..cases import CASE_KINDS

    name = str(entry["name"])
    kind = str(entry["kind"]).lower()
    case_cls = CASE_KINDS.get(kind)
    if case_cls is None:
        raise ValueError(
            f"Unknown test kind '{kind}' for '{name}'. "
            f"Must be one of: {', '.join(sorted(CASE_KINDS))}"
        )

    options = {k: v for k, v in entry.items() if k not in DESCRIPTOR_FIELDS}
    if kind == "command":
        cwd = options.pop("cwd", None)
        if cwd is not None or base_dir is not None:
            options["cwd"] = (base_dir or Path(".")) / (cwd or ".")
        options.pop("url", None)
        options.pop("retry", None)
    elif kind == "remote":
        options["base_url"] = options.pop("url", None)
        if not options["base_url"]:
            raise ValueError(f"Remote test '{name}' requires 'url'")
        options.pop("command", None)
        options.pop("cwd", None)

    try:
        case = case_cls(name=name, **options)
    except TypeError as e:
        raise ValueError(f"Invalid options for test '{name}': {e}") from e

    return TestCaseDescriptor(
        name=name,
        case=case,
        capture_delay=int(entry.get("capture_delay", 0)),
        description=str(entry.get("description", "")),
    )


def _require_fields(
    data: dict, fields: list[str], context: str, source: str
) -> None:
    """Check that required fields exist in a dictionary."""
    for field_name in fields:
        if field_name not in data:
            raise ValueError(
                f"Missing required field '{field_name}' in {context} ({source})"
            )
