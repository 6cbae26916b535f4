"""Registry validator for the auto tester.

Validates raw registry data against business rules before it is parsed.
"""

from typing import Any

from .schema import ValidationError, ValidationResult

# Fields each case kind needs, after defaults are applied
KIND_REQUIRED_FIELDS = {
    "command": ["command"],
    "remote": ["url"],
}


def validate_registry_data(data: Any) -> ValidationResult:
    """Validate registry data loaded from YAML.

    Checks:
    - Top-level structure (mapping with a 'tests' list)
    - Test names present and unique
    - Known kinds and their required fields
    - Capture delays are non-negative integers

    Args:
        data: Mapping loaded from a registry file.

    Returns:
        ValidationResult with errors and warnings.
    """
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []

    if not isinstance(data, dict):
        errors.append(ValidationError(
            path="",
            message=f"Registry must be a mapping, got {type(data).__name__}.",
        ))
        return ValidationResult(valid=False, errors=errors)

    defaults = data.get("defaults") or {}
    if not isinstance(defaults, dict):
        errors.append(ValidationError(path="defaults", message="'defaults' must be a mapping."))
        defaults = {}

    tests = data.get("tests")
    if tests is None:
        tests = []
    if not isinstance(tests, list):
        errors.append(ValidationError(path="tests", message="'tests' must be a list."))
        tests = []

    if not tests and not errors:
        warnings.append(ValidationError(
            path="tests",
            message="No tests defined.",
            severity="warning",
        ))

    seen: dict[str, int] = {}
    for i, entry in enumerate(tests):
        path = f"tests[{i}]"
        if not isinstance(entry, dict):
            errors.append(ValidationError(path=path, message="Test entry must be a mapping."))
            continue
        _validate_entry({**defaults, **entry}, path, seen, i, errors, warnings)

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_entry(
    entry: dict,
    path: str,
    seen: dict[str, int],
    index: int,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate one test entry."""
    name = entry.get("name")
    if not name:
        errors.append(ValidationError(
            path=f"{path}.name",
            message="'name' is required and must not be empty.",
        ))
    elif name in seen:
        errors.append(ValidationError(
            path=f"{path}.name",
            message=f"Duplicate test name '{name}' (first defined at tests[{seen[name]}]).",
        ))
    else:
        seen[name] = index

    delay = entry.get("capture_delay", 0)
    if isinstance(delay, bool) or not isinstance(delay, int):
        errors.append(ValidationError(
            path=f"{path}.capture_delay",
            message=f"'capture_delay' must be an integer number of seconds, got {delay!r}.",
        ))
    elif delay < 0:
        errors.append(ValidationError(
            path=f"{path}.capture_delay",
            message=f"'capture_delay' must not be negative, got {delay}.",
        ))
    elif delay == 0:
        warnings.append(ValidationError(
            path=f"{path}.capture_delay",
            message="No capture delay; automatic runs will show no countdown.",
            severity="warning",
        ))

    kind = str(entry.get("kind", "")).lower()
    if not kind:
        errors.append(ValidationError(path=f"{path}.kind", message="'kind' is required."))
        return
    if kind not in KIND_REQUIRED_FIELDS:
        errors.append(ValidationError(
            path=f"{path}.kind",
            message=f"Invalid kind '{kind}'. Must be one of: {', '.join(sorted(KIND_REQUIRED_FIELDS))}",
        ))
        return

    for field_name in KIND_REQUIRED_FIELDS[kind]:
        if not entry.get(field_name):
            errors.append(ValidationError(
                path=f"{path}.{field_name}",
                message=f"'{kind}' test requires '{field_name}'.",
            ))

    if kind == "command" and "{variant}" not in str(entry.get("command", "")):
        warnings.append(ValidationError(
            path=f"{path}.command",
            message="Command has no {variant} placeholder; Map and Globe run the same command.",
            severity="warning",
        ))
