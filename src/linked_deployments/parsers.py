"""Declarative plan parsers for linked-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import PlanFormatError
from .types import ArgSpec, EnvValue, Literal, Unit, UnitAddressRef, UnitKind


def parse_arg_spec(data: Any, unit_name: str) -> ArgSpec:
    """
    Parse a tagged constructor argument.

    Accepted forms:
    - {"literal": <any JSON value>}
    - {"env": "<policy key>"}
    - {"unit": "<unit name>"}

    Args:
        data: Decoded JSON value
        unit_name: Owning unit, for error messages

    Raises:
        PlanFormatError: If the value is not exactly one known tag
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise PlanFormatError(
            f"Constructor argument of '{unit_name}' must be a single-key object, got {data!r}"
        )

    tag, value = next(iter(data.items()))
    match tag:
        case "literal":
            return Literal(value)
        case "env":
            if not isinstance(value, str):
                raise PlanFormatError(f"Env key in '{unit_name}' must be a string")
            return EnvValue(value)
        case "unit":
            if not isinstance(value, str):
                raise PlanFormatError(f"Unit reference in '{unit_name}' must be a string")
            return UnitAddressRef(value)
        case _:
            raise PlanFormatError(f"Unknown argument tag '{tag}' in '{unit_name}'")


def parse_unit(data: Dict[str, Any]) -> Unit:
    """
    Parse one unit declaration.

    Required keys: name, kind. Optional keys: requiredLibraries,
    constructorArgs, optional, artifact.

    Raises:
        PlanFormatError: If required keys are missing or values are malformed
    """
    if not isinstance(data, dict):
        raise PlanFormatError(f"Unit declaration must be an object, got {data!r}")

    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise PlanFormatError(f"Unit declaration is missing a name: {data!r}")

    try:
        kind = UnitKind(data.get("kind"))
    except ValueError:
        raise PlanFormatError(
            f"Unit '{name}' has invalid kind {data.get('kind')!r} "
            f"(expected one of: {', '.join(k.value for k in UnitKind)})"
        ) from None

    libraries = data.get("requiredLibraries", [])
    if not isinstance(libraries, list) or not all(isinstance(lib, str) for lib in libraries):
        raise PlanFormatError(f"requiredLibraries of '{name}' must be a list of names")

    args = data.get("constructorArgs", [])
    if not isinstance(args, list):
        raise PlanFormatError(f"constructorArgs of '{name}' must be a list")

    artifact = data.get("artifact")
    if artifact is not None and not isinstance(artifact, str):
        raise PlanFormatError(f"artifact of '{name}' must be a string")

    return Unit(
        name=name,
        kind=kind,
        required_libraries=tuple(libraries),
        constructor_args=tuple(parse_arg_spec(arg, name) for arg in args),
        optional=bool(data.get("optional", False)),
        artifact=artifact,
    )


def parse_plan(data: Dict[str, Any]) -> List[Unit]:
    """
    Parse a declarative plan document into units, keeping declaration order.

    Raises:
        PlanFormatError: If the document has no "units" list
    """
    if not isinstance(data, dict) or not isinstance(data.get("units"), list):
        raise PlanFormatError("Plan document must be an object with a 'units' list")
    return [parse_unit(entry) for entry in data["units"]]


def load_plan(file_path: Union[Path, str]) -> List[Unit]:
    """
    Load and parse a declarative plan JSON file.

    Raises:
        PlanFormatError: If the file is not valid JSON or not a valid plan
    """
    with open(file_path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise PlanFormatError(f"Invalid JSON in plan file {file_path}: {e}") from e
    return parse_plan(data)
