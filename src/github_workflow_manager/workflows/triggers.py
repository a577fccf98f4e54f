"""Interpret the `on:` section of a workflow document.

GitHub accepts three shapes for `on`: a single event name, a list of names, or
a mapping keyed by event name. The shape is resolved once into a
`TriggerSource` and everything downstream works on its names.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from github_workflow_manager.workflows.models import INPUT_TYPES, InputSpec, TriggerSet

logger = logging.getLogger(__name__)

_TRUTHY_STRINGS = {"true", "yes", "y", "on", "1"}


class TriggerSourceKind(str, Enum):
    ABSENT = "absent"
    SCALAR = "scalar"
    LIST = "list"
    MAPPING = "mapping"


@dataclass(frozen=True, slots=True)
class TriggerSource:
    kind: TriggerSourceKind
    names: tuple[str, ...] = ()
    # Only set for MAPPING sources; the per-event configuration.
    config: Mapping[str, Any] | None = None


def trigger_section(document: Mapping[Any, Any]) -> Any:
    """Return the raw `on` value.

    YAML 1.1 loaders (PyYAML) read the bare key `on` as boolean True, so both
    spellings are accepted.
    """

    if "on" in document:
        return document["on"]
    return document.get(True)


def has_trigger_section(document: Mapping[Any, Any]) -> bool:
    return "on" in document or True in document


def resolve_trigger_source(raw: Any) -> TriggerSource:
    if raw is None:
        return TriggerSource(kind=TriggerSourceKind.ABSENT)
    if isinstance(raw, str):
        return TriggerSource(kind=TriggerSourceKind.SCALAR, names=(raw,))
    if isinstance(raw, list):
        names = tuple(str(item) for item in raw if item is not None)
        return TriggerSource(kind=TriggerSourceKind.LIST, names=names)
    if isinstance(raw, Mapping):
        config = {str(k): v for k, v in raw.items() if k is not None}
        return TriggerSource(kind=TriggerSourceKind.MAPPING, names=tuple(config), config=config)
    raise TypeError(f"Unsupported trigger section type: {type(raw).__name__}")


def build_trigger_set(names: Iterable[str]) -> TriggerSet:
    flags = {"push": False, "pull_request": False, "workflow_dispatch": False, "schedule": False}
    other: list[str] = []
    for name in names:
        key = name.lower()
        if key in flags:
            flags[key] = True
        elif name not in other:
            other.append(name)
    return TriggerSet(**flags, other=other)


def extract_triggers(document: Mapping[Any, Any]) -> TriggerSet:
    try:
        source = resolve_trigger_source(trigger_section(document))
        return build_trigger_set(source.names)
    except Exception:
        logger.warning("Error extracting triggers from workflow", exc_info=True)
        return TriggerSet()


def coerce_required(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return False


def _input_spec(definition: Any) -> InputSpec:
    if not isinstance(definition, Mapping):
        return InputSpec()

    description = definition.get("description")
    raw_type = definition.get("type")
    input_type = str(raw_type).strip().lower() if raw_type is not None else "string"
    options = definition.get("options")
    if not isinstance(options, list):
        options = []

    return InputSpec(
        description="" if description is None else str(description),
        type=input_type if input_type in INPUT_TYPES else "string",
        required=coerce_required(definition.get("required")),
        default=definition.get("default"),
        options=["" if o is None else str(o) for o in options],
    )


def extract_inputs(document: Mapping[Any, Any]) -> dict[str, InputSpec]:
    """Return the `workflow_dispatch` inputs, keyed by input name.

    A missing or wrong-shaped path yields an empty mapping.
    """

    try:
        source = resolve_trigger_source(trigger_section(document))
        if source.config is None:
            return {}
        dispatch = source.config.get("workflow_dispatch")
        if not isinstance(dispatch, Mapping):
            return {}
        raw_inputs = dispatch.get("inputs")
        if not isinstance(raw_inputs, Mapping):
            return {}
        return {str(name): _input_spec(spec) for name, spec in raw_inputs.items()}
    except Exception:
        logger.warning("Error extracting inputs from workflow", exc_info=True)
        return {}
