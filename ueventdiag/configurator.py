"""Reading uevent descriptions from YAML and building interpreters from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ueventdiag.interpreters import InterpreterBase, get_interpreter

CRITERIA_KEY = "criteria"
MANDATORY_KEYS = (
    "devpath",
    "identifier_key",
    "key_is",
    "hardware_id",
    "value_key",
    "value_type",
)


@dataclass
class UeventDescription:
    """One configured uevent: its description keys and its criteria."""

    keys: dict[str, str] = field(default_factory=dict)
    criteria: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = ["Keys:"]
        lines.extend(f"  {k}: {v}" for k, v in self.keys.items())
        lines.append("Criteria:")
        lines.extend(f"  {k}: {v}" for k, v in self.criteria.items())
        return "\n".join(lines) + "\n"


def _scalar(value: Any, where: str) -> str:
    if isinstance(value, (dict, list)):
        raise ValueError(f"{where} must be a scalar value")
    return "" if value is None else str(value)


def parse_yaml(file_path: str | Path) -> list[UeventDescription]:
    """Read every top-level description from the YAML file at ``file_path``.

    Every top-level entry is a mapping of description keys plus an optional
    ``criteria`` mapping. All scalar values are kept as written, as strings.
    """
    path = Path(file_path)
    if not str(file_path) or not path.exists():
        raise FileNotFoundError("Specified configuration yaml path is not available")

    with path.open(encoding="utf-8") as stream:
        document = yaml.load(stream, Loader=yaml.BaseLoader)

    if document is None or document == "":
        return []
    if not isinstance(document, dict):
        raise ValueError("configuration must be a mapping of uevent descriptions")

    descriptions = []
    for name, entries in document.items():
        if not isinstance(entries, dict):
            raise ValueError(f"description '{name}' must be a mapping")
        description = UeventDescription()

        criteria = entries.get(CRITERIA_KEY)
        if isinstance(criteria, dict):
            for key, value in criteria.items():
                description.criteria[str(key)] = _scalar(value, f"criteria '{key}'")
        elif criteria not in (None, ""):
            raise ValueError(f"criteria of description '{name}' must be a mapping")

        for key, value in entries.items():
            if key != CRITERIA_KEY:
                description.keys[str(key)] = _scalar(value, f"key '{key}'")

        descriptions.append(description)
    return descriptions


def _require(keys: dict[str, str], key: str) -> str:
    if key not in keys:
        raise ValueError(f"Invalid description is passed. Key '{key}' is mandatory")
    return keys[key]


def register_interpreter(description: UeventDescription) -> InterpreterBase:
    """Build and configure the interpreter that ``description`` asks for."""
    interpreter = get_interpreter(_require(description.keys, "hardware_type"))
    devpath, identifier_key, key_is, hardware_id, value_key, value_type = (
        _require(description.keys, key) for key in MANDATORY_KEYS
    )
    interpreter.setup(devpath, identifier_key, key_is, hardware_id, value_key, value_type)
    interpreter.install_criteria_to_filter(description.criteria)
    return interpreter