"""
Configuration Loader (``tracking_config.loader``).

Responsibility
--------------
Loads YAML fragment files, one per production-line type, and parses them
into the kernel's frozen ``ProjectTypeConfig`` dataclasses.  The public
runtime entry point is ``tracking_config.load_registry()``.

Architecture position
---------------------
**Config layer** -- sits above ``tracking_kernel``.  The kernel never
imports this package.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unknown production-line type or field type  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from tracking_kernel.domain.types import (
    FieldType,
    ProductionLineType,
    ProductionStep,
    ProjectTypeConfig,
    SerialPrefixRules,
    TableColumn,
    UnitField,
    ViewBucket,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_step(data: dict[str, Any]) -> ProductionStep:
    """Parse a ProductionStep from a dict."""
    return ProductionStep(
        step_id=str(data["id"]),
        name=data["name"],
        order=int(data["order"]),
    )


def parse_serial_prefix_rules(data: dict[str, Any]) -> SerialPrefixRules:
    """Parse SerialPrefixRules from a dict."""
    return SerialPrefixRules(
        primary=data["primary"],
        secondary=data.get("secondary"),
    )


def parse_table_column(data: dict[str, Any]) -> TableColumn:
    """Parse a TableColumn from a dict."""
    return TableColumn(
        column_id=data["id"],
        label=data["label"],
        views=tuple(ViewBucket(v) for v in data.get("views", [])),
        width=data.get("width"),
    )


def parse_unit_field(data: dict[str, Any]) -> UnitField:
    """Parse a UnitField from a dict."""
    return UnitField(
        key=data["key"],
        label=data["label"],
        field_type=FieldType(data.get("type", FieldType.TEXT.value)),
        required=bool(data.get("required", False)),
        options=tuple(data.get("options", ())),
    )


def parse_project_type(data: dict[str, Any]) -> ProjectTypeConfig:
    """
    Parse a ``ProjectTypeConfig`` from a dict.

    Preconditions:
        - ``data`` contains ``type_id``, ``serial_prefix_rules.primary``
          and a ``steps`` list.
    Postconditions:
        - Returns a frozen ``ProjectTypeConfig``.  Step ordering rules are
          checked later, at registry admission.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if ``type_id`` is not a supported production-line type.
    """
    type_id = ProductionLineType.parse(data["type_id"])
    return ProjectTypeConfig(
        type_id=type_id,
        display_name=data.get("display_name", type_id.value),
        steps=tuple(parse_step(s) for s in data["steps"]),
        serial_prefix_rules=parse_serial_prefix_rules(data["serial_prefix_rules"]),
        table_columns=tuple(parse_table_column(c) for c in data.get("table_columns", [])),
        unit_fields=tuple(parse_unit_field(f) for f in data.get("unit_fields", [])),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a fragment's canonical JSON form."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_project_type_file(path: Path) -> tuple[ProjectTypeConfig, str]:
    """Load one fragment file and return the config with its checksum."""
    data = load_yaml_file(path)
    return parse_project_type(data), compute_checksum(data)
