"""
Configuration Loader (``asset_config.loader``).

Responsibility
--------------
Loads approval-flow YAML files and parses them into ``asset_config.schema``
dataclasses.  Runtime callers go through ``asset_config.get_approval_flows()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from asset_config.schema import ApprovalFlowConfig, ApprovalFlowDef, ApprovalStepDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def _amount_str(value: Any) -> str | None:
    # YAML reads 1.00 as a float; keep the authored digits where we can
    if value is None:
        return None
    return str(value)


def parse_approval_step(data: dict[str, Any]) -> ApprovalStepDef:
    return ApprovalStepDef(
        step_id=str(data["step_id"]),
        name=str(data["name"]),
        approver_role=str(data["approver_role"]),
    )


def parse_approval_flow(data: dict[str, Any]) -> ApprovalFlowDef:
    """
    Parse an ``ApprovalFlowDef`` from a dict.

    Raises:
        KeyError: if ``flow_code``, ``variant`` or a step key is missing.
    """
    return ApprovalFlowDef(
        flow_code=str(data["flow_code"]),
        variant=str(data["variant"]),
        priority=int(data.get("priority", 100)),
        up_to=_amount_str(data.get("up_to")),
        above=_amount_str(data.get("above")),
        steps=tuple(parse_approval_step(s) for s in data.get("steps") or ()),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_approval_flow_config(data: dict[str, Any]) -> ApprovalFlowConfig:
    """Parse a whole approval-flow document, checksummed over its content."""
    return ApprovalFlowConfig(
        config_id=str(data.get("config_id", "approval-flows")),
        version=int(data.get("version", 1)),
        flows=tuple(parse_approval_flow(f) for f in data.get("approval_flows") or ()),
        checksum=compute_checksum(data),
    )
