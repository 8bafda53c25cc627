"""
Configuration Schema (``asset_config.schema``).

Responsibility
--------------
Frozen dataclasses describing approval-flow configuration exactly as it is
authored in YAML.  Amounts stay strings here; the compiler turns them into
``Decimal`` after validation.

Architecture position
---------------------
**Config layer** -- pure data definitions, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ApprovalStepDef:
    """YAML-authored approval step."""

    step_id: str
    name: str
    approver_role: str


@dataclass(frozen=True)
class ApprovalFlowDef:
    """YAML-authored approval flow."""

    flow_code: str
    variant: str
    priority: int = 100
    up_to: str | None = None
    above: str | None = None
    steps: tuple[ApprovalStepDef, ...] = ()


@dataclass(frozen=True)
class ApprovalFlowConfig:
    """A whole approval-flow file."""

    config_id: str
    version: int
    flows: tuple[ApprovalFlowDef, ...]
    checksum: str = ""
