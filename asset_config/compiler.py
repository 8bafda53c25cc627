"""
Approval Flow Compiler (``asset_config.compiler``).

Responsibility
--------------
Validates parsed approval-flow definitions and turns them into the kernel's
``ApprovalFlow`` value objects.  All problems in a file are collected and
reported together.

Architecture position
---------------------
**Config layer**.  Produces kernel domain objects; the kernel never imports
from this package.

Invariants enforced
-------------------
* Flow codes are unique.
* Every flow names a known request variant and has at least one step.
* Step ids are unique within a flow; names and roles are non-blank.
* ``up_to`` / ``above`` parse as decimals and ``above < up_to``.
* The compiled set carries the source checksum unchanged.

Failure modes
-------------
* ``FlowConfigError`` listing every ``FlowConfigIssue`` found.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from asset_config.schema import ApprovalFlowConfig, ApprovalFlowDef
from asset_kernel.domain.approval import ApprovalFlow, ApprovalStep
from asset_kernel.domain.request import RequestVariant
from asset_kernel.exceptions import ConfigurationError

_KNOWN_VARIANTS = frozenset(v.value for v in RequestVariant)


@dataclass(frozen=True)
class FlowConfigIssue:
    """A problem found while compiling a flow."""

    flow_code: str
    message: str


class FlowConfigError(ConfigurationError):
    """Approval-flow configuration is invalid."""

    code: str = "FLOW_CONFIG_INVALID"

    def __init__(self, issues: list[FlowConfigIssue]):
        self.issues = issues
        lines = [f"  [{i.flow_code or '?'}] {i.message}" for i in issues]
        super().__init__(
            f"Approval flow configuration has {len(issues)} error(s):\n"
            + "\n".join(lines)
        )


@dataclass(frozen=True)
class ApprovalFlowSet:
    """Validated approval flows, ready for ``ApprovalFlowResolver``."""

    config_id: str
    version: int
    checksum: str
    flows: tuple[ApprovalFlow, ...]

    def for_variant(self, variant: str) -> tuple[ApprovalFlow, ...]:
        variant = getattr(variant, "value", variant)
        return tuple(f for f in self.flows if f.variant == variant)

    def get(self, flow_code: str) -> ApprovalFlow | None:
        return next((f for f in self.flows if f.flow_code == flow_code), None)


def _parse_bound(
    flow: ApprovalFlowDef,
    label: str,
    raw: str | None,
    issues: list[FlowConfigIssue],
) -> Decimal | None:
    if raw is None:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        issues.append(FlowConfigIssue(flow.flow_code, f"{label} is not a decimal: {raw!r}"))
        return None
    if not value.is_finite():
        issues.append(FlowConfigIssue(flow.flow_code, f"{label} must be finite: {raw!r}"))
        return None
    return value


def _compile_flow(
    flow: ApprovalFlowDef,
    issues: list[FlowConfigIssue],
) -> ApprovalFlow | None:
    before = len(issues)

    if flow.variant not in _KNOWN_VARIANTS:
        issues.append(FlowConfigIssue(flow.flow_code, f"unknown variant {flow.variant!r}"))
    if not flow.steps:
        issues.append(FlowConfigIssue(flow.flow_code, "flow has no steps"))

    seen_ids: set[str] = set()
    for step in flow.steps:
        if step.step_id in seen_ids:
            issues.append(
                FlowConfigIssue(flow.flow_code, f"duplicate step_id {step.step_id!r}")
            )
        seen_ids.add(step.step_id)
        if not step.name.strip() or not step.approver_role.strip():
            issues.append(
                FlowConfigIssue(
                    flow.flow_code,
                    f"step {step.step_id!r} needs a name and an approver_role",
                )
            )

    up_to = _parse_bound(flow, "up_to", flow.up_to, issues)
    above = _parse_bound(flow, "above", flow.above, issues)
    if up_to is not None and above is not None and above >= up_to:
        issues.append(
            FlowConfigIssue(flow.flow_code, f"above ({above}) must be less than up_to ({up_to})")
        )

    if len(issues) > before:
        return None
    return ApprovalFlow(
        flow_code=flow.flow_code,
        variant=flow.variant,
        steps=tuple(
            ApprovalStep(step_id=s.step_id, name=s.name, approver_role=s.approver_role)
            for s in flow.steps
        ),
        priority=flow.priority,
        up_to=up_to,
        above=above,
    )


def compile_approval_flows(
    source: ApprovalFlowConfig | Iterable[ApprovalFlowDef],
) -> ApprovalFlowSet:
    """
    Validate and compile approval flows.

    Raises:
        FlowConfigError: if any flow is invalid.
    """
    if isinstance(source, ApprovalFlowConfig):
        config = source
    else:
        config = ApprovalFlowConfig(config_id="inline", version=1, flows=tuple(source))

    issues: list[FlowConfigIssue] = []
    compiled: list[ApprovalFlow] = []
    seen_codes: set[str] = set()

    for flow in config.flows:
        if flow.flow_code in seen_codes:
            issues.append(FlowConfigIssue(flow.flow_code, "duplicate flow_code"))
            continue
        seen_codes.add(flow.flow_code)
        result = _compile_flow(flow, issues)
        if result is not None:
            compiled.append(result)

    if issues:
        raise FlowConfigError(issues)

    return ApprovalFlowSet(
        config_id=config.config_id,
        version=config.version,
        checksum=config.checksum,
        flows=tuple(sorted(compiled, key=lambda f: (f.variant, f.priority, f.flow_code))),
    )
