"""
asset_engines.approval_flow -- Approval chain resolution.

Responsibility:
    Pick the approval flow for a request from its variant and total book
    value.  Flows come from configuration (``asset_config``); this engine
    only evaluates them.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import asset_kernel/domain types and exceptions.

Invariants enforced:
    - Deterministic rule ordering: flows are sorted by ``priority`` (lower
      first, then ``flow_code``) before evaluation; first match wins.
    - A flow matches when ``above < total <= up_to`` (open bounds allowed).

Failure modes:
    - FlowNotConfiguredError when no flow matches.  This is a configuration
      defect, not a caller mistake, and propagates.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from asset_engines.tracer import traced_engine
from asset_kernel.domain.approval import ApprovalFlow, ResolvedFlow
from asset_kernel.exceptions import FlowNotConfiguredError


def select_matching_flow(
    flows: Iterable[ApprovalFlow],
    variant: str,
    total: Decimal,
) -> ApprovalFlow | None:
    """First flow of ``variant`` whose amount window contains ``total``."""
    candidates = sorted(
        (f for f in flows if f.variant == variant),
        key=lambda f: (f.priority, f.flow_code),
    )
    for flow in candidates:
        if flow.matches(total):
            return flow
    return None


class ApprovalFlowResolver:
    """
    Resolves the approval chain for a request.

    Contract:
        ``resolve(variant, total_book_value)`` returns the flow code and the
        ordered step descriptors of the matching flow.
    """

    def __init__(self, flows: Iterable[ApprovalFlow]):
        self._flows = tuple(flows)

    @property
    def flows(self) -> tuple[ApprovalFlow, ...]:
        return self._flows

    @traced_engine("approval_flow", "1.0", fingerprint_fields=("variant", "total_book_value"))
    def resolve(self, variant: str, total_book_value: Decimal) -> ResolvedFlow:
        variant = getattr(variant, "value", variant)
        flow = select_matching_flow(self._flows, variant, total_book_value)
        if flow is None:
            raise FlowNotConfiguredError(variant, str(total_book_value))
        return ResolvedFlow(flow_code=flow.flow_code, steps=flow.steps)
