"""
Approval domain types (``asset_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for multi-step request approval: step descriptors,
configured flows, the approval state carried by a submitted request, and
the immutable history entries produced by every state-changing action.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Steps are identified by ``step_id``, never by display-name comparison.
* ``ApprovalState.current_step_order`` is 1-based and always within
  ``[1, len(steps)]``.
* A flow's amount window is ``above < amount <= up_to`` (either bound may
  be open).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ApprovalAction(str, Enum):
    """Action codes recorded in approval history."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    COMMENT = "COMMENT"


# Actions a caller may take on a request awaiting approval.
DECISION_ACTIONS: frozenset[ApprovalAction] = frozenset({
    ApprovalAction.APPROVE,
    ApprovalAction.REJECT,
})

APPROVED_STEP_NAME = "Approved"
SUBMIT_STEP_NAME = "SUBMIT"


@dataclass(frozen=True)
class ApprovalStep:
    """One stage of an approval chain."""

    step_id: str
    name: str
    approver_role: str

    def to_dict(self) -> dict[str, str]:
        return {
            "step_id": self.step_id,
            "name": self.name,
            "approver_role": self.approver_role,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> ApprovalStep:
        return cls(
            step_id=data["step_id"],
            name=data["name"],
            approver_role=data["approver_role"],
        )


@dataclass(frozen=True)
class ApprovalFlow:
    """A configured approval chain for one request variant.

    Flows are matched by ``priority`` (lower first) and the amount window
    ``above < amount <= up_to``.
    """

    flow_code: str
    variant: str
    steps: tuple[ApprovalStep, ...]
    priority: int = 100
    up_to: Decimal | None = None
    above: Decimal | None = None

    def matches(self, amount: Decimal) -> bool:
        if self.up_to is not None and amount > self.up_to:
            return False
        if self.above is not None and amount <= self.above:
            return False
        return True


@dataclass(frozen=True)
class ResolvedFlow:
    """Output of the approval flow resolver."""

    flow_code: str
    steps: tuple[ApprovalStep, ...]

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.steps)


@dataclass(frozen=True)
class ApprovalState:
    """Approval progress of a submitted request."""

    flow_code: str
    steps: tuple[ApprovalStep, ...]
    current_step_order: int
    current_step_name: str

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.steps)

    @property
    def is_last_step(self) -> bool:
        return self.current_step_order >= len(self.steps)

    @property
    def current_step(self) -> ApprovalStep:
        return self.steps[self.current_step_order - 1]


@dataclass(frozen=True)
class ApprovalHistoryEntry:
    """Immutable record of one action taken on a request.

    ``step_order``/``step_name`` describe the step active *before* the
    action was applied.
    """

    entry_id: UUID
    seq: int
    step_order: int
    step_name: str
    action: ApprovalAction
    actor_name: str
    acted_at: datetime
    comment: str | None = None
    prev_hash: str | None = None
    entry_hash: str | None = None
