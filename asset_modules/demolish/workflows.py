"""
Demolish Workflows.

State machine for demolish (write-off) requests.
"""

from asset_kernel.domain.policy import LifecycleAction
from asset_kernel.domain.request import RequestStatus
from asset_kernel.domain.workflow import Guard, Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.demolish.workflows")

_DRAFT = RequestStatus.DRAFT.value
_SUBMITTED = RequestStatus.SUBMITTED.value
_PENDING = RequestStatus.PENDING.value
_APPROVED = RequestStatus.APPROVED.value
_REJECTED = RequestStatus.REJECTED.value
_RECEIVED = RequestStatus.RECEIVED.value


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_ITEMS = Guard(
    name="has_items",
    description="Request has at least one asset",
)

LAST_STEP = Guard(
    name="last_step",
    description="Current approval step is the last step of the flow",
)

NOT_LAST_STEP = Guard(
    name="not_last_step",
    description="Current approval step has a successor",
)


# -----------------------------------------------------------------------------
# Demolish Workflow
# -----------------------------------------------------------------------------

_APPROVE = LifecycleAction.APPROVE.value
_REJECT = LifecycleAction.REJECT.value

DEMOLISH_WORKFLOW = Workflow(
    name="demolish_request",
    description="Asset demolish request lifecycle",
    initial_state=_DRAFT,
    states=(
        _DRAFT,
        _SUBMITTED,
        _PENDING,
        _APPROVED,
        _REJECTED,
        _RECEIVED,
    ),
    transitions=(
        Transition(_DRAFT, _DRAFT, action=LifecycleAction.ADD_ITEM.value),
        Transition(_DRAFT, _DRAFT, action=LifecycleAction.ADD_DOCUMENT.value),
        Transition(_DRAFT, _SUBMITTED, action=LifecycleAction.SUBMIT.value, guard=HAS_ITEMS),
        Transition(_SUBMITTED, _PENDING, action=_APPROVE, guard=NOT_LAST_STEP, requires_approval=True),
        Transition(_SUBMITTED, _APPROVED, action=_APPROVE, guard=LAST_STEP, requires_approval=True),
        Transition(_SUBMITTED, _REJECTED, action=_REJECT, requires_approval=True),
        Transition(_PENDING, _PENDING, action=_APPROVE, guard=NOT_LAST_STEP, requires_approval=True),
        Transition(_PENDING, _APPROVED, action=_APPROVE, guard=LAST_STEP, requires_approval=True),
        Transition(_PENDING, _REJECTED, action=_REJECT, requires_approval=True),
        Transition(_APPROVED, _RECEIVED, action=LifecycleAction.RECEIVE.value),
    ),
    terminal_states=(_REJECTED, _RECEIVED),
)

logger.info(
    "demolish_workflow_registered",
    extra={
        "workflow_name": DEMOLISH_WORKFLOW.name,
        "state_count": len(DEMOLISH_WORKFLOW.states),
        "transition_count": len(DEMOLISH_WORKFLOW.transitions),
        "initial_state": DEMOLISH_WORKFLOW.initial_state,
    },
)
