"""
Transfer Workflows.

State machine for transfer requests.  Final approval is terminal: the
asset move and the sync entry happen on that transition.
"""

from asset_kernel.domain.policy import LifecycleAction
from asset_kernel.domain.request import RequestStatus
from asset_kernel.domain.workflow import Guard, Transition, Workflow
from asset_kernel.logging_config import get_logger

logger = get_logger("modules.transfer.workflows")

_DRAFT = RequestStatus.DRAFT.value
_SUBMITTED = RequestStatus.SUBMITTED.value
_PENDING = RequestStatus.PENDING.value
_APPROVED = RequestStatus.APPROVED.value
_REJECTED = RequestStatus.REJECTED.value


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


_APPROVE = LifecycleAction.APPROVE.value
_REJECT = LifecycleAction.REJECT.value

TRANSFER_WORKFLOW = Workflow(
    name="transfer_request",
    description="Asset transfer request lifecycle",
    initial_state=_DRAFT,
    states=(
        _DRAFT,
        _SUBMITTED,
        _PENDING,
        _APPROVED,
        _REJECTED,
    ),
    transitions=(
        Transition(_DRAFT, _DRAFT, action=LifecycleAction.ADD_ITEM.value),
        Transition(_DRAFT, _SUBMITTED, action=LifecycleAction.SUBMIT.value, guard=HAS_ITEMS),
        Transition(_SUBMITTED, _PENDING, action=_APPROVE, guard=NOT_LAST_STEP, requires_approval=True),
        Transition(_SUBMITTED, _APPROVED, action=_APPROVE, guard=LAST_STEP, requires_approval=True),
        Transition(_SUBMITTED, _REJECTED, action=_REJECT, requires_approval=True),
        Transition(_PENDING, _PENDING, action=_APPROVE, guard=NOT_LAST_STEP, requires_approval=True),
        Transition(_PENDING, _APPROVED, action=_APPROVE, guard=LAST_STEP, requires_approval=True),
        Transition(_PENDING, _REJECTED, action=_REJECT, requires_approval=True),
    ),
    terminal_states=(_APPROVED, _REJECTED),
)

logger.info(
    "transfer_workflow_registered",
    extra={
        "workflow_name": TRANSFER_WORKFLOW.name,
        "state_count": len(TRANSFER_WORKFLOW.states),
        "transition_count": len(TRANSFER_WORKFLOW.transitions),
        "initial_state": TRANSFER_WORKFLOW.initial_state,
    },
)
