"""
Variant policy contract (``asset_kernel.domain.policy``).

Responsibility
--------------
Demolish and Transfer requests run through the same lifecycle engine.
Everything that differs between them -- request-number prefix, workflow
table, document rules, item admission rules, and what happens when the
last approval lands -- is supplied by a ``VariantPolicy``.

Architecture position
---------------------
**Kernel domain layer**.  Concrete policies live in
``asset_modules.<variant>.policy``.  Validation hooks are pure and work on
frozen ``AssetRequest`` snapshots; side-effect hooks receive the
collaborators through ``LifecycleEffects``.

Contract
--------
* ``validate_*`` and ``prepare_*`` hooks raise kernel exceptions and never
  mutate anything.
* ``on_*`` hooks run only after every precondition of the operation has
  passed.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from enum import Enum

from asset_kernel.domain.asset import AssetCatalog, AssetSnapshot
from asset_kernel.domain.request import (
    AssetRequest,
    RequestVariant,
    TransferDetails,
)
from asset_kernel.domain.sync import SyncTrigger
from asset_kernel.domain.workflow import Workflow


class LifecycleAction(str, Enum):
    """Workflow action names shared by every variant."""

    ADD_ITEM = "add_item"
    ADD_DOCUMENT = "add_document"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    RECEIVE = "receive"


@dataclass(frozen=True)
class LifecycleEffects:
    """Collaborators a policy may touch on terminal transitions."""

    catalog: AssetCatalog
    sync: SyncTrigger


class VariantPolicy(ABC):
    """Variant-specific rules plugged into ``RequestLifecycleService``."""

    variant: RequestVariant
    request_no_prefix: str
    workflow: Workflow
    supports_documents: bool = False
    supports_receipt: bool = False

    def normalize_details(
        self, details: TransferDetails | None,
    ) -> TransferDetails | None:
        """Validate and fill defaults for variant fields at draft creation."""
        return None

    def validate_item(self, request: AssetRequest, asset: AssetSnapshot) -> None:
        """Extra admission rules for an item (beyond existence/uniqueness)."""

    def validate_submission(self, request: AssetRequest) -> None:
        """Extra submission rules (beyond the non-empty item list)."""

    def prepare_final_approval(
        self, request: AssetRequest, catalog: AssetCatalog,
    ) -> None:
        """Pre-check everything the final-approval side effect will need."""

    def on_final_approval(
        self, request: AssetRequest, effects: LifecycleEffects,
    ) -> None:
        """Side effects once the last approval step is approved."""

    def on_receipt(
        self, request: AssetRequest, effects: LifecycleEffects,
    ) -> None:
        """Side effects once an approved request is received."""

    def current_approver_label(self, request: AssetRequest) -> str:
        # Rejected requests keep the name of the step that rejected them.
        if request.approval is not None:
            return request.approval.current_step_name
        return request.status.value

    def status_options(self) -> tuple[str, ...]:
        return ("ALL",) + self.workflow.states
