"""
Asset request domain types (``asset_kernel.domain.request``).

The nouns of the request lifecycle: variants, statuses, items, documents,
and the frozen request snapshot returned to callers.  Both Demolish and
Transfer requests share these types; Transfer-only fields live in
``TransferDetails``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable
from uuid import UUID

from asset_kernel.domain.approval import ApprovalHistoryEntry, ApprovalState

CENT = Decimal("0.01")


class RequestVariant(str, Enum):
    """Kinds of asset disposition request."""

    DEMOLISH = "DEMOLISH"
    TRANSFER = "TRANSFER"


class RequestStatus(str, Enum):
    """Request lifecycle states."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    RECEIVED = "RECEIVED"  # demolish only


# SUBMITTED and PENDING are treated identically by approval actions.
AWAITING_APPROVAL_STATUSES: frozenset[RequestStatus] = frozenset({
    RequestStatus.SUBMITTED,
    RequestStatus.PENDING,
})


class DocumentType(str, Enum):
    """Supporting document categories (demolish only)."""

    APPROVAL_DOC = "APPROVAL_DOC"
    BUDGET_DOC = "BUDGET_DOC"
    OTHER = "OTHER"


def quantize_total(values: Iterable[Decimal]) -> Decimal:
    """Sum of book values rounded to 2 decimal places."""
    return sum(values, Decimal("0")).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RequestItem:
    """An asset attached to a request, with its book value frozen at add time."""

    item_id: UUID
    asset_id: UUID
    asset_no: str
    asset_name: str
    book_value_at_request: Decimal
    note: str | None = None


@dataclass(frozen=True)
class RequestDocument:
    """A supporting document attached to a demolish request."""

    document_id: UUID
    doc_type: DocumentType
    file_name: str
    uploaded_at: datetime


@dataclass(frozen=True)
class TransferDetails:
    """Destination data of a transfer request, immutable after creation."""

    from_cost_center: str
    to_cost_center: str
    to_location: str
    to_owner_name: str | None = None
    to_owner_email: str | None = None


@dataclass(frozen=True)
class AssetRequest:
    """Frozen snapshot of a request and everything attached to it."""

    request_id: UUID
    variant: RequestVariant
    request_no: str
    company_id: str
    plant_id: str
    created_by_name: str
    created_at: datetime
    status: RequestStatus
    total_book_value: Decimal
    items: tuple[RequestItem, ...] = ()
    documents: tuple[RequestDocument, ...] = ()
    approval: ApprovalState | None = None
    history: tuple[ApprovalHistoryEntry, ...] = ()
    transfer: TransferDetails | None = None
    received_at: datetime | None = None
    received_by: str | None = None
    version: int = 1

    @property
    def asset_ids(self) -> frozenset[UUID]:
        return frozenset(i.asset_id for i in self.items)

    def has_document(self, doc_type: DocumentType) -> bool:
        return any(d.doc_type == doc_type for d in self.documents)


@dataclass(frozen=True)
class RequestSummary:
    """List-view projection of a request."""

    request_id: UUID
    variant: RequestVariant
    request_no: str
    status: RequestStatus
    total_book_value: Decimal
    created_at: datetime
    created_by_name: str
    item_count: int
    current_approver: str
    from_cost_center: str | None = None
    to_cost_center: str | None = None
    to_owner_name: str | None = None
    to_owner_email: str | None = None
