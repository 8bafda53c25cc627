"""
Module: asset_kernel.models.request
Responsibility: ORM persistence for asset requests, their items, documents
    and approval history.

Architecture position: Kernel > Models.  May import from db/base.py, domain/
    value types and exceptions only.

Invariants enforced:
    - Request numbers are unique per variant (UNIQUE(variant, request_no)).
    - Items are unique by asset per request (UNIQUE(request_id, asset_id)).
    - History entries are append-only: UNIQUE(request_id, seq) plus ORM
      listeners that reject UPDATE and DELETE.
    - ``version`` is the optimistic-concurrency token.  Every write sets
      ``version = old + 1`` and the UPDATE is conditioned on the old value;
      a concurrent writer gets StaleDataError at flush time.

Failure modes:
    - IntegrityError on duplicate request number or duplicate asset item.
    - StaleDataError when the row was changed since it was loaded.
    - ImmutabilityViolationError on history UPDATE/DELETE.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from asset_kernel.db.base import Base, UUIDString, as_aware
from asset_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from asset_kernel.domain.approval import ApprovalHistoryEntry, ApprovalState
    from asset_kernel.domain.request import (
        AssetRequest,
        RequestDocument,
        RequestItem,
    )


class AssetRequestModel(Base):
    """Persistent asset request (both variants, discriminated by ``variant``).

    Contract:
        Mutated only by ``RequestLifecycleService``.  Transfer-only columns
        are NULL for demolish rows and vice versa.
    """

    __tablename__ = "asset_requests"

    __table_args__ = (
        CheckConstraint(
            "variant IN ('DEMOLISH', 'TRANSFER')",
            name="ck_asset_requests_valid_variant",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'PENDING', 'APPROVED', "
            "'REJECTED', 'RECEIVED')",
            name="ck_asset_requests_valid_status",
        ),
        UniqueConstraint(
            "variant", "request_no",
            name="uq_asset_requests_variant_request_no",
        ),
        Index("ix_asset_requests_variant_created", "variant", "created_at"),
        Index("ix_asset_requests_variant_status", "variant", "status"),
    )

    variant: Mapped[str] = mapped_column(String(20), nullable=False)
    request_no: Mapped[str] = mapped_column(String(30), nullable=False)
    company_id: Mapped[str] = mapped_column(String(100), nullable=False)
    plant_id: Mapped[str] = mapped_column(String(100), nullable=False)
    created_by_name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="DRAFT")
    total_book_value: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )

    # Transfer only
    from_cost_center: Mapped[str | None] = mapped_column(String(100), nullable=True)
    to_cost_center: Mapped[str | None] = mapped_column(String(100), nullable=True)
    to_location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    to_owner_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    to_owner_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # Approval state (set on submit)
    approval_flow_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    approval_steps: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True,
    )
    current_step_order: Mapped[int | None] = mapped_column(nullable=True)
    current_step_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Demolish only
    received_at: Mapped[datetime | None] = mapped_column(nullable=True)
    received_by: Mapped[str | None] = mapped_column(String(200), nullable=True)

    version: Mapped[int] = mapped_column(nullable=False, default=1)

    items: Mapped[list["AssetRequestItemModel"]] = relationship(
        back_populates="request",
        order_by="AssetRequestItemModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    documents: Mapped[list["AssetRequestDocumentModel"]] = relationship(
        back_populates="request",
        order_by="AssetRequestDocumentModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    history: Mapped[list["ApprovalHistoryModel"]] = relationship(
        back_populates="request",
        order_by="ApprovalHistoryModel.seq",
        cascade="save-update, merge",
        lazy="selectin",
    )

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": False,
    }

    def __repr__(self) -> str:
        return (
            f"<AssetRequest {self.request_no} {self.variant} "
            f"status={self.status} v{self.version}>"
        )

    def bump_version(self, now: datetime) -> None:
        """Mark the row as written; the flush will check the old version."""
        self.version = self.version + 1
        self.updated_at = now

    def approval_to_dto(self) -> ApprovalState | None:
        from asset_kernel.domain.approval import ApprovalState, ApprovalStep

        if self.approval_flow_code is None:
            return None
        return ApprovalState(
            flow_code=self.approval_flow_code,
            steps=tuple(ApprovalStep.from_dict(s) for s in self.approval_steps or ()),
            current_step_order=self.current_step_order or 0,
            current_step_name=self.current_step_name or "",
        )

    def to_dto(self) -> AssetRequest:
        """Convert ORM model to frozen domain DTO."""
        from asset_kernel.domain.request import (
            AssetRequest as AssetRequestDTO,
            RequestStatus,
            RequestVariant,
            TransferDetails,
        )

        transfer = None
        if self.variant == RequestVariant.TRANSFER.value:
            transfer = TransferDetails(
                from_cost_center=self.from_cost_center or "",
                to_cost_center=self.to_cost_center or "",
                to_location=self.to_location or "",
                to_owner_name=self.to_owner_name,
                to_owner_email=self.to_owner_email,
            )

        return AssetRequestDTO(
            request_id=self.id,
            variant=RequestVariant(self.variant),
            request_no=self.request_no,
            company_id=self.company_id,
            plant_id=self.plant_id,
            created_by_name=self.created_by_name,
            created_at=as_aware(self.created_at),
            status=RequestStatus(self.status),
            total_book_value=self.total_book_value,
            items=tuple(i.to_dto() for i in self.items),
            documents=tuple(d.to_dto() for d in self.documents),
            approval=self.approval_to_dto(),
            history=tuple(h.to_dto() for h in self.history),
            transfer=transfer,
            received_at=as_aware(self.received_at),
            received_by=self.received_by,
            version=self.version,
        )


class AssetRequestItemModel(Base):
    """An asset attached to a request, book value frozen at add time."""

    __tablename__ = "asset_request_items"

    __table_args__ = (
        UniqueConstraint(
            "request_id", "asset_id",
            name="uq_asset_request_items_asset",
        ),
        Index("ix_asset_request_items_request_id", "request_id"),
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("asset_requests.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    asset_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    asset_no: Mapped[str] = mapped_column(String(100), nullable=False)
    asset_name: Mapped[str] = mapped_column(String(500), nullable=False)
    book_value_at_request: Mapped[Decimal] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    request: Mapped["AssetRequestModel"] = relationship(back_populates="items")

    def to_dto(self) -> RequestItem:
        from asset_kernel.domain.request import RequestItem

        return RequestItem(
            item_id=self.id,
            asset_id=self.asset_id,
            asset_no=self.asset_no,
            asset_name=self.asset_name,
            book_value_at_request=self.book_value_at_request,
            note=self.note,
        )


class AssetRequestDocumentModel(Base):
    """A supporting document record (file bytes are stored elsewhere)."""

    __tablename__ = "asset_request_documents"

    __table_args__ = (
        CheckConstraint(
            "doc_type IN ('APPROVAL_DOC', 'BUDGET_DOC', 'OTHER')",
            name="ck_asset_request_documents_valid_type",
        ),
        Index("ix_asset_request_documents_request_id", "request_id"),
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("asset_requests.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    doc_type: Mapped[str] = mapped_column(String(20), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(nullable=False)

    request: Mapped["AssetRequestModel"] = relationship(back_populates="documents")

    def to_dto(self) -> RequestDocument:
        from asset_kernel.domain.request import DocumentType, RequestDocument

        return RequestDocument(
            document_id=self.id,
            doc_type=DocumentType(self.doc_type),
            file_name=self.file_name,
            uploaded_at=as_aware(self.uploaded_at),
        )


class ApprovalHistoryModel(Base):
    """Persistent approval history entry. Append-only.

    Contract:
        Entries are immutable once created -- no UPDATE, no DELETE.
        ``entry_hash`` links to ``prev_hash`` of the same request.
    """

    __tablename__ = "asset_request_history"

    __table_args__ = (
        CheckConstraint(
            "action IN ('APPROVE', 'REJECT', 'COMMENT')",
            name="ck_asset_request_history_valid_action",
        ),
        UniqueConstraint(
            "request_id", "seq",
            name="uq_asset_request_history_seq",
        ),
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("asset_requests.id"), nullable=False,
    )
    seq: Mapped[int] = mapped_column(nullable=False)
    step_order: Mapped[int] = mapped_column(nullable=False)
    step_name: Mapped[str] = mapped_column(String(200), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    acted_at: Mapped[datetime] = mapped_column(nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    entry_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    request: Mapped["AssetRequestModel"] = relationship(back_populates="history")

    def __repr__(self) -> str:
        return (
            f"<ApprovalHistory {self.request_id}#{self.seq} "
            f"{self.action} by {self.actor_name}>"
        )

    def to_dto(self) -> ApprovalHistoryEntry:
        from asset_kernel.domain.approval import (
            ApprovalAction,
            ApprovalHistoryEntry,
        )

        return ApprovalHistoryEntry(
            entry_id=self.id,
            seq=self.seq,
            step_order=self.step_order,
            step_name=self.step_name,
            action=ApprovalAction(self.action),
            actor_name=self.actor_name,
            acted_at=as_aware(self.acted_at),
            comment=self.comment,
            prev_hash=self.prev_hash,
            entry_hash=self.entry_hash,
        )


# =============================================================================
# ORM-Level Immutability for History (Append-Only)
# =============================================================================


@event.listens_for(ApprovalHistoryModel, "before_update")
def prevent_history_update(mapper, connection, target):
    """Prevent updates to approval history records."""
    raise ImmutabilityViolationError(
        entity_type="ApprovalHistory",
        entity_id=str(target.id),
        reason="Approval history is append-only -- cannot modify",
    )


@event.listens_for(ApprovalHistoryModel, "before_delete")
def prevent_history_delete(mapper, connection, target):
    """Prevent deletion of approval history records."""
    raise ImmutabilityViolationError(
        entity_type="ApprovalHistory",
        entity_id=str(target.id),
        reason="Approval history is append-only -- cannot delete",
    )
