"""
Tests for the demolish request lifecycle (``DemolishService``).

Covers draft editing, document rules, threshold-dependent approval
chains, approval decisions, receipt with its sync handoff, list views,
and that rejected operations leave nothing behind.
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from asset_kernel.domain.approval import ApprovalAction
from asset_kernel.domain.request import DocumentType, RequestStatus
from asset_kernel.domain.sync import SyncRefType, SyncStatus
from asset_kernel.exceptions import (
    BudgetThresholdMismatchError,
    ErrorKind,
    InvalidInputError,
)
from asset_kernel.models.asset import AssetModel
from asset_modules.demolish import DemolishConfig, DemolishService
from asset_modules.demolish.policy import AWAITING_RECEIPT_LABEL, RECEIVED_LABEL

LE_STEPS = (
    "Requester",
    "Asset Owner",
    "Central Accounting Director",
    "Final Approver",
    "Asset Accountant",
)
GT_STEPS = (
    "Requester",
    "Factory Accounting Manager",
    "Budget Approver",
    "Central Accounting Director",
    "Final Approver",
    "Asset Accountant",
)


def assert_failed(result, kind: ErrorKind, code: str):
    assert not result.is_success
    assert result.request is None
    assert result.error_kind == kind
    assert result.error_code == code, result.message


def approve_all(service, request_id, count):
    result = None
    for i in range(count):
        result = service.act_on_approval(request_id, ApprovalAction.APPROVE, f"approver-{i + 1}")
        assert result.is_success, result.message
    return result


@pytest.fixture
def small_submitted(demolish_service, demolish_draft, assets):
    """Draft with the 0.75 asset and an approval doc, submitted (LE flow)."""
    request_id = demolish_draft.request_id
    demolish_service.add_item(request_id, assets["A003"].asset_id)
    demolish_service.add_document(request_id, DocumentType.APPROVAL_DOC, "approval.pdf")
    result = demolish_service.submit(request_id)
    assert result.is_success, result.message
    return result.request


@pytest.fixture
def small_approved(demolish_service, small_submitted):
    return approve_all(demolish_service, small_submitted.request_id, len(LE_STEPS)).request


# =========================================================================
# Drafts
# =========================================================================


class TestCreateDraft:

    def test_new_draft(self, demolish_service):
        result = demolish_service.create_draft("C01", "P01", "Somchai")
        assert result.is_success
        request = result.request
        assert request.request_no == "DM-2026-00001"
        assert request.status == RequestStatus.DRAFT
        assert request.total_book_value == Decimal("0.00")
        assert request.items == ()
        assert request.documents == ()
        assert request.history == ()
        assert request.approval is None
        assert request.transfer is None
        assert request.version == 1

    def test_numbers_increase(self, demolish_service):
        first = demolish_service.create_draft("C01", "P01", "Somchai").request
        second = demolish_service.create_draft("C01", "P02", "Anan").request
        assert first.request_no == "DM-2026-00001"
        assert second.request_no == "DM-2026-00002"

    def test_numbering_independent_of_transfers(self, demolish_service, transfer_draft):
        assert transfer_draft.request_no == "TR-2026-00001"
        assert demolish_service.create_draft("C01", "P01", "Somchai").request.request_no == "DM-2026-00001"

    @pytest.mark.parametrize(
        "company_id, plant_id, created_by",
        [("", "P01", "Somchai"), ("C01", "  ", "Somchai"), ("C01", "P01", "")],
    )
    def test_blank_fields_rejected(self, demolish_service, company_id, plant_id, created_by):
        result = demolish_service.create_draft(company_id, plant_id, created_by)
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "INVALID_INPUT")
        assert demolish_service.list_requests() == []


class TestAddItem:

    def test_item_freezes_book_value(self, demolish_service, demolish_draft, assets):
        result = demolish_service.add_item(
            demolish_draft.request_id, assets["A001"].asset_id, note="rusted",
        )
        assert result.is_success
        (item,) = result.request.items
        assert item.asset_no == "A001"
        assert item.asset_name == "Forklift"
        assert item.book_value_at_request == Decimal("500.00")
        assert item.note == "rusted"
        assert result.request.total_book_value == Decimal("500.00")
        assert result.request.version == 2

    def test_total_is_sum_of_items(self, demolish_service, demolish_draft, assets):
        for asset_no in ("A001", "A002", "A003"):
            result = demolish_service.add_item(demolish_draft.request_id, assets[asset_no].asset_id)
        assert result.request.total_book_value == Decimal("751.25")
        assert [i.asset_no for i in result.request.items] == ["A001", "A002", "A003"]

    def test_later_catalog_change_does_not_touch_item(
        self, session, demolish_service, demolish_draft, assets,
    ):
        asset_id = assets["A002"].asset_id
        demolish_service.add_item(demolish_draft.request_id, asset_id)
        session.get(AssetModel, asset_id).book_value = Decimal("1.00")
        session.commit()

        request = demolish_service.get_request(demolish_draft.request_id).request
        assert request.items[0].book_value_at_request == Decimal("250.50")
        assert request.total_book_value == Decimal("250.50")

    def test_any_cost_center_allowed(self, demolish_service, demolish_draft, assets):
        demolish_service.add_item(demolish_draft.request_id, assets["A001"].asset_id)
        result = demolish_service.add_item(demolish_draft.request_id, assets["B001"].asset_id)
        assert result.is_success
        assert len(result.request.items) == 2

    def test_duplicate_asset(self, demolish_service, demolish_draft, assets):
        demolish_service.add_item(demolish_draft.request_id, assets["A001"].asset_id)
        result = demolish_service.add_item(demolish_draft.request_id, assets["A001"].asset_id)
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "DUPLICATE_ASSET")
        request = demolish_service.get_request(demolish_draft.request_id).request
        assert len(request.items) == 1
        assert request.version == 2

    def test_unknown_asset(self, demolish_service, demolish_draft, assets):
        result = demolish_service.add_item(demolish_draft.request_id, uuid4())
        assert_failed(result, ErrorKind.NOT_FOUND, "ASSET_NOT_FOUND")

    def test_unknown_request(self, demolish_service, assets):
        result = demolish_service.add_item(uuid4(), assets["A001"].asset_id)
        assert_failed(result, ErrorKind.NOT_FOUND, "REQUEST_NOT_FOUND")

    def test_not_found_precedes_other_checks(self, demolish_service):
        result = demolish_service.add_item(uuid4(), uuid4())
        assert result.error_code == "REQUEST_NOT_FOUND"

    def test_not_after_submit(self, demolish_service, small_submitted, assets):
        result = demolish_service.add_item(small_submitted.request_id, assets["A001"].asset_id)
        assert_failed(result, ErrorKind.INVALID_STATE, "REQUEST_NOT_DRAFT")

    def test_transfer_request_not_visible(self, demolish_service, transfer_draft, assets):
        result = demolish_service.add_item(transfer_draft.request_id, assets["A001"].asset_id)
        assert_failed(result, ErrorKind.NOT_FOUND, "REQUEST_NOT_FOUND")


class TestAddDocument:

    def test_document_recorded(self, demolish_service, demolish_draft, clock):
        result = demolish_service.add_document(
            demolish_draft.request_id, DocumentType.BUDGET_DOC, "budget.xlsx",
        )
        assert result.is_success
        (doc,) = result.request.documents
        assert doc.doc_type == DocumentType.BUDGET_DOC
        assert doc.file_name == "budget.xlsx"
        assert doc.uploaded_at == clock.now()

    def test_string_doc_type(self, demolish_service, demolish_draft):
        result = demolish_service.add_document(demolish_draft.request_id, "OTHER", "photo.jpg")
        assert result.request.documents[0].doc_type == DocumentType.OTHER

    def test_unknown_doc_type(self, demolish_service, demolish_draft):
        result = demolish_service.add_document(demolish_draft.request_id, "INVOICE", "x.pdf")
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "INVALID_INPUT")

    def test_blank_file_name(self, demolish_service, demolish_draft):
        result = demolish_service.add_document(demolish_draft.request_id, "OTHER", " ")
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "INVALID_INPUT")

    def test_not_after_submit(self, demolish_service, small_submitted):
        result = demolish_service.add_document(small_submitted.request_id, "OTHER", "late.pdf")
        assert_failed(result, ErrorKind.INVALID_STATE, "REQUEST_NOT_DRAFT")


# =========================================================================
# Submission
# =========================================================================


class TestSubmit:

    def test_empty_request(self, demolish_service, demolish_draft):
        demolish_service.add_document(demolish_draft.request_id, "APPROVAL_DOC", "a.pdf")
        result = demolish_service.submit(demolish_draft.request_id)
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "EMPTY_REQUEST")

    def test_approval_doc_required(self, demolish_service, demolish_draft, assets):
        demolish_service.add_item(demolish_draft.request_id, assets["A003"].asset_id)
        result = demolish_service.submit(demolish_draft.request_id)
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "MISSING_DOCUMENT")
        assert "APPROVAL_DOC" in result.message

    def test_budget_doc_required_above_threshold(self, demolish_service, demolish_draft, assets):
        request_id = demolish_draft.request_id
        demolish_service.add_item(request_id, assets["A001"].asset_id)
        demolish_service.add_document(request_id, "APPROVAL_DOC", "a.pdf")
        result = demolish_service.submit(request_id)
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "MISSING_DOCUMENT")
        assert "BUDGET_DOC" in result.message

    def test_failed_submit_changes_nothing(self, demolish_service, demolish_draft, assets):
        request_id = demolish_draft.request_id
        demolish_service.add_item(request_id, assets["A001"].asset_id)
        before = demolish_service.get_request(request_id).request

        demolish_service.submit(request_id)

        after = demolish_service.get_request(request_id).request
        assert after.status == RequestStatus.DRAFT
        assert after.version == before.version
        assert after.history == ()
        assert after.approval is None

    def test_small_total_uses_le_flow(self, small_submitted):
        assert small_submitted.status == RequestStatus.SUBMITTED
        assert small_submitted.approval.flow_code == "DEMOLISH_LE"
        assert small_submitted.approval.step_names == LE_STEPS
        assert small_submitted.approval.current_step_order == 1
        assert small_submitted.approval.current_step_name == "Requester"

    def test_submit_writes_history(self, small_submitted):
        (entry,) = small_submitted.history
        assert entry.seq == 1
        assert entry.action == ApprovalAction.COMMENT
        assert entry.actor_name == "Somchai"
        assert entry.comment == "Submitted to approval"
        assert entry.step_order == 1
        assert entry.step_name == "Requester"
        assert entry.prev_hash is None

    def test_large_total_uses_gt_flow(self, demolish_service, demolish_draft, assets):
        request_id = demolish_draft.request_id
        demolish_service.add_item(request_id, assets["A001"].asset_id)
        demolish_service.add_document(request_id, "APPROVAL_DOC", "a.pdf")
        demolish_service.add_document(request_id, "BUDGET_DOC", "b.pdf")
        result = demolish_service.submit(request_id)
        assert result.is_success
        assert result.request.approval.flow_code == "DEMOLISH_GT"
        assert result.request.approval.step_names == GT_STEPS

    def test_threshold_itself_uses_le_flow(self, demolish_service, demolish_draft, catalog, session):
        asset = catalog.register("T001", "Exactly one", "CC-100", Decimal("1.00"))
        session.commit()
        request_id = demolish_draft.request_id
        demolish_service.add_item(request_id, asset.asset_id)
        demolish_service.add_document(request_id, "APPROVAL_DOC", "a.pdf")
        result = demolish_service.submit(request_id)
        assert result.is_success, result.message
        assert result.request.approval.flow_code == "DEMOLISH_LE"

    def test_cannot_submit_twice(self, demolish_service, small_submitted):
        result = demolish_service.submit(small_submitted.request_id)
        assert_failed(result, ErrorKind.INVALID_STATE, "REQUEST_NOT_DRAFT")


def split_demolish_flows_at(flow_set, amount: Decimal):
    flows = tuple(
        replace(
            flow,
            up_to=amount if flow.up_to is not None else None,
            above=amount if flow.above is not None else None,
        )
        for flow in flow_set.flows
    )
    return replace(flow_set, flows=flows)


class TestBudgetThreshold:
    """The BUDGET_DOC rule and the LE/GT flow split share one amount."""

    def test_mismatched_threshold_refused(self, session, approval_flows, clock):
        with pytest.raises(BudgetThresholdMismatchError) as exc_info:
            DemolishService(
                session,
                flows=approval_flows,
                config=DemolishConfig(budget_doc_threshold=Decimal("50000.00")),
                clock=clock,
            )
        assert exc_info.value.threshold == "50000.00"
        assert exc_info.value.boundaries == ["1.00"]
        assert exc_info.value.kind is None

    def test_matching_custom_threshold(
        self, session, approval_flows, catalog, outbox, clock, id_provider, assets,
    ):
        service = DemolishService(
            session,
            flows=split_demolish_flows_at(approval_flows, Decimal("50000.00")),
            config=DemolishConfig(budget_doc_threshold=Decimal("50000.00")),
            catalog=catalog,
            sync=outbox,
            clock=clock,
            id_provider=id_provider,
        )
        request_id = service.create_draft("C01", "P01", "Somchai").request.request_id
        service.add_item(request_id, assets["A001"].asset_id)
        service.add_document(request_id, DocumentType.APPROVAL_DOC, "a.pdf")

        result = service.submit(request_id)
        assert result.is_success, result.message
        assert result.request.approval.flow_code == "DEMOLISH_LE"
        assert result.request.approval.step_names == LE_STEPS


# =========================================================================
# Approval decisions
# =========================================================================


class TestActOnApproval:

    def test_approve_advances_step(self, demolish_service, small_submitted):
        result = demolish_service.act_on_approval(
            small_submitted.request_id, ApprovalAction.APPROVE, "Somchai", "ok",
        )
        request = result.request
        assert request.status == RequestStatus.PENDING
        assert request.approval.current_step_order == 2
        assert request.approval.current_step_name == "Asset Owner"

        entry = request.history[-1]
        assert entry.seq == 2
        assert entry.action == ApprovalAction.APPROVE
        assert entry.step_order == 1
        assert entry.step_name == "Requester"
        assert entry.comment == "ok"
        assert entry.prev_hash == request.history[0].entry_hash

    def test_string_action_accepted(self, demolish_service, small_submitted):
        result = demolish_service.act_on_approval(small_submitted.request_id, "APPROVE", "Somchai")
        assert result.is_success

    def test_full_chain_approves(self, small_approved, demolish_service):
        assert small_approved.status == RequestStatus.APPROVED
        assert small_approved.approval.current_step_name == "Approved"
        assert len(small_approved.history) == 1 + len(LE_STEPS)
        assert [e.step_name for e in small_approved.history[1:]] == list(LE_STEPS)
        assert demolish_service.verify_history(small_approved.request_id) is True

    def test_final_approval_does_not_sync(self, small_approved, outbox):
        assert outbox.list_entries() == []

    def test_reject_is_terminal(self, demolish_service, small_submitted):
        request_id = small_submitted.request_id
        demolish_service.act_on_approval(request_id, "APPROVE", "Somchai")
        result = demolish_service.act_on_approval(request_id, "REJECT", "Owner", "not yet")
        request = result.request
        assert request.status == RequestStatus.REJECTED
        assert request.approval.current_step_name == "Asset Owner"
        assert request.history[-1].action == ApprovalAction.REJECT
        assert request.history[-1].step_name == "Asset Owner"

        again = demolish_service.act_on_approval(request_id, "APPROVE", "Owner")
        assert_failed(again, ErrorKind.INVALID_STATE, "REQUEST_NOT_AWAITING_APPROVAL")

    def test_no_actions_after_approved(self, demolish_service, small_approved):
        result = demolish_service.act_on_approval(small_approved.request_id, "REJECT", "Late")
        assert_failed(result, ErrorKind.INVALID_STATE, "REQUEST_NOT_AWAITING_APPROVAL")

    def test_draft_not_started(self, demolish_service, demolish_draft):
        result = demolish_service.act_on_approval(demolish_draft.request_id, "APPROVE", "Somchai")
        assert_failed(result, ErrorKind.INVALID_STATE, "APPROVAL_NOT_STARTED")

    @pytest.mark.parametrize("action", ["COMMENT", "ESCALATE", ""])
    def test_invalid_action(self, demolish_service, small_submitted, action):
        result = demolish_service.act_on_approval(small_submitted.request_id, action, "Somchai")
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "INVALID_INPUT")

    def test_blank_actor(self, demolish_service, small_submitted):
        result = demolish_service.act_on_approval(small_submitted.request_id, "APPROVE", " ")
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "INVALID_INPUT")

    def test_role_checked_when_given(self, demolish_service, small_submitted):
        request_id = small_submitted.request_id
        denied = demolish_service.act_on_approval(
            request_id, "APPROVE", "Anan", actor_roles={"asset_owner"},
        )
        assert_failed(denied, ErrorKind.VALIDATION_FAILED, "UNAUTHORIZED_APPROVER")
        assert demolish_service.get_request(request_id).request.history == small_submitted.history

        allowed = demolish_service.act_on_approval(
            request_id, "APPROVE", "Somchai", actor_roles=frozenset({"requester"}),
        )
        assert allowed.is_success

    def test_unknown_request(self, demolish_service):
        result = demolish_service.act_on_approval(uuid4(), "APPROVE", "Somchai")
        assert_failed(result, ErrorKind.NOT_FOUND, "REQUEST_NOT_FOUND")

    def test_gt_flow_needs_six_approvals(self, demolish_service, demolish_draft, assets):
        request_id = demolish_draft.request_id
        demolish_service.add_item(request_id, assets["B001"].asset_id)
        demolish_service.add_document(request_id, "APPROVAL_DOC", "a.pdf")
        demolish_service.add_document(request_id, "BUDGET_DOC", "b.pdf")
        demolish_service.submit(request_id)

        result = approve_all(demolish_service, request_id, len(GT_STEPS) - 1)
        assert result.request.status == RequestStatus.PENDING
        assert result.request.approval.current_step_name == "Asset Accountant"

        result = approve_all(demolish_service, request_id, 1)
        assert result.request.status == RequestStatus.APPROVED


# =========================================================================
# Receipt
# =========================================================================


class TestReceive:

    def test_receive_enqueues_sync(self, demolish_service, small_approved, outbox, clock):
        result = demolish_service.receive(small_approved.request_id, "Store Keeper")
        request = result.request
        assert request.status == RequestStatus.RECEIVED
        assert request.received_by == "Store Keeper"
        assert request.received_at == clock.now()

        entry = request.history[-1]
        assert entry.action == ApprovalAction.COMMENT
        assert entry.comment == "Supplies received"
        assert entry.actor_name == "Store Keeper"

        (sync,) = outbox.list_entries()
        assert sync.ref_type == SyncRefType.DEMOLISH
        assert sync.ref_no == request.request_no
        assert sync.status == SyncStatus.PENDING

    def test_receive_twice(self, demolish_service, small_approved, outbox):
        demolish_service.receive(small_approved.request_id, "Store Keeper")
        result = demolish_service.receive(small_approved.request_id, "Store Keeper")
        assert_failed(result, ErrorKind.INVALID_STATE, "REQUEST_NOT_APPROVED")
        assert len(outbox.list_entries()) == 1

    def test_receive_before_approval(self, demolish_service, small_submitted, outbox):
        result = demolish_service.receive(small_submitted.request_id, "Store Keeper")
        assert_failed(result, ErrorKind.INVALID_STATE, "REQUEST_NOT_APPROVED")
        assert outbox.list_entries() == []

    def test_blank_actor(self, demolish_service, small_approved):
        result = demolish_service.receive(small_approved.request_id, "")
        assert_failed(result, ErrorKind.VALIDATION_FAILED, "INVALID_INPUT")

    def test_history_chain_survives_receipt(self, demolish_service, small_approved):
        demolish_service.receive(small_approved.request_id, "Store Keeper")
        assert demolish_service.verify_history(small_approved.request_id) is True


# =========================================================================
# Read side
# =========================================================================


class TestReadSide:

    def test_get_unknown(self, demolish_service):
        assert_failed(demolish_service.get_request(uuid4()), ErrorKind.NOT_FOUND, "REQUEST_NOT_FOUND")

    def test_list_newest_first(self, demolish_service, clock):
        demolish_service.create_draft("C01", "P01", "Somchai")
        clock.advance(60)
        demolish_service.create_draft("C01", "P01", "Anan")
        numbers = [r.request_no for r in demolish_service.list_requests()]
        assert numbers == ["DM-2026-00002", "DM-2026-00001"]

    def test_status_filter(self, demolish_service, small_submitted, clock):
        clock.advance(60)
        demolish_service.create_draft("C01", "P01", "Anan")
        assert len(demolish_service.list_requests()) == 2
        assert len(demolish_service.list_requests("ALL")) == 2
        assert [r.status for r in demolish_service.list_requests(RequestStatus.SUBMITTED)] == [
            RequestStatus.SUBMITTED,
        ]
        assert len(demolish_service.list_requests("DRAFT")) == 1
        assert demolish_service.list_requests("RECEIVED") == []

    def test_unknown_status_filter(self, demolish_service):
        with pytest.raises(InvalidInputError) as exc_info:
            demolish_service.list_requests("ARCHIVED")
        assert exc_info.value.field_name == "status"
        assert exc_info.value.kind == ErrorKind.VALIDATION_FAILED

    def test_list_excludes_transfers(self, demolish_service, transfer_draft):
        assert demolish_service.list_requests() == []

    def test_summary_labels(self, demolish_service, small_approved, clock):
        summary = demolish_service.list_summaries()[0]
        assert summary.current_approver == AWAITING_RECEIPT_LABEL
        assert summary.item_count == 1
        assert summary.total_book_value == Decimal("0.75")
        assert summary.from_cost_center is None

        demolish_service.receive(small_approved.request_id, "Store Keeper")
        assert demolish_service.list_summaries()[0].current_approver == RECEIVED_LABEL

    def test_summary_of_pending_names_current_step(self, demolish_service, small_submitted):
        assert demolish_service.list_summaries()[0].current_approver == "Requester"
        demolish_service.act_on_approval(small_submitted.request_id, "APPROVE", "Somchai")
        assert demolish_service.list_summaries("PENDING")[0].current_approver == "Asset Owner"

    def test_status_options(self, demolish_service):
        assert demolish_service.status_options() == (
            "ALL", "DRAFT", "SUBMITTED", "PENDING", "APPROVED", "REJECTED", "RECEIVED",
        )


# =========================================================================
# Observability
# =========================================================================


class TestLifecycleLogging:

    def test_completed_operation_logged(self, demolish_service, captured_logs):
        demolish_service.create_draft("C01", "P01", "Somchai")
        records = captured_logs()
        completed = [r for r in records if r["message"] == "lifecycle_operation_completed"]
        assert completed[-1]["operation"] == "create_draft"
        assert completed[-1]["request_no"] == "DM-2026-00001"
        assert completed[-1]["variant"] == "DEMOLISH"
        assert completed[-1]["actor_name"] == "Somchai"
        assert "correlation_id" in completed[-1]

    def test_rejected_operation_logged(self, demolish_service, demolish_draft, captured_logs):
        demolish_service.submit(demolish_draft.request_id)
        rejected = [r for r in captured_logs() if r["message"] == "lifecycle_operation_rejected"]
        assert rejected[-1]["level"] == "WARNING"
        assert rejected[-1]["error_code"] == "EMPTY_REQUEST"
        assert rejected[-1]["error_kind"] == "validation_failed"

    def test_approval_action_logged(self, demolish_service, small_submitted, captured_logs):
        demolish_service.act_on_approval(small_submitted.request_id, "APPROVE", "Somchai")
        records = [r for r in captured_logs() if r["message"] == "approval_action_recorded"]
        assert records[-1]["step_name"] == "Requester"
        assert records[-1]["new_status"] == "PENDING"
