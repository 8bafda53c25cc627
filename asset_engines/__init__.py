"""
Module: asset_engines
Responsibility:
    Pure calculation engines for the asset request lifecycle: approval
    flow resolution and request-number scanning.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import asset_kernel/domain types and exceptions.
    MUST NOT import asset_modules.

Invariants enforced:
    - Purity: engines never read the clock; the calendar year and amounts
      are passed in by callers.
    - Decimal-only arithmetic for book values.
"""

from asset_engines.approval_flow import ApprovalFlowResolver, select_matching_flow
from asset_engines.request_number import (
    RequestNumber,
    format_request_no,
    max_sequence,
    next_request_no,
    parse_request_no,
)
from asset_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "ApprovalFlowResolver",
    "RequestNumber",
    "compute_input_fingerprint",
    "format_request_no",
    "max_sequence",
    "next_request_no",
    "parse_request_no",
    "select_matching_flow",
    "traced_engine",
]
