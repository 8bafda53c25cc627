"""
Asset Kernel - request lifecycle core

An approval-driven, append-only request engine for physical asset
disposition with:
- Draft editing gated by request status
- Threshold-driven approval chains
- Hash-chained approval history
- Optimistic concurrency on every write
- Outbox handoff to downstream synchronization
"""

__version__ = "0.1.0"
