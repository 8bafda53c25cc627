"""
Asset kernel domain layer.

Pure value objects and interfaces: request DTOs, approval steps and
flows, workflow tables, variant policy contract, clock and id providers.
ZERO I/O.  No imports from ``db/``, ``models/`` or ``services/``.
"""
