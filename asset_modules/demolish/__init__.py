"""
Demolish Module (``asset_modules.demolish``).

Responsibility
--------------
Asset write-off requests: supporting documents, a value-dependent approval
chain, and a receipt step that hands the request to the downstream sync.
"""

from asset_modules.demolish.config import DemolishConfig
from asset_modules.demolish.policy import DemolishPolicy
from asset_modules.demolish.service import DemolishService
from asset_modules.demolish.workflows import DEMOLISH_WORKFLOW

__all__ = [
    "DEMOLISH_WORKFLOW",
    "DemolishConfig",
    "DemolishPolicy",
    "DemolishService",
]
