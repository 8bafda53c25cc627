"""
Transfer Module (``asset_modules.transfer``).

Responsibility
--------------
Cost-center transfers of assets: source cost-center admission check, a
fixed five-step approval chain, and asset relocation on final approval.
"""

from asset_modules.transfer.config import TransferConfig
from asset_modules.transfer.policy import TransferPolicy
from asset_modules.transfer.service import TransferService
from asset_modules.transfer.workflows import TRANSFER_WORKFLOW

__all__ = [
    "TRANSFER_WORKFLOW",
    "TransferConfig",
    "TransferPolicy",
    "TransferService",
]
