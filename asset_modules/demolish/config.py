"""
Demolish Configuration Schema.

Defines the settings of the demolish (write-off) request variant.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from asset_kernel.logging_config import get_logger

logger = get_logger("modules.demolish.config")


@dataclass
class DemolishConfig:
    """
    Configuration schema for demolish requests.

    ``budget_doc_threshold`` must equal the split between the DEMOLISH_LE
    and DEMOLISH_GT flows; ``DemolishService`` refuses to start otherwise.

        config = DemolishConfig(budget_doc_threshold=Decimal("50000.00"))
    """

    # A BUDGET_DOC is required when the total is above this amount
    budget_doc_threshold: Decimal = Decimal("1.00")

    def __post_init__(self):
        self.budget_doc_threshold = Decimal(str(self.budget_doc_threshold))
        logger.info(
            "demolish_config_initialized",
            extra={"budget_doc_threshold": str(self.budget_doc_threshold)},
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the default threshold."""
        logger.info("demolish_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from database/file)."""
        logger.info(
            "demolish_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
