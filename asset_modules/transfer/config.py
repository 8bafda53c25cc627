"""
Transfer Configuration Schema.

Defaults applied to transfer requests whose receiver is left blank.
"""

from dataclasses import dataclass
from typing import Self

from asset_kernel.logging_config import get_logger

logger = get_logger("modules.transfer.config")


@dataclass
class TransferConfig:
    """
    Configuration schema for transfer requests.

    ``default_owner_email`` of None means the sync entry carries no
    notification address when the requester gave none.
    """

    default_owner_name: str = "Unknown Receiver"
    default_owner_email: str | None = None

    def __post_init__(self):
        logger.info(
            "transfer_config_initialized",
            extra={
                "default_owner_name": self.default_owner_name,
                "has_default_owner_email": self.default_owner_email is not None,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("transfer_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        logger.info(
            "transfer_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
