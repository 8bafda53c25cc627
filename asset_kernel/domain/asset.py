"""
Asset catalog boundary types.

The catalog is an external collaborator: the lifecycle only needs a
snapshot for lookup and a way to push cost-center/location changes after
a transfer is fully approved.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class AssetSnapshot:
    """Catalog view of an asset at lookup time."""

    asset_id: UUID
    asset_no: str
    name: str
    cost_center: str
    book_value: Decimal
    location: str | None = None


class AssetCatalog(Protocol):
    """Pluggable interface for asset lookups and field updates."""

    def lookup(self, asset_id: UUID) -> AssetSnapshot | None:
        """Return the asset, or None if it does not exist."""
        ...

    def mutate_fields(
        self,
        asset_id: UUID,
        *,
        cost_center: str | None = None,
        location: str | None = None,
    ) -> None:
        """Overwrite the given fields; raises AssetNotFoundError if missing."""
        ...
