"""
SqlAssetCatalog -- reference ``AssetCatalog`` adapter over the asset table.

Responsibility:
    Looks up asset snapshots for the lifecycle and applies the cost-center
    and location changes produced by a fully approved transfer.  Also
    registers assets (seeding and tests).

Architecture position:
    Kernel > Services.  Shares the lifecycle's session so asset mutations
    commit or roll back with the request transition.

Failure modes:
    - AssetNotFoundError from ``mutate_fields`` for an unknown asset.
    - IntegrityError from ``register`` on a duplicate ``asset_no``.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from asset_kernel.domain.asset import AssetSnapshot
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.exceptions import AssetNotFoundError
from asset_kernel.logging_config import get_logger
from asset_kernel.models.asset import AssetModel

logger = get_logger("services.asset_catalog")


class SqlAssetCatalog:
    """Asset catalog backed by the ``assets`` table."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def lookup(self, asset_id: UUID) -> AssetSnapshot | None:
        asset = self._session.get(AssetModel, asset_id)
        return asset.to_snapshot() if asset is not None else None

    def mutate_fields(
        self,
        asset_id: UUID,
        *,
        cost_center: str | None = None,
        location: str | None = None,
    ) -> None:
        asset = self._session.get(AssetModel, asset_id)
        if asset is None:
            raise AssetNotFoundError(str(asset_id))

        changed: dict[str, str] = {}
        if cost_center is not None:
            asset.cost_center = cost_center
            changed["cost_center"] = cost_center
        if location is not None:
            asset.location = location
            changed["location"] = location
        if changed:
            asset.updated_at = self._clock.now()
            self._session.flush()

        logger.info(
            "asset_fields_mutated",
            extra={"asset_id": str(asset_id), "asset_no": asset.asset_no, **changed},
        )

    def register(
        self,
        asset_no: str,
        name: str,
        cost_center: str,
        book_value: Decimal,
        location: str | None = None,
        asset_id: UUID | None = None,
    ) -> AssetSnapshot:
        """Add an asset to the catalog."""
        asset = AssetModel(
            asset_no=asset_no,
            name=name,
            cost_center=cost_center,
            location=location,
            book_value=book_value,
        )
        if asset_id is not None:
            asset.id = asset_id
        self._session.add(asset)
        self._session.flush()
        logger.debug(
            "asset_registered",
            extra={"asset_id": str(asset.id), "asset_no": asset_no},
        )
        return asset.to_snapshot()
