"""
Module: asset_kernel.models.asset
Responsibility: ORM persistence for the reference asset catalog.

Architecture position: Kernel > Models.  Read by the lifecycle through the
    ``AssetCatalog`` protocol; written only by ``SqlAssetCatalog``.

Invariants enforced:
    - ``asset_no`` is unique.
    - ``book_value`` is Decimal; requests copy it at add time and never
      read it again.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base
from asset_kernel.domain.asset import AssetSnapshot


class AssetModel(Base):
    """A physical asset as known to the catalog."""

    __tablename__ = "assets"

    asset_no: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    cost_center: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    book_value: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Asset {self.asset_no} cc={self.cost_center}>"

    def to_snapshot(self) -> AssetSnapshot:
        return AssetSnapshot(
            asset_id=self.id,
            asset_no=self.asset_no,
            name=self.name,
            cost_center=self.cost_center,
            book_value=self.book_value,
            location=self.location,
        )
