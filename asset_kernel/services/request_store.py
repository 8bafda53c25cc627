"""
RequestStore -- load and persist asset requests.

Responsibility:
    The persistence seam of the lifecycle: fetch a request for update,
    list requests of a variant, add new requests, and flush changes while
    translating stale-version failures into ``OptimisticLockError``.

Architecture position:
    Kernel > Services.  Used only by ``RequestLifecycleService``.

Invariants enforced:
    - Loads for mutation use ``SELECT ... FOR UPDATE`` and
      ``populate_existing`` so the version check sees the stored row.
    - Lists are ordered newest first.

Failure modes:
    - RequestNotFoundError: unknown id, or id of the other variant.
    - OptimisticLockError: the row changed since it was loaded.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from asset_kernel.domain.request import RequestStatus, RequestVariant
from asset_kernel.exceptions import OptimisticLockError, RequestNotFoundError
from asset_kernel.logging_config import get_logger
from asset_kernel.models.request import AssetRequestModel

logger = get_logger("services.request_store")


class RequestStore:
    """SQLAlchemy-backed request store for one session."""

    def __init__(self, session: Session):
        self._session = session

    def get(
        self,
        variant: RequestVariant,
        request_id: UUID,
        *,
        for_update: bool = True,
    ) -> AssetRequestModel:
        stmt = select(AssetRequestModel).where(
            AssetRequestModel.id == request_id,
            AssetRequestModel.variant == variant.value,
        )
        if for_update:
            stmt = stmt.with_for_update()
        model = self._session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if model is None:
            raise RequestNotFoundError(variant.value, str(request_id))
        return model

    def list_all(
        self,
        variant: RequestVariant,
        status: RequestStatus | None = None,
    ) -> list[AssetRequestModel]:
        stmt = (
            select(AssetRequestModel)
            .where(AssetRequestModel.variant == variant.value)
            .order_by(
                AssetRequestModel.created_at.desc(),
                AssetRequestModel.request_no.desc(),
            )
        )
        if status is not None:
            stmt = stmt.where(AssetRequestModel.status == RequestStatus(status).value)
        return list(self._session.scalars(stmt))

    def request_numbers(self, variant: RequestVariant) -> list[str]:
        return list(
            self._session.scalars(
                select(AssetRequestModel.request_no).where(
                    AssetRequestModel.variant == variant.value,
                )
            )
        )

    def add(self, model: AssetRequestModel) -> None:
        self._session.add(model)
        self._session.flush()

    def save(self, model: AssetRequestModel) -> None:
        """Flush pending changes; a lost version race becomes a conflict."""
        # A failed flush expires the instance, so capture before flushing.
        request_no = model.request_no
        entity_id = str(model.id)
        expected_version = model.version - 1
        try:
            self._session.flush()
        except StaleDataError as exc:
            logger.warning(
                "request_version_conflict",
                extra={"request_no": request_no, "expected_version": expected_version},
            )
            raise OptimisticLockError(
                "AssetRequest", entity_id, expected_version=expected_version,
            ) from exc
