from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from structlog.contextvars import bind_contextvars, reset_contextvars

from backend.app.dependencies import (
    get_award_repository,
    get_award_sync_service,
    get_nomination_repository,
)
from backend.app.models.award_contracts import (
    CeremonySyncRequest,
    CeremonySyncResponse,
    CeremonySyncStats,
    NominationListResponse,
    NominationView,
)
from backend.app.repositories.award_repository import AwardRepository
from backend.app.repositories.nomination_repository import NominationRepository
from backend.app.services.award_sync_service import AwardSyncService
from backend.app.services.sync_errors import (
    AwardSyncError,
    ExternalFetchError,
    ExternalFormatError,
    MovieCreationError,
    NoCategoryMatchError,
    NoResolvableNominationsError,
    SyncNotFoundError,
    SyncValidationError,
)

router = APIRouter()

_SYNC_ERROR_STATUS: tuple[tuple[type[AwardSyncError], int], ...] = (
    (SyncNotFoundError, 404),
    (SyncValidationError, 400),
    (ExternalFetchError, 502),
    (ExternalFormatError, 422),
    (NoCategoryMatchError, 422),
    (NoResolvableNominationsError, 422),
    (MovieCreationError, 500),
)


def sync_error_status(error: AwardSyncError) -> int:
    for error_type, status_code in _SYNC_ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


@router.post(
    "/admin/ceremonies/{ceremony_uid}/sync-imdb",
    response_model=CeremonySyncResponse,
    tags=["admin"],
    operation_id="admin_ceremony_sync_imdb",
)
def admin_ceremony_sync_imdb(
    ceremony_uid: str,
    request: CeremonySyncRequest,
    sync_service: Annotated[AwardSyncService, Depends(get_award_sync_service)],
    nomination_repository: Annotated[NominationRepository, Depends(get_nomination_repository)],
) -> CeremonySyncResponse:
    category_uid = request.category_uid or ""
    context_tokens = bind_contextvars(
        sync_ceremony_uid=ceremony_uid,
        sync_category_uid=category_uid,
    )
    try:
        try:
            result = sync_service.sync_ceremony_nominations(ceremony_uid, category_uid)
        except AwardSyncError as exc:
            raise HTTPException(status_code=sync_error_status(exc), detail=str(exc)) from exc

        nominations = nomination_repository.list_for_category(
            ceremony_uid=ceremony_uid.strip(),
            category_uid=category_uid.strip(),
        )
        return CeremonySyncResponse(
            success=True,
            stats=CeremonySyncStats.from_result(result),
            nominations=[NominationView.from_nomination(item) for item in nominations],
        )
    finally:
        reset_contextvars(**context_tokens)


@router.get(
    "/admin/ceremonies/{ceremony_uid}/nominations",
    response_model=NominationListResponse,
    tags=["admin"],
    operation_id="admin_ceremony_nominations_list",
)
def admin_ceremony_nominations_list(
    ceremony_uid: str,
    category_uid: Annotated[str, Query(min_length=1, max_length=120)],
    award_repository: Annotated[AwardRepository, Depends(get_award_repository)],
    nomination_repository: Annotated[NominationRepository, Depends(get_nomination_repository)],
) -> NominationListResponse:
    if award_repository.get_ceremony(ceremony_uid) is None:
        raise HTTPException(status_code=404, detail="Ceremony not found")
    if award_repository.get_category(category_uid) is None:
        raise HTTPException(status_code=404, detail="Category not found")

    nominations = nomination_repository.list_for_category(
        ceremony_uid=ceremony_uid,
        category_uid=category_uid,
    )
    return NominationListResponse(
        ceremony_uid=ceremony_uid,
        category_uid=category_uid,
        nominations=[NominationView.from_nomination(item) for item in nominations],
    )
