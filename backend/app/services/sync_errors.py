from __future__ import annotations


class AwardSyncError(Exception):
    pass


class SyncNotFoundError(AwardSyncError):
    pass


class SyncValidationError(AwardSyncError):
    pass


class ExternalFetchError(AwardSyncError):
    def __init__(self, message: str, *, status_code: int | None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExternalFormatError(AwardSyncError):
    pass


class NoCategoryMatchError(AwardSyncError):
    pass


class NoResolvableNominationsError(AwardSyncError):
    pass


class MovieCreationError(AwardSyncError):
    def __init__(self, message: str, *, imdb_id: str | None) -> None:
        super().__init__(message)
        self.imdb_id = imdb_id
