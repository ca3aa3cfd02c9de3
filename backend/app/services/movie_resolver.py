from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from backend.app.repositories.movie_repository import (
    CatalogMovie,
    DuplicateMovieError,
    MovieRepository,
)
from backend.app.services.sync_errors import MovieCreationError
from backend.app.services.tmdb_metadata_service import (
    MovieMetadataProvider,
    TmdbApiError,
    TmdbMovieMetadata,
    TmdbMovieNotFoundError,
    TmdbNotConfiguredError,
)

LOGGER = logging.getLogger("awards_catalog.movie_resolver")

IMDB_ID_PATTERN = re.compile(r"^tt\d+$")
TMDB_POSTER_WIDTH = 500
TMDB_POSTER_HEIGHT = 750


@dataclass
class ResolutionCache:
    """IMDb id to catalog movie mapping scoped to a single sync call."""

    movies_by_imdb_id: dict[str, CatalogMovie] = field(default_factory=dict)

    def get(self, imdb_id: str) -> CatalogMovie | None:
        return self.movies_by_imdb_id.get(imdb_id)

    def store(self, imdb_id: str, movie: CatalogMovie) -> None:
        self.movies_by_imdb_id[imdb_id] = movie


@dataclass(frozen=True)
class ResolvedMovie:
    movie: CatalogMovie
    created: bool


class MovieResolver:
    def __init__(
        self,
        *,
        movie_repository: MovieRepository,
        metadata_provider: MovieMetadataProvider,
    ) -> None:
        self._movie_repository = movie_repository
        self._metadata_provider = metadata_provider

    def resolve_imdb_id(
        self,
        imdb_id: str,
        *,
        cache: ResolutionCache,
        fallback_title: str | None = None,
    ) -> ResolvedMovie:
        cached = cache.get(imdb_id)
        if cached is not None:
            return ResolvedMovie(movie=cached, created=False)

        existing = self._movie_repository.get_by_imdb_id(imdb_id)
        if existing is not None:
            cache.store(imdb_id, existing)
            return ResolvedMovie(movie=existing, created=False)

        try:
            creation = self.create_movie_from_imdb_id(imdb_id, fallback_title=fallback_title)
        except (TmdbNotConfiguredError, TmdbMovieNotFoundError) as exc:
            LOGGER.info(
                "tmdb metadata unavailable; creating bare movie imdb_id=%s reason=%s",
                imdb_id,
                exc,
            )
            creation = self.create_movie_from_imdb_id(
                imdb_id,
                fetch_metadata=False,
                fallback_title=fallback_title,
            )

        cache.store(imdb_id, creation.movie)
        return creation

    def create_movie_from_imdb_id(
        self,
        imdb_id: str,
        *,
        fetch_metadata: bool = True,
        fallback_title: str | None = None,
    ) -> ResolvedMovie:
        """
        Create a catalog movie for an IMDb id, enriched from TMDB when requested.

        TmdbNotConfiguredError and TmdbMovieNotFoundError propagate unchanged so the
        caller can retry with `fetch_metadata=False`; every other failure surfaces
        as MovieCreationError.
        """
        normalized_imdb_id = imdb_id.strip()
        if not normalized_imdb_id:
            raise MovieCreationError("IMDb ID is required", imdb_id=None)
        if IMDB_ID_PATTERN.match(normalized_imdb_id) is None:
            raise MovieCreationError("Invalid IMDb ID format", imdb_id=normalized_imdb_id)

        metadata: TmdbMovieMetadata | None = None
        if fetch_metadata:
            try:
                metadata = self._metadata_provider.find_movie_by_imdb_id(normalized_imdb_id)
            except TmdbApiError as exc:
                raise MovieCreationError(str(exc), imdb_id=normalized_imdb_id) from exc

            owner = self._movie_repository.get_by_tmdb_id(metadata.tmdb_id)
            if owner is not None and owner.imdb_id != normalized_imdb_id:
                raise MovieCreationError(
                    "TMDB ID already exists for another movie",
                    imdb_id=normalized_imdb_id,
                )

        try:
            outcome = self._movie_repository.create_or_get_by_imdb_id(
                imdb_id=normalized_imdb_id,
                tmdb_id=metadata.tmdb_id if metadata is not None else None,
                year=metadata.year if metadata is not None else None,
                original_language=metadata.original_language if metadata is not None else None,
                release_date=metadata.release_date if metadata is not None else None,
            )
        except DuplicateMovieError as exc:
            raise MovieCreationError(str(exc), imdb_id=normalized_imdb_id) from exc

        if not outcome.created:
            LOGGER.info(
                "movie already existed at insert time imdb_id=%s movie_uid=%s",
                normalized_imdb_id,
                outcome.movie.uid,
            )
            return ResolvedMovie(movie=outcome.movie, created=False)

        posters_added = 0
        translations_added = 0
        if metadata is not None:
            posters_added = self._add_tmdb_poster(outcome.movie, metadata)
            translations_added = self._add_tmdb_translations(outcome.movie, metadata)
        elif fallback_title is not None and fallback_title.strip():
            if self._movie_repository.add_title_translation(
                movie_uid=outcome.movie.uid,
                language_code="en",
                content=fallback_title.strip(),
                is_default=True,
            ):
                translations_added += 1

        LOGGER.info(
            "movie created imdb_id=%s movie_uid=%s tmdb_id=%s posters=%s translations=%s",
            normalized_imdb_id,
            outcome.movie.uid,
            outcome.movie.tmdb_id,
            posters_added,
            translations_added,
        )
        return ResolvedMovie(movie=outcome.movie, created=True)

    def _add_tmdb_poster(self, movie: CatalogMovie, metadata: TmdbMovieMetadata) -> int:
        poster_url = metadata.poster_url
        if poster_url is None:
            return 0
        added = self._movie_repository.add_poster_url(
            movie_uid=movie.uid,
            url=poster_url,
            width=TMDB_POSTER_WIDTH,
            height=TMDB_POSTER_HEIGHT,
            language_code="en",
            source_type="tmdb",
        )
        return 1 if added else 0

    def _add_tmdb_translations(self, movie: CatalogMovie, metadata: TmdbMovieMetadata) -> int:
        added = 0
        if metadata.original_language == "ja" and metadata.original_title is not None:
            if self._movie_repository.add_title_translation(
                movie_uid=movie.uid,
                language_code="ja",
                content=metadata.original_title,
                is_default=True,
            ):
                added += 1

        for translation in metadata.translations:
            if self._movie_repository.add_title_translation(
                movie_uid=movie.uid,
                language_code=translation.language_code,
                content=translation.title,
                is_default=translation.language_code == metadata.original_language,
            ):
                added += 1
        return added
