from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

BEST_PICTURE_SYNONYMS: tuple[str, ...] = (
    "best film",
    "best picture",
    "best motion picture",
    "best motion picture of the year",
    "picture of the year",
    "outstanding picture",
    "outstanding production",
    "outstanding motion picture",
)

JAPANESE_BEST_FILM_MARKERS: tuple[str, ...] = (
    "優秀作品賞",
    "最優秀作品賞",
    "最優秀作品",
    "作品賞",
    "最優秀日本作品賞",
    "最優秀日本映画賞",
)

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_TRANSLATION = str.maketrans(
    {
        "’": "'",
        "（": "(",
        "）": ")",
    }
)


def normalize_category_name(value: str) -> str:
    normalized = unicodedata.normalize("NFKC", value).lower()
    normalized = normalized.translate(_PUNCTUATION_TRANSLATION)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def score_category_match(candidate: str, target_names: Iterable[str]) -> int | None:
    """
    Score how closely a category label matches the normalized target names.

    0 is an exact match; otherwise the smallest length difference between the
    label and a target it contains or is contained by. None means no match.
    """
    normalized = normalize_category_name(candidate)
    targets = target_names if isinstance(target_names, (set, frozenset)) else set(target_names)
    if normalized in targets:
        return 0

    best: int | None = None
    for target in targets:
        if not target:
            continue
        if target in normalized or normalized in target:
            difference = abs(len(normalized) - len(target))
            if best is None or difference < best:
                best = difference
    return best


def expand_target_names(category_name: str) -> set[str]:
    normalized_target = normalize_category_name(category_name)
    if not normalized_target:
        return set()
    target_names = {normalized_target}
    synonyms = [normalize_category_name(synonym) for synonym in BEST_PICTURE_SYNONYMS]
    markers = [
        *(normalize_category_name(marker) for marker in JAPANESE_BEST_FILM_MARKERS),
        *synonyms,
    ]

    if any(_contains_either_way(normalized_target, marker) for marker in markers):
        target_names.update(synonyms)
        return target_names

    for synonym in synonyms:
        if _contains_either_way(normalized_target, synonym):
            target_names.add(synonym)
    return target_names


def _contains_either_way(left: str, right: str) -> bool:
    return left in right or right in left
