from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, cast

from backend.app.services.category_matching import score_category_match
from backend.app.services.sync_errors import ExternalFormatError

LOGGER = logging.getLogger("awards_catalog.imdb_event")

NEXT_DATA_MARKER = '<script id="__NEXT_DATA__" type="application/json">'
SCRIPT_CLOSE_TAG = "</script>"


@dataclass(frozen=True)
class ImdbAwardedTitle:
    imdb_id: str | None
    title_text: str | None
    original_title_text: str | None


@dataclass(frozen=True)
class ImdbNominationEntry:
    titles: list[ImdbAwardedTitle]
    is_winner: bool
    notes: object


@dataclass(frozen=True)
class ImdbCategorySection:
    category_label: str | None
    award_label: str | None
    entries: list[ImdbNominationEntry]

    @property
    def label(self) -> str | None:
        if self.category_label is not None:
            return self.category_label
        return self.award_label


@dataclass(frozen=True)
class ImdbEventPayload:
    sections: list[ImdbCategorySection] = field(default_factory=list)


@dataclass(frozen=True)
class ExternalNominationRecord:
    imdb_id: str | None
    title: str | None
    original_title: str | None
    is_winner: bool
    note: str | None


@dataclass(frozen=True)
class CategoryMatch:
    section: ImdbCategorySection
    score: int


def extract_next_data_json(html: str) -> str:
    marker_index = html.find(NEXT_DATA_MARKER)
    if marker_index == -1:
        raise ExternalFormatError(
            "IMDb event page format is not supported (missing __NEXT_DATA__ payload)"
        )
    start_index = marker_index + len(NEXT_DATA_MARKER)
    end_index = html.find(SCRIPT_CLOSE_TAG, start_index)
    if end_index == -1:
        raise ExternalFormatError(
            "IMDb event page format is not supported (unterminated __NEXT_DATA__ payload)"
        )
    return html[start_index:end_index]


def parse_event_html(html: str) -> ImdbEventPayload:
    raw_json = extract_next_data_json(html)
    try:
        parsed = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        LOGGER.warning("failed to parse imdb __NEXT_DATA__ payload error=%s", exc)
        raise ExternalFormatError("Failed to parse IMDb event payload") from exc
    return parse_event_payload(parsed)


def parse_event_payload(data: object) -> ImdbEventPayload:
    """
    Flatten the IMDb edition payload into category sections in document order.

    Every level is optional in the source document; missing or mistyped values
    fall back to empty lists, None labels and a False winner flag.
    """
    edition = _dig(data, "props", "pageProps", "edition")
    sections: list[ImdbCategorySection] = []
    for award in _as_dict_list(_dig(edition, "awards")):
        award_label = _non_blank(award.get("text"))
        for edge in _as_dict_list(_dig(award, "nominationCategories", "edges")):
            node = _as_dict(edge.get("node"))
            if node is None:
                continue
            sections.append(
                ImdbCategorySection(
                    category_label=_non_blank(_dig(node, "category", "text")),
                    award_label=award_label,
                    entries=_parse_entries(node),
                )
            )
    return ImdbEventPayload(sections=sections)


def select_category_section(
    payload: ImdbEventPayload,
    target_names: set[str],
) -> CategoryMatch | None:
    best_match: CategoryMatch | None = None
    for section in payload.sections:
        label = section.label
        if label is None:
            continue
        score = score_category_match(label, target_names)
        if score is None:
            continue
        # Equal scores keep the earlier section.
        if best_match is None or score < best_match.score:
            best_match = CategoryMatch(section=section, score=score)
            if score == 0:
                break
    return best_match


def extract_nominations(section: ImdbCategorySection) -> list[ExternalNominationRecord]:
    records: list[ExternalNominationRecord] = []
    for entry in section.entries:
        first_title = entry.titles[0] if entry.titles else None
        imdb_id = first_title.imdb_id if first_title is not None else None
        title_text = first_title.title_text if first_title is not None else None
        original_title = first_title.original_title_text if first_title is not None else None
        records.append(
            ExternalNominationRecord(
                imdb_id=imdb_id,
                title=title_text if title_text is not None else original_title,
                original_title=original_title,
                is_winner=entry.is_winner,
                note=extract_note_text(entry.notes),
            )
        )
    return records


def extract_note_text(note: object) -> str | None:
    if isinstance(note, str):
        return _non_blank(note)

    note_dict = _as_dict(note)
    if note_dict is None:
        return None
    plain_text = note_dict.get("plainText")
    if not isinstance(plain_text, str):
        plain_text = _dig(note_dict, "value", "plainText")
    if isinstance(plain_text, str):
        return _non_blank(plain_text)
    return None


def _parse_entries(category_node: dict[str, Any]) -> list[ImdbNominationEntry]:
    entries: list[ImdbNominationEntry] = []
    for edge in _as_dict_list(_dig(category_node, "nominations", "edges")):
        node = _as_dict(edge.get("node"))
        if node is None:
            continue
        titles: list[ImdbAwardedTitle] = []
        for award_title in _as_dict_list(_dig(node, "awardedEntities", "awardTitles")):
            title = _as_dict(award_title.get("title")) or {}
            titles.append(
                ImdbAwardedTitle(
                    imdb_id=_non_blank(title.get("id")),
                    title_text=_non_blank(_dig(title, "titleText", "text")),
                    original_title_text=_non_blank(_dig(title, "originalTitleText", "text")),
                )
            )
        entries.append(
            ImdbNominationEntry(
                titles=titles,
                is_winner=bool(node.get("isWinner")),
                notes=node.get("notes"),
            )
        )
    return entries


def _dig(value: object, *keys: str) -> object:
    current = value
    for key in keys:
        current_dict = _as_dict(current)
        if current_dict is None:
            return None
        current = current_dict.get(key)
    return current


def _as_dict(value: object) -> dict[str, Any] | None:
    if not isinstance(value, dict):
        return None
    raw_dict = cast(dict[object, object], value)
    return {key: item for key, item in raw_dict.items() if isinstance(key, str)}


def _as_dict_list(value: object) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    items: list[dict[str, Any]] = []
    for item in cast(list[object], value):
        item_dict = _as_dict(item)
        if item_dict is not None:
            items.append(item_dict)
    return items


def _non_blank(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None
