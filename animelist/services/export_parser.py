"""
Export parser - MyAnimeList XML watch-history export to ImportEntry records.

Expected document:

    <myanimelist>
        <myinfo>...</myinfo>
        <anime>
            <series_animedb_id>1</series_animedb_id>
            <series_title><![CDATA[Cowboy Bebop]]></series_title>
            <series_type>TV</series_type>
            <series_episodes>26</series_episodes>
            <my_watched_episodes>26</my_watched_episodes>
            <my_start_date>0000-00-00</my_start_date>
            <my_finish_date>2019-03-01</my_finish_date>
            <my_score>9</my_score>
            <my_status>Completed</my_status>
            <my_rewatching>0</my_rewatching>
            <my_rewatching_ep>0</my_rewatching_ep>
        </anime>
        ...
    </myanimelist>
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any

from animelist.core.exceptions import ParseError
from animelist.schemas.imports import ImportEntry

logger = logging.getLogger(__name__)

ROOT_TAG = "myanimelist"
ENTRY_TAG = "anime"

# Export element -> ImportEntry field
FIELD_MAP: dict[str, str] = {
    "series_animedb_id": "mal_id",
    "series_title": "title",
    "series_type": "media_type",
    "series_episodes": "total_episodes",
    "my_watched_episodes": "watched_episodes",
    "my_score": "score",
    "my_status": "status_label",
    "my_start_date": "start_date",
    "my_finish_date": "finish_date",
    "my_rewatching": "rewatching",
    "my_rewatching_ep": "rewatch_count",
}


def _element_text(element: ET.Element, tag: str) -> str | None:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _entry_from_element(element: ET.Element) -> ImportEntry:
    raw: dict[str, Any] = {
        field: _element_text(element, tag) for tag, field in FIELD_MAP.items()
    }
    return ImportEntry.model_validate(raw)


def parse_export(document: str | bytes) -> list[ImportEntry]:
    """
    Parse a MAL XML export.

    Args:
        document: Raw XML text or bytes

    Returns:
        Entries in document order. A document with a single <anime> element
        yields a one-element list.

    Raises:
        ParseError: If the XML is malformed, the root is not <myanimelist>,
            or there are no <anime> entries
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise ParseError(f"Failed to parse XML: {e}") from e

    if root.tag != ROOT_TAG:
        raise ParseError(f"Invalid MAL XML format: expected <{ROOT_TAG}> root, got <{root.tag}>")

    elements = root.findall(ENTRY_TAG)
    if not elements:
        raise ParseError("Invalid MAL XML format: no anime data found")

    entries = [_entry_from_element(element) for element in elements]
    logger.debug(f"Parsed {len(entries)} entries from MAL export")
    return entries
