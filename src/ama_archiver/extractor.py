"""
Structural extraction for the link compendium and the AMA comment pages.

The compendium is a flat run of sibling paragraphs whose hierarchy is only
implied by order:

    <p><strong>content creator 1:</strong></p>
    <p><a href="...">fan name 1</a></p>
    <p><a href="...">fan name 2</a></p>
    <hr />
    <p><strong>content creator 2:</strong></p>
    <p><a href="...">fan name 3</a></p>

``extract_index`` walks those siblings and carries the current creator name
forward, emitting one ``IndexRecord`` per fan link. ``extract_body_texts``
pulls the question and answer out of a single comment permalink page.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, PageElement

from .config import BODY_SELECTOR, GROUP_TAG, ITEM_TAG, SEPARATOR
from .errors import FormatViolation, NotFoundError
from .models import EnrichedRecord, IndexRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoGroupYet:
    """No creator heading has been seen."""


@dataclass(frozen=True)
class InGroup:
    """Records emitted now belong to ``label``."""
    label: str


GroupState = Union[NoGroupYet, InGroup]


def strip_separator(text: str, separator: str = SEPARATOR) -> str:
    """
    Remove the trailing separator from a creator heading.

    Raises:
        FormatViolation: if the separator is missing or nothing is left
    """
    if not separator or not text.endswith(separator):
        raise FormatViolation(f"Group heading {text!r} does not end with {separator!r}")
    label = text[:-len(separator)]
    if not label:
        raise FormatViolation(f"Group heading {text!r} is empty once {separator!r} is removed")
    return label


def _find_start_marker(soup: BeautifulSoup, group_tag: str, start_marker: str) -> Tag:
    for node in soup.find_all(group_tag):
        if node.get_text() == start_marker:
            logger.debug("Start marker %r found", start_marker)
            return node
    raise NotFoundError(f"<{group_tag}> node containing {start_marker!r} not found")


def _first_content_child(node: Tag) -> Optional[PageElement]:
    """First child that is an element or non-blank text."""
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString) and not child.strip():
            continue
        return child
    return None


def _transition(
    state: GroupState, node: Tag, group_tag: str, separator: str
) -> Tuple[GroupState, Optional[IndexRecord]]:
    """Apply one heading or item node to the current group state."""
    if node.name == group_tag:
        return InGroup(strip_separator(node.get_text(), separator)), None
    return state, _make_record(state, node)


def _make_record(state: GroupState, node: Tag) -> IndexRecord:
    if not isinstance(state, InGroup):
        raise FormatViolation(f"Item {node.get_text()!r} appears before any group heading")
    href = node.get("href")
    if href is None:
        raise FormatViolation(f"Item {node.get_text()!r} has no href attribute")
    return IndexRecord(
        group_label=state.label,
        item_label=node.get_text(),
        reference_id=href,
    )


def extract_index(
    raw_html: str,
    start_marker: str,
    group_tag: str = GROUP_TAG,
    item_tag: str = ITEM_TAG,
    separator: str = SEPARATOR,
) -> List[IndexRecord]:
    """
    Reconstruct the creator/fan index from the compendium HTML.

    Args:
        raw_html: Full compendium page (or a fragment of it)
        start_marker: Exact text of the first creator heading, separator included
        group_tag: Tag name of creator headings
        item_tag: Tag name of fan links
        separator: Trailing character every creator heading must end with

    Returns:
        IndexRecords in document order, each holding the raw href as reference_id

    Raises:
        NotFoundError: the start marker is not in the document
        FormatViolation: a heading lacks its separator or an item lacks its href

    How it works:
        1. Find the first ``group_tag`` whose text equals ``start_marker``
        2. Walk the siblings that follow its parent, in document order
        3. A heading switches the current group; a link emits a record
        4. Anything else ends the walk with a warning (the compendium
           closes with unrelated trailing paragraphs)

    Why walk siblings instead of selecting every link?
        - The compendium also links to things that are not questions
          (the thread itself, other posts), before and after the list
        - A link only belongs to the heading above it, and sibling order
          is the only place that relation is recorded
        - Stopping at the first foreign node keeps trailing links out

    Siblings without content (``<hr />``) are passed over.

    Example:
        records = extract_index(html, "Daron Nefcy:")
        # [IndexRecord("Daron Nefcy", "VeronicaMewniFan", ".../evw3fne/?context=3"), ...]
    """
    # -------------------------------------------------------
    # STEP 1: Locate the first creator heading
    # -------------------------------------------------------
    soup = BeautifulSoup(raw_html, "lxml")
    marker = _find_start_marker(soup, group_tag, start_marker)

    # The start marker is itself the first heading
    state, _ = _transition(NoGroupYet(), marker, group_tag, separator)

    # -------------------------------------------------------
    # STEP 2: Walk the following paragraphs
    # -------------------------------------------------------
    # Each paragraph wraps one heading or one link. The state carries the
    # current creator from a heading to the links below it.
    records: List[IndexRecord] = []
    for sibling in marker.parent.find_next_siblings():
        child = _first_content_child(sibling)
        if child is None:
            continue
        kind = child.name if isinstance(child, Tag) else None
        if kind not in (group_tag, item_tag):
            logger.warning(
                "Unexpected node found, neither %s nor %s: %r. Stopping extraction.",
                group_tag, item_tag, kind or str(child)[:40],
            )
            break
        state, record = _transition(state, child, group_tag, separator)
        if record is not None:
            records.append(record)

    logger.info("Extracted %d index records", len(records))
    return records


def extract_body_texts(
    raw_html: str,
    record: EnrichedRecord,
    body_selector: str = BODY_SELECTOR,
) -> EnrichedRecord:
    """
    Fill ``record`` with the question and answer from a comment page.

    Body node 0 is the AMA's opening post and is skipped; node 1 is the
    fan's question and node 2 the creator's answer. Further nodes are
    logged and ignored. Fields whose node is missing are left untouched,
    so a partial page can be retried on the same record.
    """
    soup = BeautifulSoup(raw_html, "lxml")
    for position, node in enumerate(soup.select(body_selector)):
        if position == 0:
            continue
        elif position == 1:
            record.primary_text = node.get_text()
        elif position == 2:
            record.secondary_text = node.get_text()
        else:
            logger.warning("Extraneous node found for reference id %s", record.reference_id)
    return record
