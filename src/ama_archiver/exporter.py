"""
Export the archive as a browsable directory tree.

Output structure:
    {output_dir}/{creator}/{fan}_{reference_id}.json

Each file holds the creator, fan, reference id, comment URL, question and
answer. Index rows without an enriched record are not exported.
"""

import logging
from pathlib import Path
from typing import Set, Union

from .locator import LocatorCodec
from .store import ArchiveStore
from .utils import safe_name, write_json_atomic

logger = logging.getLogger(__name__)


def _unique_path(folder: Path, stem: str, used: Set[Path]) -> Path:
    """
    Return ``folder/stem.json``, or ``folder/stem_N.json`` if already used.

    Different fan names can clean to the same ``safe_name`` (``fan?`` and
    ``fan``), and the compendium lists some reference ids twice, so two rows
    may map to one file name.
    """
    path = folder / f"{stem}.json"
    suffix = 1
    while path in used:
        suffix += 1
        path = folder / f"{stem}_{suffix}.json"
    used.add(path)
    return path


def export_tree(store: ArchiveStore, codec: LocatorCodec, output_dir: Union[str, Path]) -> int:
    """
    Write one JSON file per enriched index row.

    Rows whose file name collides with one written earlier in the same
    export get a numeric suffix, so every row ends up in its own file.

    Returns:
        Number of files written
    """
    output_dir = Path(output_dir)
    enriched = {record.reference_id: record for record in store.load_enriched()}

    written = 0
    missing = 0
    used: Set[Path] = set()
    for index_record in store.load_index():
        record = enriched.get(index_record.reference_id)
        if record is None:
            missing += 1
            continue

        folder = output_dir / safe_name(index_record.group_label)
        folder.mkdir(parents=True, exist_ok=True)
        stem = f"{safe_name(index_record.item_label)}_{safe_name(index_record.reference_id)}"
        path = _unique_path(folder, stem, used)
        if path.stem != stem:
            logger.debug("File name %s.json already taken, writing %s", stem, path.name)

        write_json_atomic(path, {
            "creator": index_record.group_label,
            "fan": index_record.item_label,
            "reference_id": index_record.reference_id,
            "url": codec.to_locator(index_record.reference_id),
            "question": record.primary_text,
            "answer": record.secondary_text,
        })
        written += 1

    if missing:
        logger.warning("%d index records have no enriched text yet and were skipped", missing)
    logger.info("Exported %d records to '%s'", written, output_dir)
    return written
