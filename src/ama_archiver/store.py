"""
SQLite persistence for the AMA archive using SQLAlchemy Core.

Two tables live in one database file:

- ``index``: one row per fan question listed in the compendium. No key:
  the compendium is known to list some comment ids twice and those rows are
  kept as-is.
- ``enriched``: question and answer text, keyed by reference id. A second
  insert for the same id is rejected instead of overwriting.

Every public method acquires its own connection from the engine and releases
it before returning, on success or failure. Nothing is held between calls.
Batch writes run inside a single transaction.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Set, Union

from sqlalchemy import Column, MetaData, Table, Text, create_engine, func, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import DuplicateKeyError, FetchIncompleteError, SchemaExistsError, StorageError
from .models import EnrichedRecord, IndexRecord

logger = logging.getLogger(__name__)


metadata = MetaData()

index_table = Table(
    "index",
    metadata,
    Column("reference_id", Text),
    Column("group_label", Text),
    Column("fan_label", Text),
)

enriched_table = Table(
    "enriched",
    metadata,
    Column("reference_id", Text, primary_key=True),
    Column("primary_text", Text, nullable=False),
    Column("secondary_text", Text, nullable=False),
)


class ArchiveStore:
    """
    File-backed store for index and enriched records.

    Usage:
        store = ArchiveStore("output/ama_archive.db")
        store.initialize(records)

        done = store.load_enriched_ids()
        store.save_enriched(EnrichedRecord("evw3fne", "question", "answer"))
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Create the engine for ``db_path``.

        Nothing is created on disk here. The parent directory is made by
        ``create_schema``, so read-only calls against a wrong path fail
        instead of leaving an empty database behind.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.engine = create_engine(f"sqlite:///{self.db_path}", echo=False)

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    # -------------------------------------------------------
    # SCHEMA
    # -------------------------------------------------------

    def _existing_tables(self) -> Set[str]:
        try:
            names = set(inspect(self.engine).get_table_names())
        except SQLAlchemyError as e:
            raise StorageError(f"Could not inspect {self.db_path}: {e}") from e
        return names & set(metadata.tables)

    def has_schema(self) -> bool:
        """True if both archive tables are present."""
        return self._existing_tables() == set(metadata.tables)

    def create_schema(self) -> None:
        """
        Create the ``index`` and ``enriched`` tables.

        Raises:
            SchemaExistsError: if either table is already present. Nothing is
                               created in that case, so an existing archive is
                               never touched.
            StorageError: for any other database failure
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        existing = self._existing_tables()
        if existing:
            raise SchemaExistsError(
                f"Table(s) {', '.join(sorted(existing))} already exist in '{self.db_path}'"
            )
        try:
            metadata.create_all(self.engine, checkfirst=False)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not create tables in '{self.db_path}': {e}") from e
        logger.info("Archive tables created in '%s'", self.db_path)

    def _drop_schema(self) -> None:
        try:
            metadata.drop_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not drop tables in '{self.db_path}': {e}") from e
        logger.info("Archive tables dropped from '%s'", self.db_path)

    def initialize(self, records: Iterable[IndexRecord]) -> int:
        """
        Create a fresh archive holding ``records`` as its index.

        Either both tables exist afterwards with every record saved, or the
        database is left without archive tables. A failed batch drops the
        tables it just created, so the next run can start over.

        Returns:
            Number of index rows inserted

        Raises:
            SchemaExistsError: an archive (or part of one) is already there
            StorageError: the tables or the rows could not be written
        """
        self.create_schema()
        try:
            return self.save_index(records)
        except StorageError:
            logger.error("Index batch failed, removing the new tables from '%s'", self.db_path)
            self._drop_schema()
            raise

    # -------------------------------------------------------
    # INDEX
    # -------------------------------------------------------

    def save_index(self, records: Iterable[IndexRecord]) -> int:
        """
        Insert every record in one transaction.

        Args:
            records: IndexRecords, normally already normalized to short ids

        Returns:
            Number of rows inserted

        Raises:
            StorageError: if any insert fails. The whole batch is rolled back.
        """
        count = 0
        try:
            with self.engine.begin() as conn:
                for record in records:
                    conn.execute(
                        index_table.insert().values(
                            reference_id=record.reference_id,
                            group_label=record.group_label,
                            fan_label=record.item_label,
                        )
                    )
                    count += 1
        except SQLAlchemyError as e:
            raise StorageError(
                f"Could not save index record #{count + 1}, batch rolled back: {e}"
            ) from e
        logger.info("Saved %d index records", count)
        return count

    def load_index(self) -> List[IndexRecord]:
        """Return every stored IndexRecord, in the order SQLite yields them."""
        query = select(
            index_table.c.reference_id,
            index_table.c.group_label,
            index_table.c.fan_label,
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load index from '{self.db_path}': {e}") from e
        return [
            IndexRecord(
                group_label=row.group_label,
                item_label=row.fan_label,
                reference_id=row.reference_id,
            )
            for row in rows
        ]

    def duplicate_reference_ids(self) -> Dict[str, List[IndexRecord]]:
        """
        Report index rows that share a reference id.

        The rows are returned for manual review only; nothing is corrected.

        Returns:
            Mapping of reference id to the IndexRecords carrying it
        """
        dupes = (
            select(index_table.c.reference_id)
            .group_by(index_table.c.reference_id)
            .having(func.count(index_table.c.reference_id) > 1)
        )
        query = (
            select(index_table.c.reference_id, index_table.c.group_label, index_table.c.fan_label)
            .where(index_table.c.reference_id.in_(dupes))
            .order_by(index_table.c.reference_id)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not query duplicates in '{self.db_path}': {e}") from e

        report: Dict[str, List[IndexRecord]] = {}
        for row in rows:
            report.setdefault(row.reference_id, []).append(
                IndexRecord(
                    group_label=row.group_label,
                    item_label=row.fan_label,
                    reference_id=row.reference_id,
                )
            )
        return report

    # -------------------------------------------------------
    # ENRICHED
    # -------------------------------------------------------

    def save_enriched(self, record: EnrichedRecord) -> None:
        """
        Insert one completed EnrichedRecord.

        Raises:
            FetchIncompleteError: question or answer text is still None
            DuplicateKeyError: the reference id is already stored
            StorageError: for any other database failure
        """
        if record.primary_text is None or record.secondary_text is None:
            raise FetchIncompleteError(record.reference_id)
        try:
            with self.engine.begin() as conn:
                conn.execute(enriched_table.insert().values(**record.to_dict()))
        except IntegrityError as e:
            raise DuplicateKeyError(record.reference_id) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Could not save {record.reference_id!r}: {e}") from e
        logger.debug("Saved enriched record %s", record.reference_id)

    def load_enriched(self) -> List[EnrichedRecord]:
        """Return every stored EnrichedRecord."""
        query = select(
            enriched_table.c.reference_id,
            enriched_table.c.primary_text,
            enriched_table.c.secondary_text,
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load enriched records from '{self.db_path}': {e}") from e
        return [
            EnrichedRecord(
                reference_id=row.reference_id,
                primary_text=row.primary_text,
                secondary_text=row.secondary_text,
            )
            for row in rows
        ]

    def load_enriched_ids(self) -> Set[str]:
        """Set of reference ids that already have an enriched record."""
        try:
            with self.engine.connect() as conn:
                return set(conn.execute(select(enriched_table.c.reference_id)).scalars())
        except SQLAlchemyError as e:
            raise StorageError(f"Could not load enriched ids from '{self.db_path}': {e}") from e

    def counts(self) -> Dict[str, int]:
        """Row count per table."""
        try:
            with self.engine.connect() as conn:
                return {
                    table.name: conn.execute(select(func.count()).select_from(table)).scalar_one()
                    for table in (index_table, enriched_table)
                }
        except SQLAlchemyError as e:
            raise StorageError(f"Could not count rows in '{self.db_path}': {e}") from e
