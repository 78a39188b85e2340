"""
Index synchronization.

Rebuilds index contents from the authoritative store. Projection failures
and engine rejections are counted per document; nothing is retried here.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional

from loguru import logger

from ngurra_search.catalog import IndexCatalog
from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.engine.writer import DocumentWriter
from ngurra_search.exceptions import ProjectionError, StoreError, UnknownContentTypeError
from ngurra_search.schemas.documents import IndexableDocument
from ngurra_search.schemas.outcomes import BulkWriteOutcome, WriteResult, WriteStatus
from ngurra_search.store.base import RecordStore


class SyncJob:
    """
    Full and single-record resynchronization.

    Every record is indexed, active or not, so deactivations reach the
    index; the query-side active filter hides inactive documents.
    """

    def __init__(
        self,
        store: RecordStore,
        catalog: IndexCatalog,
        writer: DocumentWriter,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.writer = writer
        self.settings = settings or default_settings

    def resync(self, content_type) -> BulkWriteOutcome:
        """
        Re-project and bulk index every record of one content type.

        Args:
            content_type: Content type key

        Returns:
            BulkWriteOutcome covering every record read from the store

        Raises:
            UnknownContentTypeError: If the content type is not in the catalog
            StoreError: If the store cannot be read
        """
        definition = self.catalog.resolve(content_type)
        profile = definition.profile
        logger.info(f"Resync started: {definition.key.value}")

        projection_failures = BulkWriteOutcome()
        documents: List[IndexableDocument] = []

        for record in self.store.fetch_records(definition.key):
            try:
                documents.append(profile.project(record))
            except ProjectionError as e:
                logger.warning(str(e))
                projection_failures.record_failure(str(e.record_id), e.reason)

        outcome = projection_failures.merge(self.writer.bulk_index(definition.key, documents))

        logger.info(
            f"Resync finished: {definition.key.value} "
            f"({outcome.succeeded} indexed, {outcome.failed} failed)"
        )
        return outcome

    def resync_all(self) -> Dict[str, BulkWriteOutcome]:
        """
        Resync every content type concurrently (up to max_workers threads).

        A content type whose store read fails is logged and left out of the
        result.

        Returns:
            Outcomes keyed by content type key
        """
        outcomes: Dict[str, BulkWriteOutcome] = {}
        workers = max(1, min(self.settings.max_workers, len(self.catalog)))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.resync, content_type): content_type
                for content_type in self.catalog.content_types
            }

            for future in as_completed(futures):
                content_type = futures[future]
                try:
                    outcomes[content_type.value] = future.result()
                except StoreError as e:
                    logger.error(f"Resync of {content_type.value} failed: {e}")

        return outcomes

    def reindex_record(self, content_type, record_id) -> WriteResult:
        """
        Bring one document in line with its record.

        Re-projects and upserts the record, or deletes the document when the
        record no longer exists.

        Args:
            content_type: Content type key
            record_id: Primary key of the record

        Returns:
            WriteResult of the upsert or delete
        """
        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return WriteResult(
                status=WriteStatus.UNKNOWN_CONTENT_TYPE,
                content_type=str(content_type),
                document_id=str(record_id),
                reason=str(e),
            )

        try:
            record = self.store.fetch_record(definition.key, record_id)
        except StoreError as e:
            logger.error(f"Reindex of {definition.key.value}/{record_id} failed: {e}")
            return WriteResult(
                status=WriteStatus.FAILED,
                content_type=definition.key.value,
                document_id=str(record_id),
                reason=str(e),
            )

        if record is None:
            logger.info(f"Record {definition.key.value}/{record_id} is gone, removing document")
            return self.writer.delete_document(definition.key, record_id)

        try:
            document = definition.profile.project(record)
        except ProjectionError as e:
            logger.warning(str(e))
            return WriteResult(
                status=WriteStatus.FAILED,
                content_type=definition.key.value,
                document_id=str(record_id),
                reason=e.reason,
            )

        return self.writer.index_document(definition.key, document.id, document.body)
