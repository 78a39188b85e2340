"""
Document writer.

Single-document upserts wait for visibility; bulk upserts trade that for
throughput and refresh once at the end. Every write is a full-document
replace keyed by the record's primary key, so last write wins.
"""

from typing import Any, Iterable, List, Mapping, Optional, Union

from elasticsearch import NotFoundError
from loguru import logger
from pydantic import ValidationError as SchemaValidationError

from ngurra_search.catalog import IndexCatalog
from ngurra_search.config import Settings, settings as default_settings
from ngurra_search.engine.connection import ENGINE_ERRORS, ConnectionManager, as_dict
from ngurra_search.exceptions import UnknownContentTypeError
from ngurra_search.schemas.documents import IndexableDocument
from ngurra_search.schemas.outcomes import BulkWriteOutcome, WriteResult, WriteStatus

UNAVAILABLE_REASON = "search engine unavailable"
INVALID_REASON = "invalid document"


def content_type_key(content_type) -> str:
    return getattr(content_type, "value", str(content_type))


def chunked(items: List[Any], size: int) -> Iterable[List[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class DocumentWriter:
    """
    Upserts and deletes index documents.

    Failures are reported through WriteResult / BulkWriteOutcome; nothing
    here raises on engine errors.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        catalog: IndexCatalog,
        settings: Optional[Settings] = None,
    ):
        self.connection = connection
        self.catalog = catalog
        self.settings = settings or default_settings

    def _result(self, status: WriteStatus, content_type, document_id, reason=None) -> WriteResult:
        return WriteResult(
            status=status,
            content_type=content_type_key(content_type),
            document_id=str(document_id),
            reason=reason,
        )

    def index_document(self, content_type, document_id, document: Mapping[str, Any]) -> WriteResult:
        """
        Upsert one document and wait until it is visible to search.

        Args:
            content_type: Content type key
            document_id: Authoritative record id
            document: Projected document body

        Returns:
            WriteResult (truthy on success)
        """
        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return self._result(WriteStatus.UNKNOWN_CONTENT_TYPE, content_type, document_id, str(e))

        if not isinstance(document, Mapping):
            return self._result(WriteStatus.FAILED, content_type, document_id, INVALID_REASON)

        es = self.connection.get_client()
        if es is None:
            return self._result(WriteStatus.UNAVAILABLE, content_type, document_id, UNAVAILABLE_REASON)

        try:
            es.index(
                index=definition.physical_name,
                id=str(document_id),
                document=dict(document),
                refresh="wait_for",
            )
        except ENGINE_ERRORS as e:
            self.connection.report_failure(e)
            logger.error(f"Failed to index document {content_type_key(content_type)}/{document_id}: {e}")
            return self._result(WriteStatus.FAILED, content_type, document_id, str(e))

        return self._result(WriteStatus.SUCCESS, content_type, document_id)

    def bulk_index(
        self,
        content_type,
        documents: Iterable[Union[IndexableDocument, Mapping[str, Any]]],
    ) -> BulkWriteOutcome:
        """
        Upsert documents in fixed-size batches with per-item accounting.

        A failed batch counts every document in it as failed and the next
        batch is still submitted. One refresh is issued after the last batch.

        Args:
            content_type: Content type key
            documents: IndexableDocuments, or mappings carrying an "id" key

        Returns:
            BulkWriteOutcome where succeeded + failed == len(documents)
        """
        outcome = BulkWriteOutcome()
        prepared: List[IndexableDocument] = []

        for raw in documents:
            if not isinstance(raw, (IndexableDocument, Mapping)):
                logger.warning(f"Bulk index skipped a {type(raw).__name__}, expected a document")
                outcome.record_failure("None", INVALID_REASON)
                continue
            try:
                prepared.append(self._coerce(raw))
            except SchemaValidationError as e:
                raw_id = raw.get("id") if isinstance(raw, Mapping) else None
                outcome.record_failure(str(raw_id), f"{INVALID_REASON}: {e.errors()[0]['msg']}")

        if not prepared:
            return outcome

        ids = [doc.id for doc in prepared]

        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return outcome.merge(BulkWriteOutcome.all_failed(ids, str(e)))

        es = self.connection.get_client()
        if es is None:
            logger.warning(f"Bulk index skipped for {definition.key.value}: {UNAVAILABLE_REASON}")
            return outcome.merge(BulkWriteOutcome.all_failed(ids, UNAVAILABLE_REASON))

        for batch in chunked(prepared, max(self.settings.bulk_batch_size, 1)):
            operations: List[Mapping[str, Any]] = []
            for doc in batch:
                operations.append({"index": {"_index": definition.physical_name, "_id": doc.id}})
                operations.append(doc.body)

            try:
                response = as_dict(es.bulk(operations=operations, refresh=False))
            except ENGINE_ERRORS as e:
                self.connection.report_failure(e)
                logger.error(f"Bulk index batch failed ({len(batch)} documents): {e}")
                for doc in batch:
                    outcome.record_failure(doc.id, f"batch failed: {e}")
                continue

            self._account_batch(batch, response, outcome)

        try:
            es.indices.refresh(index=definition.physical_name)
        except ENGINE_ERRORS as e:
            self.connection.report_failure(e)
            logger.warning(f"Refresh after bulk index failed for {definition.physical_name}: {e}")

        logger.info(
            f"Bulk indexed {definition.key.value}: {outcome.succeeded} succeeded, "
            f"{outcome.failed} failed"
        )
        return outcome

    def _account_batch(
        self,
        batch: List[IndexableDocument],
        response: Mapping[str, Any],
        outcome: BulkWriteOutcome,
    ) -> None:
        """Per-item success/failure from a bulk response"""
        if not response.get("errors"):
            outcome.record_success(len(batch))
            return

        items = response.get("items") or []
        for position, doc in enumerate(batch):
            if position >= len(items):
                outcome.record_failure(doc.id, "missing item in bulk response")
                continue

            action = items[position].get("index") or next(iter(items[position].values()), {})
            error = action.get("error")
            if error:
                reason = error.get("reason") or error.get("type") if isinstance(error, dict) else str(error)
                logger.warning(f"Bulk index item failed: {doc.id}: {reason}")
                outcome.record_failure(doc.id, str(reason))
            else:
                outcome.record_success()

    @staticmethod
    def _coerce(raw: Union[IndexableDocument, Mapping[str, Any]]) -> IndexableDocument:
        if isinstance(raw, IndexableDocument):
            return raw
        body = {key: value for key, value in raw.items() if key != "id"}
        return IndexableDocument(id=raw.get("id"), body=body)

    def delete_document(self, content_type, document_id) -> WriteResult:
        """
        Remove a document. "Not found" counts as success.

        Args:
            content_type: Content type key
            document_id: Authoritative record id

        Returns:
            WriteResult (truthy on success)
        """
        try:
            definition = self.catalog.resolve(content_type)
        except UnknownContentTypeError as e:
            logger.error(str(e))
            return self._result(WriteStatus.UNKNOWN_CONTENT_TYPE, content_type, document_id, str(e))

        es = self.connection.get_client()
        if es is None:
            return self._result(WriteStatus.UNAVAILABLE, content_type, document_id, UNAVAILABLE_REASON)

        try:
            es.delete(index=definition.physical_name, id=str(document_id), refresh="wait_for")
        except NotFoundError:
            logger.debug(f"Delete of missing document {definition.key.value}/{document_id}")
        except ENGINE_ERRORS as e:
            self.connection.report_failure(e)
            logger.error(f"Failed to delete document {definition.key.value}/{document_id}: {e}")
            return self._result(WriteStatus.FAILED, content_type, document_id, str(e))

        return self._result(WriteStatus.SUCCESS, content_type, document_id)
