"""
Query execution and result mapping.

The executor runs query text against one collection and maps every returned
fragment to records. Store failures are logged and produce an empty result.
A fragment that is not well formed, holds a value that does not convert, or
holds values the record constructor rejects is logged and skipped; the
remaining fragments are still mapped. A record type that was never
registered, or that declares a field with no conversion rule, is a
programming error and always propagates, as does an empty collection path.
"""

import logging

from typing import Any, List, Optional

from ..exceptions import MalformedValueError, StoreError, XMLParsingError
from ..interfaces import StoreClientInterface
from ..mapping.converters import ensure_supported
from ..mapping.deserializer import XMLDeserializer
from ..models import QueryResult, ResultMode


class XQueryExecutor:
    """Runs queries through a store client and maps the fragments to records."""

    def __init__(self, store_client: StoreClientInterface,
                 deserializer: Optional[XMLDeserializer] = None):
        """
        Initialize the executor.

        Args:
            store_client: Store to run queries against
            deserializer: Deserializer to map fragments with; the default one consults the global registry
        """
        self.store_client = store_client
        self.deserializer = deserializer or XMLDeserializer()
        self.logger = logging.getLogger(__name__)

    def execute(self, query_text: str, collection_path: str, record_type: type,
                result_mode: ResultMode = ResultMode.ENTITY) -> List[Any]:
        """
        Run a query and return the mapped records.

        Args:
            query_text: XQuery text, usually from XQueryBuilder
            collection_path: Collection the query runs against
            record_type: Registered record class to map fragments to
            result_mode: ENTITY for whole records, PROJECTION for <result> rows

        Returns:
            Records in fragment order, then document order within each fragment;
            empty when the store fails

        Raises:
            NotSerializableError: If the type was never registered
            UnsupportedFieldTypeError: If the type declares a field with no conversion rule
            ValueError: If collection_path is empty
        """
        return self.execute_with_report(query_text, collection_path, record_type, result_mode).records

    def execute_with_report(self, query_text: str, collection_path: str, record_type: type,
                            result_mode: ResultMode = ResultMode.ENTITY) -> QueryResult:
        """
        Run a query and return the records together with fragment counters and error messages.

        Raises:
            NotSerializableError: If the type was never registered
            UnsupportedFieldTypeError: If the type declares a field with no conversion rule
            ValueError: If collection_path is empty
        """
        # Caller errors surface before any store round trip
        descriptor = self.deserializer.registry.require_serializable(record_type)
        ensure_supported(descriptor)
        if not collection_path or not collection_path.strip():
            raise ValueError("Collection path must not be empty")

        result = QueryResult()

        try:
            handle = self.store_client.resolve_collection(collection_path)
            fragments = self.store_client.submit_query(handle, query_text)
        except StoreError as e:
            self.logger.error(f"Error executing query on {collection_path}: {e}")
            self.logger.debug(f"Failed query: {query_text}")
            result.errors.append(str(e))
            return result

        result.fragments_total = len(fragments)

        for position, fragment in enumerate(fragments, start=1):
            source_id = fragment.source_id or f"fragment_{position}"
            try:
                records = self.deserializer.from_xml(fragment.content(), record_type, result_mode,
                                                     source_record_id=source_id)
            except (XMLParsingError, MalformedValueError) as e:
                self.logger.warning(f"Skipping fragment {source_id} for {record_type.__name__}: {e}")
                result.fragments_failed += 1
                result.errors.append(f"{source_id}: {e}")
                continue
            result.records.extend(records)

        if result.fragments_failed:
            self.logger.warning(
                f"{result.fragments_failed} of {result.fragments_total} fragment(s) could not be mapped "
                f"to {record_type.__name__}"
            )
        self.logger.info(
            f"Query on {collection_path} mapped {len(result.records)} {record_type.__name__} record(s) "
            f"from {result.fragments_total} fragment(s)"
        )
        return result
