"""
eXist-db client over the REST interface.

The client is an explicit context object: construct it once at startup,
pass it to whatever needs the store, and close it at shutdown. Construction
validates the credentials and probes the root collection so a bad
configuration fails early.

For callers that want one shared instance per process, get_exist_client()
builds it lazily under a lock and reset_exist_client() closes and clears it.
"""

import logging
import threading

from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import requests

from lxml import etree

from ..config.config_manager import ExistConfig, get_config_manager
from ..exceptions import (
    CollectionNotFoundError,
    ConfigurationError,
    DocumentNotFoundError,
    StoreConnectionError,
    StoreSubmissionError,
    XMLParsingError,
)
from ..interfaces import StoreClientInterface
from ..models import CollectionHandle, RawFragment
from ..parsing.xml_parser import XMLParser


EXIST_NAMESPACE = "http://exist.sourceforge.net/NS/exist"
DB_ROOT = "/db"


class ExistDBClient(StoreClientInterface):
    """
    Store client for one eXist-db server.

    Query results are requested wrapped (_wrap=yes) so every item comes back
    as one child of <exist:result>; each child becomes one RawFragment.
    """

    def __init__(self, config: Optional[ExistConfig] = None,
                 session: Optional[requests.Session] = None,
                 verify_connection: bool = True):
        """
        Initialize the client.

        Args:
            config: Connection settings; read from the environment when omitted
            session: Optional preconfigured HTTP session
            verify_connection: Probe the root collection before returning

        Raises:
            ConfigurationError: If user or password is missing
            StoreConnectionError: If the root collection cannot be reached
        """
        self.logger = logging.getLogger(__name__)
        self.config = config or ExistConfig.from_environment()
        self._validate_credentials()

        self.session = session or requests.Session()
        self.session.auth = (self.config.user, self.config.password)
        self.parser = XMLParser()
        self._closed = False

        if verify_connection:
            self._probe_root_collection()

    def _validate_credentials(self) -> None:
        if not self.config.user:
            raise ConfigurationError("User must not be empty")
        if not self.config.password and not self.config.allow_empty_password:
            raise ConfigurationError("Password must not be empty")

    def _probe_root_collection(self) -> None:
        try:
            response = self._request('GET', DB_ROOT)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to reach eXist-db at {self.config.rest_url}: {e}")
            raise StoreConnectionError(f"Connection to eXist-db failed: {e}") from e

        if response.status_code in (401, 403):
            self.logger.error("Failed to open root collection: user unauthorized")
            raise StoreConnectionError(f"User '{self.config.user}' is not authorized on {self.config.url}")
        if response.status_code != 200:
            raise StoreConnectionError(f"Connection to eXist-db failed: HTTP {response.status_code}")

        self.logger.info(f"Connected to eXist-db at {self.config.url}")

    def _url(self, path: str) -> str:
        if not path.startswith('/'):
            path = '/' + path
        return self.config.rest_url + quote(path)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        if self._closed:
            raise StoreConnectionError("Client has been closed")
        return self.session.request(method, self._url(path), timeout=self.config.request_timeout, **kwargs)

    def test_connection(self) -> bool:
        """
        Test the connection by opening the root collection.

        Returns:
            True if the root collection answered, False otherwise
        """
        try:
            response = self._request('GET', DB_ROOT)
            success = response.status_code == 200
        except (requests.exceptions.RequestException, StoreConnectionError) as e:
            self.logger.warning(f"Connection test failed: {e}")
            return False

        self.logger.info(f"Connection test {'succeeded' if success else 'failed'}")
        return success

    def resolve_collection(self, collection_path: str) -> CollectionHandle:
        """
        Resolve a collection path.

        Raises:
            ValueError: If the path is empty
            CollectionNotFoundError: If the collection does not exist
            StoreConnectionError: If the server cannot be reached
        """
        if not collection_path or not collection_path.strip():
            raise ValueError("Collection path must not be empty")

        try:
            response = self._request('GET', collection_path)
        except requests.exceptions.RequestException as e:
            raise StoreConnectionError(f"Failed to retrieve collection {collection_path}: {e}") from e

        if response.status_code == 404:
            raise CollectionNotFoundError(collection_path)
        if response.status_code != 200:
            raise StoreConnectionError(
                f"Failed to retrieve collection {collection_path}: HTTP {response.status_code}"
            )

        self.logger.debug(f"Resolved collection {collection_path}")
        return CollectionHandle(path=collection_path, url=self._url(collection_path))

    def submit_query(self, handle: CollectionHandle, query_text: str) -> List[RawFragment]:
        """
        Run a query in the context of a resolved collection.

        Returns:
            One fragment per result item, in the order the server returned them

        Raises:
            StoreSubmissionError: If the request fails or the server rejects the query
        """
        params = {
            '_query': query_text,
            '_wrap': 'yes',
            '_howmany': str(self.config.max_results),
        }

        try:
            response = self._request('GET', handle.path, params=params)
        except requests.exceptions.RequestException as e:
            raise StoreSubmissionError(f"Query request failed: {e}", query_text) from e

        if response.status_code != 200:
            raise StoreSubmissionError(
                f"Query failed with HTTP {response.status_code}: {response.text[:500]}",
                query_text, response.status_code
            )

        try:
            root = self.parser.parse_xml_stream(response.text)
        except XMLParsingError as e:
            raise StoreSubmissionError(f"Unreadable query response: {e}", query_text,
                                       response.status_code) from e

        fragments = [
            RawFragment(payload=etree.tostring(child, encoding='unicode', with_tail=False),
                        source_id=f"{handle.path}#{position}")
            for position, child in enumerate(root.iterchildren(tag=etree.Element), start=1)
        ]

        hits = root.get(f"{{{EXIST_NAMESPACE}}}hits")
        if hits is not None and hits.isdigit() and int(hits) > len(fragments):
            self.logger.warning(
                f"Query matched {hits} items but only {len(fragments)} were returned "
                f"(max_results={self.config.max_results})"
            )

        self.logger.info(f"Query on {handle.path} returned {len(fragments)} fragment(s)")
        return fragments

    def create_collection(self, collection_path: str) -> CollectionHandle:
        """
        Create a collection under an existing parent; existing collections are left as they are.

        Raises:
            CollectionNotFoundError: If the parent collection does not exist
            StoreSubmissionError: If the server refuses to create it
        """
        parent_path, _, name = collection_path.rstrip('/').rpartition('/')
        parent_path = parent_path or DB_ROOT

        try:
            return self.resolve_collection(collection_path)
        except CollectionNotFoundError:
            pass

        parent = self.resolve_collection(parent_path)
        query = f"xmldb:create-collection('{parent.path}', '{name}')"
        try:
            response = self._request('GET', parent.path, params={'_query': query, '_wrap': 'no'})
        except requests.exceptions.RequestException as e:
            raise StoreSubmissionError(f"Failed to create collection {collection_path}: {e}", query) from e

        if response.status_code != 200:
            raise StoreSubmissionError(
                f"Failed to create collection {collection_path}: HTTP {response.status_code}",
                query, response.status_code
            )

        self.logger.info(f"Collection created: {collection_path}")
        return CollectionHandle(path=collection_path, url=self._url(collection_path))

    def store_document(self, collection_path: str, document_name: str,
                       document: Union[str, bytes, etree._Element]) -> None:
        """
        Store a document in an existing collection, replacing any document with the same name.

        Raises:
            CollectionNotFoundError: If the collection does not exist
            StoreSubmissionError: If the server refuses the document
        """
        self.resolve_collection(collection_path)

        if isinstance(document, etree._Element):
            body = etree.tostring(document, xml_declaration=True, encoding='UTF-8')
        elif isinstance(document, str):
            body = document.encode('utf-8')
        else:
            body = document

        path = f"{collection_path.rstrip('/')}/{document_name}"
        try:
            response = self._request('PUT', path, data=body,
                                     headers={'Content-Type': 'application/xml; charset=UTF-8'})
        except requests.exceptions.RequestException as e:
            raise StoreSubmissionError(f"Failed to store {document_name}: {e}") from e

        if response.status_code not in (200, 201, 204):
            self.logger.error(f"Error adding document to collection: {document_name} - HTTP {response.status_code}")
            raise StoreSubmissionError(f"Failed to store {document_name}: HTTP {response.status_code}",
                                       status_code=response.status_code)

        self.logger.info(f"Document stored: {path}")

    def update_document(self, collection_path: str, document_name: str,
                        document: Union[str, bytes, etree._Element]) -> None:
        """
        Replace the content of an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if not self.document_exists(collection_path, document_name):
            self.logger.warning(f"Document not found for update: {document_name}")
            raise DocumentNotFoundError(collection_path, document_name)
        self.store_document(collection_path, document_name, document)

    def get_document(self, collection_path: str, document_name: str) -> str:
        """
        Retrieve a document's content as text.

        Raises:
            CollectionNotFoundError: If the collection does not exist
            DocumentNotFoundError: If the document does not exist
        """
        self.resolve_collection(collection_path)

        path = f"{collection_path.rstrip('/')}/{document_name}"
        try:
            response = self._request('GET', path)
        except requests.exceptions.RequestException as e:
            raise StoreConnectionError(f"Failed to retrieve {path}: {e}") from e

        if response.status_code == 404:
            self.logger.warning(f"Document not found: {document_name}")
            raise DocumentNotFoundError(collection_path, document_name)
        if response.status_code != 200:
            raise StoreConnectionError(f"Failed to retrieve {path}: HTTP {response.status_code}")

        return response.text

    def delete_document(self, collection_path: str, document_name: str) -> bool:
        """
        Delete a document; a missing document is logged and reported as False.

        Raises:
            CollectionNotFoundError: If the collection does not exist
        """
        self.resolve_collection(collection_path)

        path = f"{collection_path.rstrip('/')}/{document_name}"
        try:
            response = self._request('DELETE', path)
        except requests.exceptions.RequestException as e:
            raise StoreSubmissionError(f"Failed to delete {path}: {e}") from e

        if response.status_code == 404:
            self.logger.warning(f"Document not found for deletion: {document_name}")
            return False
        if response.status_code not in (200, 204):
            raise StoreSubmissionError(f"Failed to delete {path}: HTTP {response.status_code}",
                                       status_code=response.status_code)

        self.logger.info(f"Document deleted: {path}")
        return True

    def document_exists(self, collection_path: str, document_name: str) -> bool:
        """
        Check whether a document exists in an existing collection.

        Raises:
            CollectionNotFoundError: If the collection does not exist
        """
        self.resolve_collection(collection_path)

        path = f"{collection_path.rstrip('/')}/{document_name}"
        try:
            response = self._request('HEAD', path)
        except requests.exceptions.RequestException as e:
            raise StoreConnectionError(f"Failed to check {path}: {e}") from e
        return response.status_code == 200

    def get_connection_info(self) -> Dict[str, Any]:
        return {
            'url': self.config.url,
            'rest_url': self.config.rest_url,
            'user': self.config.user,
            'max_results': self.config.max_results,
            'request_timeout': self.config.request_timeout,
            'closed': self._closed,
        }

    def close(self) -> None:
        """Release the HTTP session. Further calls raise StoreConnectionError."""
        if not self._closed:
            self.session.close()
            self._closed = True
            self.logger.info("eXist-db connection has been shut down")

    def __enter__(self) -> 'ExistDBClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


# Process-wide client instance
_global_client: Optional[ExistDBClient] = None
_global_client_lock = threading.Lock()


def get_exist_client(config: Optional[ExistConfig] = None) -> ExistDBClient:
    """
    Get the process-wide client, creating it on first use.

    Args:
        config: Connection settings; only used on first call. Defaults to the
            global configuration manager's settings.

    Returns:
        Shared ExistDBClient instance
    """
    global _global_client

    if _global_client is None:
        with _global_client_lock:
            if _global_client is None:
                _global_client = ExistDBClient(config or get_config_manager().get_exist_config())
    return _global_client


def reset_exist_client() -> None:
    """Close and clear the process-wide client so a new one can be created."""
    global _global_client

    with _global_client_lock:
        if _global_client is not None:
            _global_client.close()
        _global_client = None
