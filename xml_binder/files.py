"""
File helpers for writing records to and reading records from XML documents on disk.
"""

import logging

from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from .mapping.deserializer import XMLDeserializer
from .mapping.serializer import XMLSerializer
from .models import ResultMode


logger = logging.getLogger(__name__)


def write_records_to_file(records: Sequence[Any], path: Union[str, Path],
                          root_tag: Optional[str] = None,
                          serializer: Optional[XMLSerializer] = None) -> Path:
    """
    Serialize records of one registered type and write them as an XML document.

    Indentation and encoding follow the serializer's output settings, which
    default to the configured serialization parameters. Missing parent
    directories are created. An existing file is overwritten.

    Args:
        records: Non-empty sequence (or iterable) of records of one registered type
        path: Target file
        root_tag: Optional root element name; defaults to the collection tag
        serializer: Optional serializer carrying registry and output settings

    Returns:
        Path of the written file
    """
    serializer = serializer or XMLSerializer()
    root = serializer.to_xml(records, root_tag)
    document = serializer.document_to_bytes(root)

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(document)

    logger.info(f"Wrote {len(root)} record(s) to {target}")
    return target


def read_records_from_file(path: Union[str, Path], record_type: type,
                           result_mode: ResultMode = ResultMode.ENTITY,
                           deserializer: Optional[XMLDeserializer] = None) -> List[Any]:
    """
    Read an XML document from disk and map it to records.

    The file is decoded according to its XML declaration (UTF-8 when it has none).

    Raises:
        FileNotFoundError: If the file does not exist
        XMLParsingError: If the file is not well formed
        MalformedValueError: If an element's text does not fit its field's kind
    """
    source = Path(path)
    deserializer = deserializer or XMLDeserializer()

    payload = source.read_bytes()
    records = deserializer.from_xml(payload, record_type, result_mode, source_record_id=str(source))

    logger.info(f"Read {len(records)} {record_type.__name__} record(s) from {source}")
    return records
