"""
Where file payloads live.

A record (attachment or report) keeps its bytes either inline as base64 in
file_data, or as an object key in file_path pointing into the owner's bucket.
"""
import base64
import binascii
from typing import Callable, Optional

from ..core.errors import NotFoundError
from ..core.logging import get_logger
from .object_storage import ObjectStorage

logger = get_logger(__name__)

ObjectStorageFactory = Callable[[object], Optional[ObjectStorage]]


def store_blob(
    data: bytes,
    file_name: str,
    content_type: str,
    storage: Optional[ObjectStorage],
) -> dict:
    """Return the file_data/file_path columns for a new record."""
    if storage is not None:
        key = storage.put(file_name, data, content_type)
        return {"file_data": None, "file_path": key}
    return {"file_data": base64.b64encode(data).decode("ascii"), "file_path": None}


def load_blob(record, storage: Optional[ObjectStorage]) -> bytes:
    """Bytes of a stored record; NotFoundError when the payload cannot be reached."""
    if record.file_path:
        if storage is None:
            logger.warning(f"Object storage unavailable for {type(record).__name__} {record.id}")
            raise NotFoundError("File content")
        return storage.get(record.file_path)
    if record.file_data is None:
        raise NotFoundError("File content")
    try:
        return base64.b64decode(record.file_data)
    except (binascii.Error, ValueError):
        logger.error(f"Corrupt inline payload for {type(record).__name__} {record.id}")
        raise NotFoundError("File content")


def delete_blob(record, storage: Optional[ObjectStorage]) -> None:
    """Remove an externally stored payload; inline payloads go with the row."""
    if not record.file_path:
        return
    if storage is None:
        logger.warning(
            f"Object storage unavailable, leaving {record.file_path} in place for {type(record).__name__} {record.id}"
        )
        return
    storage.delete(record.file_path)
