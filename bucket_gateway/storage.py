"""Read access to objects in a Cloud Storage bucket.

Opening an object yields an :class:`OpenResult` tagged with an
:class:`OpenStatus` so callers can tell a missing object apart from every
other failure without inspecting exception types themselves.
"""
import enum
import logging
from dataclasses import dataclass
from typing import IO, Optional

from google.api_core.exceptions import NotFound
from google.cloud import storage

log = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
CHUNK_SIZE = 256 * 1024


class OpenStatus(enum.Enum):
    FOUND = "found"
    MISSING = "missing"
    ERROR = "error"


@dataclass
class OpenResult:
    status: OpenStatus
    reader: Optional[IO[bytes]] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    error: Optional[Exception] = None

    @classmethod
    def found(cls, reader: IO[bytes], content_type: Optional[str] = None) -> "OpenResult":
        return cls(OpenStatus.FOUND, reader=reader,
                   content_type=content_type or DEFAULT_CONTENT_TYPE)

    @classmethod
    def missing(cls, error: Exception) -> "OpenResult":
        return cls(OpenStatus.MISSING, error=error)

    @classmethod
    def failed(cls, error: Exception) -> "OpenResult":
        return cls(OpenStatus.ERROR, error=error)


class GCSBlobStore:
    """Opens objects for reading with google-cloud-storage.

    One ``storage.Client`` is shared by every request; the library's client
    is safe to use from several threads.
    """

    def __init__(self, client: Optional[storage.Client] = None, chunk_size: int = CHUNK_SIZE):
        self.client = client if client is not None else storage.Client()
        self.chunk_size = chunk_size

    def open_for_read(self, bucket_name: str, object_name: str) -> OpenResult:
        blob = self.client.bucket(bucket_name).blob(object_name)
        try:
            # Load metadata first so a missing object surfaces here and the
            # reader is pinned to the generation we saw.
            blob.reload()
            reader = blob.open("rb", chunk_size=self.chunk_size)
        except NotFound as ex:
            return OpenResult.missing(ex)
        except Exception as ex:
            log.debug("open_for_read(%s) failed: %s", object_name, ex)
            return OpenResult.failed(ex)
        return OpenResult.found(reader, blob.content_type)

    def close(self):
        self.client.close()
