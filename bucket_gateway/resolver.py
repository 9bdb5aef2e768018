"""Map request paths to bucket objects and stream them back."""
import logging
from typing import IO, Iterator, Optional

from flask import Request, Response

from .app_logging import log_request, loggable_request
from .storage import CHUNK_SIZE, OpenStatus

log = logging.getLogger(__name__)

INDEX_OBJECT = "index.html"


def object_name_for(path: str) -> str:
    """Object name to try first for ``path``.

    ``/`` is ``index.html``, ``/docs/`` is ``docs/index.html`` and
    ``/about`` is ``about``.
    """
    name = path[1:] if path.startswith("/") else path
    if not name:
        return INDEX_OBJECT
    if path.endswith("/"):
        name += INDEX_OBJECT
    return name


def fallback_name_for(name: str) -> str:
    return name + "/" + INDEX_OBJECT


def plain_response(reason: str, status: int) -> Response:
    return Response(reason, status=status, mimetype="text/plain")


class ObjectStream:
    """Response body that copies an object reader in chunks.

    The reader is closed when the body is exhausted, fails, or when the WSGI
    server closes the body without reading it all (client went away, HEAD).
    The request's log record is written from here since the outcome is only
    known once the copy ends.
    """

    def __init__(self, reader: IO[bytes], first_chunk: bytes, http_request: dict,
                 chunk_size: int = CHUNK_SIZE):
        self.reader = reader
        self.first_chunk = first_chunk
        self.http_request = http_request
        self.chunk_size = chunk_size
        self._started = False
        self._logged = False

    def _finish(self, status: int, error: Optional[BaseException] = None):
        if not self._logged:
            self._logged = True
            log_request(self.http_request, status, error)

    def __iter__(self) -> Iterator[bytes]:
        self._started = True
        try:
            chunk = self.first_chunk
            while chunk:
                yield chunk
                chunk = self.reader.read(self.chunk_size)
        except Exception as ex:
            # Headers are already out, the body just ends short.
            log.debug("stream of %s failed: %s", self.http_request.get("url"), ex)
            self._finish(500, ex)
        else:
            self._finish(200)
        finally:
            self.reader.close()

    def close(self):
        self.reader.close()
        if self._started:
            self._finish(500, ConnectionAbortedError("response closed before the body was sent"))
        else:
            self._finish(200)


class ObjectResolver:
    """Serves objects from one bucket, falling back to directory indexes."""

    def __init__(self, store, bucket: str, cache_control: Optional[str] = None,
                 chunk_size: int = CHUNK_SIZE):
        self.store = store
        self.bucket = bucket
        self.cache_control = cache_control
        self.chunk_size = chunk_size

    def serve(self, request: Request) -> Response:
        http_request = loggable_request(request)
        name = object_name_for(request.path)

        result = self.store.open_for_read(self.bucket, name)
        if result.status is OpenStatus.MISSING:
            if name == INDEX_OBJECT:
                log_request(http_request, 404, result.error)
                return plain_response("Not Found", 404)
            name = fallback_name_for(name)
            result = self.store.open_for_read(self.bucket, name)
            if result.status is not OpenStatus.FOUND:
                # Any failure of the fallback lookup is a 404.
                log_request(http_request, 404, result.error)
                return plain_response("Not Found", 404)
        elif result.status is OpenStatus.ERROR:
            log_request(http_request, 500, result.error)
            return plain_response("Internal Server Error", 500)

        reader = result.reader
        try:
            first_chunk = reader.read(self.chunk_size)
        except Exception as ex:
            reader.close()
            log_request(http_request, 500, ex)
            return plain_response("Internal Server Error", 500)

        headers = {}
        if self.cache_control:
            headers["Cache-Control"] = self.cache_control
        body = ObjectStream(reader, first_chunk, http_request, self.chunk_size)
        return Response(body, status=200, content_type=result.content_type, headers=headers)
