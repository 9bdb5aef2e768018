import logging
import sys
from typing import Optional

from flask import Request
from pythonjsonlogger.json import JsonFormatter

request_log = logging.getLogger("bucket_gateway.requests")


def setup_logger(level: str = "INFO"):
    logHandler = logging.StreamHandler(sys.stdout)
    formatter = JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                              rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
    logHandler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.addHandler(logHandler)
    logger.setLevel(level)


def loggable_request(request: Request) -> dict:
    """The request fields that are safe to log. Bodies and TLS state are left out."""
    environ = request.environ
    proto = environ.get("SERVER_PROTOCOL", "HTTP/1.1")
    try:
        major, minor = (int(part) for part in proto.split("/", 1)[1].split(".", 1))
    except (IndexError, ValueError):
        major, minor = 1, 1
    transfer_encoding = [
        value.strip() for value in request.headers.get("Transfer-Encoding", "").split(",")
        if value.strip()
    ]
    content_length = request.content_length
    return {
        "method": request.method,
        "url": request.url,
        "proto": proto,
        "proto_major": major,
        "proto_minor": minor,
        "content_length": -1 if content_length is None and transfer_encoding else (content_length or 0),
        "transfer_encoding": transfer_encoding,
        "close": request.headers.get("Connection", "").lower() == "close",
        "host": request.host,
        "remote_addr": request.remote_addr,
        "request_uri": environ.get("RAW_URI") or environ.get("REQUEST_URI") or request.full_path.rstrip("?"),
    }


def log_request(http_request: dict, status: int, error: Optional[BaseException] = None):
    """Write the single record that closes out a request."""
    if error is not None:
        request_log.error("failed_request", extra={
            "error": str(error) or error.__class__.__name__,
            "http_request": http_request,
            "status": status,
        })
    else:
        request_log.info("successful_request", extra={
            "http_request": http_request,
            "status": status,
        })
