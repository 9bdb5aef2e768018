"""Fixtures shared by the gateway tests.

The blob store and token validator are replaced by in-memory fakes so no
test talks to Google.
"""
import io
import logging

import pytest

from google.api_core.exceptions import Forbidden, NotFound

from bucket_gateway.app import create_app
from bucket_gateway.config import GatewayConfig
from bucket_gateway.iap import IAP_HEADER
from bucket_gateway.storage import OpenResult

BUCKET = "test-bucket"
AUDIENCE = "/projects/123/global/backendServices/456"
GOOD_TOKEN = "good-token"


class TrackingReader(io.BytesIO):
    """BytesIO that remembers it was closed."""

    closed_calls = 0

    def close(self):
        self.closed_calls += 1
        super().close()


class BrokenReader(TrackingReader):
    """Fails once ``fail_after`` bytes have been handed out."""

    def __init__(self, data: bytes, fail_after: int):
        super().__init__(data)
        self.fail_after = fail_after

    def read(self, size=-1):
        if self.tell() >= self.fail_after:
            raise ConnectionResetError("connection reset by peer")
        return super().read(min(size, self.fail_after - self.tell()))


class FakeStore:
    """Blob store backed by a dict of object name to bytes.

    ``errors`` maps object names to exceptions returned as ERROR results.
    """

    def __init__(self, objects=None, errors=None, readers=None):
        self.objects = dict(objects or {})
        self.errors = dict(errors or {})
        self.readers = dict(readers or {})
        self.calls = []
        self.opened = []

    def open_for_read(self, bucket_name, object_name):
        self.calls.append((bucket_name, object_name))
        if object_name in self.errors:
            return OpenResult.failed(self.errors[object_name])
        if object_name in self.readers:
            reader = self.readers[object_name]
        elif object_name in self.objects:
            reader = TrackingReader(self.objects[object_name])
        else:
            return OpenResult.missing(NotFound(f"No such object: {bucket_name}/{object_name}"))
        self.opened.append(reader)
        content_type = "text/html" if object_name.endswith(".html") else None
        return OpenResult.found(reader, content_type)

    @property
    def names(self):
        return [name for _, name in self.calls]


class FakeValidator:
    def __init__(self, good_token=GOOD_TOKEN):
        self.good_token = good_token
        self.calls = []

    def validate(self, token, audience):
        self.calls.append((token, audience))
        if token != self.good_token or audience != AUDIENCE:
            raise ValueError("Could not verify token signature.")
        return {"aud": audience, "email": "reader@example.com"}


@pytest.fixture
def config():
    return GatewayConfig(bucket=BUCKET, audience=AUDIENCE)


@pytest.fixture
def store():
    return FakeStore({
        "index.html": b"<h1>home</h1>",
        "about/index.html": b"<h1>about</h1>",
        "docs/index.html": b"<h1>docs</h1>",
        "style.css": b"body {}",
        "data.bin": b"\x00\x01\x02",
    })


@pytest.fixture
def validator():
    return FakeValidator()


@pytest.fixture
def app(config, store, validator):
    app = create_app(config, store=store, validator=validator)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {IAP_HEADER: GOOD_TOKEN}


@pytest.fixture
def request_logs(caplog):
    """Records written to the per-request log."""
    caplog.set_level(logging.INFO, logger="bucket_gateway.requests")

    def records():
        return [r for r in caplog.records if r.name == "bucket_gateway.requests"]
    return records


@pytest.fixture
def forbidden():
    return Forbidden("caller does not have storage.objects.get access")
