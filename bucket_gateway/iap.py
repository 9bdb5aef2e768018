"""Check the signed assertion that Identity-Aware Proxy puts on each request.

IAP signs a JWT for every request it lets through and forwards it in the
``X-Goog-IAP-JWT-Assertion`` header. Anything reaching this service without
a valid assertion for our audience went around the proxy and is refused.

See https://cloud.google.com/iap/docs/signed-headers-howto
"""
import logging
from contextlib import contextmanager
from threading import RLock
from typing import Union

import google.auth.transport.requests
import google.oauth2.id_token

import requests
import cachecontrol

from flask import Request

log = logging.getLogger(__name__)

IAP_HEADER = "X-Goog-IAP-JWT-Assertion"

IAP_CERTS_URL = "https://www.gstatic.com/iap/verify/public_key"
"""Public keys IAP signs assertions with (ES256)."""


class TokenValidator:
    """Verifies IAP assertions with google-auth.

    The signing keys are fetched through a session wrapped by cachecontrol so
    they are only downloaded again when Google's cache headers say so.
    """

    def __init__(self, certs_url: str = IAP_CERTS_URL):
        self.certs_url = certs_url
        self._sess = None
        self._lock = RLock()
        """Lock for using the session. The requests session is not thread safe"""

    @contextmanager
    def locked_session(self):
        """Get a session with caching of certs from Google"""
        with self._lock:
            if not self._sess:
                self._sess = cachecontrol.CacheControl(requests.session())
            yield self._sess

    def validate(self, token: Union[str, bytes], audience: str) -> dict:
        """Verify signature, audience and expiry. Raises on any failure."""
        with self.locked_session() as session:
            request = google.auth.transport.requests.Request(session=session)
            idinfo = google.oauth2.id_token.verify_token(
                token, request, audience=audience, certs_url=self.certs_url
            )
        if not idinfo:
            raise ValueError("No idinfo from token verification")
        return idinfo


class IAPGate:
    """Allows a request only when it carries a valid IAP assertion."""

    def __init__(self, validator, audience: str):
        self.validator = validator
        self.audience = audience

    def authorize(self, request: Request) -> bool:
        assertion = request.headers.get(IAP_HEADER)
        if not assertion:
            log.warning("No IAP header found")
            return False
        try:
            self.validator.validate(assertion, self.audience)
        except Exception as ex:
            log.warning("Invalid IAP header: %s", ex)
            return False
        return True
