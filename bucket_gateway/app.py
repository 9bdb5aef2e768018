from typing import Optional

from flask import Flask, request
from werkzeug.routing import Rule

from .config import GatewayConfig
from .iap import IAPGate, TokenValidator
from .resolver import ObjectResolver, plain_response
from .app_logging import log_request, loggable_request
from .storage import GCSBlobStore


def create_app(config: Optional[GatewayConfig] = None, store=None, validator=None) -> Flask:
    """Build the gateway app.

    The blob store and token validator default to the Cloud Storage and IAP
    implementations; tests pass their own.
    """
    if config is None:
        config = GatewayConfig.from_env()
    if store is None:
        store = GCSBlobStore()
    if validator is None:
        validator = TokenValidator()

    app = Flask(__name__)

    gate = IAPGate(validator, config.audience)
    resolver = ObjectResolver(store, config.bucket, cache_control=config.cache_control)

    def serve(path):
        if not gate.authorize(request):
            log_request(loggable_request(request), 403, PermissionError("IAP assertion rejected"))
            return plain_response("Forbidden", 403)
        return resolver.serve(request)

    # Rules without a method list match every method, WebDAV and custom verbs included.
    app.url_map.add(Rule("/", defaults={"path": ""}, endpoint="serve"))
    app.url_map.add(Rule("/<path:path>", endpoint="serve"))
    app.view_functions["serve"] = serve

    return app
