"""Run the gateway with the threaded development server."""
import logging
import sys

from .app import create_app
from .app_logging import setup_logger
from .config import ConfigError, GatewayConfig
from .storage import GCSBlobStore

log = logging.getLogger("bucket_gateway")


def main() -> int:
    setup_logger()
    try:
        config = GatewayConfig.from_env()
    except ConfigError as ex:
        log.critical("%s", ex)
        return 1
    logging.getLogger().setLevel(config.log_level)

    try:
        store = GCSBlobStore()
    except Exception as ex:
        log.critical("storage.Client: %s", ex)
        return 1

    try:
        app = create_app(config, store=store)
        log.info("listening", extra={"port": config.port})
        app.run(host="0.0.0.0", port=config.port, threaded=True)
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
