"""Web Server Gateway Interface entry-point."""

from bucket_gateway.app import create_app
from bucket_gateway.app_logging import setup_logger
from bucket_gateway.config import GatewayConfig

config = GatewayConfig.from_env()
setup_logger(config.log_level)
app = create_app(config)
