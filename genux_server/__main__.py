"""Main entry point for the genux proxy server"""

from genux_core.diagnostics import get_logger
from genux_server.app import app
from genux_server.config import config

logger = get_logger(__name__)


def main():
    """Run the genux proxy server"""
    if not config.api_key:
        logger.warning("✗ No GENUX_API_KEY / GEMINI_API_KEY set; /proxy-api requests will fail upstream")
    logger.info(f"Starting genux proxy server on port {config.port}...")
    logger.info(f"Upstream: {config.api_endpoint}")
    app.run(host=config.host, port=config.port, debug=False, use_reloader=False)


if __name__ == '__main__':
    main()
