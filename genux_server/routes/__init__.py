"""Routes module for Flask endpoints"""

from genux_server.routes.health import health_bp
from genux_server.routes.proxy import proxy_bp

__all__ = ['health_bp', 'proxy_bp']
