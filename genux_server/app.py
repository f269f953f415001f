"""Flask application setup for the genux proxy server"""

from flask import Flask
from flask_cors import CORS

from genux_server.routes.health import health_bp
from genux_server.routes.proxy import proxy_bp

app = Flask(__name__)
CORS(app)

# Register blueprints
app.register_blueprint(health_bp)
app.register_blueprint(proxy_bp)
