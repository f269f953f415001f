"""Health check endpoint"""

from flask import Blueprint, jsonify

from genux_core import __version__
from genux_server.config import config

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        "status": "healthy",
        "api_endpoint": config.api_endpoint,
        "api_key_configured": bool(config.api_key),
        "version": __version__
    })
