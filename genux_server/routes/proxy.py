"""Proxy endpoint: {prompt, outputType} -> {code}"""

import asyncio

from flask import Blueprint, jsonify, request

from genux_core.diagnostics import get_logger
from genux_core.error_handler import describe_error
from genux_core.exceptions import GenuxError, ValidationError
from genux_core.models import FeatureType
from genux_core.retry import RetryPolicy
from genux_core.sanitizer import strip_code_fences
from genux_core.transport import DirectTransport
from genux_server.config import config

logger = get_logger(__name__)

proxy_bp = Blueprint('proxy', __name__)


def build_transport() -> DirectTransport:
    return DirectTransport(
        config.api_endpoint,
        config.api_key,
        policy=RetryPolicy(max_attempts=config.max_attempts),
        timeout=config.request_timeout,
    )


def _run_in_new_loop(coro):
    # Fresh event loop per request; Flask handlers are synchronous.
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        return loop.run_until_complete(coro)
    finally:
        loop.close()
        asyncio.set_event_loop(None)


@proxy_bp.route('/proxy-api', methods=['POST'])
def proxy_api():
    data = request.get_json(silent=True) or {}
    prompt = data.get('prompt')
    if not isinstance(prompt, str) or not prompt.strip():
        return jsonify({"error": "Missing 'prompt'"}), 400
    try:
        feature_type = FeatureType.parse(data.get('outputType') or 'script')
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        code = _run_in_new_loop(build_transport().generate(prompt, feature_type))
    except GenuxError as e:
        logger.error(f"Proxy generation failed: {describe_error(e, 'proxy-api')}")
        return jsonify({"error": str(e)}), 502
    return jsonify({"code": strip_code_fences(code)})
