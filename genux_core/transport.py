"""
Transport Client - obtains generated code from exactly one backend.

Strategies (resolved once from config, first match wins):
    AdapterTransport - caller-supplied function, no retry
    ProxyTransport   - POST {prompt, outputType} to a proxy, response {code}
    DirectTransport  - POST to the generative API with an API key
"""

import asyncio
import inspect
import json
from typing import Any, Callable, Dict, Optional

import aiohttp

from .config import Config
from .diagnostics import get_logger, preview
from .exceptions import ResponseFormatError, TransportError, TransportStatusError
from .models import FeatureType
from .retry import RetryPolicy, retry_async

logger = get_logger(__name__)


async def post_json(url: str, payload: Dict[str, Any], timeout: float = 120) -> Any:
    """
    POST a JSON body and return the decoded JSON response.

    Raises:
        TransportStatusError: non-success HTTP status
        TransportError: network failure or timeout
        ResponseFormatError: success status but the body is not JSON
    """
    timeout_obj = aiohttp.ClientTimeout(total=timeout)
    try:
        async with aiohttp.ClientSession(timeout=timeout_obj) as session:
            async with session.post(url, json=payload) as resp:
                if not 200 <= resp.status < 300:
                    body = await resp.text()
                    raise TransportStatusError(resp.status, body)
                text = await resp.text()
    except TransportError:
        raise
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise TransportError(f"Network error: {e or e.__class__.__name__}") from e
    try:
        return json.loads(text)
    except ValueError as e:
        raise ResponseFormatError(f"Response is not valid JSON: {preview(text, 120)}") from e


def _require_code(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ResponseFormatError(f"Malformed response: {where} is missing or not a string")
    return value


class Transport:
    """Base class for generation transports"""

    name = "transport"

    async def generate(self, prompt: str, feature_type: FeatureType) -> str:
        raise NotImplementedError


class AdapterTransport(Transport):
    """Caller-supplied adapter; owns its own resilience, so no retry here."""

    name = "adapter"

    def __init__(self, adapter: Callable[[Dict[str, Any]], Any]):
        self.adapter = adapter

    async def generate(self, prompt: str, feature_type: FeatureType) -> str:
        result = self.adapter({"prompt": prompt, "outputType": feature_type.value})
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, dict):
            return _require_code(result.get("code"), "'code'")
        return _require_code(getattr(result, "code", None), "'code'")


class ProxyTransport(Transport):
    """Proxy that already returns the normalized {code} shape."""

    name = "proxy"

    def __init__(self, url: str, policy: Optional[RetryPolicy] = None, timeout: float = 120):
        self.url = url
        self.policy = policy or RetryPolicy()
        self.timeout = timeout

    async def generate(self, prompt: str, feature_type: FeatureType) -> str:
        payload = {"prompt": prompt, "outputType": feature_type.value}
        data = await retry_async(post_json, self.url, payload, timeout=self.timeout, policy=self.policy)
        if not isinstance(data, dict):
            raise ResponseFormatError("Malformed response: expected a JSON object")
        return _require_code(data.get("code"), "'code'")


class DirectTransport(Transport):
    """Default: call the generative API directly with an API key."""

    name = "direct"

    def __init__(self, endpoint: str, api_key: Optional[str], policy: Optional[RetryPolicy] = None, timeout: float = 120):
        self.endpoint = endpoint
        self.api_key = api_key
        self.policy = policy or RetryPolicy()
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.endpoint}?key={self.api_key or ''}"

    @staticmethod
    def build_payload(prompt: str) -> Dict[str, Any]:
        return {"contents": [{"parts": [{"text": prompt}]}]}

    @staticmethod
    def extract_code(data: Any) -> str:
        """Pull candidates[0].content.parts[0].text out of the response."""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise ResponseFormatError(
                "Malformed response: missing candidates[0].content.parts[0].text"
            ) from None
        return _require_code(text, "candidates[0].content.parts[0].text")

    async def generate(self, prompt: str, feature_type: FeatureType) -> str:
        if not self.api_key:
            logger.warning("No API key configured for the direct transport")
        data = await retry_async(post_json, self.url, self.build_payload(prompt), timeout=self.timeout, policy=self.policy)
        return self.extract_code(data)


def resolve_transport(config: Config, policy: Optional[RetryPolicy] = None) -> Transport:
    """Pick the transport once, at configuration time."""
    policy = policy or RetryPolicy(max_attempts=config.max_attempts, base_delay=config.retry_base_delay)
    if config.api_adapter is not None:
        transport: Transport = AdapterTransport(config.api_adapter)
    elif config.proxy_endpoint:
        transport = ProxyTransport(config.proxy_endpoint, policy=policy, timeout=config.request_timeout)
    else:
        transport = DirectTransport(config.api_endpoint, config.api_key, policy=policy, timeout=config.request_timeout)
    logger.info(f"Using {transport.name} transport")
    return transport
