"""Application configuration for the genux proxy server"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from genux_core.config import DEFAULT_API_ENDPOINT

load_dotenv()


@dataclass
class ServerConfig:
    """Proxy server configuration"""
    api_endpoint: str = os.getenv("GENUX_API_ENDPOINT", DEFAULT_API_ENDPOINT)
    api_key: Optional[str] = os.getenv("GENUX_API_KEY") or os.getenv("GEMINI_API_KEY") or None
    host: str = os.getenv("GENUX_SERVER_HOST", "0.0.0.0")
    port: int = int(os.getenv("GENUX_SERVER_PORT", "8000"))
    request_timeout: float = float(os.getenv("GENUX_REQUEST_TIMEOUT", "120"))
    max_attempts: int = int(os.getenv("GENUX_MAX_ATTEMPTS", "3"))
    debug: bool = os.getenv("GENUX_DEBUG", "false").lower() == "true"


# Global config instance
config = ServerConfig()
