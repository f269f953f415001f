#!/usr/bin/env python3
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from dotenv import load_dotenv

from .diagnostics import get_logger
from .exceptions import ValidationError

load_dotenv()

logger = get_logger(__name__)

DEFAULT_API_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
LOCAL_STORAGE_KEY = "Genux-Features"
STORAGE_BACKENDS = ("local", "cloud")

# Initialization option names (as accepted by initialize()) -> Config field
OPTION_ALIASES = {
    "apiEndpoint": "api_endpoint",
    "apiKey": "api_key",
    "proxyEndpoint": "proxy_endpoint",
    "storageBackend": "storage_backend",
    "storageAdapter": "storage_adapter",
    "apiAdapter": "api_adapter",
    "targetContainer": "target_container",
    "debounceDelay": "debounce_delay",
    "storagePath": "storage_path",
    "firestoreClient": "firestore_client",
    "firestoreProject": "firestore_project",
    "firestoreCollection": "firestore_collection",
    "requestTimeout": "request_timeout",
    "maxAttempts": "max_attempts",
    "retryBaseDelay": "retry_base_delay",
    "confirmDestructive": "confirm_destructive",
}


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


def _number(option: str, value: Any, cast: Callable[[Any], Any]):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{option} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class Config:
    """Genux configuration, merged once at initialization and read-only afterwards"""
    api_endpoint: str = field(default_factory=lambda: os.getenv("GENUX_API_ENDPOINT", DEFAULT_API_ENDPOINT))
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("GENUX_API_KEY") or os.getenv("GEMINI_API_KEY") or None)
    proxy_endpoint: Optional[str] = field(default_factory=lambda: os.getenv("GENUX_PROXY_ENDPOINT") or None)
    storage_backend: str = field(default_factory=lambda: os.getenv("GENUX_STORAGE_BACKEND", "local"))
    storage_adapter: Any = None
    api_adapter: Optional[Callable[..., Any]] = None
    target_container: Optional[str] = field(default_factory=lambda: os.getenv("GENUX_TARGET_CONTAINER") or None)
    debounce_delay: int = field(default_factory=lambda: os.getenv("GENUX_DEBOUNCE_DELAY", "300"))
    storage_path: Path = field(default_factory=lambda: Path(os.getenv("GENUX_STORAGE_PATH", "./workspace/genux/local_storage.json")))

    # Remote document collection (Firestore)
    firestore_client: Any = None
    firestore_project: Optional[str] = field(default_factory=lambda: os.getenv("GENUX_FIRESTORE_PROJECT") or None)
    firestore_collection: str = field(default_factory=lambda: os.getenv("GENUX_FIRESTORE_COLLECTION", "features"))

    # Transport
    request_timeout: float = field(default_factory=lambda: os.getenv("GENUX_REQUEST_TIMEOUT", "120"))
    max_attempts: int = 3
    retry_base_delay: float = 1.0

    confirm_destructive: bool = field(default_factory=lambda: _env_bool("GENUX_CONFIRM_DESTRUCTIVE", "true"))

    def __post_init__(self):
        backend = str(self.storage_backend or "local").lower()
        if backend not in STORAGE_BACKENDS:
            raise ValidationError(f"storageBackend must be one of {STORAGE_BACKENDS}, got {self.storage_backend!r}")
        object.__setattr__(self, "storage_backend", backend)
        object.__setattr__(self, "storage_path", Path(self.storage_path))
        # Numbers may arrive as strings from the environment or page options
        object.__setattr__(self, "debounce_delay", _number("debounceDelay", self.debounce_delay, int))
        object.__setattr__(self, "request_timeout", _number("requestTimeout", self.request_timeout, float))
        object.__setattr__(self, "max_attempts", _number("maxAttempts", self.max_attempts, int))
        object.__setattr__(self, "retry_base_delay", _number("retryBaseDelay", self.retry_base_delay, float))
        if self.debounce_delay < 0:
            raise ValidationError("debounceDelay must be >= 0")
        if self.max_attempts < 1:
            raise ValidationError("maxAttempts must be >= 1")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "Config":
        """
        Merge caller options over the defaults.

        Accepts the camelCase option names of the embedding API as well as
        the snake_case field names. Unrecognized keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        merged: Dict[str, Any] = {}
        for key, value in {**dict(options or {}), **overrides}.items():
            name = OPTION_ALIASES.get(key, key)
            if name in known:
                merged[name] = value
            else:
                logger.debug(f"Ignoring unknown option: {key}")
        return cls(**merged)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_delay / 1000.0
