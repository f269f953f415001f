"""
genux_core package: natural-language UI features for live documents

Usage:
    from genux_core import HtmlDocument, initialize

    genux = await initialize(HtmlDocument(html), {"proxyEndpoint": "http://localhost:8000/proxy-api"})
    await genux.generate_feature("Add a dark mode toggle", "markup")
"""
from .config import Config
from .coordinator import FeatureLifecycleCoordinator, GenerationRequest, GenerationState, GenuxContext
from .documents import Document, HtmlDocument, PageDocument
from .exceptions import (
    BackendError,
    EmptyPromptError,
    ExecutionError,
    GenuxError,
    ResponseFormatError,
    TargetNotFoundError,
    TransportError,
    TransportStatusError,
    ValidationError,
)
from .genux import Genux, initialize
from .models import Feature, FeatureType
from .surface import Surface

__version__ = "0.1.0"

__all__ = [
    # Core
    "Config",
    "Genux",
    "initialize",
    "Feature",
    "FeatureType",
    "FeatureLifecycleCoordinator",
    "GenerationRequest",
    "GenerationState",
    "GenuxContext",
    "Surface",
    # Documents
    "Document",
    "HtmlDocument",
    "PageDocument",
    # Errors
    "GenuxError",
    "ValidationError",
    "EmptyPromptError",
    "TargetNotFoundError",
    "TransportError",
    "TransportStatusError",
    "ResponseFormatError",
    "BackendError",
    "ExecutionError",
]
