"""
Genux - public entry point for embedding pages.

    genux = await initialize(HtmlDocument(html), {"proxyEndpoint": "http://localhost:8000/proxy-api"})
    result = await genux.generate_feature("Add a dark mode toggle", "markup")
"""

from typing import Any, List, Mapping, Optional

from .backends import StorageBackend
from .config import Config
from .coordinator import FeatureLifecycleCoordinator, GenerationRequest, GenuxContext
from .diagnostics import get_logger
from .documents import Document
from .models import Feature
from .surface import Surface
from .transport import Transport

logger = get_logger(__name__)


class Genux:

    def __init__(
        self,
        document: Document,
        options: Optional[Mapping[str, Any]] = None,
        surface: Optional[Surface] = None,
        transport: Optional[Transport] = None,
        backend: Optional[StorageBackend] = None,
    ):
        self.config = Config.from_options(options)
        self.context = GenuxContext.build(
            self.config, document, surface=surface, transport=transport, backend=backend
        )
        self.coordinator = FeatureLifecycleCoordinator(self.context)
        self.initialized = False

    @property
    def document(self) -> Document:
        return self.context.document

    @property
    def surface(self) -> Surface:
        return self.context.surface

    async def initialize(self) -> "Genux":
        """Mount the trigger and apply every saved feature. Safe to call twice."""
        if self.initialized:
            return self
        logger.info("Genux initializing...")
        await self.surface.mount(self.open_modal)
        applied = await self.coordinator.apply_saved_features()
        self.initialized = True
        logger.info(f"Genux ready ({applied} feature(s) applied)")
        return self

    async def generate_feature(self, prompt: str, feature_type="script") -> GenerationRequest:
        return await self.coordinator.generate(prompt, feature_type)

    def request_feature(self, prompt: str, feature_type="script"):
        """Debounced generate_feature() for keystroke/click driven callers."""
        return self.coordinator.request_generation(prompt, feature_type)

    async def edit_feature(self, feature_id: int) -> Optional[Feature]:
        return await self.coordinator.begin_edit(feature_id)

    async def update_feature(self, feature_id: int, prompt: str, feature_type=None) -> GenerationRequest:
        return await self.coordinator.update_feature(feature_id, prompt, feature_type)

    async def add_feature(self, feature) -> Feature:
        return await self.coordinator.add_feature(feature)

    async def remove_feature(self, feature_id: int, confirm: Optional[bool] = None) -> bool:
        return await self.coordinator.remove_feature(feature_id, confirm=confirm)

    async def clear_features(self, confirm: Optional[bool] = None) -> bool:
        return await self.coordinator.clear_features(confirm=confirm)

    async def get_features(self) -> List[Feature]:
        return await self.coordinator.get_features()

    async def reapply(self) -> int:
        return await self.coordinator.reapply()

    async def open_modal(self) -> None:
        await self.coordinator.open_surface()

    async def close_modal(self) -> None:
        await self.coordinator.close_surface()

    def cancel_generation(self) -> None:
        self.coordinator.cancel_generation()


async def initialize(
    document: Document,
    options: Optional[Mapping[str, Any]] = None,
    surface: Optional[Surface] = None,
    **kwargs: Any,
) -> Genux:
    """Build a Genux instance for the document and initialize it."""
    genux = Genux(document, options, surface=surface, **kwargs)
    return await genux.initialize()
