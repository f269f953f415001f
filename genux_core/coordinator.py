"""
Feature Lifecycle Coordinator

Runs the create / edit / remove / clear flows:

    prompt -> compile -> transport -> sanitize -> store -> execute -> refresh

Each generation request walks its own state machine
(IDLE -> COMPILING -> REQUESTING -> SANITIZING -> PERSISTING -> EXECUTING -> IDLE,
with FAILED on the way back to IDLE). Faults before PERSISTING leave no trace.
A fault while EXECUTING leaves the feature stored but not applied;
reapply() and the next startup apply it.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .backends import StorageBackend, resolve_backend
from .config import Config
from .debounce import Debouncer
from .diagnostics import get_logger, preview
from .documents import Document
from .error_handler import describe_error, format_user_failure
from .exceptions import EmptyPromptError, ExecutionError, ValidationError
from .execution import ExecutionEngine
from .models import Feature, FeatureIdGenerator, FeatureType, coerce_feature
from .prompt_compiler import compile_prompt
from .sanitizer import sanitize_artifact
from .store import FeatureStore
from .surface import Surface
from .transport import Transport, resolve_transport

logger = get_logger(__name__)


class GenerationState(str, Enum):
    IDLE = "idle"
    COMPILING = "compiling"
    REQUESTING = "requesting"
    SANITIZING = "sanitizing"
    PERSISTING = "persisting"
    EXECUTING = "executing"
    FAILED = "failed"


_TRANSITIONS = {
    GenerationState.IDLE: {GenerationState.COMPILING},
    GenerationState.COMPILING: {GenerationState.REQUESTING, GenerationState.FAILED},
    GenerationState.REQUESTING: {GenerationState.SANITIZING, GenerationState.FAILED},
    GenerationState.SANITIZING: {GenerationState.PERSISTING, GenerationState.FAILED},
    GenerationState.PERSISTING: {GenerationState.EXECUTING, GenerationState.FAILED},
    GenerationState.EXECUTING: {GenerationState.IDLE, GenerationState.FAILED},
    GenerationState.FAILED: {GenerationState.IDLE},
}


@dataclass
class GenerationRequest:
    """One pass through the generation pipeline and its outcome"""
    prompt: str
    feature_type: Any
    state: GenerationState = GenerationState.IDLE
    history: List[GenerationState] = field(default_factory=lambda: [GenerationState.IDLE])
    feature: Optional[Feature] = None
    persisted: bool = False
    applied: bool = False
    cancelled: bool = False
    error: Optional[BaseException] = None

    def advance(self, state: GenerationState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @property
    def ok(self) -> bool:
        return self.persisted and self.applied

    @property
    def failed(self) -> bool:
        return GenerationState.FAILED in self.history or self.error is not None


@dataclass
class GenuxContext:
    """Everything a coordinator needs, built once from the configuration"""
    config: Config
    document: Document
    surface: Surface
    store: FeatureStore
    transport: Transport
    engine: ExecutionEngine
    ids: FeatureIdGenerator = field(default_factory=FeatureIdGenerator)

    @classmethod
    def build(
        cls,
        config: Config,
        document: Document,
        surface: Optional[Surface] = None,
        transport: Optional[Transport] = None,
        backend: Optional[StorageBackend] = None,
    ) -> "GenuxContext":
        surface = surface or Surface()
        return cls(
            config=config,
            document=document,
            surface=surface,
            store=FeatureStore(backend or resolve_backend(config)),
            transport=transport or resolve_transport(config),
            engine=ExecutionEngine(document, config.target_container, surface),
        )


class FeatureLifecycleCoordinator:

    def __init__(self, context: GenuxContext):
        self.context = context
        self.last_request: Optional[GenerationRequest] = None
        self.editing_id: Optional[int] = None
        self._busy = 0
        self._debouncer = Debouncer(self.generate, context.config.debounce_seconds)

    @property
    def store(self) -> FeatureStore:
        return self.context.store

    @property
    def engine(self) -> ExecutionEngine:
        return self.context.engine

    @property
    def surface(self) -> Surface:
        return self.context.surface

    # -- create ---------------------------------------------------------

    async def generate(self, prompt_text: str, feature_type="script") -> GenerationRequest:
        """Run one full create cycle. Never raises except on cancellation."""
        request = GenerationRequest(prompt=(prompt_text or "").strip(), feature_type=feature_type)
        self.last_request = request
        if not request.prompt:
            request.error = EmptyPromptError()
            await self.surface.notify(str(request.error), "error")
            return request
        try:
            request.feature_type = FeatureType.parse(feature_type)
        except ValidationError as e:
            request.error = e
            await self.surface.notify(str(e), "error")
            return request

        self._busy += 1
        await self.surface.set_busy(True)
        try:
            return await self._run(request)
        finally:
            self._busy -= 1
            await self.surface.set_busy(self._busy > 0)

    async def _run(self, request: GenerationRequest) -> GenerationRequest:
        ctx = self.context
        ftype = request.feature_type
        try:
            request.advance(GenerationState.COMPILING)
            target = ctx.config.target_container
            structure = await ctx.document.structure(target)
            site_code = await ctx.document.inner_html(target)
            prompt = compile_prompt(request.prompt, ftype, structure, site_code)

            request.advance(GenerationState.REQUESTING)
            logger.info(f"Requesting {ftype.value} feature via {ctx.transport.name}: {preview(request.prompt, 80)}")
            raw_code = await ctx.transport.generate(prompt, ftype)

            request.advance(GenerationState.SANITIZING)
            code = sanitize_artifact(raw_code, ftype)
            feature = Feature(
                id=ctx.ids.next_id(await ctx.store.ids()),
                prompt=request.prompt,
                type=ftype,
                code=code,
            )
        except asyncio.CancelledError:
            request.cancelled = True
            logger.info(f"Generation cancelled in state {request.state.value}")
            raise
        except Exception as e:
            return await self._fail(request, e)

        # Once persisting starts the step runs to completion even if the
        # caller is cancelled.
        return await asyncio.shield(self._persist_and_apply(request, feature))

    async def _persist_and_apply(self, request: GenerationRequest, feature: Feature) -> GenerationRequest:
        request.advance(GenerationState.PERSISTING)
        try:
            await self.store.add(feature)
        except Exception as e:
            return await self._fail(request, e)
        request.feature = feature
        request.persisted = True

        request.advance(GenerationState.EXECUTING)
        request.applied = await self.engine.apply(feature)
        await self._refresh()
        if not request.applied:
            request.error = ExecutionError(f"Feature {feature.id} is stored but could not be applied")
            logger.warning(str(request.error))
            request.advance(GenerationState.FAILED)
            request.advance(GenerationState.IDLE)
            return request

        request.advance(GenerationState.IDLE)
        await self.surface.notify("Feature created successfully!", "success")
        logger.info(f"Created feature {feature.id}")
        return request

    async def _fail(self, request: GenerationRequest, error: Exception) -> GenerationRequest:
        request.error = error
        logger.error(f"Error generating feature: {describe_error(error, request.state.value)}")
        request.advance(GenerationState.FAILED)
        request.advance(GenerationState.IDLE)
        await self.surface.notify(format_user_failure(error), "error")
        return request

    def request_generation(self, prompt_text: str, feature_type="script") -> asyncio.Future:
        """Debounced generate(); rapid calls collapse into the last one."""
        return self._debouncer(prompt_text, feature_type)

    def cancel_generation(self) -> None:
        """Drop a pending debounced trigger and cancel generations already running."""
        self._debouncer.cancel()
        self._debouncer.cancel_in_flight()

    # -- edit -----------------------------------------------------------

    async def begin_edit(self, feature_id: int) -> Optional[Feature]:
        """Load a feature and pre-fill the surface with its prompt and type."""
        feature = await self.store.get(feature_id)
        if feature is None:
            return None
        self.editing_id = feature.id
        await self.surface.prefill(feature.prompt, feature.type)
        return feature

    async def update_feature(self, feature_id: int, prompt_text: str, feature_type=None) -> GenerationRequest:
        """
        Regenerate a feature: remove it without confirmation, then run a
        full create. The result gets a new id. An empty prompt is rejected
        before anything is removed.
        """
        if not (prompt_text or "").strip():
            return await self.generate(prompt_text, feature_type or "script")
        existing = await self.store.get(feature_id)
        if feature_type is None:
            feature_type = existing.type if existing is not None else FeatureType.SCRIPT
        await self.remove_feature(feature_id, confirm=False)
        self.editing_id = None
        return await self.generate(prompt_text, feature_type)

    # -- programmatic add / remove / clear ------------------------------

    async def add_feature(self, feature) -> Feature:
        """Store and apply a Feature-shaped record, skipping compile and transport."""
        feature = coerce_feature(feature)
        feature = feature.with_code(sanitize_artifact(feature.code, feature.type))
        await self.store.add(feature)
        await self.engine.remove(feature.id)
        await self.engine.apply(feature)
        await self._refresh()
        return feature

    async def remove_feature(self, feature_id: int, confirm: Optional[bool] = None) -> bool:
        if confirm is None:
            confirm = self.context.config.confirm_destructive
        if confirm and not await self.surface.confirm("Remove this feature?"):
            return False
        await self.store.remove(feature_id)
        await self.engine.remove(feature_id)
        await self._refresh()
        await self.surface.notify("Feature removed.", "info")
        return True

    async def clear_features(self, confirm: Optional[bool] = None) -> bool:
        if confirm is None:
            confirm = self.context.config.confirm_destructive
        if confirm and not await self.surface.confirm("Clear all features?"):
            return False
        await self.store.clear()
        await self.engine.remove_all()
        await self._refresh()
        await self.surface.notify("All features cleared.", "info")
        return True

    # -- load / reconcile -----------------------------------------------

    async def get_features(self) -> List[Feature]:
        return await self.store.list()

    async def apply_saved_features(self) -> int:
        features = await self.store.list()
        logger.info(f"Applying {len(features)} saved features...")
        return await self.engine.apply_all(features)

    async def reapply(self) -> int:
        """Apply every stored feature that has no node in the document."""
        applied = 0
        for feature in await self.store.list():
            if not await self.engine.is_applied(feature.id):
                if await self.engine.apply(feature):
                    applied += 1
        return applied

    # -- surface --------------------------------------------------------

    async def open_surface(self) -> None:
        if self.surface.is_open:
            return
        await self.surface.open(await self.store.list())

    async def close_surface(self) -> None:
        """Close the modal. A pending debounced trigger is dropped; running ones finish."""
        self._debouncer.cancel()
        await self.surface.close()

    async def _refresh(self) -> None:
        if self.surface.is_open:
            await self.surface.render_features(await self.store.list())
