"""
Interactive surface - the UI collaborator of the lifecycle coordinator.

The coordinator only talks to this interface: floating trigger, the
prompt modal, notifications, confirmations and the feature list. The
base class logs notifications and auto-confirms, which is what headless
callers (CLI, server, tests) need. Embedding UIs subclass it.
"""

from typing import Awaitable, Callable, List, Optional

from .diagnostics import get_logger

logger = get_logger(__name__)

NOTIFY_LEVELS = {
    "success": "✓",
    "error": "⚠",
    "info": "ℹ",
}


class Surface:

    def __init__(self, auto_confirm: bool = True):
        self.auto_confirm = auto_confirm
        self.is_open = False
        self.busy = False
        self._on_open: Optional[Callable[[], Awaitable[None]]] = None

    async def mount(self, on_open: Callable[[], Awaitable[None]]) -> None:
        """Install the trigger that opens the modal."""
        self._on_open = on_open

    async def trigger(self) -> None:
        """Simulate a click on the floating trigger."""
        if self._on_open is not None:
            await self._on_open()

    async def open(self, features: List) -> None:
        self.is_open = True
        await self.render_features(features)

    async def close(self) -> None:
        self.is_open = False

    def notify_nowait(self, message: str, level: str = "info") -> None:
        icon = NOTIFY_LEVELS.get(level, NOTIFY_LEVELS["info"])
        if level == "error":
            logger.error(f"{icon} {message}")
        else:
            logger.info(f"{icon} {message}")

    async def notify(self, message: str, level: str = "info") -> None:
        self.notify_nowait(message, level)

    async def confirm(self, message: str) -> bool:
        logger.info(f"Confirm: {message} -> {'yes' if self.auto_confirm else 'no'}")
        return self.auto_confirm

    async def render_features(self, features: List) -> None:
        if not features:
            logger.debug("No features created yet")
            return
        for feature in features:
            logger.debug(f"[{feature.id}] ({feature.type.value}) {feature.prompt}")

    async def prefill(self, prompt: str, feature_type) -> None:
        logger.debug(f"Editing feature: {prompt!r} ({getattr(feature_type, 'value', feature_type)})")

    async def set_busy(self, busy: bool) -> None:
        self.busy = busy
