"""
Execution Engine - applies stored features to the live document.

Every successful apply() adds exactly one node tagged with the feature id:
    script     -> <script> in head, body wrapped in a try/IIFE
    markup     -> <div> holding the markup, appended to the target container
    stylesheet -> <style> in head

Removal queries the document for the tag; the document is the record of
what is currently applied.
"""

from typing import Iterable, Optional

from .diagnostics import get_logger
from .documents import SCRIPT_ERROR_PREFIX, Document
from .models import Feature, FeatureType
from .surface import Surface

logger = get_logger(__name__)

SCRIPT_WRAPPER = "try {{ (function() {{ {code} }})(); }} catch (e) {{ console.error('" + SCRIPT_ERROR_PREFIX + "', e); }}"


def wrap_script(code: str) -> str:
    """Wrap a script body in a self-invoking function with its own fault boundary."""
    return SCRIPT_WRAPPER.format(code=code)


class ExecutionEngine:

    def __init__(self, document: Document, target_container: Optional[str] = None, surface: Optional[Surface] = None):
        self.document = document
        self.target_container = target_container
        self.surface = surface or Surface()
        self.script_errors = []
        self.document.on_script_error(self._on_script_error)

    def _on_script_error(self, message: str) -> None:
        # Runs inside the page event callback; must not raise.
        self.script_errors.append(message)
        logger.error(f"Injected script failed: {message}")
        self.surface.notify_nowait(f"Feature script error: {message[len(SCRIPT_ERROR_PREFIX):].strip()}", "error")

    async def apply(self, feature: Feature) -> bool:
        """
        Apply one feature.

        Returns:
            True if the tagged node was inserted. False if the markup target
            is missing or the document raised; both are reported to the
            surface, never raised to the caller.
        """
        try:
            if feature.type is FeatureType.SCRIPT:
                await self.document.append_to_head("script", wrap_script(feature.code), feature.id)
            elif feature.type is FeatureType.STYLESHEET:
                await self.document.append_to_head("style", feature.code, feature.id)
            else:
                inserted = await self.document.append_markup(self.target_container, feature.code, feature.id)
                if not inserted:
                    logger.warning(f"Target container not found: {self.target_container or 'body'}")
                    await self.surface.notify("Target container not found.", "error")
                    return False
        except Exception as e:
            logger.error(f"Error executing feature {feature.id}: {e}")
            await self.surface.notify("Failed to apply feature.", "error")
            return False
        logger.debug(f"Applied {feature.type.value} feature {feature.id}")
        return True

    async def apply_all(self, features: Iterable[Feature]) -> int:
        applied = 0
        for feature in features:
            if await self.apply(feature):
                applied += 1
        return applied

    async def remove(self, feature_id: int) -> int:
        removed = await self.document.remove_tagged(int(feature_id))
        logger.debug(f"Removed {removed} node(s) for feature {feature_id}")
        return removed

    async def remove_all(self) -> int:
        return await self.document.remove_tagged(None)

    async def is_applied(self, feature_id: int) -> bool:
        return await self.document.count_tagged(int(feature_id)) > 0
