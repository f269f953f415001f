"""
Feature records.

A Feature pairs the user's request with the generated artifact and its
type. Records are persisted as plain dicts: {"id", "prompt", "code", "type"}.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .exceptions import ValidationError


class FeatureType(str, Enum):
    """Artifact type; decides how the execution engine applies the code"""
    SCRIPT = "script"
    MARKUP = "markup"
    STYLESHEET = "stylesheet"

    @classmethod
    def parse(cls, value: Any) -> "FeatureType":
        """Parse a type name, accepting the legacy javascript/html/css names."""
        if isinstance(value, cls):
            return value
        name = str(value or "").strip().lower()
        name = _TYPE_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ValidationError(f"Unknown feature type: {value!r}") from None

    @property
    def language(self) -> str:
        return _LANGUAGES[self]


_TYPE_ALIASES = {
    "javascript": "script",
    "js": "script",
    "html": "markup",
    "css": "stylesheet",
    "style": "stylesheet",
}

_LANGUAGES = {
    FeatureType.SCRIPT: "JavaScript",
    FeatureType.MARKUP: "HTML",
    FeatureType.STYLESHEET: "CSS",
}


@dataclass(frozen=True)
class Feature:
    id: int
    prompt: str
    type: FeatureType
    code: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "code": self.code,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Feature":
        if not isinstance(data, Mapping):
            raise ValidationError(f"Feature record must be a mapping, got {type(data).__name__}")
        if data.get("id") is None:
            raise ValidationError("Feature record is missing 'id'")
        try:
            feature_id = int(data["id"])
        except (TypeError, ValueError):
            raise ValidationError(f"Feature id must be an integer, got {data['id']!r}") from None
        return cls(
            id=feature_id,
            prompt=str(data.get("prompt") or ""),
            type=FeatureType.parse(data.get("type")),
            code=str(data.get("code") or ""),
        )

    def with_code(self, code: str) -> "Feature":
        return Feature(id=self.id, prompt=self.prompt, type=self.type, code=code)


def coerce_feature(value: Any) -> Feature:
    """Accept a Feature or a Feature-shaped mapping."""
    if isinstance(value, Feature):
        return value
    return Feature.from_dict(value)


class FeatureIdGenerator:
    """
    Issues time-derived (epoch milliseconds) feature ids that never go
    backwards and never collide with ids already in the store.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last = 0

    def next_id(self, existing: Iterable[int] = ()) -> int:
        candidate = int(self._clock() * 1000)
        highest = max(existing, default=0)
        candidate = max(candidate, self._last + 1, highest + 1)
        self._last = candidate
        return candidate
