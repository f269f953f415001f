"""
Feature Store - authoritative mapping from feature id to Feature.

The store owns a single-slot in-memory cache of the collection, kept in
sync with the backend by read-through (list) and write-through (save).
It is the only component that writes to the backend.

add/remove/clear are list + modify + save sequences with no locking:
two concurrent read-modify-write calls can lose an update (last save wins).
"""

from typing import List, Optional

from .backends import StorageBackend
from .diagnostics import get_logger
from .exceptions import ValidationError
from .models import Feature, coerce_feature

logger = get_logger(__name__)


class FeatureStore:

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self._cache: Optional[List[Feature]] = None

    @property
    def cached(self) -> bool:
        return self._cache is not None

    async def list(self) -> List[Feature]:
        """Return the collection, reading through to the backend on a cold cache."""
        if self._cache is not None:
            return list(self._cache)
        records = await self.backend.load()
        features: List[Feature] = []
        for record in records:
            try:
                features.append(Feature.from_dict(record))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored feature: {e}")
        self._cache = features
        logger.debug(f"Loaded {len(features)} features from {self.backend.name} backend")
        return list(features)

    async def save(self, features: List[Feature]) -> None:
        """
        Replace the cache, then write through to the backend.

        If the backend write fails the cache goes back to the last-known-good
        collection and the backend error propagates.
        """
        features = [coerce_feature(f) for f in features]
        ids = [f.id for f in features]
        if len(ids) != len(set(ids)):
            raise ValidationError("Feature ids must be unique within the collection")
        previous = self._cache
        self._cache = list(features)
        try:
            await self.backend.save([f.to_dict() for f in features])
        except Exception:
            self._cache = previous
            raise

    async def add(self, feature: Feature) -> None:
        """Append a feature; an existing feature with the same id is replaced in place."""
        feature = coerce_feature(feature)
        features = await self.list()
        for i, existing in enumerate(features):
            if existing.id == feature.id:
                features[i] = feature
                break
        else:
            features.append(feature)
        await self.save(features)

    async def remove(self, feature_id: int) -> None:
        feature_id = int(feature_id)
        features = await self.list()
        await self.save([f for f in features if f.id != feature_id])

    async def clear(self) -> None:
        await self.save([])

    async def get(self, feature_id: int) -> Optional[Feature]:
        feature_id = int(feature_id)
        for feature in await self.list():
            if feature.id == feature_id:
                return feature
        return None

    async def ids(self) -> List[int]:
        return [f.id for f in await self.list()]
