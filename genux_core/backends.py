"""
Storage backends for the feature collection.

Backends move serialized feature records (plain dicts); the FeatureStore
converts them to Feature objects and owns the cache.

    AdapterBackend - caller-supplied object with get()/save(records)
    RemoteBackend  - Firestore collection, one document per feature
    LocalBackend   - LocalStorage file, one JSON array under a fixed key
"""

import inspect
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import LOCAL_STORAGE_KEY, Config
from .diagnostics import get_logger
from .exceptions import BackendError

logger = get_logger(__name__)

Record = Dict[str, Any]


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


class StorageBackend:
    """Base class for storage backends"""

    name = "backend"

    async def load(self) -> List[Record]:
        raise NotImplementedError

    async def save(self, records: List[Record]) -> None:
        raise NotImplementedError


class AdapterBackend(StorageBackend):
    """Delegates to a caller adapter; adapter errors propagate unchanged."""

    name = "adapter"

    def __init__(self, adapter: Any):
        if not (hasattr(adapter, "get") and hasattr(adapter, "save")):
            raise BackendError("storageAdapter must provide get() and save(records)")
        self.adapter = adapter

    async def load(self) -> List[Record]:
        records = await _maybe_await(self.adapter.get())
        return list(records or [])

    async def save(self, records: List[Record]) -> None:
        await _maybe_await(self.adapter.save(records))


class RemoteBackend(StorageBackend):
    """
    Firestore document collection.

    Each feature is one document keyed by str(id). Saves write every
    feature, then delete documents no longer in the collection, in batched
    commits of at most MAX_BATCH_WRITES operations (Firestore's per-batch limit).
    """

    name = "remote"
    MAX_BATCH_WRITES = 500

    def __init__(self, client: Any, collection: str = "features"):
        self.client = client
        self.collection = collection

    async def load(self) -> List[Record]:
        snapshots = await self.client.collection(self.collection).get()
        records = [snap.to_dict() for snap in snapshots]
        records = [r for r in records if isinstance(r, dict)]
        return sorted(records, key=lambda r: _sort_key(r.get("id")))

    async def save(self, records: List[Record]) -> None:
        coll = self.client.collection(self.collection)
        keep = {str(r["id"]) for r in records}
        writes = [("set", coll.document(str(r["id"])), r) for r in records]
        async for ref in coll.list_documents():
            if ref.id not in keep:
                writes.append(("delete", ref, None))
        commits = 0
        for start in range(0, len(writes), self.MAX_BATCH_WRITES):
            batch = self.client.batch()
            for op, ref, record in writes[start:start + self.MAX_BATCH_WRITES]:
                if op == "set":
                    batch.set(ref, record)
                else:
                    batch.delete(ref)
            await batch.commit()
            commits += 1
        logger.debug(f"Committed {len(records)} features to collection '{self.collection}' in {commits} batch(es)")


def _sort_key(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class LocalStorage:
    """
    Persistent string key-value store backed by one JSON file.

    The file maps keys to string values, like a browser's localStorage.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Local storage at {self.path} is unreadable, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Local storage at {self.path} is not a key-value object, treating as empty")
            return {}
        return data

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".genux-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise


class LocalBackend(StorageBackend):
    """Default backend: one serialized array under a fixed key."""

    name = "local"

    def __init__(self, storage: LocalStorage, key: str = LOCAL_STORAGE_KEY):
        self.storage = storage
        self.key = key

    async def load(self) -> List[Record]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored features are corrupt, starting empty: {e}")
            return []
        if not isinstance(records, list):
            logger.warning("Stored features are not a list, starting empty")
            return []
        return [r for r in records if isinstance(r, dict)]

    async def save(self, records: List[Record]) -> None:
        try:
            self.storage.set_item(self.key, json.dumps(records, ensure_ascii=False))
        except OSError as e:
            raise BackendError(f"Cannot write local storage at {self.storage.path}: {e}") from e


def _firestore_client(config: Config):
    if config.firestore_client is not None:
        return config.firestore_client
    if config.firestore_project:
        from google.cloud import firestore
        return firestore.AsyncClient(project=config.firestore_project)
    return None


def resolve_backend(config: Config) -> StorageBackend:
    """Pick the storage backend once: adapter > remote collection > local default."""
    if config.storage_adapter is not None:
        backend: StorageBackend = AdapterBackend(config.storage_adapter)
        logger.info(f"Using {backend.name} storage backend")
        return backend
    client = _firestore_client(config) if config.storage_backend == "cloud" else None
    if client is not None:
        backend = RemoteBackend(client, config.firestore_collection)
    else:
        if config.storage_backend == "cloud":
            logger.warning("storageBackend 'cloud' requested without a Firestore client or project; using local storage")
        backend = LocalBackend(LocalStorage(config.storage_path))
    logger.info(f"Using {backend.name} storage backend")
    return backend
