"""
In-memory model storage.

Keeps encoded snapshots in a dict. Used as the fallback backend and for
tests; everything is lost when the process exits.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from utils.storage_factory import PersistenceAdapter, version_key

logger = logging.getLogger(__name__)


class MemoryModelStorage(PersistenceAdapter):
    """Stores model snapshots in process memory."""

    def __init__(self):
        self._models: Dict[str, Tuple[bytes, Dict[str, Any]]] = {}
        self._latest: Optional[str] = None
        self._lock = threading.RLock()

    def _store(self, version: str, payload: bytes, metadata: Dict[str, Any]) -> str:
        with self._lock:
            self._models[version] = (payload, dict(metadata))
            self._latest = version
        return f"memory:{version}"

    def _fetch(self, version: str) -> Tuple[bytes, Dict[str, Any]]:
        with self._lock:
            if version not in self._models:
                raise KeyError(f"Model not found: {version}")
            payload, metadata = self._models[version]
            return payload, dict(metadata)

    def _has_version(self, version: str) -> bool:
        return version in self._models

    def _latest_version(self) -> Optional[str]:
        with self._lock:
            if self._latest in self._models:
                return self._latest
            models = self.list_models()
            return models[0]['version'] if models else None

    def list_models(self) -> List[Dict[str, Any]]:
        with self._lock:
            models = [
                dict(metadata, version=version, size=len(payload))
                for version, (payload, metadata) in self._models.items()
            ]
        models.sort(key=lambda m: version_key(m['version']), reverse=True)
        return models

    def delete_model(self, version: str) -> bool:
        with self._lock:
            if version not in self._models:
                logger.warning(f"Cannot delete: Model {version} not found")
                return False
            del self._models[version]
            if self._latest == version:
                self._latest = None
        logger.info(f"Deleted model {version} from memory storage")
        return True
