"""
Storage Factory module for the sentiment classifier

This module provides the persistence adapter interface shared by all model
storage backends (local file system, in-memory) and a registry to pick the
configured one.
"""

import hashlib
import io
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import joblib

import config
from utils.model_validator import ModelValidationError, validate_snapshot

logger = logging.getLogger(__name__)

# Storage backends
_storage_backends: Dict[str, 'PersistenceAdapter'] = {}

MODEL_FILE_PREFIX = "naive_bayes_"


def version_key(version: str) -> int:
    """Sort key for versions like 1.0.1712052481123 (timestamp in the last segment)."""
    try:
        return int(str(version).split(".")[-1])
    except (ValueError, IndexError):
        return 0


class PersistenceAdapter:
    """
    Interface that all model storage implementations must follow.

    Subclasses provide the raw primitives (_store, _fetch, _latest_version,
    _has_version, list_models, delete_model); snapshot encoding, checksums
    and validation are shared here. The public load/save methods never
    raise: failures are logged and reported through the return value.
    """

    def _store(self, version: str, payload: bytes, metadata: Dict[str, Any]) -> str:
        """Persist an encoded snapshot and its metadata, returning its location"""
        raise NotImplementedError

    def _fetch(self, version: str) -> Tuple[bytes, Dict[str, Any]]:
        """Return the encoded snapshot and metadata for a version"""
        raise NotImplementedError

    def _latest_version(self) -> Optional[str]:
        """Return the most recently saved version, if any"""
        raise NotImplementedError

    def _has_version(self, version: str) -> bool:
        raise NotImplementedError

    def list_models(self) -> List[Dict[str, Any]]:
        """List metadata of all saved models, newest first"""
        raise NotImplementedError

    def delete_model(self, version: str) -> bool:
        """Delete a saved model version"""
        raise NotImplementedError

    def _new_version(self) -> str:
        timestamp = int(time.time() * 1000)
        version = f"{config.MODEL_VERSION_PREFIX}{timestamp}"
        while self._has_version(version):
            timestamp += 1
            version = f"{config.MODEL_VERSION_PREFIX}{timestamp}"
        return version

    def save_naive_bayes_model(self, target: Any, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Save a classifier snapshot together with its metadata.

        Args:
            target: Object exposing serialize() (classifier or controller)
            metadata: Extra metadata (dataset_size, accuracy, features, ...)

        Returns:
            Dict with 'success' and, on success, 'version', 'location' and 'metadata'
        """
        try:
            snapshot = target.serialize()
            validate_snapshot(snapshot)

            buffer = io.BytesIO()
            joblib.dump(snapshot, buffer)
            payload = buffer.getvalue()

            full_metadata = {
                'dataset_size': snapshot.get('total_documents', 0),
                'accuracy': None,
                'features': [],
            }
            full_metadata.update(metadata or {})
            version = full_metadata.get('version') or self._new_version()
            full_metadata.update({
                'version': version,
                'model_type': config.MODEL_TYPE,
                'training_date': full_metadata.get('training_date') or datetime.now().isoformat(),
                'vocabulary_size': len(snapshot.get('vocabulary', [])),
                'checksum_md5': hashlib.md5(payload).hexdigest(),
                'last_updated': datetime.now().isoformat(),
            })

            location = self._store(version, payload, full_metadata)
            logger.info(f"Saved model {version} to {location}")
            return {'success': True, 'version': version, 'location': location, 'metadata': full_metadata}

        except Exception as e:
            logger.error(f"Error saving model: {e}")
            return {'success': False, 'error': str(e)}

    def load_naive_bayes_model(self, target: Any, version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Load a saved snapshot into target.

        The snapshot is decoded and validated before target is touched, so on
        failure the in-memory model is left unchanged.

        Args:
            target: Object exposing deserialize() (classifier or controller)
            version: Version to load; the latest one if None

        Returns:
            The model metadata, or None if nothing could be loaded
        """
        try:
            version = version or self._latest_version()
            if not version:
                logger.warning("No saved model found")
                return None

            payload, metadata = self._fetch(version)

            expected = metadata.get('checksum_md5')
            if expected and hashlib.md5(payload).hexdigest() != expected:
                raise ModelValidationError(f"Checksum mismatch for model {version}")

            snapshot = joblib.load(io.BytesIO(payload))
            validate_snapshot(snapshot)
            target.deserialize(snapshot)

            logger.info(f"Model {version} loaded: {metadata.get('dataset_size')} examples")
            return metadata

        except Exception as e:
            logger.warning(f"Could not load model: {e}")
            return None

    def load_metadata(self, version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Metadata of a saved version (latest if None), or None."""
        try:
            version = version or self._latest_version()
            if not version:
                return None
            return self._fetch(version)[1]
        except Exception as e:
            logger.warning(f"Could not load model metadata: {e}")
            return None

    def has_valid_model(self, max_age_days: int = config.MODEL_MAX_AGE_DAYS) -> bool:
        """
        Check if a saved model exists and is recent enough to be reused.

        Args:
            max_age_days: Maximum age of the latest model

        Returns:
            bool: True if the latest model is younger than max_age_days
        """
        metadata = self.load_metadata()
        if not metadata:
            return False
        try:
            trained = datetime.fromisoformat(metadata['training_date'])
        except (KeyError, TypeError, ValueError):
            return False
        return (datetime.now() - trained).days < max_age_days

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get information about the latest saved model.

        Returns:
            Dict with 'exists', 'metadata', 'size' and 'last_modified'
        """
        try:
            version = self._latest_version()
            if version:
                payload, metadata = self._fetch(version)
                return {
                    'exists': True,
                    'metadata': metadata,
                    'size': len(payload),
                    'last_modified': metadata.get('last_updated'),
                }
        except Exception as e:
            logger.warning(f"Could not read model info: {e}")
        return {'exists': False, 'metadata': None, 'size': 0, 'last_modified': None}


def initialize_storage() -> None:
    """Initialize storage backends based on configuration"""
    global _storage_backends

    if config.STORAGE_MODE == 'local':
        try:
            from utils.local_storage import init_local_storage
            _storage_backends['local'] = init_local_storage(config.MODEL_DIR)
            logger.info("Local storage initialized")
        except Exception as e:
            logger.error(f"Failed to initialize local storage: {e}")

    # Always keep an in-memory backend as fallback
    from utils.memory_storage import MemoryModelStorage
    _storage_backends.setdefault('memory', MemoryModelStorage())


def get_storage(storage_type: Optional[str] = None) -> PersistenceAdapter:
    """
    Get a storage backend of the specified type

    Args:
        storage_type: Type of storage to get ('local', 'memory')
                     If None, uses configured default from config.STORAGE_MODE

    Returns:
        PersistenceAdapter implementation
    """
    # Initialize if not already done
    if not _storage_backends:
        initialize_storage()

    # Use configured default if not specified
    if storage_type is None:
        storage_type = config.STORAGE_MODE

    if storage_type in _storage_backends:
        return _storage_backends[storage_type]

    logger.warning(f"Requested storage '{storage_type}' not available, "
                   f"falling back to in-memory storage (models will be lost on restart)")
    return _storage_backends['memory']
