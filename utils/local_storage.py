"""
Local file system storage for sentiment models.

Each saved version is a joblib snapshot plus a JSON metadata file; the
metadata of the newest version is mirrored to latest_model.json.
"""

import os
import json
import logging
import tempfile
from typing import Any, Dict, List, Optional, Tuple

from utils.storage_factory import MODEL_FILE_PREFIX, PersistenceAdapter, version_key

logger = logging.getLogger(__name__)

LATEST_INFO_NAME = "latest_model.json"


class LocalModelStorage(PersistenceAdapter):
    """Handles local file system storage of sentiment models."""

    def __init__(self, models_dir: str):
        """
        Initialize local file system storage.

        Args:
            models_dir: Directory to store model files
        """
        if not models_dir:
            self.models_dir = tempfile.mkdtemp()
            logger.warning(f"Empty models_dir provided, using temporary directory: {self.models_dir}")
        else:
            self.models_dir = models_dir

        try:
            os.makedirs(self.models_dir, exist_ok=True)
            logger.info(f"Local storage initialized. Models: {self.models_dir}")
        except OSError as e:
            logger.error(f"Error creating models directory {self.models_dir}: {e}")
            self.models_dir = tempfile.mkdtemp()
            logger.warning(f"Using fallback temporary models directory: {self.models_dir}")

    def _model_path(self, version: str) -> str:
        return os.path.join(self.models_dir, f"{MODEL_FILE_PREFIX}{version}.joblib")

    def _info_path(self, version: str) -> str:
        return os.path.join(self.models_dir, f"model_info_{version}.json")

    @property
    def latest_info_path(self) -> str:
        return os.path.join(self.models_dir, LATEST_INFO_NAME)

    def _store(self, version: str, payload: bytes, metadata: Dict[str, Any]) -> str:
        model_path = self._model_path(version)
        with open(model_path, 'wb') as f:
            f.write(payload)

        with open(self._info_path(version), 'w') as f:
            json.dump(metadata, f, indent=2)

        # Also save as latest model info
        with open(self.latest_info_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        return model_path

    def _fetch(self, version: str) -> Tuple[bytes, Dict[str, Any]]:
        model_path = self._model_path(version)
        if not os.path.exists(model_path):
            raise FileNotFoundError(f"Model not found: {model_path}")

        with open(model_path, 'rb') as f:
            payload = f.read()

        metadata: Dict[str, Any] = {'version': version}
        info_path = self._info_path(version)
        if os.path.exists(info_path):
            with open(info_path, 'r') as f:
                metadata = json.load(f)

        return payload, metadata

    def _has_version(self, version: str) -> bool:
        return os.path.exists(self._model_path(version))

    def _latest_version(self) -> Optional[str]:
        if os.path.exists(self.latest_info_path):
            try:
                with open(self.latest_info_path, 'r') as f:
                    version = json.load(f).get('version')
                if version and self._has_version(version):
                    return version
            except (OSError, ValueError) as e:
                logger.warning(f"Error reading {self.latest_info_path}: {e}")

        # Fall back to the newest snapshot file on disk
        models = self.list_models()
        return models[0]['version'] if models else None

    def list_models(self) -> List[Dict[str, Any]]:
        """
        Get a list of all models in local storage, newest first.

        Returns:
            List of model information dictionaries
        """
        try:
            models = []

            for filename in os.listdir(self.models_dir):
                if not (filename.startswith(MODEL_FILE_PREFIX) and filename.endswith('.joblib')):
                    continue

                version = filename[len(MODEL_FILE_PREFIX):-len('.joblib')]
                file_path = os.path.join(self.models_dir, filename)
                info = {'version': version}
                info_path = self._info_path(version)
                if os.path.exists(info_path):
                    with open(info_path, 'r') as f:
                        info.update(json.load(f))

                info.update({
                    'name': filename,
                    'path': file_path,
                    'size': os.path.getsize(file_path),
                })
                models.append(info)

            models.sort(key=lambda m: version_key(m['version']), reverse=True)
            return models

        except Exception as e:
            logger.error(f"Error listing models: {e}")
            return []

    def delete_model(self, version: str) -> bool:
        """
        Delete a model and its metadata from local storage.

        Args:
            version: Version of the model to delete

        Returns:
            bool: True if deletion was successful, False otherwise
        """
        try:
            model_path = self._model_path(version)

            if not os.path.exists(model_path):
                logger.warning(f"Cannot delete: Model {version} not found")
                return False

            os.remove(model_path)
            info_path = self._info_path(version)
            if os.path.exists(info_path):
                os.remove(info_path)

            logger.info(f"Deleted model {version} from local storage")
            return True

        except Exception as e:
            logger.error(f"Error deleting model {version}: {e}")
            return False


# Module-level singleton instance
_local_storage = None


def init_local_storage(models_dir: str) -> LocalModelStorage:
    """
    Initialize local storage.

    Args:
        models_dir: Directory to store model files

    Returns:
        LocalModelStorage: The initialized storage instance
    """
    global _local_storage

    if _local_storage is None:
        _local_storage = LocalModelStorage(models_dir)

    return _local_storage


def get_local_storage() -> LocalModelStorage:
    """
    Get the local storage instance.

    Returns:
        LocalModelStorage: The singleton storage instance

    Raises:
        RuntimeError: If local storage hasn't been initialized
    """
    if _local_storage is None:
        raise RuntimeError("Local storage not initialized. Call init_local_storage() first.")

    return _local_storage
