"""
Configuration settings for the auto-learning sentiment classifier

This module handles configuration for:
- Auto-learning thresholds (feedback buffer, drift detection)
- Naive Bayes options (smoothing, priors, preprocessing)
- Model persistence (storage backend, model directory, versioning)
"""
import os
import logging

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


# Auto-learning settings
BUFFER_SIZE = int(os.getenv("BUFFER_SIZE", "100"))
CONFIDENCE_THRESHOLD = float(os.getenv("CONFIDENCE_THRESHOLD", "0.7"))
RETRAINING_THRESHOLD = float(os.getenv("RETRAINING_THRESHOLD", "0.05"))
PERFORMANCE_WINDOW_SIZE = int(os.getenv("PERFORMANCE_WINDOW_SIZE", "50"))

# Smoothing factor for the running average of prediction confidence
EMA_ALPHA = float(os.getenv("EMA_ALPHA", "0.1"))

# Share of correct, confident feedback replayed next to the mistakes
REINFORCEMENT_RATIO = float(os.getenv("REINFORCEMENT_RATIO", "0.3"))

# Share of the performance history treated as "recent" by drift detection
RECENT_WINDOW_RATIO = float(os.getenv("RECENT_WINDOW_RATIO", "0.2"))

# Naive Bayes settings
SMOOTHING = float(os.getenv("SMOOTHING", "1.0"))
PRIOR = os.getenv("PRIOR", "empirical")
DEFAULT_LANG = os.getenv("DEFAULT_LANG", "en")
ENABLE_LANG_DETECT = _env_flag("ENABLE_LANG_DETECT", "True")
ENABLE_STOPWORDS = _env_flag("ENABLE_STOPWORDS", "True")
ENABLE_NEGATION = _env_flag("ENABLE_NEGATION", "True")

# Storage mode configuration ('local' or 'memory')
STORAGE_MODE = os.getenv("STORAGE_MODE", "local")

BASE_DIR = os.getenv("BASE_DIR", os.path.dirname(os.path.abspath(__file__)))
MODEL_DIR = os.getenv("MODELS_DIR", os.path.join(BASE_DIR, "models"))

# Model training settings
MIN_TRAINING_DATA = int(os.getenv("MIN_TRAINING_DATA", "10"))
MAX_MODELS_TO_KEEP = int(os.getenv("MAX_MODELS_TO_KEEP", "5"))  # Keep only the most recent N models
MODEL_MAX_AGE_DAYS = int(os.getenv("MODEL_MAX_AGE_DAYS", "30"))
KFOLD_SPLITS = int(os.getenv("KFOLD_SPLITS", "5"))
TEST_SIZE = float(os.getenv("TEST_SIZE", "0.2"))
RANDOM_STATE = int(os.getenv("RANDOM_STATE", "42"))

# Model naming
MODEL_VERSION_PREFIX = os.getenv("MODEL_VERSION_PREFIX", "1.0.")
MODEL_TYPE = "naive_bayes"

if STORAGE_MODE not in ["local", "memory"]:
    logger.warning(f"Unknown storage mode '{STORAGE_MODE}'. Falling back to local storage.")
    STORAGE_MODE = "local"

logger.debug(f"Using {STORAGE_MODE} storage mode, models directory: {MODEL_DIR}")
