"""Concept-drift detection over a rolling history of accuracy snapshots."""

import logging
import math
from typing import Sequence

import numpy as np

import config

logger = logging.getLogger(__name__)


def detect_performance_drift(history: Sequence[float],
                             window_size: int,
                             threshold: float,
                             recent_ratio: float = config.RECENT_WINDOW_RATIO) -> bool:
    """
    Compare the most recent accuracy snapshots against the older ones.

    The newest ``floor(recent_ratio * window_size)`` entries form the recent
    window, everything before them the historical baseline.

    Args:
        history: Accuracy snapshots, oldest first
        window_size: Number of snapshots required before drift can be flagged
        threshold: Maximum tolerated drop of the recent mean below the baseline
        recent_ratio: Share of the window treated as recent

    Returns:
        bool: True if the baseline mean exceeds the recent mean by more than threshold
    """
    if len(history) < window_size:
        return False

    recent_size = math.floor(window_size * recent_ratio)
    if recent_size <= 0 or recent_size >= len(history):
        return False

    values = np.asarray(history, dtype=float)
    recent = float(values[-recent_size:].mean())
    historical = float(values[:-recent_size].mean())
    performance_drop = historical - recent

    logger.debug(f"Performance drift analysis: recent={recent:.4f}, historical={historical:.4f}, "
                 f"drop={performance_drop:.4f}, threshold={threshold}")

    return performance_drop > threshold
