"""
Performance tracking for the sentiment classifier.

A fixed 3x3 confusion matrix indexed by Label order, and the precision,
recall, F1 and accuracy figures derived from it. Divisions by zero yield 0.
"""

import logging
from typing import Dict, Mapping, Union

import numpy as np
import pandas as pd

from .types import LABELS, Label, PerformanceMetrics

logger = logging.getLogger(__name__)

_INDEX = {label: i for i, label in enumerate(LABELS)}


def _safe_divide(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    numerator = np.asarray(numerator, dtype=float)
    denominator = np.asarray(denominator, dtype=float)
    result = np.zeros_like(numerator)
    np.divide(numerator, denominator, out=result, where=denominator != 0)
    return result


class ConfusionMatrix:
    """Counts of ``matrix[actual][predicted]`` over the three labels."""

    def __init__(self):
        self._counts = np.zeros((len(LABELS), len(LABELS)), dtype=np.int64)

    def record(self, actual: Label, predicted: Label) -> None:
        self._counts[_INDEX[actual], _INDEX[predicted]] += 1

    def get(self, actual: Union[Label, str], predicted: Union[Label, str]) -> int:
        return int(self._counts[_INDEX[Label(actual)], _INDEX[Label(predicted)]])

    def total(self) -> int:
        return int(self._counts.sum())

    def reset(self) -> None:
        self._counts[:] = 0

    @property
    def counts(self) -> np.ndarray:
        """A copy of the raw counts, rows = actual, columns = predicted."""
        return self._counts.copy()

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            actual.value: {
                predicted.value: int(self._counts[i, j]) for j, predicted in enumerate(LABELS)
            }
            for i, actual in enumerate(LABELS)
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, int]]) -> 'ConfusionMatrix':
        """
        Rebuild a matrix from its nested-dict form.

        Raises:
            ValueError: If a label is unknown or a count is negative
        """
        matrix = cls()
        for raw_actual, row in data.items():
            actual = Label.parse(raw_actual)
            if actual is None:
                raise ValueError(f"Invalid label in confusion matrix: {raw_actual}")
            for raw_predicted, count in row.items():
                predicted = Label.parse(raw_predicted)
                if predicted is None:
                    raise ValueError(f"Invalid label in confusion matrix: {raw_predicted}")
                if int(count) < 0:
                    raise ValueError(f"Negative count for {raw_actual}/{raw_predicted}")
                matrix._counts[_INDEX[actual], _INDEX[predicted]] = int(count)
        return matrix

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfusionMatrix):
            return NotImplemented
        return bool(np.array_equal(self._counts, other._counts))

    def __repr__(self) -> str:
        return f"ConfusionMatrix({self.to_dict()})"


def _per_label(counts: np.ndarray) -> Dict[str, np.ndarray]:
    true_positives = np.diag(counts).astype(float)
    false_positives = counts.sum(axis=0) - true_positives
    false_negatives = counts.sum(axis=1) - true_positives

    precision = _safe_divide(true_positives, true_positives + false_positives)
    recall = _safe_divide(true_positives, true_positives + false_negatives)
    f1 = _safe_divide(2 * precision * recall, precision + recall)

    return {
        'true_positives': true_positives,
        'support': true_positives + false_negatives,
        'precision': precision,
        'recall': recall,
        'f1': f1,
    }


def calculate_performance_metrics(matrix: ConfusionMatrix) -> PerformanceMetrics:
    """
    Derive macro-averaged metrics from a confusion matrix.

    Precision and recall are averaged over the three labels; the F1 score is
    the harmonic mean of those two averages.

    Args:
        matrix: Confusion matrix to summarize

    Returns:
        PerformanceMetrics, with every undefined ratio reported as 0
    """
    per_label = _per_label(matrix.counts)

    total_support = per_label['support'].sum()
    accuracy = float(per_label['true_positives'].sum() / total_support) if total_support else 0.0

    precision = float(per_label['precision'].mean())
    recall = float(per_label['recall'].mean())
    f1_score = 2 * precision * recall / (precision + recall) if precision + recall else 0.0

    return PerformanceMetrics(
        accuracy=accuracy,
        precision=precision,
        recall=recall,
        f1_score=float(f1_score),
        confusion_matrix=matrix.to_dict(),
    )


def classification_report(matrix: ConfusionMatrix) -> pd.DataFrame:
    """
    Per-label precision, recall, F1 and support as a table.

    Args:
        matrix: Confusion matrix to summarize

    Returns:
        DataFrame indexed by label value
    """
    per_label = _per_label(matrix.counts)
    return pd.DataFrame(
        {
            'precision': per_label['precision'],
            'recall': per_label['recall'],
            'f1': per_label['f1'],
            'support': per_label['support'].astype(int),
        },
        index=pd.Index([label.value for label in LABELS], name='label'),
    )
