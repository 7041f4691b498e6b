"""
Model validation utilities for the sentiment classifier.

This module provides functionality to:
- Validate serialized model snapshots before they replace a live model
- Test models with labeled sample inputs
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sentiment.metrics import ConfusionMatrix, calculate_performance_metrics
from sentiment.types import LABELS, Label, TrainingExample

logger = logging.getLogger(__name__)

REQUIRED_SNAPSHOT_KEYS = ('class_word_counts', 'class_counts', 'total_documents', 'smoothing')

# Unambiguous samples used when no test cases are supplied
DEFAULT_TEST_SAMPLES = [
    TrainingExample("I love this, it is absolutely wonderful", Label.POSITIVE),
    TrainingExample("This is terrible, I hate it", Label.NEGATIVE),
    TrainingExample("The package arrived on Tuesday", Label.NEUTRAL),
]


class ModelValidationError(Exception):
    """Exception raised when model validation fails."""
    pass


def validate_snapshot(snapshot: Any) -> None:
    """
    Check the structure of a serialized Naive Bayes model.

    Args:
        snapshot: Output of NaiveBayesClassifier.serialize()

    Raises:
        ModelValidationError: If the snapshot is malformed
    """
    if not isinstance(snapshot, Mapping):
        raise ModelValidationError(f"Snapshot must be a mapping, got {type(snapshot).__name__}")

    missing = [key for key in REQUIRED_SNAPSHOT_KEYS if key not in snapshot]
    if missing:
        raise ModelValidationError(f"Snapshot is missing fields: {missing}")

    for field_name in ('class_word_counts', 'class_counts'):
        for raw_label in snapshot[field_name]:
            if Label.parse(raw_label) is None:
                raise ModelValidationError(f"Unknown label '{raw_label}' in {field_name}")

    for raw_label, counts in snapshot['class_word_counts'].items():
        if any(int(count) < 0 for count in counts.values()):
            raise ModelValidationError(f"Negative token count for label '{raw_label}'")

    class_total = sum(int(count) for count in snapshot['class_counts'].values())
    if any(int(count) < 0 for count in snapshot['class_counts'].values()):
        raise ModelValidationError("Negative class count")
    if class_total != int(snapshot['total_documents']):
        raise ModelValidationError(
            f"Class counts ({class_total}) do not add up to total_documents "
            f"({snapshot['total_documents']})"
        )

    if float(snapshot['smoothing']) <= 0:
        raise ModelValidationError(f"Smoothing must be positive, got {snapshot['smoothing']}")


def validate_model(classifier: Any,
                   test_cases: Optional[List[TrainingExample]] = None) -> Dict[str, Any]:
    """
    Validate a classifier by predicting labeled samples.

    Args:
        classifier: Object exposing predict(text)
        test_cases: Labeled samples; DEFAULT_TEST_SAMPLES if None

    Returns:
        Dict with accuracy, precision, recall, f1_score, the confusion
        matrix and per-sample results
    """
    start_time = time.time()
    test_cases = DEFAULT_TEST_SAMPLES if test_cases is None else test_cases

    matrix = ConfusionMatrix()
    results = []

    for case in test_cases:
        try:
            prediction = classifier.predict(case.text)
        except Exception as e:
            logger.error(f"Prediction failed during validation: {e}")
            results.append({'text': case.text, 'expected': case.label.value, 'error': str(e)})
            continue

        matrix.record(case.label, prediction.label)
        results.append({
            'text': case.text,
            'expected': case.label.value,
            'predicted': prediction.label.value,
            'confidence': prediction.confidence,
            'correct': prediction.label == case.label,
        })

    metrics = calculate_performance_metrics(matrix)
    failed_count = sum(1 for r in results if not r.get('correct'))

    validation_results = {
        'timestamp': datetime.now().isoformat(),
        'sample_count': len(test_cases),
        'failed_count': failed_count,
        'accuracy': metrics.accuracy,
        'precision': metrics.precision,
        'recall': metrics.recall,
        'f1_score': metrics.f1_score,
        'confusion_matrix': metrics.confusion_matrix,
        'labels': [label.value for label in LABELS],
        'results': results,
        'duration_seconds': time.time() - start_time,
    }

    logger.info(f"Model validation: accuracy {metrics.accuracy:.4f}, "
                f"precision {metrics.precision:.4f}, recall {metrics.recall:.4f}, "
                f"F1 {metrics.f1_score:.4f} on {len(test_cases)} samples")

    return validation_results
