"""
Auto-learning controller for the sentiment classifier.

This module provides the AutoLearningClassifier class which wraps a
NaiveBayesClassifier and adds:
- A feedback buffer fed by labeled user corrections
- Automatic incremental retraining when the buffer fills up
- Confusion matrix tracking and derived performance metrics
- Concept-drift detection that forces a model refresh
- An enhanced prediction path with fallback to the base model
"""

import logging
import math
import threading
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .drift import detect_performance_drift
from .enhanced import ComplexCaseAnalyzer, ModelPersistence, fallback_prediction
from .metrics import ConfusionMatrix, calculate_performance_metrics
from .naive_bayes import ExampleLike, NaiveBayesClassifier
from .preprocessor import detect_language
from .types import (
    AutoLearningStats,
    EnhancedPrediction,
    FeedbackLoop,
    Label,
    PerformanceMetrics,
    SentimentPrediction,
    TrainingExample,
)
import config

logger = logging.getLogger(__name__)


class AutoLearningClassifier:
    """
    Naive Bayes classifier that keeps learning from user feedback.

    Every public method runs under a re-entrant lock, so a feedback event
    (buffer append, stats update, matrix update) is applied atomically and
    retraining never overlaps a prediction.
    """

    def __init__(self,
                 base_model: Optional[NaiveBayesClassifier] = None,
                 analyzer: Optional[ComplexCaseAnalyzer] = None,
                 persistence: Optional[ModelPersistence] = None,
                 buffer_size: Optional[int] = None,
                 confidence_threshold: Optional[float] = None,
                 retraining_threshold: Optional[float] = None,
                 performance_window_size: Optional[int] = None):
        """
        Initialize the controller. Unset thresholds fall back to config.

        Args:
            base_model: Classifier to wrap; a new untrained one if None
            analyzer: Complex-case analyzer used by predict_enhanced
            persistence: Storage backend exposing load_naive_bayes_model/save_naive_bayes_model
            buffer_size: Feedbacks collected before an automatic learning pass
            confidence_threshold: Confidence separating hard mistakes from confident hits
            retraining_threshold: Accuracy drop that counts as drift
            performance_window_size: Accuracy snapshots kept for drift detection

        Raises:
            ValueError: If a size is not positive or a threshold is outside [0, 1]
        """
        self.buffer_size = config.BUFFER_SIZE if buffer_size is None else buffer_size
        self.confidence_threshold = (config.CONFIDENCE_THRESHOLD
                                     if confidence_threshold is None else confidence_threshold)
        self.retraining_threshold = (config.RETRAINING_THRESHOLD
                                     if retraining_threshold is None else retraining_threshold)
        self.performance_window_size = (config.PERFORMANCE_WINDOW_SIZE
                                        if performance_window_size is None else performance_window_size)

        if not isinstance(self.buffer_size, int) or self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be a positive integer, got {self.buffer_size}")
        if not isinstance(self.performance_window_size, int) or self.performance_window_size <= 0:
            raise ValueError(f"performance_window_size must be a positive integer, "
                             f"got {self.performance_window_size}")
        for name in ('confidence_threshold', 'retraining_threshold'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

        self.base_model = base_model if base_model is not None else NaiveBayesClassifier()
        self.analyzer = analyzer
        self.persistence = persistence

        self._lock = threading.RLock()
        self._buffer: List[FeedbackLoop] = []
        self._stats = AutoLearningStats()
        self._matrix = ConfusionMatrix()

        logger.info(f"AutoLearningClassifier initialized: buffer size {self.buffer_size}, "
                    f"confidence threshold {self.confidence_threshold}, "
                    f"retraining threshold {self.retraining_threshold}")

    # Base model delegation

    def predict(self, text: str) -> SentimentPrediction:
        """Predict sentiment with the base model."""
        with self._lock:
            return self.base_model.predict(text)

    def predict_enhanced(self, text: str) -> EnhancedPrediction:
        """
        Predict sentiment with the complex-case analyzer.

        Falls back to the base model when no analyzer is configured or the
        analyzer raises; never raises itself.

        Args:
            text: Input text to classify

        Returns:
            EnhancedPrediction, with fallback_used=True on the fallback path
        """
        if self.analyzer is not None:
            try:
                result = self.analyzer.analyze_complex_case(text)
                logger.debug(f"Enhanced prediction: {result.label.value} "
                             f"({result.confidence:.4f}), complexity {result.complexity_score:.2f}")
                return result
            except Exception as e:
                logger.error(f"Error in enhanced prediction, falling back to base model: {e}")
                reason = "Fallback to base model due to analyzer error"
        else:
            reason = "Fallback to base model: no complex-case analyzer configured"

        language = detect_language(text or "", self.base_model.options['default_lang'])
        return fallback_prediction(self.predict(text), reason, detected_language=language)

    def train(self, examples: List[ExampleLike]) -> None:
        """Train the base model from scratch."""
        with self._lock:
            self.base_model.train(examples)

    def incremental_train(self, examples: List[ExampleLike]) -> None:
        """
        Add examples to the base model without resetting it.

        Args:
            examples: Labeled examples. An empty list is a no-op.
        """
        if not examples:
            logger.warning("No examples provided for incremental training")
            return

        with self._lock:
            vocabulary_before = self.base_model.vocabulary_size
            self.base_model.incremental_train(examples)
            growth = self.base_model.vocabulary_size - vocabulary_before
            self._stats.vocabulary_growth += growth

        logger.info(f"Incremental training completed: {len(examples)} examples, "
                    f"vocabulary growth {growth}, new vocabulary size {self.base_model.vocabulary_size}")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return self.base_model.get_stats()

    def serialize(self) -> Dict[str, Any]:
        with self._lock:
            return self.base_model.serialize()

    def deserialize(self, data: Mapping[str, Any]) -> None:
        with self._lock:
            self.base_model.deserialize(data)

    # Feedback loop

    @property
    def buffer_length(self) -> int:
        with self._lock:
            return len(self._buffer)

    def provide_feedback(self,
                         text: str,
                         actual_label: Any,
                         user_id: Optional[str] = None,
                         source: Optional[str] = None) -> Optional[FeedbackLoop]:
        """
        Record the true label of a text and learn from it when due.

        Args:
            text: Text that was classified
            actual_label: Correct label (Label or its string value)
            user_id: Optional id of the user giving feedback
            source: Optional origin of the feedback

        Returns:
            The recorded FeedbackLoop, or None if the label was invalid
        """
        label = Label.parse(actual_label)
        if label is None:
            logger.warning(f"Ignoring feedback with invalid label: {actual_label!r}")
            return None

        with self._lock:
            prediction = self.base_model.predict(text)
            feedback = FeedbackLoop(
                prediction=prediction,
                actual_label=label,
                confidence=prediction.confidence,
                text=text,
                user_id=user_id,
                source=source,
            )

            self._buffer.append(feedback)
            self._update_stats(feedback)
            self._matrix.record(label, prediction.label)

            logger.debug(f"Feedback received: predicted {prediction.label.value}, actual {label.value}, "
                         f"confidence {prediction.confidence:.4f}, buffer {len(self._buffer)}")

            if len(self._buffer) >= self.buffer_size:
                self.process_automatic_learning()

            if self.detect_performance_drift():
                logger.warning("Performance drift detected, triggering model refresh")
                self.trigger_model_refresh()

        return feedback

    def _update_stats(self, feedback: FeedbackLoop) -> None:
        stats = self._stats
        stats.total_feedbacks += 1
        if feedback.is_correct:
            stats.correct_predictions += 1
        else:
            stats.wrong_predictions += 1

        alpha = config.EMA_ALPHA
        stats.average_confidence = alpha * feedback.confidence + (1 - alpha) * stats.average_confidence

    def process_automatic_learning(self) -> None:
        """
        Learn from the feedback buffer and empty it.

        Low-confidence mistakes are retrained on, together with a limited
        share of confident correct predictions. The current accuracy is then
        appended to the performance history.
        """
        with self._lock:
            logger.info(f"Processing automatic learning from {len(self._buffer)} buffered feedbacks")

            hard_examples = [
                TrainingExample(fb.text, fb.actual_label)
                for fb in self._buffer
                if not fb.is_correct and fb.confidence < self.confidence_threshold
            ]
            reinforcement_limit = math.floor(len(hard_examples) * config.REINFORCEMENT_RATIO)
            reinforcement_examples = [
                TrainingExample(fb.text, fb.actual_label)
                for fb in self._buffer
                if fb.is_correct and fb.confidence > self.confidence_threshold
            ][:reinforcement_limit]

            learning_examples = hard_examples + reinforcement_examples
            if learning_examples:
                self.incremental_train(learning_examples)
                self._stats.retraining_events += 1
                self._stats.last_retraining = datetime.now()
                logger.info(f"Auto-learned from {len(learning_examples)} examples "
                            f"({len(hard_examples)} mistakes, {len(reinforcement_examples)} reinforcements), "
                            f"total retraining events {self._stats.retraining_events}")

            history = self._stats.performance_history
            history.append(calculate_performance_metrics(self._matrix).accuracy)
            while len(history) > self.performance_window_size:
                history.pop(0)

            self._buffer.clear()

    def force_process_buffer(self) -> None:
        """Run a learning pass now if the buffer holds any feedback."""
        with self._lock:
            if not self._buffer:
                logger.info("Feedback buffer is empty, nothing to process")
                return
            self.process_automatic_learning()

    def detect_performance_drift(self) -> bool:
        with self._lock:
            return detect_performance_drift(
                self._stats.performance_history,
                self.performance_window_size,
                self.retraining_threshold,
            )

    def trigger_model_refresh(self) -> None:
        """
        Flush the buffer and try to reload the base model from persistence.

        A failed reload is logged and leaves the current model in place.
        """
        with self._lock:
            logger.warning("Triggering model refresh due to performance degradation")

            if self._buffer:
                self.process_automatic_learning()

            if self.persistence is None:
                logger.info("No persistence backend configured, skipping model reload")
                return

            try:
                metadata = self.persistence.load_naive_bayes_model(self.base_model)
            except Exception as e:
                logger.warning(f"Could not reload base model: {e}")
                return

            if metadata:
                logger.info(f"Base model reloaded: version {metadata.get('version')}")

    # Metrics and stats

    def calculate_performance_metrics(self) -> PerformanceMetrics:
        with self._lock:
            return calculate_performance_metrics(self._matrix)

    def get_current_metrics(self) -> PerformanceMetrics:
        return self.calculate_performance_metrics()

    def get_auto_learning_stats(self) -> AutoLearningStats:
        """Return a copy of the auto-learning statistics."""
        with self._lock:
            return self._stats.copy()

    def reset_auto_learning_stats(self) -> None:
        """Clear stats, performance history, confusion matrix and buffer. The model is kept."""
        with self._lock:
            self._stats = AutoLearningStats()
            self._matrix.reset()
            self._buffer.clear()
        logger.info("Auto-learning stats reset")

    # Persistence

    def serialize_with_auto_learning(self) -> Dict[str, Any]:
        """
        Snapshot the model together with the learning state.

        Returns:
            Dict with 'model', 'auto_learning_stats', 'performance_metrics' and 'timestamp'
        """
        with self._lock:
            return {
                'model': self.base_model.serialize(),
                'auto_learning_stats': self._stats.to_dict(),
                'performance_metrics': calculate_performance_metrics(self._matrix).to_dict(),
                'timestamp': datetime.now().isoformat(),
            }

    def deserialize_with_auto_learning(self, data: Mapping[str, Any]) -> None:
        """
        Restore a snapshot produced by serialize_with_auto_learning().

        Everything is parsed before any state changes; the buffer is cleared.

        Raises:
            KeyError: If the model snapshot is missing
            ValueError: If a part of the snapshot is malformed
        """
        model_data = data['model']
        stats = AutoLearningStats.from_dict(data.get('auto_learning_stats') or {})
        matrix_data = (data.get('performance_metrics') or {}).get('confusion_matrix')
        matrix = ConfusionMatrix.from_dict(matrix_data) if matrix_data else ConfusionMatrix()

        with self._lock:
            self.base_model.deserialize(model_data)
            self._stats = stats
            self._matrix = matrix
            self._buffer.clear()

        logger.info(f"Auto-learning state restored: {stats.total_feedbacks} feedbacks, "
                    f"{stats.retraining_events} retraining events")

    def load_model(self, version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Load the base model from the persistence backend.

        Args:
            version: Version to load; the latest one if None

        Returns:
            The model metadata, or None if nothing was loaded
        """
        if self.persistence is None:
            logger.warning("No persistence backend configured, cannot load model")
            return None
        with self._lock:
            try:
                return self.persistence.load_naive_bayes_model(self.base_model, version)
            except Exception as e:
                logger.error(f"Error loading model: {e}")
                return None

    def save_model(self, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Save the base model through the persistence backend.

        Args:
            metadata: Extra metadata stored with the snapshot

        Returns:
            Dict with 'success' and either the saved 'version' or an 'error'
        """
        if self.persistence is None:
            logger.warning("No persistence backend configured, cannot save model")
            return {'success': False, 'error': 'No persistence backend configured'}
        with self._lock:
            metrics = calculate_performance_metrics(self._matrix)
            full_metadata = {
                'accuracy': metrics.accuracy if self._matrix.total() else None,
                'auto_learning_stats': self._stats.to_dict(),
            }
            full_metadata.update(metadata or {})
            try:
                return self.persistence.save_naive_bayes_model(self.base_model, full_metadata)
            except Exception as e:
                logger.error(f"Error saving model: {e}")
                return {'success': False, 'error': str(e)}
