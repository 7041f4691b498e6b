"""
Multinomial Naive Bayes sentiment classifier.

This module provides the NaiveBayesClassifier class which encapsulates:
- Destructive training and non-destructive incremental training
- Predictions with additive smoothing and normalized posteriors
- Model statistics for monitoring vocabulary growth
- Model serialization/deserialization and merging
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

import numpy as np

from .preprocessor import SUPPORTED_LANGUAGES, tokenize
from .types import LABELS, Label, SentimentPrediction, TrainingExample
import config

logger = logging.getLogger(__name__)

PRIOR_MODES = ('empirical', 'uniform')

ExampleLike = Union[TrainingExample, Mapping[str, Any]]


def _coerce_example(example: Any) -> Optional[Tuple[str, Label]]:
    """Extract (text, label) from a TrainingExample or a mapping, or None if unusable."""
    if isinstance(example, TrainingExample):
        text, raw_label = example.text, example.label
    elif isinstance(example, Mapping):
        text, raw_label = example.get('text'), example.get('label')
    else:
        return None

    label = Label.parse(raw_label)
    if not text or not isinstance(text, str) or not text.strip() or label is None:
        return None
    return text, label


class NaiveBayesClassifier:
    """
    Multinomial Naive Bayes classifier over positive/negative/neutral labels.

    Token likelihoods use additive (Laplace) smoothing over the full
    vocabulary. Tokens never seen in training are ignored at prediction time
    since they contribute equally to every label. Tied scores resolve to
    neutral.
    """

    def __init__(self,
                 smoothing: Optional[float] = None,
                 prior: Optional[str] = None,
                 default_lang: Optional[str] = None,
                 enable_lang_detect: Optional[bool] = None,
                 enable_stopwords: Optional[bool] = None,
                 enable_negation: Optional[bool] = None):
        """
        Initialize a new, untrained classifier. Unset options fall back to config.

        Raises:
            ValueError: If an option is out of range
        """
        self.options: Dict[str, Any] = {
            'smoothing': config.SMOOTHING if smoothing is None else float(smoothing),
            'prior': config.PRIOR if prior is None else prior,
            'default_lang': config.DEFAULT_LANG if default_lang is None else default_lang,
            'enable_lang_detect': config.ENABLE_LANG_DETECT if enable_lang_detect is None else enable_lang_detect,
            'enable_stopwords': config.ENABLE_STOPWORDS if enable_stopwords is None else enable_stopwords,
            'enable_negation': config.ENABLE_NEGATION if enable_negation is None else enable_negation,
        }
        self._validate_options(self.options)
        self._reset()

    @staticmethod
    def _validate_options(options: Dict[str, Any]) -> None:
        if options['smoothing'] <= 0:
            raise ValueError(f"Smoothing must be positive, got {options['smoothing']}")
        if options['prior'] not in PRIOR_MODES:
            raise ValueError(f"Unknown prior '{options['prior']}', expected one of {PRIOR_MODES}")
        if options['default_lang'] not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported default language '{options['default_lang']}'")

    def _reset(self) -> None:
        self.vocabulary: Set[str] = set()
        self.word_counts: Dict[Label, Dict[str, int]] = {label: {} for label in LABELS}
        self.class_counts: Dict[Label, int] = {label: 0 for label in LABELS}
        self.total_words: Dict[Label, int] = {label: 0 for label in LABELS}
        self.total_documents = 0
        self.training_date: Optional[str] = None

    @property
    def smoothing(self) -> float:
        return self.options['smoothing']

    @property
    def vocabulary_size(self) -> int:
        return len(self.vocabulary)

    @property
    def is_trained(self) -> bool:
        """
        Check if the model has been trained.

        Returns:
            bool: True if at least one document has been counted
        """
        return self.total_documents > 0

    def _tokenize(self, text: str) -> List[str]:
        return tokenize(
            text,
            default_lang=self.options['default_lang'],
            detect_lang=self.options['enable_lang_detect'],
            remove_stopwords=self.options['enable_stopwords'],
            handle_negation=self.options['enable_negation'],
        )

    def _prepare(self, examples: Iterable[ExampleLike]) -> List[Tuple[Label, List[str]]]:
        prepared = []
        skipped = 0
        for example in examples:
            coerced = _coerce_example(example)
            if coerced is None:
                skipped += 1
                continue
            text, label = coerced
            prepared.append((label, self._tokenize(text)))

        if skipped:
            logger.warning(f"Skipped {skipped} training examples with empty text or invalid label")
        return prepared

    def _accumulate(self, prepared: List[Tuple[Label, List[str]]]) -> None:
        for label, tokens in prepared:
            self.class_counts[label] += 1
            self.total_documents += 1

            counts = self.word_counts[label]
            for token in tokens:
                self.vocabulary.add(token)
                counts[token] = counts.get(token, 0) + 1
            self.total_words[label] += len(tokens)

        self.training_date = datetime.now().isoformat()

    def train(self, examples: List[ExampleLike]) -> None:
        """
        Train from scratch, discarding everything learned before.

        Args:
            examples: Labeled training examples. An empty list is a no-op.
        """
        if not examples:
            logger.warning("No examples provided for training")
            return

        prepared = self._prepare(examples)
        if not prepared:
            logger.warning("No usable examples provided for training, keeping current model")
            return

        logger.info(f"Training Naive Bayes with {len(prepared)} examples")
        self._reset()
        self._accumulate(prepared)

        logger.info(f"Training completed: vocabulary size {self.vocabulary_size}, "
                    f"class counts {self._class_counts_dict()}, documents {self.total_documents}")

    def incremental_train(self, examples: List[ExampleLike]) -> None:
        """
        Merge new examples into the existing counts without resetting the model.

        Args:
            examples: Labeled training examples. An empty list is a no-op.
        """
        if not examples:
            logger.warning("No examples provided for incremental training")
            return

        prepared = self._prepare(examples)
        if not prepared:
            logger.warning("No usable examples provided for incremental training")
            return

        logger.info(f"Incremental training with {len(prepared)} examples")
        self._accumulate(prepared)

        logger.info(f"Incremental training completed: vocabulary size {self.vocabulary_size}, "
                    f"class counts {self._class_counts_dict()}, documents {self.total_documents}")

    def bootstrap(self, datasets: List[List[ExampleLike]]) -> None:
        """Train from scratch on the concatenation of several datasets."""
        combined = [example for dataset in datasets for example in dataset]
        self.train(combined)
        logger.info(f"Bootstrap training completed with {len(datasets)} datasets, "
                    f"{len(combined)} examples")

    def _log_priors(self) -> np.ndarray:
        if self.options['prior'] == 'uniform':
            return np.full(len(LABELS), np.log(1.0 / len(LABELS)))

        s = self.smoothing
        counts = np.array([self.class_counts[label] for label in LABELS], dtype=float)
        return np.log((counts + s) / (self.total_documents + len(LABELS) * s))

    def predict(self, text: str) -> SentimentPrediction:
        """
        Predict sentiment from text input.

        Args:
            text: Input text to classify

        Returns:
            SentimentPrediction with the winning label, its posterior as
            confidence, its log-score, and the posterior of every label
        """
        if not text or not isinstance(text, str) or not text.strip():
            uniform = 1.0 / len(LABELS)
            return SentimentPrediction(
                label=Label.NEUTRAL,
                confidence=uniform,
                score=None,
                scores={label: uniform for label in LABELS},
            )

        known = [token for token in self._tokenize(text) if token in self.vocabulary]
        log_scores = self._log_priors()

        if known:
            s = self.smoothing
            counts = np.array(
                [[self.word_counts[label].get(token, 0) for token in known] for label in LABELS],
                dtype=float,
            )
            denominators = np.array(
                [self.total_words[label] + self.vocabulary_size * s for label in LABELS],
                dtype=float,
            )
            log_scores = log_scores + np.log(counts + s).sum(axis=1) - len(known) * np.log(denominators)

        # Soft-max over the log-scores; the winner's term is exp(0) = 1
        shifted = np.exp(log_scores - log_scores.max())
        posteriors = shifted / shifted.sum()
        # Ties go to the last label in LABELS order (neutral)
        winner = int(np.flatnonzero(log_scores == log_scores.max())[-1])

        return SentimentPrediction(
            label=LABELS[winner],
            confidence=float(posteriors[winner]),
            score=float(log_scores[winner]),
            scores={label: float(posteriors[i]) for i, label in enumerate(LABELS)},
        )

    def predict_batch(self, texts: List[str]) -> List[SentimentPrediction]:
        """
        Predict sentiment for multiple text inputs.

        Args:
            texts: List of input texts to classify

        Returns:
            List of predictions in input order
        """
        return [self.predict(text) for text in texts]

    def _class_counts_dict(self) -> Dict[str, int]:
        return {label.value: count for label, count in self.class_counts.items()}

    def get_stats(self) -> Dict[str, Any]:
        """
        Get model statistics.

        Returns:
            Dict with vocabulary size, document and token counts and options
        """
        return {
            'trained': self.is_trained,
            'vocabulary_size': self.vocabulary_size,
            'total_documents': self.total_documents,
            'class_counts': self._class_counts_dict(),
            'total_words_per_class': {label.value: n for label, n in self.total_words.items()},
            'smoothing': self.smoothing,
            'options': dict(self.options),
            'training_date': self.training_date,
        }

    def serialize(self) -> Dict[str, Any]:
        """
        Snapshot the model as plain, JSON-compatible data.

        Returns:
            Dict with vocabulary, per-class counts, priors, smoothing and options
        """
        return {
            'vocabulary': sorted(self.vocabulary),
            'class_word_counts': {
                label.value: dict(counts) for label, counts in self.word_counts.items()
            },
            'class_counts': self._class_counts_dict(),
            'total_words_per_class': {label.value: n for label, n in self.total_words.items()},
            'total_documents': self.total_documents,
            'smoothing': self.smoothing,
            'options': dict(self.options),
            'training_date': self.training_date,
        }

    def deserialize(self, data: Mapping[str, Any]) -> None:
        """
        Replace the model state with a snapshot produced by serialize().

        The snapshot is fully parsed before any state changes, so a malformed
        snapshot leaves the current model untouched.

        Args:
            data: Serialized model

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field holds an invalid label or value
        """
        word_counts: Dict[Label, Dict[str, int]] = {label: {} for label in LABELS}
        for raw_label, counts in data['class_word_counts'].items():
            label = Label.parse(raw_label)
            if label is None:
                raise ValueError(f"Invalid label in snapshot: {raw_label}")
            word_counts[label] = {str(token): int(count) for token, count in counts.items()}

        class_counts: Dict[Label, int] = {label: 0 for label in LABELS}
        for raw_label, count in data['class_counts'].items():
            label = Label.parse(raw_label)
            if label is None:
                raise ValueError(f"Invalid label in snapshot: {raw_label}")
            class_counts[label] = int(count)

        total_words: Dict[Label, int] = {label: sum(word_counts[label].values()) for label in LABELS}
        # Older snapshots do not carry per-class totals
        for raw_label, total in (data.get('total_words_per_class') or {}).items():
            label = Label.parse(raw_label)
            if label is None:
                raise ValueError(f"Invalid label in snapshot: {raw_label}")
            total_words[label] = int(total)

        vocabulary = set(data.get('vocabulary') or [])
        for counts in word_counts.values():
            vocabulary.update(counts)

        options = dict(self.options)
        options.update({k: v for k, v in (data.get('options') or {}).items() if k in options})
        options['smoothing'] = float(data.get('smoothing', options['smoothing']))
        self._validate_options(options)

        total_documents = int(data.get('total_documents', sum(class_counts.values())))

        self.vocabulary = vocabulary
        self.word_counts = word_counts
        self.class_counts = class_counts
        self.total_words = total_words
        self.total_documents = total_documents
        self.options = options
        self.training_date = data.get('training_date')

    def merge_with(self, other: 'NaiveBayesClassifier') -> None:
        """
        Add the counts of another classifier to this one.

        Args:
            other: Classifier trained elsewhere (e.g. on another shard)
        """
        logger.info("Merging with another model")

        for label in LABELS:
            counts = self.word_counts[label]
            for token, count in other.word_counts[label].items():
                counts[token] = counts.get(token, 0) + count
            self.class_counts[label] += other.class_counts[label]
            self.total_words[label] += other.total_words[label]

        self.vocabulary.update(other.vocabulary)
        self.total_documents += other.total_documents

        logger.info(f"Model merge completed: vocabulary size {self.vocabulary_size}, "
                    f"documents {self.total_documents}")
