"""
Data types shared by the sentiment classifier and the auto-learning controller.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Label(str, Enum):
    """Sentiment label. The member order fixes the confusion matrix layout."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value: Any) -> Optional['Label']:
        """Return the matching label, or None for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


LABELS: List[Label] = list(Label)


@dataclass(frozen=True)
class TrainingExample:
    text: str
    label: Label


@dataclass(frozen=True)
class SentimentPrediction:
    """Result of a single prediction.

    ``confidence`` is the normalized posterior of the winning label,
    ``score`` its raw log-score and ``scores`` the posterior of every label.
    """

    label: Label
    confidence: float
    score: Optional[float] = None
    scores: Dict[Label, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label.value,
            'confidence': self.confidence,
            'score': self.score,
            'scores': {label.value: value for label, value in self.scores.items()},
        }


@dataclass(frozen=True)
class FeedbackLoop:
    """A labeled feedback event, kept in the buffer until the next learning pass."""

    prediction: SentimentPrediction
    actual_label: Label
    confidence: float
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    user_id: Optional[str] = None
    source: Optional[str] = None

    @property
    def is_correct(self) -> bool:
        return self.prediction.label == self.actual_label


@dataclass
class AutoLearningStats:
    """Counters of the auto-learning controller. vocabulary_growth is cumulative over all incremental passes."""

    total_feedbacks: int = 0
    correct_predictions: int = 0
    wrong_predictions: int = 0
    retraining_events: int = 0
    average_confidence: float = 0.0
    performance_history: List[float] = field(default_factory=list)
    vocabulary_growth: int = 0
    last_retraining: Optional[datetime] = None

    def copy(self) -> 'AutoLearningStats':
        return AutoLearningStats(
            total_feedbacks=self.total_feedbacks,
            correct_predictions=self.correct_predictions,
            wrong_predictions=self.wrong_predictions,
            retraining_events=self.retraining_events,
            average_confidence=self.average_confidence,
            performance_history=list(self.performance_history),
            vocabulary_growth=self.vocabulary_growth,
            last_retraining=self.last_retraining,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_feedbacks': self.total_feedbacks,
            'correct_predictions': self.correct_predictions,
            'wrong_predictions': self.wrong_predictions,
            'retraining_events': self.retraining_events,
            'average_confidence': self.average_confidence,
            'performance_history': list(self.performance_history),
            'vocabulary_growth': self.vocabulary_growth,
            'last_retraining': self.last_retraining.isoformat() if self.last_retraining else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AutoLearningStats':
        last_retraining = data.get('last_retraining')
        if isinstance(last_retraining, str):
            last_retraining = datetime.fromisoformat(last_retraining)
        return cls(
            total_feedbacks=int(data.get('total_feedbacks', 0)),
            correct_predictions=int(data.get('correct_predictions', 0)),
            wrong_predictions=int(data.get('wrong_predictions', 0)),
            retraining_events=int(data.get('retraining_events', 0)),
            average_confidence=float(data.get('average_confidence', 0.0)),
            performance_history=[float(v) for v in data.get('performance_history', [])],
            vocabulary_growth=int(data.get('vocabulary_growth', 0)),
            last_retraining=last_retraining,
        )


@dataclass(frozen=True)
class PerformanceMetrics:
    """Macro-averaged metrics derived from a confusion matrix.

    ``confusion_matrix`` is a nested mapping ``{actual: {predicted: count}}``.
    """

    accuracy: float
    precision: float
    recall: float
    f1_score: float
    confusion_matrix: Dict[str, Dict[str, int]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'accuracy': self.accuracy,
            'precision': self.precision,
            'recall': self.recall,
            'f1_score': self.f1_score,
            'confusion_matrix': {
                actual: dict(row) for actual, row in self.confusion_matrix.items()
            },
        }


@dataclass(frozen=True)
class ComplexCaseFeatures:
    """Signals reported by the complex-case analyzer."""

    sarcasm_score: float = 0.0
    has_quoted_positives: bool = False
    has_contradictions: bool = False
    has_slang: bool = False
    has_typos: bool = False
    normalized_confidence: float = 0.0
    temporal_context: Optional[str] = None  # 'past' | 'present' | 'future'
    double_negation: bool = False
    cultural_context: Optional[str] = None  # 'formal' | 'informal' | 'slang'
    emotional_intensity: float = 0.0
    contradictory_signals: bool = False
    detected_language: str = "en"
    is_mixed_language: bool = False


@dataclass(frozen=True)
class EnhancedPrediction(SentimentPrediction):
    complexity_score: float = 0.0
    features: ComplexCaseFeatures = field(default_factory=ComplexCaseFeatures)
    reasoning: List[str] = field(default_factory=list)
    fallback_used: bool = False
