"""
Enhanced prediction path for complex cases (sarcasm, negation, slang).

The complex-case analyzer itself lives outside this package; this module
declares the interface it must satisfy and builds the fallback result used
when it is missing or fails.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .types import ComplexCaseFeatures, EnhancedPrediction, SentimentPrediction


@runtime_checkable
class ComplexCaseAnalyzer(Protocol):
    """Anything able to produce an EnhancedPrediction for a text. May raise."""

    def analyze_complex_case(self, text: str) -> EnhancedPrediction:
        ...


@runtime_checkable
class ModelPersistence(Protocol):
    """Storage backend able to save and restore a NaiveBayesClassifier. May raise."""

    def load_naive_bayes_model(self, target: Any, version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ...

    def save_naive_bayes_model(self, target: Any, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...


def fallback_prediction(prediction: SentimentPrediction,
                        reason: str,
                        detected_language: str = 'en',
                        reasoning: Optional[List[str]] = None) -> EnhancedPrediction:
    """
    Wrap a plain prediction into the enhanced shape with neutral features.

    Args:
        prediction: Base classifier prediction
        reason: Human-readable note explaining why the fallback was used
        detected_language: Language reported in the features
        reasoning: Extra notes appended after ``reason``

    Returns:
        EnhancedPrediction with fallback_used=True
    """
    features = ComplexCaseFeatures(
        normalized_confidence=prediction.confidence,
        detected_language=detected_language,
    )
    return EnhancedPrediction(
        label=prediction.label,
        confidence=prediction.confidence,
        score=prediction.score,
        scores=dict(prediction.scores),
        complexity_score=0.0,
        features=features,
        reasoning=[reason] + list(reasoning or []),
        fallback_used=True,
    )
