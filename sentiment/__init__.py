"""
Sentiment package for the auto-learning classifier.

This package contains modules for:
- Text preprocessing (preprocessor.py)
- Naive Bayes classification (naive_bayes.py)
- Feedback-driven auto-learning (auto_learning.py)
- Performance metrics and drift detection (metrics.py and drift.py)
- Offline training and evaluation (trainer.py)
"""

from .types import (
    LABELS,
    AutoLearningStats,
    ComplexCaseFeatures,
    EnhancedPrediction,
    FeedbackLoop,
    Label,
    PerformanceMetrics,
    SentimentPrediction,
    TrainingExample,
)
from .preprocessor import tokenize, detect_language
from .naive_bayes import NaiveBayesClassifier
from .metrics import ConfusionMatrix, calculate_performance_metrics, classification_report
from .drift import detect_performance_drift
from .enhanced import ComplexCaseAnalyzer, ModelPersistence, fallback_prediction
from .auto_learning import AutoLearningClassifier
from .trainer import (
    load_training_data,
    train_new_model,
    cross_validate,
    get_current_model_version,
    clean_old_models
)

__all__ = [
    # Types
    'LABELS',
    'Label',
    'TrainingExample',
    'SentimentPrediction',
    'FeedbackLoop',
    'AutoLearningStats',
    'PerformanceMetrics',
    'ComplexCaseFeatures',
    'EnhancedPrediction',

    # Preprocessor
    'tokenize',
    'detect_language',

    # Classifiers
    'NaiveBayesClassifier',
    'AutoLearningClassifier',

    # Metrics
    'ConfusionMatrix',
    'calculate_performance_metrics',
    'classification_report',
    'detect_performance_drift',

    # Enhanced path
    'ComplexCaseAnalyzer',
    'ModelPersistence',
    'fallback_prediction',

    # Trainer
    'load_training_data',
    'train_new_model',
    'cross_validate',
    'get_current_model_version',
    'clean_old_models'
]
