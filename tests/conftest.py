"""Shared fixtures for the sentiment classifier tests."""

import pytest

from sentiment.auto_learning import AutoLearningClassifier
from sentiment.naive_bayes import NaiveBayesClassifier
from sentiment.types import Label, TrainingExample
from utils.memory_storage import MemoryModelStorage


POSITIVE_TEXTS = [
    "I love this product",
    "great service and friendly staff",
    "absolutely wonderful experience",
    "this is fantastic",
    "best purchase ever",
    "really happy with the quality",
    "amazing value",
    "excellent support team",
    "I enjoyed every minute",
    "superb and delightful",
]

NEGATIVE_TEXTS = [
    "I hate this product",
    "terrible service and rude staff",
    "absolutely awful experience",
    "this is horrible",
    "worst purchase ever",
    "really unhappy with the quality",
    "poor value",
    "useless support team",
    "I regret every minute",
    "broken and disappointing",
]

NEUTRAL_TEXTS = [
    "the package arrived on tuesday",
    "the store opens at nine",
    "this product comes in blue",
    "the manual has ten pages",
    "delivery takes three days",
    "the box contains two items",
    "the office is on the second floor",
    "the meeting is scheduled for monday",
    "the item weighs two kilograms",
    "the price is listed online",
]


@pytest.fixture
def scenario_examples():
    """The three-sentence training set used by the auto-learning scenarios."""
    return [
        TrainingExample("I love it", Label.POSITIVE),
        TrainingExample("I hate it", Label.NEGATIVE),
        TrainingExample("it is ok", Label.NEUTRAL),
    ]


@pytest.fixture
def scenario_classifier(scenario_examples):
    """A Naive Bayes classifier trained on the scenario examples."""
    classifier = NaiveBayesClassifier(smoothing=1.0, prior="empirical")
    classifier.train(scenario_examples)
    return classifier


@pytest.fixture
def controller(scenario_classifier):
    """An auto-learning controller with default thresholds around the scenario model."""
    return AutoLearningClassifier(
        base_model=scenario_classifier,
        buffer_size=100,
        confidence_threshold=0.7,
        retraining_threshold=0.05,
        performance_window_size=50,
    )


@pytest.fixture
def memory_storage():
    """A fresh in-memory persistence backend."""
    return MemoryModelStorage()


@pytest.fixture
def sentiment_dataset():
    """Thirty labeled examples, ten per label."""
    return (
        [TrainingExample(text, Label.POSITIVE) for text in POSITIVE_TEXTS]
        + [TrainingExample(text, Label.NEGATIVE) for text in NEGATIVE_TEXTS]
        + [TrainingExample(text, Label.NEUTRAL) for text in NEUTRAL_TEXTS]
    )
