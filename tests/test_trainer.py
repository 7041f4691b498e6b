"""Tests for offline training and evaluation."""

import pandas as pd
import pytest

import config
from sentiment.trainer import (
    clean_old_models,
    cross_validate,
    evaluation_report,
    get_current_model_version,
    load_training_data,
    train_new_model,
)
from sentiment.types import Label


@pytest.fixture
def dataset_frame(sentiment_dataset):
    """The sentiment dataset as a DataFrame with a few unusable rows."""
    rows = [{"text": e.text, "label": e.label.value} for e in sentiment_dataset]
    rows += [
        {"text": "mystery row", "label": "sarcastic"},
        {"text": None, "label": "positive"},
        {"text": "   ", "label": "negative"},
        {"text": "shouting works too", "label": " POSITIVE "},
    ]
    return pd.DataFrame(rows)


class TestLoadTrainingData:
    """Test suite for load_training_data."""

    def test_load_csv(self, tmp_path, dataset_frame):
        """Test loading a CSV and dropping unusable rows."""
        path = tmp_path / "data.csv"
        dataset_frame.to_csv(path, index=False)

        examples = load_training_data(str(path))

        assert len(examples) == 31
        assert examples[-1].label == Label.POSITIVE
        assert examples[-1].text == "shouting works too"

    def test_load_json_with_custom_columns(self, tmp_path, dataset_frame):
        """Test loading JSON records with renamed columns."""
        path = tmp_path / "data.json"
        dataset_frame.rename(columns={"text": "review", "label": "sentiment"}).to_json(path, orient="records")

        examples = load_training_data(str(path), text_col="review", label_col="sentiment")

        assert len(examples) == 31

    def test_not_enough_data(self, tmp_path, dataset_frame):
        """Test that a small dataset is refused."""
        path = tmp_path / "small.csv"
        dataset_frame.head(config.MIN_TRAINING_DATA - 1).to_csv(path, index=False)
        assert load_training_data(str(path)) is None

    def test_missing_column(self, tmp_path, dataset_frame):
        """Test that a file without the label column is refused."""
        path = tmp_path / "data.csv"
        dataset_frame.drop(columns=["label"]).to_csv(path, index=False)
        assert load_training_data(str(path)) is None

    def test_unsupported_format(self, tmp_path):
        """Test that unknown file types are refused."""
        path = tmp_path / "data.txt"
        path.write_text("text,label\n")
        assert load_training_data(str(path)) is None


class TestTrainNewModel:
    """Test suite for train_new_model."""

    def test_trains_and_saves(self, sentiment_dataset, memory_storage):
        """Test hold-out training and saving through the given backend."""
        result = train_new_model(sentiment_dataset, storage=memory_storage)

        assert result is not None
        assert result['training_data_size'] == 24
        assert result['test_data_size'] == 6
        assert 0 <= result['accuracy'] <= 1
        assert result['vocabulary_size'] > 0
        assert get_current_model_version(memory_storage) == result['version']

        metadata = memory_storage.load_metadata()
        assert metadata['dataset_size'] == 30
        assert metadata['accuracy'] == result['accuracy']

    def test_not_enough_examples(self, sentiment_dataset, memory_storage):
        """Test that training refuses tiny datasets."""
        assert train_new_model(sentiment_dataset[:3], storage=memory_storage) is None
        assert memory_storage.list_models() == []


class TestCrossValidate:
    """Test suite for cross_validate."""

    def test_k_fold(self, sentiment_dataset):
        """Test per-fold metrics and their summary."""
        results = cross_validate(sentiment_dataset, k=5)

        assert results['k'] == 5
        assert len(results['folds']) == 5
        assert all(fold['test_size'] == 6 for fold in results['folds'])
        assert 0 <= results['accuracy']['mean'] <= 1
        assert results['accuracy']['std'] >= 0

    def test_too_few_examples_per_label(self, sentiment_dataset):
        """Test that k larger than the smallest label is refused."""
        assert cross_validate(sentiment_dataset, k=11) is None

    def test_single_label(self, sentiment_dataset):
        """Test that a dataset with one label is refused."""
        assert cross_validate(sentiment_dataset[:10], k=2) is None


class TestModelVersions:
    """Test suite for versions and cleanup."""

    def test_default_version(self, memory_storage):
        """Test the fallback version when nothing has been saved."""
        assert get_current_model_version(memory_storage) == f"{config.MODEL_VERSION_PREFIX}0"

    def test_clean_old_models(self, memory_storage, scenario_classifier):
        """Test that only the newest models are kept."""
        versions = [memory_storage.save_naive_bayes_model(scenario_classifier)['version'] for _ in range(4)]

        deleted = clean_old_models(memory_storage, keep_newest=2)

        assert deleted == 2
        assert [m['version'] for m in memory_storage.list_models()] == versions[:1:-1]

    def test_nothing_to_clean(self, memory_storage, scenario_classifier):
        """Test that cleanup below the limit deletes nothing."""
        memory_storage.save_naive_bayes_model(scenario_classifier)
        assert clean_old_models(memory_storage, keep_newest=2) == 0


def test_evaluation_report(scenario_classifier, scenario_examples):
    """Test the per-label report of a classifier on labeled examples."""
    report = evaluation_report(scenario_classifier, scenario_examples)
    assert list(report['support']) == [1, 1, 1]
    assert list(report['recall']) == pytest.approx([1.0, 1.0, 1.0])
