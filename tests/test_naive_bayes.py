"""Tests for the NaiveBayesClassifier class."""

import json

import pytest

from sentiment.naive_bayes import NaiveBayesClassifier
from sentiment.types import LABELS, Label, TrainingExample


class TestConstruction:
    """Test suite for classifier options."""

    def test_untrained_classifier(self):
        """Test that a new classifier starts empty."""
        classifier = NaiveBayesClassifier()
        assert classifier.is_trained is False
        assert classifier.vocabulary_size == 0
        assert classifier.get_stats()['total_documents'] == 0

    @pytest.mark.parametrize("kwargs", [
        {"smoothing": 0},
        {"smoothing": -1.0},
        {"prior": "bogus"},
        {"default_lang": "xx"},
    ])
    def test_invalid_options_raise(self, kwargs):
        """Test that out-of-range options are rejected immediately."""
        with pytest.raises(ValueError):
            NaiveBayesClassifier(**kwargs)


class TestTraining:
    """Test suite for training."""

    def test_train_builds_vocabulary_and_priors(self, scenario_classifier):
        """Test counts after training on the scenario examples."""
        assert scenario_classifier.vocabulary == {"love", "hate", "ok"}
        assert scenario_classifier.class_counts == {label: 1 for label in LABELS}
        assert scenario_classifier.total_documents == 3

    def test_train_is_destructive(self, scenario_classifier):
        """Test that train discards previously learned counts."""
        scenario_classifier.train([TrainingExample("brilliant film", Label.POSITIVE)])
        assert scenario_classifier.vocabulary == {"brilliant", "film"}
        assert scenario_classifier.total_documents == 1
        assert scenario_classifier.class_counts[Label.NEGATIVE] == 0

    def test_train_empty_is_noop(self, scenario_classifier):
        """Test that training on nothing keeps the current model."""
        before = scenario_classifier.serialize()
        scenario_classifier.train([])
        assert scenario_classifier.serialize() == before

    def test_incremental_train_empty_is_noop(self, scenario_classifier):
        """Test that incremental training on nothing changes neither vocabulary nor priors."""
        vocabulary_size = scenario_classifier.vocabulary_size
        class_counts = dict(scenario_classifier.class_counts)

        scenario_classifier.incremental_train([])

        assert scenario_classifier.vocabulary_size == vocabulary_size
        assert scenario_classifier.class_counts == class_counts

    def test_incremental_train_adds_counts(self, scenario_classifier):
        """Test that incremental training merges into existing counts."""
        scenario_classifier.incremental_train([
            TrainingExample("love love brilliant", Label.POSITIVE),
        ])
        assert scenario_classifier.class_counts[Label.POSITIVE] == 2
        assert scenario_classifier.word_counts[Label.POSITIVE]["love"] == 3
        assert scenario_classifier.total_words[Label.POSITIVE] == 4
        assert "brilliant" in scenario_classifier.vocabulary
        assert scenario_classifier.total_documents == 4

    def test_vocabulary_never_shrinks(self, scenario_classifier):
        """Test that incremental training keeps every known token."""
        before = set(scenario_classifier.vocabulary)
        scenario_classifier.incremental_train([TrainingExample("fresh words", Label.NEUTRAL)])
        assert before <= scenario_classifier.vocabulary

    def test_invalid_examples_are_skipped(self):
        """Test that examples with blank text or unknown labels are ignored."""
        classifier = NaiveBayesClassifier()
        classifier.train([
            {"text": "good stuff", "label": "bogus"},
            {"text": "   ", "label": "positive"},
            {"text": "great movie", "label": "Positive"},
            "not an example",
        ])
        assert classifier.total_documents == 1
        assert classifier.class_counts[Label.POSITIVE] == 1

    def test_all_invalid_examples_keep_model(self, scenario_classifier):
        """Test that a batch with no usable example is a no-op."""
        before = scenario_classifier.serialize()
        scenario_classifier.train([{"text": "", "label": "positive"}])
        assert scenario_classifier.serialize() == before

    def test_bootstrap_concatenates_datasets(self):
        """Test training on several datasets at once."""
        classifier = NaiveBayesClassifier()
        classifier.bootstrap([
            [TrainingExample("great film", Label.POSITIVE)],
            [TrainingExample("awful film", Label.NEGATIVE), TrainingExample("long film", Label.NEUTRAL)],
        ])
        assert classifier.total_documents == 3
        assert classifier.word_counts[Label.NEGATIVE]["film"] == 1


class TestPrediction:
    """Test suite for prediction."""

    def test_scenario_prediction(self, scenario_classifier):
        """Test the posterior of a known text."""
        prediction = scenario_classifier.predict("I love it")
        assert prediction.label == Label.POSITIVE
        assert prediction.confidence == pytest.approx(0.5)
        assert prediction.scores[Label.NEGATIVE] == pytest.approx(0.25)
        assert prediction.scores[Label.NEUTRAL] == pytest.approx(0.25)

    @pytest.mark.parametrize("text", ["I love it", "I hate it", "it is ok", "something else entirely", ""])
    def test_prediction_bounds(self, scenario_classifier, text):
        """Test that every prediction has a valid label and confidence in (0, 1]."""
        prediction = scenario_classifier.predict(text)
        assert prediction.label in LABELS
        assert 0 < prediction.confidence <= 1
        assert sum(prediction.scores.values()) == pytest.approx(1.0)

    def test_empty_text_is_neutral(self, scenario_classifier):
        """Test that empty input predicts neutral with uniform posteriors."""
        for text in ("", "   "):
            prediction = scenario_classifier.predict(text)
            assert prediction.label == Label.NEUTRAL
            assert prediction.confidence == pytest.approx(1 / 3)
            assert prediction.score is None

    def test_unknown_tokens_do_not_bias(self, scenario_classifier):
        """Test that out-of-vocabulary tokens leave the posteriors at the priors."""
        prediction = scenario_classifier.predict("completely unseen vocabulary")
        for label in LABELS:
            assert prediction.scores[label] == pytest.approx(1 / 3)

    def test_untrained_model_predicts_neutral(self):
        """Test that tied scores on an untrained model resolve to neutral."""
        prediction = NaiveBayesClassifier().predict("hello world")
        assert prediction.label == Label.NEUTRAL
        assert prediction.confidence == pytest.approx(1 / 3)

    def test_unknown_only_text_predicts_neutral(self, scenario_classifier):
        """Test that text without known tokens on a balanced model resolves to neutral."""
        assert scenario_classifier.predict("something completely new").label == Label.NEUTRAL

    def test_partial_tie_prefers_later_label(self):
        """Test that a tie between positive and negative goes to negative."""
        classifier = NaiveBayesClassifier(prior="uniform")
        classifier.train([
            TrainingExample("shared", Label.POSITIVE),
            TrainingExample("shared", Label.NEGATIVE),
            TrainingExample("other", Label.NEUTRAL),
        ])
        assert classifier.predict("shared").label == Label.NEGATIVE

    def test_unknown_tokens_ignored_next_to_known(self, scenario_classifier):
        """Test that adding unseen words does not change the prediction."""
        plain = scenario_classifier.predict("I love it")
        noisy = scenario_classifier.predict("I love it zebra quantum")
        assert noisy.label == plain.label
        assert noisy.confidence == pytest.approx(plain.confidence)

    def test_uniform_prior(self):
        """Test that the uniform prior ignores class imbalance."""
        examples = [TrainingExample("great", Label.POSITIVE)] * 8 + [
            TrainingExample("awful", Label.NEGATIVE),
            TrainingExample("table", Label.NEUTRAL),
        ]
        empirical = NaiveBayesClassifier(prior="empirical")
        uniform = NaiveBayesClassifier(prior="uniform")
        empirical.train(examples)
        uniform.train(examples)

        assert empirical.predict("unseen").label == Label.POSITIVE
        assert empirical.predict("unseen").confidence > 0.5
        assert uniform.predict("unseen").confidence == pytest.approx(1 / 3)

    def test_negation_changes_prediction(self):
        """Test that negated words are learned separately from plain ones."""
        classifier = NaiveBayesClassifier()
        classifier.train([
            TrainingExample("I like this movie", Label.POSITIVE),
            TrainingExample("I do not like this movie", Label.NEGATIVE),
            TrainingExample("the movie starts at eight", Label.NEUTRAL),
        ])
        assert classifier.predict("I do not like it").label == Label.NEGATIVE
        assert classifier.predict("I like it").label == Label.POSITIVE

    def test_smoothing_affects_confidence(self, scenario_examples):
        """Test that heavier smoothing flattens the posteriors."""
        light = NaiveBayesClassifier(smoothing=0.1)
        heavy = NaiveBayesClassifier(smoothing=10.0)
        light.train(scenario_examples)
        heavy.train(scenario_examples)
        assert light.predict("I love it").confidence > heavy.predict("I love it").confidence

    def test_predict_batch(self, scenario_classifier):
        """Test batch prediction keeps input order."""
        predictions = scenario_classifier.predict_batch(["I love it", "I hate it", "it is ok"])
        assert [p.label for p in predictions] == [Label.POSITIVE, Label.NEGATIVE, Label.NEUTRAL]


class TestSerialization:
    """Test suite for serialize/deserialize."""

    def test_round_trip(self, scenario_classifier):
        """Test that a deserialized model predicts identically."""
        snapshot = scenario_classifier.serialize()
        restored = NaiveBayesClassifier()
        restored.deserialize(json.loads(json.dumps(snapshot)))

        assert restored.get_stats() == scenario_classifier.get_stats()
        for text in ("I love it", "I hate it", "it is ok"):
            assert restored.predict(text) == scenario_classifier.predict(text)

    def test_missing_totals_are_recomputed(self, scenario_classifier):
        """Test that snapshots without per-class totals still load."""
        snapshot = scenario_classifier.serialize()
        del snapshot['total_words_per_class']

        restored = NaiveBayesClassifier()
        restored.deserialize(snapshot)
        assert restored.total_words == scenario_classifier.total_words

    def test_malformed_snapshot_leaves_model_unchanged(self, scenario_classifier):
        """Test that a bad snapshot raises before touching the model."""
        before = scenario_classifier.serialize()

        with pytest.raises(ValueError):
            scenario_classifier.deserialize({
                'class_word_counts': {'bogus': {'x': 1}},
                'class_counts': {'positive': 1},
            })
        with pytest.raises(KeyError):
            scenario_classifier.deserialize({'class_counts': {'positive': 1}})

        assert scenario_classifier.serialize() == before

    def test_invalid_smoothing_in_snapshot(self, scenario_classifier):
        """Test that a snapshot with non-positive smoothing is rejected."""
        snapshot = scenario_classifier.serialize()
        snapshot['smoothing'] = 0
        with pytest.raises(ValueError):
            NaiveBayesClassifier().deserialize(snapshot)


class TestMerge:
    """Test suite for merge_with."""

    def test_merge_sums_counts(self, scenario_classifier):
        """Test that merging adds another classifier's counts."""
        other = NaiveBayesClassifier()
        other.train([
            TrainingExample("love this", Label.POSITIVE),
            TrainingExample("dreadful", Label.NEGATIVE),
        ])

        scenario_classifier.merge_with(other)

        assert scenario_classifier.total_documents == 5
        assert scenario_classifier.class_counts[Label.POSITIVE] == 2
        assert scenario_classifier.word_counts[Label.POSITIVE]["love"] == 2
        assert {"this", "dreadful"} <= scenario_classifier.vocabulary
