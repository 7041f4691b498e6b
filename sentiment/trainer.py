"""
Model training coordinator for the sentiment classifier.

This module coordinates offline training of new models, including:
- Loading labeled datasets from CSV or JSON files
- Hold-out training and evaluation
- Stratified k-fold cross-validation
- Saving and cleaning up versioned models
"""

import os
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

from .metrics import ConfusionMatrix, classification_report
from .naive_bayes import NaiveBayesClassifier
from .types import Label, TrainingExample
import config

logger = logging.getLogger(__name__)


def load_training_data(path: str,
                       text_col: str = "text",
                       label_col: str = "label") -> Optional[List[TrainingExample]]:
    """
    Load labeled examples from a CSV or JSON file.

    Rows with blank text or an unknown label are dropped.

    Args:
        path: Path to a .csv, .json or .jsonl file
        text_col: Column holding the text
        label_col: Column holding the sentiment label

    Returns:
        List of TrainingExample or None if data is insufficient
    """
    try:
        extension = os.path.splitext(path)[1].lower()
        if extension == '.csv':
            df = pd.read_csv(path)
        elif extension in ('.json', '.jsonl'):
            df = pd.read_json(path, lines=extension == '.jsonl')
        else:
            logger.error(f"Unsupported training data format: {path}")
            return None

        logger.info(f"Loaded {len(df)} rows from {path}")

        missing = [col for col in (text_col, label_col) if col not in df.columns]
        if missing:
            logger.error(f"Training data missing required columns: {missing}")
            return None

        df = df[[text_col, label_col]].dropna().copy()
        df[text_col] = df[text_col].astype(str).str.strip()
        df['parsed_label'] = df[label_col].map(Label.parse)
        df = df[(df[text_col] != '') & df['parsed_label'].notnull()]

        if len(df) < config.MIN_TRAINING_DATA:
            logger.warning(f"Not enough data for training. Need at least {config.MIN_TRAINING_DATA} "
                           f"examples, found {len(df)}.")
            return None

        logger.info(f"Label distribution: {df['parsed_label'].map(lambda l: l.value).value_counts().to_dict()}")

        return [TrainingExample(text, label) for text, label in zip(df[text_col], df['parsed_label'])]

    except Exception as e:
        logger.error(f"Error loading training data: {e}")
        return None


def _evaluate(classifier: NaiveBayesClassifier, examples: List[TrainingExample]) -> Dict[str, Any]:
    # utils.model_validator imports this package at module load
    from utils.model_validator import validate_model
    return validate_model(classifier, examples)


def train_new_model(examples: List[TrainingExample],
                    storage: Optional[Any] = None,
                    test_size: float = config.TEST_SIZE) -> Optional[Dict[str, Any]]:
    """
    Train a new model on a stratified hold-out split and save it.

    Args:
        examples: Labeled examples
        storage: Persistence backend; the configured one if None
        test_size: Share of the examples held out for evaluation

    Returns:
        Dict with the saved version, hold-out metrics and sizes, or None on failure
    """
    logger.info("Starting model training process")

    if not examples or len(examples) < config.MIN_TRAINING_DATA:
        logger.warning(f"Not enough data for training. Need at least {config.MIN_TRAINING_DATA} examples.")
        return None

    try:
        labels = [example.label.value for example in examples]
        # Stratify only when every label has two examples and fits in the test split
        counts = pd.Series(labels).value_counts()
        test_count = int(np.ceil(test_size * len(examples)))
        can_stratify = len(counts) > 1 and counts.min() >= 2 and test_count >= len(counts)
        stratify = labels if can_stratify else None

        train_examples, test_examples = train_test_split(
            examples,
            test_size=test_size,
            random_state=config.RANDOM_STATE,
            stratify=stratify,
        )

        classifier = NaiveBayesClassifier()
        logger.info(f"Training classifier on {len(train_examples)} samples")
        classifier.train(train_examples)

        evaluation = _evaluate(classifier, test_examples)
        logger.info(f"Model trained with accuracy: {evaluation['accuracy']:.4f}")

        if storage is None:
            from utils.storage_factory import get_storage
            storage = get_storage()

        save_result = storage.save_naive_bayes_model(classifier, {
            'dataset_size': len(examples),
            'training_data_size': len(train_examples),
            'test_data_size': len(test_examples),
            'accuracy': evaluation['accuracy'],
            'precision': evaluation['precision'],
            'recall': evaluation['recall'],
            'f1_score': evaluation['f1_score'],
            'features': sorted(classifier.vocabulary)[:50],
        })
        if not save_result['success']:
            logger.error(f"Could not save trained model: {save_result.get('error')}")
            return None

        clean_old_models(storage)

        model_version = save_result['version']
        logger.info(f"New model version {model_version} created successfully")

        return {
            'version': model_version,
            'accuracy': evaluation['accuracy'],
            'precision': evaluation['precision'],
            'recall': evaluation['recall'],
            'f1_score': evaluation['f1_score'],
            'confusion_matrix': evaluation['confusion_matrix'],
            'training_data_size': len(train_examples),
            'test_data_size': len(test_examples),
            'vocabulary_size': classifier.vocabulary_size,
            'location': save_result['location'],
            'classifier': classifier,
        }

    except Exception as e:
        logger.error(f"Error training new model: {e}")
        return None


def cross_validate(examples: List[TrainingExample], k: int = config.KFOLD_SPLITS) -> Optional[Dict[str, Any]]:
    """
    Estimate model quality with stratified k-fold cross-validation.

    Args:
        examples: Labeled examples
        k: Number of folds

    Returns:
        Dict with per-fold metrics and their mean/std, or None if a label
        has fewer than k examples
    """
    if k < 2:
        logger.error(f"Cross-validation needs at least 2 folds, got {k}")
        return None

    labels = np.array([example.label.value for example in examples])
    counts = pd.Series(labels, dtype=object).value_counts()
    if len(counts) < 2 or counts.min() < k:
        logger.warning(f"Not enough examples per label for {k}-fold cross-validation: {counts.to_dict()}")
        return None

    splitter = StratifiedKFold(n_splits=k, shuffle=True, random_state=config.RANDOM_STATE)
    folds = []

    for fold, (train_idx, test_idx) in enumerate(splitter.split(np.zeros(len(labels)), labels), start=1):
        classifier = NaiveBayesClassifier()
        classifier.train([examples[i] for i in train_idx])
        evaluation = _evaluate(classifier, [examples[i] for i in test_idx])

        folds.append({
            'fold': fold,
            'accuracy': evaluation['accuracy'],
            'precision': evaluation['precision'],
            'recall': evaluation['recall'],
            'f1_score': evaluation['f1_score'],
            'train_size': len(train_idx),
            'test_size': len(test_idx),
        })
        logger.info(f"Fold {fold}/{k}: accuracy {evaluation['accuracy']:.4f}, F1 {evaluation['f1_score']:.4f}")

    fold_df = pd.DataFrame(folds)
    summary = {
        metric: {'mean': float(fold_df[metric].mean()), 'std': float(fold_df[metric].std(ddof=0))}
        for metric in ('accuracy', 'precision', 'recall', 'f1_score')
    }

    logger.info(f"Cross-validation completed: accuracy {summary['accuracy']['mean']:.4f} "
                f"± {summary['accuracy']['std']:.4f}")

    return {'k': k, 'folds': folds, **summary}


def get_current_model_version(storage: Optional[Any] = None) -> str:
    """
    Get the current model version

    Args:
        storage: Persistence backend; the configured one if None

    Returns:
        str: Current model version
    """
    if storage is None:
        from utils.storage_factory import get_storage
        storage = get_storage()

    metadata = storage.load_metadata()
    if metadata and metadata.get('version'):
        return metadata['version']

    return f"{config.MODEL_VERSION_PREFIX}0"  # Default fallback version


def clean_old_models(storage: Optional[Any] = None, keep_newest: int = config.MAX_MODELS_TO_KEEP) -> int:
    """
    Delete old model versions to prevent unbounded storage growth

    Args:
        storage: Persistence backend; the configured one if None
        keep_newest: Number of most recent models to keep

    Returns:
        int: Number of deleted models
    """
    try:
        if storage is None:
            from utils.storage_factory import get_storage
            storage = get_storage()

        # list_models returns newest first
        all_models = storage.list_models()

        if len(all_models) <= keep_newest:
            logger.info(f"No model cleanup needed - only {len(all_models)} models found")
            return 0

        deleted = 0
        for model in all_models[keep_newest:]:
            try:
                if storage.delete_model(model['version']):
                    deleted += 1
                    logger.info(f"Deleted old model: {model['version']}")
                else:
                    logger.warning(f"Failed to delete model: {model['version']}")
            except Exception as e:
                logger.error(f"Error deleting model {model['version']}: {e}")

        logger.info(f"Cleaned up {deleted} old models, kept {keep_newest} newest")
        return deleted

    except Exception as e:
        logger.error(f"Error cleaning up old models: {e}")
        return 0


def evaluation_report(classifier: NaiveBayesClassifier, examples: List[TrainingExample]) -> pd.DataFrame:
    """Per-label precision, recall, F1 and support of a classifier on labeled examples."""
    matrix = ConfusionMatrix()
    for prediction, example in zip(classifier.predict_batch([e.text for e in examples]), examples):
        matrix.record(example.label, prediction.label)
    return classification_report(matrix)
