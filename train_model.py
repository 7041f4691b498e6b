#!/usr/bin/env python3
"""
Sentiment model training script.

Trains a Naive Bayes sentiment model from a labeled CSV or JSON file,
optionally cross-validates it, and saves it to the configured storage.

Usage:
  python train_model.py data.csv                 # Train and save
  python train_model.py data.csv --cv 5          # Also run 5-fold cross-validation
  python train_model.py data.json --text-col review --label-col sentiment
  python train_model.py --info                   # Show the latest saved model
"""

import os
import sys
import argparse
import json

# Add the current directory to the path for imports
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

import config
from sentiment.trainer import cross_validate, load_training_data, train_new_model
from utils.storage_factory import get_storage


def print_model_info(storage):
    """Print metadata of the latest saved model."""
    info = storage.get_model_info()
    if not info['exists']:
        print("No saved model found.")
        return False

    print("\n=== Latest Model ===")
    print(json.dumps(info['metadata'], indent=2, default=str))
    print(f"Size: {info['size']} bytes")
    return True


def print_cross_validation(results):
    print(f"\n=== {results['k']}-fold Cross-Validation ===")
    for fold in results['folds']:
        print(f"Fold {fold['fold']}: accuracy {fold['accuracy']:.4f}, F1 {fold['f1_score']:.4f}")
    for metric in ('accuracy', 'precision', 'recall', 'f1_score'):
        print(f"{metric}: {results[metric]['mean']:.4f} ± {results[metric]['std']:.4f}")


def main():
    parser = argparse.ArgumentParser(description="Sentiment model training utility")
    parser.add_argument("data", nargs="?", help="CSV or JSON file with labeled examples")
    parser.add_argument("--text-col", default="text", help="Column holding the text")
    parser.add_argument("--label-col", default="label", help="Column holding the label")
    parser.add_argument("--test-size", type=float, default=config.TEST_SIZE, help="Hold-out share")
    parser.add_argument("--cv", type=int, metavar="K", help="Run K-fold cross-validation before training")
    parser.add_argument("--storage", choices=["local", "memory"], help="Storage backend to save to")
    parser.add_argument("--info", action="store_true", help="Show the latest saved model and exit")

    args = parser.parse_args()
    storage = get_storage(args.storage)

    if args.info:
        return 0 if print_model_info(storage) else 1

    if not args.data:
        parser.print_help()
        return 1

    examples = load_training_data(args.data, text_col=args.text_col, label_col=args.label_col)
    if examples is None:
        print(f"Error: Could not load enough training data from {args.data}")
        return 1

    print(f"Loaded {len(examples)} examples from {args.data}")

    if args.cv:
        results = cross_validate(examples, k=args.cv)
        if results is None:
            print(f"Error: Not enough examples per label for {args.cv}-fold cross-validation")
            return 1
        print_cross_validation(results)

    result = train_new_model(examples, storage=storage, test_size=args.test_size)
    if result is None:
        print("Error: Training failed, see log for details")
        return 1

    print(f"\nModel {result['version']} saved to {result['location']}")
    print(f"Hold-out accuracy: {result['accuracy']:.4f}, F1: {result['f1_score']:.4f}")
    print(f"Vocabulary size: {result['vocabulary_size']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
