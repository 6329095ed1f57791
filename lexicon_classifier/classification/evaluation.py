"""Held-out evaluation and cross-validation of trained models."""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold
from tqdm import tqdm

from lexicon_classifier.core.config import check_prop_train
from lexicon_classifier.core.constants import DEFAULT_PROP_TRAIN, DEFAULT_SEED, DEFAULT_STRATEGY
from lexicon_classifier.core.exceptions import InvalidConfigurationError
from .features import FeatureMatrix
from .model import TrainedModel
from .prediction import predict
from .trainer import train_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EvaluationReport:
    """
    Outcome of a train/test evaluation.

    Attributes:
        results: One row per held-out segment with columns document, segment,
            true_label, predicted_label, probability, correct
        confusion: Counts with true labels as rows and predicted labels as
            columns
        accuracy: Fraction of held-out rows predicted correctly
        model: Model trained on the train split
        train_indices: Row indices used for training
        test_indices: Row indices held out
    """

    results: pd.DataFrame
    confusion: pd.DataFrame
    accuracy: float
    model: TrainedModel
    train_indices: Tuple[int, ...]
    test_indices: Tuple[int, ...]

    def misclassified(self) -> pd.DataFrame:
        return self.results[~self.results['correct']].copy()

    def most_confused(self, n: int = 10) -> pd.DataFrame:
        """
        Most frequent (true, predicted) pairs among misclassified rows.

        Returns:
            DataFrame with columns true_label, predicted_label, count
        """
        errors = self.misclassified()
        counts = (
            errors.groupby(['true_label', 'predicted_label'])
            .size()
            .rename('count')
            .reset_index()
        )
        counts = counts.sort_values(
            ['count', 'true_label', 'predicted_label'],
            ascending=[False, True, True],
            kind='mergesort'
        )
        return counts.head(n).reset_index(drop=True)

    def summary(self) -> str:
        n_correct = int(self.results['correct'].sum())
        return (
            f"Overall accuracy: {self.accuracy:.4f} "
            f"({n_correct}/{len(self.results)} held-out segments, "
            f"{len(self.train_indices)} training segments)"
        )


def split_rows(
    n_rows: int,
    prop_train: float = DEFAULT_PROP_TRAIN,
    seed: int = DEFAULT_SEED
) -> Tuple[List[int], List[int]]:
    """
    Randomly partition row indices into train and test subsets.

    The partition depends only on ``n_rows``, ``prop_train`` and ``seed``.
    ``round(n_rows * prop_train / 100)`` rows go to training.

    Returns:
        (train_indices, test_indices), each sorted

    Raises:
        InvalidConfigurationError: If ``prop_train`` is outside (0, 100) or
            either subset would be empty

    Examples:
        >>> train_idx, test_idx = split_rows(10, prop_train=80, seed=42)
        >>> len(train_idx), len(test_idx)
        (8, 2)
    """
    check_prop_train(prop_train)

    n_train = int(round(n_rows * prop_train / 100.0))
    if n_train == 0 or n_train == n_rows:
        raise InvalidConfigurationError(
            f"prop_train={prop_train} on {n_rows} rows leaves an empty "
            f"{'training' if n_train == 0 else 'test'} subset"
        )

    permutation = np.random.default_rng(seed).permutation(n_rows)
    train_indices = sorted(int(i) for i in permutation[:n_train])
    test_indices = sorted(int(i) for i in permutation[n_train:])
    return train_indices, test_indices


def _score_rows(matrix: FeatureMatrix, model: TrainedModel) -> pd.DataFrame:
    predictions = predict(matrix, model)
    results = pd.DataFrame({
        'document': [document for document, _ in matrix.rows],
        'segment': [segment for _, segment in matrix.rows],
        'true_label': list(matrix.labels),
        'predicted_label': [p.label for p in predictions],
        'probability': [p.probability for p in predictions],
    })
    results['correct'] = results['true_label'] == results['predicted_label']
    return results


def confusion_table(results: pd.DataFrame, labels=None) -> pd.DataFrame:
    """Count (true, predicted) pairs; rows are true labels, columns predicted labels."""
    if labels is None:
        labels = sorted(set(results['true_label']) | set(results['predicted_label']))
    table = pd.crosstab(results['true_label'], results['predicted_label'])
    table = table.reindex(index=labels, columns=labels, fill_value=0)
    table.index.name = 'true_label'
    table.columns.name = 'predicted_label'
    return table


def evaluate_model(
    matrix: FeatureMatrix,
    prop_train: float = DEFAULT_PROP_TRAIN,
    seed: int = DEFAULT_SEED,
    strategy: str = DEFAULT_STRATEGY,
    **params
) -> EvaluationReport:
    """
    Train on a random split of a labelled matrix and score the held-out rows.

    Steps:
    1. Split rows by ``prop_train`` with ``seed``
    2. Train ``strategy`` on the train rows
    3. Predict the test rows and compare the top label with the true label
    4. Aggregate accuracy and the confusion table

    Args:
        matrix: Feature matrix built with ``training=True``
        prop_train: Percentage of rows used for training, in (0, 100)
        seed: Seed for the split and the classifier
        strategy: Classifier strategy name
        **params: Extra keyword arguments for the estimator

    Returns:
        EvaluationReport

    Raises:
        InvalidConfigurationError: If the matrix is unlabelled, or the split
            is degenerate (e.g. ``prop_train=100``)
        InsufficientClassesError: If the training rows hold fewer than two labels
    """
    if not matrix.has_labels:
        raise InvalidConfigurationError("Evaluation requires a feature matrix built with training=True")

    train_indices, test_indices = split_rows(matrix.n_rows, prop_train, seed)
    logger.info(f"Split {matrix.n_rows} rows: {len(train_indices)} train, {len(test_indices)} test")

    model = train_model(
        matrix.subset(train_indices),
        strategy=strategy,
        random_state=seed,
        **params
    )
    results = _score_rows(matrix.subset(test_indices), model)
    accuracy = float(results['correct'].mean())

    report = EvaluationReport(
        results=results,
        confusion=confusion_table(results, labels=sorted(set(matrix.labels))),
        accuracy=accuracy,
        model=model,
        train_indices=tuple(train_indices),
        test_indices=tuple(test_indices),
    )
    logger.info(report.summary())
    return report


def generate_cv_splits(
    n_rows: int,
    n_splits: int = 5,
    seed: int = DEFAULT_SEED
) -> List[Tuple[List[int], List[int]]]:
    """
    Generate shuffled K-fold cross-validation splits over row indices.

    Args:
        n_rows: Number of rows in the feature matrix
        n_splits: Number of folds (2 <= n_splits <= n_rows)
        seed: Random seed for reproducibility

    Returns:
        List of (train_indices, test_indices) tuples

    Examples:
        >>> splits = generate_cv_splits(matrix.n_rows, n_splits=5, seed=42)
        >>> train_idx, test_idx = splits[0]
    """
    if n_splits < 2 or n_splits > n_rows:
        raise InvalidConfigurationError(
            f"n_splits must lie between 2 and the number of rows ({n_rows}), got {n_splits}"
        )

    kfold = KFold(n_splits=n_splits, shuffle=True, random_state=seed)
    return [
        (train_idx.tolist(), test_idx.tolist())
        for train_idx, test_idx in kfold.split(np.arange(n_rows))
    ]


def run_cross_validation(
    matrix: FeatureMatrix,
    cv_splits: List[Tuple[List[int], List[int]]],
    strategy: str = DEFAULT_STRATEGY,
    random_state: int = DEFAULT_SEED,
    progress: bool = True,
    **params
) -> pd.DataFrame:
    """
    Run cross-validation and return results in long format.

    For each split a fresh model is trained on the training rows and every
    held-out row is scored.

    Returns:
        DataFrame with columns:
        - split_id: int
        - document: str
        - segment: int
        - true_label: str
        - predicted_label: str
        - accuracy: float (1.0 if correct, 0.0 if incorrect)
    """
    if not matrix.has_labels:
        raise InvalidConfigurationError("Cross-validation requires a feature matrix built with training=True")

    frames = []
    for split_id, (train_idx, test_idx) in enumerate(
        tqdm(cv_splits, desc="CV splits", disable=not progress)
    ):
        model = train_model(
            matrix.subset(train_idx),
            strategy=strategy,
            random_state=random_state,
            **params
        )
        results = _score_rows(matrix.subset(test_idx), model)
        results.insert(0, 'split_id', split_id)
        results['accuracy'] = results['correct'].astype(float)
        frames.append(results.drop(columns=['probability', 'correct']))

    if not frames:
        return pd.DataFrame(
            columns=['split_id', 'document', 'segment', 'true_label', 'predicted_label', 'accuracy']
        )

    results_df = pd.concat(frames, ignore_index=True)
    logger.info(f"Cross-validation accuracy: {results_df['accuracy'].mean():.4f} over {len(cv_splits)} splits")
    return results_df
